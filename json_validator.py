"""Validate JSON text against a schema node.

Parse errors short-circuit with a single error at ``/``. Schema violations come
from ``jsonschema.Draft7Validator``; each one is mapped back to the line and
column of the offending member in the source text where possible.
"""
import json
import logging
import re
from json.decoder import scanstring
from json.scanner import NUMBER_RE
from operator import attrgetter

import jsonschema

from schema_model import SchemaNode, to_json
from validation import ValidationError, ValidationResult

logger = logging.getLogger(__name__)

FORMAT_CHECKER = jsonschema.FormatChecker()
_TEL = re.compile(r"^\+?[0-9 ()./-]{3,}$")


@FORMAT_CHECKER.checks("tel")
def is_tel(instance) -> bool:
    if not isinstance(instance, str):
        return True
    return bool(_TEL.match(instance)) and any(c.isdigit() for c in instance)


_WHITESPACE = re.compile(r"[ \t\n\r]*")
_LITERALS = ("true", "false", "null")
# string literals are matched first so constants inside them are skipped
_CONSTANT_TOKEN = re.compile(r'"(?:[^"\\]|\\.)*"|-Infinity|Infinity|NaN')


def _constant_offset(text, name):
    for match in _CONSTANT_TOKEN.finditer(text):
        if match.group(0) == name:
            return match.start()
    return 0


def parse_json(text):
    """``json.loads`` restricted to strict JSON.

    ``NaN``, ``Infinity`` and ``-Infinity`` are rejected with a
    ``json.JSONDecodeError`` located at the offending token.
    """
    def reject_constant(name):
        raise json.JSONDecodeError(
            f"Unexpected token {name}", text, _constant_offset(text, name))

    return json.loads(text, parse_constant=reject_constant)


def escape_pointer(token) -> str:
    return str(token).replace("~", "~0").replace("/", "~1")


def to_pointer(path) -> str:
    if not path:
        return "/"
    return "".join("/" + escape_pointer(p) for p in path)


def offset_to_position(text, pos):
    line = text.count("\n", 0, pos) + 1
    last_newline = text.rfind("\n", 0, pos)
    column = pos - last_newline if last_newline != -1 else pos + 1
    return line, column


def _skip_ws(text, pos):
    return _WHITESPACE.match(text, pos).end()


def _scan(text, pos, pointer, locations):
    """Walk the value starting at ``pos``; returns the offset right after it.

    Object members are recorded at their key, array elements at their first
    character. ``text`` is known to be valid JSON.
    """
    char = text[pos]
    if char == "{":
        pos = _skip_ws(text, pos + 1)
        if text[pos] == "}":
            return pos + 1
        while True:
            key_start = pos
            key, pos = scanstring(text, pos + 1)
            child = pointer + "/" + escape_pointer(key)
            locations[child] = key_start
            pos = _skip_ws(text, _skip_ws(text, pos) + 1)
            pos = _skip_ws(text, _scan(text, pos, child, locations))
            if text[pos] == "}":
                return pos + 1
            pos = _skip_ws(text, pos + 1)
    if char == "[":
        pos = _skip_ws(text, pos + 1)
        if text[pos] == "]":
            return pos + 1
        index = 0
        while True:
            child = f"{pointer}/{index}"
            locations[child] = pos
            pos = _skip_ws(text, _scan(text, pos, child, locations))
            if text[pos] == "]":
                return pos + 1
            pos = _skip_ws(text, pos + 1)
            index += 1
    if char == '"':
        return scanstring(text, pos + 1)[1]
    for literal in _LITERALS:
        if text.startswith(literal, pos):
            return pos + len(literal)
    return NUMBER_RE.match(text, pos).end()


def index_locations(text):
    """Map every JSON pointer of a valid document to its offset in ``text``."""
    start = _skip_ws(text, 0)
    locations = {"": start}
    _scan(text, start, "", locations)
    return locations


def locate(pointer, locations):
    """Closest known position for a pointer, walking up to its ancestors."""
    key = "" if pointer == "/" else pointer
    while key not in locations:
        key = key.rsplit("/", 1)[0]
    return locations[key]


def _error_path(error) -> list:
    path = list(error.absolute_path)
    if error.validator == "required" and isinstance(error.instance, dict):
        # jsonschema reports at the object; point at the missing member instead
        for name in error.validator_value:
            if name not in error.instance and error.message.startswith(repr(name)):
                path.append(name)
                break
    return path


def check_schema(schema: SchemaNode) -> ValidationResult:
    """Check the schema document itself against the draft-07 meta-schema."""
    try:
        jsonschema.Draft7Validator.check_schema(to_json(schema))
    except jsonschema.exceptions.SchemaError as e:
        path_str = "#" + "".join("/" + escape_pointer(p) for p in e.path)
        return ValidationResult((
            ValidationError(path_str, f"Schema is invalid: {e.message}"),
        ))
    return ValidationResult()


def validate_json(text: str, schema: SchemaNode) -> ValidationResult:
    try:
        instance = parse_json(text)
    except json.JSONDecodeError as e:
        return ValidationResult((ValidationError("/", e.msg, e.lineno, e.colno),))
    except RecursionError:
        return ValidationResult((
            ValidationError("/", "Document is nested too deeply.", 1, 1),
        ))

    schema_result = check_schema(schema)
    if not schema_result.valid:
        return schema_result
    validator = jsonschema.Draft7Validator(to_json(schema), format_checker=FORMAT_CHECKER)
    violations = sorted(validator.iter_errors(instance), key=attrgetter("path"))
    if not violations:
        return ValidationResult()

    try:
        locations = index_locations(text)
    except RecursionError:
        locations = {"": 0}
    errors = []
    for violation in violations:
        pointer = to_pointer(_error_path(violation))
        line, column = offset_to_position(text, locate(pointer, locations))
        errors.append(ValidationError(pointer, violation.message, line, column))
    logger.debug("Instance has %d violation(s).", len(errors))
    return ValidationResult(tuple(errors))
