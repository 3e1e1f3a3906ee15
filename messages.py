import re

EN = {
    "negativeLength": "Length constraints cannot be negative.",
    "lengthRange": "Minimum length ({minimum}) is greater than maximum length ({maximum}).",
    "patternInvalid": "Pattern is not a valid regular expression: {error}",
    "enumLengthConflict": "No allowed value satisfies the length constraints.",
    "rangeConflict": "Minimum ({minimum}) is greater than maximum ({maximum}).",
    "exclusiveRangeConflict": "The exclusive bounds leave no valid number.",
    "multipleOfNotPositive": "\"Multiple of\" must be greater than 0.",
    "enumRangeConflict": "No allowed value satisfies the range constraints.",
    "negativeItems": "Item count constraints cannot be negative.",
    "itemsRange": "Minimum items ({minimum}) is greater than maximum items ({maximum}).",
}

DE = {
    "negativeLength": "Längenangaben dürfen nicht negativ sein.",
    "lengthRange": "Die Mindestlänge ({minimum}) ist größer als die Maximallänge ({maximum}).",
    "patternInvalid": "Das Muster ist kein gültiger regulärer Ausdruck: {error}",
    "enumLengthConflict": "Kein erlaubter Wert erfüllt die Längenvorgaben.",
    "rangeConflict": "Das Minimum ({minimum}) ist größer als das Maximum ({maximum}).",
    "exclusiveRangeConflict": "Die exklusiven Grenzen lassen keine gültige Zahl zu.",
    "multipleOfNotPositive": "\"Vielfaches von\" muss größer als 0 sein.",
    "enumRangeConflict": "Kein erlaubter Wert erfüllt die Bereichsvorgaben.",
    "negativeItems": "Angaben zur Elementanzahl dürfen nicht negativ sein.",
    "itemsRange": "Die Mindestanzahl ({minimum}) ist größer als die Höchstanzahl ({maximum}).",
}

MESSAGE_TABLES = {"en": EN, "de": DE}

_PLACEHOLDER = re.compile(r"\{(\w+)\}")


def message_table_for(locale):
    return MESSAGE_TABLES.get(locale, EN)


def format_message(template, **params):
    """Fill ``{name}`` placeholders; unknown placeholders are left as they are."""
    return _PLACEHOLDER.sub(
        lambda m: str(params[m.group(1)]) if m.group(1) in params else m.group(0),
        template,
    )


def lookup(message_table, token, **params):
    """Localized message for an error token.

    ``message_table`` is either a mapping or a callable taking the token. A
    missing entry falls back to the token itself.
    """
    if callable(message_table):
        template = message_table(token)
    else:
        template = message_table.get(token)
    if not template:
        template = token
    return format_message(template, **params)
