import json

from PyQt6.QtCore import Qt, QTimer
from PyQt6.QtGui import QTextCursor
from PyQt6.QtWidgets import *

from json_validator import validate_json
from schema_model import to_json


class JsonValidatorDialog(QDialog):
    """Checks pasted JSON against the schema once typing pauses."""

    def __init__(self, schema, debounce_ms=500, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Validate JSON")
        screen_size = self.screen().size()
        window_width = round(0.6 * screen_size.width())
        self.setMinimumWidth(window_width)
        self.setMinimumHeight(round(window_width / 1.6))

        self.schema = schema
        self.result = None

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel(
            "Paste or type JSON on the left; it is checked against the schema "
            "on the right."))
        editors = QSplitter(Qt.Orientation.Horizontal)
        self.json_input = QPlainTextEdit()
        self.json_input.setPlaceholderText("{ }")
        self.json_input.textChanged.connect(self.schedule_validation)
        editors.addWidget(self.json_input)
        schema_view = QPlainTextEdit()
        schema_view.setReadOnly(True)
        schema_view.setPlainText(
            json.dumps(to_json(schema), indent=2, ensure_ascii=False))
        editors.addWidget(schema_view)
        layout.addWidget(editors, stretch=3)

        self.summary = QLabel()
        layout.addWidget(self.summary)
        self.error_list = QListWidget()
        self.error_list.itemActivated.connect(self.go_to_error)
        self.error_list.itemClicked.connect(self.go_to_error)
        layout.addWidget(self.error_list, stretch=1)

        dialog_buttons = QDialogButtonBox(QDialogButtonBox.StandardButton.Close)
        dialog_buttons.rejected.connect(self.reject)
        layout.addWidget(dialog_buttons)

        # Restarted on every edit, so only the latest text gets validated.
        self.timer = QTimer(self)
        self.timer.setSingleShot(True)
        self.timer.setInterval(debounce_ms)
        self.timer.timeout.connect(self.run_validation)

    def schedule_validation(self):
        self.timer.start()

    def run_validation(self):
        text = self.json_input.toPlainText()
        self.error_list.clear()
        if not text.strip():
            self.result = None
            self.summary.clear()
            return
        self.result = validate_json(text, self.schema)
        errors = self.result.errors
        if self.result.valid:
            self.summary.setText("JSON is valid against the schema.")
        elif len(errors) == 1 and errors[0].path == "/" and errors[0].line is not None:
            self.summary.setText("JSON is invalid.")
        else:
            self.summary.setText(f"Found {len(errors)} validation error(s).")
        for error in errors:
            label = "Root" if error.path == "/" else error.path
            text = f"{label}: {error.message}"
            if error.line is not None:
                text += f" (line {error.line}, column {error.column})"
            item = QListWidgetItem(text)
            item.setData(Qt.ItemDataRole.UserRole, (error.line, error.column))
            self.error_list.addItem(item)

    def go_to_error(self, item):
        line, column = item.data(Qt.ItemDataRole.UserRole)
        if line is None:
            return
        block = self.json_input.document().findBlockByLineNumber(line - 1)
        cursor = QTextCursor(block)
        cursor.movePosition(
            QTextCursor.MoveOperation.Right,
            QTextCursor.MoveMode.MoveAnchor,
            max((column or 1) - 1, 0),
        )
        self.json_input.setTextCursor(cursor)
        self.json_input.centerCursor()
        self.json_input.setFocus()
