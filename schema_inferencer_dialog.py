import json

from PyQt6.QtWidgets import *

from json_validator import parse_json
from message_box import silent_message
from schema_inference import create_schema_from_json
from schema_model import to_json


class SchemaInferencerDialog(QDialog):
    def __init__(self, parent=None, example_text=""):
        super().__init__(parent)
        self.setWindowTitle('Infer schema from example')

        screen_size = self.screen().size()
        window_width = round(0.4 * screen_size.width())
        self.setMinimumWidth(window_width)

        self.schema = None

        # Main layout
        layout = QVBoxLayout(self)
        # Example input
        layout.addWidget(QLabel('Example JSON:', self))
        self.example_input = QPlainTextEdit(self)
        self.example_input.setPlainText(example_text)
        layout.addWidget(self.example_input)
        # Generate button
        generate_button = QPushButton('Generate', self)
        generate_button.clicked.connect(self.generate)
        generate_button_row = QHBoxLayout()
        generate_button_row.addStretch()
        generate_button_row.addWidget(generate_button)  # Center
        generate_button_row.addStretch()
        layout.addLayout(generate_button_row)
        # Preview
        layout.addWidget(QLabel('Inferred schema:', self))
        self.preview = QPlainTextEdit(self)
        self.preview.setReadOnly(True)
        layout.addWidget(self.preview)
        # OK and Cancel Buttons
        self.confirmation = QDialogButtonBox(
            QDialogButtonBox.StandardButton.Ok | QDialogButtonBox.StandardButton.Cancel
        )
        self.confirmation.accepted.connect(self.accept)
        self.confirmation.rejected.connect(self.reject)
        # OK stays disabled until a schema has been inferred
        self.confirmation.button(QDialogButtonBox.StandardButton.Ok).setEnabled(False)
        layout.addWidget(self.confirmation)
        self.setLayout(layout)

    def generate(self):
        text = self.example_input.toPlainText().strip()
        try:
            self.schema = create_schema_from_json(parse_json(text))
        except json.JSONDecodeError as e:
            self.reject_example(f"Line {e.lineno}, column {e.colno}: {e.msg}.")
            return
        except RecursionError:
            self.reject_example("The example is nested too deeply.")
            return
        self.preview.setPlainText(
            json.dumps(to_json(self.schema), indent=2, ensure_ascii=False))
        self.confirmation.button(QDialogButtonBox.StandardButton.Ok).setEnabled(True)

    def reject_example(self, text):
        self.schema = None
        self.preview.clear()
        self.confirmation.button(QDialogButtonBox.StandardButton.Ok).setEnabled(False)
        silent_message(self, "warn", "Invalid JSON", text)
