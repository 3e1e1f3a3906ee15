import json
import logging
import os
import sys

logger = logging.getLogger(__name__)


class Config(dict):
    def __init__(self, *args, base_dir=None, **kwargs):
        super().__init__(*args, **kwargs)
        if base_dir is None:
            if hasattr(sys, '_MEIPASS'):  # pyinstaller
                base_dir = sys._MEIPASS
            else:
                base_dir = os.path.abspath(".")
        os.makedirs(os.path.join(base_dir, "raw"), exist_ok=True)
        self.config_path = os.path.join(base_dir, "raw", "config.json")

        # schema
        self['locale'] = "en"
        self['debounce_ms'] = 500
        self['schema_path'] = ""
        self['indent'] = 4

        # load from file
        self.load()

    def dump(self):
        with open(self.config_path, "w", encoding="utf-8") as g:
            json.dump(self, g, indent=4)

    def load(self):
        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config_ = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError) as e:
            logger.debug("Using default settings: %s", e)
            return
        if not isinstance(config_, dict):
            logger.debug("Ignoring %s, it is not a JSON object.", self.config_path)
            return
        self.update(config_)
