# config.py
"""
Environment-driven runtime settings.

Values come from the process environment, optionally seeded from a ``.env``
file in the project root. Planning tunables live in the JSON settings file
(see ``data_loader.load_settings``); this module only points at that file
and carries the few knobs operators change per deployment.
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parent
load_dotenv(BASE_DIR / ".env")


def _optional_int(name: str) -> Optional[int]:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer; got {raw!r}") from exc


class Config:
    SETTINGS_FILE = os.getenv("ALLOCATION_SETTINGS_FILE", str(BASE_DIR / "inputs" / "allocation_settings.json"))
    STORE_FILE = os.getenv("ALLOCATION_STORE_FILE", "")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE = os.getenv("LOG_FILE", "")

    @property
    def BATCH_SIZE(self) -> Optional[int]:
        """Batch size override; None keeps the settings-file value."""
        return _optional_int("ALLOCATION_BATCH_SIZE")

    def __repr__(self):
        return f"<Config settings={self.SETTINGS_FILE} log_level={self.LOG_LEVEL}>"


# Singleton
config = Config()
