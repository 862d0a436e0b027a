"""Persistent settings for Generala.

Stores user preferences and the computer player's simulation budget in
~/.generala_settings.json. No frontend dependency.
"""

import json
import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)

DEFAULTS = {
    "speed": "normal",
    "dark_mode": False,
    "opponent": "montecarlo",
    "hold_trials": 500,
    "category_trials": 2000,
}

TRIAL_KEYS = ("hold_trials", "category_trials")


def _default_path():
    """Return the default path for the settings file."""
    return Path.home() / ".generala_settings.json"


def load_settings(path=None):
    """Load settings from JSON file. Returns DEFAULTS on missing/corrupt.

    Merges with DEFAULTS so missing keys get default values.
    Unknown keys are ignored.
    """
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        data = json.loads(path.read_text())
    except FileNotFoundError:
        return dict(DEFAULTS)
    except (json.JSONDecodeError, OSError):
        logger.warning("Ignoring unreadable settings file %s", path)
        return dict(DEFAULTS)

    if not isinstance(data, dict):
        logger.warning("Ignoring settings file %s: expected a JSON object", path)
        return dict(DEFAULTS)
    # Merge: only keep known keys, fill missing from defaults
    result = dict(DEFAULTS)
    for key in DEFAULTS:
        if key in data:
            result[key] = data[key]

    # Trial counts divide the simulation totals
    for key in TRIAL_KEYS:
        value = result[key]
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            logger.warning("Ignoring %s=%r in %s: expected a positive integer", key, value, path)
            result[key] = DEFAULTS[key]
    return result


def update_setting(key, value, path=None):
    """Change one saved setting, leaving every other saved value as it is."""
    settings = load_settings(path)
    settings[key] = value
    save_settings(settings, path)


def save_settings(settings, path=None):
    """Write settings dict to JSON atomically. Silently ignores write errors."""
    if path is None:
        path = _default_path()
    path = Path(path)
    try:
        raw = json.dumps(settings, indent=2).encode()
        fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
        closed = False
        try:
            os.write(fd, raw)
            os.close(fd)
            closed = True
            os.replace(tmp, path)
        except BaseException:
            if not closed:
                os.close(fd)
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise
    except OSError:
        pass
