"""Persistent preferences for Yahtzee.

Stores the bot speed, the last name typed at the name prompt, and the theme
in ~/.yahtzee_duel_settings.json. Game progress is never saved here.
"""

import json
from pathlib import Path

from game_coordinator import SPEED_PRESETS
from game_session import normalize_player_name

DEFAULTS = {
    "speed": "normal",
    "player_name": "",
    "dark_mode": False,
}


def _default_path():
    return Path.home() / ".yahtzee_duel_settings.json"


def _valid(key, value):
    """Whether a stored value is usable for its key."""
    if key == "speed":
        return value in SPEED_PRESETS
    if key == "player_name":
        return isinstance(value, str)
    if key == "dark_mode":
        return isinstance(value, bool)
    return False


def load_settings(path=None):
    """Load settings from JSON file. Returns DEFAULTS on missing/corrupt.

    Known keys with usable values override DEFAULTS; unknown keys and
    invalid values (e.g. a speed preset that no longer exists) are dropped.
    """
    path = Path(path) if path is not None else _default_path()
    try:
        data = json.loads(path.read_text())
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return dict(DEFAULTS)
    result = dict(DEFAULTS)
    if isinstance(data, dict):
        for key in DEFAULTS:
            if key in data and _valid(key, data[key]):
                result[key] = data[key]
    return result


def save_settings(settings, path=None):
    """Write settings dict to JSON. Silently ignores write errors."""
    path = Path(path) if path is not None else _default_path()
    try:
        path.write_text(json.dumps(settings, indent=2))
    except OSError:
        pass


def remember_player_name(name, path=None):
    """Store the normalized name so the next name prompt is pre-filled.

    Returns the name as it was stored.
    """
    settings = load_settings(path)
    settings["player_name"] = normalize_player_name(name)
    save_settings(settings, path)
    return settings["player_name"]


def remember_speed(speed, path=None):
    """Store the bot speed if it names a preset. Returns True if saved."""
    if speed not in SPEED_PRESETS:
        return False
    settings = load_settings(path)
    settings["speed"] = speed
    save_settings(settings, path)
    return True
