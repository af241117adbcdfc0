"""Terminal key decoding and keymap resolution."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_KEYMAP: dict[str, list[str]] = {
    "quit": ["q", "ctrl+c"],
    "help": ["?"],
    "back": ["escape"],
    "next_panel": ["tab"],
    "prev_panel": ["shift+tab"],
    "focus_1": ["1"],
    "focus_2": ["2"],
    "focus_3": ["3"],
    "focus_4": ["4"],
}

# Actions widgets understand once a key is not claimed globally.
NAVIGATION = {
    "up": "up",
    "k": "up",
    "down": "down",
    "j": "down",
    "pgup": "page_up",
    "pgdown": "page_down",
    "home": "top",
    "g": "top",
    "end": "bottom",
    "G": "bottom",
}

KEY_ALIASES = {
    "esc": "escape",
    "return": "enter",
    "pageup": "pgup",
    "page_up": "pgup",
    "prior": "pgup",
    "pagedown": "pgdown",
    "page_down": "pgdown",
    "next": "pgdown",
    "backtab": "shift+tab",
    "shift-tab": "shift+tab",
    "ctrl-c": "ctrl+c",
    "arrowup": "up",
    "arrowdown": "down",
}

ESCAPE_SEQUENCES = {
    "\x1b[A": "up",
    "\x1b[B": "down",
    "\x1b[C": "right",
    "\x1b[D": "left",
    "\x1bOA": "up",
    "\x1bOB": "down",
    "\x1bOC": "right",
    "\x1bOD": "left",
    "\x1b[H": "home",
    "\x1b[F": "end",
    "\x1bOH": "home",
    "\x1bOF": "end",
    "\x1b[1~": "home",
    "\x1b[7~": "home",
    "\x1b[4~": "end",
    "\x1b[8~": "end",
    "\x1b[5~": "pgup",
    "\x1b[6~": "pgdown",
    "\x1b[Z": "shift+tab",
}

CONTROL_KEYS = {
    "\t": "tab",
    "\r": "enter",
    "\n": "enter",
    "\x7f": "backspace",
    " ": "space",
}


def normalize_key(key: Any) -> str:
    if key is None:
        return ""
    text = str(key)
    if len(text) <= 1:
        return CONTROL_KEYS.get(text, text)
    lowered = text.strip().lower()
    return KEY_ALIASES.get(lowered, lowered)


def navigation_action(key: str) -> str | None:
    return NAVIGATION.get(key)


def _read_csi(data: str, start: int) -> int:
    """Return the index just past a CSI/SS3 sequence beginning at ``start``."""
    index = start + 2
    if data[start + 1] == "O":
        return min(len(data), index + 1)
    while index < len(data):
        if "\x40" <= data[index] <= "\x7e":
            return index + 1
        index += 1
    return index


def decode_keys(data: str) -> list[str]:
    keys: list[str] = []
    index = 0
    while index < len(data):
        ch = data[index]
        if ch == "\x1b":
            if index + 1 < len(data) and data[index + 1] in "[O":
                end = _read_csi(data, index)
                sequence = data[index:end]
                name = ESCAPE_SEQUENCES.get(sequence)
                if name is None:
                    logger.debug("unknown escape sequence %r", sequence)
                else:
                    keys.append(name)
                index = end
                continue
            keys.append("escape")
            index += 1
            continue
        if ch in CONTROL_KEYS:
            keys.append(CONTROL_KEYS[ch])
        elif ord(ch) < 32:
            keys.append(f"ctrl+{chr(ord(ch) + 96)}")
        else:
            keys.append(ch)
        index += 1
    return keys


def resolve_keymap(keymap: dict[str, list[str]] | None = None) -> dict[str, str]:
    """Flatten an action → keys mapping into key → action.

    Actions missing from ``keymap`` keep their default bindings. When the
    same key is bound twice the later action wins and a warning is logged.
    """
    merged = {action: list(keys) for action, keys in DEFAULT_KEYMAP.items()}
    for action, keys in (keymap or {}).items():
        if action not in DEFAULT_KEYMAP:
            logger.warning("ignoring unknown keymap action %r", action)
            continue
        if isinstance(keys, str):
            keys = [keys]
        merged[action] = [normalize_key(k) for k in keys if normalize_key(k)]

    bindings: dict[str, str] = {}
    for action, keys in merged.items():
        for key in keys:
            if key in bindings and bindings[key] != action:
                logger.warning("key %r rebound from %s to %s", key, bindings[key], action)
            bindings[key] = action
    return bindings
