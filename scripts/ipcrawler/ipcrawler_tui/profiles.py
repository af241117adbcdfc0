"""Profile resolution and user config merging for the dashboard."""

from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ipcrawler_tui.bridge import DROP_OLDEST, OVERFLOW_POLICIES
from ipcrawler_tui.keys import DEFAULT_KEYMAP
from ipcrawler_tui.layout import Breakpoints, LayoutConfig

logger = logging.getLogger(__name__)

BOX_STYLES = ("rounded", "square", "heavy", "double", "ascii")

DEFAULT_COLORS = {
    "border": "grey50",
    "focus": "cyan",
    "title": "bold",
    "header": "bold cyan",
    "running": "cyan",
    "completed": "green",
    "failed": "red",
    "pending": "grey62",
    "muted": "grey50",
    "error": "bold red",
    "warning": "yellow",
    "debug": "grey50",
}

DEFAULT_STATUS_SYMBOLS = {
    "pending": "○",
    "running": "●",
    "completed": "✓",
    "failed": "✗",
}

DEFAULT_SPINNER = ("⠋", "⠙", "⠹", "⠸", "⠼", "⠴", "⠦", "⠧", "⠇", "⠏")


@dataclass(frozen=True)
class ThemeConfig:
    box: str = "rounded"
    color: bool = True
    colors: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_COLORS))
    status_symbols: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_STATUS_SYMBOLS))
    spinner: tuple[str, ...] = DEFAULT_SPINNER
    cursor: str = "›"

    def style(self, name: str) -> str:
        if not self.color:
            return "bold" if name in ("title", "header", "focus", "error") else ""
        return self.colors.get(name, "")

    def glyph(self, status: str) -> str:
        return self.status_symbols.get(status, self.status_symbols.get("pending", "?"))


@dataclass(frozen=True)
class WorkflowListConfig:
    max_items: int = 100
    item_height: int = 1


@dataclass(frozen=True)
class ToolTableConfig:
    recent_limit: int = 50
    show_args: bool = False


@dataclass(frozen=True)
class LogViewportConfig:
    max_entries: int = 1000
    show_timestamps: bool = True
    show_levels: bool = True
    auto_scroll: bool = True


@dataclass(frozen=True)
class BridgeConfig:
    capacity: int = 4096
    overflow: str = DROP_OLDEST


@dataclass(frozen=True)
class RefreshConfig:
    tick_seconds: float = 0.1
    metrics_seconds: float = 2.0


@dataclass(frozen=True)
class UIConfig:
    name: str = "default"
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    theme: ThemeConfig = field(default_factory=ThemeConfig)
    workflow_list: WorkflowListConfig = field(default_factory=WorkflowListConfig)
    tool_table: ToolTableConfig = field(default_factory=ToolTableConfig)
    log_viewport: LogViewportConfig = field(default_factory=LogViewportConfig)
    bridge: BridgeConfig = field(default_factory=BridgeConfig)
    refresh: RefreshConfig = field(default_factory=RefreshConfig)
    keymap: dict[str, list[str]] = field(default_factory=lambda: copy.deepcopy(DEFAULT_KEYMAP))


BUILTIN_PROFILES: dict[str, dict] = {
    "default": {},
    "ascii": {
        "theme": {
            "box": "ascii",
            "symbols": {
                "status": {"pending": "o", "running": "*", "completed": "+", "failed": "x"},
                "spinner": ["|", "/", "-", "\\"],
                "cursor": ">",
            },
        },
    },
    "mono": {
        "theme": {"color": False},
    },
}


def load_user_config(path: str | None) -> dict:
    if not path:
        return {}

    config_path = Path(path)
    if not config_path.exists():
        raise ValueError(f"config path not found: {config_path}")

    try:
        document = json.loads(config_path.read_text())
    except json.JSONDecodeError as exc:
        raise ValueError(f"invalid JSON config: {exc}") from exc
    if not isinstance(document, dict):
        raise ValueError("invalid JSON config: top level must be an object")
    return document


def deep_merge(base: dict, override: dict) -> dict:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def resolve_profile(profile: str = "default", config_path: str | None = None) -> UIConfig:
    if profile not in BUILTIN_PROFILES:
        raise ValueError(f"unknown profile: {profile}")

    user_config = load_user_config(config_path)

    selected_profile = user_config.get("profile")
    if selected_profile:
        if selected_profile not in BUILTIN_PROFILES:
            raise ValueError(f"unknown profile in config: {selected_profile}")
        profile = selected_profile

    overrides = {key: value for key, value in user_config.items() if key != "profile"}
    document = deep_merge(BUILTIN_PROFILES[profile], overrides)
    return build_config(document, name=profile)


def _section(document: dict, key: str) -> dict:
    value = document.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        logger.warning("config section %r must be an object, using defaults", key)
        return {}
    return value


def _int(section: dict, key: str, default: int, minimum: int = 1) -> int:
    if key not in section:
        return default
    try:
        value = int(section[key])
    except (TypeError, ValueError):
        logger.warning("config %s=%r is not an integer, using %s", key, section[key], default)
        return default
    if value < minimum:
        logger.warning("config %s=%r below %s, using %s", key, value, minimum, default)
        return default
    return value


def _float(section: dict, key: str, default: float, low: float, high: float) -> float:
    if key not in section:
        return default
    try:
        value = float(section[key])
    except (TypeError, ValueError):
        logger.warning("config %s=%r is not a number, using %s", key, section[key], default)
        return default
    if not low <= value <= high:
        clamped = min(max(value, low), high)
        logger.warning("config %s=%r out of range, clamped to %s", key, value, clamped)
        return clamped
    return value


def _bool(section: dict, key: str, default: bool) -> bool:
    value = section.get(key, default)
    if isinstance(value, bool):
        return value
    logger.warning("config %s=%r is not a boolean, using %s", key, value, default)
    return default


def _layout(document: dict) -> LayoutConfig:
    section = _section(document, "layout")
    defaults = LayoutConfig()

    points = _section(section, "breakpoints")
    large = _int(points, "large", defaults.breakpoints.large)
    medium = _int(points, "medium", defaults.breakpoints.medium)
    if medium >= large:
        logger.warning("breakpoints medium=%s >= large=%s, using defaults", medium, large)
        large, medium = defaults.breakpoints.large, defaults.breakpoints.medium

    large_ratios = _section(section, "large")
    nav_ratio = _float(large_ratios, "nav_ratio", defaults.large_nav_ratio, 0.05, 0.9)
    status_ratio = _float(large_ratios, "status_ratio", defaults.large_status_ratio, 0.05, 0.9)
    if nav_ratio + status_ratio > 0.9:
        logger.warning("large layout ratios leave no room for the main panel, using defaults")
        nav_ratio, status_ratio = defaults.large_nav_ratio, defaults.large_status_ratio

    medium_ratios = _section(section, "medium")
    return LayoutConfig(
        breakpoints=Breakpoints(large=large, medium=medium),
        large_nav_ratio=nav_ratio,
        large_status_ratio=status_ratio,
        medium_nav_ratio=_float(medium_ratios, "nav_ratio", defaults.medium_nav_ratio, 0.05, 0.9),
        main_split=_float(section, "main_split", defaults.main_split, 0.1, 0.9),
        header_height=_int(section, "header_height", defaults.header_height),
        footer_height=_int(section, "footer_height", defaults.footer_height),
        tab_height=_int(section, "tab_height", defaults.tab_height),
        min_body_height=_int(section, "min_body_height", defaults.min_body_height, minimum=2),
        min_width=_int(section, "min_width", defaults.min_width, minimum=10),
    )


def _theme(document: dict) -> ThemeConfig:
    section = _section(document, "theme")
    defaults = ThemeConfig()

    box_name = str(section.get("box", defaults.box)).lower()
    if box_name not in BOX_STYLES:
        logger.warning("unknown box style %r, using %s", box_name, defaults.box)
        box_name = defaults.box

    colors = dict(DEFAULT_COLORS)
    colors.update({str(k): str(v) for k, v in _section(section, "colors").items()})

    symbols = _section(section, "symbols")
    status_symbols = dict(DEFAULT_STATUS_SYMBOLS)
    for status, glyph in _section(symbols, "status").items():
        if status in status_symbols and isinstance(glyph, str) and glyph:
            status_symbols[status] = glyph

    spinner = symbols.get("spinner", defaults.spinner)
    if not isinstance(spinner, (list, tuple)) or not spinner or not all(isinstance(s, str) and s for s in spinner):
        logger.warning("spinner must be a non-empty list of strings, using default")
        spinner = defaults.spinner

    cursor = symbols.get("cursor", defaults.cursor)
    if not isinstance(cursor, str) or not cursor:
        cursor = defaults.cursor

    return ThemeConfig(
        box=box_name,
        color=_bool(section, "color", defaults.color),
        colors=colors,
        status_symbols=status_symbols,
        spinner=tuple(spinner),
        cursor=cursor,
    )


def _keymap(document: dict) -> dict[str, list[str]]:
    keymap = copy.deepcopy(DEFAULT_KEYMAP)
    for action, keys in _section(document, "keymap").items():
        if isinstance(keys, str):
            keys = [keys]
        if not isinstance(keys, list) or not keys:
            logger.warning("keymap %r must list at least one key", action)
            continue
        keymap[action] = [str(k) for k in keys]
    return keymap


def build_config(document: dict, name: str = "default") -> UIConfig:
    components = _section(document, "components")
    workflow_list = _section(components, "workflow_list")
    tool_table = _section(components, "tool_table")
    log_viewport = _section(components, "log_viewport")
    bridge = _section(document, "bridge")
    refresh = _section(document, "refresh")

    overflow = str(bridge.get("overflow", DROP_OLDEST))
    if overflow not in OVERFLOW_POLICIES:
        logger.warning("unknown overflow policy %r, using drop_oldest", overflow)
        overflow = DROP_OLDEST

    return UIConfig(
        name=name,
        layout=_layout(document),
        theme=_theme(document),
        workflow_list=WorkflowListConfig(
            max_items=_int(workflow_list, "max_items", 100),
            item_height=min(2, _int(workflow_list, "item_height", 1)),
        ),
        tool_table=ToolTableConfig(
            recent_limit=_int(tool_table, "recent_limit", 50),
            show_args=_bool(tool_table, "show_args", False),
        ),
        log_viewport=LogViewportConfig(
            max_entries=_int(log_viewport, "max_entries", 1000),
            show_timestamps=_bool(log_viewport, "show_timestamps", True),
            show_levels=_bool(log_viewport, "show_levels", True),
            auto_scroll=_bool(log_viewport, "auto_scroll", True),
        ),
        bridge=BridgeConfig(capacity=_int(bridge, "capacity", 4096), overflow=overflow),
        refresh=RefreshConfig(
            tick_seconds=_float(refresh, "tick_seconds", 0.1, 0.01, 10.0),
            metrics_seconds=_float(refresh, "metrics_seconds", 2.0, 0.1, 3600.0),
        ),
        keymap=_keymap(document),
    )
