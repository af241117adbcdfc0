"""Root state machine for the scan dashboard.

One ``Dashboard`` owns every piece of screen state. Events are applied one
at a time through ``update`` and ``render`` derives the whole frame from
the resulting state, so the same event sequence always yields the same
frames.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Callable

from ipcrawler_tui.events import (
    DOMAIN_EVENTS,
    Event,
    Key,
    LogAppended,
    MetricsUpdated,
    Quit,
    Resize,
    Tick,
    ToolFinished,
    ToolStarted,
    WorkflowStarted,
    WorkflowUpdated,
)
from ipcrawler_tui.keys import normalize_key, resolve_keymap
from ipcrawler_tui.layout import TOO_SMALL, LayoutMode, Rect, classify, compute_geometry, minimum_size
from ipcrawler_tui.panels import Widget
from ipcrawler_tui.panels.header import render_header, render_help, render_tab_bar, render_too_small
from ipcrawler_tui.panels.logs import LogViewport
from ipcrawler_tui.panels.status import StatusReadout
from ipcrawler_tui.panels.tools import ToolTable
from ipcrawler_tui.panels.workflows import WorkflowList
from ipcrawler_tui.profiles import UIConfig
from ipcrawler_tui.render import Block, FrameRenderer, join_horizontal, join_vertical
from ipcrawler_tui.store import RecordStore

logger = logging.getLogger(__name__)

PLACEHOLDER = "\n  Initializing..."
GEOMETRY_CACHE_SIZE = 32


class Phase(Enum):
    NOT_READY = "not_ready"
    READY = "ready"
    QUITTING = "quitting"


class Focus(Enum):
    LIST = "workflows"
    TABLE = "tools"
    VIEWPORT = "logs"
    STATUS = "status"


FOCUS_RING = (Focus.LIST, Focus.TABLE, Focus.VIEWPORT, Focus.STATUS)

TAB_NAMES = {
    Focus.LIST: "Workflows",
    Focus.TABLE: "Tools",
    Focus.VIEWPORT: "Logs",
    Focus.STATUS: "Status",
}

# Region each widget occupies per layout mode. Small mode shows only the
# focused widget in the body region.
WIDGET_REGIONS = {
    LayoutMode.LARGE: {
        Focus.LIST: "nav",
        Focus.TABLE: "table",
        Focus.VIEWPORT: "logs",
        Focus.STATUS: "status",
    },
    LayoutMode.MEDIUM: {
        Focus.LIST: "nav",
        Focus.TABLE: "table",
        Focus.VIEWPORT: "logs",
        Focus.STATUS: "footer",
    },
    LayoutMode.SMALL: {
        Focus.LIST: "body",
        Focus.TABLE: "body",
        Focus.VIEWPORT: "body",
        Focus.STATUS: "body",
    },
}

EVENT_TARGETS = {
    WorkflowStarted: (Focus.LIST,),
    WorkflowUpdated: (Focus.LIST,),
    ToolStarted: (Focus.TABLE,),
    ToolFinished: (Focus.TABLE,),
    LogAppended: (Focus.VIEWPORT,),
    MetricsUpdated: (Focus.STATUS,),
}


class Dashboard:
    def __init__(
        self,
        config: UIConfig | None = None,
        cancel: Callable[[], Any] | None = None,
        target: str = "",
        color_system: str | None = None,
    ):
        self.config = config or UIConfig()
        self.target = target
        self.store = RecordStore(max_log_entries=self.config.log_viewport.max_entries)
        self.widgets: dict[Focus, Widget] = {
            Focus.LIST: WorkflowList(self.config),
            Focus.TABLE: ToolTable(self.config),
            Focus.VIEWPORT: LogViewport(self.config),
            Focus.STATUS: StatusReadout(self.config),
        }
        self.keymap = resolve_keymap(self.config.keymap)
        self.phase = Phase.NOT_READY
        self.width = 0
        self.height = 0
        self.mode: LayoutMode | None = None
        self.focus = Focus.LIST
        self.show_help = False

        self._cancel = cancel
        self._cancel_invoked = False
        self._renderer = FrameRenderer(color_system)
        self._geometry_cache: dict[tuple[int, int, LayoutMode], dict[str, Rect]] = {}
        self._block_cache: dict[Focus, tuple[tuple[int, int, bool], Block]] = {}
        self._last_frame = PLACEHOLDER

        self._handlers = {
            Resize: self._on_resize,
            Key: self._on_key,
            Tick: self._on_tick,
            Quit: self._on_quit,
            **{event_type: self._on_domain for event_type in DOMAIN_EVENTS},
        }
        self._actions = {
            "quit": lambda: self._quit("quit key"),
            "help": self._toggle_help,
            "back": self._close_help,
            "next_panel": lambda: self._cycle_focus(1),
            "prev_panel": lambda: self._cycle_focus(-1),
            "focus_1": lambda: self._set_focus(0),
            "focus_2": lambda: self._set_focus(1),
            "focus_3": lambda: self._set_focus(2),
            "focus_4": lambda: self._set_focus(3),
        }

    @property
    def ready(self) -> bool:
        return self.phase is Phase.READY

    @property
    def quitting(self) -> bool:
        return self.phase is Phase.QUITTING

    def update(self, event: Event) -> "Dashboard":
        if self.phase is Phase.QUITTING:
            return self
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.debug("ignoring unsupported event %r", event)
            return self
        handler(event)
        return self

    def set_dropped(self, count: int) -> None:
        status = self.widgets[Focus.STATUS]
        if isinstance(status, StatusReadout):
            status.dropped = count

    def cancel(self) -> None:
        """Invoke the cancellation handle, at most once per session."""
        if self._cancel_invoked or self._cancel is None:
            return
        self._cancel_invoked = True
        logger.info("cancelling running scans")
        try:
            self._cancel()
        except Exception:
            logger.exception("cancellation handle failed")

    # -- transitions -------------------------------------------------

    def _on_resize(self, event: Resize) -> None:
        width = max(1, int(event.width))
        height = max(1, int(event.height))
        if self.phase is Phase.READY and (width, height) == (self.width, self.height):
            return
        self.width = width
        self.height = height
        mode = classify(width, self.config.layout.breakpoints)
        if mode != self.mode:
            logger.debug("layout mode %s -> %s at %sx%s", self.mode, mode.value, width, height)
        self.mode = mode
        self.phase = Phase.READY
        self._resize_widgets()

    def _resize_widgets(self) -> None:
        geometry = self._geometry()
        if TOO_SMALL in geometry:
            return
        regions = WIDGET_REGIONS[self.mode]
        for focus, widget in self.widgets.items():
            rect = geometry[regions[focus]]
            widget.resize(rect.width, rect.height)

    def _on_key(self, event: Key) -> None:
        key = normalize_key(event.key)
        action = self.keymap.get(key)
        if action == "quit":
            self._quit("quit key")
            return
        if self.phase is not Phase.READY:
            return
        if action is not None:
            self._actions[action]()
            return
        widget = self.widgets[self.focus]
        replacement = widget.handle_key(key)
        if replacement is not widget:
            replacement.dirty = True
            self.widgets[self.focus] = replacement

    def _on_tick(self, event: Tick) -> None:
        self.widgets[Focus.STATUS].ingest(event, self.store)

    def _on_quit(self, event: Quit) -> None:
        self._quit(event.reason or "cancelled")

    def _on_domain(self, event) -> None:
        self.store.apply(event)
        for focus in EVENT_TARGETS[type(event)]:
            self.widgets[focus].ingest(event, self.store)

    def _quit(self, reason: str) -> None:
        if self.phase is Phase.QUITTING:
            return
        logger.info("dashboard quitting: %s", reason)
        self.cancel()
        self.phase = Phase.QUITTING

    def _toggle_help(self) -> None:
        self.show_help = not self.show_help

    def _close_help(self) -> None:
        self.show_help = False

    def _set_focus(self, index: int) -> None:
        self.focus = FOCUS_RING[index % len(FOCUS_RING)]

    def _cycle_focus(self, step: int) -> None:
        self._set_focus(FOCUS_RING.index(self.focus) + step)

    # -- rendering ---------------------------------------------------

    def _geometry(self) -> dict[str, Rect]:
        key = (self.width, self.height, self.mode)
        geometry = self._geometry_cache.get(key)
        if geometry is None:
            if len(self._geometry_cache) >= GEOMETRY_CACHE_SIZE:
                self._geometry_cache.clear()
            geometry = compute_geometry(self.mode, self.width, self.height, self.config.layout)
            self._geometry_cache[key] = geometry
        return geometry

    def _widget_block(self, focus: Focus, rect: Rect) -> Block:
        widget = self.widgets[focus]
        focused = focus is self.focus
        key = (rect.width, rect.height, focused)
        cached = self._block_cache.get(focus)
        if widget.cacheable and not widget.dirty and cached is not None and cached[0] == key:
            return cached[1]
        block = self._renderer.render_block(widget.render(self.store, focused), rect.width, rect.height)
        widget.dirty = False
        if widget.cacheable:
            self._block_cache[focus] = (key, block)
        return block

    def _header_block(self, rect: Rect) -> Block:
        header = render_header(
            self.config.theme,
            self.target,
            self.store.workflow_counts(),
            self.mode.value,
        )
        return self._renderer.render_block(header, rect.width, rect.height)

    def _help_block(self, rect: Rect) -> Block:
        return self._renderer.render_block(
            render_help(self.config.theme, self.config.keymap), rect.width, rect.height
        )

    def _main_column(self, geometry: dict[str, Rect]) -> Block:
        table = geometry["table"]
        logs = geometry["logs"]
        if self.show_help:
            return self._help_block(Rect(table.x, table.y, table.width, table.height + logs.height))
        return join_vertical([
            self._widget_block(Focus.TABLE, table),
            self._widget_block(Focus.VIEWPORT, logs),
        ])

    def _compose_large(self, geometry: dict[str, Rect]) -> Block:
        body = join_horizontal([
            self._widget_block(Focus.LIST, geometry["nav"]),
            self._main_column(geometry),
            self._widget_block(Focus.STATUS, geometry["status"]),
        ])
        return join_vertical([self._header_block(geometry["header"]), body])

    def _compose_medium(self, geometry: dict[str, Rect]) -> Block:
        body = join_horizontal([
            self._widget_block(Focus.LIST, geometry["nav"]),
            self._main_column(geometry),
        ])
        return join_vertical([
            self._header_block(geometry["header"]),
            body,
            self._widget_block(Focus.STATUS, geometry["footer"]),
        ])

    def _compose_small(self, geometry: dict[str, Rect]) -> Block:
        tabs = render_tab_bar(
            self.config.theme,
            [TAB_NAMES[focus] for focus in FOCUS_RING],
            FOCUS_RING.index(self.focus),
        )
        body = geometry["body"]
        if self.show_help:
            body_block = self._help_block(body)
        else:
            body_block = self._widget_block(self.focus, body)
        return join_vertical([
            self._header_block(geometry["header"]),
            self._renderer.render_block(tabs, geometry["tabs"].width, geometry["tabs"].height),
            body_block,
        ])

    COMPOSERS = {
        LayoutMode.LARGE: _compose_large,
        LayoutMode.MEDIUM: _compose_medium,
        LayoutMode.SMALL: _compose_small,
    }

    def render(self) -> str:
        if self.phase is Phase.NOT_READY:
            return PLACEHOLDER
        if self.phase is Phase.QUITTING:
            return self._last_frame

        geometry = self._geometry()
        if TOO_SMALL in geometry:
            rect = geometry[TOO_SMALL]
            notice = render_too_small(
                self.config.theme, self.width, self.height, minimum_size(self.config.layout, self.mode)
            )
            block = self._renderer.render_block(notice, rect.width, rect.height)
        else:
            block = self.COMPOSERS[self.mode](self, geometry)

        self._last_frame = self._renderer.to_string(block)
        return self._last_frame

    def snapshot(self) -> dict[str, Any]:
        payload = {
            "phase": self.phase.value,
            "width": self.width,
            "height": self.height,
            "layout_mode": self.mode.value if self.mode is not None else None,
            "focus": self.focus.value,
            "target": self.target,
        }
        payload.update(self.store.snapshot())
        return payload
