"""Widget base class and panel rendering helpers."""

from __future__ import annotations

from rich import box
from rich.console import RenderableType
from rich.panel import Panel
from rich.text import Text

from ipcrawler_tui.profiles import ThemeConfig, UIConfig

BOXES = {
    "rounded": box.ROUNDED,
    "square": box.SQUARE,
    "heavy": box.HEAVY,
    "double": box.DOUBLE,
    "ascii": box.ASCII,
}

# Panel border plus one column of horizontal padding on each side.
CHROME_WIDTH = 4
CHROME_HEIGHT = 2


def box_for(theme: ThemeConfig) -> box.Box:
    return BOXES.get(theme.box, box.ROUNDED)


def frame_panel(
    renderable: RenderableType,
    title: str,
    theme: ThemeConfig,
    focused: bool = False,
    subtitle: str | None = None,
) -> Panel:
    border = theme.style("focus" if focused else "border")
    title_style = theme.style("focus") if focused else theme.style("title")
    return Panel(
        renderable,
        title=Text(title, style=title_style),
        title_align="left",
        subtitle=Text(subtitle, style=theme.style("muted")) if subtitle else None,
        subtitle_align="right",
        border_style=border,
        box=box_for(theme),
        padding=(0, 1),
    )


def muted_text(message: str, theme: ThemeConfig) -> Text:
    return Text(message, style=theme.style("muted"), no_wrap=True, overflow="ellipsis")


def status_glyph(status: str, theme: ThemeConfig) -> Text:
    return Text(theme.glyph(status), style=theme.style(status))


class Widget:
    """Common state for the four dashboard panels.

    ``resize`` is idempotent, ``handle_key`` returns the widget that should
    own focus afterwards (normally ``self``) and ``ingest`` is called once
    per domain event routed to the widget. ``dirty`` tells the dashboard a
    cached render is stale.
    """

    title = "Widget"
    cacheable = True

    def __init__(self, config: UIConfig):
        self.config = config
        self.theme = config.theme
        self.width = 0
        self.height = 0
        self.dirty = True

    @property
    def inner_width(self) -> int:
        return max(1, self.width - CHROME_WIDTH)

    @property
    def inner_height(self) -> int:
        return max(1, self.height - CHROME_HEIGHT)

    def resize(self, width: int, height: int) -> None:
        width = max(1, int(width))
        height = max(1, int(height))
        if (width, height) == (self.width, self.height):
            return
        self.width = width
        self.height = height
        self.dirty = True
        self.on_resize()

    def on_resize(self) -> None:
        pass

    def handle_key(self, key: str) -> "Widget":
        return self

    def ingest(self, event, store) -> None:
        self.dirty = True

    def render(self, store, focused: bool = False) -> RenderableType:
        raise NotImplementedError
