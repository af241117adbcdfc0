"""Offscreen frame composition.

Widgets produce rich renderables. ``FrameRenderer`` turns each one into a
block of exactly ``height`` lines of exactly ``width`` cells, blocks are
joined side by side or stacked, and the final block becomes one string.
"""

from __future__ import annotations

import io

from rich.color import ColorSystem
from rich.console import Console, RenderableType
from rich.segment import Segment

Line = list[Segment]
Block = list[Line]

COLOR_SYSTEMS = {
    "standard": ColorSystem.STANDARD,
    "256": ColorSystem.EIGHT_BIT,
    "truecolor": ColorSystem.TRUECOLOR,
    "windows": ColorSystem.WINDOWS,
}


def make_console(width: int = 80, height: int = 24) -> Console:
    return Console(
        file=io.StringIO(),
        width=width,
        height=height,
        color_system=None,
        force_terminal=False,
        legacy_windows=False,
        emoji=False,
        highlight=False,
    )


class FrameRenderer:
    def __init__(self, color_system: str | None = None):
        self.console = make_console()
        self.color_system = COLOR_SYSTEMS.get(color_system) if color_system else None

    def render_block(self, renderable: RenderableType, width: int, height: int) -> Block:
        width = max(1, width)
        height = max(1, height)
        options = self.console.options.update_dimensions(width, height)
        lines = self.console.render_lines(renderable, options, pad=True)
        return Segment.set_shape(lines, width, height)

    def to_string(self, block: Block) -> str:
        return "\n".join(self._line_text(line) for line in block)

    def _line_text(self, line: Line) -> str:
        if self.color_system is None:
            return "".join(text for text, _style, control in line if not control)
        parts = []
        for text, style, control in line:
            if control:
                continue
            if style:
                parts.append(style.render(text, color_system=self.color_system))
            else:
                parts.append(text)
        return "".join(parts)


def join_horizontal(blocks: list[Block]) -> Block:
    height = min(len(block) for block in blocks)
    return [[segment for block in blocks for segment in block[row]] for row in range(height)]


def join_vertical(blocks: list[Block]) -> Block:
    return [line for block in blocks for line in block]
