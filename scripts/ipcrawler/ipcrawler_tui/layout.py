"""Responsive layout: width classification and panel geometry.

Everything here is pure. Given the terminal size and a ``LayoutConfig`` the
functions return the same geometry every time, so the dashboard can cache
results per ``(width, height, mode)`` and tests can run without a renderer.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class LayoutMode(str, Enum):
    SMALL = "small"
    MEDIUM = "medium"
    LARGE = "large"


@dataclass(frozen=True)
class Breakpoints:
    large: int = 120
    medium: int = 80


@dataclass(frozen=True)
class LayoutConfig:
    breakpoints: Breakpoints = field(default_factory=Breakpoints)
    large_nav_ratio: float = 0.25
    large_status_ratio: float = 0.25
    medium_nav_ratio: float = 0.30
    main_split: float = 0.5
    header_height: int = 1
    footer_height: int = 3
    tab_height: int = 1
    min_body_height: int = 8
    min_width: int = 40


@dataclass(frozen=True)
class Rect:
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def overlaps(self, other: "Rect") -> bool:
        return (
            self.x < other.right
            and other.x < self.right
            and self.y < other.bottom
            and other.y < self.bottom
        )


TOO_SMALL = "too_small"

REGIONS = {
    LayoutMode.LARGE: ("header", "nav", "table", "logs", "status"),
    LayoutMode.MEDIUM: ("header", "nav", "table", "logs", "footer"),
    LayoutMode.SMALL: ("header", "tabs", "body"),
}


def classify(width: int, breakpoints: Breakpoints | None = None) -> LayoutMode:
    points = breakpoints or Breakpoints()
    if width >= points.large:
        return LayoutMode.LARGE
    if width >= points.medium:
        return LayoutMode.MEDIUM
    return LayoutMode.SMALL


def reserved_rows(mode: LayoutMode, config: LayoutConfig) -> int:
    header = max(1, config.header_height)
    if mode == LayoutMode.SMALL:
        return header + max(1, config.tab_height)
    if mode == LayoutMode.MEDIUM:
        return header + max(1, config.footer_height)
    return header


def minimum_size(config: LayoutConfig | None = None, mode: LayoutMode = LayoutMode.SMALL) -> tuple[int, int]:
    cfg = config or LayoutConfig()
    return _min_width(cfg), reserved_rows(mode, cfg) + _min_body(cfg)


def _min_width(config: LayoutConfig) -> int:
    return max(3, config.min_width)


def _min_body(config: LayoutConfig) -> int:
    return max(2, config.min_body_height)


def _columns(total: int, side_ratios: list[float]) -> tuple[list[int], int]:
    sides = [max(1, int(total * ratio)) for ratio in side_ratios]
    main = total - sum(sides)
    while main < 1:
        widest = sides.index(max(sides))
        sides[widest] -= 1
        main += 1
    return sides, main


def _split_main(height: int, ratio: float) -> tuple[int, int]:
    top = int(round(height * ratio))
    top = min(max(1, top), height - 1)
    return top, height - top


def compute_geometry(
    mode: LayoutMode,
    width: int,
    height: int,
    config: LayoutConfig | None = None,
) -> dict[str, Rect]:
    cfg = config or LayoutConfig()
    width = max(1, int(width))
    height = max(1, int(height))

    header_h = max(1, cfg.header_height)
    body_h = height - reserved_rows(mode, cfg)
    if width < _min_width(cfg) or body_h < _min_body(cfg):
        return {TOO_SMALL: Rect(0, 0, width, height)}

    header = Rect(0, 0, width, header_h)

    if mode == LayoutMode.SMALL:
        tab_h = max(1, cfg.tab_height)
        return {
            "header": header,
            "tabs": Rect(0, header_h, width, tab_h),
            "body": Rect(0, header_h + tab_h, width, body_h),
        }

    table_h, logs_h = _split_main(body_h, cfg.main_split)

    if mode == LayoutMode.MEDIUM:
        (nav_w,), main_w = _columns(width, [cfg.medium_nav_ratio])
        return {
            "header": header,
            "nav": Rect(0, header_h, nav_w, body_h),
            "table": Rect(nav_w, header_h, main_w, table_h),
            "logs": Rect(nav_w, header_h + table_h, main_w, logs_h),
            "footer": Rect(0, header_h + body_h, width, height - header_h - body_h),
        }

    (nav_w, status_w), main_w = _columns(width, [cfg.large_nav_ratio, cfg.large_status_ratio])
    return {
        "header": header,
        "nav": Rect(0, header_h, nav_w, body_h),
        "table": Rect(nav_w, header_h, main_w, table_h),
        "logs": Rect(nav_w, header_h + table_h, main_w, logs_h),
        "status": Rect(nav_w + main_w, header_h, status_w, body_h),
    }
