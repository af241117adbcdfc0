#!/usr/bin/env python3
"""Thin entrypoint for the ipcrawler scan dashboard."""

from __future__ import annotations

from ipcrawler_tui.app import main


if __name__ == "__main__":
    raise SystemExit(main())
