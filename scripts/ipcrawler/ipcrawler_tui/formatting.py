"""Shared text, status and duration helpers for dashboard widgets."""

from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from typing import Any

from rich.cells import cell_len, set_cell_size

STATUSES = ("pending", "running", "completed", "failed")

STATUS_ALIASES = {
    "pending": "pending",
    "queued": "pending",
    "waiting": "pending",
    "scheduled": "pending",
    "running": "running",
    "started": "running",
    "start": "running",
    "in_progress": "running",
    "active": "running",
    "completed": "completed",
    "complete": "completed",
    "done": "completed",
    "finished": "completed",
    "success": "completed",
    "succeeded": "completed",
    "ok": "completed",
    "failed": "failed",
    "fail": "failed",
    "failure": "failed",
    "error": "failed",
    "errored": "failed",
    "cancelled": "failed",
    "canceled": "failed",
    "timeout": "failed",
    "killed": "failed",
}

LEVEL_ALIASES = {
    "warn": "WARNING",
    "warning": "WARNING",
    "err": "ERROR",
    "error": "ERROR",
    "fatal": "CRITICAL",
    "critical": "CRITICAL",
    "debug": "DEBUG",
    "trace": "DEBUG",
    "info": "INFO",
}

TOKEN_LABELS = {
    "api": "API",
    "dns": "DNS",
    "http": "HTTP",
    "https": "HTTPS",
    "ip": "IP",
    "smb": "SMB",
    "ssh": "SSH",
    "ssl": "SSL",
    "tcp": "TCP",
    "tls": "TLS",
    "udp": "UDP",
    "url": "URL",
    "vhost": "VHost",
}

DELIMITER_RE = re.compile(r"[._/\-\s]+")
ANSI_RE = re.compile(r"\x1b\[[0-?]*[ -/]*[@-~]|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)|\x1b[@-Z\\-_]")
CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
LINEBREAK_RE = re.compile(r"[\r\n\t\v\f]+")


def normalize_status(value: Any) -> str:
    if value is None:
        return "pending"
    key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
    return STATUS_ALIASES.get(key, "pending")


def normalize_level(value: Any) -> str:
    if value is None:
        return "INFO"
    key = str(value).strip().lower()
    return LEVEL_ALIASES.get(key, key.upper() or "INFO")


def sanitize_text(value: Any, limit: int | None = None) -> str:
    """Collapse a payload into one printable line.

    Escape sequences are removed first so a stray colour code from tool
    output cannot leak into the frame, then line breaks become spaces and
    every remaining control character is dropped.
    """
    if value is None:
        return ""
    text = str(value)
    text = ANSI_RE.sub("", text)
    text = LINEBREAK_RE.sub(" ", text)
    text = CONTROL_RE.sub("", text)
    if limit is not None and len(text) > limit:
        text = text[:limit]
    return text.strip()


def coerce_duration(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)):
        seconds = float(value)
    else:
        try:
            seconds = float(str(value).strip().rstrip("s"))
        except ValueError:
            return None
    if math.isnan(seconds) or math.isinf(seconds):
        return None
    return max(0.0, seconds)


def coerce_progress(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        progress = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(progress):
        return None
    # Producers send either a 0..1 fraction or a percentage.
    if progress > 1.0:
        progress = progress / 100.0
    return min(1.0, max(0.0, progress))


def format_duration(seconds: float | None) -> str:
    if seconds is None:
        return "-"
    if seconds < 1:
        return f"{int(seconds * 1000)}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    return f"{seconds / 60:.1f}m"


def format_percent(value: float | None) -> str:
    if value is None:
        return "n/a"
    return f"{value:.0f}%"


def truncate(text: str, width: int, ellipsis: str = "…") -> str:
    if width <= 0:
        return ""
    if cell_len(text) <= width:
        return text
    if width <= cell_len(ellipsis):
        return set_cell_size(ellipsis, width)
    return set_cell_size(text, width - cell_len(ellipsis)) + ellipsis


def humanize_identifier(raw: str | None) -> str:
    if not raw:
        return "Unnamed"
    tokens = [t for t in DELIMITER_RE.split(str(raw).strip()) if t]
    if not tokens:
        return "Unnamed"

    parts: list[str] = []
    for token in tokens:
        lower = token.lower()
        if lower in TOKEN_LABELS:
            parts.append(TOKEN_LABELS[lower])
        elif token.isupper() or any(ch.isdigit() for ch in token):
            parts.append(token)
        else:
            parts.append(lower.capitalize())
    return " ".join(parts)


def workflow_label(workflow_id: str, description: str | None = None) -> str:
    text = sanitize_text(description)
    if text:
        return text
    return humanize_identifier(sanitize_text(workflow_id))


def format_fields(fields: dict[str, Any] | None, limit: int = 6) -> str:
    if not fields:
        return ""
    parts = []
    for key, value in list(fields.items())[:limit]:
        if value is None or value == "":
            continue
        if isinstance(value, (list, tuple)):
            value = ",".join(str(v) for v in value)
        parts.append(f"{sanitize_text(key)}={sanitize_text(value, limit=80)}")
    return " ".join(parts)


def format_clock(value: datetime | None) -> str:
    if value is None:
        return "--:--:--"
    return value.strftime("%H:%M:%S")


def parse_timestamp(value: Any) -> datetime | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(float(value), tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    text = str(value).strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed
