"""Record types shown by the dashboard widgets."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


@dataclass
class WorkflowRecord:
    id: str
    description: str = ""
    status: str = "pending"
    started_at: datetime | None = None
    duration: float | None = None
    progress: float | None = None
    error: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)
    seq: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "description": self.description,
            "status": self.status,
            "started_at": _iso(self.started_at),
            "duration": self.duration,
            "progress": self.progress,
            "error": self.error,
            "meta": self.meta,
        }


@dataclass
class ToolRecord:
    name: str
    workflow_id: str
    status: str = "pending"
    duration: float | None = None
    args: list[str] = field(default_factory=list)
    output: str = ""
    error: str | None = None
    seq: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "workflow_id": self.workflow_id,
            "status": self.status,
            "duration": self.duration,
            "args": self.args,
            "output": self.output,
            "error": self.error,
        }


@dataclass
class LogEntry:
    timestamp: datetime | None
    level: str
    category: str
    message: str
    fields: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": _iso(self.timestamp),
            "level": self.level,
            "category": self.category,
            "message": self.message,
            "fields": self.fields,
        }


@dataclass
class SystemMetrics:
    cpu_percent: float | None = None
    memory_percent: float | None = None
    disk_percent: float | None = None
    load: tuple[float, ...] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "cpu_percent": self.cpu_percent,
            "memory_percent": self.memory_percent,
            "disk_percent": self.disk_percent,
            "load": list(self.load) if self.load is not None else None,
        }
