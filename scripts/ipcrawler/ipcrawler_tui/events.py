"""Event values delivered to the dashboard.

The set is closed: ``Dashboard.update`` keeps one handler per class below.
Payloads are stored as sent; normalisation happens when the record store
applies them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union


@dataclass(frozen=True)
class Resize:
    width: int
    height: int


@dataclass(frozen=True)
class Key:
    key: str


@dataclass(frozen=True)
class Tick:
    pass


@dataclass(frozen=True)
class Quit:
    reason: str = ""


@dataclass(frozen=True)
class WorkflowStarted:
    workflow_id: Any
    description: Any = ""
    started_at: Any = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class WorkflowUpdated:
    workflow_id: Any
    status: Any = None
    description: Any = None
    duration: Any = None
    progress: Any = None
    error: Any = None
    meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolStarted:
    name: Any
    workflow_id: Any = ""
    args: Any = ()


@dataclass(frozen=True)
class ToolFinished:
    name: Any
    workflow_id: Any = ""
    status: Any = "completed"
    duration: Any = None
    output: Any = ""
    error: Any = None
    args: Any = None


@dataclass(frozen=True)
class LogAppended:
    level: Any
    message: Any
    category: Any = ""
    timestamp: Any = None
    fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class MetricsUpdated:
    cpu_percent: Any = None
    memory_percent: Any = None
    disk_percent: Any = None
    load: Any = None


DOMAIN_EVENTS = (
    WorkflowStarted,
    WorkflowUpdated,
    ToolStarted,
    ToolFinished,
    LogAppended,
    MetricsUpdated,
)

Event = Union[
    Resize,
    Key,
    Tick,
    Quit,
    WorkflowStarted,
    WorkflowUpdated,
    ToolStarted,
    ToolFinished,
    LogAppended,
    MetricsUpdated,
]
