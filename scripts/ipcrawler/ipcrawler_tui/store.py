"""Record store owned by the dashboard.

Workflow and tool records are upserted by their stable keys, so repeated
events for the same id update one record in place. Log entries live in a
bounded ring buffer.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Any

from ipcrawler_tui.events import (
    LogAppended,
    MetricsUpdated,
    ToolFinished,
    ToolStarted,
    WorkflowStarted,
    WorkflowUpdated,
)
from ipcrawler_tui.formatting import (
    STATUSES,
    coerce_duration,
    coerce_progress,
    normalize_level,
    normalize_status,
    parse_timestamp,
    sanitize_text,
)
from ipcrawler_tui.models import LogEntry, SystemMetrics, ToolRecord, WorkflowRecord

logger = logging.getLogger(__name__)

UNKNOWN_ID = "unknown"


def _record_id(value: Any) -> str:
    return sanitize_text(value, limit=200) or UNKNOWN_ID


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = sanitize_text(value, limit=500)
    return text or None


def _args(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (str, bytes)):
        value = [value]
    try:
        return [sanitize_text(item, limit=200) for item in value]
    except TypeError:
        return [sanitize_text(value, limit=200)]


def _percent(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number:
        return None
    return min(100.0, max(0.0, number))


def _load(value: Any) -> tuple[float, ...] | None:
    if value is None:
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        value = (value,)
    try:
        return tuple(round(float(v), 2) for v in list(value)[:3])
    except (TypeError, ValueError):
        return None


class RecordStore:
    def __init__(self, max_log_entries: int = 1000):
        self.workflows: dict[str, WorkflowRecord] = {}
        self.tools: dict[tuple[str, str], ToolRecord] = {}
        self.logs: deque[LogEntry] = deque(maxlen=max(1, int(max_log_entries)))
        self.metrics: SystemMetrics | None = None
        self._seq = 0
        self._appliers = {
            WorkflowStarted: self._apply_workflow_started,
            WorkflowUpdated: self._apply_workflow_updated,
            ToolStarted: self._apply_tool_started,
            ToolFinished: self._apply_tool_finished,
            LogAppended: self._apply_log,
            MetricsUpdated: self._apply_metrics,
        }

    def apply(self, event) -> Any:
        applier = self._appliers.get(type(event))
        if applier is None:
            logger.debug("store ignoring %s", type(event).__name__)
            return None
        return applier(event)

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    def upsert_workflow(self, workflow_id: Any) -> WorkflowRecord:
        key = _record_id(workflow_id)
        record = self.workflows.get(key)
        if record is None:
            record = WorkflowRecord(id=key, seq=self._next_seq())
            self.workflows[key] = record
        return record

    def upsert_tool(self, name: Any, workflow_id: Any) -> ToolRecord:
        key = (_record_id(name), sanitize_text(workflow_id, limit=200))
        record = self.tools.get(key)
        if record is None:
            record = ToolRecord(name=key[0], workflow_id=key[1], seq=self._next_seq())
            self.tools[key] = record
        return record

    def _apply_workflow_started(self, event: WorkflowStarted) -> WorkflowRecord:
        record = self.upsert_workflow(event.workflow_id)
        description = sanitize_text(event.description, limit=200)
        if description:
            record.description = description
        record.status = "running"
        record.error = None
        started = parse_timestamp(event.started_at)
        if started is not None:
            record.started_at = started
        if event.meta:
            record.meta.update(event.meta)
        return record

    def _apply_workflow_updated(self, event: WorkflowUpdated) -> WorkflowRecord:
        record = self.upsert_workflow(event.workflow_id)
        if event.status is not None:
            record.status = normalize_status(event.status)
        description = sanitize_text(event.description, limit=200)
        if description:
            record.description = description
        duration = coerce_duration(event.duration)
        if duration is not None:
            record.duration = duration
        progress = coerce_progress(event.progress)
        if progress is not None:
            record.progress = progress
        elif record.status == "completed":
            record.progress = 1.0
        error = _optional_text(event.error)
        if error is not None:
            record.error = error
        if event.meta:
            record.meta.update(event.meta)
        return record

    def _apply_tool_started(self, event: ToolStarted) -> ToolRecord:
        record = self.upsert_tool(event.name, event.workflow_id)
        record.status = "running"
        record.duration = None
        record.error = None
        record.output = ""
        args = _args(event.args)
        if args:
            record.args = args
        return record

    def _apply_tool_finished(self, event: ToolFinished) -> ToolRecord:
        record = self.upsert_tool(event.name, event.workflow_id)
        record.status = normalize_status(event.status)
        if record.status in ("pending", "running"):
            # a finish event always settles the row
            record.status = "failed" if event.error else "completed"
        record.duration = coerce_duration(event.duration)
        record.output = sanitize_text(event.output, limit=500)
        record.error = _optional_text(event.error)
        if event.args is not None:
            record.args = _args(event.args)
        return record

    def _apply_log(self, event: LogAppended) -> LogEntry:
        entry = LogEntry(
            timestamp=parse_timestamp(event.timestamp),
            level=normalize_level(event.level),
            category=sanitize_text(event.category, limit=40),
            message=sanitize_text(event.message, limit=2000),
            fields=dict(event.fields or {}),
        )
        self.logs.append(entry)
        return entry

    def _apply_metrics(self, event: MetricsUpdated) -> SystemMetrics:
        self.metrics = SystemMetrics(
            cpu_percent=_percent(event.cpu_percent),
            memory_percent=_percent(event.memory_percent),
            disk_percent=_percent(event.disk_percent),
            load=_load(event.load),
        )
        return self.metrics

    def workflow_view(self, limit: int) -> list[WorkflowRecord]:
        records = list(self.workflows.values())
        if limit > 0:
            return records[-limit:]
        return records

    def recent_tools(self, limit: int) -> list[ToolRecord]:
        records = list(self.tools.values())
        if limit > 0:
            return records[-limit:]
        return records

    def workflow_counts(self) -> dict[str, int]:
        return _count(self.workflows.values())

    def tool_counts(self) -> dict[str, int]:
        return _count(self.tools.values())

    def any_running(self) -> bool:
        return any(r.status == "running" for r in self.workflows.values()) or any(
            r.status == "running" for r in self.tools.values()
        )

    def snapshot(self, log_limit: int = 50) -> dict[str, Any]:
        return {
            "counts": {
                "workflows": self.workflow_counts(),
                "tools": self.tool_counts(),
                "logs": len(self.logs),
            },
            "workflows": [r.to_dict() for r in self.workflows.values()],
            "tools": [r.to_dict() for r in self.tools.values()],
            "logs": [e.to_dict() for e in list(self.logs)[-log_limit:]],
            "metrics": self.metrics.to_dict() if self.metrics is not None else None,
        }


def _count(records) -> dict[str, int]:
    counts = {status: 0 for status in STATUSES}
    for record in records:
        counts[record.status] = counts.get(record.status, 0) + 1
    return counts
