"""Workflow-engine facing adapter.

The scan engine reports progress through ``ScanMonitor``. Each call turns
into bridge events plus a matching log line, so the engine never needs to
know about dashboard state.
"""

from __future__ import annotations

from typing import Any, Sequence

from ipcrawler_tui.bridge import EventBridge
from ipcrawler_tui.formatting import format_duration

OUTPUT_SUMMARIES = {
    "naabu": "Found open ports",
    "nmap": "Service fingerprinting complete",
    "dig": "DNS records resolved",
    "nslookup": "Name lookup complete",
}


def output_summary(tool: str) -> str:
    return OUTPUT_SUMMARIES.get(tool, "Execution complete")


class ScanMonitor:
    def __init__(self, bridge: EventBridge, target: str = ""):
        self.bridge = bridge
        self.target = target

    def record_workflow_start(self, workflow_id: str, description: str = "") -> None:
        self.bridge.workflow_started(workflow_id, description or f"Workflow for {self.target}", target=self.target)
        self.bridge.log_appended(
            "info",
            f"Started workflow: {workflow_id}",
            category="workflow",
            workflow_id=workflow_id,
            target=self.target,
        )

    def record_workflow_progress(self, workflow_id: str, progress: float) -> None:
        self.bridge.workflow_updated(workflow_id, status="running", progress=progress)

    def record_workflow_complete(self, workflow_id: str, duration: float, error: Any = None) -> None:
        status = "failed" if error else "completed"
        self.bridge.workflow_updated(workflow_id, status=status, duration=duration, error=error)
        if error:
            self.bridge.log_appended(
                "error",
                f"Failed workflow: {workflow_id} after {format_duration(duration)} - {error}",
                category="workflow",
                workflow_id=workflow_id,
            )
        else:
            self.bridge.log_appended(
                "info",
                f"Completed workflow: {workflow_id} in {format_duration(duration)}",
                category="workflow",
                workflow_id=workflow_id,
            )

    def record_step_execution(
        self,
        workflow_id: str,
        step_id: str,
        step_type: str,
        duration: float,
        error: Any = None,
    ) -> None:
        if error:
            level = "warning"
            message = f"Step {workflow_id}/{step_id} failed after {format_duration(duration)} - {error}"
        else:
            level = "info"
            message = f"Step {workflow_id}/{step_id} completed in {format_duration(duration)}"
        self.bridge.log_appended(level, message, category="step", step_type=step_type)

    def record_tool_start(self, tool: str, workflow_id: str, args: Sequence[str] = ()) -> None:
        self.bridge.tool_started(tool, workflow_id, args=args)
        self.bridge.log_appended(
            "info",
            f"Starting {tool} with args: {' '.join(args)}",
            category="tool",
            workflow=workflow_id,
        )

    def record_tool_execution(
        self,
        tool: str,
        workflow_id: str,
        duration: float,
        error: Any = None,
        args: Sequence[str] | None = None,
        output: str | None = None,
    ) -> None:
        summary = output if output is not None else output_summary(tool)
        self.bridge.tool_finished(
            tool,
            workflow_id,
            status="failed" if error else "completed",
            duration=duration,
            output=summary,
            error=error,
            args=args,
        )
        if error:
            level = "warning"
            message = f"Tool {tool} failed after {format_duration(duration)} - {error}"
        else:
            level = "info"
            message = f"Tool {tool} executed in {format_duration(duration)}"
        if summary:
            message += f" - {summary}"
        self.bridge.log_appended(level, message, category="tool", workflow=workflow_id)

    def send_log(self, level: str, message: str, category: str = "engine", **fields: Any) -> None:
        self.bridge.log_appended(level, message, category=category, **fields)
