"""Demo scan workflows for exercising the dashboard without real tools.

Each workflow runs in its own thread and reports through a ``ScanMonitor``
exactly as the scan engine would. Durations are drawn from a seeded RNG per
workflow, so a given seed always produces the same per-workflow results;
``speed`` scales how long the simulator actually sleeps (0 runs instantly).
"""

from __future__ import annotations

import logging
import random
import threading
from dataclasses import dataclass

from ipcrawler_tui.producers.monitor import ScanMonitor

logger = logging.getLogger(__name__)

PROGRESS_STEPS = 10
OUTPUT_CHANCE = 0.7


@dataclass(frozen=True)
class SimulatedTool:
    name: str
    min_duration: float
    max_duration: float
    failure_rate: float
    output_lines: tuple[str, ...] = ()


@dataclass(frozen=True)
class SimulatedWorkflow:
    id: str
    description: str
    tools: tuple[SimulatedTool, ...]
    failure_rate: float = 0.0


DIG = SimulatedTool("dig", 1.0, 5.0, 0.05, (
    "Querying DNS servers...",
    "Found A record: 1.2.3.4",
    "Found MX record: mail.example.com",
    "Found NS record: ns1.example.com",
    "DNS lookup completed",
))
SUBFINDER = SimulatedTool("subfinder", 5.0, 15.0, 0.1, (
    "Starting subdomain discovery...",
    "Found subdomain: www.example.com",
    "Found subdomain: api.example.com",
    "Found subdomain: mail.example.com",
    "Found subdomain: cdn.example.com",
    "Subdomain discovery completed",
))
NAABU = SimulatedTool("naabu", 10.0, 30.0, 0.08, (
    "Starting port scan...",
    "Open port found: 80/tcp",
    "Open port found: 443/tcp",
    "Open port found: 22/tcp",
    "Port scan completed",
))
NMAP = SimulatedTool("nmap", 15.0, 45.0, 0.12, (
    "Starting service detection...",
    "Service on 80/tcp: HTTP",
    "Service on 443/tcp: HTTPS",
    "Service on 22/tcp: SSH",
    "Service detection completed",
))
VHOST = SimulatedTool("vhost-discovery", 8.0, 25.0, 0.15, (
    "Starting virtual host discovery...",
    "Testing virtual hosts...",
    "Found vhost: admin.example.com",
    "Found vhost: staging.example.com",
    "Virtual host discovery completed",
))

DEFAULT_WORKFLOWS = (
    SimulatedWorkflow("dns_discovery", "DNS enumeration and subdomain discovery", (DIG, SUBFINDER), 0.1),
    SimulatedWorkflow("port_scan", "Network port scanning and service detection", (NAABU, NMAP), 0.05),
    SimulatedWorkflow("vhost_discovery", "Virtual host enumeration and analysis", (VHOST,), 0.15),
)

QUICK_WORKFLOWS = (
    SimulatedWorkflow("quick_scan", "Fast demonstration scan", (
        SimulatedTool("ping", 0.5, 1.0, 0.0, ("Pinging target...", "Target is reachable")),
        SimulatedTool("dns-check", 1.0, 2.0, 0.05, ("Checking DNS...", "DNS resolved successfully")),
    )),
    SimulatedWorkflow("demo_scan", "Demonstration workflow with simulated failures", (
        SimulatedTool("port-scan", 2.0, 4.0, 0.3, ("Scanning ports...", "Found open ports")),
    ), 0.2),
)


class ScanSimulator:
    def __init__(
        self,
        monitor: ScanMonitor,
        workflows: tuple[SimulatedWorkflow, ...] = DEFAULT_WORKFLOWS,
        seed: int | None = None,
        speed: float = 1.0,
    ):
        self.monitor = monitor
        self.workflows = workflows
        self.seed = seed
        self.speed = max(0.0, speed)
        self.cancelled = threading.Event()
        self.threads: list[threading.Thread] = []

    def start(self) -> None:
        for index, workflow in enumerate(self.workflows):
            seed = None if self.seed is None else self.seed + index
            thread = threading.Thread(
                target=self.run_workflow,
                args=(workflow, random.Random(seed)),
                name=f"sim-{workflow.id}",
                daemon=True,
            )
            self.threads.append(thread)
            thread.start()

    def cancel(self) -> None:
        if not self.cancelled.is_set():
            logger.info("simulation cancelled")
        self.cancelled.set()

    def join(self, timeout: float | None = None) -> None:
        for thread in self.threads:
            thread.join(timeout)

    @property
    def done(self) -> bool:
        return all(not thread.is_alive() for thread in self.threads)

    def _wait(self, seconds: float) -> bool:
        """Sleep for simulated ``seconds``; False when cancelled meanwhile."""
        if self.speed == 0:
            return not self.cancelled.is_set()
        return not self.cancelled.wait(seconds * self.speed)

    def run_workflow(self, workflow: SimulatedWorkflow, rng: random.Random) -> None:
        monitor = self.monitor
        monitor.record_workflow_start(workflow.id, workflow.description)
        elapsed = 0.0
        total = len(workflow.tools)

        for index, tool in enumerate(workflow.tools):
            monitor.record_workflow_progress(workflow.id, index / total)
            ok, duration = self.run_tool(tool, workflow.id, rng)
            elapsed += duration
            if self.cancelled.is_set():
                monitor.record_workflow_complete(workflow.id, elapsed, error="cancelled")
                return
            if not ok and rng.random() < workflow.failure_rate:
                monitor.record_workflow_complete(
                    workflow.id, elapsed, error=f"workflow failed at tool: {tool.name}"
                )
                return
            monitor.record_step_execution(workflow.id, tool.name, "tool", duration)

        monitor.record_workflow_complete(workflow.id, elapsed)

    def run_tool(self, tool: SimulatedTool, workflow_id: str, rng: random.Random) -> tuple[bool, float]:
        monitor = self.monitor
        args = [monitor.target] if monitor.target else []
        duration = round(rng.uniform(tool.min_duration, tool.max_duration), 3)
        monitor.record_tool_start(tool.name, workflow_id, args)

        output_index = 0
        for step in range(1, PROGRESS_STEPS + 1):
            if not self._wait(duration / PROGRESS_STEPS):
                spent = round(duration * (step - 1) / PROGRESS_STEPS, 3)
                monitor.record_tool_execution(tool.name, workflow_id, spent, error="cancelled", args=args)
                return False, spent
            if output_index < len(tool.output_lines) and rng.random() < OUTPUT_CHANCE:
                monitor.send_log("debug", f"{tool.name}: {tool.output_lines[output_index]}", category="tool")
                output_index += 1

        ok = rng.random() >= tool.failure_rate
        if ok:
            monitor.record_tool_execution(
                tool.name, workflow_id, duration, args=args, output=f"Tool {tool.name} completed successfully"
            )
        else:
            monitor.record_tool_execution(
                tool.name,
                workflow_id,
                duration,
                error="tool execution failed",
                args=args,
                output=f"Tool {tool.name} failed with error",
            )
        return ok, duration
