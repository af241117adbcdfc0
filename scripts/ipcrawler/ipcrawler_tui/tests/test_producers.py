from __future__ import annotations

import io
import json
import logging
import os
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from types import SimpleNamespace
from unittest import mock
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from ipcrawler_tui.app import main  # noqa: E402
from ipcrawler_tui.bridge import EventBridge  # noqa: E402
from ipcrawler_tui.events import (  # noqa: E402
    Key,
    LogAppended,
    MetricsUpdated,
    Quit,
    Resize,
    Tick,
    ToolFinished,
    ToolStarted,
    WorkflowStarted,
    WorkflowUpdated,
)
from ipcrawler_tui.logging_setup import BridgeLogHandler  # noqa: E402
from ipcrawler_tui.producers import metrics  # noqa: E402
from ipcrawler_tui.producers.metrics import MetricsSampler  # noqa: E402
from ipcrawler_tui.producers.monitor import ScanMonitor, output_summary  # noqa: E402
from ipcrawler_tui.producers.simulator import QUICK_WORKFLOWS, ScanSimulator  # noqa: E402
from ipcrawler_tui.producers.terminal import TerminalWatcher  # noqa: E402
from ipcrawler_tui.producers.ticker import Ticker  # noqa: E402
from ipcrawler_tui.store import RecordStore  # noqa: E402


class ScanMonitorTests(unittest.TestCase):
    def setUp(self):
        self.bridge = EventBridge()
        self.monitor = ScanMonitor(self.bridge, target="10.10.10.5")

    def test_workflow_start_emits_event_and_log(self):
        self.monitor.record_workflow_start("port_scan")
        started, log = self.bridge.drain()
        self.assertIsInstance(started, WorkflowStarted)
        self.assertEqual(started.description, "Workflow for 10.10.10.5")
        self.assertEqual(started.meta, {"target": "10.10.10.5"})
        self.assertIsInstance(log, LogAppended)
        self.assertEqual(log.message, "Started workflow: port_scan")

    def test_workflow_failure(self):
        self.monitor.record_workflow_complete("port_scan", 12.0, error="timeout")
        updated, log = self.bridge.drain()
        self.assertEqual(updated.status, "failed")
        self.assertEqual(updated.error, "timeout")
        self.assertEqual(log.level, "error")
        self.assertIn("timeout", log.message)

    def test_tool_execution_uses_summary(self):
        self.monitor.record_tool_start("naabu", "port_scan", ["-host", "10.10.10.5"])
        self.monitor.record_tool_execution("naabu", "port_scan", 2.5)
        started, start_log, finished, log = self.bridge.drain()
        self.assertIsInstance(started, ToolStarted)
        self.assertEqual(started.args, ("-host", "10.10.10.5"))
        self.assertIn("Starting naabu with args: -host 10.10.10.5", start_log.message)
        self.assertIsInstance(finished, ToolFinished)
        self.assertEqual(finished.status, "completed")
        self.assertEqual(finished.output, "Found open ports")
        self.assertEqual(log.message, "Tool naabu executed in 2.5s - Found open ports")

    def test_tool_failure(self):
        self.monitor.record_tool_execution("nmap", "port_scan", 1.0, error="exit 1", output="")
        finished, log = self.bridge.drain()
        self.assertEqual(finished.status, "failed")
        self.assertEqual(log.level, "warning")
        self.assertEqual(log.message, "Tool nmap failed after 1.0s - exit 1")

    def test_step_and_plain_logs(self):
        self.monitor.record_step_execution("port_scan", "scan", "tool", 0.5)
        self.monitor.send_log("debug", "raw output", category="tool", tool="nmap")
        step, raw = self.bridge.drain()
        self.assertEqual(step.message, "Step port_scan/scan completed in 500ms")
        self.assertEqual(raw.fields, {"tool": "nmap"})

    def test_output_summary_fallback(self):
        self.assertEqual(output_summary("dig"), "DNS records resolved")
        self.assertEqual(output_summary("custom"), "Execution complete")


def _run_simulation(seed: int, cancel_first: bool = False) -> RecordStore:
    bridge = EventBridge(capacity=100_000)
    simulator = ScanSimulator(ScanMonitor(bridge, "example.com"), workflows=QUICK_WORKFLOWS, seed=seed, speed=0)
    if cancel_first:
        simulator.cancel()
    simulator.start()
    simulator.join(10)
    store = RecordStore()
    for event in bridge.drain():
        store.apply(event)
    return store


class SimulatorTests(unittest.TestCase):
    def test_seeded_runs_are_reproducible(self):
        first = _run_simulation(3)
        second = _run_simulation(3)
        summary = lambda store: (  # noqa: E731
            {key: (r.status, r.duration, r.error) for key, r in store.workflows.items()},
            {key: (r.status, r.duration, r.error) for key, r in store.tools.items()},
        )
        self.assertEqual(summary(first), summary(second))
        self.assertEqual(set(first.workflows), {"quick_scan", "demo_scan"})
        for record in first.workflows.values():
            self.assertIn(record.status, ("completed", "failed"))

    def test_cancel_fails_every_workflow(self):
        store = _run_simulation(1, cancel_first=True)
        self.assertEqual(len(store.workflows), 2)
        for record in store.workflows.values():
            self.assertEqual(record.status, "failed")
            self.assertEqual(record.error, "cancelled")
        for record in store.tools.values():
            self.assertEqual(record.error, "cancelled")

    def test_done_after_join(self):
        bridge = EventBridge(capacity=100_000)
        simulator = ScanSimulator(ScanMonitor(bridge), workflows=QUICK_WORKFLOWS, seed=5, speed=0)
        simulator.start()
        simulator.join(10)
        self.assertTrue(simulator.done)


class MetricsTests(unittest.TestCase):
    def test_sample_reads_psutil(self):
        sampler = MetricsSampler(EventBridge(), disk_path="/data")
        with mock.patch.object(metrics.psutil, "cpu_percent", return_value=42.26), \
                mock.patch.object(metrics.psutil, "virtual_memory", return_value=SimpleNamespace(percent=75.0)), \
                mock.patch.object(metrics.psutil, "disk_usage", return_value=SimpleNamespace(percent=50.04)) as disk, \
                mock.patch.object(metrics.psutil, "getloadavg", return_value=(0.5, 0.25, 0.1)):
            first = sampler.sample()
            second = sampler.sample()
        self.assertIsNone(first["cpu_percent"])
        self.assertEqual(second["cpu_percent"], 42.3)
        self.assertEqual(second["memory_percent"], 75.0)
        self.assertEqual(second["disk_percent"], 50.0)
        self.assertEqual(second["load"], (0.5, 0.25, 0.1))
        disk.assert_called_with("/data")

    def test_unavailable_sources_are_none(self):
        with mock.patch.object(metrics.psutil, "disk_usage", side_effect=FileNotFoundError("/missing")), \
                mock.patch.object(metrics.psutil, "getloadavg", side_effect=OSError("no loadavg")):
            self.assertIsNone(metrics.read_disk_percent("/missing"))
            self.assertIsNone(metrics.read_loadavg())

    def test_poll_skips_when_nothing_available(self):
        bridge = EventBridge()
        sampler = MetricsSampler(bridge)
        sampler.sample = lambda: {"cpu_percent": None, "memory_percent": None, "disk_percent": None, "load": None}
        sampler.poll()
        self.assertEqual(len(bridge), 0)
        sampler.sample = lambda: {"cpu_percent": 5.0, "memory_percent": None, "disk_percent": 50.0, "load": None}
        sampler.poll()
        (event,) = bridge.drain()
        self.assertIsInstance(event, MetricsUpdated)
        self.assertEqual(event.cpu_percent, 5.0)


class TickerTests(unittest.TestCase):
    def test_poll_sends_tick(self):
        bridge = EventBridge()
        Ticker(bridge).poll()
        self.assertIsInstance(bridge.get(timeout=0), Tick)

    def test_stops_when_bridge_closes(self):
        bridge = EventBridge()
        ticker = Ticker(bridge, interval=0.01)
        ticker.start()
        bridge.close()
        ticker.join(2)
        self.assertFalse(ticker.is_alive())


class TerminalWatcherTests(unittest.TestCase):
    def setUp(self):
        self.read_fd, self.write_fd = os.pipe()
        self.sizes = [(100, 30)]
        self.bridge = EventBridge()
        self.watcher = TerminalWatcher(self.bridge, fd=self.read_fd, size=lambda: self.sizes[-1])

    def tearDown(self):
        os.close(self.read_fd)
        if self.write_fd is not None:
            os.close(self.write_fd)

    def test_resize_only_on_change(self):
        self.watcher.poll()
        self.watcher.poll()
        self.sizes.append((80, 24))
        self.watcher.poll()
        events = self.bridge.drain()
        self.assertEqual(events, [Resize(100, 30), Resize(80, 24)])

    def test_keys_are_decoded(self):
        os.write(self.write_fd, b"\x1b[Aq\t")
        self.watcher.poll()
        keys = [event.key for event in self.bridge.drain() if isinstance(event, Key)]
        self.assertEqual(keys, ["up", "q", "tab"])

    def test_eof_requests_quit(self):
        os.close(self.write_fd)
        self.write_fd = None
        self.watcher.poll()
        events = self.bridge.drain()
        self.assertIsInstance(events[-1], Quit)
        self.assertEqual(events[-1].reason, "input closed")
        self.assertFalse(self.watcher.running)

    def test_input_mode_is_skipped_for_pipes(self):
        self.watcher.enter_input_mode()
        self.assertIsNone(self.watcher._saved_attrs)
        self.watcher.restore_input_mode()


class BridgeLogHandlerTests(unittest.TestCase):
    def test_forwards_warnings(self):
        bridge = EventBridge()
        handler = BridgeLogHandler(bridge)
        logger = logging.getLogger("ipcrawler_tui.tests.handler")
        logger.addHandler(handler)
        logger.propagate = False
        try:
            logger.info("quiet")
            logger.warning("slow %s", "tool")
        finally:
            logger.removeHandler(handler)
            logger.propagate = True
        (event,) = bridge.drain()
        self.assertEqual(event.level, "WARNING")
        self.assertEqual(event.message, "slow tool")
        self.assertEqual(event.category, "ui")
        self.assertEqual(event.fields, {"logger": "ipcrawler_tui.tests.handler"})

    def test_skips_bridge_records(self):
        bridge = EventBridge()
        handler = BridgeLogHandler(bridge)
        record = logging.LogRecord("ipcrawler_tui.bridge", logging.WARNING, __file__, 1, "event buffer full", None, None)
        self.assertFalse(handler.filter(record))
        handler.handle(record)
        self.assertEqual(len(bridge), 0)

    def test_exception_text_is_appended(self):
        bridge = EventBridge()
        handler = BridgeLogHandler(bridge)
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("ipcrawler_tui.producers", logging.ERROR, __file__, 1, "poll failed", None, sys.exc_info())
        handler.handle(record)
        (event,) = bridge.drain()
        self.assertEqual(event.message, "poll failed: RuntimeError('boom')")


class CommandLineTests(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger()
        self._handlers = root.handlers[:]
        self._level = root.level

    def tearDown(self):
        root = logging.getLogger()
        root.handlers[:] = self._handlers
        root.setLevel(self._level)

    def test_json_snapshot(self):
        out = io.StringIO()
        with redirect_stdout(out):
            code = main(["--json", "--demo-quick", "--seed", "4", "--target", "example.com"])
        self.assertEqual(code, 0)
        payload = json.loads(out.getvalue())
        self.assertEqual(payload["target"], "example.com")
        self.assertEqual(payload["layout_mode"], "large")
        self.assertEqual({workflow["id"] for workflow in payload["workflows"]}, {"quick_scan", "demo_scan"})
        for workflow in payload["workflows"]:
            self.assertIn(workflow["status"], ("completed", "failed"))

    def test_bad_config_exits_with_usage_error(self):
        err = io.StringIO()
        with redirect_stderr(err):
            code = main(["--json", "--config", "/nonexistent/ipcrawler-tui.json"])
        self.assertEqual(code, 2)
        self.assertIn("ipcrawler-tui:", err.getvalue())

    def test_unknown_profile(self):
        err = io.StringIO()
        with redirect_stderr(err):
            code = main(["--json", "--profile", "neon"])
        self.assertEqual(code, 2)


if __name__ == "__main__":
    unittest.main()
