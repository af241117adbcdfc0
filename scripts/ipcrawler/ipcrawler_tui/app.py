"""Command line entrypoint for the ipcrawler scan dashboard."""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys

from rich.console import Console

from ipcrawler_tui.bridge import EventBridge
from ipcrawler_tui.dashboard import Dashboard
from ipcrawler_tui.events import Quit
from ipcrawler_tui.logging_setup import attach_bridge_handler, detach_bridge_handler, setup_logging
from ipcrawler_tui.loop import DashboardLoop, LiveWriter
from ipcrawler_tui.producers.metrics import MetricsSampler
from ipcrawler_tui.producers.monitor import ScanMonitor
from ipcrawler_tui.producers.simulator import DEFAULT_WORKFLOWS, QUICK_WORKFLOWS, ScanSimulator
from ipcrawler_tui.producers.terminal import TerminalWatcher
from ipcrawler_tui.producers.ticker import Ticker
from ipcrawler_tui.profiles import BUILTIN_PROFILES, UIConfig, resolve_profile

logger = logging.getLogger(__name__)

SNAPSHOT_SIZE = (120, 40)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="IPCrawler live scan dashboard")
    parser.add_argument("--target", default="127.0.0.1", help="Scan target shown in the header")
    parser.add_argument(
        "--profile",
        default=os.environ.get("IPCRAWLER_TUI_PROFILE", "default"),
        help=f"Profile name: {'|'.join(BUILTIN_PROFILES)}",
    )
    parser.add_argument("--config", help="Optional JSON config file for layout/theme overrides")
    demo = parser.add_mutually_exclusive_group()
    demo.add_argument("--demo", action="store_true", help="Run simulated DNS, port and vhost workflows")
    demo.add_argument("--demo-quick", action="store_true", help="Run a short simulated scan")
    parser.add_argument("--seed", type=int, help="Seed for simulated durations and failures")
    parser.add_argument("--speed", type=float, help="Simulation time scale (0 runs instantly)")
    parser.add_argument("--json", action="store_true", help="Run the simulation headless and emit a JSON snapshot")
    parser.add_argument("--no-metrics", action="store_true", help="Disable host metrics sampling")
    parser.add_argument("--log-file", help="Write diagnostic logs to this file")
    parser.add_argument("--log-level", default="INFO", help="Log level for --log-file")
    return parser


def _make_simulator(args: argparse.Namespace, monitor: ScanMonitor, speed: float) -> ScanSimulator:
    workflows = QUICK_WORKFLOWS if args.demo_quick else DEFAULT_WORKFLOWS
    return ScanSimulator(monitor, workflows=workflows, seed=args.seed, speed=speed)


def run_snapshot(args: argparse.Namespace, config: UIConfig) -> dict:
    bridge = EventBridge(capacity=config.bridge.capacity, overflow=config.bridge.overflow)
    monitor = ScanMonitor(bridge, target=args.target)
    simulator = _make_simulator(args, monitor, 0.0 if args.speed is None else args.speed)
    dashboard = Dashboard(config, cancel=simulator.cancel, target=args.target)
    loop = DashboardLoop(dashboard, bridge, write=lambda frame: None)

    bridge.resize(*SNAPSHOT_SIZE)
    simulator.start()
    while not simulator.done or len(bridge):
        loop.step(timeout=0.05)
    return dashboard.snapshot()


def run_live(args: argparse.Namespace, config: UIConfig, console: Console) -> int:
    bridge = EventBridge(capacity=config.bridge.capacity, overflow=config.bridge.overflow)
    monitor = ScanMonitor(bridge, target=args.target)
    simulator = None
    if args.demo or args.demo_quick:
        simulator = _make_simulator(args, monitor, 1.0 if args.speed is None else args.speed)

    dashboard = Dashboard(
        config,
        cancel=simulator.cancel if simulator is not None else None,
        target=args.target,
        color_system=console.color_system,
    )
    producers = [
        TerminalWatcher(bridge),
        Ticker(bridge, interval=config.refresh.tick_seconds),
    ]
    if not args.no_metrics:
        producers.append(MetricsSampler(bridge, interval=config.refresh.metrics_seconds))

    handler = attach_bridge_handler(bridge)
    try:
        with LiveWriter(console) as writer:
            loop = DashboardLoop(dashboard, bridge, writer)
            for producer in producers:
                producer.start()
            if simulator is not None:
                simulator.start()
            else:
                monitor.send_log("info", "No scan engine attached, run with --demo to simulate workflows", category="ui")
            try:
                loop.run()
            except KeyboardInterrupt:
                dashboard.update(Quit("interrupted"))
                bridge.close()
    finally:
        detach_bridge_handler(handler)
        for producer in producers:
            producer.stop()
        for producer in producers:
            producer.join(timeout=1.0)
        if simulator is not None:
            simulator.cancel()
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level, args.log_file)

    try:
        config = resolve_profile(args.profile, args.config)
    except ValueError as exc:
        print(f"ipcrawler-tui: {exc}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(run_snapshot(args, config), indent=2, default=str))
        return 0

    console = Console()
    if not console.is_terminal:
        print("ipcrawler-tui: stdout is not a terminal, use --json for a snapshot", file=sys.stderr)
        return 1

    return run_live(args, config, console)


if __name__ == "__main__":
    raise SystemExit(main())
