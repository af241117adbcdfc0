from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).resolve().parents[2]))

from ipcrawler_tui.bridge import OVERFLOW_POLICIES, EventBridge  # noqa: E402
from ipcrawler_tui.profiles import UIConfig, build_config, deep_merge, resolve_profile  # noqa: E402


def _write_config(tmp: str, payload) -> str:
    path = Path(tmp) / "cfg.json"
    path.write_text(json.dumps(payload))
    return str(path)


class ProfileTests(unittest.TestCase):
    def test_default_profile_matches_builtin_defaults(self):
        config = resolve_profile("default")
        self.assertEqual(config, UIConfig())
        self.assertEqual(config.layout.breakpoints.large, 120)
        self.assertEqual(config.layout.breakpoints.medium, 80)
        self.assertEqual(config.tool_table.recent_limit, 50)
        self.assertEqual(config.log_viewport.max_entries, 1000)

    def test_ascii_profile(self):
        config = resolve_profile("ascii")
        self.assertEqual(config.name, "ascii")
        self.assertEqual(config.theme.box, "ascii")
        self.assertEqual(config.theme.glyph("running"), "*")
        self.assertEqual(config.theme.spinner, ("|", "/", "-", "\\"))

    def test_mono_profile_has_no_colors(self):
        config = resolve_profile("mono")
        self.assertFalse(config.theme.color)
        self.assertEqual(config.theme.style("running"), "")
        self.assertEqual(config.theme.style("title"), "bold")

    def test_unknown_profile(self):
        with self.assertRaises(ValueError):
            resolve_profile("neon")

    def test_user_config_merges_over_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_config(
                tmp,
                {
                    "layout": {"breakpoints": {"large": 140}, "footer_height": 4},
                    "components": {"tool_table": {"recent_limit": 15}},
                    "bridge": {"overflow": "drop_newest"},
                },
            )
            config = resolve_profile("default", path)
        self.assertEqual(config.layout.breakpoints.large, 140)
        self.assertEqual(config.layout.breakpoints.medium, 80)
        self.assertEqual(config.layout.footer_height, 4)
        self.assertEqual(config.tool_table.recent_limit, 15)
        self.assertEqual(config.bridge.overflow, "drop_newest")
        self.assertEqual(config.bridge.capacity, 4096)

    def test_profile_key_in_config_selects_base(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_config(tmp, {"profile": "ascii", "theme": {"symbols": {"cursor": "=>"}}})
            config = resolve_profile("default", path)
        self.assertEqual(config.name, "ascii")
        self.assertEqual(config.theme.box, "ascii")
        self.assertEqual(config.theme.cursor, "=>")

    def test_invalid_values_fall_back_with_warning(self):
        with self.assertLogs("ipcrawler_tui.profiles", level="WARNING"):
            config = build_config(
                {
                    "layout": {"breakpoints": {"large": 60, "medium": 80}},
                    "bridge": {"capacity": -1, "overflow": "block"},
                    "theme": {"box": "fancy"},
                }
            )
        self.assertEqual(config.layout.breakpoints.large, 120)
        self.assertEqual(config.layout.breakpoints.medium, 80)
        self.assertEqual(config.bridge.capacity, 4096)
        self.assertEqual(config.bridge.overflow, "drop_oldest")
        self.assertEqual(config.theme.box, "rounded")

    def test_every_bridge_policy_is_accepted(self):
        for policy in OVERFLOW_POLICIES:
            config = build_config({"bridge": {"capacity": 8, "overflow": policy}})
            bridge = EventBridge(config.bridge.capacity, config.bridge.overflow)
            self.assertEqual(bridge.overflow, policy)
            self.assertEqual(bridge.capacity, 8)

    def test_ratios_are_clamped(self):
        with self.assertLogs("ipcrawler_tui.profiles", level="WARNING"):
            config = build_config({"layout": {"main_split": 3}})
        self.assertEqual(config.layout.main_split, 0.9)

    def test_crowded_large_ratios_fall_back(self):
        with self.assertLogs("ipcrawler_tui.profiles", level="WARNING"):
            config = build_config({"layout": {"large": {"nav_ratio": 0.6, "status_ratio": 0.5}}})
        self.assertEqual(config.layout.large_nav_ratio, 0.25)
        self.assertEqual(config.layout.large_status_ratio, 0.25)

    def test_keymap_override(self):
        config = build_config({"keymap": {"quit": ["x"]}})
        self.assertEqual(config.keymap["quit"], ["x"])
        self.assertEqual(config.keymap["help"], ["?"])

    def test_missing_config_file(self):
        with self.assertRaises(ValueError):
            resolve_profile("default", "/nonexistent/ipcrawler-tui.json")

    def test_invalid_json_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "cfg.json"
            path.write_text("{not json")
            with self.assertRaises(ValueError):
                resolve_profile("default", str(path))

    def test_non_object_config(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = _write_config(tmp, [1, 2, 3])
            with self.assertRaises(ValueError):
                resolve_profile("default", path)

    def test_deep_merge_does_not_mutate_base(self):
        base = {"theme": {"colors": {"border": "grey50"}}}
        merged = deep_merge(base, {"theme": {"colors": {"border": "red"}}})
        self.assertEqual(merged["theme"]["colors"]["border"], "red")
        self.assertEqual(base["theme"]["colors"]["border"], "grey50")


if __name__ == "__main__":
    unittest.main()
