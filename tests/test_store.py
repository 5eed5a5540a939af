"""Tests for the key/value stores, settings and the command line.

Covers: bbq.core.store, bbq.core.config, bbq.__main__
"""

import io
import json
import os
import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

os.environ.setdefault("BBQTIMER_HOME", tempfile.mkdtemp(prefix="bbqtimer_tests_"))


class _TempDirCase(unittest.TestCase):

    def setUp(self):
        self.tmpdir = tempfile.mkdtemp()
        self._tmppath = Path(self.tmpdir)

    def tearDown(self):
        shutil.rmtree(self.tmpdir, ignore_errors=True)


# ──────────────────────────────────────────────────────────────────────────
# store.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestJsonFileStore(_TempDirCase):

    def test_missing_file_starts_empty(self):
        from bbq.core.store import JsonFileStore
        store = JsonFileStore(self._tmppath / "timer.json")
        self.assertFalse(store.contains("Timer_isRunning"))
        self.assertEqual(store.get_int("Timer_startTime", 7), 7)

    def test_nothing_written_until_commit(self):
        from bbq.core.store import JsonFileStore
        path = self._tmppath / "timer.json"
        store = JsonFileStore(path)
        store.put_bool("Timer_isRunning", True)
        self.assertFalse(path.exists())
        store.commit()
        self.assertTrue(path.exists())

    def test_commit_and_reopen(self):
        from bbq.core.store import JsonFileStore
        path = self._tmppath / "nested" / "timer.json"
        store = JsonFileStore(path)
        store.put_bool("Timer_isRunning", True)
        store.put_int("Timer_startTime", 2 ** 40)
        store.commit()

        with open(path, "r", encoding="utf-8") as f:
            doc = json.load(f)
        from bbq.core.store import _FILE_SCHEMA_VERSION
        self.assertEqual(doc["meta"]["schema_version"], _FILE_SCHEMA_VERSION)
        self.assertIn("saved_at", doc["meta"])

        reopened = JsonFileStore(path)
        self.assertTrue(reopened.get_bool("Timer_isRunning"))
        self.assertEqual(reopened.get_int("Timer_startTime"), 2 ** 40)

    def test_corrupted_file_starts_empty(self):
        from bbq.core.store import JsonFileStore
        path = self._tmppath / "timer.json"
        path.write_text("{invalid json!!", encoding="utf-8")
        store = JsonFileStore(path)
        self.assertEqual(store.values, {})

    def test_file_without_values_section_starts_empty(self):
        from bbq.core.store import JsonFileStore
        path = self._tmppath / "timer.json"
        path.write_text(json.dumps(["not", "a", "store"]), encoding="utf-8")
        self.assertEqual(JsonFileStore(path).values, {})


class TestQSettingsStore(_TempDirCase):

    def test_typed_roundtrip_through_ini_file(self):
        from bbq.core.store import QSettingsStore
        path = self._tmppath / "timer.ini"
        store = QSettingsStore(path)
        store.put_bool("Timer_isRunning", False)
        store.put_bool("Timer_isPaused", True)
        store.put_int("Timer_startTime", 123_456_789_012)
        store.commit()
        self.assertTrue(path.exists())

        reopened = QSettingsStore(path)
        self.assertIs(reopened.get_bool("Timer_isRunning", True), False)
        self.assertIs(reopened.get_bool("Timer_isPaused"), True)
        self.assertEqual(reopened.get_int("Timer_startTime"), 123_456_789_012)
        self.assertEqual(reopened.get_int("Timer_pauseTime", 0), 0)
        self.assertFalse(reopened.contains("Timer_pauseTime"))

    def test_time_counter_roundtrip(self):
        from bbq.core.store import open_store, QSettingsStore
        from bbq.core.time_counter import TimeCounter
        path = self._tmppath / "timer.ini"
        store = open_store(path)
        self.assertIsInstance(store, QSettingsStore)

        counter = TimeCounter()
        counter.reset()
        counter.save(store)
        store.commit()

        loaded = TimeCounter()
        self.assertFalse(loaded.load(open_store(path)))
        self.assertTrue(loaded.is_paused_at_0())

    def test_open_store_defaults_to_json(self):
        from bbq.core.store import open_store, JsonFileStore
        self.assertIsInstance(open_store(self._tmppath / "timer.json"), JsonFileStore)
        self.assertIsInstance(open_store(self._tmppath / "timer"), JsonFileStore)


# ──────────────────────────────────────────────────────────────────────────
# config.py tests
# ──────────────────────────────────────────────────────────────────────────

class TestConfig(_TempDirCase):

    def setUp(self):
        super().setUp()
        from bbq.core import config
        self._orig_settings_path = config.SETTINGS_PATH
        config.SETTINGS_PATH = self._tmppath / "settings.json"

    def tearDown(self):
        from bbq.core import config
        config.SETTINGS_PATH = self._orig_settings_path
        super().tearDown()

    def test_fresh_start_returns_defaults(self):
        from bbq.core.config import load_settings
        from bbq.util.duration import DEFAULT_TIME_STYLE
        settings = load_settings()
        self.assertTrue(settings["pauseable_notifications"])
        self.assertEqual(settings["time_style"], DEFAULT_TIME_STYLE)
        self.assertEqual(settings["store_file"], "timer.json")

    def test_save_and_load_roundtrip(self):
        from bbq.core.config import load_settings, save_settings
        settings = load_settings()
        settings["pauseable_notifications"] = False
        save_settings(settings)
        self.assertFalse(load_settings()["pauseable_notifications"])

    def test_missing_and_mistyped_values_are_defaulted(self):
        from bbq.core import config
        with open(config.SETTINGS_PATH, "w") as f:
            json.dump({"pauseable_notifications": "nope", "store_file": "timer.ini"}, f)
        settings = config.load_settings()
        self.assertTrue(settings["pauseable_notifications"])
        self.assertEqual(settings["store_file"], "timer.ini")
        self.assertIn("time_style", settings)

    def test_unusable_time_style_falls_back_to_default(self):
        from bbq.core import config
        from bbq.util.duration import DEFAULT_TIME_STYLE
        for template in ("{hhmmss}<small>{</small>", "{hhmmss}{tenths}", "{0}"):
            with open(config.SETTINGS_PATH, "w") as f:
                json.dump({"time_style": template}, f)
            self.assertEqual(config.load_settings()["time_style"], DEFAULT_TIME_STYLE, template)

    def test_loose_html_time_style_is_kept(self):
        from bbq.core import config
        with open(config.SETTINGS_PATH, "w") as f:
            json.dump({"time_style": "{hhmmss}<br>{fraction}"}, f)
        self.assertEqual(config.load_settings()["time_style"], "{hhmmss}<br>{fraction}")

    def test_corrupted_settings_fall_back_to_defaults(self):
        from bbq.core import config
        with open(config.SETTINGS_PATH, "w") as f:
            f.write("{invalid json!!")
        self.assertEqual(config.load_settings(), config.build_default_settings())


# ──────────────────────────────────────────────────────────────────────────
# Command line tests
# ──────────────────────────────────────────────────────────────────────────

class TestCommandLine(_TempDirCase):

    def setUp(self):
        super().setUp()
        from bbq.core import config
        self._orig_settings_path = config.SETTINGS_PATH
        config.SETTINGS_PATH = self._tmppath / "settings.json"
        self.store_path = self._tmppath / "timer.json"

    def tearDown(self):
        from bbq.core import config
        config.SETTINGS_PATH = self._orig_settings_path
        super().tearDown()

    def _run(self, *args):
        from bbq.__main__ import main
        with patch("sys.stdout", new_callable=io.StringIO) as out:
            code = main(["--store", str(self.store_path), *args])
        self.assertEqual(code, 0)
        return out.getvalue().strip()

    def test_status_of_fresh_timer(self):
        self.assertEqual(self._run("status"), "Stopped 00:00.0")
        self.assertFalse(self.store_path.exists())

    def test_start_persists_running_state(self):
        self.assertTrue(self._run("start").startswith("Running "))
        from bbq.core.store import JsonFileStore
        store = JsonFileStore(self.store_path)
        self.assertTrue(store.get_bool("Timer_isRunning"))
        self.assertTrue(self._run().startswith("Running "))

    def test_reset_then_stop(self):
        self.assertEqual(self._run("reset"), "Paused 00:00.0")
        self.assertEqual(self._run("status"), "Paused 00:00.0")
        self.assertEqual(self._run("stop"), "Stopped 00:00.0")

    def test_stale_running_state_is_repaired_and_written_back(self):
        from bbq.core.clock import Clock
        from bbq.core.store import JsonFileStore
        store = JsonFileStore(self.store_path)
        store.put_bool("Timer_isRunning", True)
        store.put_int("Timer_startTime", Clock().monotonic_ms() + 3_600_000)
        store.commit()

        self.assertEqual(self._run("status"), "Stopped 00:00.0")
        repaired = JsonFileStore(self.store_path)
        self.assertFalse(repaired.get_bool("Timer_isRunning"))
        self.assertEqual(repaired.get_int("Timer_startTime"), 0)

    def test_html_time_style_from_settings(self):
        from bbq.core import config
        with open(config.SETTINGS_PATH, "w") as f:
            json.dump({"time_style": "{hhmmss}&nbsp;<small>{fraction}</small>"}, f)
        self.assertEqual(self._run("status"), "Stopped 00:00\xa0.0")
        self.assertEqual(self._run("reset"), "Paused 00:00\xa0.0")

    def test_broken_time_style_from_settings_uses_default(self):
        from bbq.core import config
        with open(config.SETTINGS_PATH, "w") as f:
            json.dump({"time_style": "{hhmmss}{"}, f)
        self.assertEqual(self._run("status"), "Stopped 00:00.0")

    def test_unexpected_error_exits_with_status_1(self):
        from bbq import __main__ as entry
        with patch.object(entry, "main", side_effect=RuntimeError("boom")):
            with self.assertRaises(SystemExit) as ctx:
                entry.run()
        self.assertEqual(ctx.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
