"""
Tests for NotificationStatsStore

Loading, legacy migration, flush failures and defaults.
"""

from unittest.mock import Mock

import pytest


class MemoryBackend:
    """In-memory key-value backend"""

    def __init__(self, data=None):
        self.data = dict(data or {})

    def read(self, key):
        return self.data.get(key)

    def write(self, key, value):
        self.data[key] = value


class TestLoad:
    def test_empty_backend_gives_defaults(self):
        from codedraft.common.schemas import SuggestionKind
        from codedraft.proactive.stats_store import NotificationStatsStore

        store = NotificationStatsStore(MemoryBackend())
        stats = store.load()

        assert stats.kinds == {}
        assert store.acceptance_rate(SuggestionKind.CAPTURE) == 0.5
        assert store.pattern_success_rate("security") == 0.5

    def test_round_trip(self):
        from codedraft.common.schemas import SuggestionKind
        from codedraft.proactive.stats_store import NotificationStatsStore

        backend = MemoryBackend()
        store = NotificationStatsStore(backend)
        store.load()
        store.stats.counters(SuggestionKind.CAPTURE).accepted = 3
        store.stats.counters(SuggestionKind.CAPTURE).dismissed = 1
        assert store.flush() is True

        reloaded = NotificationStatsStore(backend)
        reloaded.load()
        assert reloaded.acceptance_rate(SuggestionKind.CAPTURE) == 0.75

    def test_invalid_data_gives_defaults(self):
        from codedraft.proactive.stats_store import NotificationStatsStore
        store = NotificationStatsStore(MemoryBackend({"notification_stats": {"kinds": "broken"}}))
        assert store.load().kinds == {}

    def test_backend_error_gives_defaults(self):
        from codedraft.proactive.stats_store import NotificationStatsStore
        backend = Mock()
        backend.read.side_effect = OSError("disk gone")
        store = NotificationStatsStore(backend)
        assert store.load().patterns == {}

    def test_flush_failure_is_reported_not_raised(self):
        from codedraft.proactive.stats_store import NotificationStatsStore
        backend = Mock()
        backend.read.return_value = None
        backend.write.side_effect = OSError("read-only")
        store = NotificationStatsStore(backend)
        store.load()
        assert store.flush() is False

    def test_reset(self):
        from codedraft.common.schemas import SuggestionKind
        from codedraft.proactive.stats_store import NotificationStatsStore

        backend = MemoryBackend()
        store = NotificationStatsStore(backend)
        store.stats.counters(SuggestionKind.DRAFT).accepted = 2
        store.reset()
        assert backend.data["notification_stats"]["kinds"] == {}


class TestLegacyMigration:
    LEGACY = {
        "captureAccepted": 4,
        "captureDismissed": 1,
        "captureNeverAgain": 2,
        "draftAccepted": 1,
        "draftDismissed": "3",
        "patternSuccess": {
            "security": {"shown": 5, "accepted": 2},
            "bug-fix": {"shown": 1, "accepted": 7},
            "junk": "nope",
        },
    }

    def test_migrates_legacy_key(self):
        from codedraft.common.schemas import SuggestionKind
        from codedraft.proactive.stats_store import NotificationStatsStore

        store = NotificationStatsStore(MemoryBackend({"notificationStats": self.LEGACY}))
        stats = store.load()

        assert stats.counters(SuggestionKind.CAPTURE).accepted == 4
        assert stats.counters(SuggestionKind.CAPTURE).suppressed == 2
        assert stats.counters(SuggestionKind.DRAFT).dismissed == 3
        assert stats.patterns["security"].accepted == 2
        assert "junk" not in stats.patterns

    def test_accepted_never_exceeds_shown(self):
        from codedraft.proactive.stats_store import migrate_legacy_stats
        stats = migrate_legacy_stats(self.LEGACY)
        assert stats.patterns["bug-fix"].shown == 1
        assert stats.patterns["bug-fix"].accepted == 1

    def test_legacy_layout_under_new_key(self):
        from codedraft.common.schemas import SuggestionKind
        from codedraft.proactive.stats_store import NotificationStatsStore
        store = NotificationStatsStore(MemoryBackend({"notification_stats": self.LEGACY}))
        assert store.load().counters(SuggestionKind.CAPTURE).accepted == 4

    @pytest.mark.parametrize("data,expected", [
        ({"captureAccepted": 1}, True),
        ({"kinds": {}, "captureAccepted": 1}, False),
        ({"schema_version": 2}, False),
        (None, False),
    ])
    def test_is_legacy_layout(self, data, expected):
        from codedraft.proactive.stats_store import is_legacy_layout
        assert is_legacy_layout(data) is expected


def load_migration_script():
    import importlib.util
    from pathlib import Path

    path = Path(__file__).resolve().parents[2] / "scripts" / "migrate_stats.py"
    spec = importlib.util.spec_from_file_location("migrate_stats", path)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class TestMigrationScript:
    def _state(self, tmp_path, data):
        import json
        path = tmp_path / "state.json"
        path.write_text(json.dumps(data))
        return path

    def test_migrates_in_place(self, tmp_path):
        import json
        from unittest.mock import patch

        path = self._state(tmp_path, {"notificationStats": {"captureAccepted": 2, "captureDismissed": 1}})
        script = load_migration_script()
        with patch("sys.argv", ["migrate_stats.py", "--state-path", str(path)]):
            script.main()

        data = json.loads(path.read_text())
        assert "notificationStats" not in data
        assert data["notification_stats"]["kinds"]["capture"]["accepted"] == 2

    def test_dry_run_changes_nothing(self, tmp_path):
        from unittest.mock import patch

        path = self._state(tmp_path, {"notificationStats": {"captureAccepted": 2}})
        before = path.read_text()
        script = load_migration_script()
        with patch("sys.argv", ["migrate_stats.py", "--dry-run", "--state-path", str(path)]):
            script.main()

        assert path.read_text() == before

    def test_reset(self, tmp_path):
        import json
        from unittest.mock import patch

        path = self._state(tmp_path, {"notification_stats": {"kinds": {"capture": {"accepted": 9}}}})
        script = load_migration_script()
        with patch("sys.argv", ["migrate_stats.py", "--reset", "--state-path", str(path)]):
            script.main()

        assert json.loads(path.read_text())["notification_stats"]["kinds"] == {}
