"""Tests for configuration loading and malformed-value fallbacks."""

import json
import os
import pytest
from unittest.mock import patch

ENV_VARS = (
    "CODEDRAFT_PROACTIVE_ENABLED",
    "CODEDRAFT_NOTIFICATION_COOLDOWN",
    "CODEDRAFT_WEEKLY_REVIEW_DAY",
    "CODEDRAFT_DATA_DIR",
    "CODEDRAFT_HOST",
    "CODEDRAFT_PORT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def write_config(tmp_path, data):
    config_file = tmp_path / "config.json"
    config_file.write_text(json.dumps(data))
    return config_file


class TestDefaults:
    def test_proactive_defaults(self):
        from codedraft.common.config import ProactiveConfig
        cfg = ProactiveConfig()
        assert cfg.enabled is True
        assert cfg.notification_cooldown == 30
        assert cfg.weekly_review_day == "Friday"
        assert cfg.weekly_review_weekday == 4
        assert cfg.max_notifications_per_session == 5
        assert cfg.capture_score_threshold == 70

    def test_missing_file_uses_defaults(self, tmp_path):
        from codedraft.common.config import load_config
        cfg = load_config(tmp_path / "nope.json")
        assert cfg.proactive.enabled is True
        assert cfg.server.port == 8765

    def test_storage_paths(self, tmp_path):
        from codedraft.common.config import StorageConfig
        storage = StorageConfig(data_dir=str(tmp_path))
        assert storage.state_path == tmp_path / "state.json"
        assert storage.captures_path == tmp_path / "captures" / "captures.json"

    @pytest.mark.parametrize("day,index", [
        ("friday", 4),
        ("Fri", 4),
        (" mon ", 0),
        ("Someday", 4),
    ])
    def test_weekday_index_normalizes_name(self, day, index):
        from codedraft.common.config import ProactiveConfig
        assert ProactiveConfig(weekly_review_day=day).weekly_review_weekday == index


class TestLoadConfig:
    def test_load_valid_file(self, tmp_path):
        from codedraft.common.config import load_config
        config_file = write_config(tmp_path, {
            "proactive": {
                "enabled": False,
                "notification_cooldown": 45,
                "weekly_review_day": "mon",
            },
            "server": {"port": 9000},
        })

        cfg = load_config(config_file)

        assert cfg.proactive.enabled is False
        assert cfg.proactive.notification_cooldown == 45
        assert cfg.proactive.weekly_review_day == "Monday"
        assert cfg.proactive.weekly_review_weekday == 0
        assert cfg.server.port == 9000

    @pytest.mark.parametrize("cooldown", [0, -5, 5000, "soon", None, True])
    def test_out_of_range_cooldown_falls_back(self, tmp_path, cooldown):
        from codedraft.common.config import load_config
        config_file = write_config(tmp_path, {"proactive": {"notification_cooldown": cooldown}})
        assert load_config(config_file).proactive.notification_cooldown == 30

    def test_unknown_weekday_falls_back(self, tmp_path):
        from codedraft.common.config import load_config
        config_file = write_config(tmp_path, {"proactive": {"weekly_review_day": "Caturday"}})
        assert load_config(config_file).proactive.weekly_review_day == "Friday"

    def test_corrupt_json_uses_defaults(self, tmp_path):
        from codedraft.common.config import load_config
        config_file = tmp_path / "config.json"
        config_file.write_text("{not json")
        cfg = load_config(config_file)
        assert cfg.proactive.notification_cooldown == 30

    def test_non_object_sections_use_defaults(self, tmp_path):
        from codedraft.common.config import load_config
        config_file = write_config(tmp_path, {"proactive": [1, 2], "server": "x"})
        cfg = load_config(config_file)
        assert cfg.proactive.enabled is True
        assert cfg.server.host == "127.0.0.1"

    def test_env_overrides_file(self, tmp_path):
        from codedraft.common.config import load_config
        config_file = write_config(tmp_path, {"proactive": {"notification_cooldown": 45}})
        with patch.dict(os.environ, {
            "CODEDRAFT_NOTIFICATION_COOLDOWN": "10",
            "CODEDRAFT_WEEKLY_REVIEW_DAY": "Tuesday",
            "CODEDRAFT_PROACTIVE_ENABLED": "false",
            "CODEDRAFT_DATA_DIR": str(tmp_path),
        }):
            cfg = load_config(config_file)

        assert cfg.proactive.notification_cooldown == 10
        assert cfg.proactive.weekly_review_day == "Tuesday"
        assert cfg.proactive.enabled is False
        assert cfg.storage.data_dir == str(tmp_path)

    def test_bad_env_cooldown_uses_default(self, tmp_path):
        from codedraft.common.config import load_config
        with patch.dict(os.environ, {"CODEDRAFT_NOTIFICATION_COOLDOWN": "-1"}):
            cfg = load_config(tmp_path / "missing.json")
        assert cfg.proactive.notification_cooldown == 30


class TestSaveConfig:
    def test_round_trip_and_permissions(self, tmp_path):
        from codedraft.common.config import CodeDraftConfig, load_config, save_config
        cfg = CodeDraftConfig()
        cfg.proactive.notification_cooldown = 60
        cfg.proactive.weekly_review_day = "Sunday"
        config_file = tmp_path / "sub" / "config.json"

        save_config(cfg, config_file)

        assert (config_file.stat().st_mode & 0o777) == 0o600
        loaded = load_config(config_file)
        assert loaded.proactive.notification_cooldown == 60
        assert loaded.proactive.weekly_review_day == "Sunday"

    def test_ensure_directories(self, tmp_path):
        from codedraft.common.config import CodeDraftConfig, ensure_directories
        cfg = CodeDraftConfig()
        cfg.storage.data_dir = str(tmp_path / "data")
        ensure_directories(cfg)
        assert (tmp_path / "data" / "captures").is_dir()
        assert (tmp_path / "data" / "logs").is_dir()
