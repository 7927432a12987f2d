"""
Configuration Management for CodeDraft

Loads configuration from ~/.codedraft/config.json and environment variables.
Malformed values never raise: each field falls back to its default.
"""

import os
import json
import logging
from pathlib import Path
from dataclasses import dataclass, field
from typing import Any, Optional

logger = logging.getLogger("codedraft.common.config")

# Default config paths
CONFIG_DIR = Path.home() / ".codedraft"
CONFIG_PATH = CONFIG_DIR / "config.json"
LOGS_DIR = CONFIG_DIR / "logs"

STATE_FILENAME = "state.json"
CAPTURES_FILENAME = "captures.json"

DEFAULT_COOLDOWN_MINUTES = 30
MAX_COOLDOWN_MINUTES = 24 * 60
DEFAULT_REVIEW_DAY = "Friday"
DEFAULT_REVIEW_HOUR = 17
DEFAULT_CAPTURE_SCORE_THRESHOLD = 70
DEFAULT_MAX_NOTIFICATIONS = 5

WEEKDAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]


@dataclass
class ProactiveConfig:
    """Proactive monitoring configuration"""
    enabled: bool = True
    notification_cooldown: float = DEFAULT_COOLDOWN_MINUTES  # minutes
    weekly_review_day: str = DEFAULT_REVIEW_DAY
    weekly_review_hour: int = DEFAULT_REVIEW_HOUR
    capture_score_threshold: int = DEFAULT_CAPTURE_SCORE_THRESHOLD
    max_notifications_per_session: int = DEFAULT_MAX_NOTIFICATIONS

    @property
    def weekly_review_weekday(self) -> int:
        """Weekday index (Monday == 0) of the weekly review day"""
        return WEEKDAYS.index(normalize_weekday(self.weekly_review_day))


@dataclass
class StorageConfig:
    """Local storage configuration"""
    data_dir: str = str(CONFIG_DIR)

    @property
    def state_path(self) -> Path:
        return Path(self.data_dir) / STATE_FILENAME

    @property
    def captures_path(self) -> Path:
        return Path(self.data_dir) / "captures" / CAPTURES_FILENAME


@dataclass
class ServerConfig:
    """Host server configuration"""
    host: str = "127.0.0.1"
    port: int = 8765
    suggestion_timeout: float = 300.0  # seconds a shown suggestion waits for a response


@dataclass
class CodeDraftConfig:
    """Main CodeDraft configuration"""
    proactive: ProactiveConfig = field(default_factory=ProactiveConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    server: ServerConfig = field(default_factory=ServerConfig)


# =============================================================================
# Field coercion (malformed -> default)
# =============================================================================

def _coerce_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
    logger.debug("Invalid boolean %r, using default %s", value, default)
    return default


def _coerce_number(value: Any, default, minimum=None, maximum=None, exclusive_minimum=None, cast=float):
    if isinstance(value, bool):
        logger.debug("Invalid number %r, using default %s", value, default)
        return default
    try:
        number = cast(value)
    except (TypeError, ValueError):
        logger.debug("Invalid number %r, using default %s", value, default)
        return default
    if exclusive_minimum is not None and number <= exclusive_minimum:
        return default
    if minimum is not None and number < minimum:
        return default
    if maximum is not None and number > maximum:
        return default
    return number


def normalize_weekday(value: Any, default: str = DEFAULT_REVIEW_DAY) -> str:
    """Return the canonical day name for 'friday', 'Fri', ... or the default"""
    if not isinstance(value, str):
        return default
    candidate = value.strip().lower()
    if not candidate:
        return default
    for day in WEEKDAYS:
        if candidate == day.lower() or candidate == day[:3].lower():
            return day
    logger.debug("Unknown weekday %r, using default %s", value, default)
    return default


def coerce_cooldown(value: Any) -> float:
    """Cooldown in minutes, (0, 1440]; anything else is the default"""
    return _coerce_number(
        value,
        DEFAULT_COOLDOWN_MINUTES,
        maximum=MAX_COOLDOWN_MINUTES,
        exclusive_minimum=0,
    )


def _parse_proactive_config(data: dict) -> ProactiveConfig:
    """Parse proactive section from config dict"""
    proactive_data = data.get("proactive", {})
    if not isinstance(proactive_data, dict):
        return ProactiveConfig()
    return ProactiveConfig(
        enabled=_coerce_bool(proactive_data.get("enabled", True), True),
        notification_cooldown=coerce_cooldown(
            proactive_data.get("notification_cooldown", DEFAULT_COOLDOWN_MINUTES)
        ),
        weekly_review_day=normalize_weekday(proactive_data.get("weekly_review_day", DEFAULT_REVIEW_DAY)),
        weekly_review_hour=_coerce_number(
            proactive_data.get("weekly_review_hour", DEFAULT_REVIEW_HOUR),
            DEFAULT_REVIEW_HOUR, minimum=0, maximum=23, cast=int,
        ),
        capture_score_threshold=_coerce_number(
            proactive_data.get("capture_score_threshold", DEFAULT_CAPTURE_SCORE_THRESHOLD),
            DEFAULT_CAPTURE_SCORE_THRESHOLD, minimum=0, maximum=100, cast=int,
        ),
        max_notifications_per_session=_coerce_number(
            proactive_data.get("max_notifications_per_session", DEFAULT_MAX_NOTIFICATIONS),
            DEFAULT_MAX_NOTIFICATIONS, minimum=0, cast=int,
        ),
    )


def _parse_storage_config(data: dict) -> StorageConfig:
    """Parse storage section from config dict"""
    storage_data = data.get("storage", {})
    if not isinstance(storage_data, dict):
        return StorageConfig()
    data_dir = storage_data.get("data_dir")
    return StorageConfig(data_dir=data_dir if isinstance(data_dir, str) and data_dir else str(CONFIG_DIR))


def _parse_server_config(data: dict) -> ServerConfig:
    """Parse server section from config dict"""
    server_data = data.get("server", {})
    if not isinstance(server_data, dict):
        return ServerConfig()
    host = server_data.get("host", "127.0.0.1")
    return ServerConfig(
        host=host if isinstance(host, str) and host else "127.0.0.1",
        port=_coerce_number(server_data.get("port", 8765), 8765, minimum=1, maximum=65535, cast=int),
        suggestion_timeout=_coerce_number(
            server_data.get("suggestion_timeout", 300.0), 300.0, exclusive_minimum=0,
        ),
    )


def load_config(path: Optional[Path] = None) -> CodeDraftConfig:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Environment variables
    2. Config file (~/.codedraft/config.json)
    3. Default values
    """
    config = CodeDraftConfig()
    config_path = path or CONFIG_PATH

    # Load from config file if exists
    if config_path.exists():
        try:
            with open(config_path) as f:
                data = json.load(f)

            if isinstance(data, dict):
                config.proactive = _parse_proactive_config(data)
                config.storage = _parse_storage_config(data)
                config.server = _parse_server_config(data)
            else:
                logger.warning("Config file %s is not a JSON object, using defaults", config_path)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Failed to load config file: %s", e)

    # Environment variable overrides
    if os.getenv("CODEDRAFT_PROACTIVE_ENABLED"):
        config.proactive.enabled = _coerce_bool(
            os.getenv("CODEDRAFT_PROACTIVE_ENABLED"), config.proactive.enabled
        )
    if os.getenv("CODEDRAFT_NOTIFICATION_COOLDOWN"):
        config.proactive.notification_cooldown = coerce_cooldown(os.getenv("CODEDRAFT_NOTIFICATION_COOLDOWN"))
    if os.getenv("CODEDRAFT_WEEKLY_REVIEW_DAY"):
        config.proactive.weekly_review_day = normalize_weekday(os.getenv("CODEDRAFT_WEEKLY_REVIEW_DAY"))

    if os.getenv("CODEDRAFT_DATA_DIR"):
        config.storage.data_dir = os.getenv("CODEDRAFT_DATA_DIR")

    if os.getenv("CODEDRAFT_HOST"):
        config.server.host = os.getenv("CODEDRAFT_HOST")
    if os.getenv("CODEDRAFT_PORT"):
        config.server.port = _coerce_number(
            os.getenv("CODEDRAFT_PORT"), config.server.port, minimum=1, maximum=65535, cast=int
        )

    return config


def save_config(config: CodeDraftConfig, path: Optional[Path] = None) -> None:
    """Save configuration to file."""
    config_path = path or CONFIG_PATH
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = {
        "proactive": {
            "enabled": config.proactive.enabled,
            "notification_cooldown": config.proactive.notification_cooldown,
            "weekly_review_day": config.proactive.weekly_review_day,
            "weekly_review_hour": config.proactive.weekly_review_hour,
            "capture_score_threshold": config.proactive.capture_score_threshold,
            "max_notifications_per_session": config.proactive.max_notifications_per_session,
        },
        "storage": {
            "data_dir": config.storage.data_dir,
        },
        "server": {
            "host": config.server.host,
            "port": config.server.port,
            "suggestion_timeout": config.server.suggestion_timeout,
        },
    }

    with open(config_path, "w") as f:
        json.dump(data, f, indent=2)

    # Set secure permissions
    config_path.chmod(0o600)


def ensure_directories(config: Optional[CodeDraftConfig] = None) -> None:
    """Ensure required directories exist"""
    data_dir = Path(config.storage.data_dir) if config else CONFIG_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    (data_dir / "captures").mkdir(parents=True, exist_ok=True)
    (data_dir / "logs").mkdir(parents=True, exist_ok=True)
