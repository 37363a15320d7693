"""Configuration for the scheduling core.

Values come from environment variables, optionally loaded from a .env file.

Usage:
    from services.settings import get_settings

    settings = get_settings()
    top_n = settings.default_top_n
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from services.exceptions import ConfigurationError

ENV_PREFIX = "CLOCKALIGN_"
DEFAULT_LOG_DIR = Path.home() / ".clockalign" / "logs"


@dataclass(frozen=True)
class Settings:
    """Runtime settings.

    Attributes:
        default_top_n: Number of best times returned when the query omits it
        default_work_start_hour: Work window start for participants built by the engine
        default_work_end_hour: Work window end (exclusive, up to 24)
        log_dir: Directory for rotating JSON log files
        log_level: Console log level name
        debug: Enable debug logging
    """

    default_top_n: int = 5
    default_work_start_hour: int = 9
    default_work_end_hour: int = 17
    log_dir: Path = field(default_factory=lambda: DEFAULT_LOG_DIR)
    log_level: str = "INFO"
    debug: bool = False


def _get_int(key: str, default: int) -> int:
    value = os.getenv(ENV_PREFIX + key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{ENV_PREFIX}{key} must be an integer, got {value!r}")


def _get_bool(key: str, default: bool) -> bool:
    value = os.getenv(ENV_PREFIX + key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


def load_settings(env_file: Optional[Path] = None) -> Settings:
    """Load settings from the environment.

    Priority:
        1. Environment variables (highest)
        2. .env file
        3. Default values (lowest)

    Args:
        env_file: Path to a .env file. Defaults to the python-dotenv lookup.

    Returns:
        Loaded settings
    """
    if env_file is not None:
        load_dotenv(env_file)
    else:
        load_dotenv()

    log_dir = os.getenv(ENV_PREFIX + "LOG_DIR")

    settings = Settings(
        default_top_n=_get_int("DEFAULT_TOP_N", 5),
        default_work_start_hour=_get_int("WORK_START_HOUR", 9),
        default_work_end_hour=_get_int("WORK_END_HOUR", 17),
        log_dir=Path(log_dir).expanduser() if log_dir else DEFAULT_LOG_DIR,
        log_level=os.getenv(ENV_PREFIX + "LOG_LEVEL", "INFO").upper(),
        debug=_get_bool("DEBUG", False),
    )

    issues = validate_settings(settings)
    if issues:
        raise ConfigurationError("; ".join(issues))
    return settings


def validate_settings(settings: Settings) -> list[str]:
    """Validate settings.

    Returns:
        List of issues (empty if valid)
    """
    issues: list[str] = []

    if settings.default_top_n <= 0:
        issues.append(f"DEFAULT_TOP_N must be positive, got {settings.default_top_n}")

    for name, hour, upper in (
        ("WORK_START_HOUR", settings.default_work_start_hour, 23),
        ("WORK_END_HOUR", settings.default_work_end_hour, 24),
    ):
        if not 0 <= hour <= upper:
            issues.append(f"{name} must be between 0 and {upper}, got {hour}")

    if settings.default_work_start_hour == settings.default_work_end_hour:
        issues.append("WORK_START_HOUR and WORK_END_HOUR must differ")

    if settings.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        issues.append(f"LOG_LEVEL {settings.log_level!r} is not a logging level")

    return issues


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Return cached settings, loading them on first call."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Reset cached settings. Used primarily for testing."""
    global _settings
    _settings = None
