"""Engine configuration loaded from environment variables."""
from __future__ import annotations

import logging
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, Optional

from dotenv import load_dotenv

if TYPE_CHECKING:
    from ..orchestration.workflow_engine.steps import WorkflowOptions

logger = logging.getLogger(__name__)

DEFAULT_LOG_FILE = "pipeline.log"


def _parse_bool(value: str | bool | None) -> bool:
    """Parse boolean value from various formats."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, str):
        return value.lower() in ("true", "1", "yes", "on", "enabled")
    return bool(value)


def _getenv(key: str, default: str = "") -> str:
    """Get environment variable with default."""
    return os.getenv(key, default)


def _getenv_path(key: str) -> Optional[Path]:
    """Get an optional path from the environment; empty means unset."""
    value = os.getenv(key)
    if not value:
        return None
    return Path(value).expanduser()


@dataclass
class Config:
    """Engine configuration loaded from environment variables."""

    # ========== Pipeline Log ==========
    log_dir: Optional[Path] = field(default_factory=lambda: _getenv_path("FLOWLINE_LOG_DIR"))
    log_file: str = field(default_factory=lambda: _getenv("FLOWLINE_LOG_FILE", DEFAULT_LOG_FILE))
    verbose: bool = field(default_factory=lambda: _parse_bool(_getenv("FLOWLINE_VERBOSE", "false")))

    # ========== Application Logging ==========
    log_level: str = field(default_factory=lambda: _getenv("FLOWLINE_LOG_LEVEL", "INFO").upper())
    log_format: str = field(
        default_factory=lambda: _getenv("FLOWLINE_LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )

    def __post_init__(self):
        """Validate the log level name."""
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(
                f"Invalid FLOWLINE_LOG_LEVEL '{self.log_level}'. "
                f"Expected one of DEBUG, INFO, WARNING, ERROR, CRITICAL"
            )

    @property
    def log_level_value(self) -> int:
        """Numeric logging level."""
        return logging.getLevelName(self.log_level)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "log_dir": str(self.log_dir) if self.log_dir else None,
            "log_file": self.log_file,
            "verbose": self.verbose,
            "log_level": self.log_level,
            "log_format": self.log_format,
        }

    def to_workflow_options(self) -> "WorkflowOptions":
        """Build validated workflow options from this configuration."""
        # Import here to avoid circular imports
        from ..orchestration.workflow_engine.steps import WorkflowOptions

        return WorkflowOptions(log_dir=self.log_dir, log_file=self.log_file, verbose=self.verbose)


def _load_environment() -> None:
    """Load a .env file from the working directory if one exists."""
    env_path = Path(".env")
    if env_path.exists():
        load_dotenv(env_path, override=False)
        logger.debug(f"Loaded environment from {env_path}")


# Singleton instance with thread-safe initialization
_config_instance: Optional[Config] = None
_config_lock = threading.Lock()


def get_config() -> Config:
    """Get global config instance (singleton pattern, thread-safe)."""
    global _config_instance
    if _config_instance is None:
        with _config_lock:
            if _config_instance is None:
                _load_environment()
                _config_instance = Config()
    return _config_instance


def reset_config() -> None:
    """Drop the cached config so the next get_config() re-reads the environment."""
    global _config_instance
    with _config_lock:
        _config_instance = None


__all__ = ["Config", "DEFAULT_LOG_FILE", "get_config", "reset_config"]
