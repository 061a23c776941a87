"""
Application configuration.

Resolved from the environment, overridable from the command line:

    QUIZDECK_HOME        data directory (default: ~/.quizdeck)
    QUIZDECK_LOG_LEVEL   logging level name (default: WARNING)

User preferences (shuffle, low-accuracy threshold) are not configuration:
they live in the data directory's settings.yaml and are managed by
``DeckStore.update_settings``.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

HOME_ENV = "QUIZDECK_HOME"
LOG_LEVEL_ENV = "QUIZDECK_LOG_LEVEL"
DEFAULT_HOME = Path("~") / ".quizdeck"
DEFAULT_LOG_LEVEL = "WARNING"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class ConfigurationError(Exception):
    """Custom exception for configuration errors"""
    pass


def _parse_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    if not isinstance(level, int):
        raise ConfigurationError(f"Unknown log level: {name}")
    return level


@dataclass
class AppConfig:
    data_dir: Path
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 data_dir: Optional[str] = None,
                 log_level: Optional[str] = None) -> "AppConfig":
        """
        Build configuration from the environment.

        Args:
            environ: Mapping to read instead of ``os.environ``
            data_dir: Explicit data directory (wins over the environment)
            log_level: Explicit log level (wins over the environment)

        Raises:
            ConfigurationError: If the log level is not a logging level name
        """
        env = os.environ if environ is None else environ
        directory = data_dir or env.get(HOME_ENV) or str(DEFAULT_HOME)
        level = (log_level or env.get(LOG_LEVEL_ENV) or DEFAULT_LOG_LEVEL).upper()
        _parse_level(level)
        return cls(data_dir=Path(directory).expanduser(), log_level=level)

    @property
    def log_level_value(self) -> int:
        return _parse_level(self.log_level)


def setup_logging(level: str = DEFAULT_LOG_LEVEL) -> None:
    """Configure root logging for command-line use."""
    logging.basicConfig(level=_parse_level(level), format=LOG_FORMAT)
    logging.getLogger().setLevel(_parse_level(level))
