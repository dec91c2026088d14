"""Configuration management for depsweep.

Loads environment variables (optionally from a .env file) and provides
centralized config access. CLI flags override these values.
"""
import os
from pathlib import Path
from dotenv import load_dotenv

__version__ = "1.0.0"

_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off'}


class Config:
    """Configuration loader with environment variable support."""

    def __init__(self, env_path: str | Path | None = None):
        """Initialize config by loading a .env file.

        Args:
            env_path: .env file to load (default: .env in the working directory).
                Variables already set in the environment take precedence.

        Raises:
            ValueError: If a variable holds an unusable value
        """
        load_dotenv(Path(env_path) if env_path else Path.cwd() / ".env")
        self._validate()

    def _validate(self):
        """Validate typed environment variables eagerly.

        Raises:
            ValueError: If DEPSWEEP_WORKERS, DEPSWEEP_LOG_FORMAT or
                DEPSWEEP_ERROR_RECOVERY is malformed
        """
        _ = self.workers
        _ = self.error_recovery
        if self.log_format not in ('console', 'json'):
            raise ValueError(
                f"DEPSWEEP_LOG_FORMAT must be 'console' or 'json', got '{self.log_format}'"
            )

    @property
    def log_level(self) -> str:
        """Diagnostic log level (default: WARNING)."""
        return os.getenv("DEPSWEEP_LOG_LEVEL", "WARNING").upper()

    @property
    def log_format(self) -> str:
        """Diagnostic log renderer: 'console' or 'json'."""
        return os.getenv("DEPSWEEP_LOG_FORMAT", "console").lower()

    @property
    def cache_dir(self) -> str:
        """Reference cache directory, relative to the scanned project.

        Returns:
            Path to .depsweep_cache directory
        """
        return os.getenv("DEPSWEEP_CACHE_DIR", ".depsweep_cache")

    @property
    def workers(self) -> int:
        """Number of extraction threads.

        Raises:
            ValueError: If DEPSWEEP_WORKERS is not a positive integer
        """
        raw = os.getenv("DEPSWEEP_WORKERS", "1")
        try:
            workers = int(raw)
        except ValueError:
            raise ValueError(f"DEPSWEEP_WORKERS must be an integer, got '{raw}'") from None
        if workers < 1:
            raise ValueError(f"DEPSWEEP_WORKERS must be at least 1, got {workers}")
        return workers

    @property
    def error_recovery(self) -> bool:
        """Whether files with syntax errors are still scanned (default: true)."""
        raw = os.getenv("DEPSWEEP_ERROR_RECOVERY", "true").strip().lower()
        if raw in _TRUE_VALUES:
            return True
        if raw in _FALSE_VALUES:
            return False
        raise ValueError(f"DEPSWEEP_ERROR_RECOVERY must be a boolean, got '{raw}'")


# Singleton instance
_config = None


def get_config() -> Config:
    """Get or create singleton Config instance.

    Returns:
        Config instance
    """
    global _config
    if _config is None:
        _config = Config()
    return _config


def reset_config():
    """Drop the singleton so the next get_config() re-reads the environment."""
    global _config
    _config = None
