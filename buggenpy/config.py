import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional, Tuple

SOURCE_EXTENSION = ".py"

# pytest's default collection patterns
TEST_FILE_PATTERNS = ("test_*.py", "*_test.py")

DEFAULT_IGNORE_PATTERNS = (
    ".git",
    ".hg",
    ".svn",
    "venv",
    ".venv",
    "__pycache__",
    ".tox",
    ".nox",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
)

LOG_FORMATS = ("console", "json")

_TRUTHY = {"1", "true", "yes", "on"}


class ConfigError(ValueError):
    """Raised for invalid configuration values."""


@dataclass(frozen=True)
class ScanConfig:
    extension: str = SOURCE_EXTENSION
    test_patterns: Tuple[str, ...] = TEST_FILE_PATTERNS
    ignore_patterns: Tuple[str, ...] = DEFAULT_IGNORE_PATTERNS
    use_gitignore: bool = True
    keep_docstrings: bool = False
    workers: int = 1
    log_format: str = "console"

    def without_ignores(self) -> "ScanConfig":
        """Returns a copy that walks every directory, ignoring nothing."""
        return replace(self, ignore_patterns=(), use_gitignore=False)


def _read_flag(environ: Mapping[str, str], name: str) -> Optional[bool]:
    value = environ.get(name)
    if value is None or not value.strip():
        return None
    return value.strip().lower() in _TRUTHY


def parse_workers(value: str) -> int:
    """Parses a worker count, rejecting anything below one."""
    try:
        workers = int(value)
    except ValueError:
        raise ConfigError(f"Invalid worker count: {value!r}")
    if workers < 1:
        raise ConfigError(f"Worker count must be at least 1, got {workers}")
    return workers


def read_scan_config(environ: Optional[Mapping[str, str]] = None) -> ScanConfig:
    """
    Builds the scan configuration from environment variables.

    Recognised variables:
    - BUGGENPY_WORKERS: number of worker processes (default 1, sequential)
    - BUGGENPY_KEEP_DOCSTRINGS: keep a leading docstring in front of the placeholder
    - BUGGENPY_NO_IGNORE: walk ignored directories and skip .gitignore handling
    - BUGGENPY_LOG_FORMAT: "console" or "json"
    """
    if environ is None:
        environ = os.environ

    config = ScanConfig()

    workers = environ.get("BUGGENPY_WORKERS", "").strip()
    if workers:
        config = replace(config, workers=parse_workers(workers))

    keep_docstrings = _read_flag(environ, "BUGGENPY_KEEP_DOCSTRINGS")
    if keep_docstrings is not None:
        config = replace(config, keep_docstrings=keep_docstrings)

    if _read_flag(environ, "BUGGENPY_NO_IGNORE"):
        config = config.without_ignores()

    log_format = environ.get("BUGGENPY_LOG_FORMAT", "").strip().lower()
    if log_format:
        if log_format not in LOG_FORMATS:
            raise ConfigError(f"Unknown log format: {log_format!r}")
        config = replace(config, log_format=log_format)

    return config
