"""Suite configuration read from the environment."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_MANIFEST = "tests.yaml"
DEFAULT_EXPRESSION = "all()"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass
class SuiteConfig:
    """Where the suite lives and how tests are selected by default."""

    manifest_path: Path
    expression: str = DEFAULT_EXPRESSION
    skip: bool = True
    workers: int | None = None
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, base_path: Path | None = None) -> SuiteConfig:
        """Create config from environment variables.

        Variables:
        - TESTSETS_MANIFEST: manifest path (default: {base_path or cwd}/tests.yaml)
        - TESTSETS_EXPRESSION: default test-set expression (default: all())
        - TESTSETS_SKIP: drop skipped tests by default (default: true)
        - TESTSETS_WORKERS: evaluation worker threads (default: unset)
        - TESTSETS_LOG_LEVEL: logging level name (default: WARNING)

        Raises:
            ValueError: If a variable has an invalid value
        """
        manifest = os.environ.get("TESTSETS_MANIFEST")
        if manifest:
            manifest_path = Path(manifest)
        else:
            manifest_path = (base_path or Path.cwd()) / DEFAULT_MANIFEST

        workers = os.environ.get("TESTSETS_WORKERS")

        return cls(
            manifest_path=manifest_path,
            expression=os.environ.get("TESTSETS_EXPRESSION") or DEFAULT_EXPRESSION,
            skip=_parse_bool("TESTSETS_SKIP", os.environ.get("TESTSETS_SKIP", "true")),
            workers=_parse_workers(workers) if workers else None,
            log_level=_parse_log_level(os.environ.get("TESTSETS_LOG_LEVEL", "WARNING")),
        )


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE:
        return True
    if normalized in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got '{value}'")


def _parse_workers(value: str) -> int:
    try:
        workers = int(value)
    except ValueError:
        raise ValueError(f"TESTSETS_WORKERS must be an integer, got '{value}'") from None
    if workers < 1:
        raise ValueError(f"TESTSETS_WORKERS must be at least 1, got {workers}")
    return workers


def _parse_log_level(value: str) -> str:
    level = value.strip().upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"TESTSETS_LOG_LEVEL must be a logging level, got '{value}'")
    return level
