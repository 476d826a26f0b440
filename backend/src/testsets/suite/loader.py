"""Load a test universe from a YAML suite manifest.

Two layouts are accepted under the top-level ``tests`` key:

    tests:
      - id: features/a
        kind: persistent
      - id: features/b
        kind: ephemeral
        skip: true
        attributes: {slow: true}

or a mapping keyed by test id, where a bare string is shorthand for the
kind:

    tests:
      features/a: persistent
      features/b: {kind: ephemeral, skip: true}
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from testsets.core.types import TestId, TestKind, TestMetadata, TestUniverse

logger = logging.getLogger(__name__)


class ManifestError(Exception):
    """The suite manifest is missing or malformed."""

    def __init__(self, message: str, path: Path | None = None):
        self.path = path
        prefix = f"{path}: " if path is not None else ""
        super().__init__(f"{prefix}{message}")


class ManifestLoader:
    """Loads a TestUniverse from a suite manifest file."""

    def __init__(self, manifest_path: Path):
        self.manifest_path = manifest_path

    def load(self) -> TestUniverse:
        if not self.manifest_path.exists():
            raise ManifestError("Manifest not found", self.manifest_path)

        with open(self.manifest_path, encoding="utf-8") as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ManifestError(f"Invalid YAML: {e}", self.manifest_path) from e

        universe = self.parse(data)
        logger.debug("Loaded %d tests from %s", len(universe), self.manifest_path)
        return universe

    def parse(self, data: Any) -> TestUniverse:
        """Build a universe from already decoded manifest data."""
        if not isinstance(data, dict) or "tests" not in data:
            raise ManifestError("Expected a mapping with a 'tests' key", self.manifest_path)

        tests = data["tests"] or []
        if isinstance(tests, dict):
            entries = [self._parse_entry(test_id, spec) for test_id, spec in tests.items()]
        elif isinstance(tests, list):
            entries = [self._parse_list_entry(index, spec) for index, spec in enumerate(tests)]
        else:
            raise ManifestError("'tests' must be a list or a mapping", self.manifest_path)

        try:
            return TestUniverse(entries)
        except ValueError as e:
            raise ManifestError(str(e), self.manifest_path) from e

    def _parse_list_entry(self, index: int, spec: Any) -> tuple[TestId, TestMetadata]:
        if isinstance(spec, str):
            return spec, TestMetadata()
        if not isinstance(spec, dict) or "id" not in spec:
            raise ManifestError(f"Test #{index + 1} has no 'id'", self.manifest_path)
        return self._parse_entry(spec["id"], {k: v for k, v in spec.items() if k != "id"})

    def _parse_entry(self, test_id: Any, spec: Any) -> tuple[TestId, TestMetadata]:
        if not isinstance(test_id, str) or not test_id:
            raise ManifestError(f"Invalid test id {test_id!r}", self.manifest_path)

        if spec is None:
            spec = {}
        elif isinstance(spec, str):
            spec = {"kind": spec}
        elif not isinstance(spec, dict):
            raise ManifestError(f"Invalid entry for test '{test_id}'", self.manifest_path)

        try:
            kind = TestKind.parse(str(spec.get("kind", TestKind.PERSISTENT.value)))
        except ValueError as e:
            raise ManifestError(f"Test '{test_id}': {e}", self.manifest_path) from e

        attributes = spec.get("attributes") or {}
        if not isinstance(attributes, dict):
            raise ManifestError(
                f"Test '{test_id}': 'attributes' must be a mapping", self.manifest_path
            )

        return test_id, TestMetadata(
            kind=kind,
            skip=bool(spec.get("skip", False)),
            attributes=attributes,
        )


def load_manifest(path: Path) -> TestUniverse:
    """Convenience function to load a manifest file."""
    return ManifestLoader(Path(path)).load()
