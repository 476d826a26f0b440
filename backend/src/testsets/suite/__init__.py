"""Suite collaborators: manifest loading and test filters."""

from testsets.suite.filter import MissingTestsError, TestFilter
from testsets.suite.loader import ManifestError, ManifestLoader, load_manifest

__all__ = [
    "ManifestError",
    "ManifestLoader",
    "MissingTestsError",
    "TestFilter",
    "load_manifest",
]
