"""Data model shared by the expression language and the suite layer."""

from testsets.core.types import TestId, TestKind, TestMetadata, TestSet, TestUniverse

__all__ = [
    "TestId",
    "TestKind",
    "TestMetadata",
    "TestSet",
    "TestUniverse",
]
