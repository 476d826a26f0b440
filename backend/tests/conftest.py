"""Shared fixtures for the testsets test suite."""

import pytest

from testsets.core.types import TestKind, TestMetadata, TestUniverse


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep TESTSETS_* variables of the developer's shell out of the tests."""
    for name in (
        "TESTSETS_MANIFEST",
        "TESTSETS_EXPRESSION",
        "TESTSETS_SKIP",
        "TESTSETS_WORKERS",
        "TESTSETS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def simple_universe():
    """The universe {foo, bar, foobar}."""
    return TestUniverse(
        [
            ("foo", TestMetadata()),
            ("bar", TestMetadata()),
            ("foobar", TestMetadata()),
        ]
    )


@pytest.fixture
def suite_universe():
    """A small suite mixing kinds, skips and extension attributes."""
    return TestUniverse(
        {
            "features/align": TestMetadata(TestKind.PERSISTENT),
            "features/grid": TestMetadata(TestKind.EPHEMERAL, attributes={"slow": True}),
            "features/grid/nested": TestMetadata(TestKind.COMPILE_ONLY),
            "regressions/issue-12": TestMetadata(TestKind.PERSISTENT, skip=True),
            "regressions/issue-40": TestMetadata(
                TestKind.EPHEMERAL, attributes={"slow": False, "flaky": "yes"}
            ),
            "smoke": TestMetadata(TestKind.COMPILE_ONLY, skip=True),
        }
    )
