"""Core data model: test ids, metadata, universes and test sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Iterable, Iterator, Mapping

TestId = str


class TestKind(Enum):
    """How a test is checked."""

    __test__ = False

    PERSISTENT = "persistent"
    EPHEMERAL = "ephemeral"
    COMPILE_ONLY = "compile-only"

    @classmethod
    def parse(cls, value: str) -> TestKind:
        """Parse a kind name, accepting `_` in place of `-`."""
        normalized = value.strip().lower().replace("_", "-")
        for kind in cls:
            if kind.value == normalized:
                return kind
        raise ValueError(
            f"Unknown test kind '{value}'. Expected one of: "
            + ", ".join(k.value for k in cls)
        )


@dataclass(frozen=True)
class TestMetadata:
    """Externally supplied attributes of a single test.

    Attributes:
        kind: How the test is checked
        skip: Whether the test is marked as skipped
        attributes: Extension attributes, consulted by registry functions
    """

    __test__ = False

    kind: TestKind = TestKind.PERSISTENT
    skip: bool = False
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))


class TestSet:
    """A deduplicated, sorted collection of test ids.

    Behaves like a mathematical set with deterministic iteration order.
    """

    __test__ = False
    __slots__ = ("_ids", "_members")

    def __init__(self, ids: Iterable[TestId] = ()):
        self._members = frozenset(ids)
        self._ids = tuple(sorted(self._members))

    @classmethod
    def empty(cls) -> TestSet:
        return cls()

    def __iter__(self) -> Iterator[TestId]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, test_id: object) -> bool:
        return test_id in self._members

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TestSet):
            return NotImplemented
        return self._ids == other._ids

    def __hash__(self) -> int:
        return hash(self._ids)

    def __repr__(self) -> str:
        return f"TestSet({list(self._ids)!r})"

    def union(self, other: TestSet) -> TestSet:
        return TestSet(self._members | other._members)

    def intersection(self, other: TestSet) -> TestSet:
        return TestSet(self._members & other._members)

    def difference(self, other: TestSet) -> TestSet:
        return TestSet(self._members - other._members)

    def symmetric_difference(self, other: TestSet) -> TestSet:
        return TestSet(self._members ^ other._members)

    __or__ = union
    __and__ = intersection
    __sub__ = difference
    __xor__ = symmetric_difference

    def to_list(self) -> list[TestId]:
        return list(self._ids)


class TestUniverse:
    """Immutable snapshot of every known test and its metadata.

    Usage:
        universe = TestUniverse([
            ("features/a", TestMetadata(TestKind.PERSISTENT)),
            ("features/b", TestMetadata(TestKind.EPHEMERAL, skip=True)),
        ])
        universe.filter(lambda test_id, meta: meta.skip)
    """

    __test__ = False

    def __init__(
        self,
        entries: Mapping[TestId, TestMetadata]
        | Iterable[tuple[TestId, TestMetadata]] = (),
    ):
        items = entries.items() if isinstance(entries, Mapping) else entries
        tests: dict[TestId, TestMetadata] = {}
        for test_id, metadata in items:
            if test_id in tests:
                raise ValueError(f"Duplicate test id '{test_id}'")
            tests[test_id] = metadata

        self._tests = MappingProxyType(tests)
        self._ids = tuple(sorted(tests))
        self._all = TestSet(self._ids)

    @property
    def ids(self) -> tuple[TestId, ...]:
        """All test ids in sorted order."""
        return self._ids

    def __iter__(self) -> Iterator[TestId]:
        return iter(self._ids)

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, test_id: object) -> bool:
        return test_id in self._tests

    def get(self, test_id: TestId) -> TestMetadata | None:
        return self._tests.get(test_id)

    def items(self) -> Iterator[tuple[TestId, TestMetadata]]:
        """Iterate (id, metadata) pairs in id order."""
        for test_id in self._ids:
            yield test_id, self._tests[test_id]

    def all(self) -> TestSet:
        return self._all

    def none(self) -> TestSet:
        return TestSet.empty()

    def filter(self, predicate: Callable[[TestId, TestMetadata], bool]) -> TestSet:
        """Return the tests for which ``predicate(id, metadata)`` holds."""
        return TestSet(test_id for test_id, meta in self.items() if predicate(test_id, meta))

    def restrict(self, ids: Iterable[TestId]) -> TestSet:
        """Return the given ids that are part of this universe."""
        return TestSet(test_id for test_id in ids if test_id in self._tests)

    def complement(self, tests: TestSet) -> TestSet:
        """Return every test of the universe not contained in ``tests``."""
        return TestSet(test_id for test_id in self._ids if test_id not in tests)
