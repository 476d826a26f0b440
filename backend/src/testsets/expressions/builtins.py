"""Built-in functions for the test-set expression language.

This module registers the built-in named sets and functions with a
FunctionRegistry. Use ``get_default_registry()`` for the process-wide
registry, or ``register_all_builtins(registry)`` to populate your own.

Categories:
- Set: all, none, skip
- Kind: persistent, ephemeral, compile-only
- Attribute: custom
"""

import threading
from typing import Iterable

from testsets.core.types import TestId, TestKind, TestMetadata
from testsets.expressions.functions import (
    EvaluationContext,
    FunctionCategory,
    FunctionDefinition,
    FunctionParameter,
    FunctionRegistry,
    ParamKind,
)

_default_registry: FunctionRegistry | None = None
_default_lock = threading.Lock()


def get_default_registry() -> FunctionRegistry:
    """Process-wide registry with all built-ins registered."""
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                registry = FunctionRegistry()
                register_all_builtins(registry)
                _default_registry = registry
    return _default_registry


def register_all_builtins(registry: FunctionRegistry) -> None:
    """Register all built-in functions with the given registry."""
    _register_set_functions(registry)
    _register_kind_functions(registry)
    _register_attribute_functions(registry)


# -----------------------------------------------------------------------------
# Set Functions
# -----------------------------------------------------------------------------


def _all(ctx: EvaluationContext) -> Iterable[TestId]:
    return ctx.universe.all()


def _none(ctx: EvaluationContext) -> Iterable[TestId]:
    return ctx.universe.none()


def _skip(ctx: EvaluationContext) -> Iterable[TestId]:
    return ctx.universe.filter(lambda _, meta: meta.skip)


def _register_set_functions(registry: FunctionRegistry) -> None:
    registry.register(
        FunctionDefinition(
            name="all",
            description="Every test in the suite",
            parameters=[],
            implementation=_all,
            category=FunctionCategory.SET,
            examples=["all()", "all ~ skip"],
        )
    )

    registry.register(
        FunctionDefinition(
            name="none",
            description="The empty set",
            parameters=[],
            implementation=_none,
            category=FunctionCategory.SET,
            examples=["none()"],
        )
    )

    registry.register(
        FunctionDefinition(
            name="skip",
            description="Tests marked as skipped",
            parameters=[],
            implementation=_skip,
            category=FunctionCategory.SET,
            examples=["all() ~ skip()"],
        )
    )


# -----------------------------------------------------------------------------
# Kind Functions
# -----------------------------------------------------------------------------


def _of_kind(kind: TestKind):
    def select(ctx: EvaluationContext) -> Iterable[TestId]:
        return ctx.universe.filter(lambda _, meta: meta.kind is kind)

    return select


def _register_kind_functions(registry: FunctionRegistry) -> None:
    descriptions = {
        TestKind.PERSISTENT: "Tests compared against stored reference images",
        TestKind.EPHEMERAL: "Tests compared against a freshly compiled reference document",
        TestKind.COMPILE_ONLY: "Tests that are only compiled, never compared",
    }

    for kind, description in descriptions.items():
        registry.register(
            FunctionDefinition(
                name=kind.value,
                description=description,
                parameters=[],
                implementation=_of_kind(kind),
                category=FunctionCategory.KIND,
                examples=[f"{kind.value}()", f"glob:features/* and {kind.value}"],
            )
        )


# -----------------------------------------------------------------------------
# Attribute Functions
# -----------------------------------------------------------------------------


def _has_attribute(key: str):
    def predicate(_: TestId, meta: TestMetadata) -> bool:
        return bool(meta.attributes.get(key))

    return predicate


def _custom(ctx: EvaluationContext, key: str) -> Iterable[TestId]:
    """Tests whose extension attribute ``key`` is set to a truthy value."""
    return ctx.universe.filter(_has_attribute(key))


def _register_attribute_functions(registry: FunctionRegistry) -> None:
    registry.register(
        FunctionDefinition(
            name="custom",
            description="Tests whose extension attribute is set",
            parameters=[
                FunctionParameter("key", ParamKind.STRING, "The attribute name"),
            ],
            implementation=_custom,
            category=FunctionCategory.ATTRIBUTE,
            examples=['custom("slow")', 'all ~ custom("flaky")'],
        )
    )
