"""Function registry for the test-set expression language.

Functions are callable from expressions (e.g. `custom("slow")`), and
functions without parameters double as named sets usable as bare
identifiers (e.g. `skip`, `all()`). Each function is registered with
metadata describing its parameters so the evaluator can check arity and
argument kinds before calling it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterable

from testsets.core.types import TestId, TestSet, TestUniverse
from testsets.expressions.errors import UnknownFunctionError


class FunctionCategory(Enum):
    """Categories for organizing functions in documentation."""

    SET = "set"          # Named sets, no parameters
    KIND = "kind"        # Per-kind predicates
    ATTRIBUTE = "attribute"


class ParamKind(Enum):
    """Kinds of values a parameter accepts."""

    SET = "set"
    STRING = "string"
    NUMBER = "number"

    def accepts(self, value: Any) -> bool:
        if self is ParamKind.SET:
            return isinstance(value, TestSet)
        if self is ParamKind.STRING:
            return isinstance(value, str)
        return isinstance(value, int) and not isinstance(value, bool)


@dataclass
class FunctionParameter:
    """Definition of a function parameter.

    Attributes:
        name: Parameter name
        kind: Kind of value accepted
        description: Human-readable description
        variadic: If True, this (last) parameter accepts any number of values
    """

    name: str
    kind: ParamKind
    description: str = ""
    variadic: bool = False


@dataclass
class EvaluationContext:
    """What a function implementation may consult."""

    universe: TestUniverse


FunctionImpl = Callable[..., Iterable[TestId]]


@dataclass
class FunctionDefinition:
    """Complete definition of an expression function.

    Attributes:
        name: Function name as used in expressions
        description: Human-readable description
        parameters: List of parameter definitions
        implementation: ``impl(context, *args)`` returning the selected test ids
        category: Category for documentation organization
        examples: Example expressions using this function
    """

    name: str
    description: str
    parameters: list[FunctionParameter]
    implementation: FunctionImpl
    category: FunctionCategory = FunctionCategory.SET
    examples: list[str] = field(default_factory=list)

    @property
    def variadic(self) -> bool:
        return bool(self.parameters) and self.parameters[-1].variadic

    @property
    def min_args(self) -> int:
        return len(self.parameters) - 1 if self.variadic else len(self.parameters)

    @property
    def is_named_set(self) -> bool:
        """Whether the function can be used as a bare identifier."""
        return self.min_args == 0 and not self.variadic

    def accepts_count(self, count: int) -> bool:
        if self.variadic:
            return count >= self.min_args
        return count == len(self.parameters)

    def parameter_for(self, index: int) -> FunctionParameter:
        """Parameter receiving the argument at ``index``."""
        if index >= len(self.parameters):
            return self.parameters[-1]
        return self.parameters[index]

    def to_dict(self) -> dict[str, Any]:
        """Export for documentation output."""
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "parameters": [
                {
                    "name": p.name,
                    "kind": p.kind.value,
                    "description": p.description,
                    "variadic": p.variadic,
                }
                for p in self.parameters
            ],
            "namedSet": self.is_named_set,
            "examples": self.examples,
        }


class FunctionRegistry:
    """Registry mapping names to set-producing functions.

    Example:
        registry = FunctionRegistry()
        registry.register(FunctionDefinition(
            name="skip",
            description="Tests marked as skipped",
            parameters=[],
            implementation=lambda ctx: ctx.universe.filter(lambda _, m: m.skip),
        ))

        registry.get("skip").implementation(ctx)
    """

    def __init__(self) -> None:
        self._functions: dict[str, FunctionDefinition] = {}

    def register(self, func_def: FunctionDefinition) -> None:
        """Register a function definition, replacing any previous one.

        Args:
            func_def: Complete function definition with implementation
        """
        self._functions[func_def.name] = func_def

    def get(self, name: str) -> FunctionDefinition:
        """Get a function definition by name.

        Raises:
            UnknownFunctionError: If function is not registered
        """
        if name not in self._functions:
            raise UnknownFunctionError(name)
        return self._functions[name]

    def is_registered(self, name: str) -> bool:
        """Check if a function is registered."""
        return name in self._functions

    def __contains__(self, name: object) -> bool:
        return name in self._functions

    def __len__(self) -> int:
        return len(self._functions)

    def list_all(self) -> list[FunctionDefinition]:
        """List all registered functions, sorted by name."""
        return [self._functions[name] for name in sorted(self._functions)]

    def list_named_sets(self) -> list[FunctionDefinition]:
        """List functions usable as bare identifiers."""
        return [f for f in self.list_all() if f.is_named_set]

    def export_documentation(self) -> dict[str, Any]:
        """Export the full registry for documentation output.

        Returns:
            Dict with all function definitions organized by category
        """
        by_category: dict[str, list[dict[str, Any]]] = {}
        for func_def in self.list_all():
            by_category.setdefault(func_def.category.value, []).append(func_def.to_dict())

        return {
            "functions": {f.name: f.to_dict() for f in self.list_all()},
            "byCategory": by_category,
            "namedSets": [f.name for f in self.list_named_sets()],
        }

    def copy(self) -> FunctionRegistry:
        """Independent registry with the same entries."""
        registry = FunctionRegistry()
        registry._functions.update(self._functions)
        return registry

    def clear(self) -> None:
        """Clear all registrations. Primarily for testing."""
        self._functions.clear()
