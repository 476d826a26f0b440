"""Test-set expression language.

This module provides:
- Scanner: Tokenizes expression strings, including quoted and raw pattern literals
- Parser: Produces a flat parse tree from tokens
- AstBuilder: Re-associates the parse tree by operator precedence
- PatternCache / compile_pattern: Exact, glob and regex matchers
- FunctionRegistry: Named sets and functions
- Evaluator: Evaluates an AST against a test universe
"""

from testsets.expressions.builder import (
    AstBuilder,
    BinaryOp,
    FunctionCall,
    Identifier,
    Literal,
    Node,
    Not,
    Pattern,
    SetOp,
    parse,
)
from testsets.expressions.builtins import get_default_registry, register_all_builtins
from testsets.expressions.errors import (
    ArgumentKindError,
    ArityError,
    EscapeError,
    EvaluationError,
    GlobCompileError,
    ParseError,
    PatternCompileError,
    RegexCompileError,
    ResolutionError,
    TestSetError,
    UnknownFunctionError,
    UnknownIdentifierError,
    UnterminatedLiteralError,
)
from testsets.expressions.evaluator import Evaluator, evaluate
from testsets.expressions.functions import (
    EvaluationContext,
    FunctionCategory,
    FunctionDefinition,
    FunctionParameter,
    FunctionRegistry,
    ParamKind,
)
from testsets.expressions.parser import ExprChain, Parser, parse_tree
from testsets.expressions.patterns import (
    CompiledPattern,
    PatternCache,
    PatternKind,
    compile_pattern,
)
from testsets.expressions.scanner import Scanner, Token, TokenType

__all__ = [
    # Builder
    "AstBuilder",
    "BinaryOp",
    "FunctionCall",
    "Identifier",
    "Literal",
    "Node",
    "Not",
    "Pattern",
    "SetOp",
    "parse",
    # Built-ins
    "get_default_registry",
    "register_all_builtins",
    # Errors
    "ArgumentKindError",
    "ArityError",
    "EscapeError",
    "EvaluationError",
    "GlobCompileError",
    "ParseError",
    "PatternCompileError",
    "RegexCompileError",
    "ResolutionError",
    "TestSetError",
    "UnknownFunctionError",
    "UnknownIdentifierError",
    "UnterminatedLiteralError",
    # Evaluator
    "Evaluator",
    "evaluate",
    # Functions
    "EvaluationContext",
    "FunctionCategory",
    "FunctionDefinition",
    "FunctionParameter",
    "FunctionRegistry",
    "ParamKind",
    # Parser
    "ExprChain",
    "Parser",
    "parse_tree",
    # Patterns
    "CompiledPattern",
    "PatternCache",
    "PatternKind",
    "compile_pattern",
    # Scanner
    "Scanner",
    "Token",
    "TokenType",
]
