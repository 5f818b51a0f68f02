"""
Symbolic terms: representation, substitution, macro inlining, sort checking
and evaluation.
"""

from .sorts import Sort, Variable, StateSignature
from .state import State, Offsets, StateRows
from .terms import (
    Term, Const, Var, Op, Ite, Let, App,
    TRUE, FALSE, bool_const, int_const, real_const, curr, nxt, op,
    conjunction, negate,
)
from .substitute import substitute, bump, free_locals, staged_variables, has_next
from .macros import Macro, inline_macros, MAX_INLINE_DEPTH
from .typecheck import TypeChecker, RealCoercion, type_check, expect_sort, assignable, coerce_reals
from .evaluate import evaluate
from .printer import to_sexpr, quote_symbol, format_value

__all__ = [
    "Sort",
    "Variable",
    "StateSignature",
    "State",
    "Offsets",
    "StateRows",
    "Term",
    "Const",
    "Var",
    "Op",
    "Ite",
    "Let",
    "App",
    "TRUE",
    "FALSE",
    "bool_const",
    "int_const",
    "real_const",
    "curr",
    "nxt",
    "op",
    "conjunction",
    "negate",
    "substitute",
    "bump",
    "free_locals",
    "staged_variables",
    "has_next",
    "Macro",
    "inline_macros",
    "MAX_INLINE_DEPTH",
    "TypeChecker",
    "RealCoercion",
    "type_check",
    "expect_sort",
    "assignable",
    "coerce_reals",
    "evaluate",
    "to_sexpr",
    "quote_symbol",
    "format_value",
]
