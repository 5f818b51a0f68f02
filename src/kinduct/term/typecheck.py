"""
Static sort checking for terms.
"""
from fractions import Fraction
from typing import Dict, FrozenSet, List, Mapping, Optional, Set, Tuple

from ..errors import ArityError, DomainError, SortError, UnboundMacroError, UnresolvedReferenceError
from .sorts import Sort, StateSignature
from .state import State
from .terms import (
    ARITH_OPS, BOOL_OPS, COMPARISON_OPS, EQUALITY_OPS, OPERATORS,
    App, Const, Ite, Let, Op, Term, Var, real_const,
)


class TypeChecker:
    """Derives the sort of a term against a state signature.

    Int and Real mix in arithmetic, comparisons, equalities and ite branches;
    the result is Real. An Int is accepted wherever a Real is expected. Every
    other mismatch is a SortError.

    Args:
        signature: Signature staged references resolve against; None means no
                   staged reference is allowed (closed macro bodies)
        allow_next: Whether `(_ next x)` references are permitted
        params: Sorts of local names in scope at the root (macro parameters)
        macros: Macro table used to sort remaining applications
    """
    def __init__(self, signature: Optional[StateSignature], allow_next: bool = True,
                 params: Optional[Mapping[str, Sort]] = None,
                 macros: Optional[Mapping] = None):
        self.signature = signature
        self.allow_next = allow_next
        self.params = dict(params or {})
        self.macros = macros or {}

    def check(self, term: Term) -> Sort:
        return self._check(term, self.params)

    def _check(self, term: Term, env: Dict[str, Sort]) -> Sort:
        if isinstance(term, Const):
            return term.sort
        if isinstance(term, Var):
            return self._check_var(term, env)
        if isinstance(term, Op):
            return self._check_op(term, env)
        if isinstance(term, Ite):
            return self._check_ite(term, env)
        if isinstance(term, Let):
            inner = dict(env)
            for name, value in term.bindings:
                inner[name] = self._check(value, env)
            return self._check(term.body, inner)
        if isinstance(term, App):
            return self._check_app(term, env)
        raise TypeError(f"Not a term: {term!r}")

    def _check_var(self, var: Var, env: Dict[str, Sort]) -> Sort:
        if not var.is_staged:
            if var.name not in env:
                raise UnresolvedReferenceError(
                    f"Unbound local name '{var.name}'", name=var.name)
            return env[var.name]

        if self.signature is None:
            raise UnresolvedReferenceError(
                f"State variable '{var.name}' referenced outside of a system",
                name=var.name)
        sort = self.signature.sort_of(var.name)
        if sort is None:
            raise UnresolvedReferenceError(
                f"Undeclared state variable '{var.name}'", name=var.name)
        if var.state is State.NEXT and not self.allow_next:
            raise SortError(
                f"next-state reference to '{var.name}' in a one-state formula", var)
        return sort

    def _check_op(self, term: Op, env: Dict[str, Sort]) -> Sort:
        self._check_arity(term)
        return self._op_sort(term, [self._check(arg, env) for arg in term.args])

    def _check_arity(self, term: Op):
        if term.op not in OPERATORS:
            raise SortError(f"Unknown operator '{term.op}'", term)
        lo, hi = OPERATORS[term.op]
        n = len(term.args)
        if n < lo or (hi is not None and n > hi):
            raise ArityError(f"'{term.op}' applied to {n} argument(s)", term)

    def _op_sort(self, term: Op, sorts: List[Sort]) -> Sort:
        if term.op in BOOL_OPS:
            self._expect_all(term, sorts, Sort.BOOL)
            return Sort.BOOL

        if term.op in EQUALITY_OPS:
            if all(s.is_arith for s in sorts) or len(set(sorts)) == 1:
                return Sort.BOOL
            raise SortError(
                f"'{term.op}' over mixed sorts {', '.join(map(str, sorts))}", term)

        if term.op in COMPARISON_OPS:
            self._expect_arith(term, sorts)
            return Sort.BOOL

        if term.op in ARITH_OPS:
            self._expect_arith(term, sorts)
            if term.op in ("div", "mod"):
                self._expect_all(term, sorts, Sort.INT)
                self._check_divisors(term)
                return Sort.INT
            if term.op == "/":
                self._check_divisors(term)
                return Sort.REAL
            return Sort.REAL if Sort.REAL in sorts else Sort.INT

        if term.op == "to_real":
            self._expect_all(term, sorts, Sort.INT)
            return Sort.REAL
        if term.op == "to_int":
            self._expect_arith(term, sorts)
            return Sort.INT
        if term.op == "is_int":
            self._expect_arith(term, sorts)
            return Sort.BOOL

        raise SortError(f"Unhandled operator '{term.op}'", term)

    def _check_ite(self, term: Ite, env: Dict[str, Sort]) -> Sort:
        cond = self._check(term.cond, env)
        return self._ite_sort(term, cond, self._check(term.then, env),
                              self._check(term.else_, env))

    def _ite_sort(self, term: Ite, cond: Sort, then: Sort, else_: Sort) -> Sort:
        if cond is not Sort.BOOL:
            raise SortError(f"ite condition has sort {cond}, expected Bool", term.cond)
        if then is else_:
            return then
        if then.is_arith and else_.is_arith:
            return Sort.REAL
        raise SortError(f"ite branches have sorts {then} and {else_}", term)

    def _check_app(self, term: App, env: Dict[str, Sort]) -> Sort:
        macro = self.macros.get(term.name)
        if macro is None:
            raise UnboundMacroError(f"Undefined function '{term.name}'", name=term.name)
        if len(term.args) != len(macro.params):
            raise ArityError(
                f"'{term.name}' expects {len(macro.params)} argument(s), got {len(term.args)}",
                term)
        for param, arg in zip(macro.params, term.args):
            sort = self._check(arg, env)
            if not assignable(sort, param.sort):
                raise SortError(
                    f"argument '{param.name}' of '{term.name}' has sort {sort}, "
                    f"expected {param.sort}", arg)
        return macro.sort

    def _expect_all(self, term: Op, sorts, expected: Sort):
        for arg, sort in zip(term.args, sorts):
            if sort is not expected:
                raise SortError(
                    f"'{term.op}' expects {expected} arguments, got {sort}", arg)

    def _expect_arith(self, term: Op, sorts):
        for arg, sort in zip(term.args, sorts):
            if not sort.is_arith:
                raise SortError(
                    f"'{term.op}' expects arithmetic arguments, got {sort}", arg)

    def _check_divisors(self, term: Op):
        for divisor in term.args[1:]:
            if is_literal_zero(divisor):
                raise DomainError(f"division by zero in '{term.op}'", term)


def assignable(actual: Sort, expected: Sort) -> bool:
    return actual is expected or (actual is Sort.INT and expected is Sort.REAL)


def is_literal_zero(term: Term) -> bool:
    """True for numerals equal to zero, possibly negated or converted."""
    if isinstance(term, Const):
        return term.sort.is_arith and Fraction(term.value) == 0
    if isinstance(term, Op) and term.op in ("-", "to_real") and len(term.args) == 1:
        return is_literal_zero(term.args[0])
    return False


def type_check(term: Term, signature: Optional[StateSignature],
               allow_next: bool = True) -> Sort:
    """Return the sort of `term` or raise SortError / UnresolvedReferenceError."""
    return TypeChecker(signature, allow_next=allow_next).check(term)


def expect_sort(term: Term, expected: Sort, signature: Optional[StateSignature],
                allow_next: bool = True, what: str = "formula") -> None:
    """Type-check `term` and require it to have sort `expected`."""
    sort = type_check(term, signature, allow_next=allow_next)
    if not assignable(sort, expected):
        raise SortError(f"{what} has sort {sort}, expected {expected}", term)


class RealCoercion(TypeChecker):
    """Rewrites a term so that Int operands never meet Real ones.

    SMT-LIB keeps Int and Real apart: every Int operand of a mixed operator or
    ite, and every Int operand of `/`, `to_int` and `is_int`, is wrapped in
    `to_real` (Int numerals become Real numerals). `sorts` collects the sort
    of every subterm rewritten so far.
    """

    def __init__(self, signature: Optional[StateSignature], allow_next: bool = True):
        super().__init__(signature, allow_next=allow_next)
        self.sorts: Set[Sort] = set()

    def rewrite(self, term: Term) -> Term:
        return self._rewrite(term, dict(self.params))[0]

    def _rewrite(self, term: Term, env: Dict[str, Sort]) -> Tuple[Term, Sort]:
        if isinstance(term, Op):
            self._check_arity(term)
            args, sorts = self._rewrite_all(term.args, env)
            if _needs_real(term.op, sorts):
                args = [_promote(a) if s is Sort.INT else a for a, s in zip(args, sorts)]
                sorts = [Sort.REAL if s is Sort.INT else s for s in sorts]
                self.sorts.add(Sort.REAL)
            term = Op(term.op, tuple(args))
            sort = self._op_sort(term, sorts)
        elif isinstance(term, Ite):
            (cond, then, else_), (c, t, e) = self._rewrite_all(
                (term.cond, term.then, term.else_), env)
            sort = self._ite_sort(term, c, t, e)
            if t is not e:
                then = _promote(then) if t is Sort.INT else then
                else_ = _promote(else_) if e is Sort.INT else else_
            term = Ite(cond, then, else_)
        elif isinstance(term, Let):
            inner = dict(env)
            bindings = []
            for name, value in term.bindings:
                value, inner[name] = self._rewrite(value, env)
                bindings.append((name, value))
            body, sort = self._rewrite(term.body, inner)
            term = Let(tuple(bindings), body)
        else:
            sort = self._check(term, env)
        self.sorts.add(sort)
        return term, sort

    def _rewrite_all(self, terms, env: Dict[str, Sort]) -> Tuple[List[Term], List[Sort]]:
        pairs = [self._rewrite(t, env) for t in terms]
        return [t for t, _ in pairs], [s for _, s in pairs]


def _needs_real(name: str, sorts: List[Sort]) -> bool:
    if Sort.INT not in sorts or name in ("to_real", "div", "mod"):
        return False
    if name in ("/", "to_int", "is_int"):
        return True
    return Sort.REAL in sorts


def _promote(term: Term) -> Term:
    if isinstance(term, Const) and term.sort is Sort.INT:
        return real_const(term.value)
    return Op("to_real", (term,))


def coerce_reals(term: Term, signature: Optional[StateSignature],
                 allow_next: bool = True) -> Tuple[Term, FrozenSet[Sort]]:
    """Make Int/Real conversions explicit in `term`.

    Returns:
        The rewritten term and the sorts of all of its subterms
    """
    coercion = RealCoercion(signature, allow_next=allow_next)
    rewritten = coercion.rewrite(term)
    return rewritten, frozenset(coercion.sorts)
