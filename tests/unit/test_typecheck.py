"""
Tests for static sort checking.
"""
import pytest

from kinduct.errors import ArityError, DomainError, SortError, UnresolvedReferenceError
from kinduct.term import (
    Ite, Let, Sort, StateSignature, TypeChecker, Var, assignable, bool_const, coerce_reals, curr,
    expect_sort, int_const, nxt, op, real_const, type_check,
)

SIG = StateSignature.of(("b", Sort.BOOL), ("i", Sort.INT), ("r", Sort.REAL))


def test_basic_sorts():
    """Test sorts of simple terms."""
    assert type_check(curr("b"), SIG) is Sort.BOOL
    assert type_check(op("+", curr("i"), int_const(1)), SIG) is Sort.INT
    assert type_check(op("<", curr("i"), nxt("i")), SIG) is Sort.BOOL


def test_int_real_mixing_promotes_to_real():
    """Mixed Int and Real terms have sort Real."""
    assert type_check(op("+", curr("i"), curr("r")), SIG) is Sort.REAL
    assert type_check(op("=", curr("i"), curr("r")), SIG) is Sort.BOOL
    assert type_check(Ite(curr("b"), curr("i"), real_const(1)), SIG) is Sort.REAL
    assert type_check(op("/", curr("i"), int_const(2)), SIG) is Sort.REAL


def test_bool_compared_to_int_is_rejected():
    """Test that Bool never mixes with a number."""
    term = op("=", curr("b"), curr("i"))
    with pytest.raises(SortError) as exc:
        type_check(term, SIG)
    assert exc.value.term == term


def test_ite_errors():
    """Test ite condition and branch sort errors."""
    with pytest.raises(SortError):
        type_check(Ite(curr("i"), int_const(1), int_const(2)), SIG)
    with pytest.raises(SortError):
        type_check(Ite(curr("b"), curr("b"), int_const(2)), SIG)


def test_div_mod_require_int():
    """div and mod take Int arguments only."""
    with pytest.raises(SortError):
        type_check(op("div", curr("r"), int_const(2)), SIG)
    assert type_check(op("mod", curr("i"), int_const(3)), SIG) is Sort.INT


def test_literal_zero_divisor_is_domain_error():
    """Test that a literal zero divisor is rejected statically."""
    with pytest.raises(DomainError):
        type_check(op("/", curr("r"), real_const(0)), SIG)
    with pytest.raises(DomainError):
        type_check(op("div", curr("i"), op("-", int_const(0))), SIG)
    # Non-literal divisors are left to the solver
    assert type_check(op("div", curr("i"), curr("i")), SIG) is Sort.INT


def test_operator_arity():
    """Test operator argument counts."""
    with pytest.raises(ArityError):
        type_check(op("not", curr("b"), curr("b")), SIG)


def test_undeclared_and_next_references():
    """Test undeclared names and forbidden next-state references."""
    with pytest.raises(UnresolvedReferenceError):
        type_check(curr("nope"), SIG)
    with pytest.raises(SortError):
        type_check(op("=", nxt("i"), curr("i")), SIG, allow_next=False)


def test_let_scoping():
    """Let-bound names are scoped to the body."""
    term = Let((("t", op("+", curr("i"), int_const(1))),), op(">", Var("t"), int_const(0)))
    assert type_check(term, SIG) is Sort.BOOL
    with pytest.raises(UnresolvedReferenceError):
        type_check(op(">", Var("t"), int_const(0)), SIG)


def test_closed_checker_rejects_staged_reference():
    """Test that a closed checker rejects state variables."""
    checker = TypeChecker(None, params={"v": Sort.INT})
    assert checker.check(op("+", Var("v"), int_const(1))) is Sort.INT
    with pytest.raises(UnresolvedReferenceError):
        checker.check(op("+", Var("v"), curr("i")))


def test_expect_sort():
    """Test that expect_sort accepts promotion and rejects mismatches."""
    expect_sort(bool_const(True), Sort.BOOL, SIG)
    with pytest.raises(SortError):
        expect_sort(op("+", curr("i"), int_const(1)), Sort.BOOL, SIG, what="init")


def test_conversions_accept_int_arguments():
    """Test the argument sorts of the conversion operators."""
    assert type_check(op("to_int", curr("i")), SIG) is Sort.INT
    assert type_check(op("is_int", curr("i")), SIG) is Sort.BOOL
    assert type_check(op("to_real", curr("i")), SIG) is Sort.REAL
    with pytest.raises(SortError):
        type_check(op("to_real", curr("r")), SIG)
    with pytest.raises(SortError):
        type_check(op("to_int", curr("b")), SIG)


def test_assignable():
    """Int is assignable to Real, never the reverse."""
    assert assignable(Sort.INT, Sort.REAL)
    assert assignable(Sort.BOOL, Sort.BOOL)
    assert not assignable(Sort.REAL, Sort.INT)
    assert not assignable(Sort.BOOL, Sort.INT)


def test_coerce_reals_makes_promotions_explicit():
    """Test that Int operands meeting Real ones are wrapped in to_real."""
    term, sorts = coerce_reals(op("<", op("/", curr("i"), int_const(2)), curr("i")), SIG)
    assert term == op("<", op("/", op("to_real", curr("i")), real_const(2)),
                      op("to_real", curr("i")))
    assert sorts == {Sort.BOOL, Sort.INT, Sort.REAL}

    term, _ = coerce_reals(Ite(curr("b"), curr("i"), curr("r")), SIG)
    assert term == Ite(curr("b"), op("to_real", curr("i")), curr("r"))

    term, _ = coerce_reals(op("is_int", nxt("i")), SIG)
    assert term == op("is_int", op("to_real", nxt("i")))


def test_coerce_reals_leaves_pure_terms_alone():
    """Terms without mixing are returned unchanged."""
    term = op("and", curr("b"), op("<", curr("i"), op("div", nxt("i"), int_const(2))))
    assert coerce_reals(term, SIG) == (term, frozenset({Sort.BOOL, Sort.INT}))

    let = Let((("n", curr("i")),), op("=", Var("n"), curr("r")))
    rewritten, sorts = coerce_reals(let, SIG)
    assert rewritten == Let((("n", curr("i")),), op("=", op("to_real", Var("n")), curr("r")))
    assert Sort.REAL in sorts

    _, sorts = coerce_reals(op("<", int_const(1), int_const(2)), StateSignature())
    assert sorts == {Sort.BOOL, Sort.INT}
