"""
Tests for Z3 solver backend.
"""
from fractions import Fraction

import pytest
import z3

from kinduct.errors import SolverError
from kinduct.solver import SolverResult, Z3Solver
from kinduct.term import Ite, Offsets, Sort, StateSignature, curr, int_const, nxt, op, real_const

SIG = StateSignature.of(("b", Sort.BOOL), ("x", Sort.INT), ("r", Sort.REAL))


def _solver(*offsets):
    solver = Z3Solver()
    for i in offsets:
        solver.declare_state(SIG, i)
    return solver


def test_z3_solver_unsat():
    """Test that Z3 correctly identifies unsatisfiable constraints."""
    solver = _solver(0)
    solver.assert_formula(op(">", curr("x"), int_const(10)), Offsets.at(0))
    solver.assert_formula(op("<", curr("x"), int_const(5)), Offsets.at(0))

    result = solver.check_sat()

    assert result.is_unsat
    assert result.result == SolverResult.UNSAT
    assert result.solver_name == "z3"


def test_z3_solver_sat_model_over_offsets():
    """Model values are keyed by (name, unrolling index)."""
    solver = _solver(0, 1)
    solver.assert_formula(op("=", curr("x"), int_const(3)), Offsets.at(0))
    solver.assert_formula(op("=", nxt("x"), op("+", curr("x"), int_const(1))), Offsets.at(0))

    result = solver.check_sat()
    assert result.is_sat

    model = solver.get_model()
    assert model[("x", 0)] == 3
    assert model[("x", 1)] == 4
    # Unconstrained variables are completed
    assert isinstance(model[("b", 1)], bool)


def test_z3_solver_exact_reals():
    """Real model values are exact fractions."""
    solver = _solver(0)
    solver.assert_formula(op("=", op("*", curr("r"), real_const(3)), real_const(1)),
                          Offsets.at(0))
    assert solver.check_sat().is_sat
    assert solver.get_model()[("r", 0)] == Fraction(1, 3)


def test_z3_solver_evaluate():
    """Test evaluating terms in the current model."""
    solver = _solver(0, 1)
    solver.assert_formula(op("=", curr("x"), int_const(-7)), Offsets.at(0))
    solver.assert_formula(curr("b"), Offsets.at(0))
    assert solver.check_sat().is_sat

    assert solver.evaluate(op("div", curr("x"), int_const(2)), Offsets.at(0)) == -4
    assert solver.evaluate(op("mod", curr("x"), int_const(2)), Offsets.at(0)) == 1
    assert solver.evaluate(Ite(curr("b"), int_const(1), int_const(2)), Offsets.at(0)) == 1
    assert solver.evaluate(op("abs", curr("x")), Offsets.at(0)) == 7


def test_z3_solver_push_pop():
    """Test that popping a scope removes its assertions."""
    solver = _solver(0)
    solver.assert_formula(op(">=", curr("x"), int_const(0)), Offsets.at(0))

    solver.push()
    solver.assert_formula(op("<", curr("x"), int_const(0)), Offsets.at(0))
    assert solver.check_sat().is_unsat
    solver.pop()

    assert solver.check_sat().is_sat


def test_z3_solver_scope_and_model_errors():
    """Test session misuse errors."""
    solver = _solver(0)
    with pytest.raises(SolverError):
        solver.pop()

    solver.assert_formula(op("<", curr("x"), curr("x")), Offsets.at(0))
    assert solver.check_sat().is_unsat
    with pytest.raises(SolverError):
        solver.get_model()


def test_z3_solver_undeclared_offset():
    """Asserting at an undeclared index is an error."""
    solver = _solver(0)
    with pytest.raises(SolverError):
        solver.assert_formula(op("=", nxt("x"), curr("x")), Offsets.at(0))


def test_z3_solver_reset():
    """Test that reset clears declarations and assertions."""
    solver = _solver(0)
    solver.assert_formula(op("<", curr("x"), curr("x")), Offsets.at(0))
    assert solver.check_sat().is_unsat

    solver.reset()
    solver.declare_state(SIG, 0)
    assert solver.check_sat().is_sat


def test_z3_solver_timeout_is_configured():
    """Test a session created with a timeout."""
    solver = Z3Solver(timeout_ms=5000)
    solver.declare_state(SIG, 0)
    result = solver.check_sat()
    assert result.is_sat
    assert "sat" in str(result)


class _CanceledSolver:
    """Stands in for z3.Solver and reports Z3's "canceled" unknown."""

    def check(self):
        return z3.unknown

    def reason_unknown(self):
        return "canceled"


def test_z3_solver_canceled_with_timeout_is_timeout():
    """Z3's "canceled" after a configured timeout is reported as a timeout."""
    solver = Z3Solver(timeout_ms=10)
    solver.solver = _CanceledSolver()

    result = solver.check_sat()
    assert result.is_unknown
    assert result.reason == "timeout"


def test_z3_solver_interrupt_reports_cancelled():
    """An interrupted session reports cancellation instead of a timeout."""
    solver = Z3Solver(timeout_ms=10)
    solver.solver = _CanceledSolver()
    solver.interrupt()

    result = solver.check_sat()
    assert result.is_unknown
    assert result.reason == "cancelled"


def test_z3_solver_interrupt_before_check():
    """A session interrupted before check_sat never starts the search."""
    solver = _solver(0)
    solver.interrupt()
    assert solver.check_sat().reason == "cancelled"

    solver.reset()
    solver.declare_state(SIG, 0)
    assert solver.check_sat().reason == "cancelled"
