"""
Tests for solver-backed term analyses.
"""
from kinduct.analysis import check_equivalent, is_implied, prune_invariants
from kinduct.system import Property
from kinduct.term import Sort, StateSignature, curr, int_const, nxt, op

SIG = StateSignature.of(("x", Sort.INT), ("y", Sort.INT))


def test_check_equivalent():
    """Test solver-backed equivalence over both state rows."""
    a = op("<", curr("x"), curr("y"))
    b = op("not", op(">=", curr("x"), curr("y")))
    assert check_equivalent(a, b, SIG) is True
    assert check_equivalent(a, op("<=", curr("x"), curr("y")), SIG) is False
    # Two-state terms are compared over both rows
    assert check_equivalent(op("+", nxt("x"), int_const(1)),
                            op("+", int_const(1), nxt("x")), SIG) is True


def test_is_implied():
    """Implication holds from stronger hypotheses only."""
    pos = op(">", curr("x"), int_const(0))
    nonneg = op(">=", curr("x"), int_const(0))
    assert is_implied([pos], nonneg, SIG) is True
    assert is_implied([nonneg], pos, SIG) is False
    assert is_implied([], op("=", curr("x"), curr("x")), SIG) is True


def test_prune_invariants(counter_script):
    """Test that implied candidate invariants are dropped."""
    flat = counter_script.context.flatten("counter")
    candidates = [
        Property("ge0", "counter", op(">=", curr("out"), int_const(0))),
        Property("ge_minus1", "counter", op(">=", curr("out"), int_const(-1))),
        Property("le100", "counter", op("<=", curr("out"), int_const(100))),
    ]
    kept = prune_invariants(flat, candidates)
    assert [p.name for p in kept] == ["ge0", "le100"]


def test_prune_keeps_one_of_equivalent_pair(counter_script):
    """Of two equivalent candidates, the later one survives."""
    flat = counter_script.context.flatten("counter")
    a = Property("a", "counter", op(">=", curr("out"), int_const(0)))
    b = Property("b", "counter", op("not", op("<", curr("out"), int_const(0))))
    kept = prune_invariants(flat, [a, b])
    assert [p.name for p in kept] == ["b"]
