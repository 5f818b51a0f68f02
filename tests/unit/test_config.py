"""
Tests for engine configuration.
"""
import pytest

from kinduct.config import EngineConfig
from kinduct.solver import ExternalSolver, Z3Solver, make_solver


def test_defaults():
    """Test the built-in configuration defaults."""
    config = EngineConfig.from_env({})
    assert config == EngineConfig()
    assert config.max_depth == 20
    assert config.timeout_ms is None
    assert config.timeout_s is None
    assert config.solver == "z3"


def test_from_env_overrides():
    """Every KINDUCT_* key overrides its field."""
    config = EngineConfig.from_env({
        "KINDUCT_MAX_DEPTH": "7",
        "KINDUCT_TIMEOUT_MS": "1500",
        "KINDUCT_SMT_SOLVER": "cvc5",
        "KINDUCT_MAX_WORKERS": "2",
        "KINDUCT_UNRELATED": "x",
    })
    assert config == EngineConfig(max_depth=7, timeout_ms=1500, solver="cvc5", max_workers=2)
    assert config.timeout_s == 1.5


def test_from_env_rejects_garbage():
    """Test that malformed integers name the offending variable."""
    with pytest.raises(ValueError) as exc:
        EngineConfig.from_env({"KINDUCT_MAX_DEPTH": "deep"})
    assert "KINDUCT_MAX_DEPTH" in str(exc.value)


@pytest.mark.parametrize("kwargs", [
    {"max_depth": -1},
    {"timeout_ms": 0},
    {"max_workers": 0},
])
def test_validation(kwargs):
    """Out-of-range values are rejected at construction."""
    with pytest.raises(ValueError):
        EngineConfig(**kwargs)


def test_with_overrides_keeps_other_fields():
    """Test that overrides copy untouched fields."""
    config = EngineConfig(max_depth=3, timeout_ms=100)
    changed = config.with_overrides(max_depth=9)
    assert changed.max_depth == 9
    assert changed.timeout_ms == 100
    assert config.max_depth == 3


def test_make_solver_selects_backend():
    """The solver name selects in-process or external sessions."""
    assert isinstance(make_solver(EngineConfig()), Z3Solver)
    external = make_solver(EngineConfig(solver="z3-smt2", timeout_ms=250))
    assert isinstance(external, ExternalSolver)
    assert external.spec.argv == ("z3", "-smt2")
    assert external.timeout_ms == 250


def test_invariant_generation_flag():
    """Test the KINDUCT_INVGEN boolean override."""
    assert EngineConfig().generate_invariants is False
    assert EngineConfig.from_env({"KINDUCT_INVGEN": "1"}).generate_invariants is True
    assert EngineConfig.from_env({"KINDUCT_INVGEN": "off"}).generate_invariants is False
    with pytest.raises(ValueError) as exc:
        EngineConfig.from_env({"KINDUCT_INVGEN": "maybe"})
    assert "KINDUCT_INVGEN" in str(exc.value)
