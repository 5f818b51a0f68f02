"""
Tests for bounded model checking.
"""
from kinduct.verification import BoundedModelChecker, EngineState, Unknown, Violated, run_bmc


def test_bmc_finds_shallow_violation(toggle_script, config):
    """Test that BMC reports the shortest counterexample."""
    task = toggle_script.context.task("toggle", ["small", "nonneg"])
    results = run_bmc(task.system, task.obligations, 5, config=config)

    assert isinstance(results["small"], Violated)
    assert results["small"].depth == 3
    assert results["small"].trace.value("out", 3) == 3
    assert results["nonneg"] == Unknown(5, "no violation up to depth 5")


def test_bmc_never_proves(counter_script, config):
    """BMC leaves inductive properties unknown."""
    task = counter_script.context.task("counter", ["nonneg", "mono"])
    results = run_bmc(task.system, task.obligations, 3, config=config)
    assert results == {
        "nonneg": Unknown(3, "no violation up to depth 3"),
        "mono": Unknown(3, "no violation up to depth 3"),
    }


def test_bmc_bound_below_violation(toggle_script, config):
    """Test that a bound below the violation gives no verdict."""
    task = toggle_script.context.task("toggle", ["bounded"])
    engine = BoundedModelChecker.for_task(task, config=config.with_overrides(max_depth=10))
    assert engine.run() == {"bounded": Unknown(10, "no violation up to depth 10")}
    assert engine.state is EngineState.UNKNOWN
    assert engine.name == "bmc"


def test_bmc_honours_assumptions(strengthen_script, config):
    """Assumed relations constrain the BMC unrolling."""
    task = strengthen_script.context.task("follow", ["x_nonneg", "y_hint"])
    results = run_bmc(task.system, task.obligations, 4, assumed=task.assumed, config=config)
    assert results == {"x_nonneg": Unknown(4, "no violation up to depth 4")}
