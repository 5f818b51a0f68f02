"""
Tests for the k-induction engine.
"""
import pytest
import z3

from kinduct.solver import CheckResult, SolverResult, Z3Solver
from kinduct.system import Relation
from kinduct.term import curr, int_const, op
from kinduct.verification import (
    CancellationToken, EngineState, EventKind, Holds, KInductionEngine, Unknown, Violated,
)


def _engine(script, system, names, config, **kwargs):
    task = script.context.task(system, names)
    return KInductionEngine.for_task(task, config=config, **kwargs)


def test_counter_holds_at_depth_zero(counter_script, config):
    """Test that inductive targets hold at depth 0."""
    engine = _engine(counter_script, "counter", ["nonneg", "mono"], config)
    results = engine.run()

    assert results == {"nonneg": Holds(0), "mono": Holds(0)}
    assert engine.state is EngineState.PROVED
    assert engine.depth_reached == 0
    assert engine.remaining == []


def test_reachable_violation_with_trace(toggle_script, config):
    """Test the depth and trace of a reachable violation."""
    engine = _engine(toggle_script, "toggle", ["bounded"], config)
    verdict = engine.run()["bounded"]

    assert isinstance(verdict, Violated)
    assert verdict.depth == 11
    trace = verdict.trace
    assert len(trace) == 12
    assert trace.violation_time == 11
    assert trace.value("out", 0) == 0
    assert trace.value("out", 11) == 11
    # Every step of the trace changes `in`
    for t in range(11):
        assert trace.value("in", t) != trace.value("in", t + 1)
    assert engine.state is EngineState.VIOLATED


def test_max_depth_gives_unknown(toggle_script, config):
    """Test that exhausting max_depth gives an unknown verdict."""
    engine = _engine(toggle_script, "toggle", ["bounded"], config.with_overrides(max_depth=5))
    assert engine.run() == {"bounded": Unknown(5, "max depth 5 reached")}
    assert engine.state is EngineState.UNKNOWN


def test_max_depth_zero(toggle_script, config):
    """Only depth 0 is tried when max_depth is 0."""
    engine = _engine(toggle_script, "toggle", ["bounded"], config.with_overrides(max_depth=0))
    assert engine.run() == {"bounded": Unknown(0, "max depth 0 reached")}


def test_violations_are_dropped_and_the_rest_rechecked(toggle_script, config):
    """Violated targets are dropped and the rest re-checked at the same depth."""
    engine = _engine(toggle_script, "toggle", ["nonneg", "small", "bounded"], config)
    results = engine.run()

    assert results["small"].depth == 3 and isinstance(results["small"], Violated)
    assert results["bounded"].depth == 11 and isinstance(results["bounded"], Violated)
    # nonneg is only inductive once the failing targets no longer weaken the goal
    assert results["nonneg"] == Holds(11)
    assert engine.state is EngineState.VIOLATED


def test_relation_violated_on_first_transition(toggle_script, config):
    """Test that a relation can fail on the first transition."""
    engine = _engine(toggle_script, "toggle", ["stays"], config)
    verdict = engine.run()["stays"]

    assert isinstance(verdict, Violated)
    assert verdict.depth == 1
    assert len(verdict.trace) == 2
    assert verdict.trace.value("out", 0) != verdict.trace.value("out", 1)


def test_induction_needs_depth_one(strengthen_script, config):
    """Test a property that is 1-inductive but not 0-inductive."""
    engine = _engine(strengthen_script, "follow", ["x_nonneg"], config)
    assert engine.run() == {"x_nonneg": Holds(1)}


def test_assumed_relation_strengthens_step(strengthen_script, config):
    """An assumed relation shortens the proof."""
    engine = _engine(strengthen_script, "follow", ["x_nonneg", "y_hint"], config)
    assert engine.assumed[0].name == "y_hint"
    assert engine.run() == {"x_nonneg": Holds(0)}


def test_joint_targets_strengthen_each_other(strengthen_script, config):
    """Test that jointly checked targets strengthen each other."""
    engine = _engine(strengthen_script, "follow", ["x_nonneg", "y_nonneg"], config)
    assert engine.run() == {"x_nonneg": Holds(0), "y_nonneg": Holds(0)}


def test_composed_system(composed_script, config):
    """Test a property of a flattened composition."""
    task = composed_script.context.task("top", ["b_le_a"])
    engine = KInductionEngine.for_task(task, config=config)
    assert engine.run() == {"b_le_a": Holds(0)}


def test_events(counter_script, toggle_script, config):
    """Test the event sequence for proofs, violations and exhaustion."""
    events = []
    _engine(counter_script, "counter", ["nonneg", "mono"], config,
            listener=events.append).run()
    kinds = [(e.kind, e.depth, e.names) for e in events if e.kind is not EventKind.LOG]
    assert kinds == [
        (EventKind.KTRUE, 0, ("nonneg", "mono")),
        (EventKind.PROVED, 0, ("nonneg", "mono")),
    ]

    events = []
    _engine(toggle_script, "toggle", ["small"], config, listener=events.append).run()
    kinds = [e.kind for e in events if e.kind is not EventKind.LOG]
    assert kinds == [EventKind.KTRUE] * 3 + [EventKind.DISPROVED]
    assert events[-1].names == ("small",)
    assert events[-1].depth == 3

    events = []
    _engine(toggle_script, "toggle", ["bounded"], config.with_overrides(max_depth=2),
            listener=events.append).run()
    last = events[-1]
    assert last.kind is EventKind.UNKNOWN
    assert last.message == "max depth 2 reached"
    assert any(e.kind is EventKind.LOG for e in events)


def test_cancelled_before_start(counter_script, config):
    """A token cancelled before the run leaves every target unknown."""
    token = CancellationToken()
    token.cancel()
    events = []
    engine = _engine(counter_script, "counter", ["nonneg"], config, cancel=token,
                     listener=events.append)

    assert engine.run() == {"nonneg": Unknown(-1, "cancelled")}
    assert engine.state is EngineState.UNKNOWN
    assert events[-1].kind is EventKind.UNKNOWN


def test_cancel_from_listener(toggle_script, config):
    """Test cancellation requested while the engine runs."""
    token = CancellationToken()

    def listener(event):
        if event.kind is EventKind.KTRUE and event.depth == 2:
            token.cancel()

    engine = _engine(toggle_script, "toggle", ["bounded"], config, cancel=token,
                     listener=listener)
    assert engine.run() == {"bounded": Unknown(2, "cancelled")}


def test_cancellation_token_callbacks():
    """Callbacks run once, immediately when registered late."""
    token = CancellationToken()
    calls = []
    token.register(lambda: calls.append("a"))
    token.cancel()
    token.cancel()
    assert calls == ["a"]

    # Registering after cancellation runs the callback at once
    token.register(lambda: calls.append("b"))
    assert calls == ["a", "b"]
    assert token.cancelled


def test_engine_rejects_proved_relation_as_assumption(toggle_script, config):
    """Test that only :assumed relations are accepted as hypotheses."""
    flat = toggle_script.context.flatten("toggle")
    rel = Relation("grows", "toggle", op(">=", curr("out"), int_const(0)))
    with pytest.raises(ValueError):
        KInductionEngine(flat, [], assumed=[rel], config=config)


def test_run_twice_returns_same_results(counter_script, config):
    """Test that a finished engine returns its recorded verdicts."""
    engine = _engine(counter_script, "counter", ["nonneg"], config)
    first = engine.run()
    assert engine.run() == first


def test_no_targets(counter_script, config):
    """An empty task is trivially proved."""
    engine = _engine(counter_script, "counter", [], config)
    assert engine.run() == {}
    assert engine.state is EngineState.PROVED


class ScriptedSolver(Z3Solver):
    """Z3 session that answers unknown for chosen check_sat calls."""

    def __init__(self, unknown_at=(), timeout_ms=None):
        super().__init__(timeout_ms)
        self.unknown_at = set(unknown_at)
        self.checks = 0

    def check_sat(self):
        index = self.checks
        self.checks += 1
        if index in self.unknown_at or "all" in self.unknown_at:
            self._model = None
            return CheckResult(SolverResult.UNKNOWN, reason="timeout", solver_name=self.name)
        return super().check_sat()


def _scripted(base=(), step=()):
    # Engines create the base session first, then the step session.
    sessions = iter([base, step])
    return lambda cfg: ScriptedSolver(next(sessions))


def test_base_unknown_still_reports_later_violation(toggle_script, config):
    """Deeper base cases still find violations after an unknown one."""
    engine = _engine(toggle_script, "toggle", ["small"], config,
                     solver_factory=_scripted(base={1}))
    results = engine.run()

    assert results == {"small": Violated(3, None)}
    assert results["small"].trace.value("out", 3) == 3
    assert engine.depth_reached == 0


def test_base_unknown_blocks_proof(toggle_script, config):
    """Test that a step proof is not accepted once a base case is unknown."""
    engine = _engine(toggle_script, "toggle", ["nonneg"], config.with_overrides(max_depth=3),
                     solver_factory=_scripted(base={0}))
    assert engine.run() == {"nonneg": Unknown(-1, "base case timeout at depth 0")}
    assert engine.state is EngineState.UNKNOWN


def test_step_unknown_at_every_depth(toggle_script, config):
    """Test that repeated step unknowns end with the step reason."""
    engine = _engine(toggle_script, "toggle", ["nonneg"], config.with_overrides(max_depth=3),
                     solver_factory=_scripted(step={"all"}))
    assert engine.run() == {"nonneg": Unknown(3, "step case timeout at depth 3")}


def test_step_unknown_then_proved(toggle_script, config):
    """An unknown step case moves on to the next depth."""
    engine = _engine(toggle_script, "toggle", ["nonneg"], config,
                     solver_factory=_scripted(step={0}))
    assert engine.run() == {"nonneg": Holds(1)}


class _CanceledOnce:
    """Wraps a z3.Solver whose first check runs out of time."""

    def __init__(self, inner):
        self._inner = inner
        self._fired = False

    def check(self, *args):
        if not self._fired:
            self._fired = True
            return z3.unknown
        return self._inner.check(*args)

    def reason_unknown(self):
        return "canceled"

    def __getattr__(self, name):
        return getattr(self._inner, name)


def test_solver_timeout_is_not_cancellation(toggle_script, config):
    """Z3 timeouts surface as base-case unknowns rather than cancelling the run."""
    sessions = []

    def factory(cfg):
        solver = Z3Solver(timeout_ms=60000)
        if not sessions:
            solver.solver = _CanceledOnce(solver.solver)
        sessions.append(solver)
        return solver

    engine = _engine(toggle_script, "toggle", ["nonneg"], config.with_overrides(max_depth=2),
                     solver_factory=factory)
    verdict = engine.run()["nonneg"]

    assert isinstance(verdict, Unknown)
    assert verdict.reason.startswith("base case timeout")
    assert verdict.reason != "cancelled"
