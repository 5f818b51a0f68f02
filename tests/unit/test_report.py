"""
Tests for verification reports and the task verifier.
"""
from kinduct.verification import (
    Assumed, CounterexampleTrace, Holds, Unknown, VerificationReport, Verifier, Violated,
)


def test_verifier_report_in_submission_order(toggle_script, config):
    """Test that reports keep the submission order."""
    task = toggle_script.context.task("toggle", ["bounded", "small", "nonneg"])
    report = Verifier(config).verify(task)

    assert report.system_name == "toggle"
    assert [name for name, _ in report] == ["bounded", "small", "nonneg"]
    assert report.violated == ["bounded", "small"]
    assert report.holds == ["nonneg"]
    assert report.unknown == []
    assert not report.all_hold
    assert report.trace("nonneg") is None
    assert len(report.trace("small")) == 4
    assert report.elapsed_ms >= 0


def test_assumed_relations_are_reported(strengthen_script, config):
    """Assumed relations are reported as assumed, never as proved."""
    task = strengthen_script.context.task("follow", ["y_hint", "x_nonneg"])
    report = Verifier(config).verify(task)

    assert report["y_hint"] == Assumed()
    assert report["x_nonneg"] == Holds(0)
    assert report.all_hold
    assert str(report["y_hint"]) == "assumed"


def test_verifier_events(counter_script, config):
    """Test that the listener receives engine events."""
    events = []
    task = counter_script.context.task("counter", ["nonneg"])
    Verifier(config, listener=events.append).verify(task)
    assert events


def test_format_report():
    """Test the plain-text report layout."""
    trace = CounterexampleTrace(depth=1, states=[{"in": False, "out": 0},
                                                 {"in": True, "out": 1}])
    report = VerificationReport(
        "toggle", ("nonneg", "stays", "bounded"),
        {"nonneg": Holds(2), "stays": Violated(1, trace),
         "bounded": Unknown(5, "max depth 5 reached")},
        elapsed_ms=12.5)

    text = report.format_report()
    lines = text.splitlines()
    assert lines[0] == "System toggle:"
    assert lines[1] == "  nonneg   holds (k=2)"
    assert lines[2] == "  stays    violated at depth 1"
    assert lines[3] == "  bounded  unknown after depth 5: max depth 5 reached"
    assert "stays:" in lines
    assert "    in = true" in lines
    assert "  Property violated at time 1" in lines
    assert lines[-1] == "1 hold, 1 violated, 1 unknown (12.50ms)"

    short = report.format_report(with_traces=False)
    assert "Time 0:" not in short
    assert "Time 0:" in text


def test_verdict_equality_ignores_trace():
    """Violated verdicts compare by depth only."""
    a = CounterexampleTrace(0, [{"x": 1}])
    b = CounterexampleTrace(0, [{"x": 2}])
    assert Violated(0, a) == Violated(0, b)
    assert Holds(1) != Holds(2)
    assert Violated.status == "violated"
    assert Unknown(-1, "cancelled").status == "unknown"


def test_trace_violation_time_follows_depth():
    """Test that the violation time is the trace depth."""
    trace = CounterexampleTrace(2, [{"x": 0}, {"x": 1}, {"x": 2}])
    assert trace.violation_time == 2
    assert trace.format_trace().endswith("Property violated at time 2")
