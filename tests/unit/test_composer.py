"""Tests for equation composition and trigger occupancy."""

from __future__ import annotations

import math

import pytest

from curvemath.composer import EquationComposer
from curvemath.core.diagnostics import Diagnostic, DiagnosticKind
from curvemath.occupancy import OccupancyTracker

# ---------------------------------------------------------------------------
# EquationComposer
# ---------------------------------------------------------------------------


class TestEquationComposer:
    def test_fragments(self) -> None:
        composer = EquationComposer()
        assert composer.append("x") == "x"
        assert composer.append("+1") == "x+1"
        assert composer.append("sin(x)") == "x+1*sin(x)"
        assert composer.equation == "x+1*sin(x)"

    def test_compiled_value(self) -> None:
        composer = EquationComposer()
        for fragment in ("x", "+1", "sin(x)"):
            composer.append(fragment)
        assert composer.compile().evaluate(math.pi / 2) == pytest.approx(math.pi / 2 + 1)

    def test_signed_first_fragment(self) -> None:
        composer = EquationComposer()
        assert composer.append("-x") == "-x"
        assert composer.append("2") == "-x*2"

    def test_blank_fragments_ignored(self) -> None:
        composer = EquationComposer()
        composer.append("  x ")
        assert composer.append("   ") == "x"

    def test_compile_is_cached_until_change(self) -> None:
        composer = EquationComposer()
        composer.append("x")
        first = composer.compile()
        assert composer.compile() is first
        composer.append("2")
        assert composer.compile() is not first
        assert composer.compile().evaluate(3.0) == 6.0

    def test_reset(self) -> None:
        composer = EquationComposer()
        composer.append("x")
        composer.reset()
        assert composer.equation == ""
        assert composer.append("2") == "2"

    def test_diagnostics_forwarded(self) -> None:
        received: list[Diagnostic] = []
        composer = EquationComposer(on_diagnostic=received.append)
        composer.append("x")
        composer.append("@")
        composer.compile()
        assert [d.kind for d in received] == [DiagnosticKind.UNEXPECTED_CHARACTER]


# ---------------------------------------------------------------------------
# OccupancyTracker
# ---------------------------------------------------------------------------


class TestOccupancyTracker:
    def test_first_enter_and_last_exit(self) -> None:
        tracker = OccupancyTracker("curve")
        assert tracker.enter("ball") is True
        assert tracker.enter("cube") is False
        assert tracker.count == 2
        assert tracker.exit("ball") is False
        assert tracker.occupied
        assert tracker.exit("cube") is True
        assert not tracker.occupied

    def test_same_object_entering_twice(self) -> None:
        tracker = OccupancyTracker()
        assert tracker.enter("ball") is True
        assert tracker.enter("ball") is False
        assert tracker.count == 1
        assert tracker.exit("ball") is True

    def test_exit_unknown_object(self) -> None:
        tracker = OccupancyTracker()
        assert tracker.exit("ghost") is False

    def test_callbacks_fire_on_transitions(self) -> None:
        events: list[tuple[str, object]] = []
        tracker = OccupancyTracker(
            on_enter=lambda obj: events.append(("enter", obj)),
            on_exit=lambda obj: events.append(("exit", obj)),
        )
        tracker.enter("a")
        tracker.enter("b")
        tracker.exit("a")
        tracker.exit("b")
        assert events == [("enter", "a"), ("exit", "b")]

    def test_trackers_are_independent(self) -> None:
        first = OccupancyTracker("first")
        second = OccupancyTracker("second")
        first.enter("ball")
        assert "ball" in first
        assert "ball" not in second
        assert second.enter("ball") is True

    def test_clear_skips_callbacks(self) -> None:
        exits: list[object] = []
        tracker = OccupancyTracker(on_exit=exits.append)
        tracker.enter("a")
        tracker.clear()
        assert not tracker.occupied
        assert exits == []
