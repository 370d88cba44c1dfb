"""Unit tests for the presentation change gate."""

from __future__ import annotations

import pytest

from core.heading.presentation_gate import PresentationGate, should_update
from utils.config_sections import GateConfig


def test_threshold_is_strict() -> None:
    assert should_update(10.5, 10.0) is False
    assert should_update(10.51, 10.0) is True
    assert should_update(9.49, 10.0) is True


def test_first_value_always_passes() -> None:
    gate = PresentationGate()

    assert gate.offer(0.0) is True
    assert gate.last_displayed == 0.0
    assert gate.previous_displayed is None


def test_suppressed_values_do_not_move_baseline() -> None:
    gate = PresentationGate()
    gate.offer(0.0)

    assert gate.offer(0.3) is False
    assert gate.last_displayed == 0.0
    # Drift accumulates against the last displayed value
    assert gate.offer(0.6) is True
    assert gate.last_displayed == 0.6
    assert gate.previous_displayed == 0.0
    assert (gate.passed, gate.suppressed) == (2, 1)


def test_baseline_rebases_on_trigger() -> None:
    gate = PresentationGate()
    emitted = [value for value in (0.0, 5.0, 5.4, 12.0) if gate.offer(value)]

    assert emitted == [0.0, 5.0, 12.0]


def test_force_bypasses_threshold() -> None:
    gate = PresentationGate()
    gate.offer(10.0)

    assert gate.offer(10.0, force=True) is True
    assert gate.passed == 2


def test_reset_forgets_baseline() -> None:
    gate = PresentationGate()
    gate.offer(42.0)

    gate.reset()

    assert gate.offer(42.0) is True


def test_custom_threshold() -> None:
    gate = PresentationGate(GateConfig(threshold_deg=2.0))
    gate.offer(0.0)

    assert gate.offer(2.0) is False
    assert gate.offer(2.1) is True


@pytest.mark.parametrize("threshold", [-0.1, 0.0])
def test_non_positive_threshold_rejected(threshold: float) -> None:
    with pytest.raises(ValueError):
        GateConfig(threshold_deg=threshold)
