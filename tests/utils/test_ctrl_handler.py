"""Unit tests for the Ctrl+C handler."""

from __future__ import annotations

import signal

import pytest

from core.compass_session import CompassSession
from utils.ctrl_handler import CtrlCHandler


@pytest.fixture()
def installed(monkeypatch: pytest.MonkeyPatch):
    handlers = {}
    monkeypatch.setattr(signal, "signal", lambda sig, handler: handlers.__setitem__(sig, handler))
    return handlers


def test_interrupt_sets_flag_and_runs_callback(installed) -> None:
    calls = []
    handler = CtrlCHandler(on_stop=lambda: calls.append("stopped"))

    assert installed[signal.SIGINT] == handler._signal_handler
    installed[signal.SIGINT](signal.SIGINT, None)

    assert handler.should_stop is True
    assert calls == ["stopped"]


def test_interrupt_without_callback(installed) -> None:
    handler = CtrlCHandler()

    installed[signal.SIGINT](signal.SIGINT, None)

    assert handler.should_stop is True


def test_interrupt_stops_session_tracking(installed) -> None:
    session = CompassSession()
    session.start()
    CtrlCHandler(on_stop=session.stop)

    installed[signal.SIGINT](signal.SIGINT, None)
    update = session.feed("accelerometer", (0.0, 0.0, 9.8))

    assert session.tracking_enabled is False
    assert update is None
    assert session.rejected_samples == 1
