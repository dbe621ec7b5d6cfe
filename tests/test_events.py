"""Tests for payload-less signals."""

from puzzletutor.state.events import PROGRESS_UPDATED, Signal


def test_emit_calls_every_listener():
    signal = Signal("test")
    calls = []
    signal.connect(lambda: calls.append("a"))
    signal.connect(lambda: calls.append("b"))
    signal.emit()
    assert calls == ["a", "b"]


def test_connect_twice_registers_once():
    signal = Signal("test")
    calls = []

    def listener():
        calls.append(1)

    signal.connect(listener)
    signal.connect(listener)
    signal.emit()
    assert calls == [1]
    assert signal.listener_count == 1


def test_disconnect():
    signal = Signal("test")
    calls = []

    def listener():
        calls.append(1)

    signal.connect(listener)
    signal.disconnect(listener)
    signal.disconnect(listener)
    signal.emit()
    assert calls == []


def test_failing_listener_does_not_stop_others():
    signal = Signal("test")
    calls = []

    def broken():
        raise RuntimeError("boom")

    signal.connect(broken)
    signal.connect(lambda: calls.append("ok"))
    signal.emit()
    assert calls == ["ok"]


def test_process_wide_signal_name():
    assert PROGRESS_UPDATED.name == "pgn-puzzles:progress-updated"
