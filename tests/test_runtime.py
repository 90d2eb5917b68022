import pytest

from smart_spotlight.core.runtime import InlineTaskRunner, ManualScheduler


def test_inline_runner_delivers_result():
    results = []
    InlineTaskRunner().submit(lambda: 42, on_success=results.append)
    assert results == [42]


def test_inline_runner_routes_errors():
    errors = []

    def fail():
        raise ValueError("nope")

    InlineTaskRunner().submit(fail, on_error=errors.append)
    assert isinstance(errors[0], ValueError)


def test_inline_runner_raises_without_error_callback():
    def fail():
        raise ValueError("nope")

    with pytest.raises(ValueError):
        InlineTaskRunner().submit(fail)


def test_manual_scheduler_fires_in_due_order():
    scheduler = ManualScheduler()
    fired = []
    scheduler.call_later(200, lambda: fired.append("late"))
    scheduler.call_later(100, lambda: fired.append("early"))
    scheduler.advance(150)
    assert fired == ["early"]
    scheduler.advance(50)
    assert fired == ["early", "late"]
    assert scheduler.pending == 0


def test_cancelled_timer_never_fires():
    scheduler = ManualScheduler()
    fired = []
    handle = scheduler.call_later(10, lambda: fired.append(1))
    handle.cancel()
    scheduler.advance(100)
    assert fired == []
