from smart_spotlight.common.models import HistoryEntry
from smart_spotlight.core.runtime import ManualScheduler, TaskRunner
from smart_spotlight.core.suggestions import SuggestionFetcher


class DeferredRunner(TaskRunner):
    """Holds tasks until the test completes them."""

    def __init__(self):
        self.tasks = []

    def submit(self, fn, on_success=None, on_error=None):
        self.tasks.append((fn, on_success, on_error))

    def finish(self, index=0):
        fn, on_success, on_error = self.tasks.pop(index)
        try:
            result = fn()
        except Exception as exc:
            on_error(exc)
        else:
            on_success(result)


def entry(query):
    return HistoryEntry(id=1, query=query, timestamp="2024-01-01T00:00:00Z")


def make_fetcher(blocked=False):
    scheduler = ManualScheduler()
    runner = DeferredRunner()
    results = []
    fetcher = SuggestionFetcher(
        lambda text: [entry(text + "!")],
        scheduler,
        runner,
        on_results=results.append,
        is_blocked=lambda: blocked,
    )
    return fetcher, scheduler, runner, results


def test_fetch_runs_after_quiet_period():
    fetcher, scheduler, runner, results = make_fetcher()
    fetcher.text_changed("he")
    scheduler.advance(149)
    assert runner.tasks == []
    scheduler.advance(1)
    runner.finish()
    assert [e.query for e in results[0]] == ["he!"]


def test_outdated_response_is_dropped():
    fetcher, scheduler, runner, results = make_fetcher()
    fetcher.text_changed("a")
    scheduler.advance(150)
    fetcher.text_changed("ab")
    scheduler.advance(150)
    runner.finish(0)
    assert results == []
    runner.finish(0)
    assert [e.query for e in results[0]] == ["ab!"]


def test_blocked_clears_without_fetching():
    fetcher, scheduler, runner, results = make_fetcher(blocked=True)
    fetcher.text_changed("abc")
    scheduler.advance(150)
    assert runner.tasks == []
    assert results == [[]]


def test_cancel_drops_in_flight_lookup():
    fetcher, scheduler, runner, results = make_fetcher()
    fetcher.text_changed("abc")
    scheduler.advance(150)
    fetcher.cancel()
    runner.finish()
    assert results == []
