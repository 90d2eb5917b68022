from datetime import datetime, timedelta, timezone

from smart_spotlight.host.history_store import HistoryStore

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_prefix_search_is_case_insensitive_newest_first(tmp_path):
    store = HistoryStore(tmp_path / "history.json")
    store.add("Weather today", now=T0)
    store.add("weekly report", now=T0 + timedelta(minutes=1))
    store.add("news", now=T0 + timedelta(minutes=2))
    assert [e.query for e in store.search("WE")] == ["weekly report", "Weather today"]


def test_repeat_query_refreshes_timestamp(tmp_path):
    store = HistoryStore(tmp_path / "history.json")
    first = store.add("weather", now=T0)
    store.add("weekly", now=T0 + timedelta(minutes=1))
    again = store.add("WEATHER", now=T0 + timedelta(minutes=2))
    assert again.id == first.id
    results = store.search("we")
    assert [e.query for e in results] == ["weather", "weekly"]


def test_results_are_limited(tmp_path):
    store = HistoryStore(tmp_path / "history.json")
    for i in range(15):
        store.add(f"query {i}", now=T0 + timedelta(minutes=i))
    results = store.search("query")
    assert len(results) == 10
    assert results[0].query == "query 14"


def test_missing_or_corrupt_file_is_empty(tmp_path):
    path = tmp_path / "history.json"
    assert HistoryStore(path).search("") == []
    path.write_text("{not json")
    assert HistoryStore(path).search("") == []
