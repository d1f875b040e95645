import json
import os
import stat
from datetime import datetime, timedelta

from sessions_radar.cache_store import DailyCacheStore
from sessions_radar.models import MetricPair, MonthlyMetrics, Property, PropertyRecord


def sample_records():
    return [
        PropertyRecord(
            property=Property(name="Alpha", id="101"),
            today=MetricPair(total=5, organic=2),
            yesterday=MetricPair(total=40, organic=0),
            monthly=MonthlyMetrics(total=900, improvement_total=600, organic=0, improvement_organic=0),
        )
    ]


def set_mtime(path, when: datetime):
    ts = when.timestamp()
    os.utime(path, (ts, ts))


def test_absent_file_is_stale(cache):
    assert not cache.is_fresh()


def test_store_then_fresh_and_load(cache, clock):
    assert cache.store(sample_records())
    set_mtime(cache.path, clock.now())

    assert cache.is_fresh()
    assert cache.load() == sample_records()


def test_file_contains_exactly_the_aggregate_array(cache):
    cache.store(sample_records())

    with open(cache.path) as f:
        raw = json.load(f)

    assert isinstance(raw, list)
    assert raw[0]["property"] == {"name": "Alpha", "id": "101"}
    assert raw[0]["monthly"]["improvement_total"] == 600


def test_file_written_yesterday_is_stale(cache, clock):
    cache.store(sample_records())
    set_mtime(cache.path, clock.now() - timedelta(days=1))

    assert not cache.is_fresh()


def test_file_written_earlier_today_is_fresh(cache, clock):
    cache.store(sample_records())
    set_mtime(cache.path, clock.now().replace(hour=0, minute=1))

    assert cache.is_fresh()


def test_corrupt_file_loads_as_miss(cache):
    os.makedirs(os.path.dirname(cache.path), exist_ok=True)
    with open(cache.path, "w") as f:
        f.write("{not json")

    assert cache.load() is None


def test_wrong_shape_loads_as_miss(cache):
    os.makedirs(os.path.dirname(cache.path), exist_ok=True)
    with open(cache.path, "w") as f:
        json.dump({"aggregate": "nope"}, f)

    assert cache.load() is None


def test_store_failure_is_swallowed(tmp_path, clock):
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory")
    store = DailyCacheStore(str(blocker / "data.json"), clock)

    assert store.store(sample_records()) is False
    assert not store.is_fresh()


def test_store_replaces_previous_content(cache):
    cache.store(sample_records())
    cache.store([])

    assert cache.load() == []
    leftovers = [n for n in os.listdir(os.path.dirname(cache.path)) if n.startswith(".cache-")]
    assert leftovers == []


def test_stored_file_is_world_readable(cache):
    cache.store(sample_records())

    assert stat.S_IMODE(os.stat(cache.path).st_mode) == 0o644
