from datetime import date, datetime, timezone

from sessions_radar.utils.windows import Clock, FixedClock, compute_date_windows


def test_compute_date_windows_named_ranges():
    windows = compute_date_windows(date(2026, 10, 19))

    assert windows.today == ("2026-10-19", "2026-10-19")
    assert windows.yesterday == ("2026-10-18", "2026-10-18")
    assert windows.monthly == ("2026-09-19", "2026-10-19")
    assert windows.previous_monthly == ("2026-08-20", "2026-09-19")


def test_compute_date_windows_crosses_year_boundary():
    windows = compute_date_windows(date(2026, 1, 1))

    assert windows.yesterday.start == "2025-12-31"
    assert windows.monthly.start == "2025-12-02"
    assert windows.previous_monthly.start == "2025-11-02"


def test_compute_date_windows_is_deterministic():
    assert compute_date_windows(date(2026, 3, 1)) == compute_date_windows(date(2026, 3, 1))


def test_ranges_are_ordered():
    windows = compute_date_windows(date(2026, 3, 1))
    for window in windows:
        assert window.start <= window.end


def test_fixed_clock_uses_configured_zone():
    # 23:30 UTC is already the next day in Tokyo
    instant = datetime(2026, 10, 19, 23, 30, tzinfo=timezone.utc)

    assert FixedClock(instant, "UTC").today() == date(2026, 10, 19)
    assert FixedClock(instant, "Asia/Tokyo").today() == date(2026, 10, 20)


def test_naive_instant_is_read_in_clock_zone():
    clock = FixedClock(datetime(2026, 10, 19, 1, 0), "America/Chicago")

    assert clock.now().tzinfo is clock.tz
    assert clock.today() == date(2026, 10, 19)


def test_local_date_of_timestamp():
    clock = Clock("UTC")
    ts = datetime(2026, 10, 18, 23, 59, tzinfo=timezone.utc).timestamp()

    assert clock.local_date(ts) == date(2026, 10, 18)
