"""Tests for schedule declaration parsing and matching."""

from datetime import UTC, datetime, timedelta, timezone

import pytest

from src.scheduler.schedule import (
    ScheduleSpec,
    is_due,
    parse_schedule,
    to_utc,
    truncate_to_minute,
)

# 2024-01-08 is a Monday; 2024-01-05 and 2024-01-12 are Fridays.
MONDAY = datetime(2024, 1, 8, tzinfo=UTC)


def _at(day: datetime, hour: int, minute: int, second: int = 0) -> datetime:
    return day.replace(hour=hour, minute=minute, second=second)


# -- parse_schedule ------------------------------------------------------------


def test_parse_daily() -> None:
    spec = parse_schedule("Daily@04:00")
    assert spec == ScheduleSpec(text="Daily@04:00", hour=4, minute=0, day_of_week=None)
    assert spec.is_daily


def test_parse_named_day() -> None:
    spec = parse_schedule("Friday@08:30")
    assert spec is not None
    assert spec.day_of_week == 4
    assert (spec.hour, spec.minute) == (8, 30)
    assert not spec.is_daily


@pytest.mark.parametrize("text", ["daily@23:59", "DAILY@23:59", "monday@00:00", "SunDay@12:00"])
def test_parse_is_case_insensitive(text: str) -> None:
    assert parse_schedule(text) is not None


def test_parse_trims_whitespace_around_parts() -> None:
    spec = parse_schedule(" Sunday @ 00:00 ")
    assert spec is not None
    assert spec.day_of_week == 6


@pytest.mark.parametrize(
    "text",
    [
        "",
        "   ",
        "Funday@9:30",
        "Funday@09:30",
        "Daily-08:30",
        "Daily@8:30",
        "Daily@08:3",
        "Daily@08:30:00",
        "Daily@24:00",
        "Daily@12:60",
        "Daily@",
        "@08:30",
        "Daily@@08:30",
        "Daily@08:30@Monday",
        "1@08:30",
        "Mon@08:30",
        "Daily@0８:30",
    ],
)
def test_malformed_declarations_parse_to_none(text: str) -> None:
    assert parse_schedule(text) is None


def test_non_string_parses_to_none() -> None:
    assert parse_schedule(None) is None
    assert parse_schedule(830) is None


# -- matches -------------------------------------------------------------------


def test_daily_matches_every_weekday() -> None:
    spec = parse_schedule("Daily@04:00")
    for offset in range(7):
        assert spec.matches(_at(MONDAY + timedelta(days=offset), 4, 0))


def test_daily_requires_exact_hour_and_minute() -> None:
    spec = parse_schedule("Daily@04:00")
    assert not spec.matches(_at(MONDAY, 4, 1))
    assert not spec.matches(_at(MONDAY, 3, 59, 59))
    assert not spec.matches(_at(MONDAY, 16, 0))


def test_daily_maintenance_scenario() -> None:
    assert is_due("Daily@04:00", datetime(2024, 1, 8, 4, 0, 0, tzinfo=UTC))
    assert not is_due("Daily@04:00", datetime(2024, 1, 8, 4, 1, 0, tzinfo=UTC))
    assert not is_due("Daily@04:00", datetime(2024, 1, 8, 3, 59, 59, tzinfo=UTC))


def test_named_day_requires_matching_weekday() -> None:
    spec = parse_schedule("Friday@08:30")
    assert spec.matches(datetime(2024, 1, 5, 8, 30, tzinfo=UTC))
    assert spec.matches(datetime(2024, 1, 12, 8, 30, tzinfo=UTC))
    assert not spec.matches(datetime(2024, 1, 8, 8, 30, tzinfo=UTC))
    assert not spec.matches(datetime(2024, 1, 11, 8, 30, tzinfo=UTC))


def test_named_day_requires_matching_time() -> None:
    spec = parse_schedule("Friday@08:30")
    assert not spec.matches(datetime(2024, 1, 5, 8, 31, tzinfo=UTC))
    assert not spec.matches(datetime(2024, 1, 5, 9, 30, tzinfo=UTC))


def test_every_weekday_name_maps_to_python_weekday() -> None:
    names = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
    for offset, name in enumerate(names):
        spec = parse_schedule(f"{name}@10:15")
        day = MONDAY + timedelta(days=offset)
        assert spec.matches(_at(day, 10, 15))
        assert not spec.matches(_at(day + timedelta(days=1), 10, 15))


def test_seconds_are_ignored() -> None:
    spec = parse_schedule("Daily@04:00")
    assert spec.matches(datetime(2024, 1, 8, 4, 0, 59, 999999, tzinfo=UTC))


def test_matching_is_evaluated_in_utc() -> None:
    spec = parse_schedule("Monday@04:00")
    # 23:00 Sunday at UTC-5 is 04:00 Monday UTC.
    eastern = timezone(timedelta(hours=-5))
    assert spec.matches(datetime(2024, 1, 7, 23, 0, tzinfo=eastern))


def test_naive_instant_is_treated_as_utc() -> None:
    assert is_due("Daily@04:00", datetime(2024, 1, 8, 4, 0))


def test_is_due_with_malformed_declaration() -> None:
    for hour in range(24):
        assert not is_due("Daily@8:30", _at(MONDAY, hour, 30))
        assert not is_due("Funday@09:30", _at(MONDAY, hour, 30))


# -- helpers -------------------------------------------------------------------


def test_truncate_to_minute() -> None:
    eastern = timezone(timedelta(hours=-5))
    instant = datetime(2024, 1, 7, 23, 0, 42, 123, tzinfo=eastern)
    assert truncate_to_minute(instant) == datetime(2024, 1, 8, 4, 0, tzinfo=UTC)


def test_to_utc_keeps_aware_instant() -> None:
    instant = datetime(2024, 1, 8, 4, 0, tzinfo=UTC)
    assert to_utc(instant) == instant


# -- next_run_after ------------------------------------------------------------


def test_next_run_daily_later_today() -> None:
    spec = parse_schedule("Daily@04:00")
    assert spec.next_run_after(_at(MONDAY, 1, 0)) == _at(MONDAY, 4, 0)


def test_next_run_daily_rolls_to_tomorrow() -> None:
    spec = parse_schedule("Daily@04:00")
    assert spec.next_run_after(_at(MONDAY, 4, 0, 30)) == datetime(2024, 1, 9, 4, 0, tzinfo=UTC)


def test_next_run_named_day() -> None:
    spec = parse_schedule("Friday@08:30")
    assert spec.next_run_after(MONDAY) == datetime(2024, 1, 12, 8, 30, tzinfo=UTC)


def test_next_run_matches_spec() -> None:
    spec = parse_schedule("Wednesday@17:45")
    assert spec.matches(spec.next_run_after(MONDAY))
