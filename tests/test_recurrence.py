from datetime import date, datetime, time, timedelta

import pytest
import pytz

from reminder_worker.errors import ValidationError
from reminder_worker.recurrence import (
    day_window,
    describe_schedule,
    is_due_today,
    local_today,
    next_nudge_slot,
    parse_time_of_day,
    today_slot,
    validate_rule,
)
from tests.helpers import Template, berlin

# 2024-06-03 is a Monday
MONDAY = date(2024, 6, 3)
WEEK = [MONDAY + timedelta(days=i) for i in range(7)]


def test_daily_is_always_due():
    rule = Template("daily")
    assert all(is_due_today(rule, d) for d in WEEK)


def test_weekdays_due_monday_to_friday_only():
    rule = Template("weekdays")
    assert [is_due_today(rule, d) for d in WEEK] == [True] * 5 + [False] * 2


def test_weekly_uses_iso_weekdays_with_sunday_as_seven():
    rule = Template("weekly", weekdays=[7])
    assert [is_due_today(rule, d) for d in WEEK] == [False] * 6 + [True]


def test_scenario_weekly_on_wednesday(tz):
    rule = Template("weekly", time_of_day="18:00", weekdays=[1, 3, 5])
    now = berlin(2024, 6, 5, 17, 0)  # Wednesday
    today = local_today(now, tz)

    assert today.isoweekday() == 3
    assert is_due_today(rule, today) is True
    assert today_slot(rule, today, tz) == berlin(2024, 6, 5, 18, 0)


def test_monthly_matches_anchor_day():
    rule = Template("monthly", anchor_date=date(2024, 1, 15))
    assert is_due_today(rule, date(2024, 6, 15)) is True
    assert is_due_today(rule, date(2024, 6, 14)) is False


def test_monthly_day_31_skips_shorter_months():
    rule = Template("monthly", anchor_date=date(2024, 5, 31))
    june = [date(2024, 6, d) for d in range(1, 31)]

    assert not any(is_due_today(rule, d) for d in june)
    assert is_due_today(rule, date(2024, 7, 31)) is True


def test_monthly_day_29_in_february():
    rule = Template("monthly", anchor_date=date(2024, 1, 29))
    assert is_due_today(rule, date(2024, 2, 29)) is True
    assert not any(is_due_today(rule, date(2023, 2, d)) for d in range(1, 29))


def test_monthly_without_anchor_never_fires():
    rule = Template("monthly")
    assert is_due_today(rule, date(2024, 6, 1)) is False


def test_is_due_today_is_pure():
    rule = Template("weekly", weekdays=[2, 4])
    results = {is_due_today(rule, date(2024, 6, 4)) for _ in range(10)}
    assert results == {True}


def test_today_slot_in_winter_and_summer(tz):
    rule = Template("daily", time_of_day="08:30")
    winter = today_slot(rule, date(2024, 1, 10), tz)
    summer = today_slot(rule, date(2024, 7, 10), tz)

    assert winter.astimezone(pytz.utc) == pytz.utc.localize(datetime(2024, 1, 10, 7, 30))
    assert summer.astimezone(pytz.utc) == pytz.utc.localize(datetime(2024, 7, 10, 6, 30))


def test_today_slot_in_spring_forward_gap_moves_forward(tz):
    # Europe/Berlin skips 02:00-03:00 on 2024-03-31
    rule = Template("daily", time_of_day="02:30")
    slot = today_slot(rule, date(2024, 3, 31), tz)
    assert slot.astimezone(pytz.utc) == pytz.utc.localize(datetime(2024, 3, 31, 1, 30))


def test_today_slot_in_fall_back_overlap_picks_first(tz):
    # 02:30 happens twice on 2024-10-27; the first is still CEST (+02:00)
    rule = Template("daily", time_of_day="02:30")
    slot = today_slot(rule, date(2024, 10, 27), tz)
    assert slot.astimezone(pytz.utc) == pytz.utc.localize(datetime(2024, 10, 27, 0, 30))


def test_day_window_is_closed_local_day(tz):
    start, end = day_window(date(2024, 6, 5), tz)
    assert start == berlin(2024, 6, 5)
    assert end == berlin(2024, 6, 6) - timedelta(microseconds=1)


def test_day_window_on_short_dst_day(tz):
    start, end = day_window(date(2024, 3, 31), tz)
    assert end - start == timedelta(hours=23) - timedelta(microseconds=1)


def test_local_today_crosses_midnight(tz):
    # 23:30 UTC is already the next day in Berlin
    now = pytz.utc.localize(datetime(2024, 6, 5, 23, 30))
    assert local_today(now, tz) == date(2024, 6, 6)


def test_validate_rule():
    assert validate_rule("weekly", [5, 1, 3, 3]) == [1, 3, 5]
    assert validate_rule("daily", [1, 2]) is None

    with pytest.raises(ValidationError):
        validate_rule("weekly", [])
    with pytest.raises(ValidationError):
        validate_rule("weekly", None)
    with pytest.raises(ValidationError):
        validate_rule("weekly", [0, 8])
    with pytest.raises(ValidationError):
        validate_rule("yearly", None)


def test_parse_time_of_day():
    assert parse_time_of_day("8:05") == time(8, 5)
    assert parse_time_of_day(time(18, 0, 30)) == time(18, 0)
    with pytest.raises(ValidationError):
        parse_time_of_day("noon")


def test_next_nudge_slot(tz):
    times = ["18:00", "09:00"]
    assert next_nudge_slot(berlin(2024, 6, 5, 7, 0), times, tz) == berlin(2024, 6, 5, 9, 0)
    assert next_nudge_slot(berlin(2024, 6, 5, 9, 0), times, tz) == berlin(2024, 6, 5, 18, 0)
    assert next_nudge_slot(berlin(2024, 6, 5, 19, 0), times, tz) == berlin(2024, 6, 6, 9, 0)


def test_describe_schedule():
    assert describe_schedule(Template("weekly", "18:00", weekdays=[5, 1, 3])) == "Mon, Wed, Fri at 18:00"
    assert describe_schedule(Template("daily", "08:00")) == "daily at 08:00"
    assert describe_schedule(Template("monthly", "09:00", anchor_date=date(2024, 1, 1))) == "monthly on day 1 at 09:00"
