"""
Recurrence Rule Evaluator

Pure functions deciding whether a recurring template is due on a given local
calendar day and where today's slot falls. Nothing here touches the store or
reads ambient configuration: the time zone is always an argument, so the same
(rule, date, tz) always yields the same answer.
"""
from datetime import date, datetime, time, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

import pytz

from .errors import ValidationError

DAILY = "daily"
WEEKDAYS = "weekdays"
WEEKLY = "weekly"
MONTHLY = "monthly"

RECURRENCE_KINDS = (DAILY, WEEKDAYS, WEEKLY, MONTHLY)
WEEKDAY_NAMES = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]


def parse_time_of_day(value) -> time:
    """Accept a ``time`` or an ``"HH:MM"`` string."""
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    try:
        hours, minutes = str(value).strip().split(":")[:2]
        return time(int(hours), int(minutes))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid time of day: {value!r}") from e


def validate_rule(recurrence: str, weekdays: Optional[Iterable[int]] = None) -> Optional[List[int]]:
    """
    Check a recurrence rule before it is persisted.

    Returns the normalized weekday list for ``weekly`` rules (sorted, no
    duplicates) and ``None`` for every other kind, which ignore weekdays.
    """
    kind = str(getattr(recurrence, "value", recurrence))
    if kind not in RECURRENCE_KINDS:
        raise ValidationError(f"Unknown recurrence kind: {recurrence!r}")

    if kind != WEEKLY:
        return None

    days = sorted(set(int(d) for d in (weekdays or [])))
    if not days:
        raise ValidationError("Weekly reminders need at least one weekday")
    if any(d < 1 or d > 7 for d in days):
        raise ValidationError(f"Weekdays must be between 1 (Mon) and 7 (Sun): {days}")
    return days


def is_due_today(rule, today: date) -> bool:
    """
    Decide whether ``rule`` produces an occurrence on the local date ``today``.

    ``rule`` is anything with ``recurrence``, ``weekdays`` and ``anchor_date``
    attributes (a ``ReminderTemplate`` row in practice).

    Monthly rules fire when the day-of-month matches the anchor's. An anchor on
    the 29th, 30th or 31st simply does not fire in months without that day;
    there is no clamping to the month's last day and no rollover.
    """
    kind = str(getattr(rule.recurrence, "value", rule.recurrence))
    weekday = today.isoweekday()  # 1=Mon .. 7=Sun

    if kind == DAILY:
        return True
    if kind == WEEKDAYS:
        return 1 <= weekday <= 5
    if kind == WEEKLY:
        return weekday in set(int(d) for d in (rule.weekdays or []))
    if kind == MONTHLY:
        if rule.anchor_date is None:
            return False
        return today.day == rule.anchor_date.day
    return False


def localize(tz, naive: datetime) -> datetime:
    """
    Attach ``tz`` to a wall-clock time.

    Wall times inside a spring-forward gap move forward by the gap; ambiguous
    fall-back times resolve to the first (DST) instance.
    """
    try:
        return tz.localize(naive, is_dst=None)
    except pytz.exceptions.NonExistentTimeError:
        return tz.normalize(tz.localize(naive, is_dst=False))
    except pytz.exceptions.AmbiguousTimeError:
        return tz.localize(naive, is_dst=True)


def today_slot(rule, today: date, tz) -> datetime:
    """Today's date at the rule's time of day in ``tz``, as an aware datetime."""
    return localize(tz, datetime.combine(today, parse_time_of_day(rule.time_of_day)))


def local_today(now: datetime, tz) -> date:
    """Calendar date of the instant ``now`` in ``tz``."""
    if now.tzinfo is None:
        now = pytz.utc.localize(now)
    return now.astimezone(tz).date()


def day_window(today: date, tz) -> Tuple[datetime, datetime]:
    """Closed interval [local midnight, next local midnight - 1µs] for ``today``."""
    start = localize(tz, datetime.combine(today, time.min))
    next_start = localize(tz, datetime.combine(today + timedelta(days=1), time.min))
    return start, next_start - timedelta(microseconds=1)


def next_nudge_slot(now: datetime, times: Sequence[str], tz) -> datetime:
    """
    First nudge time strictly after ``now`` today, otherwise the earliest nudge
    time tomorrow. Used for reminders that arrive without an explicit time.
    """
    if not times:
        raise ValidationError("At least one nudge time is required")

    slots = sorted(parse_time_of_day(t) for t in times)
    today = local_today(now, tz)

    for slot in slots:
        candidate = localize(tz, datetime.combine(today, slot))
        if candidate > now:
            return candidate

    return localize(tz, datetime.combine(today + timedelta(days=1), slots[0]))


def describe_schedule(rule) -> str:
    """Human-readable schedule, e.g. ``Mon, Wed, Fri at 18:00``."""
    kind = str(getattr(rule.recurrence, "value", rule.recurrence))
    at = parse_time_of_day(rule.time_of_day).strftime("%H:%M")
    if kind == WEEKLY and rule.weekdays:
        label = ", ".join(WEEKDAY_NAMES[int(d) - 1] for d in sorted(rule.weekdays))
    elif kind == MONTHLY and rule.anchor_date is not None:
        label = f"monthly on day {rule.anchor_date.day}"
    else:
        label = kind
    return f"{label} at {at}"
