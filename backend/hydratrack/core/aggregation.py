"""Intake Aggregation - Pure functions for daily progress and history.

All functions are pure: same input always produces same output, no side effects.
Calendar days are local to the caller's reference time zone (UTC by default).
"""

import math
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from .models import IntakeLogEntry, DayAggregate, DailyHistory, StatusColor


# Preset amounts offered for one-tap logging (ml)
QUICK_ADD_AMOUNTS = (100, 200, 250, 500)

# Lower bound (inclusive) of each band, highest first
_STATUS_BANDS = (
    (90, StatusColor.GREEN),
    (75, StatusColor.EMERALD),
    (50, StatusColor.AMBER),
)


def day_bounds(day: date, tz: tzinfo = timezone.utc) -> tuple[datetime, datetime]:
    """Get the half-open interval [start, end) covering a local calendar day.

    Args:
        day: The calendar day
        tz: Reference time zone

    Returns:
        Tuple of (start, end) as aware datetimes; end is the next midnight
    """
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def local_date(logged_at: datetime, tz: tzinfo = timezone.utc) -> date:
    """Calendar day a timestamp falls on in the reference time zone.

    Naive timestamps are taken to be local already.
    """
    if logged_at.tzinfo is None:
        return logged_at.date()
    return logged_at.astimezone(tz).date()


def _localize(logged_at: datetime, tz: tzinfo) -> datetime:
    if logged_at.tzinfo is None:
        return logged_at.replace(tzinfo=tz)
    return logged_at.astimezone(tz)


def sum_for_day(
    entries: Iterable[IntakeLogEntry],
    day: date,
    tz: tzinfo = timezone.utc,
) -> float:
    """Sum the amounts logged within one calendar day.

    An entry logged exactly at midnight belongs to the day that starts there.

    Args:
        entries: Intake entries in any order
        day: The calendar day to total
        tz: Reference time zone

    Returns:
        Total ml for the day (0 if nothing was logged)
    """
    start, end = day_bounds(day, tz)
    return sum(
        (e.amount for e in entries if start <= _localize(e.logged_at, tz) < end),
        0,
    )


def progress_percentage(total: float, goal: float) -> int:
    """Calculate progress towards the goal as a whole percentage.

    Rounded half up and capped at 100. Not floored at 0.

    Args:
        total: ml logged so far
        goal: Daily goal in ml

    Returns:
        Percentage, at most 100

    Raises:
        ValueError: If goal is not positive
    """
    if goal <= 0:
        raise ValueError(f"Goal must be positive, got {goal}")
    return min(math.floor(total / goal * 100 + 0.5), 100)


def status_color(pct: int) -> StatusColor:
    """Map a progress percentage to its status band.

    Bands: [0,50) red, [50,75) amber, [75,90) emerald, [90,...) green.
    """
    for lower, color in _STATUS_BANDS:
        if pct >= lower:
            return color
    return StatusColor.RED


def remaining_amount(total: float, goal: float) -> float:
    """ml still needed to reach the goal, never negative."""
    return max(goal - total, 0)


def format_amount(amount: float) -> str:
    """Format an amount for display.

    1000 ml and above render as liters with one decimal ("1.5L"), halves
    rounding up. Below that, whole milliliters ("250ml"); any fractional
    ml is truncated.
    """
    if amount >= 1000:
        liters = (Decimal(str(amount)) / 1000).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
        return f"{liters}L"
    return f"{int(amount)}ml"


def _build_aggregate(log_date: date, entries: list[IntakeLogEntry], daily_goal: float) -> DayAggregate:
    ordered = sorted(entries, key=lambda e: e.logged_at, reverse=True)
    total = sum((e.amount for e in ordered), 0)
    pct = progress_percentage(total, daily_goal)

    return DayAggregate(
        log_date=log_date,
        total=total,
        entries=ordered,
        progress_pct=pct,
        status_color=status_color(pct),
    )


def group_by_day(
    entries: Iterable[IntakeLogEntry],
    daily_goal: float,
    tz: tzinfo = timezone.utc,
) -> dict[date, DayAggregate]:
    """Partition entries into per-day aggregates.

    Each entry lands in exactly one bucket: its local calendar day. Days with
    no entries are absent. Within a bucket entries are most recent first;
    buckets are keyed most recent day first.

    Args:
        entries: Intake entries in any order
        daily_goal: Goal used for progress and status color
        tz: Reference time zone

    Returns:
        Mapping of date to DayAggregate
    """
    buckets: dict[date, list[IntakeLogEntry]] = {}
    for entry in entries:
        buckets.setdefault(local_date(entry.logged_at, tz), []).append(entry)

    return {
        day: _build_aggregate(day, buckets[day], daily_goal)
        for day in sorted(buckets, reverse=True)
    }


def summarize_day(
    entries: Iterable[IntakeLogEntry],
    day: date,
    daily_goal: float,
    tz: tzinfo = timezone.utc,
) -> DayAggregate:
    """Aggregate a single day, returning a zero aggregate if nothing was logged.

    Args:
        entries: Intake entries in any order (other days are ignored)
        day: The calendar day to summarize
        daily_goal: Goal used for progress and status color
        tz: Reference time zone

    Returns:
        DayAggregate for the day
    """
    day_entries = [e for e in entries if local_date(e.logged_at, tz) == day]
    return _build_aggregate(day, day_entries, daily_goal)


def build_history(
    entries: Iterable[IntakeLogEntry],
    daily_goal: int,
    end_date: date,
    days: int = 7,
    tz: tzinfo = timezone.utc,
) -> DailyHistory:
    """Build the last-N-days view ending at end_date.

    The window is `days` calendar days ending at end_date, both ends
    inclusive, so days=1 covers end_date only. Entries outside it are
    ignored.

    Args:
        entries: Intake entries in any order
        daily_goal: The user's daily goal in ml
        end_date: Last day of the window (usually today)
        days: How many days to look back
        tz: Reference time zone

    Returns:
        DailyHistory with per-day aggregates and period metrics
    """
    start_date = end_date - timedelta(days=days - 1)

    in_window = [
        e for e in entries
        if start_date <= local_date(e.logged_at, tz) <= end_date
    ]
    aggregates = list(group_by_day(in_window, daily_goal, tz).values())

    total = sum((a.total for a in aggregates), 0)
    days_logged = len(aggregates)
    avg_daily_total = total / days_logged if days_logged > 0 else 0

    return DailyHistory(
        start_date=start_date,
        end_date=end_date,
        daily_goal=daily_goal,
        days=aggregates,
        days_logged=days_logged,
        days_goal_met=sum(1 for a in aggregates if a.total >= daily_goal),
        total=total,
        avg_daily_total=round(avg_daily_total, 1),
    )
