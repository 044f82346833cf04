#!/usr/bin/env python3
"""
Interval Clock

Pure checkpoint arithmetic. Checkpoints are anchored to the bot's start time,
not to wall-clock boundaries: a daily bot started at 14:37 fires at 14:37
every day. Hourly, daily and weekly intervals are fixed spans; monthly
intervals are calendar based and keep the day of month (clamped to the last
day of shorter months).
"""

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional, Union

from .errors import ConfigurationError
from .models import BotSettings

# Fixed span used for a month when it has to be divided (smart intervals)
AVERAGE_MONTH = timedelta(seconds=2629746)

FIXED_INTERVALS = {
    'hour': timedelta(hours=1),
    'day': timedelta(days=1),
    'week': timedelta(weeks=1),
}

INTERVAL_NAMES = tuple(FIXED_INTERVALS) + ('month',)


@dataclass(frozen=True)
class IntervalSpan:
    """Either a fixed duration or a number of calendar months"""
    duration: Optional[timedelta] = None
    months: int = 0

    def __post_init__(self):
        if self.months <= 0 and (self.duration is None or self.duration <= timedelta(0)):
            raise ConfigurationError("Interval must be a positive duration or month count")

    @property
    def is_calendar(self) -> bool:
        return self.months > 0

    @property
    def approximate_duration(self) -> timedelta:
        if self.is_calendar:
            return AVERAGE_MONTH * self.months
        return self.duration

    def checkpoint(self, started_at: datetime, k: int) -> datetime:
        if self.is_calendar:
            return _add_months(started_at, k * self.months)
        return started_at + self.duration * k


IntervalLike = Union[IntervalSpan, timedelta, str]


def _add_months(moment: datetime, months: int) -> datetime:
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def interval_span(interval: IntervalLike) -> IntervalSpan:
    """Normalize an interval name, timedelta or span into an IntervalSpan"""
    if isinstance(interval, IntervalSpan):
        return interval
    if isinstance(interval, timedelta):
        return IntervalSpan(duration=interval)
    if interval == 'month':
        return IntervalSpan(months=1)
    if interval in FIXED_INTERVALS:
        return IntervalSpan(duration=FIXED_INTERVALS[interval])
    raise ConfigurationError(f"Unknown interval: {interval!r} (expected one of {', '.join(INTERVAL_NAMES)})")


def _smart_interval_ratio(settings: BotSettings) -> Optional[float]:
    if not settings.smart_intervals:
        return None
    smart_amount = settings.smart_interval_quote_amount
    if smart_amount <= 0 or smart_amount >= settings.quote_amount:
        return None
    return smart_amount / settings.quote_amount


def interval_duration(settings: BotSettings) -> IntervalSpan:
    """The configured interval of a bot"""
    return interval_span(settings.interval)


def effective_interval_duration(settings: BotSettings) -> IntervalSpan:
    """
    Interval the bot actually fires at

    Equals the configured interval unless smart intervals split each purchase
    into smaller, proportionally more frequent orders.
    """
    span = interval_duration(settings)
    ratio = _smart_interval_ratio(settings)
    if ratio is None:
        return span
    return IntervalSpan(duration=span.approximate_duration * ratio)


def effective_quote_amount(settings: BotSettings) -> float:
    """Quote amount that becomes due at every effective checkpoint"""
    if _smart_interval_ratio(settings) is None:
        return settings.quote_amount
    return settings.smart_interval_quote_amount


def _last_index(started_at: datetime, span: IntervalSpan, reference_time: datetime) -> int:
    """Index of the latest checkpoint <= reference_time (-1 before the start)"""
    if reference_time < started_at:
        return -1
    if not span.is_calendar:
        return (reference_time - started_at) // span.duration

    k = ((reference_time.year - started_at.year) * 12
         + reference_time.month - started_at.month) // span.months
    k = max(k, 0)
    while k > 0 and span.checkpoint(started_at, k) > reference_time:
        k -= 1
    while span.checkpoint(started_at, k + 1) <= reference_time:
        k += 1
    return k


def last_interval_checkpoint_at(started_at: datetime, interval: IntervalLike,
                                reference_time: datetime) -> Optional[datetime]:
    """Latest checkpoint at or before reference_time, None before the start"""
    span = interval_span(interval)
    k = _last_index(started_at, span, reference_time)
    if k < 0:
        return None
    return span.checkpoint(started_at, k)


def next_interval_checkpoint_at(started_at: datetime, interval: IntervalLike,
                                reference_time: datetime) -> datetime:
    """
    Next checkpoint ``started_at + k * interval`` that is still ahead

    A checkpoint equal to reference_time counts as reached, so an action
    running exactly on its checkpoint is scheduled one interval later.

    Args:
        started_at: Anchor of the checkpoint grid (bot start time)
        interval: Interval name, timedelta or IntervalSpan
        reference_time: Usually "now"

    Returns:
        The checkpoint instant
    """
    span = interval_span(interval)
    if reference_time < started_at:
        return started_at
    return span.checkpoint(started_at, _last_index(started_at, span, reference_time) + 1)


def checkpoints_between(started_at: datetime, interval: IntervalLike,
                        since: datetime, until: datetime) -> int:
    """Number of checkpoints falling in the closed range [since, until]"""
    span = interval_span(interval)
    if until < since:
        return 0

    if since <= started_at:
        first = 0
    else:
        k = _last_index(started_at, span, since)
        first = k if span.checkpoint(started_at, k) == since else k + 1

    last = _last_index(started_at, span, until)
    return max(0, last - first + 1)
