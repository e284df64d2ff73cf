# qa_grading/services/aggregation.py
"""
Aggregation over raw per-recording evaluations.

Everything here is pure: the only ambient input is "now", which every
function accepts explicitly so callers (and tests) control the clock.
"""
from __future__ import annotations

import calendar
import logging
import math
from datetime import datetime, timezone
from typing import List, Sequence

from qa_grading.schemas.evaluation import Evaluation, EvaluationSummary, Period

logger = logging.getLogger(__name__)

PERIODS = ("current_month", "previous_month", "last_3_months", "last_6_months", "all")

NOT_AVAILABLE = "N/A"

MIN_SCORE = 1.0
MAX_SCORE = 5.0

# (lower bound, letter) on the 1-5 scale, highest first
_LETTER_THRESHOLDS = [
    (4.7, "A"),
    (4.5, "A-"),
    (4.2, "B+"),
    (4.0, "B"),
    (3.7, "B-"),
    (3.5, "C+"),
    (3.0, "C"),
    (2.7, "C-"),
    (2.5, "D+"),
    (2.0, "D"),
    (1.7, "D-"),
]


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _now(now: datetime | None) -> datetime:
    return as_utc(now) if now is not None else datetime.now(timezone.utc)


def previous_month(year: int, month: int) -> tuple[int, int]:
    """(year, month) of the calendar month before the given one."""
    if month == 1:
        return year - 1, 12
    return year, month - 1


def months_before(now: datetime, months: int) -> datetime:
    """Same wall time `months` calendar months earlier; day clamped to month end."""
    index = now.year * 12 + (now.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(now.day, calendar.monthrange(year, month)[1])
    return now.replace(year=year, month=month, day=day)


def filter_by_period(
    evaluations: Sequence[Evaluation],
    period: Period,
    now: datetime | None = None,
) -> List[Evaluation]:
    if period not in PERIODS:
        raise ValueError(f"unknown period: {period!r}")
    if period == "all":
        return list(evaluations)

    now = _now(now)

    if period == "current_month":
        def keep(ts: datetime) -> bool:
            return ts.year == now.year and ts.month == now.month
    elif period == "previous_month":
        prev_year, prev_month = previous_month(now.year, now.month)

        def keep(ts: datetime) -> bool:
            return ts.year == prev_year and ts.month == prev_month
    else:
        cutoff = months_before(now, 3 if period == "last_3_months" else 6)

        def keep(ts: datetime) -> bool:
            return ts >= cutoff

    return [
        ev for ev in evaluations
        if ev.created_at is not None and keep(as_utc(ev.created_at))
    ]


def parse_score(value) -> float | None:
    """Numeric value of an overall_score, or None when it is not a finite number."""
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(score):
        return None
    return score


def clamp_score(score: float) -> float:
    return min(MAX_SCORE, max(MIN_SCORE, score))


def average_score(evaluations: Sequence[Evaluation]) -> float | str:
    scores = [parse_score(ev.overall_score) for ev in evaluations]
    valid = [clamp_score(s) for s in scores if s is not None]
    if not valid:
        return NOT_AVAILABLE
    if len(valid) != len(scores):
        logger.debug(f"Ignoring {len(scores) - len(valid)} evaluations without a numeric score")
    return round(sum(valid) / len(valid), 2)


def letter_grade(score) -> str:
    numeric = parse_score(score)
    if numeric is None:
        return ""
    for threshold, letter in _LETTER_THRESHOLDS:
        if numeric >= threshold:
            return letter
    return "F"


def period_label(period: Period, now: datetime | None = None) -> str:
    if period == "current_month":
        return "Current Month"
    if period == "previous_month":
        current = _now(now)
        year, month = previous_month(current.year, current.month)
        return f"{calendar.month_name[month]} {year}"
    if period == "last_3_months":
        return "Last 3 Months"
    if period == "last_6_months":
        return "Last 6 Months"
    return "All Time"


def summarize(
    evaluations: Sequence[Evaluation],
    period: Period,
    now: datetime | None = None,
) -> EvaluationSummary:
    filtered = filter_by_period(evaluations, period, now)
    avg = average_score(filtered)
    return EvaluationSummary(
        period=period,
        period_label=period_label(period, now),
        count=len(filtered),
        evaluation_ids=[ev.id for ev in filtered],
        average_score=avg,
        letter_grade=letter_grade(avg),
    )
