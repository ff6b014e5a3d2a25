"""Risk scoring engine.

Pure functions: impact x likelihood matrix, severity banding and review
date arithmetic. Nothing here knows whether a pair is inherent or
residual; callers pick the pair.
"""

from __future__ import annotations

import calendar
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, Optional

from ..models.entity import as_utc
from ..models.projection import RiskScore, Severity
from ..models.values import Impact, Likelihood

MIN_SCORE = 1
MAX_SCORE = 25
DEFAULT_HORIZON_DAYS = 30


# Inclusive lower bounds, checked highest first.
SEVERITY_BANDS: list[tuple[int, Severity]] = [
    (15, Severity.CRITICAL),
    (8, Severity.HIGH),
    (4, Severity.MEDIUM),
    (MIN_SCORE, Severity.LOW),
]


def score(impact: Impact | str, likelihood: Likelihood | str) -> int:
    """Return ordinal(impact) * ordinal(likelihood), in 1..25."""
    return Impact(impact).ordinal * Likelihood(likelihood).ordinal


def severity(value: int) -> Severity:
    for floor, band in SEVERITY_BANDS:
        if value >= floor:
            return band
    return Severity.LOW


def risk_score(impact: Impact | str, likelihood: Likelihood | str) -> RiskScore:
    """Score a pair and band it."""
    value = score(impact, likelihood)
    return RiskScore(value=value, severity=severity(value))


def risk_reduction_percentage(inherent: int, residual: Optional[int]) -> Optional[int]:
    """Share of the inherent score removed by treatment, as a rounded percentage."""
    if residual is None:
        return None
    if inherent <= 0:
        return 0
    return round((inherent - residual) / inherent * 100)


def is_review_due(next_review_date: Optional[datetime], now: datetime) -> bool:
    if next_review_date is None:
        return False
    return as_utc(next_review_date) <= as_utc(now)


def is_review_upcoming(
    next_review_date: Optional[datetime],
    now: datetime,
    horizon_days: int = DEFAULT_HORIZON_DAYS,
) -> bool:
    if next_review_date is None:
        return False
    now = as_utc(now)
    return now < as_utc(next_review_date) <= now + timedelta(days=horizon_days)


def add_months(moment: datetime, months: int) -> datetime:
    """Shift by whole calendar months, clamping the day to the target month's end."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def next_review_date(last_review: Optional[datetime], period_months: int) -> Optional[datetime]:
    if last_review is None:
        return None
    return add_months(last_review, period_months)


def heatmap(pairs: Iterable[tuple[Impact | str, Likelihood | str]]) -> dict[tuple[Impact, Likelihood], int]:
    """Count risks per matrix cell. Every one of the 25 cells is present."""
    counts = Counter((Impact(i), Likelihood(l)) for i, l in pairs)
    return {(i, l): counts.get((i, l), 0) for i in Impact for l in Likelihood}
