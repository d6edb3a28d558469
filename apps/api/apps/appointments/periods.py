"""
Reporting periods for dashboards.
"""
import calendar
from datetime import date, timedelta
from typing import Tuple

from django.db import models


class PeriodChoices(models.TextChoices):
    TODAY = 'today', 'Today'
    WEEK = 'week', 'This week'
    MONTH = 'month', 'This month'
    YEAR = 'year', 'This year'


def period_range(period: str, today: date) -> Tuple[date, date]:
    """
    Inclusive (start, end) dates of ``period`` around ``today``.

    Weeks start on Monday. Unknown periods fall back to the month.
    """
    if period == PeriodChoices.TODAY:
        return today, today
    if period == PeriodChoices.WEEK:
        start = today - timedelta(days=today.weekday())
        return start, start + timedelta(days=6)
    if period == PeriodChoices.YEAR:
        return date(today.year, 1, 1), date(today.year, 12, 31)

    last_day = calendar.monthrange(today.year, today.month)[1]
    return date(today.year, today.month, 1), date(today.year, today.month, last_day)
