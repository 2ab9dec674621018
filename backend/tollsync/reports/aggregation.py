from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable

from tollsync.core.errors import InvalidMonth
from tollsync.models.toll_records import TollRecord

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    count: int
    total: Decimal


@dataclass(frozen=True)
class StationDayRow:
    station: str
    date: date
    count: int
    sum_amount: Decimal
    categories: list[CategoryTotal]


@dataclass(frozen=True)
class MonthlyReport:
    period: str
    total_stations: int
    total_days: int
    total_records: int
    total_amount: Decimal
    rows: list[StationDayRow]


@dataclass(frozen=True)
class StationRow:
    station: str
    count: int
    sum_amount: Decimal
    days_with_data: int
    average_daily_revenue: Decimal
    categories: list[CategoryTotal]


@dataclass(frozen=True)
class StationReport:
    period: str
    total_stations: int
    rows: list[StationRow]


def period_label(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def month_window(year: int, month: int) -> tuple[date, date]:
    """First and last calendar date of the month, both inclusive."""
    if not 1 <= month <= 12:
        raise InvalidMonth(month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def _sum_amounts(records: Iterable[TollRecord]) -> Decimal:
    return money(sum((Decimal(r.amount) for r in records), ZERO))


def category_breakdown(records: Iterable[TollRecord]) -> list[CategoryTotal]:
    by_category: dict[str, list[TollRecord]] = {}
    for r in records:
        by_category.setdefault(r.category, []).append(r)

    return [
        CategoryTotal(category=cat, count=len(rows), total=_sum_amounts(rows))
        for cat, rows in sorted(by_category.items())
    ]


def group_by_station_day(records: Iterable[TollRecord]) -> list[StationDayRow]:
    """One row per (station, calendar date), ordered by station then date."""
    groups: dict[tuple[str, date], list[TollRecord]] = {}
    for r in records:
        groups.setdefault((r.station, r.passage_ts.date()), []).append(r)

    return [
        StationDayRow(
            station=station,
            date=day,
            count=len(rows),
            sum_amount=_sum_amounts(rows),
            categories=category_breakdown(rows),
        )
        for (station, day), rows in sorted(groups.items())
    ]


def summarize_monthly(period: str, rows: list[StationDayRow]) -> MonthlyReport:
    # totals come from the rows so the summary always agrees with the detail
    return MonthlyReport(
        period=period,
        total_stations=len({r.station for r in rows}),
        total_days=len({r.date for r in rows}),
        total_records=sum(r.count for r in rows),
        total_amount=money(sum((r.sum_amount for r in rows), ZERO)),
        rows=rows,
    )


def average_daily_revenue(sum_amount: Decimal, days_with_data: int, *, station: str = "") -> Decimal:
    if days_with_data <= 0:
        logger.warning("Station %r has no dated records; average daily revenue reported as 0.00", station)
        return ZERO
    return money(Decimal(sum_amount) / days_with_data)


def group_by_station(records: Iterable[TollRecord]) -> list[StationRow]:
    """One row per station, highest revenue first."""
    groups: dict[str, list[TollRecord]] = {}
    for r in records:
        groups.setdefault(r.station, []).append(r)

    rows: list[StationRow] = []
    for station, station_records in groups.items():
        total = _sum_amounts(station_records)
        days = len({r.passage_ts.date() for r in station_records})
        rows.append(
            StationRow(
                station=station,
                count=len(station_records),
                sum_amount=total,
                days_with_data=days,
                average_daily_revenue=average_daily_revenue(total, days, station=station),
                categories=category_breakdown(station_records),
            )
        )

    rows.sort(key=lambda r: r.station)
    rows.sort(key=lambda r: r.sum_amount, reverse=True)
    return rows
