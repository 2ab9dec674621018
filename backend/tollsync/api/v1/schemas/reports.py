import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, ConfigDict


class _ReportModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class CategoryTotalOut(_ReportModel):
    category: str
    count: int
    total: Decimal


class StationDayRowOut(_ReportModel):
    station: str
    date: dt.date
    count: int
    sum_amount: Decimal
    categories: list[CategoryTotalOut]


class MonthlyReportOut(_ReportModel):
    period: str
    total_stations: int
    total_days: int
    total_records: int
    total_amount: Decimal
    rows: list[StationDayRowOut]


class StationRowOut(_ReportModel):
    station: str
    count: int
    sum_amount: Decimal
    days_with_data: int
    average_daily_revenue: Decimal
    categories: list[CategoryTotalOut]


class StationReportOut(_ReportModel):
    period: str
    total_stations: int
    rows: list[StationRowOut]
