import logging

from tollsync.storage.toll_records import TollRecordRepository

from .aggregation import (
    MonthlyReport,
    StationReport,
    group_by_station,
    group_by_station_day,
    month_window,
    period_label,
    summarize_monthly,
)

logger = logging.getLogger(__name__)


class ReportAggregator:
    """Monthly revenue reports over stored toll records."""

    def __init__(self, repository: TollRecordRepository):
        self.repository = repository

    def monthly_report(self, year: int, month: int) -> MonthlyReport:
        """Rows per (station, date) with a per-category breakdown."""
        start, end = month_window(year, month)
        records = self.repository.query_in_window(start, end)

        report = summarize_monthly(period_label(year, month), group_by_station_day(records))
        logger.info(
            "Monthly report %s: stations=%d days=%d records=%d amount=%s",
            report.period,
            report.total_stations,
            report.total_days,
            report.total_records,
            report.total_amount,
        )
        return report

    def by_station_report(self, year: int, month: int) -> StationReport:
        """Rows per station, ordered by revenue descending."""
        start, end = month_window(year, month)
        records = self.repository.query_in_window(start, end)

        rows = group_by_station(records)
        logger.info("Station report %s: stations=%d", period_label(year, month), len(rows))
        return StationReport(period=period_label(year, month), total_stations=len(rows), rows=rows)
