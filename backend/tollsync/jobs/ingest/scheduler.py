import logging
import threading
import time
from datetime import date, timedelta
from typing import Callable, Optional

from tollsync.jobs.ingest.loader import build_records
from tollsync.jobs.ingest.sources.base import BaseSource
from tollsync.jobs.ingest.types import Empty, Failure
from tollsync.jobs.ingest.utils.time import iter_dates, parse_iso_date
from tollsync.storage.toll_records import TollRecordRepository

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 0.5
DEFAULT_MIN_AGE_DAYS = 2
DEFAULT_START_DATE = date(2024, 5, 31)


def _cancelled(cancel: Optional[threading.Event]) -> bool:
    return cancel is not None and cancel.is_set()


class IngestionScheduler:
    """
    Day-by-day import of toll records.

    A date that already has any stored record is never fetched again. This is
    the only duplicate guard: there is no per-record dedup, and a date that
    committed part of a batch would be skipped forever. Batches are written
    in a single transaction so that cannot happen from inside this class.
    """

    def __init__(
        self,
        repository: TollRecordRepository,
        source: BaseSource,
        *,
        delay: float = DEFAULT_DELAY_SECONDS,
        min_age_days: int = DEFAULT_MIN_AGE_DAYS,
        default_start_date: date = DEFAULT_START_DATE,
        today: Optional[Callable[[], date]] = None,
    ):
        self.repository = repository
        self.source = source
        self.delay = delay
        self.min_age_days = min_age_days
        self.default_start_date = default_start_date
        self._today = today or source.today

    def end_date(self) -> date:
        return self._today() - timedelta(days=self.min_age_days)

    def import_since_default(self, cancel: Optional[threading.Event] = None) -> int:
        return self.import_range(self.default_start_date, cancel=cancel)

    def import_range(self, start_date: date, cancel: Optional[threading.Event] = None) -> int:
        """
        Best-effort import of [start_date, today - min_age_days].

        Fetch failures are logged per day and never abort the run. Storage
        errors (PersistenceError) do. When cancel is set the loop stops at the
        next check and the partial count is returned.
        """
        end_date = self.end_date()
        logger.info(
            "Import start source=%s dates=%s..%s",
            self.source.name,
            start_date.isoformat(),
            end_date.isoformat(),
        )

        total = 0
        fetched = 0
        skipped = 0
        failed = 0

        for day in iter_dates(start_date, end_date):
            if _cancelled(cancel):
                logger.warning("Import cancelled before %s", day.isoformat())
                break

            if self.repository.exists_for_date(day):
                skipped += 1
                logger.info("Date %s: records already present, skipping", day.isoformat())
                continue

            outcome = self.source.fetch_for_date(day)
            fetched += 1

            if _cancelled(cancel):
                logger.warning("Import cancelled while fetching %s; result discarded", day.isoformat())
                break

            if isinstance(outcome, Failure):
                failed += 1
                logger.error("Date %s: fetch failed: %r", day.isoformat(), outcome.error)
            elif isinstance(outcome, Empty):
                logger.info("Date %s: no data (%s)", day.isoformat(), outcome.reason)
            else:
                total += self._store(day, outcome.items)

            self._pause(cancel)

        logger.info(
            "Import finished total=%d dates_fetched=%d dates_skipped=%d dates_failed=%d",
            total,
            fetched,
            skipped,
            failed,
        )
        return total

    def import_single_date(self, date_string: str) -> int:
        """
        Import one date. Unlike import_range, fetch failures are raised to
        the caller. Returns 0 if the date is already stored or has no data.
        """
        day = parse_iso_date(date_string)

        if self.repository.exists_for_date(day):
            logger.warning("Date %s: records already present, nothing imported", day.isoformat())
            return 0

        outcome = self.source.fetch_for_date(day)
        if isinstance(outcome, Failure):
            raise outcome.error
        if isinstance(outcome, Empty):
            logger.info("Date %s: no data available (%s)", day.isoformat(), outcome.reason)
            return 0

        return self._store(day, outcome.items)

    def _store(self, day: date, items: list) -> int:
        if not items:
            return 0
        records = build_records(day, items)
        self.repository.insert_batch(records)
        logger.info("Date %s: %d records saved", day.isoformat(), len(records))
        return len(records)

    def _pause(self, cancel: Optional[threading.Event]) -> None:
        if self.delay <= 0:
            return
        if cancel is not None:
            # wakes early on cancellation
            cancel.wait(self.delay)
        else:
            time.sleep(self.delay)
