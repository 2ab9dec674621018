import logging
from datetime import date, timedelta

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from tollsync.core.errors import PersistenceError
from tollsync.jobs.ingest.utils.time import day_bounds, midnight
from tollsync.models.toll_records import TollRecord

logger = logging.getLogger(__name__)


class TollRecordRepository:
    """
    The three storage operations the sync engine and reports depend on.
    SQLAlchemy errors are wrapped in PersistenceError.
    """

    def __init__(self, db: Session):
        self.db = db

    def exists_for_date(self, day: date) -> bool:
        start, end = day_bounds(day)
        stmt = (
            select(TollRecord.id)
            .where(TollRecord.passage_ts >= start, TollRecord.passage_ts < end)
            .limit(1)
        )
        try:
            return self.db.execute(stmt).first() is not None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Existence check failed for {day.isoformat()}: {e}") from e

    def insert_batch(self, records: list[TollRecord]) -> None:
        """
        Persist a whole batch in one transaction. A date only starts to
        "exist" once its full batch has committed.
        """
        if not records:
            return
        try:
            self.db.add_all(records)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Batch insert of %d records rolled back: %r", len(records), e)
            raise PersistenceError(f"Batch insert of {len(records)} records failed: {e}") from e

    def query_in_window(self, start_date: date, end_date: date) -> list[TollRecord]:
        """Records whose passage falls on any calendar date in [start_date, end_date]."""
        stmt = (
            select(TollRecord)
            .where(
                TollRecord.passage_ts >= midnight(start_date),
                TollRecord.passage_ts < midnight(end_date + timedelta(days=1)),
            )
            .order_by(TollRecord.station, TollRecord.passage_ts, TollRecord.id)
        )
        try:
            return list(self.db.scalars(stmt))
        except SQLAlchemyError as e:
            raise PersistenceError(
                f"Window query {start_date.isoformat()}..{end_date.isoformat()} failed: {e}"
            ) from e
