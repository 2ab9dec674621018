from sqlalchemy import Column, DateTime, Integer, Numeric, String
from sqlalchemy.sql import func

from tollsync.core.db import Base


class TollRecord(Base):
    __tablename__ = "toll_records"

    # No natural key: the upstream can report identical passages, and the
    # import jobs only guard against re-fetching a whole day.
    id = Column(Integer, primary_key=True, autoincrement=True)

    station = Column(String(100), nullable=False, index=True)
    direction = Column(String(50), nullable=False)
    passage_ts = Column(DateTime, nullable=False, index=True)
    category = Column(String(50), nullable=False, index=True)
    amount = Column(Numeric(18, 2), nullable=False)

    ingested_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self) -> str:
        return (
            f"TollRecord(station={self.station!r}, passage_ts={self.passage_ts!r}, "
            f"category={self.category!r}, amount={self.amount!r})"
        )
