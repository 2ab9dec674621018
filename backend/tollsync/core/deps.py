from functools import lru_cache
from typing import Iterator

from fastapi import Depends
from sqlalchemy.orm import Session

from tollsync.core.db import SessionLocal
from tollsync.jobs.ingest.scheduler import IngestionScheduler
from tollsync.jobs.ingest.sources.recaudo.config import RecaudoConfig, load_config
from tollsync.jobs.ingest.sources.recaudo.source import RecaudoSource
from tollsync.reports.monthly import ReportAggregator
from tollsync.storage.toll_records import TollRecordRepository


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@lru_cache(maxsize=1)
def get_config() -> RecaudoConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_recaudo_source() -> RecaudoSource:
    # one source per process so every request shares the same cached token
    return RecaudoSource(get_config())


def get_repository(db: Session = Depends(get_db)) -> TollRecordRepository:
    return TollRecordRepository(db)


def get_scheduler(
    repository: TollRecordRepository = Depends(get_repository),
    source: RecaudoSource = Depends(get_recaudo_source),
    cfg: RecaudoConfig = Depends(get_config),
) -> IngestionScheduler:
    return IngestionScheduler(
        repository,
        source,
        delay=cfg.request_delay,
        min_age_days=cfg.min_age_days,
        default_start_date=cfg.import_start_date,
    )


def get_aggregator(repository: TollRecordRepository = Depends(get_repository)) -> ReportAggregator:
    return ReportAggregator(repository)
