from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query

from tollsync.api.v1.schemas.imports import ImportResult
from tollsync.api.v1.schemas.reports import MonthlyReportOut, StationReportOut
from tollsync.core.deps import get_aggregator, get_scheduler
from tollsync.core.errors import (
    FetchError,
    InvalidDateFormat,
    InvalidMonth,
    PersistenceError,
)
from tollsync.jobs.ingest.scheduler import IngestionScheduler
from tollsync.reports.monthly import ReportAggregator

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/recaudos", tags=["recaudos"])


@router.post("/import", response_model=ImportResult)
def import_all(scheduler: IngestionScheduler = Depends(get_scheduler)):
    start = scheduler.default_start_date
    try:
        total = scheduler.import_since_default()
    except PersistenceError as e:
        logger.exception("Range import aborted")
        raise HTTPException(status_code=500, detail=f"Import aborted: {e}")

    return ImportResult(
        message="Import completed",
        records_imported=total,
        start_date=start.isoformat(),
        end_date=scheduler.end_date().isoformat(),
    )


@router.post("/import/{date_str}", response_model=ImportResult)
def import_date(date_str: str, scheduler: IngestionScheduler = Depends(get_scheduler)):
    try:
        total = scheduler.import_single_date(date_str)
    except InvalidDateFormat:
        raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")
    except FetchError as e:
        raise HTTPException(status_code=502, detail=f"Upstream fetch failed: {e}")
    except PersistenceError as e:
        logger.exception("Import of %s failed", date_str)
        raise HTTPException(status_code=500, detail=f"Import failed: {e}")

    return ImportResult(message=f"Import of {date_str} completed", records_imported=total)


@router.get("/reports/monthly", response_model=MonthlyReportOut)
def monthly_report(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., description="1-12"),
    aggregator: ReportAggregator = Depends(get_aggregator),
):
    try:
        report = aggregator.monthly_report(year, month)
    except InvalidMonth as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=f"Report failed: {e}")
    return MonthlyReportOut.model_validate(report)


@router.get("/reports/stations", response_model=StationReportOut)
def station_report(
    year: int = Query(..., ge=1, le=9999),
    month: int = Query(..., description="1-12"),
    aggregator: ReportAggregator = Depends(get_aggregator),
):
    try:
        report = aggregator.by_station_report(year, month)
    except InvalidMonth as e:
        raise HTTPException(status_code=400, detail=str(e))
    except PersistenceError as e:
        raise HTTPException(status_code=500, detail=f"Report failed: {e}")
    return StationReportOut.model_validate(report)
