from datetime import date
from decimal import Decimal

from tollsync.jobs.ingest.sources.recaudo.payloads import TollRecordPayload
from tollsync.jobs.ingest.utils.time import hour_offset_to_dt
from tollsync.models.toll_records import TollRecord

CENTS = Decimal("0.01")


def payload_to_record(day: date, item: TollRecordPayload) -> TollRecord:
    return TollRecord(
        station=item.station,
        direction=item.direction,
        passage_ts=hour_offset_to_dt(day, item.hour_offset),
        category=item.category,
        amount=Decimal(item.amount).quantize(CENTS),
    )


def build_records(day: date, items: list[TollRecordPayload]) -> list[TollRecord]:
    """
    Map one day's payload to TollRecord rows. The date comes from the request,
    the hour from each item; the upstream never sends a full timestamp.
    """
    return [payload_to_record(day, item) for item in items]
