import argparse
import signal
import threading

from sqlalchemy.orm import Session

from tollsync.core.db import SessionLocal, init_db
from tollsync.jobs.ingest.scheduler import IngestionScheduler
from tollsync.jobs.ingest.sources.recaudo.config import load_config
from tollsync.jobs.ingest.sources.recaudo.source import RecaudoSource
from tollsync.jobs.ingest.utils.time import parse_iso_date
from tollsync.jobs.runs import finish_job, start_job
from tollsync.storage.toll_records import TollRecordRepository


def main():
    p = argparse.ArgumentParser(description="Import toll records from the collection API into toll_records")
    group = p.add_mutually_exclusive_group()
    group.add_argument("--from-date", help="YYYY-MM-DD; imports up to today minus the upstream lag")
    group.add_argument("--date", help="YYYY-MM-DD; imports a single date and fails loudly on errors")
    args = p.parse_args()

    cfg = load_config()
    init_db()

    cancel = threading.Event()
    # first Ctrl-C stops after the current date
    signal.signal(signal.SIGINT, lambda *_: cancel.set())

    db: Session = SessionLocal()
    run_id = start_job(db, "import_recaudos", {"args": vars(args)})

    try:
        with RecaudoSource(cfg) as source:
            scheduler = IngestionScheduler(
                TollRecordRepository(db),
                source,
                delay=cfg.request_delay,
                min_age_days=cfg.min_age_days,
                default_start_date=cfg.import_start_date,
            )

            if args.date:
                imported = scheduler.import_single_date(args.date)
                result = {"date": args.date, "records_imported": imported}
            else:
                start = parse_iso_date(args.from_date) if args.from_date else cfg.import_start_date
                imported = scheduler.import_range(start, cancel=cancel)
                result = {
                    "start_date": start.isoformat(),
                    "end_date": scheduler.end_date().isoformat(),
                    "records_imported": imported,
                    "cancelled": cancel.is_set(),
                }

        finish_job(db, run_id, "success", result)
        print(result)

    except Exception as e:
        db.rollback()
        finish_job(db, run_id, "fail", {"error": repr(e)})
        raise

    finally:
        db.close()


if __name__ == "__main__":
    main()
