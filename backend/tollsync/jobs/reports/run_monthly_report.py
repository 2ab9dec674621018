import argparse
import dataclasses
import json

from sqlalchemy.orm import Session

from tollsync.core.db import SessionLocal, init_db
from tollsync.jobs.runs import finish_job, start_job
from tollsync.reports.monthly import ReportAggregator
from tollsync.storage.toll_records import TollRecordRepository


def main():
    p = argparse.ArgumentParser(description="Print a monthly toll revenue report as JSON")
    p.add_argument("--year", type=int, required=True)
    p.add_argument("--month", type=int, required=True, help="1-12")
    p.add_argument("--by-station", action="store_true", help="Group by station only")
    args = p.parse_args()

    init_db()
    db: Session = SessionLocal()
    job_name = "report_by_station" if args.by_station else "report_monthly"
    run_id = start_job(db, job_name, {"args": vars(args)})

    try:
        aggregator = ReportAggregator(TollRecordRepository(db))
        if args.by_station:
            report = aggregator.by_station_report(args.year, args.month)
        else:
            report = aggregator.monthly_report(args.year, args.month)

        finish_job(db, run_id, "success", {"period": report.period, "total_stations": report.total_stations})
        print(json.dumps(dataclasses.asdict(report), default=str, indent=2))

    except Exception as e:
        db.rollback()
        finish_job(db, run_id, "fail", {"error": repr(e)})
        raise

    finally:
        db.close()


if __name__ == "__main__":
    main()
