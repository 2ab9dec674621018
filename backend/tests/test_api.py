from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient

from tollsync import main
from tollsync.core import deps
from tollsync.core.deps import get_config, get_db, get_recaudo_source
from tollsync.main import app
from tollsync.models.toll_records import TollRecord


@pytest.fixture
def api(db, source, cfg):
    app.dependency_overrides[get_db] = lambda: db
    app.dependency_overrides[get_recaudo_source] = lambda: source
    app.dependency_overrides[get_config] = lambda: cfg
    yield TestClient(app)
    app.dependency_overrides.clear()


def _item(hour: int, amount: float) -> dict:
    return {"Estacion": "X", "Sentido": "N-S", "Hora": hour, "Categoria": "auto", "ValorTabulado": amount}


def test_health(api) -> None:
    assert api.get("/v1/health").json() == {"status": "ok"}


def test_import_single_date(api, upstream) -> None:
    upstream.records("2024-06-01", [_item(5, 3.5), _item(10, 7.0)])

    first = api.post("/v1/recaudos/import/2024-06-01")
    second = api.post("/v1/recaudos/import/2024-06-01")

    assert first.status_code == 200
    assert first.json()["records_imported"] == 2
    assert second.json()["records_imported"] == 0


def test_import_single_date_bad_format(api) -> None:
    r = api.post("/v1/recaudos/import/June-1")
    assert r.status_code == 400


def test_import_single_date_upstream_error(api, upstream) -> None:
    upstream.queue("/api/RecaudoVehiculos/2024-06-01", httpx.Response(500))

    r = api.post("/v1/recaudos/import/2024-06-01")
    assert r.status_code == 502


def test_import_range_reports_window(api, upstream, clock) -> None:
    upstream.records("2024-06-01", [_item(5, 3.5)])

    r = api.post("/v1/recaudos/import")

    assert r.status_code == 200
    body = r.json()
    assert body["records_imported"] == 1
    assert body["start_date"] == "2024-05-31"
    assert body["end_date"] == "2024-06-08"


def test_monthly_report_endpoint(api, repository) -> None:
    repository.insert_batch(
        [
            TollRecord(station="A", direction="N", passage_ts=datetime(2024, 6, 1, 8), category="car", amount=Decimal("10.00")),
            TollRecord(station="A", direction="N", passage_ts=datetime(2024, 6, 1, 9), category="car", amount=Decimal("10.00")),
        ]
    )

    r = api.get("/v1/recaudos/reports/monthly", params={"year": 2024, "month": 6})

    assert r.status_code == 200
    body = r.json()
    assert body["total_records"] == 2
    (row,) = body["rows"]
    assert row["station"] == "A"
    assert row["date"] == "2024-06-01"
    assert Decimal(row["sum_amount"]) == Decimal("20.00")
    assert row["categories"][0]["category"] == "car"
    assert row["categories"][0]["count"] == 2


def test_station_report_endpoint(api, repository) -> None:
    repository.insert_batch(
        [
            TollRecord(station="A", direction="N", passage_ts=datetime(2024, 6, 1, 8), category="car", amount=Decimal("60.00")),
            TollRecord(station="A", direction="N", passage_ts=datetime(2024, 6, 2, 8), category="car", amount=Decimal("40.00")),
        ]
    )

    r = api.get("/v1/recaudos/reports/stations", params={"year": 2024, "month": 6})

    assert r.status_code == 200
    (row,) = r.json()["rows"]
    assert Decimal(row["average_daily_revenue"]) == Decimal("50.00")


@pytest.mark.parametrize("path", ["/v1/recaudos/reports/monthly", "/v1/recaudos/reports/stations"])
def test_reports_reject_invalid_month(api, path) -> None:
    assert api.get(path, params={"year": 2024, "month": 13}).status_code == 400
    assert api.get(path, params={"year": 2024, "month": 0}).status_code == 400


def test_shutdown_closes_shared_source_client(cfg, monkeypatch) -> None:
    monkeypatch.setattr(main, "init_db", lambda: None)
    monkeypatch.setattr(deps, "get_config", lambda: cfg)
    get_recaudo_source.cache_clear()

    with TestClient(app):
        shared = get_recaudo_source()
        assert not shared._client.is_closed

    assert shared._client.is_closed
    assert get_recaudo_source.cache_info().currsize == 0
