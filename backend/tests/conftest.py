from __future__ import annotations

from datetime import date, datetime, timedelta, timezone

import httpx
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from tollsync.core.db import Base
from tollsync.jobs.ingest.sources.recaudo.auth import AuthTokenManager
from tollsync.jobs.ingest.sources.recaudo.config import RecaudoConfig
from tollsync.jobs.ingest.sources.recaudo.source import RecaudoSource
from tollsync.models import job_runs, toll_records  # noqa: F401
from tollsync.storage.toll_records import TollRecordRepository

BASE_URL = "https://recaudo.test/api"
NOW = datetime(2024, 6, 10, 12, 0, tzinfo=timezone.utc)
TODAY = date(2024, 6, 10)


class FakeUpstream:
    """
    httpx.MockTransport handler for the toll API.

    Responses are queued per path; the last queued response is reused once the
    queue runs dry. Every request is kept in `requests`.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.routes: dict[str, list] = {}
        self.token_counter = 0
        self.login_expiration = NOW + timedelta(hours=1)
        self.login_status = 200

    def queue(self, path: str, *responses: httpx.Response | Exception) -> None:
        self.routes.setdefault(path, []).extend(responses)

    def records(self, day: str, items: list[dict]) -> None:
        self.queue(f"/api/RecaudoVehiculos/{day}", httpx.Response(200, json=items))

    def calls(self, prefix: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path.startswith(f"/api/{prefix}")]

    def _login(self, request: httpx.Request) -> httpx.Response:
        if self.login_status != 200:
            return httpx.Response(self.login_status, text="invalid credentials")
        self.token_counter += 1
        return httpx.Response(
            200,
            json={"token": f"token-{self.token_counter}", "expiration": self.login_expiration.isoformat()},
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/Login" and path not in self.routes:
            return self._login(request)

        queued = self.routes.get(path)
        if not queued:
            return httpx.Response(204)
        response = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(response, Exception):
            raise response
        # fresh copy, the client binds each response to its request
        return httpx.Response(response.status_code, headers=response.headers, content=response.content)


@pytest.fixture
def cfg() -> RecaudoConfig:
    return RecaudoConfig(
        base_url=BASE_URL,
        username="svc-user",
        password="svc-secret",
        timeout=5.0,
        request_delay=0.0,
        min_age_days=2,
        token_refresh_margin=300.0,
        import_start_date=date(2024, 5, 31),
        timezone="America/Bogota",
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def client(upstream: FakeUpstream, cfg: RecaudoConfig):
    with httpx.Client(base_url=cfg.base_url, transport=httpx.MockTransport(upstream)) as c:
        yield c


@pytest.fixture
def clock() -> dict:
    # mutable so tests can move time forward
    return {"now": NOW, "today": TODAY}


@pytest.fixture
def tokens(cfg: RecaudoConfig, client: httpx.Client, clock: dict) -> AuthTokenManager:
    return AuthTokenManager(cfg, client, now=lambda: clock["now"])


@pytest.fixture
def source(cfg: RecaudoConfig, client: httpx.Client, tokens: AuthTokenManager, clock: dict) -> RecaudoSource:
    return RecaudoSource(cfg, client=client, token_manager=tokens, today=lambda: clock["today"])


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    SessionTest = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    session = SessionTest()
    yield session
    session.close()


@pytest.fixture
def repository(db) -> TollRecordRepository:
    return TollRecordRepository(db)
