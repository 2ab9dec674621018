import logging
from datetime import date
from typing import Callable, Optional

import httpx
from pydantic import TypeAdapter

from tollsync.core.errors import AuthFailure, HttpError, NetworkError
from tollsync.jobs.ingest.sources.base import BaseSource
from tollsync.jobs.ingest.types import Empty, Failure, FetchOutcome, Records
from tollsync.jobs.ingest.utils.time import today_in

from .auth import AuthTokenManager
from .config import RecaudoConfig, load_config
from .http import body_snippet, configure_logging_if_needed, make_client
from .payloads import TOLL_RECORDS, VEHICLE_COUNTS, parse_array

logger = logging.getLogger(__name__)

RECAUDO_PATH = "/RecaudoVehiculos/{day}"
CONTEO_PATH = "/ConteoVehiculos/{day}"


class RecaudoSource(BaseSource):
    """
    Toll collection API:
      - POST /Login for a bearer token (cached by AuthTokenManager)
      - GET /RecaudoVehiculos/{yyyy-MM-dd} for one day of toll records
      - GET /ConteoVehiculos/{yyyy-MM-dd} for one day of vehicle counts

    Every fetch is normalised into Records / Empty / Failure.
    """

    name = "recaudo"

    def __init__(
        self,
        cfg: Optional[RecaudoConfig] = None,
        *,
        client: Optional[httpx.Client] = None,
        token_manager: Optional[AuthTokenManager] = None,
        today: Optional[Callable[[], date]] = None,
    ):
        configure_logging_if_needed()
        self.cfg = cfg or load_config()
        self._owns_client = client is None
        self._client = client or make_client(self.cfg)
        self.tokens = token_manager or AuthTokenManager(self.cfg, self._client)
        self._today = today or (lambda: today_in(self.cfg.timezone))

        logger.info(
            "Recaudo configured base_url=%s timeout=%.1f min_age_days=%d delay=%.2f tz=%s",
            self.cfg.base_url,
            self.cfg.timeout,
            self.cfg.min_age_days,
            self.cfg.request_delay,
            self.cfg.timezone,
        )

    def __enter__(self) -> "RecaudoSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def today(self) -> date:
        return self._today()

    def is_available(self, day: date) -> bool:
        return (self.today() - day).days >= self.cfg.min_age_days

    def fetch_for_date(self, day: date) -> FetchOutcome:
        if not self.is_available(day):
            logger.info(
                "Date %s is too recent; upstream only serves dates at least %d days old",
                day.isoformat(),
                self.cfg.min_age_days,
            )
            return Empty(reason="too_recent")

        return self._fetch(RECAUDO_PATH.format(day=day.isoformat()), day, TOLL_RECORDS)

    def fetch_counts_for_date(self, day: date) -> FetchOutcome:
        """Vehicle counts for a date. Not used by the import jobs."""
        return self._fetch(CONTEO_PATH.format(day=day.isoformat()), day, VEHICLE_COUNTS)

    def _get(self, path: str, token: str) -> httpx.Response:
        return self._client.get(path, headers={"Authorization": f"Bearer {token}"})

    def _fetch(self, path: str, day: date, adapter: TypeAdapter) -> FetchOutcome:
        try:
            token = self.tokens.ensure_token()
        except AuthFailure as e:
            logger.error("Could not authenticate to fetch %s: %s", day.isoformat(), e)
            return Failure(e)

        try:
            r = self._get(path, token)

            if r.status_code == 401:
                logger.warning("Token rejected on GET %s; re-authenticating once", path)
                self.tokens.invalidate(token)
                try:
                    token = self.tokens.ensure_token()
                except AuthFailure as e:
                    logger.error("Re-authentication failed for GET %s: %s", path, e)
                    return Failure(e)

                r = self._get(path, token)
                if r.status_code == 401:
                    logger.error("Fresh token rejected on GET %s; giving up", path)
                    return Failure(AuthFailure(f"Token rejected twice on GET {path}", status=401))

        except httpx.TimeoutException as e:
            logger.error("Timeout on GET %s (timeout=%.1fs): %r", path, self.cfg.timeout, e)
            return Failure(NetworkError(f"Timeout on GET {path}"))

        except httpx.HTTPError as e:
            logger.error("Request failed GET %s error=%r", path, e)
            return Failure(NetworkError(f"Request failed on GET {path}: {e!r}"))

        return self._interpret(r, path, day, adapter)

    def _interpret(self, r: httpx.Response, path: str, day: date, adapter: TypeAdapter) -> FetchOutcome:
        if r.status_code == 204:
            logger.info("Date %s: no data available (204 No Content)", day.isoformat())
            return Empty(reason="no_content")

        if not r.is_success:
            snippet = body_snippet(r)
            logger.error("Non-success HTTP %d GET %s body_snippet=%r", r.status_code, path, snippet)
            return Failure(HttpError(r.status_code, snippet))

        text = (r.text or "").strip()
        if not text or text == "[]":
            logger.info("Date %s: no data available (empty response)", day.isoformat())
            return Empty(reason="empty_body")

        try:
            items = parse_array(text, adapter)
        except ValueError as e:
            logger.warning(
                "Date %s: malformed payload treated as no data: %s body_snippet=%r",
                day.isoformat(),
                e,
                text[:200],
            )
            return Empty(reason="malformed")

        if not items:
            logger.info("Date %s: no data available (empty array)", day.isoformat())
            return Empty(reason="empty_body")

        logger.info("Date %s: %d records fetched", day.isoformat(), len(items))
        return Records(items)
