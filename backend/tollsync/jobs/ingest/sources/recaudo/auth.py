import logging
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import httpx

from tollsync.core.errors import AuthFailure

from .config import RecaudoConfig
from .http import body_snippet
from .payloads import TokenResponse

logger = logging.getLogger(__name__)

LOGIN_PATH = "/Login"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuthCredential:
    token: str
    expires_at: datetime

    def is_usable(self, now: datetime, margin: timedelta) -> bool:
        return bool(self.token) and now < self.expires_at - margin


class AuthTokenManager:
    """
    Owns the bearer credential for one upstream client.

    Check-and-refresh runs under a lock, so concurrent callers never issue
    overlapping logins and always see a complete credential.
    """

    def __init__(
        self,
        cfg: RecaudoConfig,
        client: httpx.Client,
        *,
        now: Optional[Callable[[], datetime]] = None,
    ):
        self.cfg = cfg
        self._client = client
        self._now = now or utcnow
        self._margin = timedelta(seconds=cfg.token_refresh_margin)
        self._lock = threading.Lock()
        self._credential: Optional[AuthCredential] = None

    @property
    def credential(self) -> Optional[AuthCredential]:
        return self._credential

    def ensure_token(self) -> str:
        with self._lock:
            cred = self._credential
            if cred is not None and cred.is_usable(self._now(), self._margin):
                return cred.token

            self._credential = None
            self._credential = self._login()
            return self._credential.token

    def invalidate(self, token: Optional[str] = None) -> None:
        """
        Drop the cached credential. When token is given, only drop it if it is
        still the cached one; another caller may already have refreshed it.
        """
        with self._lock:
            if self._credential is None:
                return
            if token is not None and self._credential.token != token:
                return
            logger.info("Invalidating cached API token")
            self._credential = None

    def _login(self) -> AuthCredential:
        payload = {"userName": self.cfg.username, "password": self.cfg.password}

        try:
            r = self._client.post(LOGIN_PATH, json=payload)
        except httpx.HTTPError as e:
            logger.error("Login request failed: %r", e)
            raise AuthFailure(f"Login request failed: {e!r}") from e

        if not r.is_success:
            logger.error("Login rejected status=%d body_snippet=%r", r.status_code, body_snippet(r))
            raise AuthFailure(f"Login rejected with HTTP {r.status_code}", status=r.status_code)

        try:
            body = TokenResponse.model_validate(r.json())
        except ValueError as e:
            logger.error("Login response unusable: %s body_snippet=%r", e, body_snippet(r))
            raise AuthFailure("Login response did not contain a token") from e

        if not body.token.strip():
            logger.error("Login response carried an empty token")
            raise AuthFailure("Login response carried an empty token")

        expires_at = body.expiration
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        logger.info("Obtained API token expiring at %s", expires_at.isoformat())
        return AuthCredential(token=body.token, expires_at=expires_at)
