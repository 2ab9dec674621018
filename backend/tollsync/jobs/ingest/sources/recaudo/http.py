import logging
from typing import Optional

import httpx

from .config import RecaudoConfig

logger = logging.getLogger(__name__)


def mask_bearer(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    parts = value.split(" ", 1)
    if len(parts) != 2:
        return "****"
    scheme, token = parts
    if len(token) <= 6:
        return f"{scheme} ****"
    return f"{scheme} ****{token[-4:]}"


def configure_logging_if_needed() -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(
            level="INFO",
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def log_request(request: httpx.Request) -> None:
    logger.debug("HTTP %s %s", request.method, request.url)
    logger.debug("HTTP Authorization: %s", mask_bearer(request.headers.get("authorization")))


def make_client(cfg: RecaudoConfig, *, transport: Optional[httpx.BaseTransport] = None) -> httpx.Client:
    return httpx.Client(
        base_url=cfg.base_url,
        timeout=httpx.Timeout(cfg.timeout),
        headers={"Content-Type": "application/json", "Accept": "application/json"},
        event_hooks={"request": [log_request]},
        transport=transport,
    )


def body_snippet(response: httpx.Response, limit: int = 300) -> str:
    return (response.text or "")[:limit]
