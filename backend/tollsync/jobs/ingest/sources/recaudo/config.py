import os
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class RecaudoConfig:
    base_url: str
    username: str
    password: str

    timeout: float
    request_delay: float

    # upstream only serves dates at least this many days old
    min_age_days: int
    token_refresh_margin: float

    import_start_date: date
    timezone: str


def load_config() -> RecaudoConfig:
    username = os.getenv("RECAUDO_USERNAME")
    password = os.getenv("RECAUDO_PASSWORD")
    if not username or not password:
        raise RuntimeError("RECAUDO_USERNAME/RECAUDO_PASSWORD not set in backend/.env")

    return RecaudoConfig(
        base_url=os.getenv("RECAUDO_BASE_URL", "http://localhost:5200/api"),
        username=username,
        password=password,
        timeout=float(os.getenv("RECAUDO_TIMEOUT_SECONDS", "30")),
        request_delay=float(os.getenv("RECAUDO_REQUEST_DELAY_SECONDS", "0.5")),
        min_age_days=int(os.getenv("RECAUDO_MIN_AGE_DAYS", "2")),
        token_refresh_margin=float(os.getenv("RECAUDO_TOKEN_REFRESH_MARGIN_SECONDS", "300")),
        import_start_date=date.fromisoformat(os.getenv("RECAUDO_IMPORT_START_DATE", "2024-05-31")),
        timezone=os.getenv("RECAUDO_TIMEZONE", "America/Bogota"),
    )
