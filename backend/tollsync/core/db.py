import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./tollsync.db")


class Base(DeclarativeBase):
    pass


def make_engine(url: str = DATABASE_URL, **kwargs) -> Engine:
    if url.startswith("sqlite"):
        # FastAPI runs sync routes in a threadpool
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(url, pool_pre_ping=True, **kwargs)


engine = make_engine()
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def init_db(bind: Engine | None = None) -> None:
    """Create missing tables. Schema migrations are handled outside this package."""
    from tollsync.models import job_runs, toll_records  # noqa: F401  (register tables)

    Base.metadata.create_all(bind=bind or engine)
