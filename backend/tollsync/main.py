from contextlib import asynccontextmanager

from fastapi import FastAPI

from tollsync.api.v1.routes.health import router as health_router
from tollsync.api.v1.routes.recaudos import router as recaudos_router
from tollsync.core.db import init_db
from tollsync.core.deps import get_recaudo_source
from tollsync.jobs.ingest.sources.recaudo.http import configure_logging_if_needed


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging_if_needed()
    init_db()
    yield
    # the shared source is created lazily by the first import request
    if get_recaudo_source.cache_info().currsize:
        get_recaudo_source().close()
        get_recaudo_source.cache_clear()


app = FastAPI(title="Toll Collection Sync API", lifespan=lifespan)

app.include_router(health_router, prefix="/v1")
app.include_router(recaudos_router)
