import logging

logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s",
)
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from whenworks import lifespan as lifespan_resources
from whenworks.config import get_settings
from whenworks.controllers.events import router as events_router
from whenworks.controllers.health import router as health_router
from whenworks.errors import register_exception_handlers
from whenworks.middleware import HTTPLogMiddleware

settings = get_settings()

app = FastAPI(title="WhenWorks API", version="1.0.0")
register_exception_handlers(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins,
    allow_origin_regex=settings.cors.origins_regex or None,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)

if settings.debug.request:
    logging.getLogger("whenworks.http").setLevel(logging.DEBUG)
    app.add_middleware(HTTPLogMiddleware)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    resources = await lifespan_resources.setup_resources()
    try:
        yield
    finally:
        await lifespan_resources.cleanup_resources(resources)

app.router.lifespan_context = lifespan

app.include_router(health_router)
app.include_router(events_router)

Instrumentator().instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
