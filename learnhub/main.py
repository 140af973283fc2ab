from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from learnhub.api.admin import router as admin_router
from learnhub.api.auth import router as auth_router
from learnhub.api.courses import router as courses_router
from learnhub.api.errors import register_error_handlers
from learnhub.api.health import router as health_router
from learnhub.api.me import router as me_router
from learnhub.api.progress import router as progress_router
from learnhub.api.stores import memory_repos
from learnhub.core.config import SETTINGS
from learnhub.core.logging import setup_logging
from learnhub.db.engine import engine, lifespan_db
from learnhub.db.redis import lifespan_redis
from learnhub.middleware.request_context import RequestContextMiddleware
from learnhub.seed import seed_dev_data

# Configure logging before anything else runs.
setup_logging(SETTINGS.log_level, json_format=SETTINGS.log_json)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    # Nested so teardown runs in reverse order of startup.
    async with lifespan_db():
        async with lifespan_redis():
            if SETTINGS.is_dev and engine is None:
                await seed_dev_data(memory_repos)
            yield


app = FastAPI(
    title="learnhub",
    lifespan=lifespan,
    docs_url="/docs" if SETTINGS.is_dev else None,
    redoc_url="/redoc" if SETTINGS.is_dev else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Last-added runs first: every request gets its ID before CORS and routing.
app.add_middleware(RequestContextMiddleware)

register_error_handlers(app)

app.include_router(admin_router)
app.include_router(auth_router)
app.include_router(courses_router)
app.include_router(health_router)
app.include_router(me_router)
app.include_router(progress_router)

logger.info(
    "learnhub started  env=%s log_level=%s port=%d identity=%s docs=%s",
    SETTINGS.app_env,
    SETTINGS.log_level,
    SETTINGS.port,
    SETTINGS.identity_provider,
    "on" if SETTINGS.is_dev else "off",
)
