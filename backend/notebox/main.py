import logging
import os
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from notebox.core.config import _env_truthy
from notebox.core.logging import setup_logging
from notebox.core.migrations import RunMigrations
from notebox.modules.auth import models as auth_models  # noqa: F401
from notebox.modules.core.router import router as core_router
from notebox.modules.notes import models as notes_models  # noqa: F401
from notebox.modules.notes.deps import BuildEncryptionCodec
from notebox.modules.notes.routes.labels import router as labels_router
from notebox.modules.notes.routes.notes import router as notes_router

setup_logging()

logger = logging.getLogger("app.request")
startup_logger = logging.getLogger("app.startup")


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Bad or missing key material stops the process here, not on first request.
    app.state.encryption_codec = BuildEncryptionCodec()
    if _env_truthy("RUN_MIGRATIONS_ON_STARTUP"):
        RunMigrations()
    startup_logger.info("startup complete")
    yield


app = FastAPI(title="Notebox API", lifespan=lifespan)

allowed_origins = os.getenv("ALLOWED_ORIGINS", "")
origin_list = [origin.strip() for origin in allowed_origins.split(",") if origin.strip()]
if origin_list:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


@app.middleware("http")
async def request_logger(request: Request, call_next):
    request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = int((time.perf_counter() - start) * 1000)

    parts = [f"{request.method} {request.url.path}"]

    # Query strings carry search text only, never note bodies.
    if request.url.query:
        parts.append(f"query={request.url.query}")

    status = response.status_code
    if status >= 400:
        if status == 404:
            parts.append("ERROR: not found")
        elif status >= 500:
            parts.append("ERROR: server error")
        else:
            parts.append("ERROR: client error")

    parts.append(f"status={status}")
    parts.append(f"{duration_ms}ms")

    log_msg = " | ".join(parts)
    if status >= 500:
        logger.error(log_msg)
    elif status >= 400:
        logger.warning(log_msg)
    else:
        logger.info(log_msg)

    response.headers["X-Request-Id"] = request_id
    return response


app.include_router(core_router)
app.include_router(notes_router)
app.include_router(labels_router)
