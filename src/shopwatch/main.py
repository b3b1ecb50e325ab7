"""FastAPI application entrypoint.

Owns the database pool for the lifetime of the process: it is initialised on
startup, attached to `app.state.db` and disposed on shutdown.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from shopwatch import __version__, settings
from shopwatch.db import Database
from shopwatch.db_schema import ensure_schema
from shopwatch.routers import companies, monitoring_configs, products, system

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    db = Database.from_settings()
    db.init()
    app.state.db = db

    try:
        await run_in_threadpool(db.ping)
        logger.info("Connected to PostgreSQL database")
    except Exception as e:
        logger.error(f"Error connecting to database: {e}")

    if settings.AUTO_SETUP_DATABASE:
        try:
            await run_in_threadpool(ensure_schema, db)
        except Exception:
            logger.exception("Database setup on startup failed")

    try:
        yield
    finally:
        db.dispose()
        app.state.db = None


app = FastAPI(title="Shopwatch", version=__version__, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed bodies are client errors: 400 instead of FastAPI's 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors())},
    )


app.include_router(companies.router, prefix=settings.API_PREFIX)
app.include_router(products.router, prefix=settings.API_PREFIX)
app.include_router(monitoring_configs.router, prefix=settings.API_PREFIX)
app.include_router(system.router, prefix=settings.API_PREFIX)
