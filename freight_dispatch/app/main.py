"""
FastAPI Application Entry Point.

Freight Dispatch: load lifecycle, conflict-free driver/equipment assignment
and the dispatch board, served under /v1.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.api.v1.router import router as api_v1_router
from freight_dispatch.app.core.config import settings
from freight_dispatch.app.core.exceptions import (
    AppException,
    app_exception_handler,
    generic_exception_handler,
    http_exception_handler,
    validation_exception_handler,
)
from freight_dispatch.app.core.observability import ObservabilityMiddleware
from freight_dispatch.app.db.session import Base, engine, get_db

# Register every table with Base before create_all
from freight_dispatch.app.models.carrier import Carrier, Customer
from freight_dispatch.app.models.driver import Driver
from freight_dispatch.app.models.vehicle import Vehicle
from freight_dispatch.app.models.load import Load
from freight_dispatch.app.models.stop import Stop
from freight_dispatch.app.models.audit_log import AuditLog

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create missing tables on startup; release pooled connections on shutdown."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("%s %s ready", settings.app_name, settings.api_version)
    yield
    await engine.dispose()


app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Load lifecycle and conflict-free driver/equipment dispatch",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

app.include_router(api_v1_router, prefix=f"/{settings.api_version}")


@app.get("/health", tags=["Health"])
async def health_check(db: AsyncSession = Depends(get_db)):
    """Liveness plus a round trip to the database."""
    await db.execute(text("SELECT 1"))
    return {
        "status": "healthy",
        "database": "ok",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": f"{settings.app_name} API",
        "docs": "/docs",
        "health": "/health",
        "dispatch_board": f"/{settings.api_version}/dispatch-board",
    }
