"""Main FastAPI application."""

import asyncio
import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tradepost.config import settings
from tradepost.core.exceptions import MarketError
from tradepost.core.logging import setup_logging
from tradepost.database import AsyncSessionLocal
from tradepost.api import trades, negotiate, inbox, events
from tradepost.services.trade_service import expiry_sweep_loop

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="Tradepost API",
    version="1.0.0",
    description="A local marketplace where neighbours trade items and haggle with sellers' agents"
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(
    trades.router,
    prefix=f"{settings.API_V1_PREFIX}"
)
app.include_router(
    negotiate.router,
    prefix=f"{settings.API_V1_PREFIX}"
)
app.include_router(
    inbox.router,
    prefix=f"{settings.API_V1_PREFIX}/inbox",
    tags=["inbox"]
)
app.include_router(
    events.router,
    prefix=f"{settings.API_V1_PREFIX}",
    tags=["events"]
)

_sweep_task: asyncio.Task | None = None


@app.on_event("startup")
async def startup():
    """Application startup tasks."""
    global _sweep_task

    setup_logging()
    logger.info(f"Tradepost API starting (environment: {settings.ENVIRONMENT})")

    if settings.EXPIRY_SWEEP_INTERVAL_SECONDS > 0:
        _sweep_task = asyncio.create_task(
            expiry_sweep_loop(AsyncSessionLocal, settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
        )


@app.on_event("shutdown")
async def shutdown():
    """Application shutdown tasks."""
    global _sweep_task

    if _sweep_task is not None:
        _sweep_task.cancel()
        try:
            await _sweep_task
        except asyncio.CancelledError:
            pass
        _sweep_task = None

    logger.info("Tradepost API shutting down")


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Tradepost API",
        "version": "1.0.0",
        "docs": "/docs",
        "redoc": "/redoc",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
    }


@app.exception_handler(MarketError)
async def market_error_handler(request: Request, exc: MarketError):
    """Render service errors as {"success": false, "error", "code"}."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict()
    )


# Global exception handler
@app.exception_handler(HTTPException)
async def http_exception_handler(request, exc: HTTPException):
    """Handle HTTP exceptions with consistent error format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )
