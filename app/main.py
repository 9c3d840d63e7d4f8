"""
FastAPI Main Application
Investment lifecycle, valuation and portfolio analytics API
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
import time
from typing import AsyncGenerator

from app.config import settings
from app.core.logging import setup_logging
from app.domain.models import InconsistentSnapshotError
from app.infrastructure.db.database import init_db, close_db

setup_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """
    Application lifespan manager
    Database setup on startup, connection cleanup on shutdown
    """
    logger.info("=" * 60)
    logger.info("🚀 Starting Investment Tracker API")
    logger.info("=" * 60)

    await init_db()
    logger.info("✅ Database initialized")
    logger.info(f"   ✅ API Server: http://{settings.API_HOST}:{settings.API_PORT}")
    logger.info(f"   ✅ API Docs: http://{settings.API_HOST}:{settings.API_PORT}/docs")
    logger.info(f"   ✅ Text generation: {settings.LLM_PROVIDER}")

    yield

    logger.info("🛑 Shutting down Investment Tracker API...")
    await close_db()
    logger.info("✅ Database connections closed")


app = FastAPI(
    title="Investment Tracker",
    description="Fixed-tenure investment products, time-based valuation and portfolio analytics",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        "%s %s -> %s (%.1f ms) user=%s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request.headers.get("X-User-Id", "-"),
    )
    return response


@app.exception_handler(InconsistentSnapshotError)
async def inconsistent_snapshot_handler(request: Request, exc: InconsistentSnapshotError):
    logger.error(f"❌ Inconsistent data on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Investment data is inconsistent; please contact support"},
    )


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "Investment Tracker API",
        "version": "1.0.0",
        "docs": "/docs"
    }


# Import and include routers
from app.api.routes import health, investments, portfolio, products  # noqa: E402

app.include_router(health.router, tags=["Health"])
app.include_router(products.router, prefix="/api/v1/products", tags=["Products"])
app.include_router(investments.router, prefix="/api/v1/investments", tags=["Investments"])
app.include_router(portfolio.router, prefix="/api/v1/portfolio", tags=["Portfolio"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=settings.DEBUG)
