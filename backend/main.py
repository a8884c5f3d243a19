# Initialize logging first, before other imports
from core.logging import setup_logging
setup_logging()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from core.config import settings
from core.database import database, validate_database_config
from core.middleware import add_no_cache_headers, request_timing_middleware
from services.redis_service import redis_service
from services.snapshot_store import reconciliation_ticker
from api.v1.api import api_router

logger = logging.getLogger(__name__)

async def _close(name: str, closer) -> None:
    try:
        await closer()
        logger.info(f"{name} closed")
    except Exception as e:
        logger.error(f"❌ Error closing {name}: {e}")

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database pool and Redis, run the reconciliation ticker while serving."""
    logger.info(f"🚀 Starting {settings.PROJECT_NAME} {settings.VERSION}")

    missing = validate_database_config()
    try:
        await database.connect()
    except Exception as e:
        logger.error(f"❌ Database connection failed ({type(e).__name__}): {e}; missing settings: {missing or 'none'}")
        raise
    logger.info("✅ Database pool open")

    # Snapshots load straight from the database when Redis is down
    await redis_service.connect()
    if not redis_service.available:
        logger.warning("⚠️ Running without the Redis snapshot cache")

    reconciliation_ticker.start()
    yield

    logger.info(f"Shutting down {settings.PROJECT_NAME}")
    await reconciliation_ticker.stop()
    await _close("Redis", redis_service.disconnect)
    await _close("Database pool", database.disconnect)

def create_app() -> FastAPI:
    """Create FastAPI application with all configurations."""
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        description=settings.DESCRIPTION,
        lifespan=lifespan
    )

    app.middleware("http")(request_timing_middleware)
    app.middleware("http")(add_no_cache_headers)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"]
    )

    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    async def health_check():
        """Liveness plus dependency status; Redis being down only degrades."""
        try:
            await database.fetch_one("SELECT 1")
            db_status = "connected"
        except Exception as e:
            db_status = f"error: {e}"

        if db_status != "connected":
            overall = "unhealthy"
        elif not redis_service.available:
            overall = "degraded"
        else:
            overall = "healthy"

        return {
            "service": "handoff-backend",
            "version": settings.VERSION,
            "status": overall,
            "database": db_status,
            "redis": "connected" if redis_service.available else "disconnected",
            "reconciliation_ticker": "running" if reconciliation_ticker.running else "stopped",
        }

    @app.get("/cache-status")
    async def cache_status():
        return {
            "cache": await redis_service.get_cache_stats(),
            "ttl_family_snapshot": settings.CACHE_TTL_FAMILY_SNAPSHOT,
        }

    return app

app = create_app()
