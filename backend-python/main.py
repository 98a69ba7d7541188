from fastapi import FastAPI
from contextlib import asynccontextmanager
import logging

from config.settings import settings
from config.database import AsyncSessionLocal, init_db, close_db
from config.redis_client import RedisClient
from api.health import router as health_router
from services.container import MultilingualContainer

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifecycle events for FastAPI application"""
    # Startup
    logger.info("🚀 Starting multilingual content service...")

    redis_client = RedisClient()
    try:
        await init_db()
        await redis_client.connect()

        container = MultilingualContainer(
            session_factory=AsyncSessionLocal,
            redis=redis_client.cache_client,
        )
        await container.language_stats.ensure_predefined_languages()

        app.state.redis_client = redis_client
        app.state.container = container

        logger.info("✅ Multilingual content service started successfully")

    except Exception as e:
        logger.error(f"❌ Startup failed: {e}")
        raise

    # Background jobs run alongside request handling
    if settings.ENABLE_BACKGROUND_JOBS:
        try:
            await container.scheduler.start()
            logger.info("✅ Background jobs scheduler started")
        except Exception as e:
            logger.error(f"❌ Failed to start background jobs scheduler: {e}")
            logger.warning("Continuing without background jobs...")
    else:
        logger.info("Background jobs disabled (ENABLE_BACKGROUND_JOBS=false)")

    yield

    # Shutdown
    logger.info("⏳ Shutting down multilingual content service...")

    try:
        if container.scheduler.is_running:
            await container.scheduler.stop()
        await container.resolver.drain_background_tasks()

        await redis_client.disconnect()
        await close_db()

        logger.info("✅ Multilingual content service shut down gracefully")

    except Exception as e:
        logger.error(f"❌ Shutdown error: {e}")


# Initialize FastAPI app
app = FastAPI(
    title="Multilingual Lesson Content Service",
    description="Language-tiered lesson content cache with scheduled evaluation",
    version="1.0.0",
    lifespan=lifespan
)

app.include_router(health_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": "Multilingual Lesson Content Service",
        "version": "1.0.0",
        "status": "running",
        "health": "/health"
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
