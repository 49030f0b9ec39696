from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
from sqlalchemy import text
import logging

from brandwire.api import brands, health, updates
from brandwire.scheduler import start_scheduler, stop_scheduler
from brandwire.config import get_settings
from brandwire.database import engine, Base, ensure_sqlite_data_dir
from brandwire.models import Brand, BrandUpdate  # noqa: F401  register tables

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def database_ready() -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database not reachable: {e}")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Brandwire")

    if settings.database_url.startswith("sqlite"):
        logger.info("SQLite detected - creating tables if needed")
        ensure_sqlite_data_dir()
        Base.metadata.create_all(bind=engine)

    # Only schedule ingestion once storage is confirmed
    if not settings.scheduler_enabled:
        logger.info("Scheduler disabled by configuration")
    elif database_ready():
        start_scheduler()
        logger.info("Ingestion scheduler started")
    else:
        logger.error("Ingestion scheduler not started: database unavailable")

    yield

    logger.info("Shutting down Brandwire")
    stop_scheduler()


app = FastAPI(
    title="Brandwire",
    description="Brand update feed - RSS ingestion backend",
    version="1.0.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

app.include_router(updates.router, prefix="/updates", tags=["updates"])
app.include_router(brands.router, prefix="/brands", tags=["brands"])
app.include_router(health.router, tags=["health"])


# Health check for monitoring/Docker
@app.get("/ping")
async def ping():
    """Simple ping endpoint for health checks."""
    return {"status": "ok"}
