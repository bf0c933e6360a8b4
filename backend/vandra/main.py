from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from vandra.api import airports, alerts, auth, chat, flights, health, jobs
from vandra.api.errors import register_error_handlers
from vandra.scheduler import start_scheduler, stop_scheduler
from vandra.config import get_settings
from vandra.database import engine, Base, SessionLocal
from vandra.services.ai_service import configure_ai_from_settings
from vandra.services.airports import seed_airports
import vandra.models  # noqa: F401  registers tables on Base

settings = get_settings()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting Vandra")

    if settings.database_url.startswith("sqlite"):
        logger.info("SQLite detected - creating tables if needed")
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        seed_airports(db)
    except Exception as e:
        logger.error(f"Airport seeding failed: {e}")
    finally:
        db.close()

    if configure_ai_from_settings(settings):
        logger.info(f"AI provider configured: {settings.ai_provider}")
    else:
        logger.warning("No AI provider configured; chat is unavailable and extraction uses keyword heuristics")

    if settings.scheduler_enabled:
        try:
            start_scheduler()
        except Exception as e:
            logger.error(f"Scheduler startup failed: {e}")

    yield

    logger.info("Shutting down Vandra")
    try:
        stop_scheduler()
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


app = FastAPI(
    title="Vandra",
    description="Flight deal alerts from a short onboarding chat",
    version="0.1.0",
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE"],
    allow_headers=["*"],
)

register_error_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(auth.router, prefix="/api/auth", tags=["auth"])
app.include_router(chat.router, prefix="/api/chat", tags=["chat"])
app.include_router(flights.router, prefix="/api/flights", tags=["flights"])
app.include_router(jobs.router, prefix="/api/jobs", tags=["jobs"])
app.include_router(alerts.router, prefix="/api/alerts", tags=["alerts"])
app.include_router(airports.router, prefix="/api/airports", tags=["airports"])


@app.get("/ping")
async def ping():
    """Simple ping endpoint for health checks."""
    return {"status": "ok"}
