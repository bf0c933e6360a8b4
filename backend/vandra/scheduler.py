"""
APScheduler setup: one in-process job that sweeps every active flight alert.

max_instances=1 keeps runs from overlapping inside this process; several
app processes would each run their own sweep.
"""

import logging
import os
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger
from apscheduler.jobstores.memory import MemoryJobStore

from vandra.database import SessionLocal
from vandra.services.amadeus_client import get_amadeus_client
from vandra.services.flight_search import FlightSearchService
from vandra.services.monitor import AlertMonitor, run_monitoring_cycle
from vandra.config import get_settings

logger = logging.getLogger(__name__)

# Global scheduler instance
scheduler: Optional[AsyncIOScheduler] = None


def get_scheduler() -> AsyncIOScheduler:
    """Get or create the global scheduler instance."""
    global scheduler
    if scheduler is None:
        tz = os.environ.get('TZ', 'UTC')
        logger.info(f"Scheduler using timezone: {tz}")

        scheduler = AsyncIOScheduler(
            jobstores={'default': MemoryJobStore()},
            timezone=tz
        )

        _setup_scheduled_jobs(scheduler)

    return scheduler


def _setup_scheduled_jobs(sched: AsyncIOScheduler):
    settings = get_settings()

    sched.add_job(
        monitor_alerts_job,
        trigger=IntervalTrigger(hours=settings.monitor_interval_hours),
        id='monitor_alerts',
        name='Monitor Flight Alerts',
        replace_existing=True,
        max_instances=1,
    )

    logger.info(f"Scheduled jobs configured: monitor alerts every {settings.monitor_interval_hours}h")


async def monitor_alerts_job() -> Optional[dict]:
    """Process all active alerts and record notifications for their good deals."""
    logger.info("Starting scheduled alert monitoring")

    db = SessionLocal()
    try:
        monitor = AlertMonitor(db, search_service=FlightSearchService(get_amadeus_client()))
        summary = await run_monitoring_cycle(db, monitor)
        logger.info(
            f"Alert monitoring complete: {summary.processed} alerts, "
            f"{summary.total_deals} deals, {summary.errors} errors"
        )
        return summary.to_dict()
    except Exception as e:
        logger.error(f"Alert monitoring job failed: {e}")
        return None
    finally:
        db.close()


def start_scheduler():
    """Start the scheduler (call this from FastAPI startup)."""
    scheduler_instance = get_scheduler()

    if not scheduler_instance.running:
        scheduler_instance.start()
        logger.info("APScheduler started successfully")

        for job in scheduler_instance.get_jobs():
            logger.info(f"Next '{job.name}': {job.next_run_time}")
    else:
        logger.warning("Scheduler already running")


def stop_scheduler():
    """Stop the scheduler (call this from FastAPI shutdown)."""
    global scheduler
    if scheduler and scheduler.running:
        scheduler.shutdown()
        logger.info("APScheduler stopped")
    scheduler = None


def get_scheduler_status() -> dict:
    if scheduler is None or not scheduler.running:
        return {
            "running": False,
            "jobs": [],
            "next_run": None
        }

    jobs = []
    next_run = None

    for job in scheduler.get_jobs():
        jobs.append({
            "id": job.id,
            "name": job.name,
            "next_run": job.next_run_time.isoformat() if job.next_run_time else None,
        })

        if job.next_run_time and (next_run is None or job.next_run_time < next_run):
            next_run = job.next_run_time

    return {
        "running": True,
        "jobs": jobs,
        "next_run": next_run.isoformat() if next_run else None
    }
