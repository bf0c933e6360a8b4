import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from vandra.api.errors import ApiError
from vandra.config import get_settings
from vandra.database import get_db
from vandra.schemas import MonitorJobRequest
from vandra.services.amadeus_client import AmadeusClient, get_amadeus_client
from vandra.services.flight_search import FlightSearchService
from vandra.services.monitor import AlertMonitor, run_monitoring_cycle

logger = logging.getLogger(__name__)

router = APIRouter()


def get_alert_monitor(
    db: Session = Depends(get_db),
    client: AmadeusClient = Depends(get_amadeus_client),
) -> AlertMonitor:
    return AlertMonitor(db, search_service=FlightSearchService(client))


def is_authorized(request: Request) -> bool:
    settings = get_settings()

    auth_header = request.headers.get("authorization")
    if settings.cron_secret and auth_header == f"Bearer {settings.cron_secret}":
        return True

    api_key = request.headers.get("x-api-key")
    if settings.internal_api_key and api_key == settings.internal_api_key:
        return True

    return settings.env == "dev"


def require_job_auth(request: Request) -> None:
    if not is_authorized(request):
        raise ApiError("UNAUTHORIZED", "Invalid authorization", 401)


@router.get("/monitor-alerts", dependencies=[Depends(require_job_auth)])
async def monitor_alerts_cron(
    db: Session = Depends(get_db),
    monitor: AlertMonitor = Depends(get_alert_monitor),
):
    logger.info("Cron job triggered: processing all active alerts")
    summary = await run_monitoring_cycle(db, monitor)
    return {"success": True, **summary.to_dict()}


@router.post("/monitor-alerts", dependencies=[Depends(require_job_auth)])
async def monitor_alerts(
    payload: Optional[MonitorJobRequest] = None,
    db: Session = Depends(get_db),
    monitor: AlertMonitor = Depends(get_alert_monitor),
):
    if payload and payload.alert_id:
        logger.info(f"Processing single alert: {payload.alert_id}")
        result = await monitor.process_alert(payload.alert_id)
        return {"success": not result.error, "result": result.to_dict()}

    logger.info("Processing all active alerts")
    summary = await run_monitoring_cycle(db, monitor)
    return {"success": True, **summary.to_dict()}
