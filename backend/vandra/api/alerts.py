from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List

from vandra.api.errors import ApiError
from vandra.database import get_db
from vandra.models import FlightAlert, User
from vandra.schemas import AlertResponse, AlertUpdate, NotificationResponse
from vandra.services.auth import get_current_user

router = APIRouter()


def _get_user_alert(db: Session, user: User, alert_id: int) -> FlightAlert:
    alert = (
        db.query(FlightAlert)
        .filter(FlightAlert.id == alert_id, FlightAlert.user_id == user.id)
        .first()
    )
    if not alert:
        raise ApiError("NOT_FOUND", "Alert not found", 404)
    return alert


@router.get("", response_model=List[AlertResponse])
async def list_alerts(
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return (
        db.query(FlightAlert)
        .filter(FlightAlert.user_id == user.id)
        .order_by(FlightAlert.created_at.desc(), FlightAlert.id.desc())
        .all()
    )


@router.get("/{alert_id}", response_model=AlertResponse)
async def get_alert(
    alert_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _get_user_alert(db, user, alert_id)


@router.put("/{alert_id}", response_model=AlertResponse)
async def update_alert(
    alert_id: int,
    alert_update: AlertUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    alert = _get_user_alert(db, user, alert_id)

    update_data = alert_update.model_dump(exclude_unset=True)
    if update_data.get("destination_code"):
        update_data["destination_code"] = update_data["destination_code"].upper()
    for field, value in update_data.items():
        setattr(alert, field, value)

    db.commit()
    db.refresh(alert)
    return alert


@router.delete("/{alert_id}")
async def delete_alert(
    alert_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    alert = _get_user_alert(db, user, alert_id)
    db.delete(alert)
    db.commit()
    return {"status": "deleted", "id": alert_id}


@router.get("/{alert_id}/notifications", response_model=List[NotificationResponse])
async def list_notifications(
    alert_id: int,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _get_user_alert(db, user, alert_id).notifications
