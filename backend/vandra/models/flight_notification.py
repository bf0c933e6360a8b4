from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, JSON
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from vandra.database import Base
import enum


class NotificationChannel(str, enum.Enum):
    SMS = "sms"
    EMAIL = "email"
    PUSH = "push"


class FlightNotification(Base):
    """A deal surfaced for an alert. Append-only; delivery happens elsewhere."""
    __tablename__ = "flight_notifications"

    id = Column(Integer, primary_key=True, index=True)
    alert_id = Column(
        Integer,
        ForeignKey("flight_alerts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    flight_data = Column(JSON, nullable=False)  # snapshot of flight + deal numbers
    channel = Column(String(10), nullable=False)
    status = Column(String(20), nullable=False, default="pending")

    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    alert = relationship("FlightAlert", back_populates="notifications")
