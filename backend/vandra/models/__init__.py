# SQLAlchemy models
from vandra.models.user import User
from vandra.models.airport import Airport
from vandra.models.flight_alert import FlightAlert, AlertStatus
from vandra.models.price_history import PriceHistory
from vandra.models.flight_notification import FlightNotification, NotificationChannel

__all__ = [
    "User",
    "Airport",
    "FlightAlert",
    "PriceHistory",
    "FlightNotification",
    # Enums
    "AlertStatus",
    "NotificationChannel",
]
