from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, Text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from vandra.database import Base
import enum


class AlertStatus(str, enum.Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    EXPIRED = "expired"


class FlightAlert(Base):
    """
    A user's standing watch for flight deals.

    Combines structured fields (origin_code, max_price, date bounds) with the
    natural-language preferences captured during onboarding. The monitor only
    reads alerts; users update or delete them.
    """
    __tablename__ = "flight_alerts"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Structured
    origin_code = Column(String(3), ForeignKey("airports.code"), nullable=False)
    destination_code = Column(String(3), nullable=True)
    max_price = Column(Numeric(10, 2), nullable=True)
    min_discount = Column(Integer, nullable=True)
    departure_after = Column(DateTime, nullable=True)
    departure_before = Column(DateTime, nullable=True)

    # Natural language
    destination_text = Column(Text, nullable=True)
    timing_text = Column(Text, nullable=True)
    price_text = Column(Text, nullable=True)
    summary = Column(String(255), nullable=True)

    status = Column(String(20), default=AlertStatus.ACTIVE.value, nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    user = relationship("User", back_populates="alerts")
    origin = relationship("Airport")
    notifications = relationship(
        "FlightNotification",
        back_populates="alert",
        cascade="all, delete-orphan",
        order_by="desc(FlightNotification.created_at)",
    )

    @property
    def is_active(self) -> bool:
        return self.status == AlertStatus.ACTIVE.value

    def __repr__(self) -> str:
        target = self.destination_code or self.destination_text or "anywhere"
        return f"<FlightAlert {self.id}: {self.origin_code} -> {target} ({self.status})>"
