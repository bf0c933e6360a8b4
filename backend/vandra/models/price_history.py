from sqlalchemy import Column, Integer, String, DateTime, Numeric, Index, UniqueConstraint
from sqlalchemy.sql import func
from vandra.database import Base


class PriceHistory(Base):
    """
    One observed fare for a route and travel date.

    Append-only: rows are written every time a search returns flights and are
    only read back to compute rolling route averages.
    """
    __tablename__ = "price_history"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    origin = Column(String(3), nullable=False)
    destination = Column(String(3), nullable=False)
    travel_date = Column(DateTime, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    airline = Column(String(10), nullable=True)

    recorded_at = Column(DateTime, server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_price_history_route_date", "origin", "destination", "travel_date"),
        Index("ix_price_history_recorded", "recorded_at"),
        UniqueConstraint(
            "origin", "destination", "travel_date", "price", "airline", "recorded_at",
            name="uix_price_observation",
        ),
    )

    def __repr__(self) -> str:
        return f"<PriceHistory {self.origin}-{self.destination} ${self.price} on {self.travel_date}>"
