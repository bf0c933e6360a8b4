from sqlalchemy import Column, String, Float
from vandra.database import Base


class Airport(Base):
    """Static airport reference data, seeded once and looked up by IATA code."""
    __tablename__ = "airports"

    code = Column(String(3), primary_key=True)
    name = Column(String(200), nullable=False)
    city = Column(String(100), nullable=False)
    country = Column(String(100), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    timezone = Column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f"<Airport {self.code}: {self.city}>"
