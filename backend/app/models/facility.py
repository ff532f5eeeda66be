"""Bookable municipal facility."""

from datetime import time
from enum import Enum

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, Time, func

from app.core.database import Base
from app.models.shared import UUIDType, generate_uuid


class BookingMode(str, Enum):
    START_TIME = "start_time"
    TIME_PERIOD = "time_period"


ALLOWED_GRANULARITIES = (15, 30, 60)

WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


class Facility(Base):
    __tablename__ = "facilities"

    id = Column(UUIDType, primary_key=True, default=generate_uuid)
    merchant_id = Column(UUIDType, ForeignKey("merchants.id", ondelete="RESTRICT"), nullable=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)

    booking_mode = Column(String(20), nullable=False, default=BookingMode.START_TIME.value)
    # Lower-case weekday names, e.g. ["monday", "wednesday"]
    available_days = Column(JSON, nullable=False, default=lambda: list(WEEKDAYS))
    open_time = Column(Time, nullable=False, default=time(9, 0))
    close_time = Column(Time, nullable=False, default=time(17, 0))
    granularity_minutes = Column(Integer, nullable=False, default=30)
    slot_duration_minutes = Column(Integer, nullable=False, default=60)
    max_advance_days = Column(Integer, nullable=False, default=30)
    base_fee_cents = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
