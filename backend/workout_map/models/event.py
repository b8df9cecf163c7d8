"""Event ORM model — a recurring workout held by an AO at a location."""
import enum
from sqlalchemy import (
    Column, Integer, String, Boolean, Date, DateTime, ForeignKey, Table, Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from workout_map.database import Base


class DayOfWeek(str, enum.Enum):
    monday = "monday"
    tuesday = "tuesday"
    wednesday = "wednesday"
    thursday = "thursday"
    friday = "friday"
    saturday = "saturday"
    sunday = "sunday"


events_x_event_types = Table(
    "events_x_event_types",
    Base.metadata,
    Column("event_id", Integer, ForeignKey("events.id"), primary_key=True),
    Column("event_type_id", Integer, ForeignKey("event_types.id"), primary_key=True),
)


class EventType(Base):
    __tablename__ = "event_types"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False, unique=True)
    is_active = Column(Boolean, nullable=False, default=True)


class Event(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    org_id = Column(Integer, ForeignKey("orgs.id"), nullable=False, index=True)
    location_id = Column(Integer, ForeignKey("locations.id"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    day_of_week = Column(SAEnum(DayOfWeek), nullable=True)
    start_time = Column(String(4), nullable=True)  # HHMM, region-local
    end_time = Column(String(4), nullable=True)
    start_date = Column(Date, nullable=True)
    recurrence_pattern = Column(String(20), nullable=True, default="weekly")
    is_active = Column(Boolean, nullable=False, default=True)
    is_private = Column(Boolean, nullable=False, default=False)
    created = Column(DateTime(timezone=True), server_default=func.now())
    updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    event_types = relationship("EventType", secondary=events_x_event_types, lazy="selectin")
