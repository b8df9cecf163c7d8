"""UpdateRequest ORM model — audit/workflow record for one submitted change.

Append-only except for the status transition (and its reviewer stamp).
Proposed new values live in the event_* / ao_* / location_* columns; the
pre-change shape is kept in ``current_values``.
"""
import uuid
import enum
from sqlalchemy import (
    Column, Integer, String, Float, Date, DateTime, JSON, ForeignKey, Enum as SAEnum,
)
from sqlalchemy.sql import func
from workout_map.database import Base
from workout_map.models.event import DayOfWeek


class RequestType(str, enum.Enum):
    create_ao_and_location_and_event = "create_ao_and_location_and_event"
    create_event = "create_event"
    edit_event = "edit_event"
    edit_ao_and_location = "edit_ao_and_location"
    move_ao_to_different_region = "move_ao_to_different_region"
    move_ao_to_different_location = "move_ao_to_different_location"
    move_ao_to_new_location = "move_ao_to_new_location"
    move_event_to_different_ao = "move_event_to_different_ao"
    move_event_to_new_ao = "move_event_to_new_ao"
    move_event_to_new_location = "move_event_to_new_location"
    delete_event = "delete_event"
    delete_ao = "delete_ao"


class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class UpdateRequest(Base):
    __tablename__ = "update_requests"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    request_type = Column(SAEnum(RequestType), nullable=False)
    status = Column(SAEnum(RequestStatus), nullable=False, default=RequestStatus.pending, index=True)
    submitted_by = Column(String(255), nullable=False)

    # Scoping ids: new-else-original
    region_id = Column(Integer, ForeignKey("orgs.id"), nullable=False, index=True)
    ao_id = Column(Integer, nullable=True)
    location_id = Column(Integer, nullable=True)
    event_id = Column(Integer, nullable=True, index=True)

    meta = Column(JSON, nullable=False, default=dict)
    current_values = Column(JSON, nullable=True)

    event_name = Column(String(255), nullable=True)
    event_description = Column(String(1000), nullable=True)
    event_day_of_week = Column(SAEnum(DayOfWeek), nullable=True)
    event_start_time = Column(String(4), nullable=True)
    event_end_time = Column(String(4), nullable=True)
    event_start_date = Column(Date, nullable=True)
    event_type_ids = Column(JSON, nullable=True)

    ao_name = Column(String(255), nullable=True)
    ao_logo = Column(String(500), nullable=True)
    ao_website = Column(String(500), nullable=True)

    location_name = Column(String(255), nullable=True)
    location_description = Column(String(1000), nullable=True)
    location_lat = Column(Float, nullable=True)
    location_lng = Column(Float, nullable=True)
    location_address = Column(String(255), nullable=True)
    location_address2 = Column(String(255), nullable=True)
    location_city = Column(String(100), nullable=True)
    location_state = Column(String(100), nullable=True)
    location_zip = Column(String(20), nullable=True)
    location_country = Column(String(100), nullable=True)

    created = Column(DateTime(timezone=True), server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(String(255), nullable=True)
