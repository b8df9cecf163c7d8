"""Pydantic schemas for update requests.

Each request variant carries its own payload model; ``UpdateRequestPayload``
is the discriminated union the submit endpoint accepts.
"""
from __future__ import annotations
from datetime import date, datetime
from typing import Annotated, Any, Literal, Optional, Union
from pydantic import BaseModel, Field, model_validator

from workout_map.models.event import DayOfWeek

TIME_PATTERN = r"^([01]\d|2[0-3])[0-5]\d$"  # HHMM


class _RequestBase(BaseModel):
    id: Optional[str] = Field(None, max_length=36)
    submitted_by: Optional[str] = None
    original_region_id: Optional[int] = None
    original_ao_id: Optional[int] = None
    original_location_id: Optional[int] = None
    original_event_id: Optional[int] = None
    new_region_id: Optional[int] = None
    new_ao_id: Optional[int] = None
    new_location_id: Optional[int] = None


class _EventFields(BaseModel):
    event_name: Optional[str] = Field(None, max_length=255)
    event_description: Optional[str] = Field(None, max_length=1000)
    event_day_of_week: Optional[DayOfWeek] = None
    event_start_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    event_end_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    event_start_date: Optional[date] = None
    event_type_ids: Optional[list[int]] = None


class _AOFields(BaseModel):
    ao_name: Optional[str] = Field(None, max_length=255)
    ao_logo: Optional[str] = Field(None, max_length=500)
    ao_website: Optional[str] = Field(None, max_length=500)


class _LocationFields(BaseModel):
    location_name: Optional[str] = Field(None, max_length=255)
    location_description: Optional[str] = Field(None, max_length=1000)
    location_lat: Optional[float] = Field(None, ge=-90, le=90)
    location_lng: Optional[float] = Field(None, ge=-180, le=180)
    location_address: Optional[str] = None
    location_address2: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    location_zip: Optional[str] = None
    location_country: Optional[str] = None


class CreateAOAndLocationAndEventRequest(_RequestBase, _EventFields, _AOFields, _LocationFields):
    request_type: Literal["create_ao_and_location_and_event"]
    original_region_id: int
    ao_name: str = Field(..., max_length=255)
    event_name: str = Field(..., max_length=255)
    event_day_of_week: DayOfWeek
    event_start_time: str = Field(..., pattern=TIME_PATTERN)
    location_lat: float = Field(..., ge=-90, le=90)
    location_lng: float = Field(..., ge=-180, le=180)


class CreateEventRequest(_RequestBase, _EventFields):
    request_type: Literal["create_event"]
    original_ao_id: int
    original_location_id: int
    event_name: str = Field(..., max_length=255)
    event_day_of_week: DayOfWeek
    event_start_time: str = Field(..., pattern=TIME_PATTERN)


class EditEventRequest(_RequestBase, _EventFields):
    request_type: Literal["edit_event"]
    original_event_id: int


class EditAOAndLocationRequest(_RequestBase, _AOFields, _LocationFields):
    request_type: Literal["edit_ao_and_location"]
    original_ao_id: int
    original_location_id: int


class MoveAOToDifferentRegionRequest(_RequestBase):
    request_type: Literal["move_ao_to_different_region"]
    original_ao_id: int
    new_region_id: int


class MoveAOToDifferentLocationRequest(_RequestBase):
    request_type: Literal["move_ao_to_different_location"]
    original_ao_id: int
    new_location_id: int


class MoveAOToNewLocationRequest(_RequestBase, _LocationFields):
    request_type: Literal["move_ao_to_new_location"]
    original_ao_id: int
    location_lat: float = Field(..., ge=-90, le=90)
    location_lng: float = Field(..., ge=-180, le=180)


class MoveEventToDifferentAORequest(_RequestBase):
    request_type: Literal["move_event_to_different_ao"]
    original_event_id: int
    new_ao_id: int


class MoveEventToNewAORequest(_RequestBase, _AOFields, _LocationFields):
    """Create an AO (and a location unless ``new_location_id`` is given), then move the event."""

    request_type: Literal["move_event_to_new_ao"]
    original_event_id: int
    ao_name: str = Field(..., max_length=255)

    @model_validator(mode="after")
    def _location_source(self) -> "MoveEventToNewAORequest":
        if self.new_location_id is None and (self.location_lat is None or self.location_lng is None):
            raise ValueError("new_location_id or location_lat/location_lng is required")
        return self


class MoveEventToNewLocationRequest(_RequestBase, _LocationFields):
    request_type: Literal["move_event_to_new_location"]
    original_event_id: int
    location_lat: float = Field(..., ge=-90, le=90)
    location_lng: float = Field(..., ge=-180, le=180)


class DeleteEventRequest(_RequestBase):
    request_type: Literal["delete_event"]
    original_event_id: int


class DeleteAORequest(_RequestBase):
    request_type: Literal["delete_ao"]
    original_ao_id: int


UpdateRequestVariant = Union[
    CreateAOAndLocationAndEventRequest,
    CreateEventRequest,
    EditEventRequest,
    EditAOAndLocationRequest,
    MoveAOToDifferentRegionRequest,
    MoveAOToDifferentLocationRequest,
    MoveAOToNewLocationRequest,
    MoveEventToDifferentAORequest,
    MoveEventToNewAORequest,
    MoveEventToNewLocationRequest,
    DeleteEventRequest,
    DeleteAORequest,
]
UpdateRequestPayload = Annotated[UpdateRequestVariant, Field(discriminator="request_type")]


class SubmitResult(BaseModel):
    status: str
    request_id: str


class UpdateRequestOut(BaseModel):
    id: str
    request_type: str
    status: str
    submitted_by: str
    region_id: int
    ao_id: Optional[int] = None
    location_id: Optional[int] = None
    event_id: Optional[int] = None
    meta: dict[str, Any] = {}
    current_values: Optional[dict[str, Any]] = None
    event_name: Optional[str] = None
    event_description: Optional[str] = None
    event_day_of_week: Optional[str] = None
    event_start_time: Optional[str] = None
    event_end_time: Optional[str] = None
    event_start_date: Optional[date] = None
    event_type_ids: Optional[list[int]] = None
    ao_name: Optional[str] = None
    ao_logo: Optional[str] = None
    ao_website: Optional[str] = None
    location_name: Optional[str] = None
    location_description: Optional[str] = None
    location_lat: Optional[float] = None
    location_lng: Optional[float] = None
    location_address: Optional[str] = None
    location_address2: Optional[str] = None
    location_city: Optional[str] = None
    location_state: Optional[str] = None
    location_zip: Optional[str] = None
    location_country: Optional[str] = None
    created: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    model_config = {"from_attributes": True}


class UpdateRequestDetail(BaseModel):
    """A record plus the live values it is compared against."""

    request: UpdateRequestOut
    old_values: dict[str, Any] = {}
    new_values: dict[str, Any] = {}


class CanEditOrgsIn(BaseModel):
    org_ids: list[int]


class CanEditOrgResult(BaseModel):
    org_id: int
    success: bool
    role_name: str = "editor"


class CanEditOrgsOut(BaseModel):
    results: list[CanEditOrgResult]
