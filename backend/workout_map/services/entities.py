"""Entity-level reads and writes for orgs, locations and events.

None of these commit: they ``flush`` so generated ids are available to the
caller, and leave the transaction boundary to the request workflow.
"""
import logging
from typing import Any, Optional

from pydantic import BaseModel
from sqlalchemy.orm import Session

from workout_map.exceptions import NotFoundError, ValidationError
from workout_map.models.event import Event, EventType
from workout_map.models.location import Location
from workout_map.models.org import Org, OrgType

logger = logging.getLogger(__name__)

# payload field -> column
EVENT_FIELDS = {
    "event_name": "name",
    "event_description": "description",
    "event_day_of_week": "day_of_week",
    "event_start_time": "start_time",
    "event_end_time": "end_time",
    "event_start_date": "start_date",
}
AO_FIELDS = {
    "ao_name": "name",
    "ao_logo": "logo_url",
    "ao_website": "website",
}
LOCATION_FIELDS = {
    "location_name": "name",
    "location_description": "description",
    "location_lat": "latitude",
    "location_lng": "longitude",
    "location_address": "address_street",
    "location_address2": "address_street2",
    "location_city": "address_city",
    "location_state": "address_state",
    "location_zip": "address_zip",
    "location_country": "address_country",
}


def extract_fields(payload: BaseModel, field_map: dict[str, str], only_set: bool = False) -> dict[str, Any]:
    """Map payload fields onto column names.

    With ``only_set`` the result holds only fields the client actually sent,
    which is what partial updates need.
    """
    fields_set = payload.model_fields_set
    values = {}
    for field, column in field_map.items():
        if only_set and field not in fields_set:
            continue
        values[column] = getattr(payload, field, None)
    return values


def _apply_changes(entity: Any, changes: dict[str, Any]) -> None:
    columns = entity.__table__.c
    for column, value in changes.items():
        if value is None and not columns[column].nullable:
            continue
        setattr(entity, column, value)


# ---------------------------------------------------------------------------
# Snapshots (pre-change shape for the audit record)
# ---------------------------------------------------------------------------
def org_snapshot(org: Org) -> dict[str, Any]:
    return {
        "id": org.id,
        "parent_id": org.parent_id,
        "org_type": org.org_type.value if org.org_type else None,
        "name": org.name,
        "logo_url": org.logo_url,
        "website": org.website,
        "default_location_id": org.default_location_id,
        "is_active": org.is_active,
        "version": org.version,
    }


def location_snapshot(location: Location) -> dict[str, Any]:
    return {
        "id": location.id,
        "org_id": location.org_id,
        "name": location.name,
        "description": location.description,
        "latitude": location.latitude,
        "longitude": location.longitude,
        "address_street": location.address_street,
        "address_street2": location.address_street2,
        "address_city": location.address_city,
        "address_state": location.address_state,
        "address_zip": location.address_zip,
        "address_country": location.address_country,
        "is_active": location.is_active,
    }


def event_snapshot(event: Event) -> dict[str, Any]:
    return {
        "id": event.id,
        "org_id": event.org_id,
        "location_id": event.location_id,
        "name": event.name,
        "description": event.description,
        "day_of_week": event.day_of_week.value if event.day_of_week else None,
        "start_time": event.start_time,
        "end_time": event.end_time,
        "start_date": event.start_date.isoformat() if event.start_date else None,
        "is_active": event.is_active,
        "event_type_ids": sorted(event_type.id for event_type in event.event_types),
    }


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
def get_org(db: Session, org_id: int, for_update: bool = False) -> Org:
    query = db.query(Org).filter(Org.id == org_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    org = query.first()
    if not org:
        raise NotFoundError("Org", org_id)
    return org


def get_ao(db: Session, ao_id: int, for_update: bool = False) -> Org:
    ao = get_org(db, ao_id, for_update=for_update)
    if ao.org_type != OrgType.ao:
        raise ValidationError(f"Org {ao_id} is a {ao.org_type.value}, not an ao", field="ao_id")
    return ao


def get_region(db: Session, region_id: int) -> Org:
    region = get_org(db, region_id)
    if region.org_type != OrgType.region:
        raise ValidationError(
            f"Org {region_id} is a {region.org_type.value}, not a region", field="region_id",
        )
    return region


def get_location(db: Session, location_id: int) -> Location:
    location = db.query(Location).filter(Location.id == location_id).first()
    if not location:
        raise NotFoundError("Location", location_id)
    return location


def get_event(db: Session, event_id: int) -> Event:
    event = db.query(Event).filter(Event.id == event_id).first()
    if not event:
        raise NotFoundError("Event", event_id)
    return event


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def insert_location(db: Session, org_id: int, fields: dict[str, Any]) -> Location:
    location = Location(org_id=org_id, is_active=True, **fields)
    db.add(location)
    db.flush()
    logger.info("Inserted location %s under org %s", location.id, org_id)
    return location


def update_location(db: Session, location: Location, changes: dict[str, Any]) -> Location:
    _apply_changes(location, changes)
    db.flush()
    return location


def create_ao(
    db: Session,
    region_id: int,
    fields: dict[str, Any],
    default_location_id: Optional[int] = None,
) -> Org:
    ao = Org(
        parent_id=region_id,
        org_type=OrgType.ao,
        default_location_id=default_location_id,
        is_active=True,
        version=1,
        **fields,
    )
    db.add(ao)
    db.flush()
    logger.info("Created AO %s (%s) under region %s", ao.id, ao.name, region_id)
    return ao


def update_org(db: Session, org: Org, changes: dict[str, Any]) -> Org:
    """Apply changes and bump the optimistic-lock version."""
    _apply_changes(org, changes)
    org.version += 1
    db.flush()
    return org


def insert_event(db: Session, ao_id: int, location_id: int, fields: dict[str, Any]) -> Event:
    event = Event(org_id=ao_id, location_id=location_id, is_active=True, **fields)
    db.add(event)
    db.flush()
    logger.info("Inserted event %s for AO %s at location %s", event.id, ao_id, location_id)
    return event


def update_event(db: Session, event: Event, changes: dict[str, Any]) -> Event:
    _apply_changes(event, changes)
    db.flush()
    return event


def update_event_types(db: Session, event: Event, event_type_ids: Optional[list[int]]) -> None:
    """Replace the event's type tags with ``event_type_ids``."""
    if event_type_ids is None:
        return
    wanted = set(event_type_ids)
    event_types = db.query(EventType).filter(EventType.id.in_(wanted)).all() if wanted else []
    missing = wanted - {event_type.id for event_type in event_types}
    if missing:
        raise NotFoundError("EventType", sorted(missing))
    event.event_types = event_types
    db.flush()


def repoint_events_for_ao(db: Session, ao_id: int, location_id: int) -> int:
    count = (
        db.query(Event)
        .filter(Event.org_id == ao_id)
        .update({Event.location_id: location_id}, synchronize_session="fetch")
    )
    logger.info("Repointed %d events of AO %s to location %s", count, ao_id, location_id)
    return count


def deactivate_events_for_ao(db: Session, ao_id: int) -> int:
    count = (
        db.query(Event)
        .filter(Event.org_id == ao_id, Event.is_active.is_(True))
        .update({Event.is_active: False}, synchronize_session="fetch")
    )
    logger.info("Deactivated %d events of AO %s", count, ao_id)
    return count
