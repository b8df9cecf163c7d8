"""Persistence of UpdateRequest audit rows.

Records are appended once per submission and afterwards only change status
(pending → rejected here). Nothing in this module deletes a record.
"""
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from sqlalchemy.orm import Session

from workout_map.exceptions import ConflictError, InvalidTransitionError, NotFoundError
from workout_map.models.event import Event
from workout_map.models.location import Location
from workout_map.models.org import Org
from workout_map.models.update_request import RequestStatus, RequestType, UpdateRequest
from workout_map.services.entities import AO_FIELDS, EVENT_FIELDS, LOCATION_FIELDS
from workout_map.services.permission_gate import RequestScope

logger = logging.getLogger(__name__)

META_FIELDS = (
    "original_region_id",
    "original_ao_id",
    "original_location_id",
    "original_event_id",
    "new_region_id",
    "new_ao_id",
    "new_location_id",
    "new_event_id",
)

PROPOSED_COLUMNS = (*EVENT_FIELDS, "event_type_ids", *AO_FIELDS, *LOCATION_FIELDS)


def build_meta(payload: Any, generated: Optional[dict[str, int]] = None) -> dict[str, Any]:
    """Original/new identifiers referenced by the change, plus ids the handler generated."""
    meta: dict[str, Any] = {}
    for name in META_FIELDS:
        value = getattr(payload, name, None)
        if value is not None:
            meta[name] = value
    for name, value in (generated or {}).items():
        if value is not None:
            meta[name] = value
    return meta


def record_update_request(
    db: Session,
    payload: Any,
    scope: RequestScope,
    status: RequestStatus,
    submitted_by: str,
    generated: Optional[dict[str, int]] = None,
) -> UpdateRequest:
    """Append the audit record for a submission (not committed)."""
    generated = generated or {}
    request_id = payload.id or str(uuid.uuid4())
    if db.get(UpdateRequest, request_id) is not None:
        raise ConflictError(f"Update request {request_id} already exists")

    proposed = {name: getattr(payload, name, None) for name in PROPOSED_COLUMNS}

    record = UpdateRequest(
        id=request_id,
        request_type=scope.request_type,
        status=status,
        submitted_by=submitted_by,
        region_id=scope.region_id,
        ao_id=generated.get("new_ao_id") or scope.ao_id,
        location_id=generated.get("new_location_id") or scope.location_id,
        event_id=generated.get("new_event_id") or scope.event_id,
        meta=build_meta(payload, generated),
        current_values=scope.current_values or None,
        **proposed,
    )
    db.add(record)
    db.flush()
    logger.info(
        "Recorded update request %s (%s) as %s for region %s",
        record.id, scope.request_type.value, status.value, scope.region_id,
    )
    return record


def get_update_request(db: Session, request_id: str, for_update: bool = False) -> UpdateRequest:
    query = db.query(UpdateRequest).filter(UpdateRequest.id == request_id)
    if for_update:
        query = query.with_for_update().populate_existing()
    record = query.first()
    if not record:
        raise NotFoundError("UpdateRequest", request_id)
    return record


def list_update_requests(
    db: Session,
    statuses: Optional[Iterable[RequestStatus]] = None,
    region_ids: Optional[Iterable[int]] = None,
) -> list[UpdateRequest]:
    query = db.query(UpdateRequest)
    if statuses:
        query = query.filter(UpdateRequest.status.in_(list(statuses)))
    if region_ids is not None:
        query = query.filter(UpdateRequest.region_id.in_(list(region_ids)))
    return query.order_by(UpdateRequest.created.desc(), UpdateRequest.id).all()


def mark_rejected(db: Session, record: UpdateRequest, reviewer: Optional[str]) -> UpdateRequest:
    """pending → rejected; any other starting state is an invalid transition."""
    if record.status != RequestStatus.pending:
        raise InvalidTransitionError(record.id, record.status.value, RequestStatus.rejected.value)
    record.status = RequestStatus.rejected
    record.reviewed_at = datetime.now(timezone.utc)
    record.reviewed_by = reviewer
    db.flush()
    return record


def has_pending_delete_request(db: Session, event_id: int) -> bool:
    return (
        db.query(UpdateRequest.id)
        .filter(
            UpdateRequest.event_id == event_id,
            UpdateRequest.request_type == RequestType.delete_event,
            UpdateRequest.status == RequestStatus.pending,
        )
        .first()
        is not None
    )


# ---------------------------------------------------------------------------
# Read side: old vs new
# ---------------------------------------------------------------------------
def _org_name(db: Session, org_id: Optional[int]) -> Optional[str]:
    if org_id is None:
        return None
    org = db.query(Org).filter(Org.id == org_id).first()
    return org.name if org else None


def _live_values(db: Session, record: UpdateRequest) -> dict[str, Any]:
    """Current values of the entities a record points at."""
    values: dict[str, Any] = {}
    event = db.query(Event).filter(Event.id == record.event_id).first() if record.event_id else None
    ao_id = event.org_id if event else record.ao_id
    location_id = event.location_id if event else record.location_id

    if event:
        values.update({
            "event_name": event.name,
            "event_description": event.description,
            "event_day_of_week": event.day_of_week.value if event.day_of_week else None,
            "event_start_time": event.start_time,
            "event_end_time": event.end_time,
        })
    ao = db.query(Org).filter(Org.id == ao_id).first() if ao_id else None
    if ao:
        values["ao_name"] = ao.name
        values["region_name"] = _org_name(db, ao.parent_id)
    location = db.query(Location).filter(Location.id == location_id).first() if location_id else None
    if location:
        for field, column in LOCATION_FIELDS.items():
            values[field] = getattr(location, column)
    return values


def _snapshot_values(snapshot: dict[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    event = snapshot.get("event")
    if event:
        for field, column in EVENT_FIELDS.items():
            values[field] = event.get(column)
    ao = snapshot.get("ao")
    if ao:
        values["ao_name"] = ao.get("name")
    location = snapshot.get("location")
    if location:
        for field, column in LOCATION_FIELDS.items():
            values[field] = location.get(column)
    return values


def build_request_detail(db: Session, record: UpdateRequest) -> dict[str, Any]:
    """Old values (pre-change snapshot, else live rows) next to the proposed ones."""
    old_values = _live_values(db, record)
    if record.current_values:
        old_values.update(_snapshot_values(record.current_values))
        ao_snapshot = record.current_values.get("ao")
        if ao_snapshot:
            old_values["region_name"] = _org_name(db, ao_snapshot.get("parent_id"))

    new_values = {name: getattr(record, name) for name in PROPOSED_COLUMNS}
    if new_values.get("event_day_of_week") is not None:
        new_values["event_day_of_week"] = record.event_day_of_week.value
    new_values["region_name"] = _org_name(db, record.region_id)
    return {"request": record, "old_values": old_values, "new_values": new_values}
