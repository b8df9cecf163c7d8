"""Mutation handlers, one per request type.

Each handler applies its change inside the caller's transaction and returns
the ids it generated (``new_location_id``, ``new_ao_id``, ``new_event_id``) so
they can be preserved on the audit record. Handlers never commit; a raised
exception leaves the rollback to the request workflow.
"""
import logging
from typing import Any, Callable

from sqlalchemy.orm import Session

from workout_map.exceptions import ConflictError
from workout_map.models.org import Org
from workout_map.models.update_request import RequestType
from workout_map.services import entities
from workout_map.services.entities import AO_FIELDS, EVENT_FIELDS, LOCATION_FIELDS, extract_fields
from workout_map.services.permission_gate import RequestScope

logger = logging.getLogger(__name__)

Handler = Callable[[Session, Any, RequestScope], dict[str, int]]


def _lock_ao(db: Session, ao_id: int, scope: RequestScope) -> Org:
    """Lock the AO row and make sure nobody changed it since the scope was resolved."""
    ao = entities.get_ao(db, ao_id, for_update=True)
    seen = scope.current_values.get("ao")
    if seen and seen["id"] == ao.id and seen["version"] != ao.version:
        raise ConflictError(
            f"AO {ao.id} was modified concurrently",
            detail=f"expected version {seen['version']}, found {ao.version}",
        )
    return ao


def handle_create_ao_and_location_and_event(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    location = entities.insert_location(db, scope.region_id, extract_fields(payload, LOCATION_FIELDS))
    ao = entities.create_ao(
        db, scope.region_id, extract_fields(payload, AO_FIELDS), default_location_id=location.id,
    )
    event = entities.insert_event(
        db, ao.id, location.id, {**extract_fields(payload, EVENT_FIELDS), "recurrence_pattern": "weekly"},
    )
    entities.update_event_types(db, event, payload.event_type_ids)
    return {"new_location_id": location.id, "new_ao_id": ao.id, "new_event_id": event.id}


def handle_create_event(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    event = entities.insert_event(
        db, payload.original_ao_id, payload.original_location_id, extract_fields(payload, EVENT_FIELDS),
    )
    entities.update_event_types(db, event, payload.event_type_ids)
    return {"new_event_id": event.id}


def handle_edit_event(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    event = entities.get_event(db, payload.original_event_id)
    entities.update_event(db, event, extract_fields(payload, EVENT_FIELDS, only_set=True))
    entities.update_event_types(db, event, payload.event_type_ids)
    return {}


def handle_edit_ao_and_location(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    ao = _lock_ao(db, payload.original_ao_id, scope)
    entities.update_org(db, ao, extract_fields(payload, AO_FIELDS, only_set=True))
    location = entities.get_location(db, payload.original_location_id)
    entities.update_location(db, location, extract_fields(payload, LOCATION_FIELDS, only_set=True))
    return {}


def handle_move_ao_to_different_region(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    ao = _lock_ao(db, payload.original_ao_id, scope)
    entities.update_org(db, ao, {"parent_id": payload.new_region_id})
    logger.info("Moved AO %s to region %s", ao.id, payload.new_region_id)
    return {}


def handle_move_ao_to_different_location(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    entities.repoint_events_for_ao(db, payload.original_ao_id, payload.new_location_id)
    return {}


def handle_move_ao_to_new_location(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    location = entities.insert_location(db, scope.region_id, extract_fields(payload, LOCATION_FIELDS))
    entities.repoint_events_for_ao(db, payload.original_ao_id, location.id)
    return {"new_location_id": location.id}


def handle_move_event_to_different_ao(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    event = entities.get_event(db, payload.original_event_id)
    entities.update_event(db, event, {"org_id": payload.new_ao_id, "location_id": scope.location_id})
    return {}


def handle_move_event_to_new_ao(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    generated: dict[str, int] = {}
    location_id = payload.new_location_id
    if location_id is None:
        location = entities.insert_location(db, scope.region_id, extract_fields(payload, LOCATION_FIELDS))
        location_id = generated["new_location_id"] = location.id

    ao = entities.create_ao(db, scope.region_id, extract_fields(payload, AO_FIELDS), default_location_id=location_id)
    generated["new_ao_id"] = ao.id

    event = entities.get_event(db, payload.original_event_id)
    entities.update_event(db, event, {"org_id": ao.id, "location_id": location_id})
    return generated


def handle_move_event_to_new_location(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    location = entities.insert_location(db, scope.region_id, extract_fields(payload, LOCATION_FIELDS))
    event = entities.get_event(db, payload.original_event_id)
    entities.update_event(db, event, {"location_id": location.id})
    return {"new_location_id": location.id}


def handle_delete_event(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    event = entities.get_event(db, payload.original_event_id)
    entities.update_event(db, event, {"is_active": False})
    return {}


def handle_delete_ao(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    ao = _lock_ao(db, payload.original_ao_id, scope)
    entities.update_org(db, ao, {"is_active": False})
    entities.deactivate_events_for_ao(db, ao.id)
    return {}


HANDLERS: dict[RequestType, Handler] = {
    RequestType.create_ao_and_location_and_event: handle_create_ao_and_location_and_event,
    RequestType.create_event: handle_create_event,
    RequestType.edit_event: handle_edit_event,
    RequestType.edit_ao_and_location: handle_edit_ao_and_location,
    RequestType.move_ao_to_different_region: handle_move_ao_to_different_region,
    RequestType.move_ao_to_different_location: handle_move_ao_to_different_location,
    RequestType.move_ao_to_new_location: handle_move_ao_to_new_location,
    RequestType.move_event_to_different_ao: handle_move_event_to_different_ao,
    RequestType.move_event_to_new_ao: handle_move_event_to_new_ao,
    RequestType.move_event_to_new_location: handle_move_event_to_new_location,
    RequestType.delete_event: handle_delete_event,
    RequestType.delete_ao: handle_delete_ao,
}

_unhandled = set(RequestType) - set(HANDLERS)
if _unhandled:
    raise RuntimeError(f"No mutation handler for request types: {sorted(t.value for t in _unhandled)}")


def apply_mutation(db: Session, payload: Any, scope: RequestScope) -> dict[str, int]:
    return HANDLERS[scope.request_type](db, payload, scope)
