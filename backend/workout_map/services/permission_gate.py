"""Which orgs a proposed change implicates, and whether they all pass.

``resolve_request_scope`` is the per-variant policy: it looks up every entity
the payload references (NotFoundError / ValidationError / ConflictError
surface here, before anything is recorded) and returns the orgs that must
authorize the change. ``check_update_permissions`` is the decision itself.
Neither writes to the database.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from workout_map.exceptions import ConflictError, ValidationError
from workout_map.models.event import Event
from workout_map.models.org import Org
from workout_map.models.update_request import RequestType
from workout_map.models.user import RoleName
from workout_map.schemas.principal import Principal
from workout_map.services import entities
from workout_map.services.authorizer import has_role_on_org_or_ancestor

logger = logging.getLogger(__name__)


@dataclass
class RequestScope:
    request_type: RequestType
    region_id: Optional[int]
    implicated_org_ids: list[int]
    ao_id: Optional[int] = None
    location_id: Optional[int] = None
    event_id: Optional[int] = None
    current_values: dict[str, Any] = field(default_factory=dict)


@dataclass
class PermissionCheck:
    success: bool
    results: dict[int, bool]


def _unique(org_ids: list[Optional[int]]) -> list[int]:
    seen: list[int] = []
    for org_id in org_ids:
        if org_id is not None and org_id not in seen:
            seen.append(org_id)
    return seen


def _expect_original_region(payload: Any, current_region_id: Optional[int]) -> None:
    if payload.original_region_id is not None and payload.original_region_id != current_region_id:
        raise ConflictError(
            "Target has moved since the request was prepared",
            detail=f"expected region {payload.original_region_id}, found {current_region_id}",
        )


def _expect_original_ao(payload: Any, event: Event) -> None:
    if payload.original_ao_id is not None and payload.original_ao_id != event.org_id:
        raise ConflictError(
            "Event has moved since the request was prepared",
            detail=f"expected AO {payload.original_ao_id}, found {event.org_id}",
        )


def _event_and_ao(db: Session, payload: Any) -> tuple[Event, Org]:
    event = entities.get_event(db, payload.original_event_id)
    _expect_original_ao(payload, event)
    ao = entities.get_org(db, event.org_id)
    _expect_original_region(payload, ao.parent_id)
    return event, ao


def _ao(db: Session, payload: Any) -> Org:
    ao = entities.get_ao(db, payload.original_ao_id)
    _expect_original_region(payload, ao.parent_id)
    return ao


# ---------------------------------------------------------------------------
# Per-variant policy
# ---------------------------------------------------------------------------
def _scope_create_ao_and_location_and_event(db: Session, payload: Any) -> RequestScope:
    region = entities.get_region(db, payload.original_region_id)
    return RequestScope(payload_type(payload), region.id, [region.id])


def _scope_create_event(db: Session, payload: Any) -> RequestScope:
    ao = _ao(db, payload)
    location = entities.get_location(db, payload.original_location_id)
    return RequestScope(
        payload_type(payload), ao.parent_id, _unique([ao.id, location.org_id]),
        ao_id=ao.id, location_id=location.id,
        current_values={"ao": entities.org_snapshot(ao), "location": entities.location_snapshot(location)},
    )


def _scope_edit_event(db: Session, payload: Any) -> RequestScope:
    event, ao = _event_and_ao(db, payload)
    return RequestScope(
        payload_type(payload), ao.parent_id, [ao.id],
        ao_id=ao.id, location_id=event.location_id, event_id=event.id,
        current_values={"event": entities.event_snapshot(event)},
    )


def _scope_edit_ao_and_location(db: Session, payload: Any) -> RequestScope:
    ao = _ao(db, payload)
    location = entities.get_location(db, payload.original_location_id)
    return RequestScope(
        payload_type(payload), ao.parent_id, _unique([ao.id, location.org_id]),
        ao_id=ao.id, location_id=location.id,
        current_values={"ao": entities.org_snapshot(ao), "location": entities.location_snapshot(location)},
    )


def _scope_move_ao_to_different_region(db: Session, payload: Any) -> RequestScope:
    ao = _ao(db, payload)
    new_region = entities.get_region(db, payload.new_region_id)
    if ao.parent_id is None:
        raise ValidationError(f"AO {ao.id} has no region", field="original_ao_id")
    if new_region.id == ao.parent_id:
        raise ValidationError(f"AO {ao.id} is already in region {new_region.id}", field="new_region_id")
    return RequestScope(
        payload_type(payload), new_region.id, _unique([ao.parent_id, new_region.id]),
        ao_id=ao.id,
        current_values={"ao": entities.org_snapshot(ao)},
    )


def _scope_move_ao_to_different_location(db: Session, payload: Any) -> RequestScope:
    ao = _ao(db, payload)
    new_location = entities.get_location(db, payload.new_location_id)
    current_values = {"ao": entities.org_snapshot(ao)}
    if payload.original_location_id is not None:
        current_values["location"] = entities.location_snapshot(
            entities.get_location(db, payload.original_location_id)
        )
    return RequestScope(
        payload_type(payload), ao.parent_id, _unique([ao.id, new_location.org_id]),
        ao_id=ao.id, location_id=new_location.id,
        current_values=current_values,
    )


def _scope_move_ao_to_new_location(db: Session, payload: Any) -> RequestScope:
    ao = _ao(db, payload)
    current_values = {"ao": entities.org_snapshot(ao)}
    if payload.original_location_id is not None:
        current_values["location"] = entities.location_snapshot(
            entities.get_location(db, payload.original_location_id)
        )
    return RequestScope(
        payload_type(payload), ao.parent_id, [ao.id],
        ao_id=ao.id, location_id=payload.original_location_id,
        current_values=current_values,
    )


def _scope_move_event_to_different_ao(db: Session, payload: Any) -> RequestScope:
    event, ao = _event_and_ao(db, payload)
    new_ao = entities.get_ao(db, payload.new_ao_id)
    if new_ao.id == event.org_id:
        raise ValidationError(f"Event {event.id} already belongs to AO {new_ao.id}", field="new_ao_id")
    location_id, location_owner_id = event.location_id, None
    if payload.new_location_id is not None:
        new_location = entities.get_location(db, payload.new_location_id)
        location_id, location_owner_id = new_location.id, new_location.org_id
    return RequestScope(
        payload_type(payload), new_ao.parent_id, _unique([ao.id, new_ao.id, location_owner_id]),
        ao_id=new_ao.id, location_id=location_id, event_id=event.id,
        current_values={"event": entities.event_snapshot(event), "ao": entities.org_snapshot(ao)},
    )


def _scope_move_event_to_new_ao(db: Session, payload: Any) -> RequestScope:
    event, ao = _event_and_ao(db, payload)
    if payload.new_region_id is not None:
        target_region_id = entities.get_region(db, payload.new_region_id).id
    else:
        target_region_id = ao.parent_id
    location_owner_id = None
    if payload.new_location_id is not None:
        location_owner_id = entities.get_location(db, payload.new_location_id).org_id
    return RequestScope(
        payload_type(payload), target_region_id, _unique([ao.id, target_region_id, location_owner_id]),
        ao_id=ao.id, location_id=payload.new_location_id or event.location_id, event_id=event.id,
        current_values={"event": entities.event_snapshot(event), "ao": entities.org_snapshot(ao)},
    )


def _scope_move_event_to_new_location(db: Session, payload: Any) -> RequestScope:
    event, ao = _event_and_ao(db, payload)
    location = entities.get_location(db, event.location_id)
    return RequestScope(
        payload_type(payload), ao.parent_id, [ao.id],
        ao_id=ao.id, location_id=event.location_id, event_id=event.id,
        current_values={"event": entities.event_snapshot(event), "location": entities.location_snapshot(location)},
    )


def _scope_delete_event(db: Session, payload: Any) -> RequestScope:
    event, ao = _event_and_ao(db, payload)
    return RequestScope(
        payload_type(payload), ao.parent_id, [ao.id],
        ao_id=ao.id, location_id=event.location_id, event_id=event.id,
        current_values={"event": entities.event_snapshot(event)},
    )


def _scope_delete_ao(db: Session, payload: Any) -> RequestScope:
    ao = _ao(db, payload)
    return RequestScope(
        payload_type(payload), ao.parent_id, [ao.id],
        ao_id=ao.id, location_id=ao.default_location_id,
        current_values={"ao": entities.org_snapshot(ao)},
    )


SCOPE_RESOLVERS: dict[RequestType, Callable[[Session, Any], RequestScope]] = {
    RequestType.create_ao_and_location_and_event: _scope_create_ao_and_location_and_event,
    RequestType.create_event: _scope_create_event,
    RequestType.edit_event: _scope_edit_event,
    RequestType.edit_ao_and_location: _scope_edit_ao_and_location,
    RequestType.move_ao_to_different_region: _scope_move_ao_to_different_region,
    RequestType.move_ao_to_different_location: _scope_move_ao_to_different_location,
    RequestType.move_ao_to_new_location: _scope_move_ao_to_new_location,
    RequestType.move_event_to_different_ao: _scope_move_event_to_different_ao,
    RequestType.move_event_to_new_ao: _scope_move_event_to_new_ao,
    RequestType.move_event_to_new_location: _scope_move_event_to_new_location,
    RequestType.delete_event: _scope_delete_event,
    RequestType.delete_ao: _scope_delete_ao,
}

_unhandled = set(RequestType) - set(SCOPE_RESOLVERS)
if _unhandled:
    raise RuntimeError(f"No permission policy for request types: {sorted(t.value for t in _unhandled)}")


def payload_type(payload: Any) -> RequestType:
    return RequestType(payload.request_type)


def resolve_request_scope(db: Session, payload: Any) -> RequestScope:
    """Resolve referenced entities and the orgs the change implicates."""
    scope = SCOPE_RESOLVERS[payload_type(payload)](db, payload)
    if scope.region_id is None:
        raise ValidationError("Region id is required", field="original_region_id")
    return scope


def check_update_permissions(db: Session, principal: Principal, scope: RequestScope) -> PermissionCheck:
    """Every implicated org must pass at editor level; no partial success."""
    results = {
        org_id: has_role_on_org_or_ancestor(db, principal, org_id, RoleName.editor)
        for org_id in scope.implicated_org_ids
    }
    success = bool(results) and all(results.values())
    logger.debug("Permission check for %s: %s", scope.request_type.value, results)
    return PermissionCheck(success=success, results=results)
