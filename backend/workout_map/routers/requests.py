"""Update request API routes: submit, review and permission probes."""
from typing import Annotated, Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.orm import Session

from workout_map.database import get_db
from workout_map.dependencies import get_editor_principal, get_principal
from workout_map.models.update_request import RequestStatus
from workout_map.schemas.principal import Principal
from workout_map.schemas.update_request import (
    CanEditOrgResult, CanEditOrgsIn, CanEditOrgsOut, SubmitResult,
    UpdateRequestDetail, UpdateRequestOut, UpdateRequestVariant,
)
from workout_map.services import audit_store, request_workflow
from workout_map.services.authorizer import can_edit_org, get_editable_org_ids
from workout_map.services.notifier import Notifier, get_notifier

router = APIRouter()


@router.post("/", response_model=SubmitResult, status_code=status.HTTP_201_CREATED)
def submit_update_request(
    payload: Annotated[UpdateRequestVariant, Body(discriminator="request_type")],
    principal: Principal = Depends(get_principal),
    notifier: Notifier = Depends(get_notifier),
    db: Session = Depends(get_db),
):
    """Apply the change if the actor has authority, otherwise queue it as pending."""
    result = request_workflow.submit_change(db, payload, principal, notifier)
    return SubmitResult(status=result.status.value, request_id=result.request_id)


@router.get("/", response_model=list[UpdateRequestOut])
def list_update_requests(
    statuses: Optional[list[RequestStatus]] = Query(None),
    only_mine: bool = Query(False, description="Limit to regions the actor can edit"),
    principal: Principal = Depends(get_editor_principal),
    db: Session = Depends(get_db),
):
    region_ids = None
    if only_mine:
        region_ids, _ = get_editable_org_ids(db, principal)
    return audit_store.list_update_requests(db, statuses=statuses, region_ids=region_ids)


@router.post("/can-edit-orgs", response_model=CanEditOrgsOut)
def can_edit_orgs(
    payload: CanEditOrgsIn,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    results = [
        CanEditOrgResult(org_id=org_id, success=can_edit_org(db, principal, org_id))
        for org_id in payload.org_ids
    ]
    return CanEditOrgsOut(results=results)


@router.get("/can-delete-event")
def can_delete_event(
    event_id: int = Query(...),
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """A delete is not offered while another delete for the same event awaits review."""
    return {"event_id": event_id, "can_delete": not audit_store.has_pending_delete_request(db, event_id)}


@router.get("/{request_id}", response_model=UpdateRequestDetail)
def get_update_request(
    request_id: str,
    principal: Principal = Depends(get_editor_principal),
    db: Session = Depends(get_db),
):
    record = audit_store.get_update_request(db, request_id)
    return audit_store.build_request_detail(db, record)


@router.post("/{request_id}/reject", response_model=UpdateRequestOut)
def reject_update_request(
    request_id: str,
    principal: Principal = Depends(get_principal),
    db: Session = Depends(get_db),
):
    """Reject a pending update request. Requires editor authority on its region."""
    return request_workflow.reject_submission(db, request_id, principal)
