"""The update-request state machine.

    received ──gate passes──▶ approved   (mutation applied, then recorded)
        └────gate fails─────▶ pending ──reject──▶ rejected

A submission is one transaction: the mutation and its ``approved`` record
commit together or not at all. A ``pending`` record commits without touching
any entity, and only then are moderators notified. Nothing here retries.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy.exc import IntegrityError, OperationalError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from workout_map.config import settings
from workout_map.exceptions import (
    AuthorizationError, ConflictError, InfrastructureError, ValidationError,
)
from workout_map.models.update_request import RequestStatus, UpdateRequest
from workout_map.models.user import RoleName
from workout_map.schemas.principal import Principal
from workout_map.services import audit_store
from workout_map.services.authorizer import has_role_on_org_or_ancestor
from workout_map.services.mutation_handlers import apply_mutation
from workout_map.services.notifier import Notifier
from workout_map.services.permission_gate import check_update_permissions, resolve_request_scope

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    status: RequestStatus
    request_id: str


def _resolve_submitted_by(principal: Principal, payload: Any) -> str:
    submitted_by = principal.email or payload.submitted_by
    if not submitted_by:
        raise ValidationError("Submitted by is required", field="submitted_by")
    return submitted_by


def _rollback_and_translate(db: Session, exc: Exception) -> Exception:
    db.rollback()
    if isinstance(exc, IntegrityError):
        return ConflictError("Concurrent change conflicted with this request", detail=str(exc.orig))
    if isinstance(exc, (OperationalError, PoolTimeoutError)):
        return InfrastructureError(detail=exc.__class__.__name__)
    return exc


def _notify(db: Session, notifier: Optional[Notifier], request_id: str) -> None:
    if notifier is None or not settings.NOTIFICATIONS_ENABLED:
        return
    try:
        notifier.notify_moderators(db, request_id)
    except Exception:
        db.rollback()
        logger.exception("Failed to notify moderators about update request %s", request_id)


def submit_change(
    db: Session,
    payload: Any,
    principal: Principal,
    notifier: Optional[Notifier] = None,
) -> SubmissionResult:
    """Apply the change now if the principal may, otherwise queue it for review."""
    submitted_by = _resolve_submitted_by(principal, payload)

    try:
        scope = resolve_request_scope(db, payload)
        permissions = check_update_permissions(db, principal, scope)
        if permissions.success:
            generated = apply_mutation(db, payload, scope)
            record = audit_store.record_update_request(
                db, payload, scope, RequestStatus.approved, submitted_by, generated,
            )
        else:
            record = audit_store.record_update_request(
                db, payload, scope, RequestStatus.pending, submitted_by,
            )
        db.commit()
    except Exception as exc:
        translated = _rollback_and_translate(db, exc)
        if translated is exc:
            raise
        raise translated from exc

    result = SubmissionResult(status=record.status, request_id=record.id)
    logger.info(
        "Update request %s (%s) by %s: %s",
        result.request_id, scope.request_type.value, submitted_by, result.status.value,
    )
    if result.status == RequestStatus.pending:
        _notify(db, notifier, result.request_id)
    return result


def reject_submission(db: Session, request_id: str, principal: Principal) -> UpdateRequest:
    """pending → rejected, by a principal with editor authority on the record's region.

    Only the audit record changes; no entity is touched.
    """
    try:
        record = audit_store.get_update_request(db, request_id, for_update=True)
        if not has_role_on_org_or_ancestor(db, principal, record.region_id, RoleName.editor):
            raise AuthorizationError("You are not authorized to edit this region")
        audit_store.mark_rejected(db, record, principal.email)
        db.commit()
    except Exception as exc:
        translated = _rollback_and_translate(db, exc)
        if translated is exc:
            raise
        raise translated from exc

    db.refresh(record)
    logger.info("Update request %s rejected by %s", request_id, principal.email)
    return record
