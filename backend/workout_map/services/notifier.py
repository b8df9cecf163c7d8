"""Moderator notification trigger for pending update requests.

Delivery (mail, webhooks) lives outside this service; the default notifier
resolves who should be told and logs the hand-off.
"""
import logging
from abc import ABC, abstractmethod

from sqlalchemy.orm import Session

from workout_map.models.user import RoleAssignment, User
from workout_map.services.audit_store import get_update_request
from workout_map.services.authorizer import get_ancestor_org_ids

logger = logging.getLogger(__name__)


def get_moderator_emails(db: Session, region_id: int) -> list[str]:
    """Users holding editor or admin on the region or any of its ancestors."""
    chain = get_ancestor_org_ids(db, region_id)
    if not chain:
        return []
    rows = (
        db.query(User.email)
        .join(RoleAssignment, RoleAssignment.user_id == User.id)
        .filter(RoleAssignment.org_id.in_(chain))
        .distinct()
        .order_by(User.email)
        .all()
    )
    return [email for (email,) in rows]


class Notifier(ABC):
    """Called once a pending record has committed. May raise; callers log and continue."""

    @abstractmethod
    def notify_moderators(self, db: Session, request_id: str) -> None:
        ...


class LoggingNotifier(Notifier):
    def notify_moderators(self, db: Session, request_id: str) -> None:
        record = get_update_request(db, request_id)
        recipients = get_moderator_emails(db, record.region_id)
        logger.info(
            "Update request %s (%s) pending review in region %s; notifying %d moderators: %s",
            record.id, record.request_type.value, record.region_id, len(recipients), ", ".join(recipients),
        )


def get_notifier() -> Notifier:
    """FastAPI dependency; override it in tests or in deployments with a real sender."""
    return LoggingNotifier()
