"""Request-scoped FastAPI dependencies."""
from typing import Optional

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from workout_map.database import get_db
from workout_map.exceptions import AuthenticationError, AuthorizationError
from workout_map.models.user import User
from workout_map.schemas.principal import Principal, RoleGrant


def load_principal(db: Session, user_id: int) -> Principal:
    """Build the acting principal from the user store, roles included."""
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise AuthenticationError(f"Unknown user: {user_id}")
    return Principal(
        user_id=user.id,
        email=user.email,
        roles=[
            RoleGrant(org_id=assignment.org_id, role_name=assignment.role_name)
            for assignment in user.role_assignments
        ],
    )


def get_principal(
    actor_user_id: Optional[int] = Query(None, description="ID of the user performing the action"),
    db: Session = Depends(get_db),
) -> Principal:
    if actor_user_id is None:
        raise AuthenticationError()
    return load_principal(db, actor_user_id)


def get_editor_principal(principal: Principal = Depends(get_principal)) -> Principal:
    """Review routes need an editor or admin grant on at least one org."""
    if not principal.roles:
        raise AuthorizationError("Editor access required")
    return principal
