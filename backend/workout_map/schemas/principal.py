"""The acting principal, as resolved from the session/user store."""
from typing import Optional
from pydantic import BaseModel

from workout_map.models.user import RoleName


class RoleGrant(BaseModel):
    org_id: int
    role_name: RoleName


class Principal(BaseModel):
    user_id: Optional[int] = None
    email: Optional[str] = None
    roles: list[RoleGrant] = []

    def role_org_ids(self) -> set[int]:
        return {grant.org_id for grant in self.roles}
