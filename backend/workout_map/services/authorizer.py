"""Role checks over the org tree.

Two traversals over ``orgs.parent_id``, both a single query with a fixed
number of self-joins:

- upward: target org plus up to ``MAX_ORG_DEPTH`` ancestors, used to decide
  whether a principal holds a role on a node or anything above it;
- downward: given org ids, every descendant up to ``MAX_ORG_DEPTH`` levels,
  used to scope "only mine" views.

Both are read-only, so they can run inside the same transaction as the
mutation they gate.
"""
import logging
from typing import Iterable

from sqlalchemy.orm import Session, aliased

from workout_map.models.org import Org, OrgType
from workout_map.models.user import RoleName
from workout_map.schemas.principal import Principal

logger = logging.getLogger(__name__)

# nation → sector → area → region → ao: five nodes, four hops.
MAX_ORG_DEPTH = 4

_ROLE_RANK = {
    RoleName.editor: 1,
    RoleName.admin: 2,
}


def role_satisfies(held: RoleName, required: RoleName) -> bool:
    """admin implies editor; editor does not imply admin."""
    return _ROLE_RANK[RoleName(held)] >= _ROLE_RANK[RoleName(required)]


def get_ancestor_org_ids(db: Session, org_id: int) -> list[int]:
    """Return ``[org_id, parent, grandparent, ...]``, at most MAX_ORG_DEPTH + 1 ids.

    Empty when the org does not exist.
    """
    levels = [aliased(Org, name=f"level_{depth}") for depth in range(MAX_ORG_DEPTH + 1)]
    query = db.query(*[level.id for level in levels]).select_from(levels[0])
    for child, parent in zip(levels, levels[1:]):
        query = query.outerjoin(parent, child.parent_id == parent.id)
    row = query.filter(levels[0].id == org_id).first()
    if row is None:
        return []
    return [ancestor_id for ancestor_id in row if ancestor_id is not None]


def has_role_on_org_or_ancestor(
    db: Session,
    principal: Principal,
    org_id: int,
    role_name: RoleName = RoleName.editor,
) -> bool:
    """True if the principal holds ``role_name`` (or stronger) on the org or an ancestor.

    A missing org authorizes nothing.
    """
    if not principal.roles:
        return False
    chain = get_ancestor_org_ids(db, org_id)
    if not chain:
        return False
    for ancestor_id in chain:
        for grant in principal.roles:
            if grant.org_id == ancestor_id and role_satisfies(grant.role_name, role_name):
                return True
    return False


def can_edit_org(db: Session, principal: Principal, org_id: int) -> bool:
    return has_role_on_org_or_ancestor(db, principal, org_id, RoleName.editor)


def expand_to_descendants(db: Session, org_ids: Iterable[int]) -> set[int]:
    """Return the given (existing) org ids together with all of their descendants."""
    org_ids = set(org_ids)
    if not org_ids:
        return set()

    levels = [aliased(Org, name=f"level_{depth}") for depth in range(MAX_ORG_DEPTH + 1)]
    query = db.query(*[level.id for level in levels]).select_from(levels[0])
    for parent, child in zip(levels, levels[1:]):
        query = query.outerjoin(child, child.parent_id == parent.id)
    rows = query.filter(levels[0].id.in_(org_ids)).all()

    descendants: set[int] = set()
    for row in rows:
        descendants.update(org_id for org_id in row if org_id is not None)
    return descendants


def get_editable_org_ids(db: Session, principal: Principal) -> tuple[set[int], bool]:
    """Orgs the principal may manage, and whether they hold a role on a nation node."""
    role_org_ids = principal.role_org_ids()
    if not role_org_ids:
        return set(), False
    is_nation_admin = (
        db.query(Org.id)
        .filter(Org.id.in_(role_org_ids), Org.org_type == OrgType.nation)
        .first()
        is not None
    )
    editable = expand_to_descendants(db, role_org_ids)
    logger.debug("Principal %s can edit %d orgs (nation admin: %s)", principal.user_id, len(editable), is_nation_admin)
    return editable, is_nation_admin
