"""Read-only org API routes."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from workout_map.database import get_db
from workout_map.dependencies import get_principal
from workout_map.schemas.org import EditableOrgsOut, OrgOut
from workout_map.schemas.principal import Principal
from workout_map.services.authorizer import get_editable_org_ids
from workout_map.services.entities import get_org

router = APIRouter()


@router.get("/editable", response_model=EditableOrgsOut)
def list_editable_orgs(principal: Principal = Depends(get_principal), db: Session = Depends(get_db)):
    """Every org the actor may manage: their role orgs plus all descendants."""
    org_ids, is_nation_admin = get_editable_org_ids(db, principal)
    return EditableOrgsOut(org_ids=sorted(org_ids), is_nation_admin=is_nation_admin)


@router.get("/{org_id}", response_model=OrgOut)
def read_org(org_id: int, db: Session = Depends(get_db)):
    return get_org(db, org_id)
