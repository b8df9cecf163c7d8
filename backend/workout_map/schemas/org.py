"""Pydantic schemas for orgs."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class OrgOut(BaseModel):
    id: int
    parent_id: Optional[int] = None
    org_type: str
    name: str
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    default_location_id: Optional[int] = None
    is_active: bool
    version: int
    created: Optional[datetime] = None
    updated: Optional[datetime] = None

    model_config = {"from_attributes": True}


class EditableOrgsOut(BaseModel):
    org_ids: list[int]
    is_nation_admin: bool = False
