"""Org ORM model — the nation → sector → area → region → ao hierarchy."""
import enum
from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from workout_map.database import Base


class OrgType(str, enum.Enum):
    nation = "nation"
    sector = "sector"
    area = "area"
    region = "region"
    ao = "ao"


class Org(Base):
    __tablename__ = "orgs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(Integer, ForeignKey("orgs.id"), nullable=True, index=True)
    org_type = Column(SAEnum(OrgType), nullable=False)
    name = Column(String(255), nullable=False)
    description = Column(String(1000), nullable=True)
    logo_url = Column(String(500), nullable=True)
    website = Column(String(500), nullable=True)
    # No FK: locations.org_id already points back at orgs.
    default_location_id = Column(Integer, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    version = Column(Integer, nullable=False, default=1)
    created = Column(DateTime(timezone=True), server_default=func.now())
    updated = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
