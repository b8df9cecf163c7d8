"""User and RoleAssignment ORM models."""
import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from workout_map.database import Base


class RoleName(str, enum.Enum):
    editor = "editor"
    admin = "admin"


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), nullable=False, unique=True)
    f3_name = Column(String(100), nullable=True)
    created = Column(DateTime(timezone=True), server_default=func.now())

    role_assignments = relationship(
        "RoleAssignment", back_populates="user", cascade="all, delete-orphan", lazy="selectin",
    )


class RoleAssignment(Base):
    """A role held at an org is authoritative for that org and all its descendants."""

    __tablename__ = "roles_x_users_x_org"

    user_id = Column(Integer, ForeignKey("users.id"), primary_key=True)
    org_id = Column(Integer, ForeignKey("orgs.id"), primary_key=True)
    role_name = Column(SAEnum(RoleName), primary_key=True)

    user = relationship("User", back_populates="role_assignments")
