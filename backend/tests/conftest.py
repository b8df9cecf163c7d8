"""Pytest fixtures — a fresh SQLite database per test, plus a seeded org tree."""
import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from workout_map.database import Base, get_db
from workout_map.main import app
from workout_map.dependencies import load_principal
from workout_map.schemas.principal import Principal

# Import all models so they register with Base.metadata
from workout_map.models.org import Org, OrgType                # noqa: F401
from workout_map.models.location import Location               # noqa: F401
from workout_map.models.event import DayOfWeek, Event, EventType  # noqa: F401
from workout_map.models.user import RoleAssignment, RoleName, User  # noqa: F401
from workout_map.models.update_request import UpdateRequest    # noqa: F401


@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'test.db'}", connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db(session_factory):
    """Yield a database session for service-level tests."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    """FastAPI TestClient with the database dependency overridden to use SQLite."""

    def _override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture(scope="function")
def tree(db):
    """The seeded org tree; see ``seed_org_tree``."""
    return seed_org_tree(db)


# ---------------------------------------------------------------------------
# Seeding helpers
# ---------------------------------------------------------------------------
def _org(db, org_type: OrgType, name: str, parent_id=None) -> Org:
    org = Org(org_type=org_type, name=name, parent_id=parent_id, is_active=True, version=1)
    db.add(org)
    db.flush()
    return org


def _location(db, org_id: int, name: str, lat: float, lng: float) -> Location:
    location = Location(org_id=org_id, name=name, latitude=lat, longitude=lng, is_active=True)
    db.add(location)
    db.flush()
    return location


def _event(db, ao_id: int, location_id: int, name: str, day: DayOfWeek, start: str) -> Event:
    workout = Event(
        org_id=ao_id, location_id=location_id, name=name, day_of_week=day,
        start_time=start, end_time=None, is_active=True,
    )
    db.add(workout)
    db.flush()
    return workout


def _user(db, email: str, grants: list[tuple[int, RoleName]]) -> User:
    user = User(email=email)
    db.add(user)
    db.flush()
    for org_id, role_name in grants:
        db.add(RoleAssignment(user_id=user.id, org_id=org_id, role_name=role_name))
    db.flush()
    return user


def seed_org_tree(db) -> dict:
    """Seed and commit a small map.

        nation ─ sector ─ area ─┬─ region r1 ─┬─ ao a1  (events e1, e2 @ loc l1)
                                │             └─ ao a2
                                └─ region r2 ─── ao b1  (event e3 @ loc l3)

    Locations l1, l2 belong to r1; l3 belongs to r2. Returns a dict of ids.
    """
    nation = _org(db, OrgType.nation, "Nation")
    sector = _org(db, OrgType.sector, "Sector", nation.id)
    area = _org(db, OrgType.area, "Area", sector.id)
    r1 = _org(db, OrgType.region, "Region One", area.id)
    r2 = _org(db, OrgType.region, "Region Two", area.id)
    a1 = _org(db, OrgType.ao, "The Yard", r1.id)
    a2 = _org(db, OrgType.ao, "The Pit", r1.id)
    b1 = _org(db, OrgType.ao, "The Hill", r2.id)

    l1 = _location(db, r1.id, "Central Park", 35.0, -80.0)
    l2 = _location(db, r1.id, "High School", 35.1, -80.1)
    l3 = _location(db, r2.id, "Lakeside", 36.0, -81.0)
    a1.default_location_id = l1.id
    a2.default_location_id = l2.id
    b1.default_location_id = l3.id

    bootcamp = EventType(name="Bootcamp", is_active=True)
    run = EventType(name="Run", is_active=True)
    db.add_all([bootcamp, run])
    db.flush()

    e1 = _event(db, a1.id, l1.id, "Yard Bootcamp", DayOfWeek.monday, "0530")
    e2 = _event(db, a1.id, l1.id, "Yard Run", DayOfWeek.wednesday, "0530")
    e3 = _event(db, b1.id, l3.id, "Hill Sprints", DayOfWeek.friday, "0600")
    e1.event_types = [bootcamp]

    nation_admin = _user(db, "nation@example.com", [(nation.id, RoleName.admin)])
    r1_editor = _user(db, "r1@example.com", [(r1.id, RoleName.editor)])
    r2_editor = _user(db, "r2@example.com", [(r2.id, RoleName.editor)])
    a1_editor = _user(db, "a1@example.com", [(a1.id, RoleName.editor)])
    nobody = _user(db, "nobody@example.com", [])
    db.commit()

    return {
        "nation": nation.id, "sector": sector.id, "area": area.id,
        "r1": r1.id, "r2": r2.id, "a1": a1.id, "a2": a2.id, "b1": b1.id,
        "l1": l1.id, "l2": l2.id, "l3": l3.id,
        "e1": e1.id, "e2": e2.id, "e3": e3.id,
        "bootcamp": bootcamp.id, "run": run.id,
        "nation_admin": nation_admin.id, "r1_editor": r1_editor.id, "r2_editor": r2_editor.id,
        "a1_editor": a1_editor.id, "nobody": nobody.id,
    }


def principal_for(db, user_id: int) -> Principal:
    return load_principal(db, user_id)
