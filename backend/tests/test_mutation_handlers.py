"""Tests for the per-request-type mutation handlers."""
import pytest
from pydantic import TypeAdapter

from workout_map.exceptions import ConflictError, NotFoundError
from workout_map.models.event import Event
from workout_map.models.location import Location
from workout_map.models.org import Org, OrgType
from workout_map.models.update_request import RequestType, UpdateRequest
from workout_map.schemas.update_request import UpdateRequestPayload
from workout_map.services import entities
from workout_map.services.mutation_handlers import HANDLERS, apply_mutation
from workout_map.services.permission_gate import resolve_request_scope
from workout_map.services.request_workflow import submit_change
from tests.conftest import principal_for

_payloads = TypeAdapter(UpdateRequestPayload)


def apply(db, **data):
    """Resolve and apply a payload, then commit; returns the generated ids."""
    payload = _payloads.validate_python(data)
    generated = apply_mutation(db, payload, resolve_request_scope(db, payload))
    db.commit()
    db.expire_all()
    return generated


CREATE_CHAIN = dict(
    request_type="create_ao_and_location_and_event",
    ao_name="The Quarry", ao_website="https://quarry.example.com",
    event_name="Quarry Crush", event_day_of_week="thursday",
    event_start_time="0515", event_end_time="0600",
    location_name="Quarry Lot", location_lat=35.3, location_lng=-80.3, location_city="Charlotte",
)


def test_every_request_type_has_a_handler():
    assert set(HANDLERS) == set(RequestType)


class TestCreateHandlers:
    def test_create_chain_links_fresh_ids(self, db, tree):
        generated = apply(db, original_region_id=tree["r1"], event_type_ids=[tree["run"]], **CREATE_CHAIN)

        location = db.get(Location, generated["new_location_id"])
        ao = db.get(Org, generated["new_ao_id"])
        workout = db.get(Event, generated["new_event_id"])

        assert location.org_id == tree["r1"]
        assert location.address_city == "Charlotte"
        assert ao.org_type == OrgType.ao
        assert ao.parent_id == tree["r1"]
        assert ao.default_location_id == location.id
        assert ao.website == "https://quarry.example.com"
        assert workout.org_id == ao.id
        assert workout.location_id == location.id
        assert workout.recurrence_pattern == "weekly"
        assert [t.id for t in workout.event_types] == [tree["run"]]

    def test_create_chain_with_same_names_twice(self, db, tree):
        """Each submission links its own rows even when names collide."""
        first = apply(db, original_region_id=tree["r1"], **CREATE_CHAIN)
        second = apply(db, original_region_id=tree["r1"], **CREATE_CHAIN)
        assert first["new_ao_id"] != second["new_ao_id"]
        assert db.get(Org, second["new_ao_id"]).default_location_id == second["new_location_id"]
        assert db.get(Event, second["new_event_id"]).org_id == second["new_ao_id"]

    def test_create_event(self, db, tree):
        generated = apply(
            db, request_type="create_event", original_ao_id=tree["a2"], original_location_id=tree["l2"],
            event_name="Pit Stop", event_day_of_week="saturday", event_start_time="0700",
        )
        workout = db.get(Event, generated["new_event_id"])
        assert (workout.org_id, workout.location_id, workout.name) == (tree["a2"], tree["l2"], "Pit Stop")

    def test_unknown_event_type_aborts(self, db, tree):
        with pytest.raises(NotFoundError):
            apply(
                db, request_type="create_event", original_ao_id=tree["a2"], original_location_id=tree["l2"],
                event_name="Pit Stop", event_day_of_week="saturday", event_start_time="0700",
                event_type_ids=[999_999],
            )


class TestEditHandlers:
    def test_edit_event_is_partial(self, db, tree):
        apply(db, request_type="edit_event", original_event_id=tree["e1"], event_start_time="0545")
        workout = db.get(Event, tree["e1"])
        assert workout.start_time == "0545"
        assert workout.name == "Yard Bootcamp"
        assert [t.id for t in workout.event_types] == [tree["bootcamp"]]

    def test_edit_event_replaces_types(self, db, tree):
        apply(db, request_type="edit_event", original_event_id=tree["e1"], event_type_ids=[tree["run"]])
        assert [t.id for t in db.get(Event, tree["e1"]).event_types] == [tree["run"]]

    def test_edit_ao_and_location(self, db, tree):
        apply(
            db, request_type="edit_ao_and_location", original_ao_id=tree["a1"], original_location_id=tree["l1"],
            ao_name="The Big Yard", location_address="1 Main St",
        )
        ao = db.get(Org, tree["a1"])
        location = db.get(Location, tree["l1"])
        assert ao.name == "The Big Yard"
        assert ao.version == 2
        assert location.address_street == "1 Main St"
        assert location.name == "Central Park"


class TestMoveHandlers:
    def test_move_ao_to_different_region(self, db, tree):
        apply(db, request_type="move_ao_to_different_region", original_ao_id=tree["a1"], new_region_id=tree["r2"])
        ao = db.get(Org, tree["a1"])
        assert ao.parent_id == tree["r2"]
        assert ao.version == 2

    def test_move_ao_to_different_location(self, db, tree):
        apply(
            db, request_type="move_ao_to_different_location",
            original_ao_id=tree["a1"], new_location_id=tree["l2"],
        )
        assert {e.location_id for e in db.query(Event).filter(Event.org_id == tree["a1"])} == {tree["l2"]}
        assert db.get(Event, tree["e3"]).location_id == tree["l3"]

    def test_move_ao_to_new_location(self, db, tree):
        generated = apply(
            db, request_type="move_ao_to_new_location", original_ao_id=tree["a1"],
            location_name="Rec Center", location_lat=35.4, location_lng=-80.4,
        )
        new_location = db.get(Location, generated["new_location_id"])
        assert new_location.org_id == tree["r1"]
        locations = {e.location_id for e in db.query(Event).filter(Event.org_id == tree["a1"])}
        assert locations == {new_location.id}

    def test_move_event_to_different_ao_keeps_location(self, db, tree):
        apply(db, request_type="move_event_to_different_ao", original_event_id=tree["e2"], new_ao_id=tree["a2"])
        workout = db.get(Event, tree["e2"])
        assert (workout.org_id, workout.location_id) == (tree["a2"], tree["l1"])

    def test_move_event_to_different_ao_and_location(self, db, tree):
        apply(
            db, request_type="move_event_to_different_ao", original_event_id=tree["e2"],
            new_ao_id=tree["b1"], new_location_id=tree["l3"],
        )
        workout = db.get(Event, tree["e2"])
        assert (workout.org_id, workout.location_id) == (tree["b1"], tree["l3"])

    def test_move_event_to_new_ao_with_new_location(self, db, tree):
        generated = apply(
            db, request_type="move_event_to_new_ao", original_event_id=tree["e2"],
            ao_name="Spin-off", location_lat=35.5, location_lng=-80.5,
        )
        ao = db.get(Org, generated["new_ao_id"])
        assert ao.parent_id == tree["r1"]
        assert ao.default_location_id == generated["new_location_id"]
        workout = db.get(Event, tree["e2"])
        assert (workout.org_id, workout.location_id) == (ao.id, generated["new_location_id"])

    def test_move_event_to_new_ao_at_existing_location(self, db, tree):
        generated = apply(
            db, request_type="move_event_to_new_ao", original_event_id=tree["e2"],
            ao_name="Spin-off", new_location_id=tree["l2"],
        )
        assert "new_location_id" not in generated
        workout = db.get(Event, tree["e2"])
        assert (workout.org_id, workout.location_id) == (generated["new_ao_id"], tree["l2"])

    def test_move_event_to_new_location(self, db, tree):
        generated = apply(
            db, request_type="move_event_to_new_location", original_event_id=tree["e1"],
            location_name="Track", location_lat=35.6, location_lng=-80.6,
        )
        assert db.get(Event, tree["e1"]).location_id == generated["new_location_id"]
        assert db.get(Event, tree["e2"]).location_id == tree["l1"]


class TestDeleteHandlers:
    def test_delete_event(self, db, tree):
        apply(db, request_type="delete_event", original_event_id=tree["e1"])
        assert db.get(Event, tree["e1"]).is_active is False
        assert db.get(Event, tree["e2"]).is_active is True

    def test_delete_ao_cascades_to_its_events_only(self, db, tree):
        apply(db, request_type="delete_ao", original_ao_id=tree["a1"])
        assert db.get(Org, tree["a1"]).is_active is False
        assert db.get(Event, tree["e1"]).is_active is False
        assert db.get(Event, tree["e2"]).is_active is False
        assert db.get(Event, tree["e3"]).is_active is True


class TestAtomicity:
    def test_failure_after_ao_insert_leaves_no_rows(self, db, tree, monkeypatch):
        def _boom(*args, **kwargs):
            raise RuntimeError("simulated failure after AO insert")

        monkeypatch.setattr(entities, "insert_event", _boom)
        counts = (db.query(Location).count(), db.query(Org).count(), db.query(Event).count())

        with pytest.raises(RuntimeError):
            submit_change(
                db, _payloads.validate_python({**CREATE_CHAIN, "original_region_id": tree["r1"]}),
                principal_for(db, tree["nation_admin"]),
            )

        assert (db.query(Location).count(), db.query(Org).count(), db.query(Event).count()) == counts
        assert db.query(UpdateRequest).count() == 0

    def test_version_mismatch_is_a_conflict(self, db, tree):
        payload = _payloads.validate_python(
            {"request_type": "move_ao_to_different_region", "original_ao_id": tree["a1"], "new_region_id": tree["r2"]}
        )
        scope = resolve_request_scope(db, payload)
        db.query(Org).filter(Org.id == tree["a1"]).update({Org.version: Org.version + 1})
        db.commit()

        with pytest.raises(ConflictError):
            apply_mutation(db, payload, scope)
        db.rollback()
        assert db.get(Org, tree["a1"]).parent_id == tree["r1"]
