"""Tests for the ancestor walk and descendant expansion over the org tree."""
from sqlalchemy import event as sa_event

from workout_map.models.org import Org, OrgType
from workout_map.models.user import RoleName
from workout_map.schemas.principal import Principal, RoleGrant
from workout_map.services.authorizer import (
    MAX_ORG_DEPTH,
    can_edit_org,
    expand_to_descendants,
    get_ancestor_org_ids,
    get_editable_org_ids,
    has_role_on_org_or_ancestor,
    role_satisfies,
)
from tests.conftest import principal_for


def _grant(org_id, role=RoleName.editor):
    return Principal(user_id=1, email="p@example.com", roles=[RoleGrant(org_id=org_id, role_name=role)])


class TestRoleRank:
    def test_admin_implies_editor(self):
        assert role_satisfies(RoleName.admin, RoleName.editor)
        assert role_satisfies(RoleName.admin, RoleName.admin)
        assert role_satisfies(RoleName.editor, RoleName.editor)

    def test_editor_does_not_imply_admin(self):
        assert not role_satisfies(RoleName.editor, RoleName.admin)


class TestAncestorWalk:
    def test_chain_from_ao_to_nation(self, db, tree):
        chain = get_ancestor_org_ids(db, tree["a1"])
        assert chain == [tree["a1"], tree["r1"], tree["area"], tree["sector"], tree["nation"]]
        assert len(chain) == MAX_ORG_DEPTH + 1

    def test_root_has_only_itself(self, db, tree):
        assert get_ancestor_org_ids(db, tree["nation"]) == [tree["nation"]]

    def test_missing_org_is_empty(self, db, tree):
        assert get_ancestor_org_ids(db, 999_999) == []

    def test_walk_is_a_single_query(self, db, tree, db_engine):
        statements = []

        def _count(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        sa_event.listen(db_engine, "before_cursor_execute", _count)
        try:
            get_ancestor_org_ids(db, tree["a1"])
        finally:
            sa_event.remove(db_engine, "before_cursor_execute", _count)
        assert len(statements) == 1

    def test_walk_is_capped_at_max_depth(self, db, tree):
        """Two levels below an AO, the walk stops short of the nation."""
        parent_id = tree["a1"]
        for depth in range(2):
            child = Org(org_type=OrgType.ao, name=f"Deep {depth}", parent_id=parent_id)
            db.add(child)
            db.flush()
            parent_id = child.id
        db.commit()

        chain = get_ancestor_org_ids(db, parent_id)
        assert len(chain) == MAX_ORG_DEPTH + 1
        assert tree["nation"] not in chain


class TestHasRoleOnOrgOrAncestor:
    def test_role_on_region_authorizes_its_aos(self, db, tree):
        principal = _grant(tree["r1"])
        assert has_role_on_org_or_ancestor(db, principal, tree["r1"])
        assert has_role_on_org_or_ancestor(db, principal, tree["a1"])
        assert has_role_on_org_or_ancestor(db, principal, tree["a2"])

    def test_role_does_not_leak_sideways_or_up(self, db, tree):
        principal = _grant(tree["r1"])
        assert not has_role_on_org_or_ancestor(db, principal, tree["r2"])
        assert not has_role_on_org_or_ancestor(db, principal, tree["b1"])
        assert not has_role_on_org_or_ancestor(db, principal, tree["area"])

    def test_nation_admin_authorizes_everything(self, db, tree):
        principal = principal_for(db, tree["nation_admin"])
        for key in ("nation", "sector", "area", "r1", "r2", "a1", "a2", "b1"):
            assert has_role_on_org_or_ancestor(db, principal, tree[key], RoleName.editor), key
            assert has_role_on_org_or_ancestor(db, principal, tree[key], RoleName.admin), key

    def test_editor_grant_fails_admin_requirement(self, db, tree):
        principal = _grant(tree["r1"])
        assert not has_role_on_org_or_ancestor(db, principal, tree["a1"], RoleName.admin)

    def test_missing_org_authorizes_nothing(self, db, tree):
        principal = principal_for(db, tree["nation_admin"])
        assert has_role_on_org_or_ancestor(db, principal, 999_999) is False

    def test_principal_without_roles(self, db, tree):
        principal = principal_for(db, tree["nobody"])
        assert not has_role_on_org_or_ancestor(db, principal, tree["a1"])

    def test_granting_a_role_authorizes_every_descendant(self, db, tree):
        principal = _grant(tree["area"])
        for org_id in expand_to_descendants(db, {tree["area"]}):
            assert can_edit_org(db, principal, org_id)


class TestExpandToDescendants:
    def test_region_subtree(self, db, tree):
        assert expand_to_descendants(db, {tree["r1"]}) == {tree["r1"], tree["a1"], tree["a2"]}

    def test_leaf_includes_itself(self, db, tree):
        assert expand_to_descendants(db, {tree["b1"]}) == {tree["b1"]}

    def test_nation_covers_whole_tree(self, db, tree):
        every_org = {org_id for (org_id,) in db.query(Org.id).all()}
        assert expand_to_descendants(db, {tree["nation"]}) == every_org

    def test_union_of_several_roots(self, db, tree):
        result = expand_to_descendants(db, [tree["a1"], tree["r2"]])
        assert result == {tree["a1"], tree["r2"], tree["b1"]}

    def test_empty_and_unknown_input(self, db, tree):
        assert expand_to_descendants(db, set()) == set()
        assert expand_to_descendants(db, {999_999}) == set()


class TestEditableOrgs:
    def test_region_editor(self, db, tree):
        org_ids, is_nation_admin = get_editable_org_ids(db, principal_for(db, tree["r1_editor"]))
        assert org_ids == {tree["r1"], tree["a1"], tree["a2"]}
        assert is_nation_admin is False

    def test_nation_admin_flag(self, db, tree):
        org_ids, is_nation_admin = get_editable_org_ids(db, principal_for(db, tree["nation_admin"]))
        assert is_nation_admin is True
        assert tree["b1"] in org_ids

    def test_no_roles(self, db, tree):
        assert get_editable_org_ids(db, principal_for(db, tree["nobody"])) == (set(), False)
