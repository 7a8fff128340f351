import pytest
from pydantic import ValidationError

from rbacsync.contracts.role import Role, RoleUpdate, TeamMember, multiset_equal
from tests.fakes.roles import make_role


def test_role_accepts_none_collections_as_empty() -> None:
    role = Role.model_validate({"name": "viewer", "resources": {"allowed": None, "denied": None}, "members": None})

    assert role.allowed == ()
    assert role.denied == ()
    assert role.members == ()


def test_role_without_resources_block() -> None:
    role = Role.model_validate({"name": "viewer", "resources": None})

    assert role.resources.allowed == ()


def test_role_name_is_stripped_and_required() -> None:
    assert Role(name="  admin ").name == "admin"

    with pytest.raises(ValidationError, match="role name is required"):
        Role(name="   ")


def test_equivalence_ignores_order_and_id() -> None:
    left = make_role("admin", allowed=["a", "b"], denied=["c"], members=["x@y.com", "z@y.com"], role_id="1")
    right = make_role("admin", allowed=["b", "a"], denied=["c"], members=["z@y.com", "x@y.com"], role_id="2")

    assert left.equivalent(right)
    assert right.equivalent(left)


def test_equivalence_counts_duplicates() -> None:
    left = make_role("admin", allowed=["a", "a"])
    right = make_role("admin", allowed=["a"])

    assert not left.equivalent(right)


def test_equivalence_detects_member_and_name_differences() -> None:
    assert not make_role("admin", members=["x@y.com"]).equivalent(make_role("admin"))
    assert not make_role("admin").equivalent(make_role("viewer"))


def test_multiset_equal_treats_none_as_empty() -> None:
    assert multiset_equal(None, [])
    assert multiset_equal([], None)
    assert not multiset_equal(None, ["a"])


def test_with_id_returns_copy() -> None:
    role = make_role("admin")

    tagged = role.with_id("policy-9")

    assert tagged.id == "policy-9"
    assert role.id is None
    assert tagged.equivalent(role)


def test_role_update_names_must_agree() -> None:
    with pytest.raises(ValidationError, match="role update names disagree"):
        RoleUpdate(name="admin", local=make_role("admin"), remote=make_role("viewer"))


def test_team_member_blank_fields_from_none() -> None:
    member = TeamMember.model_validate({"email": "a@x.com", "id": None, "policy_id": None})

    assert member.id == ""
    assert member.policy_id == ""
    assert member.is_pending_invite is False
