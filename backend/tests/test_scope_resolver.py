# Overview: Pytest coverage for actors, scopes and the scope resolver.

import pytest

from branchpos.errors import AuthorizationError, ValidationError
from branchpos.scoping import (
    Actor,
    ActorRole,
    BypassScope,
    ExactTenant,
    Forbidden,
    TenantSet,
    Unrestricted,
    describe_scope,
    resolve_scope,
)


class TestActor:
    def test_single_branch_becomes_home(self):
        actor = Actor.tenant_bound("u1", [3])
        assert actor.home_tenant_id == 3
        assert actor.role is ActorRole.TENANT_BOUND

    def test_home_outside_authorized_set_rejected(self):
        with pytest.raises(ValidationError):
            Actor(id="u1", role="TENANT_BOUND", home_tenant_id=9, authorized_tenant_ids={1, 2})

    def test_unknown_role_rejected(self):
        with pytest.raises(ValidationError):
            Actor(id="u1", role="SUPERUSER")

    def test_global_actor_home_is_authorized(self):
        actor = Actor.global_actor("g1", home_tenant_id=4)
        assert actor.is_global
        assert 4 in actor.authorized_tenant_ids


class TestResolveScope:
    def test_requested_branch_inside_set(self):
        actor = Actor.tenant_bound("u1", [1, 2])
        assert resolve_scope(actor, 2) == ExactTenant(2)

    def test_requested_branch_outside_set_is_forbidden(self):
        actor = Actor.tenant_bound("u1", [1, 2])
        assert isinstance(resolve_scope(actor, 3), Forbidden)

    def test_global_actor_may_request_any_branch(self):
        actor = Actor.global_actor("g1")
        assert resolve_scope(actor, 42) == ExactTenant(42)

    def test_global_actor_without_home_is_unrestricted(self):
        assert resolve_scope(Actor.global_actor("g1")) == Unrestricted()

    def test_global_actor_with_home_defaults_to_home(self):
        actor = Actor.global_actor("g1", home_tenant_id=5)
        assert resolve_scope(actor) == ExactTenant(5)

    def test_singleton_set_collapses_to_exact(self):
        assert resolve_scope(Actor.tenant_bound("u1", [7])) == ExactTenant(7)

    def test_multi_branch_actor_gets_set(self):
        actor = Actor.tenant_bound("mgr", [1, 2, 3], home_tenant_id=1)
        assert resolve_scope(actor) == TenantSet(frozenset({1, 2, 3}))

    def test_no_branches_is_forbidden(self):
        assert isinstance(resolve_scope(Actor.tenant_bound("u1", [])), Forbidden)

    def test_missing_actor_is_forbidden(self):
        assert isinstance(resolve_scope(None), Forbidden)

    def test_tenant_bound_actor_is_never_unrestricted(self):
        actor = Actor.tenant_bound("mgr", [1, 2])
        assert not isinstance(resolve_scope(actor), Unrestricted)


class TestBypassScope:
    def test_bypass_widens_global_actor_with_home(self):
        actor = Actor.global_actor("g1", home_tenant_id=5)
        bypass = BypassScope.for_actor(actor, "month-end reconciliation")
        assert resolve_scope(actor, bypass=bypass) == Unrestricted()

    def test_explicit_request_wins_over_bypass(self):
        actor = Actor.global_actor("g1", home_tenant_id=5)
        bypass = BypassScope.for_actor(actor, "audit")
        assert resolve_scope(actor, 8, bypass) == ExactTenant(8)

    def test_bypass_requires_global_role(self):
        with pytest.raises(AuthorizationError):
            BypassScope.for_actor(Actor.tenant_bound("u1", [1]), "please")

    def test_bypass_requires_reason(self):
        with pytest.raises(AuthorizationError):
            BypassScope.for_actor(Actor.global_actor("g1"), "  ")

    def test_bypass_of_another_actor_rejected(self):
        bypass = BypassScope.for_actor(Actor.global_actor("g1"), "audit")
        with pytest.raises(AuthorizationError):
            resolve_scope(Actor.global_actor("g2", home_tenant_id=1), bypass=bypass)

    def test_forged_bypass_for_tenant_bound_actor_rejected(self):
        actor = Actor.tenant_bound("u1", [1])
        with pytest.raises(AuthorizationError):
            resolve_scope(actor, bypass=BypassScope(actor_id="u1", reason="forged"))


def test_describe_scope():
    assert describe_scope(TenantSet(frozenset({3, 1}))) == {"kind": "set", "branch_ids": [1, 3]}
    assert describe_scope(Forbidden()) == {"kind": "forbidden"}
