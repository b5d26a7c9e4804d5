"""
Scope Resolver: actor + requested branch -> EffectiveScope.

Pure function of its inputs. Services accept a resolver argument so tests can
inject a fake one without touching the database.
"""

from __future__ import annotations

from ..errors import AuthorizationError
from .actor import Actor
from .scopes import BypassScope, EffectiveScope, ExactTenant, Forbidden, TenantSet, Unrestricted


def resolve_scope(
    actor: Actor,
    requested_tenant_id: int | None = None,
    bypass: BypassScope | None = None,
) -> EffectiveScope:
    """
    Compute the branches this request may touch.

    1. An explicit requested branch wins: allowed for global actors and for
       members of the authorized set, Forbidden otherwise.
    2. A global actor with no home branch, or a global actor presenting a
       bypass token, is Unrestricted.
    3. Otherwise the authorized set (a singleton collapses to ExactTenant).
    4. Nothing authorized: Forbidden.
    """
    if actor is None:
        return Forbidden("No actor")

    if bypass is not None:
        if bypass.actor_id != actor.id or not actor.is_global:
            raise AuthorizationError("Bypass token does not belong to this actor")

    if requested_tenant_id is not None:
        if actor.is_global or requested_tenant_id in actor.authorized_tenant_ids:
            return ExactTenant(requested_tenant_id)
        return Forbidden("Requested branch is outside the actor's authorized branches")

    if actor.is_global and (actor.home_tenant_id is None or bypass is not None):
        return Unrestricted()

    ids = actor.authorized_tenant_ids
    if len(ids) == 1:
        return ExactTenant(next(iter(ids)))
    if ids:
        return TenantSet(frozenset(ids))

    return Forbidden("Actor has no authorized branches")
