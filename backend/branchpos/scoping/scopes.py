"""
Effective scopes and the explicit bypass token.

An EffectiveScope is the answer to "which branches may this request touch":
exactly one, a set, all of them, or none. Forbidden is a real value, not the
absence of a filter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from ..errors import AuthorizationError


@dataclass(frozen=True)
class ExactTenant:
    tenant_id: int

    def allows(self, tenant_id) -> bool:
        return tenant_id is not None and tenant_id == self.tenant_id


@dataclass(frozen=True)
class TenantSet:
    tenant_ids: frozenset

    def allows(self, tenant_id) -> bool:
        return tenant_id is not None and tenant_id in self.tenant_ids


@dataclass(frozen=True)
class Unrestricted:
    def allows(self, tenant_id) -> bool:
        return True


@dataclass(frozen=True)
class Forbidden:
    reason: str = "No branch access"

    def allows(self, tenant_id) -> bool:
        return False


EffectiveScope = Union[ExactTenant, TenantSet, Unrestricted, Forbidden]


@dataclass(frozen=True)
class BypassScope:
    """
    Explicit permission for a GLOBAL actor to run a request across all
    branches, even when the actor has a home branch.

    Travels next to the requested branch id, never inside a filter. Build it
    with BypassScope.for_actor so the role check cannot be skipped.
    """
    actor_id: str
    reason: str

    @classmethod
    def for_actor(cls, actor, reason: str) -> "BypassScope":
        if not actor.is_global:
            raise AuthorizationError("Cross-branch access requires a global role")
        if not reason or not reason.strip():
            raise AuthorizationError("Cross-branch access requires a reason")
        return cls(actor_id=actor.id, reason=reason.strip())


def describe_scope(scope: EffectiveScope) -> dict:
    """JSON-friendly description, used in logs and error details."""
    if isinstance(scope, ExactTenant):
        return {"kind": "exact", "branch_ids": [scope.tenant_id]}
    if isinstance(scope, TenantSet):
        return {"kind": "set", "branch_ids": sorted(scope.tenant_ids)}
    if isinstance(scope, Unrestricted):
        return {"kind": "unrestricted"}
    return {"kind": "forbidden"}
