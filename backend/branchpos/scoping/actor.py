"""
Actor: who is asking.

The authentication collaborator builds Actors; this package never derives one
from a request. Roles are coarse: a GLOBAL actor may see every
branch, a TENANT_BOUND actor sees only its authorized branches. Elevated
branch roles (center managers, supervisors) are TENANT_BOUND actors with
several authorized branches, never GLOBAL.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field

from ..errors import ValidationError


class ActorRole(str, enum.Enum):
    TENANT_BOUND = "TENANT_BOUND"
    GLOBAL = "GLOBAL"


@dataclass(frozen=True)
class Actor:
    id: str
    role: ActorRole
    home_tenant_id: int | None = None
    authorized_tenant_ids: frozenset[int] = field(default_factory=frozenset)
    display_name: str | None = None

    def __post_init__(self):
        if not isinstance(self.role, ActorRole):
            try:
                object.__setattr__(self, "role", ActorRole(self.role))
            except ValueError:
                raise ValidationError(f"Unknown actor role: {self.role}")
        object.__setattr__(self, "authorized_tenant_ids", frozenset(self.authorized_tenant_ids))

        if (
            self.role is ActorRole.TENANT_BOUND
            and self.home_tenant_id is not None
            and self.home_tenant_id not in self.authorized_tenant_ids
        ):
            raise ValidationError(
                "Home branch must be one of the actor's authorized branches",
                details={"actor_id": self.id, "home_tenant_id": self.home_tenant_id},
            )

    @property
    def is_global(self) -> bool:
        return self.role is ActorRole.GLOBAL

    @property
    def label(self) -> str:
        return self.display_name or self.id

    @classmethod
    def tenant_bound(cls, actor_id, tenant_ids, home_tenant_id=None, display_name=None) -> "Actor":
        ids = frozenset(tenant_ids)
        if home_tenant_id is None and len(ids) == 1:
            home_tenant_id = next(iter(ids))
        return cls(
            id=str(actor_id),
            role=ActorRole.TENANT_BOUND,
            home_tenant_id=home_tenant_id,
            authorized_tenant_ids=ids,
            display_name=display_name,
        )

    @classmethod
    def global_actor(cls, actor_id, home_tenant_id=None, tenant_ids=(), display_name=None) -> "Actor":
        ids = frozenset(tenant_ids)
        if home_tenant_id is not None:
            ids = ids | {home_tenant_id}
        return cls(
            id=str(actor_id),
            role=ActorRole.GLOBAL,
            home_tenant_id=home_tenant_id,
            authorized_tenant_ids=ids,
            display_name=display_name,
        )
