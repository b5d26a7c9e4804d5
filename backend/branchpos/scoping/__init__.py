# Overview: Branch isolation package.
# Re-exports the public API used by services, routes and tests.

from .actor import Actor, ActorRole
from .scopes import (
    BypassScope,
    EffectiveScope,
    ExactTenant,
    Forbidden,
    TenantSet,
    Unrestricted,
    describe_scope,
)
from .catalog import (
    DEFAULT_CATALOG,
    CatalogEntry,
    OperationKind,
    ResourceCatalog,
    ResourceDescriptor,
    verify_catalog,
)
from .predicates import contains_scoping_field
from .resolver import resolve_scope
from .interceptor import intercept
from .escape_hatch import fetch_in_scope, is_in_scope, require_in_scope

__all__ = [
    "Actor",
    "ActorRole",
    "BypassScope",
    "EffectiveScope",
    "ExactTenant",
    "Forbidden",
    "TenantSet",
    "Unrestricted",
    "describe_scope",
    "DEFAULT_CATALOG",
    "CatalogEntry",
    "OperationKind",
    "ResourceCatalog",
    "ResourceDescriptor",
    "verify_catalog",
    "contains_scoping_field",
    "resolve_scope",
    "intercept",
    "fetch_in_scope",
    "is_in_scope",
    "require_in_scope",
]
