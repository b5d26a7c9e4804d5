"""
Enforcement Interceptor: the choke point between a call site and storage.

Given the operation kind, the mapped class, the caller's filter and the
effective scope, intercept() returns the filter to execute, or raises.

- Unique-key operations are never rewritten. AND-ing a branch predicate onto
  a unique-key filter can retarget a write under composite uniqueness or turn
  "forbidden" into a false "not found"; those paths go through the escape
  hatch (escape_hatch.fetch_in_scope) instead.
- Every other operation must carry a filter. A Forbidden scope matches
  nothing on reads and raises on writes, whatever the filter names. Otherwise
  a filter that already names a scoping column passes through unchanged and
  any other filter gets the scope injected.
"""

from __future__ import annotations

from collections.abc import Mapping

from sqlalchemy import and_, false, true

from ..errors import AuthorizationError, MissingFilterError
from .catalog import DEFAULT_CATALOG, OperationKind, ResourceCatalog
from .predicates import contains_scoping_field
from .scopes import ExactTenant, Forbidden, TenantSet, Unrestricted


def as_clause(model, criteria):
    """Normalize a filter_by-style mapping into a SQLAlchemy clause."""
    if isinstance(criteria, Mapping):
        if not criteria:
            return true()
        return and_(*(getattr(model, key) == value for key, value in criteria.items()))
    return criteria


def scope_predicate(model, entry, scope):
    """The clause that restricts model rows to scope, or None for Unrestricted."""
    column = getattr(model, entry.primary_field)
    if isinstance(scope, ExactTenant):
        return column == scope.tenant_id
    if isinstance(scope, TenantSet):
        return column.in_(sorted(scope.tenant_ids))
    if isinstance(scope, Unrestricted):
        return None
    return false()


def intercept(
    kind: OperationKind,
    model,
    criteria,
    scope,
    *,
    catalog: ResourceCatalog = DEFAULT_CATALOG,
):
    """
    Return the filter to run for (kind, model) under scope.

    Raises ConfigurationError for models missing from the catalog,
    MissingFilterError when a non-unique call has no filter, and
    AuthorizationError for writes under a Forbidden scope.
    """
    kind = OperationKind(kind)
    entry = catalog.entry(model)

    if kind.is_unique:
        return as_clause(model, criteria)

    if criteria is None:
        raise MissingFilterError(
            f"Branch filter required: missing filter for {entry.resource_type}.{kind.value}",
            details={"resource_type": entry.resource_type, "operation": kind.value},
        )

    if isinstance(scope, Forbidden):
        if kind.is_write:
            raise AuthorizationError(
                f"Not allowed to modify {entry.resource_type} records",
                details={"resource_type": entry.resource_type},
            )
        return false()

    if contains_scoping_field(entry, criteria):
        return as_clause(model, criteria)

    clause = as_clause(model, criteria)
    restriction = scope_predicate(model, entry, scope)
    if restriction is None:
        return clause
    return and_(restriction, clause)
