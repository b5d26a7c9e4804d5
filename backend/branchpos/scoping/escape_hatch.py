"""
Escape hatch for unique-key operations.

The interceptor does not rewrite unique-key reads and writes. Every such call
site follows one pattern instead: fetch by the unique key without a branch
predicate, then authorize the row in code, and report an out-of-scope row
exactly like a missing one. fetch_in_scope() is that pattern as a function;
the static scan in scoping.audit flags call sites that skip it.
"""

from __future__ import annotations

from ..errors import NotFoundError
from .catalog import DEFAULT_CATALOG, ResourceCatalog
from .scopes import Forbidden, Unrestricted


def is_in_scope(record, scope, catalog: ResourceCatalog = DEFAULT_CATALOG) -> bool:
    """True when any of the record's scoping columns falls inside scope."""
    if record is None or isinstance(scope, Forbidden):
        return False
    entry = catalog.entry(record)
    if isinstance(scope, Unrestricted):
        return True
    return any(scope.allows(getattr(record, field, None)) for field in entry.scoping_fields)


def require_in_scope(record, scope, resource: str | None = None, catalog: ResourceCatalog = DEFAULT_CATALOG):
    """Return record when visible in scope; NotFoundError otherwise."""
    if not is_in_scope(record, scope, catalog):
        if resource is None:
            resource = type(record).__name__ if record is not None else "Resource"
        raise NotFoundError(resource)
    return record


def fetch_in_scope(session, model, scope, *, catalog: ResourceCatalog = DEFAULT_CATALOG, on_denied=None, **unique_key):
    """
    Fetch model by unique key, then authorize.

    Absent rows and rows outside scope both raise NotFoundError. on_denied,
    when given, is called with the out-of-scope row before raising so the
    caller can record the attempt.
    """
    catalog.entry(model)
    record = session.query(model).filter_by(**unique_key).one_or_none()
    if record is None:
        raise NotFoundError(model.__name__)
    if not is_in_scope(record, scope, catalog):
        if on_denied is not None:
            on_denied(record)
        raise NotFoundError(model.__name__)
    return record
