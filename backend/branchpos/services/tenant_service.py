"""
Branch isolation at the call site.

WHY: Every service touches catalog resources through one TenantGuard, built
from the Scope Resolver's output. The guard is the only path to storage for
those resources:

- find_many / find_first / count / total / update_many / delete_many run
  through the interceptor, which passes, rewrites or rejects the filter;
- get_unique / update_unique / delete_record use the unique-key escape hatch
  (fetch by key, authorize, NotFound when out of scope);
- create refuses rows whose branch lies outside the scope.

USAGE:
    guard = TenantGuard.for_actor(actor, requested_branch_id, bypass)
    guard.require_access()
    sales = guard.find_many(MachineSale, {"status": "ONGOING"})
    sale = guard.get_unique(MachineSale, id=sale_id)
"""

from __future__ import annotations

from flask import current_app, has_app_context
from sqlalchemy import and_, func, inspect

from ..errors import AuthorizationError
from ..extensions import db
from ..scoping import (
    DEFAULT_CATALOG,
    Forbidden,
    OperationKind,
    describe_scope,
    fetch_in_scope,
    intercept,
    is_in_scope,
    require_in_scope,
    resolve_scope,
)
from ..scoping.catalog import resource_type_of


def log_cross_tenant_attempt(actor, resource_type: str, record_id=None, scope=None, reason: str | None = None) -> None:
    """
    Record a denied cross-branch access on the app logger.

    The caller receives NotFound; this entry is the only trace that the row
    exists elsewhere.
    """
    if not has_app_context():
        return
    current_app.logger.warning(
        "CROSS_TENANT_ACCESS_DENIED actor=%s resource=%s id=%s scope=%s reason=%s",
        getattr(actor, "id", None),
        resource_type,
        record_id,
        describe_scope(scope) if scope is not None else None,
        reason or "record outside effective scope",
    )


def _primary_key_clause(model, record):
    mapper = inspect(model)
    values = mapper.primary_key_from_instance(record)
    return and_(*(column == value for column, value in zip(mapper.primary_key, values)))


class TenantGuard:
    """Scoped access to catalog resources for one request."""

    def __init__(self, scope, catalog=DEFAULT_CATALOG, actor=None, session=None):
        self.scope = scope
        self.catalog = catalog
        self.actor = actor
        self._session = session

    @classmethod
    def for_actor(
        cls,
        actor,
        requested_tenant_id=None,
        bypass=None,
        *,
        resolver=resolve_scope,
        catalog=DEFAULT_CATALOG,
        session=None,
    ) -> "TenantGuard":
        scope = resolver(actor, requested_tenant_id, bypass)
        return cls(scope, catalog=catalog, actor=actor, session=session)

    @property
    def session(self):
        return self._session if self._session is not None else db.session

    @property
    def is_forbidden(self) -> bool:
        return isinstance(self.scope, Forbidden)

    def require_access(self) -> None:
        if self.is_forbidden:
            raise AuthorizationError(
                getattr(self.scope, "reason", None) or "No branch access",
                details={"scope": describe_scope(self.scope)},
            )

    def allows(self, branch_id) -> bool:
        return self.scope.allows(branch_id)

    def _where(self, kind, model, criteria):
        return intercept(kind, model, criteria, self.scope, catalog=self.catalog)

    def _denied(self, record):
        log_cross_tenant_attempt(
            self.actor,
            resource_type_of(record),
            getattr(record, "id", None),
            self.scope,
        )

    # --- interceptor-backed operations -------------------------------------

    def query(self, model, criteria, kind=OperationKind.READ_MANY):
        return self.session.query(model).filter(self._where(kind, model, criteria))

    def find_many(self, model, criteria, *, order_by=None, limit=None) -> list:
        query = self.query(model, criteria)
        if order_by is not None:
            if not isinstance(order_by, (list, tuple)):
                order_by = (order_by,)
            query = query.order_by(*order_by)
        if limit is not None:
            query = query.limit(limit)
        return query.all()

    def find_first(self, model, criteria, *, order_by=None):
        rows = self.find_many(model, criteria, order_by=order_by, limit=1)
        return rows[0] if rows else None

    def count(self, model, criteria) -> int:
        return self.query(model, criteria, OperationKind.AGGREGATE).count()

    def total(self, model, column: str, criteria) -> int:
        where = self._where(OperationKind.AGGREGATE, model, criteria)
        value = (
            self.session.query(func.coalesce(func.sum(getattr(model, column)), 0))
            .filter(where)
            .scalar()
        )
        return int(value or 0)

    def update_many(self, model, criteria, values: dict) -> int:
        where = self._where(OperationKind.WRITE_MANY, model, criteria)
        return self.session.query(model).filter(where).update(values, synchronize_session=False)

    def delete_many(self, model, criteria) -> int:
        where = self._where(OperationKind.WRITE_MANY, model, criteria)
        return self.session.query(model).filter(where).delete(synchronize_session=False)

    # --- unique-key escape hatch ---------------------------------------------

    def get_unique(self, model, **unique_key):
        return fetch_in_scope(
            self.session,
            model,
            self.scope,
            catalog=self.catalog,
            on_denied=self._denied,
            **unique_key,
        )

    def update_unique(self, model, key: dict, values: dict, *, where=None) -> int:
        """
        Update one row addressed by a unique key.

        The row is fetched and authorized first. where adds a guard condition
        (e.g. "is_paid = false"); the return value is the number of rows the
        UPDATE touched, so 0 means the guard condition no longer held.
        """
        record = self.get_unique(model, **key)
        clause = _primary_key_clause(model, record)
        if where is not None:
            clause = and_(clause, where)
        clause = self._where(OperationKind.WRITE_ONE_UNIQUE, model, clause)
        return self.session.query(model).filter(clause).update(values, synchronize_session=False)

    def delete_record(self, record) -> int:
        if not is_in_scope(record, self.scope, self.catalog):
            self._denied(record)
        require_in_scope(record, self.scope, catalog=self.catalog)
        model = type(record)
        clause = self._where(OperationKind.WRITE_ONE_UNIQUE, model, _primary_key_clause(model, record))
        deleted = self.session.query(model).filter(clause).delete(synchronize_session=False)
        if record in self.session:
            self.session.expunge(record)
        return deleted

    # --- inserts ---------------------------------------------------------------

    def create(self, record):
        """Add record after checking its branch lies inside the scope."""
        if not is_in_scope(record, self.scope, self.catalog):
            raise AuthorizationError(
                f"Not allowed to create {resource_type_of(record)} in this branch",
                details={"scope": describe_scope(self.scope)},
            )
        self.session.add(record)
        self.session.flush()
        return record
