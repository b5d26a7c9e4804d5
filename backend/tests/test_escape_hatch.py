# Overview: Pytest coverage for unique-key fetch-then-authorize.

import pytest

from branchpos.errors import NotFoundError
from branchpos.models import Customer
from branchpos.scoping import (
    ExactTenant,
    Forbidden,
    TenantSet,
    Unrestricted,
    fetch_in_scope,
    is_in_scope,
    require_in_scope,
)


class TestIsInScope:
    def test_exact_and_set(self, customer_a, branch_a, branch_b):
        assert is_in_scope(customer_a, ExactTenant(branch_a.id))
        assert not is_in_scope(customer_a, ExactTenant(branch_b.id))
        assert is_in_scope(customer_a, TenantSet(frozenset({branch_a.id, branch_b.id})))

    def test_unrestricted_and_forbidden(self, customer_a):
        assert is_in_scope(customer_a, Unrestricted())
        assert not is_in_scope(customer_a, Forbidden())

    def test_missing_record(self):
        assert not is_in_scope(None, Unrestricted())

    def test_require_in_scope_raises_not_found(self, customer_a, branch_b):
        with pytest.raises(NotFoundError) as exc:
            require_in_scope(customer_a, ExactTenant(branch_b.id))
        assert exc.value.resource == "Customer"


class TestFetchInScope:
    def test_in_scope(self, db_session, customer_a, branch_a):
        record = fetch_in_scope(db_session, Customer, ExactTenant(branch_a.id), id=customer_a.id)
        assert record.id == customer_a.id

    def test_out_of_scope_and_absent_look_the_same(self, db_session, customer_b, branch_a):
        denied = []
        scope = ExactTenant(branch_a.id)

        with pytest.raises(NotFoundError) as foreign:
            fetch_in_scope(db_session, Customer, scope, on_denied=denied.append, id=customer_b.id)
        with pytest.raises(NotFoundError) as missing:
            fetch_in_scope(db_session, Customer, scope, on_denied=denied.append, id=999999)

        assert str(foreign.value) == str(missing.value)
        assert [r.id for r in denied] == [customer_b.id]

    def test_fetch_by_other_unique_key(self, db_session, customer_a, branch_a):
        record = fetch_in_scope(db_session, Customer, ExactTenant(branch_a.id), code="C-A-001")
        assert record.id == customer_a.id
