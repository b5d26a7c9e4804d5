# Overview: Pytest coverage for manual payments and receipt uniqueness.

import pytest

from branchpos.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from branchpos.models import SystemLog
from branchpos.services import payment_service


def pay(actor, customer, **overrides):
    data = {
        "customer_id": customer.id,
        "amount": "250.50",
        "payment_place": "Front desk",
        "receipt_number": "M-1",
    }
    data.update(overrides)
    return payment_service.create_manual_payment(actor, **data)


class TestManualPayments:
    def test_create(self, db_session, clerk_a, customer_a):
        payment = pay(clerk_a, customer_a, reason="Service fee")

        assert payment.amount_cents == 25050
        assert payment.type == "MANUAL"
        assert payment.branch_id == customer_a.branch_id
        assert payment.created_by == "Clerk A"
        assert db_session.query(SystemLog).filter_by(action="MANUAL_PAYMENT").count() == 1

    def test_duplicate_receipt(self, db_session, clerk_a, customer_a):
        pay(clerk_a, customer_a)
        with pytest.raises(ConflictError):
            pay(clerk_a, customer_a, receipt_number=" M-1 ")

    def test_amount_must_be_positive(self, db_session, clerk_a, customer_a):
        with pytest.raises(ValidationError):
            pay(clerk_a, customer_a, amount="0")
        with pytest.raises(ValidationError):
            pay(clerk_a, customer_a, amount="abc")

    def test_foreign_customer_not_found(self, db_session, clerk_a, customer_b):
        with pytest.raises(NotFoundError):
            pay(clerk_a, customer_b)


class TestListPayments:
    def test_scoped(self, db_session, clerk_a, clerk_b, admin, customer_a, customer_b):
        pay(clerk_a, customer_a)
        pay(clerk_b, customer_b)

        assert [p.customer_id for p in payment_service.list_payments(clerk_a)] == [customer_a.id]
        assert len(payment_service.list_payments(admin)) == 2

    def test_filter_by_type(self, db_session, clerk_a, customer_a):
        pay(clerk_a, customer_a)
        assert payment_service.list_payments(clerk_a, payment_type="SALE") == []


class TestPaymentsTotal:
    def test_sums_only_scope(self, db_session, clerk_a, clerk_b, admin, customer_a, customer_b):
        pay(clerk_a, customer_a)
        pay(clerk_a, customer_a, amount="49.50", receipt_number="M-2")
        pay(clerk_b, customer_b, amount="1000")

        assert payment_service.payments_total(clerk_a) == 30000
        assert payment_service.payments_total(clerk_b) == 100000
        assert payment_service.payments_total(admin) == 130000

    def test_empty_is_zero(self, db_session, clerk_a, customer_a):
        pay(clerk_a, customer_a)
        assert payment_service.payments_total(clerk_a, payment_type="SALE") == 0

    def test_forbidden_branch(self, db_session, clerk_a, branch_b):
        with pytest.raises(AuthorizationError):
            payment_service.payments_total(clerk_a, requested_branch_id=branch_b.id)
