"""
Payment helpers: receipt uniqueness, manual payments, payment listing and totals.

Receipt numbers are unique per branch across Payment rows and paid
Installment rows combined. ensure_receipt_available() is the service-level
check; the (branch_id, receipt_number) unique constraint on payments backs it
when two requests race.
"""

from __future__ import annotations

from ..errors import ConflictError, ValidationError
from ..models import Customer, Installment, Payment
from ..models.sales import PAYMENT_TYPE_MANUAL
from ..money import to_cents
from ..scoping import resolve_scope
from .audit_service import append_system_log
from .concurrency import atomic
from .tenant_service import TenantGuard


def normalize_receipt(receipt_number) -> str | None:
    if receipt_number is None:
        return None
    value = str(receipt_number).strip()
    return value or None


def ensure_receipt_available(guard: TenantGuard, branch_id: int, receipt_number: str) -> None:
    """Raise ConflictError when the receipt is already used in the branch."""
    receipt = normalize_receipt(receipt_number)
    if receipt is None:
        raise ValidationError("Receipt number is required")

    used_by_payment = guard.count(Payment, {"branch_id": branch_id, "receipt_number": receipt})
    used_by_installment = guard.count(
        Installment,
        {"branch_id": branch_id, "receipt_number": receipt, "is_paid": True},
    )
    if used_by_payment or used_by_installment:
        raise ConflictError(
            f"Receipt number {receipt} is already used",
            details={"receipt_number": receipt, "branch_id": branch_id},
        )


def require_payment_details(payment_place, receipt_number) -> tuple[str, str]:
    place = str(payment_place).strip() if payment_place is not None else ""
    receipt = normalize_receipt(receipt_number)
    if not place:
        raise ValidationError("Payment place is required")
    if receipt is None:
        raise ValidationError("Receipt number is required")
    return place, receipt


def create_manual_payment(
    actor,
    *,
    customer_id: int,
    amount,
    payment_place,
    receipt_number,
    reason: str | None = None,
    notes: str | None = None,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> Payment:
    """Record money received outside any sale or installment."""
    guard = TenantGuard.for_actor(actor, requested_branch_id, bypass, resolver=resolver)
    guard.require_access()

    place, receipt = require_payment_details(payment_place, receipt_number)
    amount_cents = to_cents(amount, "amount")
    if amount_cents <= 0:
        raise ValidationError("Amount must be positive")

    customer = guard.get_unique(Customer, id=customer_id)
    ensure_receipt_available(guard, customer.branch_id, receipt)

    with atomic():
        payment = guard.create(Payment(
            branch_id=customer.branch_id,
            customer_id=customer.id,
            amount_cents=amount_cents,
            type=PAYMENT_TYPE_MANUAL,
            receipt_number=receipt,
            payment_place=place,
            reason=reason,
            notes=notes,
            created_by=actor.label,
        ))
        append_system_log(
            guard,
            branch_id=customer.branch_id,
            entity_type="payment",
            entity_id=payment.id,
            action="MANUAL_PAYMENT",
            details={"amount_cents": amount_cents, "receipt_number": receipt, "customer_id": customer.id},
            actor=actor,
        )
    return payment


def _payment_criteria(customer_id, sale_id, payment_type) -> dict:
    criteria = {}
    if customer_id is not None:
        criteria["customer_id"] = customer_id
    if sale_id is not None:
        criteria["sale_id"] = sale_id
    if payment_type:
        criteria["type"] = payment_type
    return criteria


def list_payments(
    actor,
    *,
    customer_id: int | None = None,
    sale_id: int | None = None,
    payment_type: str | None = None,
    limit: int | None = 200,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> list[Payment]:
    guard = TenantGuard.for_actor(actor, requested_branch_id, bypass, resolver=resolver)
    guard.require_access()
    return guard.find_many(
        Payment,
        _payment_criteria(customer_id, sale_id, payment_type),
        order_by=(Payment.created_at.desc(), Payment.id.desc()),
        limit=limit,
    )


def payments_total(
    actor,
    *,
    customer_id: int | None = None,
    sale_id: int | None = None,
    payment_type: str | None = None,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> int:
    """Sum in cents of the payments list_payments() would return, without the limit."""
    guard = TenantGuard.for_actor(actor, requested_branch_id, bypass, resolver=resolver)
    guard.require_access()
    return guard.total(Payment, "amount_cents", _payment_criteria(customer_id, sale_id, payment_type))
