"""
Machine sales: creation, installment repayment, rescheduling and voiding.

WHY: A sale touches five tables (sale, installments, inventory unit,
ownership record, payments) plus the movement log. Each operation below runs
its writes as one transaction through concurrency.atomic(), and every read or
write of a branch-owned row goes through a TenantGuard.

Money is integer cents end to end. Decimal input is converted once with
money.to_cents(); installment shares use the rule in
generate_installment_amounts().
"""

from __future__ import annotations

from datetime import date, datetime

from flask import current_app
from sqlalchemy import and_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..models import Customer, Installment, MachineSale, Payment, PosMachine, WarehouseMachine
from ..models.inventory import MACHINE_STATUS_NEW, MACHINE_STATUS_SOLD
from ..models.sales import (
    PAYMENT_TYPE_INSTALLMENT,
    PAYMENT_TYPE_SALE,
    SALE_KIND_CASH,
    SALE_KIND_INSTALLMENT,
    SALE_STATUS_COMPLETED,
    SALE_STATUS_ONGOING,
    VALID_SALE_KINDS,
)
from ..money import divide_cents, to_cents
from ..scoping import resolve_scope
from ..time_utils import add_months, utcnow, utctoday
from .audit_service import append_movement_log, append_system_log, movement_history
from .concurrency import atomic
from .payment_service import ensure_receipt_available, require_payment_details
from .tenant_service import TenantGuard

ACTION_SELL = "SELL"
ACTION_SALE_VOID = "SALE_VOID"


def generate_installment_amounts(total_cents: int, paid_cents: int, count: int) -> list[int]:
    """
    Split total - paid into count installments.

    Each share is the equal split rounded half-up to a whole cent; the last
    installment absorbs the difference so the amounts sum to the remaining
    balance exactly. When rounding up would leave nothing for the last
    installment the shares are rounded down instead.

    >>> generate_installment_amounts(100000, 10000, 3)
    [30000, 30000, 30000]
    >>> generate_installment_amounts(10000, 0, 3)
    [3333, 3333, 3334]
    """
    count = _parse_count(count)
    remaining = total_cents - paid_cents
    if remaining <= 0:
        raise ValidationError("Nothing left to split into installments", details={"remaining_cents": remaining})
    if remaining < count:
        raise ValidationError(
            "Remaining balance is too small for that many installments",
            details={"remaining_cents": remaining, "installment_count": count},
        )

    share = divide_cents(remaining, count)
    last = remaining - share * (count - 1)
    if last <= 0:
        share = remaining // count
        last = remaining - share * (count - 1)
    return [share] * (count - 1) + [last]


def _parse_count(value) -> int:
    if isinstance(value, bool):
        raise ValidationError("Installment count must be a whole number")
    try:
        count = int(value)
    except (TypeError, ValueError):
        raise ValidationError("Installment count must be a whole number", details={"value": value})
    if count != value and not isinstance(value, str):
        raise ValidationError("Installment count must be a whole number", details={"value": value})
    if count < 1:
        raise ValidationError("Installment count must be at least 1", details={"value": count})
    return count


def build_schedule(sale: MachineSale, amounts: list[int], start: date, first_sequence: int = 1) -> list[Installment]:
    """Installments due monthly, the first one month after start."""
    schedule = []
    for offset, amount in enumerate(amounts):
        sequence = first_sequence + offset
        schedule.append(Installment(
            sale_id=sale.id,
            branch_id=sale.branch_id,
            sequence=sequence,
            due_date=add_months(start, offset + 1),
            amount_cents=amount,
            description=f"Installment {sequence}",
            is_paid=False,
        ))
    return schedule


def _sale_snapshot(sale: MachineSale, installments, payments=()) -> dict:
    data = sale.to_dict()
    data["installments"] = [i.to_dict() for i in installments]
    data["payments"] = [p.to_dict() for p in payments]
    return data


def _guard(actor, requested_branch_id, bypass, resolver) -> TenantGuard:
    guard = TenantGuard.for_actor(actor, requested_branch_id, bypass, resolver=resolver)
    guard.require_access()
    return guard


def create_sale(
    actor,
    *,
    serial_number: str,
    customer_id: int,
    kind: str,
    total_price,
    paid_amount=0,
    installment_count=None,
    payment_place: str | None = None,
    receipt_number: str | None = None,
    notes: str | None = None,
    sale_date: datetime | None = None,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> MachineSale:
    """
    Sell one inventory unit to a customer.

    Creates the sale, its installment schedule, the ownership record, the
    movement log entry and the upfront payment in one transaction, and flips
    the unit to SOLD. Any failure leaves nothing behind.
    """
    guard = _guard(actor, requested_branch_id, bypass, resolver)

    kind = (kind or "").strip().upper()
    if kind not in VALID_SALE_KINDS:
        raise ValidationError(f"Sale kind must be one of {', '.join(VALID_SALE_KINDS)}")

    total_cents = to_cents(total_price, "total_price")
    paid_cents = to_cents(paid_amount, "paid_amount")
    if total_cents <= 0:
        raise ValidationError("Total price must be positive")
    if paid_cents < 0:
        raise ValidationError("Paid amount cannot be negative")
    if paid_cents > total_cents:
        raise ValidationError("Paid amount cannot exceed the total price")

    amounts: list[int] = []
    if kind == SALE_KIND_CASH:
        if paid_cents != total_cents:
            raise ValidationError("Cash sales must be paid in full")
    else:
        if paid_cents >= total_cents:
            raise ValidationError("Installment sales must leave a balance to repay")
        amounts = generate_installment_amounts(total_cents, paid_cents, installment_count)

    place = receipt = None
    if paid_cents > 0:
        place, receipt = require_payment_details(payment_place, receipt_number)

    serial = (serial_number or "").strip()
    if not serial:
        raise ValidationError("Serial number is required")

    unit = guard.find_first(WarehouseMachine, {"serial_number": serial})
    if unit is None:
        raise NotFoundError("Machine")
    if unit.status == MACHINE_STATUS_SOLD:
        raise ConflictError(f"Machine {serial} is already sold", details={"serial_number": serial})

    customer = guard.get_unique(Customer, id=customer_id)
    if customer.branch_id != unit.branch_id:
        raise ValidationError(
            "Customer and machine belong to different branches",
            details={"customer_branch_id": customer.branch_id, "machine_branch_id": unit.branch_id},
        )

    if guard.find_first(PosMachine, {"serial_number": serial}) is not None:
        raise ConflictError(f"Machine {serial} is already owned by a customer", details={"serial_number": serial})

    if receipt is not None:
        ensure_receipt_available(guard, unit.branch_id, receipt)

    with atomic():
        sale = guard.create(MachineSale(
            branch_id=unit.branch_id,
            customer_id=customer.id,
            serial_number=serial,
            kind=kind,
            total_cents=total_cents,
            paid_cents=paid_cents,
            status=SALE_STATUS_COMPLETED if paid_cents == total_cents else SALE_STATUS_ONGOING,
            notes=notes,
            sale_date=sale_date or utcnow(),
            created_by=actor.label,
        ))

        installments = []
        if kind == SALE_KIND_INSTALLMENT:
            start = (sale_date or utcnow()).date()
            installments = [guard.create(i) for i in build_schedule(sale, amounts, start)]

        flipped = guard.update_unique(
            WarehouseMachine,
            {"id": unit.id},
            {"status": MACHINE_STATUS_SOLD},
            where=WarehouseMachine.status == MACHINE_STATUS_NEW,
        )
        if flipped == 0:
            raise ConflictError(f"Machine {serial} is already sold", details={"serial_number": serial})

        guard.create(PosMachine(
            branch_id=unit.branch_id,
            customer_id=customer.id,
            serial_number=serial,
            model=unit.model,
            manufacturer=unit.manufacturer,
            is_main=False,
        ))

        payments = []
        if paid_cents > 0:
            payments.append(guard.create(Payment(
                branch_id=unit.branch_id,
                customer_id=customer.id,
                sale_id=sale.id,
                amount_cents=paid_cents,
                type=PAYMENT_TYPE_SALE,
                receipt_number=receipt,
                payment_place=place,
                reason="Sale payment",
                created_by=actor.label,
            )))

        append_movement_log(
            guard,
            branch_id=unit.branch_id,
            machine_id=unit.id,
            serial_number=serial,
            action=ACTION_SELL,
            snapshot=_sale_snapshot(sale, installments, payments),
            performed_by=actor.label,
        )

    return sale


def pay_installment(
    actor,
    installment_id: int,
    *,
    payment_place,
    receipt_number,
    amount=None,
    notes: str | None = None,
    paid_at: datetime | None = None,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> Installment:
    """
    Repay one installment.

    The installment is marked paid with a conditional update, so of two
    concurrent repayments exactly one succeeds and the other gets
    ConflictError. The system log entry is written after the commit and a
    failure there never undoes the payment.
    """
    guard = _guard(actor, requested_branch_id, bypass, resolver)
    place, receipt = require_payment_details(payment_place, receipt_number)

    installment = guard.get_unique(Installment, id=installment_id)
    if installment.is_paid:
        raise ConflictError("Installment is already paid", details={"installment_id": installment.id})

    sale = guard.get_unique(MachineSale, id=installment.sale_id)

    if amount is None or (isinstance(amount, str) and not amount.strip()):
        amount_cents = installment.amount_cents
    else:
        amount_cents = to_cents(amount, "amount")
    if amount_cents <= 0:
        raise ValidationError("Amount must be positive")
    if amount_cents > sale.remaining_cents:
        raise ValidationError(
            "Amount exceeds the remaining balance of the sale",
            details={"amount_cents": amount_cents, "remaining_cents": sale.remaining_cents},
        )

    ensure_receipt_available(guard, installment.branch_id, receipt)

    branch_id = installment.branch_id
    sale_id = sale.id
    paid_at = paid_at or utcnow()

    with atomic():
        marked = guard.update_unique(
            Installment,
            {"id": installment.id},
            {
                "is_paid": True,
                "paid_cents": amount_cents,
                "paid_at": paid_at,
                "receipt_number": receipt,
                "payment_place": place,
            },
            where=Installment.is_paid.is_(False),
        )
        if marked == 0:
            raise ConflictError("Installment is already paid", details={"installment_id": installment_id})

        credited = guard.update_unique(
            MachineSale,
            {"id": sale_id},
            {"paid_cents": MachineSale.paid_cents + amount_cents},
            where=MachineSale.paid_cents + amount_cents <= MachineSale.total_cents,
        )
        if credited == 0:
            raise ConflictError("Payment would exceed the sale total", details={"sale_id": sale_id})

        guard.update_unique(
            MachineSale,
            {"id": sale_id},
            {"status": SALE_STATUS_COMPLETED},
            where=MachineSale.paid_cents >= MachineSale.total_cents,
        )

        payment = guard.create(Payment(
            branch_id=branch_id,
            customer_id=sale.customer_id,
            sale_id=sale_id,
            installment_id=installment_id,
            amount_cents=amount_cents,
            type=PAYMENT_TYPE_INSTALLMENT,
            receipt_number=receipt,
            payment_place=place,
            reason=f"Installment {installment.sequence}",
            notes=notes,
            created_by=actor.label,
        ))
        payment_id = payment.id

    try:
        with atomic():
            append_system_log(
                guard,
                branch_id=branch_id,
                entity_type="installment",
                entity_id=installment_id,
                action="INSTALLMENT_PAID",
                details={
                    "sale_id": sale_id,
                    "payment_id": payment_id,
                    "amount_cents": amount_cents,
                    "receipt_number": receipt,
                    "payment_place": place,
                },
                actor=actor,
            )
    except Exception:
        current_app.logger.exception("Failed to write audit entry for installment %s", installment_id)

    return guard.get_unique(Installment, id=installment_id)


def recalculate_installments(
    actor,
    sale_id: int,
    new_count,
    *,
    start_date: date | None = None,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> MachineSale:
    """Replace the unpaid installments of a sale with new_count fresh ones."""
    guard = _guard(actor, requested_branch_id, bypass, resolver)
    sale = guard.get_unique(MachineSale, id=sale_id)

    if sale.remaining_cents <= 0:
        raise ValidationError("Sale is fully paid", details={"sale_id": sale.id})
    amounts = generate_installment_amounts(sale.total_cents, sale.paid_cents, new_count)

    paid = guard.find_many(Installment, {"sale_id": sale.id, "is_paid": True})
    next_sequence = max((i.sequence for i in paid), default=0) + 1
    start = start_date or utctoday()

    with atomic():
        removed = guard.delete_many(Installment, {"sale_id": sale.id, "is_paid": False})
        for installment in build_schedule(sale, amounts, start, first_sequence=next_sequence):
            guard.create(installment)
        append_system_log(
            guard,
            branch_id=sale.branch_id,
            entity_type="sale",
            entity_id=sale.id,
            action="INSTALLMENTS_RECALCULATED",
            details={
                "removed_unpaid": removed,
                "installment_count": len(amounts),
                "remaining_cents": sale.remaining_cents,
                "amounts": amounts,
            },
            actor=actor,
        )

    return guard.get_unique(MachineSale, id=sale_id)


def delete_sale(
    actor,
    sale_id: int,
    *,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> dict:
    """
    Void a sale.

    Removes the installments, the upfront SALE payment and the ownership
    record, returns the unit to stock and deletes the sale row. Installment
    payments stay on record as money received but are detached from the
    sale. Returns the snapshot written to the movement log.
    """
    guard = _guard(actor, requested_branch_id, bypass, resolver)
    sale = guard.get_unique(MachineSale, id=sale_id)

    installments = guard.find_many(Installment, {"sale_id": sale.id}, order_by=Installment.sequence)
    payments = guard.find_many(Payment, {"sale_id": sale.id}, order_by=Payment.id)
    snapshot = _sale_snapshot(sale, installments, payments)

    unit = guard.find_first(
        WarehouseMachine,
        {"serial_number": sale.serial_number, "branch_id": sale.branch_id},
    )

    with atomic():
        guard.update_many(
            Payment,
            and_(Payment.sale_id == sale.id, Payment.type == PAYMENT_TYPE_INSTALLMENT),
            {"sale_id": None, "installment_id": None},
        )
        guard.delete_many(Payment, {"sale_id": sale.id, "type": PAYMENT_TYPE_SALE})
        guard.delete_many(Installment, {"sale_id": sale.id})
        guard.delete_many(PosMachine, {"serial_number": sale.serial_number, "customer_id": sale.customer_id})
        if unit is not None:
            guard.update_unique(WarehouseMachine, {"id": unit.id}, {"status": MACHINE_STATUS_NEW})

        append_movement_log(
            guard,
            branch_id=sale.branch_id,
            machine_id=unit.id if unit is not None else None,
            serial_number=sale.serial_number,
            action=ACTION_SALE_VOID,
            snapshot=snapshot,
            performed_by=actor.label,
        )
        guard.delete_record(sale)

    return snapshot


def get_sale(actor, sale_id: int, *, requested_branch_id=None, bypass=None, resolver=resolve_scope) -> MachineSale:
    guard = _guard(actor, requested_branch_id, bypass, resolver)
    return guard.get_unique(MachineSale, id=sale_id)


def list_sales(
    actor,
    *,
    status: str | None = None,
    customer_id: int | None = None,
    limit: int | None = 200,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> list[MachineSale]:
    guard = _guard(actor, requested_branch_id, bypass, resolver)
    criteria = {}
    if status:
        criteria["status"] = status.upper()
    if customer_id is not None:
        criteria["customer_id"] = customer_id
    return guard.find_many(
        MachineSale,
        criteria,
        order_by=(MachineSale.sale_date.desc(), MachineSale.id.desc()),
        limit=limit,
    )


def list_installments(
    actor,
    *,
    sale_id: int | None = None,
    overdue: bool = False,
    as_of: date | None = None,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> list[Installment]:
    """Installments in scope; overdue=True keeps unpaid ones due before as_of (default today)."""
    guard = _guard(actor, requested_branch_id, bypass, resolver)

    conditions = []
    if sale_id is not None:
        conditions.append(Installment.sale_id == sale_id)
    if overdue:
        conditions.append(Installment.is_paid.is_(False))
        conditions.append(Installment.due_date < (as_of or utctoday()))

    criteria = and_(*conditions) if conditions else {}
    return guard.find_many(Installment, criteria, order_by=(Installment.due_date, Installment.sequence))


def machine_history(
    actor,
    serial_number: str,
    *,
    requested_branch_id: int | None = None,
    bypass=None,
    resolver=resolve_scope,
) -> list:
    """Movement log entries (sales, voids) for one serial number, oldest first."""
    guard = _guard(actor, requested_branch_id, bypass, resolver)
    serial = (serial_number or "").strip()
    if not serial:
        raise ValidationError("Serial number is required")
    return movement_history(guard, serial)
