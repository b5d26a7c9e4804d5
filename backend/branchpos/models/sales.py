from __future__ import annotations

from ..extensions import db
from ..money import format_cents
from ..time_utils import to_iso_date, to_utc_z

SALE_KIND_CASH = "CASH"
SALE_KIND_INSTALLMENT = "INSTALLMENT"
VALID_SALE_KINDS = (SALE_KIND_CASH, SALE_KIND_INSTALLMENT)

SALE_STATUS_ONGOING = "ONGOING"
SALE_STATUS_COMPLETED = "COMPLETED"

PAYMENT_TYPE_SALE = "SALE"
PAYMENT_TYPE_INSTALLMENT = "INSTALLMENT"
PAYMENT_TYPE_MANUAL = "MANUAL"


class MachineSale(db.Model):
    """
    Sale of one serialized device to a customer.

    CASH sales are COMPLETED on creation. INSTALLMENT sales stay ONGOING
    until paid_cents reaches total_cents. Amounts are integer cents and
    paid_cents never exceeds total_cents (enforced by a check constraint as
    well as by the sale engine).
    """
    __tablename__ = "machine_sales"
    __table_args__ = (
        db.CheckConstraint("paid_cents >= 0", name="ck_machine_sales_paid_non_negative"),
        db.CheckConstraint("paid_cents <= total_cents", name="ck_machine_sales_paid_le_total"),
        db.Index("ix_machine_sales_branch_status", "branch_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    serial_number = db.Column(db.String(64), nullable=False, index=True)

    kind = db.Column(db.String(16), nullable=False)
    total_cents = db.Column(db.Integer, nullable=False)
    paid_cents = db.Column(db.Integer, nullable=False, default=0)
    status = db.Column(db.String(16), nullable=False, default=SALE_STATUS_ONGOING, index=True)
    notes = db.Column(db.Text, nullable=True)

    sale_date = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    created_by = db.Column(db.String(64), nullable=True)

    customer = db.relationship("Customer")
    installments = db.relationship(
        "Installment",
        backref="sale",
        lazy=True,
        order_by="Installment.sequence",
    )

    @property
    def remaining_cents(self) -> int:
        return self.total_cents - self.paid_cents

    def to_dict(self, include_installments: bool = False) -> dict:
        data = {
            "id": self.id,
            "branch_id": self.branch_id,
            "customer_id": self.customer_id,
            "serial_number": self.serial_number,
            "kind": self.kind,
            "total_cents": self.total_cents,
            "paid_cents": self.paid_cents,
            "remaining_cents": self.remaining_cents,
            "total_price": format_cents(self.total_cents),
            "paid_amount": format_cents(self.paid_cents),
            "status": self.status,
            "notes": self.notes,
            "sale_date": to_utc_z(self.sale_date),
            "created_by": self.created_by,
        }
        if include_installments:
            data["installments"] = [i.to_dict() for i in self.installments]
        return data


class Installment(db.Model):
    """One scheduled repayment of an INSTALLMENT sale."""
    __tablename__ = "installments"
    __table_args__ = (
        db.Index("ix_installments_branch_paid_due", "branch_id", "is_paid", "due_date"),
        db.Index("ix_installments_receipt", "branch_id", "receipt_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("machine_sales.id"), nullable=False, index=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)

    sequence = db.Column(db.Integer, nullable=False)
    due_date = db.Column(db.Date, nullable=False)
    amount_cents = db.Column(db.Integer, nullable=False)
    description = db.Column(db.String(255), nullable=True)

    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_cents = db.Column(db.Integer, nullable=True)
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    receipt_number = db.Column(db.String(64), nullable=True)
    payment_place = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "branch_id": self.branch_id,
            "sequence": self.sequence,
            "due_date": to_iso_date(self.due_date),
            "amount_cents": self.amount_cents,
            "amount": format_cents(self.amount_cents),
            "description": self.description,
            "is_paid": self.is_paid,
            "paid_cents": self.paid_cents,
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
            "receipt_number": self.receipt_number,
            "payment_place": self.payment_place,
        }


class Payment(db.Model):
    """
    Money received from a customer.

    TYPES:
    - SALE: upfront payment taken when the sale is created
    - INSTALLMENT: repayment of one installment
    - MANUAL: free-standing payment entered by staff

    Receipt numbers are unique per branch; the unique constraint backs the
    service-level duplicate check under concurrent writes.
    """
    __tablename__ = "payments"
    __table_args__ = (
        db.UniqueConstraint("branch_id", "receipt_number", name="uq_payments_branch_receipt"),
        db.Index("ix_payments_branch_created", "branch_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("machine_sales.id"), nullable=True, index=True)
    installment_id = db.Column(db.Integer, db.ForeignKey("installments.id"), nullable=True)

    amount_cents = db.Column(db.Integer, nullable=False)
    type = db.Column(db.String(16), nullable=False)
    receipt_number = db.Column(db.String(64), nullable=True)
    payment_place = db.Column(db.String(64), nullable=True)
    reason = db.Column(db.String(255), nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_by = db.Column(db.String(64), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "customer_id": self.customer_id,
            "sale_id": self.sale_id,
            "installment_id": self.installment_id,
            "amount_cents": self.amount_cents,
            "amount": format_cents(self.amount_cents),
            "type": self.type,
            "receipt_number": self.receipt_number,
            "payment_place": self.payment_place,
            "reason": self.reason,
            "notes": self.notes,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
        }
