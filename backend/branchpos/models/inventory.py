from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z

MACHINE_STATUS_NEW = "NEW"
MACHINE_STATUS_SOLD = "SOLD"


class WarehouseMachine(db.Model):
    """
    A serialized device held in a branch warehouse.

    Status flips NEW -> SOLD when a sale is created and back to NEW when the
    sale is voided.
    """
    __tablename__ = "warehouse_machines"
    __table_args__ = (
        db.Index("ix_warehouse_machines_branch_status", "branch_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)

    serial_number = db.Column(db.String(64), nullable=False, unique=True)
    model = db.Column(db.String(128), nullable=True)
    manufacturer = db.Column(db.String(128), nullable=True)
    status = db.Column(db.String(16), nullable=False, default=MACHINE_STATUS_NEW)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    branch = db.relationship("Branch", backref=db.backref("warehouse_machines", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "serial_number": self.serial_number,
            "model": self.model,
            "manufacturer": self.manufacturer,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }


class PosMachine(db.Model):
    """
    Ownership record: a device installed at a customer.

    serial_number is unique across all branches, so a unit can never be owned
    twice even when two branches race to sell it.
    """
    __tablename__ = "pos_machines"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=True, index=True)

    serial_number = db.Column(db.String(64), nullable=False, unique=True)
    model = db.Column(db.String(128), nullable=True)
    manufacturer = db.Column(db.String(128), nullable=True)
    is_main = db.Column(db.Boolean, nullable=False, default=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("machines", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "customer_id": self.customer_id,
            "serial_number": self.serial_number,
            "model": self.model,
            "manufacturer": self.manufacturer,
            "is_main": self.is_main,
            "created_at": to_utc_z(self.created_at),
        }
