from __future__ import annotations

import json

from ..extensions import db
from ..time_utils import to_utc_z


class MachineMovementLog(db.Model):
    """
    Append-only history of a device (sold, sale voided).

    details holds a JSON snapshot of the business document at the time of
    the movement so the history survives deletion of the sale itself.
    """
    __tablename__ = "machine_movement_logs"
    __table_args__ = (
        db.Index("ix_machine_movement_logs_serial", "serial_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    machine_id = db.Column(db.Integer, nullable=True)
    serial_number = db.Column(db.String(64), nullable=False)
    action = db.Column(db.String(32), nullable=False)
    details = db.Column(db.Text, nullable=True)
    performed_by = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def snapshot(self) -> dict:
        return json.loads(self.details) if self.details else {}

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "machine_id": self.machine_id,
            "serial_number": self.serial_number,
            "action": self.action,
            "details": self.snapshot(),
            "performed_by": self.performed_by,
            "created_at": to_utc_z(self.created_at),
        }


class SystemLog(db.Model):
    """Append-only audit entries for payments and schedule changes."""
    __tablename__ = "system_logs"
    __table_args__ = (
        db.Index("ix_system_logs_entity", "entity_type", "entity_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    branch_id = db.Column(db.Integer, db.ForeignKey("branches.id"), nullable=False, index=True)
    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)
    action = db.Column(db.String(64), nullable=False)
    details = db.Column(db.Text, nullable=True)
    actor_id = db.Column(db.String(64), nullable=True)
    performed_by = db.Column(db.String(128), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "branch_id": self.branch_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "details": json.loads(self.details) if self.details else None,
            "actor_id": self.actor_id,
            "performed_by": self.performed_by,
            "created_at": to_utc_z(self.created_at),
        }
