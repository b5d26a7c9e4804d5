# Overview: Service-layer operations for the audit trail; append-only movement and system logs.

from __future__ import annotations

import json

from ..models import MachineMovementLog, SystemLog
"""
Audit trail invariants

- Append-only: entries are never updated or deleted.
- Movement entries carry a full JSON snapshot of the business document, so a
  voided sale can be reconstructed after its row is gone.
- Entries are written through the caller's TenantGuard, inside the caller's
  transaction, except where the caller documents a best-effort write.
"""


def _dump(details) -> str | None:
    if details is None:
        return None
    return json.dumps(details, default=str, sort_keys=True)


def append_movement_log(
    guard,
    *,
    branch_id: int,
    serial_number: str,
    action: str,
    snapshot: dict | None = None,
    machine_id: int | None = None,
    performed_by: str | None = None,
) -> MachineMovementLog:
    entry = MachineMovementLog(
        branch_id=branch_id,
        machine_id=machine_id,
        serial_number=serial_number,
        action=action,
        details=_dump(snapshot),
        performed_by=performed_by,
    )
    return guard.create(entry)


def append_system_log(
    guard,
    *,
    branch_id: int,
    entity_type: str,
    entity_id: int,
    action: str,
    details: dict | None = None,
    actor=None,
) -> SystemLog:
    entry = SystemLog(
        branch_id=branch_id,
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        details=_dump(details),
        actor_id=getattr(actor, "id", None),
        performed_by=getattr(actor, "label", None),
    )
    return guard.create(entry)


def movement_history(guard, serial_number: str) -> list[MachineMovementLog]:
    """All movement entries for a serial number visible in the guard's scope, oldest first."""
    return guard.find_many(
        MachineMovementLog,
        {"serial_number": serial_number},
        order_by=(MachineMovementLog.created_at, MachineMovementLog.id),
    )
