"""
Load audit trail.

Entries are written after the dispatch change itself has committed, so a
failed operation never leaves an audit row behind.
"""

import enum
from typing import Any, Dict, List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from freight_dispatch.app.models.audit_log import AuditLog


class AuditAction(str, enum.Enum):
    LOAD_CREATED = "LOAD_CREATED"
    LOAD_STATUS_CHANGED = "LOAD_STATUS_CHANGED"
    LOAD_INVOICED = "LOAD_INVOICED"
    DRAFT_APPROVED = "DRAFT_APPROVED"

    DRIVER_ASSIGNED = "DRIVER_ASSIGNED"
    DRIVER_UNASSIGNED = "DRIVER_UNASSIGNED"
    TEAM_DRIVER_ASSIGNED = "TEAM_DRIVER_ASSIGNED"
    TEAM_DRIVER_UNASSIGNED = "TEAM_DRIVER_UNASSIGNED"
    TRUCK_ASSIGNED = "TRUCK_ASSIGNED"
    TRUCK_UNASSIGNED = "TRUCK_UNASSIGNED"
    TRAILER_ASSIGNED = "TRAILER_ASSIGNED"
    TRAILER_UNASSIGNED = "TRAILER_UNASSIGNED"
    CARRIER_ASSIGNED = "CARRIER_ASSIGNED"
    CARRIER_UNASSIGNED = "CARRIER_UNASSIGNED"


# assigned field -> (action when set, action when cleared)
_ASSIGNMENT_ACTIONS = {
    "driver_id": (AuditAction.DRIVER_ASSIGNED, AuditAction.DRIVER_UNASSIGNED),
    "driver2_id": (AuditAction.TEAM_DRIVER_ASSIGNED, AuditAction.TEAM_DRIVER_UNASSIGNED),
    "truck_id": (AuditAction.TRUCK_ASSIGNED, AuditAction.TRUCK_UNASSIGNED),
    "trailer_id": (AuditAction.TRAILER_ASSIGNED, AuditAction.TRAILER_UNASSIGNED),
    "carrier_id": (AuditAction.CARRIER_ASSIGNED, AuditAction.CARRIER_UNASSIGNED),
}


def assignment_action(assigned_field: str, value: Optional[int]) -> AuditAction:
    assigned, cleared = _ASSIGNMENT_ACTIONS[assigned_field]
    return assigned if value is not None else cleared


async def record_load_event(
    db: AsyncSession,
    action: AuditAction,
    load_id: Optional[int],
    current_user: Optional[dict] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Append an entry to a load's audit trail and commit it.

    Args:
        db: Database session
        action: What happened
        load_id: Load the action applies to
        current_user: Token claims from `get_current_user`; None for system actions
        metadata: JSON-serializable context (ids, statuses, field names)
    """
    actor = current_user or {}
    entry = AuditLog(
        load_id=load_id,
        action=action.value,
        actor_id=actor.get("user_id"),
        actor_username=actor.get("sub"),
        actor_role=actor.get("role"),
        meta_data=metadata,
    )

    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def get_load_history(db: AsyncSession, load_id: int, limit: int = 100) -> List[AuditLog]:
    """Audit trail for one load, most recent first."""
    result = await db.execute(
        select(AuditLog)
        .where(AuditLog.load_id == load_id)
        .order_by(desc(AuditLog.timestamp), desc(AuditLog.id))
        .limit(limit)
    )
    return list(result.scalars().all())
