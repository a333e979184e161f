"""
Audit logging service for ledger and complaint commands.

Audit rows are added to the caller's session and committed together with
the command they describe.
"""

from typing import Optional, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, desc
from hostel_ledger.app.models.audit_log import AuditLog


# Audit event constants
class AuditAction:
    """Standardized audit action constants."""
    RESIDENT_CREATED = "RESIDENT_CREATED"
    DUE_PERIOD_CREATED = "DUE_PERIOD_CREATED"

    # Payments
    PAYMENT_AUTHORIZED = "PAYMENT_AUTHORIZED"
    PAYMENT_COMMITTED = "PAYMENT_COMMITTED"
    PAYMENT_ABANDONED = "PAYMENT_ABANDONED"

    # Complaints
    COMPLAINT_CREATED = "COMPLAINT_CREATED"
    COMPLAINT_ADVANCED = "COMPLAINT_ADVANCED"
    COMPLAINT_RESOLVED = "COMPLAINT_RESOLVED"


def record_event(
    db: AsyncSession,
    action: str,
    resident_id: Optional[int] = None,
    actor_username: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None
) -> AuditLog:
    """
    Stage an audit event in the current transaction.

    Args:
        db: Database session
        action: Action being performed (use AuditAction constants)
        resident_id: Resident whose records were touched
        actor_username: Principal performing the action, if known
        metadata: Additional context as JSON

    Returns:
        Pending AuditLog instance (persisted when the caller commits)
    """
    audit_log = AuditLog(
        actor_username=actor_username,
        action=action,
        resident_id=resident_id,
        meta_data=metadata
    )

    db.add(audit_log)
    return audit_log


async def get_audit_trail(
    db: AsyncSession,
    resident_id: Optional[int] = None,
    action: Optional[str] = None,
    limit: int = 100
) -> list[AuditLog]:
    """
    Retrieve audit trail with optional filtering.

    Returns:
        List of AuditLog instances, most recent first
    """
    query = select(AuditLog).order_by(desc(AuditLog.timestamp), desc(AuditLog.id))

    if resident_id:
        query = query.where(AuditLog.resident_id == resident_id)

    if action:
        query = query.where(AuditLog.action == action)

    query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())
