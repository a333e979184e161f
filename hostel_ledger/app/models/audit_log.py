"""
Audit Log Database Model.

Tracks every committing ledger and complaint command.
"""

from sqlalchemy import Column, Integer, String, DateTime, JSON
from sqlalchemy.sql import func
from hostel_ledger.app.db.session import Base


class AuditLog(Base):
    """
    Audit log model for tracking ledger and complaint commands.

    Events logged:
    - DUE_PERIOD_CREATED
    - PAYMENT_AUTHORIZED / PAYMENT_COMMITTED / PAYMENT_ABANDONED
    - COMPLAINT_CREATED / COMPLAINT_ADVANCED / COMPLAINT_RESOLVED
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Who performed the action (None for system actions)
    actor_username = Column(String(100), nullable=True)

    # What action was performed
    action = Column(String(100), nullable=False, index=True)

    # Whose records were touched
    resident_id = Column(Integer, index=True, nullable=True)

    # Additional context (JSON for flexibility)
    meta_data = Column(JSON, nullable=True)

    # Timestamp
    timestamp = Column(DateTime(timezone=True), server_default=func.now(), nullable=False, index=True)

    def __repr__(self):
        return f"<AuditLog(id={self.id}, action='{self.action}', actor={self.actor_username}, resident={self.resident_id})>"
