"""
Complaint database model.

Maintenance complaints raised by residents, closed with an Action Taken
Report (ATR).
"""

from sqlalchemy import Column, Integer, String, Text, Date, DateTime, ForeignKey, Enum
from hostel_ledger.app.db.session import Base
from hostel_ledger.app.models.complaint_enums import ComplaintType, ComplaintPriority, ComplaintStatus


class Complaint(Base):
    """
    Complaint model.

    Status flow: PENDING -> IN_PROGRESS -> RESOLVED.
    The ATR columns are filled in the same write that sets RESOLVED,
    and never while the complaint is PENDING.
    """
    __tablename__ = "complaints"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    resident_id = Column(Integer, ForeignKey('residents.id'), nullable=False, index=True)

    type = Column(Enum(ComplaintType), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    priority = Column(Enum(ComplaintPriority), default=ComplaintPriority.MEDIUM, nullable=False, index=True)
    status = Column(Enum(ComplaintStatus), default=ComplaintStatus.PENDING, nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), nullable=True)
    resolved_at = Column(DateTime(timezone=True), nullable=True)

    # Action Taken Report
    atr_action_taken = Column(Text, nullable=True)
    atr_action_by = Column(String(150), nullable=True)
    atr_completion_date = Column(Date, nullable=True)
    atr_remarks = Column(Text, nullable=True)

    @property
    def has_atr(self) -> bool:
        return self.atr_action_taken is not None

    def __repr__(self):
        return f"<Complaint(id={self.id}, type='{self.type.value}', status='{self.status.value}')>"
