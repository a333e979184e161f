"""
Due period and due item database models.

A due period is one billing cycle ("October 2024") for a resident and
groups an ordered set of due items. The period status is derived from
its items and never stored.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.sql import func
from hostel_ledger.app.db.session import Base
from hostel_ledger.app.models.billing_enums import DueCategory, DueItemStatus


class DuePeriod(Base):
    """Due period model."""
    __tablename__ = "due_periods"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    resident_id = Column(Integer, ForeignKey('residents.id'), nullable=False, index=True)
    period_label = Column(String(50), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('resident_id', 'period_label', name='uq_due_periods_resident_label'),
    )

    def __repr__(self):
        return f"<DuePeriod(id={self.id}, resident_id={self.resident_id}, label='{self.period_label}')>"


class DueItem(Base):
    """
    Due item model.

    Keyed by (period_id, item_id). Only `status` changes after creation,
    and only through a committed payment transaction.
    """
    __tablename__ = "due_items"

    period_id = Column(Integer, ForeignKey('due_periods.id'), primary_key=True)
    item_id = Column(String(50), primary_key=True)

    category = Column(Enum(DueCategory), nullable=False)
    label = Column(String(100), nullable=False)
    amount = Column(Integer, nullable=False)  # integral currency units
    position = Column(Integer, nullable=False)

    status = Column(Enum(DueItemStatus), default=DueItemStatus.PENDING, nullable=False, index=True)

    def __repr__(self):
        return f"<DueItem(period_id={self.period_id}, item_id='{self.item_id}', amount={self.amount}, status='{self.status.value}')>"
