"""
Item Claim database model.

Ensures at most one non-terminal payment transaction references a due
item through a DB-level partial unique index.
"""

from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, Index, text
from sqlalchemy.sql import func
from hostel_ledger.app.db.session import Base


class ItemClaim(Base):
    """
    Item Claim model.

    Claimed when a transaction is authorized, released when it commits
    or is abandoned.
    """
    __tablename__ = "item_claims"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # References
    period_id = Column(Integer, ForeignKey('due_periods.id'), nullable=False, index=True)
    item_id = Column(String(50), nullable=False)
    transaction_id = Column(Integer, ForeignKey('payment_transactions.id'), nullable=False, index=True)

    # Claim lifecycle
    claimed_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    released_at = Column(DateTime(timezone=True), nullable=True)

    # Unique constraint: only one active claim per due item
    __table_args__ = (
        Index('ix_item_claims_active', 'period_id', 'item_id', unique=True,
              postgresql_where=text('released_at IS NULL'),
              sqlite_where=text('released_at IS NULL')),
    )

    def __repr__(self):
        return f"<ItemClaim(period_id={self.period_id}, item_id='{self.item_id}', transaction_id={self.transaction_id}, active={self.released_at is None})>"
