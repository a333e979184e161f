"""
Payment transaction database model.

Append-only ledger of settlement attempts against due items.
"""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, JSON
from hostel_ledger.app.db.session import Base
from hostel_ledger.app.models.billing_enums import PaymentMethod, TransactionStatus


class PaymentTransaction(Base):
    """
    Payment transaction model.

    Lifecycle: AUTHORIZED -> COMMITTED, or AUTHORIZED -> FAILED.
    An AUTHORIZED transaction holds item claims; a COMMITTED row is never
    updated again. The payer snapshot is captured at commit so receipts
    can be regenerated byte for byte.
    """
    __tablename__ = "payment_transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    reference = Column(String(40), unique=True, nullable=True, index=True)

    # Linkage
    resident_id = Column(Integer, ForeignKey('residents.id'), nullable=False, index=True)
    period_id = Column(Integer, ForeignKey('due_periods.id'), nullable=False, index=True)
    item_ids = Column(JSON, nullable=False)  # ordered as in the period

    # Financials
    amount = Column(Integer, nullable=False)
    method = Column(Enum(PaymentMethod), nullable=False)

    status = Column(Enum(TransactionStatus), default=TransactionStatus.AUTHORIZED, nullable=False, index=True)
    failure_reason = Column(String(255), nullable=True)

    # Timestamps
    authorized_at = Column(DateTime(timezone=True), nullable=False)
    committed_at = Column(DateTime(timezone=True), nullable=True)
    released_at = Column(DateTime(timezone=True), nullable=True)

    # Payer snapshot (set at commit)
    payer_name = Column(String(150), nullable=True)
    payer_roll_number = Column(String(50), nullable=True)
    payer_hall = Column(String(50), nullable=True)
    payer_room = Column(String(20), nullable=True)

    def __repr__(self):
        return f"<PaymentTransaction(id={self.id}, status='{self.status.value}', amount={self.amount})>"
