"""
Dues and payment schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, List
from hostel_ledger.app.models.billing_enums import (
    DueCategory, DueItemStatus, PeriodStatus, PaymentMethod, TransactionStatus
)


class DueItemCreate(BaseModel):
    """Schema for one due item of a new period."""
    category: DueCategory
    amount: int = Field(..., description="Amount in integral currency units")
    item_id: Optional[str] = Field(None, max_length=50, description="Defaults to the category value")
    label: Optional[str] = Field(None, max_length=100, description="Defaults to the category label")


class DuePeriodCreate(BaseModel):
    """Schema for creating a due period with its items."""
    period_label: str = Field(..., max_length=50, description="Billing cycle, e.g. 'October 2024'")
    items: List[DueItemCreate]


class DueItemResponse(BaseModel):
    """Schema for displaying a due item."""
    item_id: str
    category: DueCategory
    label: str
    amount: int
    status: DueItemStatus
    claimed: bool = False


class DuePeriodResponse(BaseModel):
    """Schema for displaying a due period with derived totals."""
    id: int
    resident_id: int
    period_label: str
    status: PeriodStatus
    total_amount: int
    pending_amount: int
    items: List[DueItemResponse]


class SettlementQuote(BaseModel):
    """Items that a settlement would cover and their total."""
    period_id: int
    item_ids: List[str]
    amount: int


class PaymentAuthorizeRequest(BaseModel):
    """
    Schema for authorizing a payment.

    Omitting item_ids settles every pending item of the period.
    """
    method: str = Field(..., description="UPI, Card or NetBanking")
    item_ids: Optional[List[str]] = None


class PaymentAbandonRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=255)


class PaymentTransactionResponse(BaseModel):
    """Schema for displaying a payment transaction."""
    id: int
    reference: Optional[str]
    period_id: int
    item_ids: List[str]
    amount: int
    method: PaymentMethod
    status: TransactionStatus
    failure_reason: Optional[str]
    authorized_at: datetime
    committed_at: Optional[datetime]

    class Config:
        from_attributes = True


class ReceiptLine(BaseModel):
    item_id: str
    category: DueCategory
    label: str
    amount: int

    class Config:
        frozen = True


class Receipt(BaseModel):
    """
    Immutable receipt for one committed payment transaction.

    Built only by ReceiptIssuer; `to_bytes` is the canonical encoding.
    """
    receipt_number: str
    transaction_id: int
    transaction_reference: str
    period_id: int
    period_label: str
    description: str
    line_items: List[ReceiptLine]
    amount: int
    method: PaymentMethod
    status: TransactionStatus
    paid_at: str
    payer_name: str
    payer_roll_number: str
    payer_hall: str
    payer_room: str

    class Config:
        frozen = True

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")
