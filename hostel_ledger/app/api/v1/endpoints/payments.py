"""
Payment API Endpoints.

Commit and abandon authorized transactions, and regenerate receipts.
"""

from typing import Optional
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hostel_ledger.app.db.session import get_db
from hostel_ledger.app.core.dependencies import get_actor
from hostel_ledger.app.domain.dues.reconciliation import ReconciliationService
from hostel_ledger.app.domain.dues.receipts import ReceiptIssuer
from hostel_ledger.app.schemas.billing import PaymentAbandonRequest, PaymentTransactionResponse, Receipt
from hostel_ledger.app.schemas.dashboard import CollectionSummary
from hostel_ledger.app.services.queries import QueryService

router = APIRouter(prefix="/payments", tags=["Payments"])


@router.get("/stats", response_model=CollectionSummary)
async def collection_stats(
    resident_id: Optional[int] = Query(None, description="Restrict to one resident"),
    db: AsyncSession = Depends(get_db)
):
    """Collected and outstanding dues by category, and collections by method."""
    return await QueryService.collection_summary(db, resident_id)


@router.post("/{transaction_id}/commit", response_model=Receipt)
async def commit_payment(
    transaction_id: int = Path(..., description="Payment transaction ID"),
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Commit an authorized payment and return its receipt.

    Safe to retry: a committed transaction returns the same receipt.
    """
    return await ReconciliationService.commit(db, transaction_id, actor=actor)


@router.post("/{transaction_id}/abandon", response_model=PaymentTransactionResponse)
async def abandon_payment(
    transaction_id: int = Path(..., description="Payment transaction ID"),
    request: Optional[PaymentAbandonRequest] = None,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Release an authorized payment's items; the transaction becomes failed."""
    reason = request.reason if request else None
    return await ReconciliationService.abandon(db, transaction_id, reason=reason, actor=actor)


@router.get("/{transaction_id}/receipt", response_model=Receipt)
async def get_receipt(
    transaction_id: int = Path(..., description="Payment transaction ID"),
    db: AsyncSession = Depends(get_db)
):
    return await ReceiptIssuer.issue(db, transaction_id)
