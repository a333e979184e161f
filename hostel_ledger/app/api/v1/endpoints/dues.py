"""
Dues API Endpoints.

Due period creation and lookup, settlement quotes and payment
authorization.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from hostel_ledger.app.db.session import get_db
from hostel_ledger.app.core.dependencies import get_actor
from hostel_ledger.app.domain.dues.registry import DuePeriodService
from hostel_ledger.app.domain.dues.reconciliation import ReconciliationService
from hostel_ledger.app.domain.dues.transactions import get_transaction
from hostel_ledger.app.schemas.billing import (
    DuePeriodCreate, DuePeriodResponse, SettlementQuote,
    PaymentAuthorizeRequest, PaymentTransactionResponse
)
from hostel_ledger.app.schemas.dashboard import PeriodSummary
from hostel_ledger.app.services.queries import QueryService

resident_router = APIRouter(prefix="/residents", tags=["Dues"])
router = APIRouter(prefix="/due-periods", tags=["Dues"])


@resident_router.post(
    "/{resident_id}/due-periods",
    response_model=DuePeriodResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_due_period(
    resident_id: int = Path(..., description="Resident ID"),
    period_data: DuePeriodCreate = ...,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a due period with its items, all pending.

    Validates:
    - Resident exists
    - Period label is unique for the resident
    - Item ids are unique and amounts are non-negative
    """
    period = await DuePeriodService.create(
        db, resident_id, period_data.period_label, period_data.items, actor=actor
    )
    return await QueryService.period_detail(db, period.id)


@resident_router.get("/{resident_id}/due-periods", response_model=List[PeriodSummary])
async def list_due_periods(
    resident_id: int = Path(..., description="Resident ID"),
    db: AsyncSession = Depends(get_db)
):
    return await QueryService.period_summaries(db, resident_id)


@router.get("/{period_id}", response_model=DuePeriodResponse)
async def get_due_period(
    period_id: int = Path(..., description="Due period ID"),
    db: AsyncSession = Depends(get_db)
):
    return await QueryService.period_detail(db, period_id)


@router.get("/{period_id}/quote", response_model=SettlementQuote)
async def quote_settlement(
    period_id: int = Path(..., description="Due period ID"),
    item_ids: Optional[List[str]] = Query(None, description="Omit to quote every pending item"),
    db: AsyncSession = Depends(get_db)
):
    """Price a settlement without reserving anything."""
    return await ReconciliationService.quote_settlement(db, period_id, item_ids)


@router.post(
    "/{period_id}/payments",
    response_model=PaymentTransactionResponse,
    status_code=status.HTTP_201_CREATED
)
async def authorize_payment(
    period_id: int = Path(..., description="Due period ID"),
    request: PaymentAuthorizeRequest = ...,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Authorize a payment, claiming the selected items.

    Without item_ids every free item of the period is claimed ("Pay All").
    Returns 409 if an item is already paid or claimed.
    """
    item_ids = request.item_ids
    if item_ids is None:
        quote = await ReconciliationService.quote_settlement(db, period_id)
        item_ids = quote.item_ids

    transaction_id = await ReconciliationService.authorize(
        db, period_id, item_ids, request.method, actor=actor
    )
    return await get_transaction(db, transaction_id)
