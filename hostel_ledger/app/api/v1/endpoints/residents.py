"""
Resident API Endpoints.

Resident registration, lookup and the resident-facing read views.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from hostel_ledger.app.db.session import get_db
from hostel_ledger.app.core.dependencies import get_actor
from hostel_ledger.app.schemas.resident import ResidentCreate, ResidentResponse
from hostel_ledger.app.schemas.billing import PaymentTransactionResponse
from hostel_ledger.app.schemas.dashboard import ResidentDashboard
from hostel_ledger.app.services.residents import ResidentService
from hostel_ledger.app.services.queries import QueryService

router = APIRouter(prefix="/residents", tags=["Residents"])


@router.post("", response_model=ResidentResponse, status_code=status.HTTP_201_CREATED)
async def register_resident(
    resident_data: ResidentCreate,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Register a resident.

    Returns 409 if the roll number is already registered.
    """
    return await ResidentService.create(db, resident_data, actor=actor)


@router.get("", response_model=List[ResidentResponse])
async def search_residents(
    search: Optional[str] = Query(None, description="Substring of name or roll number"),
    hall: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    status: Optional[str] = Query(None, description="active or inactive"),
    db: AsyncSession = Depends(get_db)
):
    """Search residents; all filters are combined."""
    return await QueryService.search_residents(
        db, search=search, hall=hall, department=department, status=status
    )


@router.get("/{resident_id}", response_model=ResidentResponse)
async def get_resident(
    resident_id: int = Path(..., description="Resident ID"),
    db: AsyncSession = Depends(get_db)
):
    return await ResidentService.get(db, resident_id)


@router.get("/{resident_id}/dashboard", response_model=ResidentDashboard)
async def get_resident_dashboard(
    resident_id: int = Path(..., description="Resident ID"),
    db: AsyncSession = Depends(get_db)
):
    """
    Resident dashboard.

    Pending dues, bill count, per-period summaries and complaint counts.
    """
    return await QueryService.resident_dashboard(db, resident_id)


@router.get("/{resident_id}/payments", response_model=List[PaymentTransactionResponse])
async def get_payment_history(
    resident_id: int = Path(..., description="Resident ID"),
    db: AsyncSession = Depends(get_db)
):
    """Committed payments, most recent first."""
    return await QueryService.payment_history(db, resident_id)
