"""
Complaint API Endpoints.

Residents raise complaints; wardens advance them and close them with an
Action Taken Report.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from hostel_ledger.app.db.session import get_db
from hostel_ledger.app.core.dependencies import get_actor
from hostel_ledger.app.domain.complaints.derivation import complaint_to_response
from hostel_ledger.app.domain.complaints.tracker import ComplaintTracker
from hostel_ledger.app.schemas.complaint import (
    ComplaintCreate, ComplaintResponse, ComplaintAdvanceResponse, ComplaintCounts, ATRCreate
)
from hostel_ledger.app.services.queries import QueryService
from hostel_ledger.app.services.residents import ResidentService

resident_router = APIRouter(prefix="/residents", tags=["Complaints"])
router = APIRouter(prefix="/complaints", tags=["Complaints"])


@resident_router.post(
    "/{resident_id}/complaints",
    response_model=ComplaintResponse,
    status_code=status.HTTP_201_CREATED
)
async def create_complaint(
    resident_id: int = Path(..., description="Resident ID"),
    complaint_data: ComplaintCreate = ...,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    complaint_id = await ComplaintTracker.create(
        db,
        resident_id,
        complaint_data.type,
        complaint_data.title,
        complaint_data.description,
        complaint_data.priority,
        actor=actor
    )
    return complaint_to_response(await ComplaintTracker.get(db, complaint_id))


@resident_router.get("/{resident_id}/complaints", response_model=List[ComplaintResponse])
async def list_resident_complaints(
    resident_id: int = Path(..., description="Resident ID"),
    status: Optional[str] = Query(None, description="pending, in-progress or resolved"),
    type: Optional[str] = Query(None, description="Complaint category"),
    priority: Optional[str] = Query(None, description="low, medium or high"),
    db: AsyncSession = Depends(get_db)
):
    """A resident's complaints, most recent first."""
    await ResidentService.get(db, resident_id)
    complaints = await ComplaintTracker.list(
        db, resident_id=resident_id, status=status, type=type, priority=priority
    )
    return [complaint_to_response(c) for c in complaints]


@router.get("", response_model=List[ComplaintResponse])
async def search_complaints(
    search: Optional[str] = Query(None, description="Substring of title, type, resident name or room"),
    status: Optional[str] = Query(None, description="pending, in-progress or resolved"),
    type: Optional[str] = Query(None, description="Complaint category"),
    priority: Optional[str] = Query(None, description="low, medium or high"),
    db: AsyncSession = Depends(get_db)
):
    """Warden view over every complaint."""
    complaints = await QueryService.search_complaints(
        db, search=search, status=status, type=type, priority=priority
    )
    return [complaint_to_response(c) for c in complaints]


@router.get("/stats", response_model=ComplaintCounts)
async def complaint_stats(
    resident_id: Optional[int] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    return await QueryService.complaint_counts(db, resident_id)


@router.post("/{complaint_id}/advance", response_model=ComplaintAdvanceResponse)
async def advance_complaint(
    complaint_id: int = Path(..., description="Complaint ID"),
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """Start work on a pending complaint."""
    new_status = await ComplaintTracker.advance(db, complaint_id, actor=actor)
    return ComplaintAdvanceResponse(complaint_id=complaint_id, status=new_status)


@router.post("/{complaint_id}/atr", response_model=ComplaintResponse)
async def attach_atr(
    complaint_id: int = Path(..., description="Complaint ID"),
    atr: ATRCreate = ...,
    actor: Optional[str] = Depends(get_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Attach an Action Taken Report, resolving the complaint.

    Only an in-progress complaint accepts an ATR.
    """
    await ComplaintTracker.attach_atr(db, complaint_id, atr, actor=actor)
    return complaint_to_response(await ComplaintTracker.get(db, complaint_id))
