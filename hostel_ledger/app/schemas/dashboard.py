"""
Dashboard Schemas.
"""

from pydantic import BaseModel
from typing import Dict, List
from hostel_ledger.app.models.billing_enums import PeriodStatus
from hostel_ledger.app.schemas.complaint import ComplaintCounts


class PeriodSummary(BaseModel):
    period_id: int
    period_label: str
    status: PeriodStatus
    total_amount: int
    pending_amount: int
    pending_count: int


class ResidentDashboard(BaseModel):
    resident_id: int
    total_pending_amount: int
    pending_bill_count: int
    periods: List[PeriodSummary]
    complaints: ComplaintCounts


class CollectionSummary(BaseModel):
    """Collected and outstanding dues, zero-filled by category and method."""
    total_collected: int
    total_outstanding: int
    committed_count: int
    collected_by_category: Dict[str, int]
    outstanding_by_category: Dict[str, int]
    collected_by_method: Dict[str, int]
