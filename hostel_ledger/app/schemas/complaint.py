"""
Complaint Pydantic schemas.

Type and priority arrive as plain strings and are validated by the
complaint tracker, so bad values surface as ERR_VALIDATION_001.
"""

from pydantic import BaseModel, Field, field_validator
from datetime import datetime, date
from typing import Optional, Dict
from hostel_ledger.app.models.complaint_enums import ComplaintType, ComplaintPriority, ComplaintStatus


class ComplaintCreate(BaseModel):
    """Schema for submitting a complaint."""
    type: str = Field(..., description="electrical, plumbing, housekeeping, furniture, internet or other")
    title: str = Field(..., max_length=200)
    description: str
    priority: str = Field("medium", description="low, medium or high")


class ATRCreate(BaseModel):
    """
    Schema for an Action Taken Report.

    Every field may arrive blank; the complaint tracker rejects an
    incomplete report only once the complaint is known to be in progress.
    """
    action_taken: Optional[str] = None
    action_by: Optional[str] = None
    completion_date: Optional[date] = None
    remarks: Optional[str] = None

    @field_validator("completion_date", mode="before")
    @classmethod
    def blank_date_is_missing(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ATRResponse(BaseModel):
    action_taken: str
    action_by: str
    completion_date: date
    remarks: Optional[str]


class ComplaintBadge(BaseModel):
    status_class: str
    status_text: str
    priority_class: str
    priority_text: str


class ComplaintResponse(BaseModel):
    """Schema for complaint response."""
    id: int
    resident_id: int
    type: ComplaintType
    title: str
    description: str
    priority: ComplaintPriority
    status: ComplaintStatus
    created_at: datetime
    started_at: Optional[datetime]
    resolved_at: Optional[datetime]
    atr: Optional[ATRResponse]
    badge: ComplaintBadge


class ComplaintAdvanceResponse(BaseModel):
    complaint_id: int
    status: ComplaintStatus


class ComplaintCounts(BaseModel):
    """Complaint counts by status, priority and type, zero-filled."""
    total: int
    by_status: Dict[str, int]
    by_priority: Dict[str, int]
    by_type: Dict[str, int]
