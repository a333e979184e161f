"""
Resident Pydantic schemas.
"""

from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional
from hostel_ledger.app.models.enums import ResidentStatus


class ResidentCreate(BaseModel):
    """Schema for registering a resident."""
    name: str = Field(..., min_length=1, max_length=150)
    roll_number: str = Field(..., min_length=1, max_length=50, description="Unique roll number")
    hall: str = Field(..., min_length=1, max_length=50, description="Hall of residence, e.g. 'Hall 5'")
    room_number: str = Field(..., min_length=1, max_length=20)
    department: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    status: ResidentStatus = ResidentStatus.ACTIVE


class ResidentResponse(BaseModel):
    """Schema for resident response."""
    id: int
    name: str
    roll_number: str
    hall: str
    room_number: str
    department: str
    email: Optional[str]
    status: ResidentStatus
    created_at: datetime

    class Config:
        from_attributes = True
