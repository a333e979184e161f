"""
Complaint enumerations.
"""

import enum


class ComplaintType(str, enum.Enum):
    """Complaint type enumeration."""
    ELECTRICAL = "electrical"
    PLUMBING = "plumbing"
    HOUSEKEEPING = "housekeeping"
    FURNITURE = "furniture"
    INTERNET = "internet"
    OTHER = "other"


class ComplaintPriority(str, enum.Enum):
    """Complaint priority enumeration."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ComplaintStatus(str, enum.Enum):
    """
    Complaint status enumeration.

    Status flow:
        PENDING → IN_PROGRESS → RESOLVED
        RESOLVED requires an Action Taken Report.
    """
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
