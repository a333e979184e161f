"""
Resident enumerations.
"""

import enum


class ResidentStatus(str, enum.Enum):
    """
    Resident status enumeration.

    Statuses:
        ACTIVE: Currently allotted a room
        INACTIVE: Checked out or suspended
    """
    ACTIVE = "active"
    INACTIVE = "inactive"
