"""
Derived complaint display state.
"""

from hostel_ledger.app.models.complaint_enums import ComplaintStatus, ComplaintPriority
from hostel_ledger.app.schemas.complaint import ComplaintBadge, ComplaintResponse, ATRResponse


STATUS_BADGES = {
    ComplaintStatus.PENDING: ("status-pending", "Pending"),
    ComplaintStatus.IN_PROGRESS: ("status-progress", "In Progress"),
    ComplaintStatus.RESOLVED: ("status-resolved", "Resolved"),
}

PRIORITY_BADGES = {
    ComplaintPriority.LOW: ("priority-low", "Low"),
    ComplaintPriority.MEDIUM: ("priority-medium", "Medium"),
    ComplaintPriority.HIGH: ("priority-high", "High"),
}


def derive_complaint_badge(status: ComplaintStatus, priority: ComplaintPriority) -> ComplaintBadge:
    status_class, status_text = STATUS_BADGES[ComplaintStatus(status)]
    priority_class, priority_text = PRIORITY_BADGES[ComplaintPriority(priority)]
    return ComplaintBadge(
        status_class=status_class,
        status_text=status_text,
        priority_class=priority_class,
        priority_text=priority_text,
    )


def complaint_to_response(complaint) -> ComplaintResponse:
    """Render a Complaint row with its ATR and badge."""
    atr = None
    if complaint.has_atr:
        atr = ATRResponse(
            action_taken=complaint.atr_action_taken,
            action_by=complaint.atr_action_by,
            completion_date=complaint.atr_completion_date,
            remarks=complaint.atr_remarks,
        )
    return ComplaintResponse(
        id=complaint.id,
        resident_id=complaint.resident_id,
        type=complaint.type,
        title=complaint.title,
        description=complaint.description,
        priority=complaint.priority,
        status=complaint.status,
        created_at=complaint.created_at,
        started_at=complaint.started_at,
        resolved_at=complaint.resolved_at,
        atr=atr,
        badge=derive_complaint_badge(complaint.status, complaint.priority),
    )
