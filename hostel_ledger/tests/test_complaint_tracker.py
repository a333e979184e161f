"""
Complaint Lifecycle Tests.

PENDING -> IN_PROGRESS -> RESOLVED, with the ATR written at resolution.
"""

from datetime import date

import pytest

from hostel_ledger.app.core.exceptions import NotFoundError, ValidationError, InvalidTransitionError
from hostel_ledger.app.domain.complaints.derivation import complaint_to_response
from hostel_ledger.app.domain.complaints.tracker import ComplaintTracker
from hostel_ledger.app.models.complaint_enums import ComplaintStatus, ComplaintType, ComplaintPriority
from hostel_ledger.app.schemas.complaint import ATRCreate


@pytest.fixture
async def complaint_id(db_session, resident_id):
    return await ComplaintTracker.create(
        db_session, resident_id, "plumbing", "Leaking tap", "Bathroom tap leaks all night", "medium"
    )


TAP_REPLACED = ATRCreate(
    action_taken="Tap replaced",
    action_by="Mr. Sharma",
    completion_date=date(2024, 10, 18),
)


@pytest.mark.asyncio
async def test_plumbing_complaint_lifecycle(db_session, complaint_id):
    complaint = await ComplaintTracker.get(db_session, complaint_id)
    assert complaint.type == ComplaintType.PLUMBING
    assert complaint.priority == ComplaintPriority.MEDIUM
    assert complaint.status == ComplaintStatus.PENDING
    assert not complaint.has_atr

    # ATR before work has started
    with pytest.raises(InvalidTransitionError):
        await ComplaintTracker.attach_atr(db_session, complaint_id, TAP_REPLACED)

    assert await ComplaintTracker.advance(db_session, complaint_id) == ComplaintStatus.IN_PROGRESS

    await ComplaintTracker.attach_atr(db_session, complaint_id, TAP_REPLACED)

    complaint = await ComplaintTracker.get(db_session, complaint_id)
    assert complaint.status == ComplaintStatus.RESOLVED
    assert complaint.atr_action_taken == "Tap replaced"
    assert complaint.atr_action_by == "Mr. Sharma"
    assert complaint.atr_completion_date == date(2024, 10, 18)
    assert complaint.started_at is not None
    assert complaint.resolved_at is not None

    response = complaint_to_response(complaint)
    assert response.atr.action_taken == "Tap replaced"
    assert response.badge.status_text == "Resolved"


@pytest.mark.asyncio
async def test_illegal_transitions(db_session, complaint_id):
    await ComplaintTracker.advance(db_session, complaint_id)

    with pytest.raises(InvalidTransitionError):
        await ComplaintTracker.advance(db_session, complaint_id)

    await ComplaintTracker.attach_atr(db_session, complaint_id, TAP_REPLACED)

    with pytest.raises(InvalidTransitionError):
        await ComplaintTracker.advance(db_session, complaint_id)

    with pytest.raises(InvalidTransitionError):
        await ComplaintTracker.attach_atr(db_session, complaint_id, TAP_REPLACED)


@pytest.mark.asyncio
@pytest.mark.parametrize("atr", [
    ATRCreate(action_taken="", action_by="Mr. Sharma", completion_date=date(2024, 10, 18)),
    ATRCreate(action_taken="Tap replaced", action_by="  ", completion_date=date(2024, 10, 18)),
    ATRCreate(action_taken="Tap replaced", action_by="Mr. Sharma"),
])
async def test_incomplete_atr_is_rejected(db_session, complaint_id, atr):
    await ComplaintTracker.advance(db_session, complaint_id)

    with pytest.raises(ValidationError):
        await ComplaintTracker.attach_atr(db_session, complaint_id, atr)

    complaint = await ComplaintTracker.get(db_session, complaint_id)
    assert complaint.status == ComplaintStatus.IN_PROGRESS
    assert not complaint.has_atr


@pytest.mark.asyncio
async def test_create_validation(db_session, resident_id):
    with pytest.raises(ValidationError):
        await ComplaintTracker.create(db_session, resident_id, "noise", "Loud music", "Every night", "low")

    with pytest.raises(ValidationError):
        await ComplaintTracker.create(db_session, resident_id, "internet", "Wi-Fi down", "No signal", "urgent")

    with pytest.raises(ValidationError):
        await ComplaintTracker.create(db_session, resident_id, "internet", "  ", "No signal", "high")

    with pytest.raises(ValidationError):
        await ComplaintTracker.create(db_session, resident_id, "internet", "Wi-Fi down", "", "high")

    with pytest.raises(NotFoundError):
        await ComplaintTracker.create(db_session, 9999, "internet", "Wi-Fi down", "No signal", "high")

    assert await ComplaintTracker.list(db_session, resident_id=resident_id) == []


@pytest.mark.asyncio
async def test_unknown_complaint(db_session):
    with pytest.raises(NotFoundError):
        await ComplaintTracker.advance(db_session, 404)

    with pytest.raises(NotFoundError):
        await ComplaintTracker.attach_atr(db_session, 404, TAP_REPLACED)


@pytest.mark.asyncio
async def test_list_is_most_recent_first(db_session, resident_id):
    first = await ComplaintTracker.create(db_session, resident_id, "electrical", "Fan broken", "Ceiling fan", "high")
    second = await ComplaintTracker.create(db_session, resident_id, "furniture", "Chair", "Chair leg loose", "low")
    third = await ComplaintTracker.create(db_session, resident_id, "internet", "Wi-Fi", "Slow", "medium")
    await ComplaintTracker.advance(db_session, second)

    complaints = await ComplaintTracker.list(db_session, resident_id=resident_id)
    assert [c.id for c in complaints] == [third, second, first]

    in_progress = await ComplaintTracker.list(db_session, resident_id=resident_id, status="in-progress")
    assert [c.id for c in in_progress] == [second]

    high = await ComplaintTracker.list(db_session, resident_id=resident_id, priority="high")
    assert [c.id for c in high] == [first]

    furniture = await ComplaintTracker.list(db_session, type="furniture", status="in-progress")
    assert [c.id for c in furniture] == [second]
    assert await ComplaintTracker.list(db_session, type="internet", priority="low") == []

    with pytest.raises(ValidationError):
        await ComplaintTracker.list(db_session, status="closed")

    with pytest.raises(ValidationError):
        await ComplaintTracker.list(db_session, type="noise")

    with pytest.raises(ValidationError):
        await ComplaintTracker.list(db_session, priority="urgent")
