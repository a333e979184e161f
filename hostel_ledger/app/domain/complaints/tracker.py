"""
Complaint Lifecycle Tracker (Domain Logic).

State machine:
    PENDING --advance--> IN_PROGRESS --attach_atr--> RESOLVED

Resolution and the Action Taken Report are written together; a pending
complaint can never carry an ATR and a resolved one always does.
Transitions run under a critical section keyed by the complaint.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, desc

from hostel_ledger.app.core.exceptions import NotFoundError, ValidationError, InvalidTransitionError
from hostel_ledger.app.core.locks import complaint_locks
from hostel_ledger.app.models.complaint import Complaint
from hostel_ledger.app.models.complaint_enums import ComplaintType, ComplaintPriority, ComplaintStatus
from hostel_ledger.app.models.resident import Resident
from hostel_ledger.app.schemas.complaint import ATRCreate
from hostel_ledger.app.services.audit import record_event, AuditAction
from hostel_ledger.app.services.cache import CacheService

logger = logging.getLogger(__name__)


def _parse(enum_cls, value, field: str):
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Expected one of: {allowed}", {field: value})


def parse_status(value) -> ComplaintStatus:
    return _parse(ComplaintStatus, value, "status")


def parse_type(value) -> ComplaintType:
    return _parse(ComplaintType, value, "type")


def parse_priority(value) -> ComplaintPriority:
    return _parse(ComplaintPriority, value, "priority")


class ComplaintTracker:

    @staticmethod
    async def create(
        db: AsyncSession,
        resident_id: int,
        type,
        title: str,
        description: str,
        priority="medium",
        actor: Optional[str] = None
    ) -> int:
        """
        Register a new PENDING complaint.

        Returns:
            The complaint id

        Raises:
            ValidationError: blank title/description, unknown type or priority
            NotFoundError: unknown resident
        """
        complaint_type = parse_type(type)
        complaint_priority = parse_priority(priority)
        title = (title or "").strip()
        description = (description or "").strip()
        if not title:
            raise ValidationError("title must not be empty")
        if not description:
            raise ValidationError("description must not be empty")

        if not await db.get(Resident, resident_id):
            raise NotFoundError("Resident", resident_id)

        complaint = Complaint(
            resident_id=resident_id,
            type=complaint_type,
            title=title,
            description=description,
            priority=complaint_priority,
            status=ComplaintStatus.PENDING,
            created_at=datetime.now(timezone.utc)
        )
        db.add(complaint)
        await db.flush()

        record_event(
            db,
            AuditAction.COMPLAINT_CREATED,
            resident_id=resident_id,
            actor_username=actor,
            metadata={"complaint_id": complaint.id, "type": complaint_type.value, "priority": complaint_priority.value}
        )
        await db.commit()
        await CacheService.invalidate_resident(resident_id)

        logger.info("Complaint %s created for resident %s (%s)", complaint.id, resident_id, complaint_type.value)
        return complaint.id

    @staticmethod
    async def get(db: AsyncSession, complaint_id: int, for_update: bool = False) -> Complaint:
        stmt = (
            select(Complaint)
            .where(Complaint.id == complaint_id)
            .execution_options(populate_existing=True)
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await db.execute(stmt)
        complaint = result.scalar_one_or_none()
        if not complaint:
            raise NotFoundError("Complaint", complaint_id)
        return complaint

    @staticmethod
    async def _transition(
        db: AsyncSession,
        complaint_id: int,
        expected: ComplaintStatus,
        attempted: str,
        **values
    ) -> None:
        """
        Write `values` only while the complaint is still in `expected`.

        Raises InvalidTransitionError when the row has already moved on.
        """
        result = await db.execute(
            update(Complaint)
            .where(Complaint.id == complaint_id, Complaint.status == expected)
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            await db.rollback()
            current = await ComplaintTracker.get(db, complaint_id)
            logger.warning("Complaint %s moved to %s before %s", complaint_id, current.status.value, attempted)
            raise InvalidTransitionError(complaint_id, current.status.value, attempted)

    @staticmethod
    async def advance(db: AsyncSession, complaint_id: int, actor: Optional[str] = None) -> ComplaintStatus:
        """
        Move a complaint from PENDING to IN_PROGRESS.

        Raises:
            NotFoundError: unknown complaint
            InvalidTransitionError: the complaint is not PENDING
        """
        async with complaint_locks.hold(complaint_id):
            complaint = await ComplaintTracker.get(db, complaint_id, for_update=True)
            resident_id = complaint.resident_id

            if complaint.status != ComplaintStatus.PENDING:
                current = complaint.status.value
                logger.warning("Complaint %s cannot advance from %s", complaint_id, current)
                await db.rollback()
                raise InvalidTransitionError(complaint_id, current, "advance")

            await ComplaintTracker._transition(
                db, complaint_id, ComplaintStatus.PENDING, "advance",
                status=ComplaintStatus.IN_PROGRESS,
                started_at=datetime.now(timezone.utc)
            )

            record_event(
                db,
                AuditAction.COMPLAINT_ADVANCED,
                resident_id=resident_id,
                actor_username=actor,
                metadata={"complaint_id": complaint_id, "status": ComplaintStatus.IN_PROGRESS.value}
            )
            await db.commit()

        await CacheService.invalidate_resident(resident_id)
        logger.info("Complaint %s is now in progress", complaint_id)
        return ComplaintStatus.IN_PROGRESS

    @staticmethod
    async def attach_atr(
        db: AsyncSession,
        complaint_id: int,
        atr: ATRCreate,
        actor: Optional[str] = None
    ) -> None:
        """
        Attach an Action Taken Report and resolve the complaint.

        Raises:
            NotFoundError: unknown complaint
            InvalidTransitionError: the complaint is not IN_PROGRESS
            ValidationError: action_taken, action_by or completion_date missing
        """
        async with complaint_locks.hold(complaint_id):
            complaint = await ComplaintTracker.get(db, complaint_id, for_update=True)
            resident_id = complaint.resident_id

            if complaint.status != ComplaintStatus.IN_PROGRESS:
                current = complaint.status.value
                logger.warning("ATR rejected for complaint %s in status %s", complaint_id, current)
                await db.rollback()
                raise InvalidTransitionError(complaint_id, current, "attach an ATR")

            action_taken = (atr.action_taken or "").strip()
            action_by = (atr.action_by or "").strip()
            missing = [
                field for field, value in (
                    ("action_taken", action_taken),
                    ("action_by", action_by),
                    ("completion_date", atr.completion_date),
                )
                if not value
            ]
            if missing:
                await db.rollback()
                raise ValidationError(
                    f"Action Taken Report is missing: {', '.join(missing)}",
                    {"complaint_id": complaint_id, "missing": missing}
                )

            await ComplaintTracker._transition(
                db, complaint_id, ComplaintStatus.IN_PROGRESS, "attach an ATR",
                atr_action_taken=action_taken,
                atr_action_by=action_by,
                atr_completion_date=atr.completion_date,
                atr_remarks=(atr.remarks or "").strip() or None,
                status=ComplaintStatus.RESOLVED,
                resolved_at=datetime.now(timezone.utc)
            )

            record_event(
                db,
                AuditAction.COMPLAINT_RESOLVED,
                resident_id=resident_id,
                actor_username=actor,
                metadata={"complaint_id": complaint_id, "action_by": action_by}
            )
            await db.commit()

        await CacheService.invalidate_resident(resident_id)
        logger.info("Complaint %s resolved by %s", complaint_id, action_by)

    @staticmethod
    async def list(
        db: AsyncSession,
        resident_id: Optional[int] = None,
        status=None,
        type=None,
        priority=None
    ) -> List[Complaint]:
        """
        List complaints, most recent first.

        Args:
            resident_id: Restrict to one resident's complaints
            status: Optional status filter ("pending", "in-progress", "resolved")
            type: Optional category filter ("electrical", "plumbing", ...)
            priority: Optional priority filter ("low", "medium", "high")
        """
        query = select(Complaint).order_by(desc(Complaint.created_at), desc(Complaint.id))

        if resident_id is not None:
            query = query.where(Complaint.resident_id == resident_id)

        if status is not None:
            query = query.where(Complaint.status == parse_status(status))

        if type is not None:
            query = query.where(Complaint.type == parse_type(type))

        if priority is not None:
            query = query.where(Complaint.priority == parse_priority(priority))

        result = await db.execute(query)
        return list(result.scalars().all())
