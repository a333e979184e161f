"""
Resident registry service.
"""

import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from hostel_ledger.app.core.exceptions import NotFoundError, DuplicateResourceError
from hostel_ledger.app.models.resident import Resident
from hostel_ledger.app.schemas.resident import ResidentCreate
from hostel_ledger.app.services.audit import record_event, AuditAction

logger = logging.getLogger(__name__)


class ResidentService:

    @staticmethod
    async def create(db: AsyncSession, data: ResidentCreate, actor: Optional[str] = None) -> Resident:
        """
        Register a resident.

        Raises:
            DuplicateResourceError: if the roll number is already registered
        """
        roll_number = data.roll_number.strip()
        existing = await db.execute(select(Resident.id).where(Resident.roll_number == roll_number))
        if existing.scalar_one_or_none() is not None:
            raise DuplicateResourceError(
                f"Roll number {roll_number} is already registered",
                {"roll_number": roll_number}
            )

        resident = Resident(
            name=data.name.strip(),
            roll_number=roll_number,
            hall=data.hall.strip(),
            room_number=data.room_number.strip(),
            department=data.department.strip(),
            email=data.email,
            status=data.status
        )
        db.add(resident)
        await db.flush()

        record_event(
            db,
            AuditAction.RESIDENT_CREATED,
            resident_id=resident.id,
            actor_username=actor,
            metadata={"roll_number": roll_number}
        )
        await db.commit()
        await db.refresh(resident)

        logger.info("Registered resident %s (%s)", resident.id, roll_number)
        return resident

    @staticmethod
    async def get(db: AsyncSession, resident_id: int) -> Resident:
        resident = await db.get(Resident, resident_id)
        if not resident:
            raise NotFoundError("Resident", resident_id)
        return resident
