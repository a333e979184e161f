"""
Due Period Registry (Domain Logic).

Creates due periods with their ordered items and loads them back.
"""

import logging
from typing import List, Optional, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from hostel_ledger.app.core.exceptions import NotFoundError, ValidationError, DuplicateResourceError
from hostel_ledger.app.models.due_period import DuePeriod, DueItem
from hostel_ledger.app.models.resident import Resident
from hostel_ledger.app.models.billing_enums import DueCategory, DueItemStatus
from hostel_ledger.app.schemas.billing import DueItemCreate
from hostel_ledger.app.services.audit import record_event, AuditAction
from hostel_ledger.app.services.cache import CacheService

logger = logging.getLogger(__name__)


class DuePeriodService:

    @staticmethod
    async def create(
        db: AsyncSession,
        resident_id: int,
        period_label: str,
        items: Sequence[DueItemCreate],
        actor: Optional[str] = None
    ) -> DuePeriod:
        """
        Create a due period and its items, all pending.

        Validates:
        - Resident exists
        - Label is not blank and unused for this resident
        - At least one item, unique item ids, non-negative integer amounts
        """
        resident = await db.get(Resident, resident_id)
        if not resident:
            raise NotFoundError("Resident", resident_id)

        period_label = (period_label or "").strip()
        if not period_label:
            raise ValidationError("period_label must not be empty")
        if not items:
            raise ValidationError("A due period needs at least one item", {"period_label": period_label})

        rows = []
        seen = set()
        for position, item in enumerate(items):
            category = DueCategory(item.category)
            item_id = (item.item_id or category.value).strip()
            if not item_id:
                raise ValidationError("item_id must not be empty", {"position": position})
            if item_id in seen:
                raise ValidationError(f"Duplicate item id '{item_id}'", {"item_id": item_id})
            if isinstance(item.amount, bool) or not isinstance(item.amount, int) or item.amount < 0:
                raise ValidationError(
                    f"Amount for '{item_id}' must be a non-negative integer",
                    {"item_id": item_id, "amount": item.amount}
                )
            seen.add(item_id)
            rows.append((item_id, category, (item.label or category.default_label).strip(), item.amount, position))

        existing = await db.execute(
            select(DuePeriod.id).where(
                DuePeriod.resident_id == resident_id,
                DuePeriod.period_label == period_label
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise DuplicateResourceError(
                f"Due period '{period_label}' already exists for resident {resident_id}",
                {"resident_id": resident_id, "period_label": period_label}
            )

        period = DuePeriod(resident_id=resident_id, period_label=period_label)
        db.add(period)
        await db.flush()  # To get period.id

        db.add_all([
            DueItem(
                period_id=period.id,
                item_id=item_id,
                category=category,
                label=label,
                amount=amount,
                position=position,
                status=DueItemStatus.PENDING
            )
            for item_id, category, label, amount, position in rows
        ])

        record_event(
            db,
            AuditAction.DUE_PERIOD_CREATED,
            resident_id=resident_id,
            actor_username=actor,
            metadata={"period_id": period.id, "label": period_label, "items": [r[0] for r in rows]}
        )
        await db.commit()
        await db.refresh(period)
        await CacheService.invalidate_resident(resident_id)

        logger.info(
            "Created due period %s (%s) for resident %s with %d items",
            period.id, period_label, resident_id, len(rows)
        )
        return period

    @staticmethod
    async def get(db: AsyncSession, period_id: int, for_update: bool = False) -> DuePeriod:
        """
        Load a due period.

        Raises:
            NotFoundError: if the period does not exist
        """
        stmt = select(DuePeriod).where(DuePeriod.id == period_id)
        if for_update:
            stmt = stmt.with_for_update().execution_options(populate_existing=True)
        result = await db.execute(stmt)
        period = result.scalar_one_or_none()
        if not period:
            raise NotFoundError("Due period", period_id)
        return period

    @staticmethod
    async def get_items(db: AsyncSession, period_id: int) -> List[DueItem]:
        """Items of a period in their billing order, freshly read."""
        result = await db.execute(
            select(DueItem)
            .where(DueItem.period_id == period_id)
            .order_by(DueItem.position)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_for_resident(db: AsyncSession, resident_id: int) -> List[DuePeriod]:
        result = await db.execute(
            select(DuePeriod)
            .where(DuePeriod.resident_id == resident_id)
            .order_by(DuePeriod.id)
        )
        return list(result.scalars().all())
