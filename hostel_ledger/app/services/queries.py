"""
Query Service.

Read-side projections over residents, dues and complaints for the
resident dashboard and the warden views. Focused on READ-ONLY operations.
"""

import logging
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, desc
from typing import List, Optional

from hostel_ledger.app.core.exceptions import ValidationError
from hostel_ledger.app.domain.complaints.tracker import parse_status, parse_type, parse_priority
from hostel_ledger.app.domain.dues.derivation import derive_period_status, pending_total
from hostel_ledger.app.domain.dues.registry import DuePeriodService
from hostel_ledger.app.models.billing_enums import DueCategory, DueItemStatus, PaymentMethod, TransactionStatus
from hostel_ledger.app.models.complaint import Complaint
from hostel_ledger.app.models.complaint_enums import ComplaintType, ComplaintPriority, ComplaintStatus
from hostel_ledger.app.models.due_period import DuePeriod, DueItem
from hostel_ledger.app.models.enums import ResidentStatus
from hostel_ledger.app.models.payment_transaction import PaymentTransaction
from hostel_ledger.app.models.resident import Resident
from hostel_ledger.app.schemas.billing import DuePeriodResponse, DueItemResponse
from hostel_ledger.app.schemas.complaint import ComplaintCounts
from hostel_ledger.app.schemas.dashboard import CollectionSummary, PeriodSummary, ResidentDashboard
from hostel_ledger.app.services.cache import CacheService, dashboard_key
from hostel_ledger.app.services.claim_locking import get_active_claims
from hostel_ledger.app.services.residents import ResidentService

logger = logging.getLogger(__name__)


class QueryService:

    @staticmethod
    async def period_summaries(db: AsyncSession, resident_id: int) -> List[PeriodSummary]:
        """Per-period totals and derived status for one resident, oldest period first."""
        await ResidentService.get(db, resident_id)
        periods = await DuePeriodService.list_for_resident(db, resident_id)
        if not periods:
            return []

        result = await db.execute(
            select(DueItem)
            .where(DueItem.period_id.in_([p.id for p in periods]))
            .order_by(DueItem.period_id, DueItem.position)
            .execution_options(populate_existing=True)
        )
        items_by_period = {p.id: [] for p in periods}
        for item in result.scalars().all():
            items_by_period[item.period_id].append(item)

        summaries = []
        for period in periods:
            items = items_by_period[period.id]
            summaries.append(PeriodSummary(
                period_id=period.id,
                period_label=period.period_label,
                status=derive_period_status(item.status for item in items),
                total_amount=sum(item.amount for item in items),
                pending_amount=pending_total(items),
                pending_count=sum(1 for item in items if item.status == DueItemStatus.PENDING)
            ))
        return summaries

    @staticmethod
    async def period_detail(db: AsyncSession, period_id: int) -> DuePeriodResponse:
        """A due period with its items, derived totals and live claim flags."""
        period = await DuePeriodService.get(db, period_id)
        items = await DuePeriodService.get_items(db, period_id)
        claims = await get_active_claims(db, period_id)

        return DuePeriodResponse(
            id=period.id,
            resident_id=period.resident_id,
            period_label=period.period_label,
            status=derive_period_status(item.status for item in items),
            total_amount=sum(item.amount for item in items),
            pending_amount=pending_total(items),
            items=[
                DueItemResponse(
                    item_id=item.item_id,
                    category=item.category,
                    label=item.label,
                    amount=item.amount,
                    status=item.status,
                    claimed=item.item_id in claims
                )
                for item in items
            ]
        )

    @staticmethod
    async def total_pending_amount(db: AsyncSession, resident_id: int) -> int:
        query = (
            select(func.sum(DueItem.amount))
            .join(DuePeriod, DuePeriod.id == DueItem.period_id)
            .where(
                DuePeriod.resident_id == resident_id,
                DueItem.status == DueItemStatus.PENDING
            )
        )
        return (await db.execute(query)).scalar() or 0

    @staticmethod
    async def pending_bill_count(db: AsyncSession, resident_id: int) -> int:
        query = (
            select(func.count())
            .select_from(DueItem)
            .join(DuePeriod, DuePeriod.id == DueItem.period_id)
            .where(
                DuePeriod.resident_id == resident_id,
                DueItem.status == DueItemStatus.PENDING
            )
        )
        return (await db.execute(query)).scalar() or 0

    @staticmethod
    async def complaint_counts(db: AsyncSession, resident_id: Optional[int] = None) -> ComplaintCounts:
        """Complaint counts by status, priority and type; every value is present."""
        by_status = {status.value: 0 for status in ComplaintStatus}
        by_priority = {priority.value: 0 for priority in ComplaintPriority}
        by_type = {complaint_type.value: 0 for complaint_type in ComplaintType}

        query = select(Complaint.status, Complaint.priority, Complaint.type, func.count(Complaint.id))
        if resident_id is not None:
            query = query.where(Complaint.resident_id == resident_id)
        query = query.group_by(Complaint.status, Complaint.priority, Complaint.type)

        total = 0
        for status, priority, complaint_type, count in (await db.execute(query)).all():
            by_status[ComplaintStatus(status).value] += count
            by_priority[ComplaintPriority(priority).value] += count
            by_type[ComplaintType(complaint_type).value] += count
            total += count

        return ComplaintCounts(total=total, by_status=by_status, by_priority=by_priority, by_type=by_type)

    @staticmethod
    async def search_residents(
        db: AsyncSession,
        search: Optional[str] = None,
        hall: Optional[str] = None,
        department: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[Resident]:
        """
        Filter residents.

        `search` is a case-insensitive substring of the name or roll number;
        hall, department and status must match exactly. Filters combine with AND.
        """
        query = select(Resident).order_by(Resident.name, Resident.id)

        if search:
            needle = search.strip().lower()
            query = query.where(or_(
                func.lower(Resident.name).contains(needle, autoescape=True),
                func.lower(Resident.roll_number).contains(needle, autoescape=True)
            ))
        if hall:
            query = query.where(Resident.hall == hall)
        if department:
            query = query.where(Resident.department == department)
        if status:
            try:
                query = query.where(Resident.status == ResidentStatus(status))
            except ValueError:
                raise ValidationError(f"Invalid status '{status}'", {"status": status})

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def search_complaints(
        db: AsyncSession,
        search: Optional[str] = None,
        status: Optional[str] = None,
        type: Optional[str] = None,
        priority: Optional[str] = None
    ) -> List[Complaint]:
        """
        Warden view over every complaint, most recent first.

        `search` is a case-insensitive substring of the title, the type,
        the resident's name or the resident's room. Status, type and
        priority must match exactly.
        """
        query = (
            select(Complaint)
            .join(Resident, Resident.id == Complaint.resident_id)
            .order_by(desc(Complaint.created_at), desc(Complaint.id))
        )

        if search:
            needle = search.strip().lower()
            conditions = [
                func.lower(Complaint.title).contains(needle, autoescape=True),
                func.lower(Resident.name).contains(needle, autoescape=True),
                func.lower(Resident.room_number).contains(needle, autoescape=True),
            ]
            # Types are stored by name, so match them on their display value
            types = [t for t in ComplaintType if needle in t.value]
            if types:
                conditions.append(Complaint.type.in_(types))
            query = query.where(or_(*conditions))

        if status is not None:
            query = query.where(Complaint.status == parse_status(status))
        if type is not None:
            query = query.where(Complaint.type == parse_type(type))
        if priority is not None:
            query = query.where(Complaint.priority == parse_priority(priority))

        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def payment_history(db: AsyncSession, resident_id: int) -> List[PaymentTransaction]:
        """Committed transactions of a resident, most recent first."""
        await ResidentService.get(db, resident_id)
        result = await db.execute(
            select(PaymentTransaction)
            .where(
                PaymentTransaction.resident_id == resident_id,
                PaymentTransaction.status == TransactionStatus.COMMITTED
            )
            .order_by(desc(PaymentTransaction.committed_at), desc(PaymentTransaction.id))
        )
        return list(result.scalars().all())

    @staticmethod
    async def collection_summary(db: AsyncSession, resident_id: Optional[int] = None) -> CollectionSummary:
        """
        Collected and outstanding dues by category, and collections by method.

        Paid items are settled by exactly one committed transaction, so the
        category totals and the method totals add up to the same amount.
        Every category and method is present.
        """
        collected = {category.value: 0 for category in DueCategory}
        outstanding = {category.value: 0 for category in DueCategory}
        by_method = {method.value: 0 for method in PaymentMethod}

        item_query = (
            select(DueItem.category, DueItem.status, func.sum(DueItem.amount))
            .join(DuePeriod, DuePeriod.id == DueItem.period_id)
            .group_by(DueItem.category, DueItem.status)
        )
        if resident_id is not None:
            item_query = item_query.where(DuePeriod.resident_id == resident_id)

        for category, item_status, amount in (await db.execute(item_query)).all():
            bucket = collected if DueItemStatus(item_status) == DueItemStatus.PAID else outstanding
            bucket[DueCategory(category).value] += amount or 0

        tx_query = (
            select(PaymentTransaction.method, func.count(PaymentTransaction.id), func.sum(PaymentTransaction.amount))
            .where(PaymentTransaction.status == TransactionStatus.COMMITTED)
            .group_by(PaymentTransaction.method)
        )
        if resident_id is not None:
            tx_query = tx_query.where(PaymentTransaction.resident_id == resident_id)

        committed_count = 0
        for method, count, amount in (await db.execute(tx_query)).all():
            by_method[PaymentMethod(method).value] += amount or 0
            committed_count += count

        return CollectionSummary(
            total_collected=sum(collected.values()),
            total_outstanding=sum(outstanding.values()),
            committed_count=committed_count,
            collected_by_category=collected,
            outstanding_by_category=outstanding,
            collected_by_method=by_method
        )

    @staticmethod
    async def resident_dashboard(db: AsyncSession, resident_id: int) -> ResidentDashboard:
        """
        Resident dashboard: pending dues, period summaries and complaint counts.

        Served from Redis when cached; writes invalidate the entry.
        """
        key = dashboard_key(resident_id)
        cached = await CacheService.get(key)
        if cached is not None:
            logger.debug("Dashboard cache hit for resident %s", resident_id)
            return ResidentDashboard.model_validate(cached)

        periods = await QueryService.period_summaries(db, resident_id)
        dashboard = ResidentDashboard(
            resident_id=resident_id,
            total_pending_amount=await QueryService.total_pending_amount(db, resident_id),
            pending_bill_count=await QueryService.pending_bill_count(db, resident_id),
            periods=periods,
            complaints=await QueryService.complaint_counts(db, resident_id)
        )
        await CacheService.set(key, dashboard.model_dump(mode="json"))
        return dashboard
