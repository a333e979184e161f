"""
Derived due period state.

Pure functions; the period status is computed from item statuses every
time it is read and never written back.
"""

from typing import Iterable

from hostel_ledger.app.models.billing_enums import DueItemStatus, PeriodStatus


def derive_period_status(item_statuses: Iterable[DueItemStatus]) -> PeriodStatus:
    """
    Derive a due period's status from its items.

    PAID when every item is paid, PENDING when none is, PARTIAL otherwise.
    A period without items counts as PENDING.
    """
    statuses = [DueItemStatus(s) for s in item_statuses]
    paid = sum(1 for s in statuses if s == DueItemStatus.PAID)

    if statuses and paid == len(statuses):
        return PeriodStatus.PAID
    if paid == 0:
        return PeriodStatus.PENDING
    return PeriodStatus.PARTIAL


def pending_total(items) -> int:
    """Sum of the amounts of items still pending."""
    return sum(item.amount for item in items if item.status == DueItemStatus.PENDING)
