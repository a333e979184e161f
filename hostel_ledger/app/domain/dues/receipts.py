"""
Receipt Issuer (Domain Logic).

Receipts are never stored. They are projected from a committed payment
transaction, its items and the payer snapshot taken at commit, so the
same transaction always yields the same bytes.
"""

from datetime import datetime, timezone
from typing import Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from hostel_ledger.app.core.exceptions import TransactionNotCommittedError
from hostel_ledger.app.domain.dues.transactions import get_transaction, get_transaction_items
from hostel_ledger.app.models.due_period import DuePeriod, DueItem
from hostel_ledger.app.models.payment_transaction import PaymentTransaction
from hostel_ledger.app.models.billing_enums import TransactionStatus
from hostel_ledger.app.schemas.billing import Receipt, ReceiptLine


def receipt_number(transaction_id: int) -> str:
    return f"RCPT-{transaction_id:06d}"


def format_paid_at(value: datetime) -> str:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def describe(items: Sequence[DueItem], period_label: str, period_item_count: int) -> str:
    if len(items) == 1:
        name = items[0].label
    elif len(items) == period_item_count:
        name = "All Bills"
    else:
        name = "Selected Bills"
    return f"{name} - {period_label}"


def build_receipt(
    transaction: PaymentTransaction,
    items: Sequence[DueItem],
    period: DuePeriod,
    period_item_count: int
) -> Receipt:
    """
    Project a committed transaction into a Receipt.

    Pure: reads only the arguments.
    """
    if transaction.status != TransactionStatus.COMMITTED:
        raise TransactionNotCommittedError(transaction.id, transaction.status.value)

    return Receipt(
        receipt_number=receipt_number(transaction.id),
        transaction_id=transaction.id,
        transaction_reference=transaction.reference,
        period_id=period.id,
        period_label=period.period_label,
        description=describe(items, period.period_label, period_item_count),
        line_items=[
            ReceiptLine(item_id=item.item_id, category=item.category, label=item.label, amount=item.amount)
            for item in items
        ],
        amount=transaction.amount,
        method=transaction.method,
        status=transaction.status,
        paid_at=format_paid_at(transaction.committed_at),
        payer_name=transaction.payer_name or "",
        payer_roll_number=transaction.payer_roll_number or "",
        payer_hall=transaction.payer_hall or "",
        payer_room=transaction.payer_room or "",
    )


class ReceiptIssuer:

    @staticmethod
    async def issue(db: AsyncSession, transaction_id: int) -> Receipt:
        """
        Regenerate the receipt of a committed transaction.

        Raises:
            UnknownTransactionError: if the transaction does not exist
            TransactionNotCommittedError: if it is authorized or failed
        """
        transaction = await get_transaction(db, transaction_id)
        if transaction.status != TransactionStatus.COMMITTED:
            raise TransactionNotCommittedError(transaction.id, transaction.status.value)
        return await ReceiptIssuer.for_transaction(db, transaction)

    @staticmethod
    async def for_transaction(db: AsyncSession, transaction: PaymentTransaction) -> Receipt:
        period = await db.get(DuePeriod, transaction.period_id)
        items = await get_transaction_items(db, transaction)
        item_count = (await db.execute(
            select(func.count()).select_from(DueItem).where(DueItem.period_id == transaction.period_id)
        )).scalar_one()
        return build_receipt(transaction, items, period, item_count)
