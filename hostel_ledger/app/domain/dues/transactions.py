"""
Payment transaction lookups shared by the reconciliation engine and the
receipt issuer.
"""

from typing import List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from hostel_ledger.app.core.exceptions import UnknownTransactionError
from hostel_ledger.app.models.due_period import DueItem
from hostel_ledger.app.models.payment_transaction import PaymentTransaction


async def get_transaction(db: AsyncSession, transaction_id: int, for_update: bool = False) -> PaymentTransaction:
    """
    Read a transaction, bypassing any stale copy in the session.

    Raises:
        UnknownTransactionError: if no transaction has this id
    """
    stmt = (
        select(PaymentTransaction)
        .where(PaymentTransaction.id == transaction_id)
        .execution_options(populate_existing=True)
    )
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    transaction = result.scalar_one_or_none()
    if not transaction:
        raise UnknownTransactionError(transaction_id)
    return transaction


async def get_transaction_items(db: AsyncSession, transaction: PaymentTransaction) -> List[DueItem]:
    """Due items referenced by a transaction, in the transaction's order."""
    result = await db.execute(
        select(DueItem)
        .where(
            DueItem.period_id == transaction.period_id,
            DueItem.item_id.in_(transaction.item_ids)
        )
        .execution_options(populate_existing=True)
    )
    by_id = {item.item_id: item for item in result.scalars().all()}
    return [by_id[item_id] for item_id in transaction.item_ids if item_id in by_id]
