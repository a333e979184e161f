"""
Due item claim service.

Manages the exclusive claims an authorized payment transaction holds on
its due items until it commits or is abandoned.
"""

from datetime import datetime, timezone
from typing import Iterable
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from hostel_ledger.app.models.item_claim import ItemClaim


async def create_item_claims(
    db: AsyncSession,
    period_id: int,
    item_ids: Iterable[str],
    transaction_id: int
) -> list[ItemClaim]:
    """
    Claim due items for a transaction.

    Args:
        db: Database session
        period_id: Period owning the items
        item_ids: Items to claim
        transaction_id: Authorized transaction taking the claim

    Returns:
        Created claims

    Raises:
        IntegrityError: If any item already has an active claim
    """
    now = datetime.now(timezone.utc)
    claims = [
        ItemClaim(
            period_id=period_id,
            item_id=item_id,
            transaction_id=transaction_id,
            claimed_at=now,
            released_at=None
        )
        for item_id in item_ids
    ]

    db.add_all(claims)
    await db.flush()  # Will raise IntegrityError if unique index violated

    return claims


async def get_active_claims(
    db: AsyncSession,
    period_id: int
) -> dict[str, int]:
    """
    Map each claimed item of a period to the transaction holding it.

    Args:
        db: Database session
        period_id: Period to inspect

    Returns:
        {item_id: transaction_id} for unreleased claims
    """
    result = await db.execute(
        select(ItemClaim.item_id, ItemClaim.transaction_id).where(
            ItemClaim.period_id == period_id,
            ItemClaim.released_at.is_(None)
        )
    )
    return {row.item_id: row.transaction_id for row in result}


async def release_item_claims(
    db: AsyncSession,
    transaction_id: int
) -> int:
    """
    Release every active claim held by a transaction.

    Returns:
        Number of claims released
    """
    result = await db.execute(
        select(ItemClaim).where(
            ItemClaim.transaction_id == transaction_id,
            ItemClaim.released_at.is_(None)
        ).execution_options(populate_existing=True)
    )
    claims = result.scalars().all()

    now = datetime.now(timezone.utc)
    for claim in claims:
        claim.released_at = now
    await db.flush()

    return len(claims)
