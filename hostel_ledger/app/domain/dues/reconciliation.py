"""
Payment Reconciliation Service (Domain Logic).

Settles due items through a two-step protocol:

1. authorize: claim free items for a new AUTHORIZED transaction, amount fixed
2. commit: flip the claimed items to PAID and freeze the transaction

An authorized transaction that will not be committed is released with
abandon. authorize, commit and abandon run under a critical section keyed
by the due period, so no two transactions ever claim the same item.
commit is idempotent and safe to retry.
"""

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from hostel_ledger.app.core.exceptions import (
    ValidationError, InvalidMethodError, NotFoundError, ItemAlreadySettledError,
    EmptySelectionError, InvalidStateError
)
from hostel_ledger.app.core.locks import period_locks
from hostel_ledger.app.domain.dues.derivation import derive_period_status
from hostel_ledger.app.domain.dues.receipts import ReceiptIssuer
from hostel_ledger.app.domain.dues.registry import DuePeriodService
from hostel_ledger.app.domain.dues.transactions import get_transaction, get_transaction_items
from hostel_ledger.app.models.billing_enums import DueItemStatus, PaymentMethod, TransactionStatus
from hostel_ledger.app.models.payment_transaction import PaymentTransaction
from hostel_ledger.app.models.resident import Resident
from hostel_ledger.app.schemas.billing import SettlementQuote, Receipt
from hostel_ledger.app.services.audit import record_event, AuditAction
from hostel_ledger.app.services.cache import CacheService
from hostel_ledger.app.services.claim_locking import (
    create_item_claims, get_active_claims, release_item_claims
)

logger = logging.getLogger(__name__)


def _unique(item_ids: Iterable[str]) -> List[str]:
    seen = []
    for item_id in item_ids:
        if item_id not in seen:
            seen.append(item_id)
    return seen


class ReconciliationService:

    @staticmethod
    async def quote_settlement(
        db: AsyncSession,
        period_id: int,
        item_ids: Optional[Iterable[str]] = None
    ) -> SettlementQuote:
        """
        Price a settlement without side effects.

        With item_ids omitted every free item (pending and unclaimed) of the
        period is selected; otherwise the requested items that are free.

        Raises:
            NotFoundError: unknown period or item id
            EmptySelectionError: nothing eligible to settle
        """
        await DuePeriodService.get(db, period_id)
        items = await DuePeriodService.get_items(db, period_id)
        claims = await get_active_claims(db, period_id)

        if item_ids is not None:
            requested = set(_unique(item_ids))
            unknown = requested - {item.item_id for item in items}
            if unknown:
                raise NotFoundError("Due item", sorted(unknown)[0])
            items = [item for item in items if item.item_id in requested]

        selected = [
            item for item in items
            if item.status == DueItemStatus.PENDING and item.item_id not in claims
        ]
        if not selected:
            raise EmptySelectionError(period_id)

        return SettlementQuote(
            period_id=period_id,
            item_ids=[item.item_id for item in selected],
            amount=sum(item.amount for item in selected)
        )

    @staticmethod
    async def authorize(
        db: AsyncSession,
        period_id: int,
        item_ids: Iterable[str],
        method,
        actor: Optional[str] = None
    ) -> int:
        """
        Claim due items for a new AUTHORIZED transaction.

        Validates:
        - Method is UPI, Card or NetBanking
        - Selection is non-empty and every id belongs to the period
        - No selected item is paid or claimed by another transaction

        Returns:
            The new transaction id

        Raises:
            InvalidMethodError, ValidationError, NotFoundError, ItemAlreadySettledError
        """
        try:
            payment_method = PaymentMethod.parse(method)
        except ValueError:
            raise InvalidMethodError(method)

        requested = _unique(item_ids or [])
        if not requested:
            raise ValidationError("item_ids must not be empty", {"period_id": period_id})

        async with period_locks.hold(period_id):
            try:
                period = await DuePeriodService.get(db, period_id, for_update=True)
                items = await DuePeriodService.get_items(db, period_id)
                by_id = {item.item_id: item for item in items}

                unknown = [item_id for item_id in requested if item_id not in by_id]
                if unknown:
                    raise NotFoundError("Due item", unknown[0])

                claims = await get_active_claims(db, period_id)
                unavailable = [
                    item_id for item_id in requested
                    if by_id[item_id].status != DueItemStatus.PENDING or item_id in claims
                ]
                if unavailable:
                    raise ItemAlreadySettledError(period_id, unavailable)

                # Keep the period's billing order
                selected = [item for item in items if item.item_id in requested]
                now = datetime.now(timezone.utc)
                transaction = PaymentTransaction(
                    resident_id=period.resident_id,
                    period_id=period_id,
                    item_ids=[item.item_id for item in selected],
                    amount=sum(item.amount for item in selected),
                    method=payment_method,
                    status=TransactionStatus.AUTHORIZED,
                    authorized_at=now
                )
                db.add(transaction)
                await db.flush()  # To get transaction.id
                transaction.reference = f"TXN{now:%Y%m%d%H%M%S}{transaction.id:06d}"

                try:
                    await create_item_claims(db, period_id, transaction.item_ids, transaction.id)
                except IntegrityError:
                    # Another process claimed between our read and insert
                    await db.rollback()
                    raise ItemAlreadySettledError(period_id, requested)

                record_event(
                    db,
                    AuditAction.PAYMENT_AUTHORIZED,
                    resident_id=period.resident_id,
                    actor_username=actor,
                    metadata={
                        "transaction_id": transaction.id,
                        "period_id": period_id,
                        "item_ids": transaction.item_ids,
                        "amount": transaction.amount,
                        "method": payment_method.value
                    }
                )
                await db.commit()
            except (ValidationError, NotFoundError, ItemAlreadySettledError) as exc:
                await db.rollback()
                logger.warning("Authorization rejected for period %s: %s", period_id, exc.message)
                raise

        logger.info(
            "Authorized transaction %s for period %s: items=%s amount=%s method=%s",
            transaction.id, period_id, transaction.item_ids, transaction.amount, payment_method.value
        )
        return transaction.id

    @staticmethod
    async def commit(db: AsyncSession, transaction_id: int, actor: Optional[str] = None) -> Receipt:
        """
        Commit an AUTHORIZED transaction and return its receipt.

        Flow:
        1. Idempotency check (already COMMITTED returns the same receipt)
        2. Flip every referenced item to PAID
        3. Release the claims
        4. Freeze the transaction with the payer snapshot

        Raises:
            UnknownTransactionError: unknown id
            InvalidStateError: the transaction failed or lost its items
        """
        transaction = await get_transaction(db, transaction_id)
        period_id = transaction.period_id

        async with period_locks.hold(period_id):
            try:
                await DuePeriodService.get(db, period_id, for_update=True)
                transaction = await get_transaction(db, transaction_id, for_update=True)

                if transaction.status == TransactionStatus.COMMITTED:
                    receipt = await ReceiptIssuer.for_transaction(db, transaction)
                    # Nothing was written; ends the locking read
                    await db.commit()
                    logger.info("Transaction %s already committed; returning existing receipt", transaction_id)
                    return receipt

                if transaction.status != TransactionStatus.AUTHORIZED:
                    raise InvalidStateError(
                        f"Transaction {transaction_id} is {transaction.status.value} and cannot be committed",
                        {"transaction_id": transaction_id, "status": transaction.status.value}
                    )

                items = await get_transaction_items(db, transaction)
                claims = await get_active_claims(db, period_id)
                lost = [
                    item_id for item_id in transaction.item_ids
                    if claims.get(item_id) != transaction.id
                ]
                if lost or len(items) != len(transaction.item_ids):
                    raise InvalidStateError(
                        f"Transaction {transaction_id} no longer holds its items",
                        {"transaction_id": transaction_id, "item_ids": lost}
                    )

                resident = await db.get(Resident, transaction.resident_id)
                now = datetime.now(timezone.utc)

                for item in items:
                    item.status = DueItemStatus.PAID
                await release_item_claims(db, transaction.id)

                transaction.status = TransactionStatus.COMMITTED
                transaction.committed_at = now
                transaction.released_at = now
                transaction.payer_name = resident.name
                transaction.payer_roll_number = resident.roll_number
                transaction.payer_hall = resident.hall
                transaction.payer_room = resident.room_number

                record_event(
                    db,
                    AuditAction.PAYMENT_COMMITTED,
                    resident_id=transaction.resident_id,
                    actor_username=actor,
                    metadata={
                        "transaction_id": transaction.id,
                        "reference": transaction.reference,
                        "amount": transaction.amount
                    }
                )
                await db.commit()
            except InvalidStateError as exc:
                await db.rollback()
                logger.warning("Commit rejected for transaction %s: %s", transaction_id, exc.message)
                raise

            period_items = await DuePeriodService.get_items(db, period_id)
            period_status = derive_period_status(item.status for item in period_items)
            receipt = await ReceiptIssuer.for_transaction(db, transaction)

        await CacheService.invalidate_resident(transaction.resident_id)
        logger.info(
            "Committed transaction %s (%s): amount=%s period %s is now %s",
            transaction.id, transaction.reference, transaction.amount, period_id, period_status.value
        )
        return receipt

    @staticmethod
    async def abandon(
        db: AsyncSession,
        transaction_id: int,
        reason: Optional[str] = None,
        actor: Optional[str] = None
    ) -> PaymentTransaction:
        """
        Release an AUTHORIZED transaction's claims and mark it FAILED.

        The items stay PENDING and can be authorized again. Also used to
        report a payment gateway failure, with the failure as reason.

        Raises:
            UnknownTransactionError: unknown id
            InvalidStateError: the transaction is COMMITTED or already FAILED
        """
        transaction = await get_transaction(db, transaction_id)
        period_id = transaction.period_id
        reason = reason or "abandoned"

        async with period_locks.hold(period_id):
            try:
                await DuePeriodService.get(db, period_id, for_update=True)
                transaction = await get_transaction(db, transaction_id, for_update=True)

                if transaction.status != TransactionStatus.AUTHORIZED:
                    raise InvalidStateError(
                        f"Transaction {transaction_id} is {transaction.status.value} and cannot be abandoned",
                        {"transaction_id": transaction_id, "status": transaction.status.value}
                    )

                released = await release_item_claims(db, transaction.id)
                now = datetime.now(timezone.utc)
                transaction.status = TransactionStatus.FAILED
                transaction.failure_reason = reason
                transaction.released_at = now

                record_event(
                    db,
                    AuditAction.PAYMENT_ABANDONED,
                    resident_id=transaction.resident_id,
                    actor_username=actor,
                    metadata={"transaction_id": transaction.id, "reason": reason, "released": released}
                )
                await db.commit()
            except InvalidStateError as exc:
                await db.rollback()
                logger.warning("Abandon rejected for transaction %s: %s", transaction_id, exc.message)
                raise

        logger.info("Abandoned transaction %s (%s), released %d claims", transaction.id, reason, released)
        return transaction
