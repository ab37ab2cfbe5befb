"""
PaymentService - the authoritative write path for payments.

Algorithm:
1. Read the entry fresh from storage
2. accept_payment() against the stored paid total and status
3. Compare-and-swap the entry's paid total / status, then insert the
   payment (one transaction when USE_TRANSACTIONS is on)
4. If the swap matched nothing, or the transaction hit a write conflict,
   another payment landed first: re-read and re-evaluate, up to
   PAYMENT_CONFLICT_RETRIES times

Rejections from accept_payment() are never retried.
"""

from typing import List, Optional, Tuple

import structlog
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from backoffice.core.config import settings
from backoffice.core.exceptions import ConcurrentUpdateError, LedgerError
from backoffice.models.entry import Entry
from backoffice.models.payment import Payment
from backoffice.repositories.entry_repo import EntryRepository
from backoffice.repositories.payment_repo import PaymentRepository
from backoffice.schemas.payment import PaymentCreate
from backoffice.utils.reconciliation import accept_payment, order_payments, reconcile_total

logger = structlog.get_logger(__name__)


class _StaleEntry(Exception):
    """Compare-and-swap missed; aborts the surrounding transaction."""


class PaymentService:
    def __init__(self, db: AsyncIOMotorDatabase, use_transactions: Optional[bool] = None):
        self.db = db
        self.entries = EntryRepository(db)
        self.payments = PaymentRepository(db)
        self.use_transactions = (
            settings.USE_TRANSACTIONS if use_transactions is None else use_transactions
        )

    async def list_for_entry(self, entry_id: str) -> Optional[List[Payment]]:
        """Payment history for an entry, or None if the entry does not exist."""
        entry = await self.entries.get_entry(entry_id)
        if entry is None:
            return None
        payments = await self.payments.list_for_entry(entry.id)
        return order_payments(payments)

    async def register(
        self, entry_id: str, payment_in: PaymentCreate
    ) -> Optional[Tuple[Entry, Payment]]:
        """
        Register a payment against an entry.

        Returns (updated entry, stored payment), or None if the entry does
        not exist. Raises TerminalEntryError, InvalidAmountError,
        OverpaymentError, ConsistencyError or ConcurrentUpdateError.
        """
        log = logger.bind(entry_id=entry_id, amount=str(payment_in.amount))
        attempts = max(1, settings.PAYMENT_CONFLICT_RETRIES)

        for attempt in range(1, attempts + 1):
            entry = await self.entries.get_entry(entry_id)
            if entry is None:
                return None

            try:
                outcome = accept_payment(
                    entry.amount, entry.paid_total, payment_in.amount, entry.status
                )
            except LedgerError as exc:
                log.warning(
                    "payment_rejected",
                    reason=exc.kind,
                    remaining=str(exc.remaining) if exc.remaining is not None else None,
                )
                raise

            payment = Payment(
                entry_id=entry.id,
                entry_type=entry.type,
                amount=payment_in.amount,
                paid_at=payment_in.paid_at,
                method=payment_in.method,
                note=payment_in.note,
            )

            try:
                updated = await self._commit(entry, outcome, payment)
            except _StaleEntry:
                log.info("payment_conflict", attempt=attempt)
                continue

            log.info(
                "payment_accepted",
                payment_id=str(payment.id),
                paid_total=str(outcome.paid_total),
                status=outcome.status.value,
            )
            return updated, payment

        log.warning("payment_conflict_exhausted", attempts=attempts)
        raise ConcurrentUpdateError(
            "Entry was modified concurrently; reload it and submit the payment again"
        )

    async def _commit(self, entry: Entry, outcome, payment: Payment) -> Entry:
        if not self.use_transactions:
            return await self._commit_without_transaction(entry, outcome, payment)

        try:
            async with await self.db.client.start_session() as session:
                async with session.start_transaction():
                    updated = await self.entries.apply_reconciliation(
                        entry, outcome, session=session
                    )
                    if updated is None:
                        raise _StaleEntry()
                    await self.payments.insert_payment(payment, session=session)
        except PyMongoError as exc:
            # A concurrent payment on the same entry aborts this transaction
            # with a WriteConflict instead of making the swap miss
            if exc.has_error_label("TransientTransactionError"):
                raise _StaleEntry() from exc
            raise
        return updated

    async def _commit_without_transaction(self, entry: Entry, outcome, payment: Payment) -> Entry:
        """
        Swap then insert without a transaction. If the insert fails the swap
        is undone, so the entry never counts a payment that was not stored.
        """
        updated = await self.entries.apply_reconciliation(entry, outcome)
        if updated is None:
            raise _StaleEntry()

        try:
            await self.payments.insert_payment(payment)
        except PyMongoError:
            previous = reconcile_total(entry.amount, entry.paid_total, entry.status)
            reverted = await self.entries.apply_reconciliation(updated, previous)
            if reverted is None:
                logger.error(
                    "payment_revert_failed",
                    entry_id=str(entry.id),
                    payment_id=str(payment.id),
                    paid_total=str(updated.paid_total),
                )
            else:
                logger.warning("payment_reverted", entry_id=str(entry.id),
                               payment_id=str(payment.id))
            raise
        return updated
