"""
Dashboard aggregates.

All balance figures use the remaining (unpaid) amount of open and partial
entries. Aging buckets are disjoint, by due date relative to today:

    overdue      due < today
    next7Days    today     <= due < today + 7
    next30Days   today + 7 <= due < today + 30
    future       due >= today + 30

Cash flow is realised: one point per day for the last `days` days,
income from payments on receivables, expense from payments on payables,
balance as the running difference.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List

from motor.motor_asyncio import AsyncIOMotorDatabase

from backoffice.models.entry import OUTSTANDING_STATUSES, Entry, EntryType
from backoffice.models.payment import Payment
from backoffice.repositories.entry_repo import EntryRepository
from backoffice.repositories.payment_repo import PaymentRepository
from backoffice.schemas.report import AgingReport, CashflowPoint, DashboardSummary
from backoffice.utils.money import ZERO
from backoffice.utils.urgency import DUE_SOON_WINDOW

AGING_HORIZON = timedelta(days=30)


def outstanding_amount(entry: Entry) -> Decimal:
    if entry.status not in OUTSTANDING_STATUSES:
        return ZERO
    return max(entry.amount - entry.paid_total, ZERO)


def build_aging(entries: Iterable[Entry], today: date) -> AgingReport:
    buckets = {"overdue": ZERO, "next7_days": ZERO, "next30_days": ZERO, "future": ZERO}
    for entry in entries:
        amount = outstanding_amount(entry)
        if not amount:
            continue
        if entry.due_date < today:
            buckets["overdue"] += amount
        elif entry.due_date < today + DUE_SOON_WINDOW:
            buckets["next7_days"] += amount
        elif entry.due_date < today + AGING_HORIZON:
            buckets["next30_days"] += amount
        else:
            buckets["future"] += amount
    return AgingReport(**buckets)


def build_summary(entries: Iterable[Entry], today: date) -> DashboardSummary:
    entries = list(entries)
    aging = build_aging(entries, today)

    by_type: Dict[EntryType, Decimal] = defaultdict(lambda: ZERO)
    for entry in entries:
        by_type[entry.type] += outstanding_amount(entry)

    return DashboardSummary(
        total_open=sum(by_type.values(), ZERO),
        total_overdue=aging.overdue,
        total_next7_days=aging.next7_days,
        total_next30_days=aging.next30_days,
        total_receivables=by_type[EntryType.RECEIVABLE],
        total_payables=by_type[EntryType.PAYABLE],
    )


def build_cashflow(payments: Iterable[Payment], today: date, days: int) -> List[CashflowPoint]:
    start = today - timedelta(days=days - 1)
    income: Dict[date, Decimal] = defaultdict(lambda: ZERO)
    expense: Dict[date, Decimal] = defaultdict(lambda: ZERO)

    for payment in payments:
        if not start <= payment.paid_at <= today:
            continue
        if payment.entry_type == EntryType.RECEIVABLE:
            income[payment.paid_at] += payment.amount
        else:
            expense[payment.paid_at] += payment.amount

    points = []
    balance = ZERO
    for offset in range(days):
        day = start + timedelta(days=offset)
        balance += income[day] - expense[day]
        points.append(CashflowPoint(
            day=day, income=income[day], expense=expense[day], balance=balance
        ))
    return points


class ReportService:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.entries = EntryRepository(db)
        self.payments = PaymentRepository(db)

    async def summary(self, today: date) -> DashboardSummary:
        return build_summary(await self.entries.list_outstanding(), today)

    async def aging(self, today: date) -> AgingReport:
        return build_aging(await self.entries.list_outstanding(), today)

    async def cashflow(self, today: date, days: int) -> List[CashflowPoint]:
        start = today - timedelta(days=days - 1)
        payments = await self.payments.list_paid_between(start, today)
        return build_cashflow(payments, today, days)
