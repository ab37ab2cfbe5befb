from datetime import date

from pydantic import Field

from backoffice.schemas.common import CamelModel, Money


class AgingReport(CamelModel):
    """Outstanding balances in disjoint due-date buckets."""
    overdue: Money
    next7_days: Money
    next30_days: Money
    future: Money


class DashboardSummary(CamelModel):
    total_open: Money
    total_overdue: Money
    total_next7_days: Money
    total_next30_days: Money
    total_receivables: Money
    total_payables: Money


class CashflowPoint(CamelModel):
    day: date = Field(alias="date")
    income: Money
    expense: Money
    balance: Money
