from typing import List

from fastapi import APIRouter, Depends, Query

from backoffice.core.config import settings
from backoffice.db.mongo import get_db
from backoffice.schemas.report import AgingReport, CashflowPoint, DashboardSummary
from backoffice.services.report_service import ReportService
from backoffice.utils.urgency import today

router = APIRouter()


@router.get("/summary", response_model=DashboardSummary)
async def get_summary(db = Depends(get_db)):
    """Outstanding totals for the dashboard cards."""
    return await ReportService(db).summary(today())


@router.get("/aging", response_model=AgingReport)
async def get_aging(db = Depends(get_db)):
    return await ReportService(db).aging(today())


@router.get("/cashflow", response_model=List[CashflowPoint])
async def get_cashflow(
    days: int = Query(settings.CASHFLOW_DEFAULT_DAYS, ge=1, le=365),
    db = Depends(get_db)
):
    """Daily realised income, expense and running balance."""
    return await ReportService(db).cashflow(today(), days)
