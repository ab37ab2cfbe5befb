from typing import Annotated, List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from backoffice.api.v1.errors import to_http_exception
from backoffice.core.exceptions import LedgerError
from backoffice.db.mongo import get_db
from backoffice.schemas.entry import (
    EntryBalanceResponse,
    EntryCreate,
    EntryFilters,
    EntryListResponse,
    EntryResponse,
    EntryUpdate,
)
from backoffice.schemas.payment import (
    PaymentCreate,
    PaymentRegisteredResponse,
    PaymentResponse,
)
from backoffice.services.entry_service import EntryService
from backoffice.services.payment_service import PaymentService
from backoffice.utils.urgency import classify, today

router = APIRouter()


def _not_found() -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Entry not found")


@router.get("", response_model=EntryListResponse)
async def list_entries(
    filters: Annotated[EntryFilters, Query()],
    db = Depends(get_db)
):
    """List entries with filters and pagination, sorted by due date."""
    entries, total, total_pages = await EntryService(db).list_entries(filters)
    current = today()
    return EntryListResponse(
        entries=[EntryResponse.from_entry(entry, current) for entry in entries],
        total=total,
        page=filters.page,
        total_pages=total_pages,
    )


@router.post("", response_model=EntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(entry_in: EntryCreate, db = Depends(get_db)):
    """Create an entry. It starts open with nothing paid."""
    try:
        entry = await EntryService(db).create(entry_in)
    except LedgerError as exc:
        raise to_http_exception(exc)
    return EntryResponse.from_entry(entry, today())


@router.get("/{entry_id}", response_model=EntryResponse)
async def get_entry(entry_id: str, db = Depends(get_db)):
    entry = await EntryService(db).get(entry_id)
    if not entry:
        raise _not_found()
    return EntryResponse.from_entry(entry, today())


@router.put("/{entry_id}", response_model=EntryResponse)
async def update_entry(entry_id: str, entry_in: EntryUpdate, db = Depends(get_db)):
    """Update an entry. Changing the amount recomputes its status."""
    try:
        entry = await EntryService(db).update(entry_id, entry_in)
    except LedgerError as exc:
        raise to_http_exception(exc)
    if not entry:
        raise _not_found()
    return EntryResponse.from_entry(entry, today())


@router.delete("/{entry_id}")
async def delete_entry(entry_id: str, db = Depends(get_db)):
    """Soft delete an entry that has no payments."""
    try:
        deleted = await EntryService(db).delete(entry_id)
    except LedgerError as exc:
        raise to_http_exception(exc)
    if not deleted:
        raise _not_found()
    return {"success": True}


@router.post("/{entry_id}/cancel", response_model=EntryResponse)
async def cancel_entry(entry_id: str, db = Depends(get_db)):
    """Cancel an entry. One-way; recorded payments are kept."""
    try:
        entry = await EntryService(db).cancel(entry_id)
    except LedgerError as exc:
        raise to_http_exception(exc)
    if not entry:
        raise _not_found()
    return EntryResponse.from_entry(entry, today())


@router.get("/{entry_id}/balance", response_model=EntryBalanceResponse)
async def get_entry_balance(entry_id: str, db = Depends(get_db)):
    """Reconcile the entry from its payment history and verify the stored status."""
    try:
        result = await EntryService(db).balance(entry_id)
    except LedgerError as exc:
        raise to_http_exception(exc)
    if not result:
        raise _not_found()

    entry, reconciliation, payments = result
    return EntryBalanceResponse(
        entry_id=str(entry.id),
        amount=entry.amount,
        paid_total=reconciliation.paid_total,
        remaining=reconciliation.remaining,
        status=reconciliation.status,
        urgency=classify(reconciliation.status, entry.due_date, today()),
        payment_count=len(payments),
    )


@router.get("/{entry_id}/payments", response_model=List[PaymentResponse])
async def list_entry_payments(entry_id: str, db = Depends(get_db)):
    """Payment history, oldest first."""
    payments = await PaymentService(db).list_for_entry(entry_id)
    if payments is None:
        raise _not_found()
    return [PaymentResponse.from_payment(payment) for payment in payments]


@router.post(
    "/{entry_id}/payments",
    response_model=PaymentRegisteredResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_payment(entry_id: str, payment_in: PaymentCreate, db = Depends(get_db)):
    """Register a payment. The remaining balance is checked against stored state."""
    try:
        result = await PaymentService(db).register(entry_id, payment_in)
    except LedgerError as exc:
        raise to_http_exception(exc)
    if not result:
        raise _not_found()

    entry, payment = result
    return PaymentRegisteredResponse(
        payment=PaymentResponse.from_payment(payment),
        entry=EntryResponse.from_entry(entry, today()),
    )
