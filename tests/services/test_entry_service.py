from datetime import date
from decimal import Decimal

import pytest
from bson import ObjectId

from backoffice.core.exceptions import (
    ConcurrentUpdateError,
    ConsistencyError,
    InvalidAmountError,
    ReferenceInUseError,
    TerminalEntryError,
    UnknownReferenceError,
)
from backoffice.models.entry import EntryStatus
from backoffice.schemas.entry import EntryCreate, EntryUpdate
from backoffice.services.entry_service import EntryService


def _entry_create(contact_id, category_id, **overrides):
    data = {
        "type": "receivable",
        "contact_id": str(contact_id),
        "category_id": str(category_id),
        "description": "Consulting, June",
        "issue_date": date(2024, 6, 1),
        "due_date": date(2024, 6, 30),
        "amount": Decimal("1500.00"),
    }
    data.update(overrides)
    return EntryCreate(**data)


def _doc(entry, **changes):
    doc = entry.to_document()
    doc.update(changes)
    return doc


@pytest.fixture
def service(mock_db):
    return EntryService(mock_db)


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_starts_open(self, service, mock_db):
        contact_id, category_id = ObjectId(), ObjectId()
        mock_db["contacts"].find_one.return_value = {
            "_id": contact_id, "name": "Client", "type": "customer"
        }
        mock_db["categories"].find_one.return_value = {
            "_id": category_id, "name": "Services", "type": "income"
        }

        entry = await service.create(_entry_create(contact_id, category_id))

        assert entry.status == EntryStatus.OPEN
        assert entry.paid_total == Decimal("0")
        doc = mock_db["entries"].insert_one.call_args[0][0]
        assert doc["contact_id"] == contact_id
        assert doc["category_id"] == category_id
        assert doc["amount_cents"] == 150000
        assert doc["paid_total_cents"] == 0
        assert doc["status"] == "open"

    @pytest.mark.asyncio
    async def test_unknown_contact_rejected(self, service, mock_db):
        with pytest.raises(UnknownReferenceError):
            await service.create(_entry_create(ObjectId(), ObjectId()))

        mock_db["entries"].insert_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_contact_deleted_during_create(self, service, mock_db):
        contact_id, category_id = ObjectId(), ObjectId()
        mock_db["contacts"].find_one.side_effect = [
            {"_id": contact_id, "name": "Client", "type": "customer"},
            None,
        ]
        mock_db["categories"].find_one.return_value = {
            "_id": category_id, "name": "Services", "type": "income"
        }

        with pytest.raises(UnknownReferenceError):
            await service.create(_entry_create(contact_id, category_id))

        inserted = mock_db["entries"].insert_one.call_args[0][0]
        filter_doc, update_doc = mock_db["entries"].update_one.call_args[0]
        assert filter_doc["_id"] == inserted["_id"]
        assert update_doc["$set"]["is_deleted"] is True

    @pytest.mark.asyncio
    async def test_unknown_category_rejected(self, service, mock_db):
        contact_id = ObjectId()
        mock_db["contacts"].find_one.return_value = {
            "_id": contact_id, "name": "Client", "type": "customer"
        }

        with pytest.raises(UnknownReferenceError, match="Category"):
            await service.create(_entry_create(contact_id, ObjectId()))


class TestUpdate:
    @pytest.mark.asyncio
    async def test_missing_entry(self, service):
        assert await service.update(str(ObjectId()), EntryUpdate(description="x")) is None

    @pytest.mark.asyncio
    async def test_descriptive_fields_only(self, service, mock_db, make_entry):
        entry = make_entry()
        mock_db["entries"].find_one.return_value = entry.to_document()
        mock_db["entries"].find_one_and_update.return_value = _doc(
            entry, description="Rent July", due_date="2024-07-20"
        )

        updated = await service.update(
            str(entry.id), EntryUpdate(description="Rent July", due_date=date(2024, 7, 20))
        )

        assert updated.due_date == date(2024, 7, 20)
        filter_doc, update_doc = mock_db["entries"].find_one_and_update.call_args[0]
        assert "paid_total_cents" not in filter_doc
        assert update_doc["$set"]["due_date"] == "2024-07-20"
        assert "status" not in update_doc["$set"]

    @pytest.mark.asyncio
    async def test_raising_amount_reopens_partial(self, service, mock_db, make_entry):
        entry = make_entry(amount="100.00", paid_total="40.00", status=EntryStatus.PARTIAL)
        mock_db["entries"].find_one.return_value = entry.to_document()
        mock_db["entries"].find_one_and_update.return_value = _doc(entry, amount_cents=20000)

        await service.update(str(entry.id), EntryUpdate(amount=Decimal("200.00")))

        filter_doc, update_doc = mock_db["entries"].find_one_and_update.call_args[0]
        assert filter_doc["amount_cents"] == 10000
        assert filter_doc["paid_total_cents"] == 4000
        assert update_doc["$set"]["amount_cents"] == 20000
        assert update_doc["$set"]["status"] == "partial"

    @pytest.mark.asyncio
    async def test_lowering_amount_to_paid_total_settles(self, service, mock_db, make_entry):
        entry = make_entry(amount="100.00", paid_total="40.00", status=EntryStatus.PARTIAL)
        mock_db["entries"].find_one.return_value = entry.to_document()
        mock_db["entries"].find_one_and_update.return_value = _doc(
            entry, amount_cents=4000, status="paid"
        )

        updated = await service.update(str(entry.id), EntryUpdate(amount=Decimal("40.00")))

        assert updated.status == EntryStatus.PAID
        update_doc = mock_db["entries"].find_one_and_update.call_args[0][1]
        assert update_doc["$set"]["status"] == "paid"

    @pytest.mark.asyncio
    async def test_amount_below_paid_total_rejected(self, service, mock_db, make_entry):
        entry = make_entry(amount="100.00", paid_total="40.00", status=EntryStatus.PARTIAL)
        mock_db["entries"].find_one.return_value = entry.to_document()

        with pytest.raises(InvalidAmountError):
            await service.update(str(entry.id), EntryUpdate(amount=Decimal("30.00")))

        mock_db["entries"].find_one_and_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_amount_of_paid_entry_is_frozen(self, service, mock_db, make_entry):
        entry = make_entry(amount="100.00", paid_total="100.00", status=EntryStatus.PAID)
        mock_db["entries"].find_one.return_value = entry.to_document()

        with pytest.raises(TerminalEntryError):
            await service.update(str(entry.id), EntryUpdate(amount=Decimal("150.00")))

    @pytest.mark.asyncio
    async def test_amount_change_conflict(self, service, mock_db, make_entry):
        entry = make_entry(amount="100.00")
        mock_db["entries"].find_one.return_value = entry.to_document()

        with pytest.raises(ConcurrentUpdateError):
            await service.update(str(entry.id), EntryUpdate(amount=Decimal("120.00")))

    @pytest.mark.asyncio
    async def test_unknown_contact_on_update(self, service, mock_db, make_entry):
        entry = make_entry()
        mock_db["entries"].find_one.return_value = entry.to_document()

        with pytest.raises(UnknownReferenceError):
            await service.update(str(entry.id), EntryUpdate(contact_id=str(ObjectId())))


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_partial_keeps_paid_total(self, service, mock_db, make_entry):
        entry = make_entry(amount="100.00", paid_total="30.00", status=EntryStatus.PARTIAL)
        mock_db["entries"].find_one.return_value = entry.to_document()
        mock_db["entries"].find_one_and_update.return_value = _doc(entry, status="canceled")

        updated = await service.cancel(str(entry.id))

        assert updated.status == EntryStatus.CANCELED
        assert updated.paid_total == Decimal("30.00")
        update_doc = mock_db["entries"].find_one_and_update.call_args[0][1]
        assert "paid_total_cents" not in update_doc["$set"]
        mock_db["payments"].update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_cancel_twice_is_noop(self, service, mock_db, make_entry):
        entry = make_entry(status=EntryStatus.CANCELED)
        mock_db["entries"].find_one.return_value = entry.to_document()

        updated = await service.cancel(str(entry.id))

        assert updated.status == EntryStatus.CANCELED
        mock_db["entries"].find_one_and_update.assert_not_called()

    @pytest.mark.asyncio
    async def test_paid_entry_cannot_be_canceled(self, service, mock_db, make_entry):
        entry = make_entry(amount="100.00", paid_total="100.00", status=EntryStatus.PAID)
        mock_db["entries"].find_one.return_value = entry.to_document()

        with pytest.raises(TerminalEntryError):
            await service.cancel(str(entry.id))


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete_unpaid_entry(self, service, mock_db, make_entry):
        entry = make_entry()
        mock_db["entries"].find_one.return_value = entry.to_document()

        assert await service.delete(str(entry.id)) is True

    @pytest.mark.asyncio
    async def test_delete_with_payments_rejected(self, service, mock_db, make_entry):
        entry = make_entry(paid_total="10.00", status=EntryStatus.PARTIAL)
        mock_db["entries"].find_one.return_value = entry.to_document()

        with pytest.raises(ReferenceInUseError):
            await service.delete(str(entry.id))

        mock_db["entries"].update_one.assert_not_called()

    @pytest.mark.asyncio
    async def test_delete_missing(self, service):
        assert await service.delete(str(ObjectId())) is False


class TestBalance:
    @pytest.mark.asyncio
    async def test_consistent_history(self, service, mock_db, make_cursor, make_entry, make_payment):
        entry = make_entry(amount="100.00", paid_total="70.00", status=EntryStatus.PARTIAL)
        mock_db["entries"].find_one.return_value = entry.to_document()
        mock_db["payments"].find.return_value = make_cursor([
            make_payment("50.00", entry_id=entry.id).to_document(),
            make_payment("20.00", entry_id=entry.id).to_document(),
        ])

        _, result, payments = await service.balance(str(entry.id))

        assert result.paid_total == Decimal("70.00")
        assert result.remaining == Decimal("30.00")
        assert result.status == EntryStatus.PARTIAL
        assert len(payments) == 2

    @pytest.mark.asyncio
    async def test_canceled_entry_keeps_status(self, service, mock_db, make_cursor, make_entry, make_payment):
        entry = make_entry(amount="100.00", paid_total="30.00", status=EntryStatus.CANCELED)
        mock_db["entries"].find_one.return_value = entry.to_document()
        mock_db["payments"].find.return_value = make_cursor([
            make_payment("30.00", entry_id=entry.id).to_document(),
        ])

        _, result, _ = await service.balance(str(entry.id))

        assert result.status == EntryStatus.CANCELED

    @pytest.mark.asyncio
    async def test_cache_mismatch_is_consistency_error(self, service, mock_db, make_cursor, make_entry, make_payment):
        entry = make_entry(amount="100.00", paid_total="70.00", status=EntryStatus.PARTIAL)
        mock_db["entries"].find_one.return_value = entry.to_document()
        mock_db["payments"].find.return_value = make_cursor([
            make_payment("50.00", entry_id=entry.id).to_document(),
        ])

        with pytest.raises(ConsistencyError):
            await service.balance(str(entry.id))

    @pytest.mark.asyncio
    async def test_overpaid_history_is_consistency_error(self, service, mock_db, make_cursor, make_entry, make_payment):
        entry = make_entry(amount="100.00", paid_total="100.00", status=EntryStatus.PAID)
        mock_db["entries"].find_one.return_value = entry.to_document()
        mock_db["payments"].find.return_value = make_cursor([
            make_payment("60.00", entry_id=entry.id).to_document(),
            make_payment("60.00", entry_id=entry.id).to_document(),
        ])

        with pytest.raises(ConsistencyError):
            await service.balance(str(entry.id))
