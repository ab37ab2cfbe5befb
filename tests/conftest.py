from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from backoffice.db.mongo import get_db
from backoffice.main import app
from backoffice.models.entry import Entry, EntryStatus, EntryType
from backoffice.models.payment import Payment, PaymentMethod

COLLECTIONS = ("entries", "payments", "contacts", "categories")


def _mock_collection() -> MagicMock:
    collection = MagicMock()
    collection.insert_one = AsyncMock()
    collection.find_one = AsyncMock(return_value=None)
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.update_one = AsyncMock(return_value=MagicMock(modified_count=1))
    collection.count_documents = AsyncMock(return_value=0)
    return collection


@pytest.fixture
def mock_db():
    """Motor database double: db["entries"] etc. are separate mock collections."""
    db = MagicMock()
    collections = {name: _mock_collection() for name in COLLECTIONS}
    db.__getitem__.side_effect = lambda name: collections[name]

    # client.start_session() for the transactional payment path
    session = MagicMock()
    session.start_transaction.return_value.__aexit__.return_value = False
    session_cm = MagicMock()
    session_cm.__aenter__.return_value = session
    session_cm.__aexit__.return_value = False
    db.client.start_session = AsyncMock(return_value=session_cm)
    db.session = session
    return db


@pytest.fixture
def make_cursor():
    """Build a find() cursor double that yields the given documents."""
    def _make(docs):
        cursor = MagicMock()
        cursor.sort.return_value = cursor
        cursor.skip.return_value = cursor
        cursor.limit.return_value = cursor
        cursor.to_list = AsyncMock(return_value=docs)
        return cursor
    return _make


@pytest.fixture
def client(mock_db):
    """API client. Startup hooks are not run, so no Mongo connection is made."""
    app.dependency_overrides[get_db] = lambda: mock_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def make_entry():
    def _make(amount="100.00", paid_total="0.00", status=EntryStatus.OPEN,
              entry_type=EntryType.PAYABLE, due_date=date(2024, 6, 20)):
        return Entry(
            type=entry_type,
            contact_id=ObjectId(),
            category_id=ObjectId(),
            description="Office rent",
            issue_date=date(2024, 6, 1),
            due_date=due_date,
            amount=Decimal(amount),
            paid_total=Decimal(paid_total),
            status=status,
        )
    return _make


@pytest.fixture
def make_payment():
    def _make(amount, paid_at=date(2024, 6, 10), entry_type=EntryType.PAYABLE, entry_id=None):
        return Payment(
            entry_id=entry_id or ObjectId(),
            entry_type=entry_type,
            amount=Decimal(amount),
            paid_at=paid_at,
            method=PaymentMethod.PIX,
        )
    return _make
