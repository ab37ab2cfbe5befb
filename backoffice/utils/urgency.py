"""Due-date urgency for display. Independent of the persisted status."""

from datetime import date, datetime, timedelta
from enum import Enum
from zoneinfo import ZoneInfo

from backoffice.core.config import settings
from backoffice.models.entry import EntryStatus

DUE_SOON_WINDOW = timedelta(days=7)


class DisplayUrgency(str, Enum):
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    NORMAL = "normal"


def classify(status: EntryStatus, due_date: date, today: date) -> DisplayUrgency:
    """
    Classify an entry's urgency.

    Only open entries can be overdue or due soon. The due-soon window is
    half-open: today <= due_date < today + 7 days.
    """
    if status != EntryStatus.OPEN:
        return DisplayUrgency.NORMAL
    if due_date < today:
        return DisplayUrgency.OVERDUE
    if due_date < today + DUE_SOON_WINDOW:
        return DisplayUrgency.DUE_SOON
    return DisplayUrgency.NORMAL


def today() -> date:
    """Current calendar date in the configured business timezone."""
    return datetime.now(ZoneInfo(settings.TIMEZONE)).date()
