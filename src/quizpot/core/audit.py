"""Persistence of escrow notifications to the event log."""

from typing import Any, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from quizpot.escrow.notifications import Notification
from quizpot.models.escrow_event_log import EscrowEventLog

# Largest integer JSON consumers can read back without losing precision
MAX_SAFE_INTEGER = 2**53 - 1


def _serialize_value(v: Any) -> Any:
    if isinstance(v, int) and not isinstance(v, bool) and abs(v) > MAX_SAFE_INTEGER:
        return str(v)
    if isinstance(v, (list, tuple)):
        return [_serialize_value(item) for item in v]
    return v


def record_notifications(
    db: AsyncSession,
    notifications: Iterable[Notification],
    recorded_by: str | None = None,
) -> list[EscrowEventLog]:
    """Add one EscrowEventLog row per notification; the caller commits.

    The database assigns `sequence` on flush, in the order rows were added.

    Args:
        db: Database session
        notifications: Notifications collected for one operation, in emission order
        recorded_by: Caller account whose request produced them

    Returns:
        Created EscrowEventLog records
    """
    records = []
    for notification in notifications:
        record = EscrowEventLog(
            session_id=notification.session_id,
            kind=notification.kind.value,
            data={k: _serialize_value(v) for k, v in notification.data.items()},
            emitted_at=notification.emitted_at,
            recorded_by=recorded_by,
        )
        db.add(record)
        records.append(record)
    return records
