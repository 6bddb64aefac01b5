from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

from companion.models.chat import Chat


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; they are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def date_label(created_at: datetime, now: datetime) -> str:
    days = (_as_utc(now).date() - _as_utc(created_at).date()).days
    if days <= 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days <= 7:
        return "Last 7 Days"
    if days <= 30:
        return "Last 30 Days"
    return _as_utc(created_at).strftime("%B %Y")


def group_chats_by_date(chats: Iterable[Chat], now: Optional[datetime] = None) -> List[Tuple[str, List[Chat]]]:
    """Bucket chats by recency label, keeping the order groups are first seen in"""
    now = now or datetime.now(timezone.utc)
    groups = {}
    for chat in chats:
        groups.setdefault(date_label(chat.created_at, now), []).append(chat)
    return list(groups.items())
