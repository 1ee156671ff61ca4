from datetime import datetime, timezone

from sqlmodel import SQLModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StoredRecord(SQLModel, table=True):
    """
    Durable local storage, one row per key:
    - key: fixed storage key (settings.STORAGE_KEY)
    - payload: the whole RootState serialized as JSON text
    """
    key: str = Field(primary_key=True)
    payload: str
    updated_at: datetime = Field(default_factory=_utcnow)
