import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import ValidationError
from sqlalchemy.engine import Engine
from sqlmodel import Session

from ..config import settings
from ..db import get_engine, init_db
from ..logging_config import get_logger
from ..models import StoredRecord
from ..schemas import RootState
from .defaults import build_root_state
from .migrations import migrate

logger = get_logger(__name__)


class StorageGateway:
    """
    Load/save of the whole RootState under one fixed key.
    - load(): None on absence or on any parse/format problem, never raises
    - save(): one row, one write, whole state
    - ensure(): always hands back a schema-complete state, persisted;
      an unreadable record is first copied to backup_key
    - reset(): deletes the record, no backup
    """

    def __init__(self, engine: Optional[Engine] = None, key: Optional[str] = None):
        self.engine = engine or get_engine()
        self.key = key or settings.STORAGE_KEY
        self.backup_key = f"{self.key}.unreadable"
        init_db(self.engine)

    def load_raw(self) -> Optional[Dict[str, Any]]:
        """Stored payload as a dict, or None when absent or unreadable."""
        with Session(self.engine) as session:
            rec = session.get(StoredRecord, self.key)
            payload = rec.payload if rec else None
        if payload is None:
            return None
        try:
            data = json.loads(payload)
        except ValueError:
            logger.warning("Stored state under %r is not valid JSON; ignoring it", self.key)
            return None
        if not isinstance(data, dict):
            logger.warning("Stored state under %r is a %s, not an object; ignoring it",
                           self.key, type(data).__name__)
            return None
        return data

    def load(self) -> Optional[RootState]:
        raw = self.load_raw()
        if raw is None:
            return None
        try:
            return migrate(raw)
        except ValidationError as exc:
            logger.warning("Stored state under %r could not be repaired: %s", self.key, exc)
            return None

    def save(self, state: RootState) -> None:
        payload = state.to_json()
        with Session(self.engine) as session:
            rec = session.get(StoredRecord, self.key)
            if rec is None:
                rec = StoredRecord(key=self.key, payload=payload)
            else:
                rec.payload = payload
                rec.updated_at = datetime.now(timezone.utc)
            session.add(rec)
            session.commit()
        logger.debug("Saved state under %r (%d bytes)", self.key, len(payload))

    def ensure(self) -> RootState:
        state = self.load()
        if state is None:
            self._set_aside_unreadable()
            logger.info("No usable stored state under %r; creating defaults", self.key)
            state = build_root_state()
        self.save(state)
        return state

    def _set_aside_unreadable(self) -> None:
        """Copies a stored payload that could not be loaded to `backup_key` before it is replaced."""
        with Session(self.engine) as session:
            rec = session.get(StoredRecord, self.key)
            if rec is None:
                return
            session.merge(StoredRecord(key=self.backup_key, payload=rec.payload))
            session.commit()
        logger.warning("Unreadable state under %r copied to %r", self.key, self.backup_key)

    def reset(self) -> None:
        with Session(self.engine) as session:
            rec = session.get(StoredRecord, self.key)
            if rec is not None:
                session.delete(rec)
                session.commit()
        logger.warning("Stored state under %r deleted", self.key)
