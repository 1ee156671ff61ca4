from datetime import datetime, timezone
from typing import Optional

from ..config import settings
from ..schemas import ExportRecord, RootState

EXPORT_FILENAME = "meapp_export_2026.json"


def build_export(state: RootState, now: Optional[datetime] = None) -> ExportRecord:
    """Self-contained snapshot of profile + workbook handed to the delivery adapter."""
    now = now or datetime.now(timezone.utc)
    return ExportRecord(
        exported_at=now.isoformat().replace("+00:00", "Z"),
        app=settings.EXPORT_APP_LABEL,
        version=settings.EXPORT_VERSION,
        profile=state.profile.model_copy(deep=True) if state.profile else None,
        workbook=state.workbook.model_copy(deep=True),
    )


def export_json(state: RootState, now: Optional[datetime] = None) -> str:
    return build_export(state, now).model_dump_json(by_alias=True, indent=2)
