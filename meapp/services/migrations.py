"""
Repair of persisted workbook records written by older schema revisions.

The stored record carries no version number: every revision of the schema is
additive, so an old record is recognised purely by what is missing from it.
``migrate_state`` works on the JSON-shaped dict (before typed validation) and
fills in every absent field from the defaults builder, never touching a value
that is already present. Running it on its own output changes nothing.

A field counts as absent when it is missing, null, or of a JSON type that
cannot be read as that field (a legacy shape). Non-text log entries are
stringified. Entries stored under keys the schema cannot address (an unknown
month name, a week past ``week5``) are moved to ``unknownMonths`` /
``unknownWeeklyLogs`` extras, which round-trip untouched.
"""

import copy
import math
from typing import Any, Dict, List

from pydantic import ValidationError

from ..logging_config import get_logger
from ..schemas import DerivedInsights, MonthName, RootState, View, WeekKey
from .defaults import WORKBOOK_YEAR, build_empty_month, build_empty_workbook, build_empty_year_end

logger = get_logger(__name__)

DEFAULT_UI = {"currentView": View.HOME.value, "currentMonth": MonthName.JANUARY.value}

_MONTH_VALUES = [m.value for m in MonthName]
_VIEW_VALUES = [v.value for v in View]
_WEEK_VALUES = [w.value for w in WeekKey]

# unreadable records are parked under these extra fields, never deleted
UNKNOWN_MONTHS_FIELD = "unknownMonths"
UNKNOWN_WEEKS_FIELD = "unknownWeeklyLogs"


def _dump(model) -> Dict[str, Any]:
    return model.model_dump(mode="json", by_alias=True)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    if isinstance(value, str):
        try:
            value = float(value)
        except ValueError:
            return False
    return isinstance(value, float) and math.isfinite(value)


def _matches(value: Any, default: Any) -> bool:
    """True when `value` is usable in place of `default`'s type."""
    if value is None:
        return False
    if isinstance(default, bool):
        return isinstance(value, bool)
    if isinstance(default, (int, float)):
        return _is_number(value)
    if isinstance(default, str):
        return isinstance(value, str)
    if isinstance(default, dict):
        return isinstance(value, dict)
    if isinstance(default, list):
        return isinstance(value, list)
    return True


def _fill(target: Dict[str, Any], defaults: Dict[str, Any], path: str, changes: List[str]) -> None:
    """Set every absent key of `target` from `defaults`; nested dicts one level at a time."""
    for key, default in defaults.items():
        if not _matches(target.get(key), default):
            target[key] = copy.deepcopy(default)
            changes.append(f"{path}.{key}")
        elif isinstance(default, dict) and default:
            _fill(target[key], default, f"{path}.{key}", changes)


def _text_mapping(values: Dict[str, Any], path: str, changes: List[str]) -> None:
    """Free-text logs: drop null entries, stringify legacy non-text ones."""
    for key in list(values):
        v = values[key]
        if v is None:
            del values[key]
            changes.append(f"{path}.{key}")
        elif not isinstance(v, str):
            values[key] = str(v)
            changes.append(f"{path}.{key}")


# ----------------------------------------------------
# RULES (applied in order)
# ----------------------------------------------------

def _repair_ui(state: Dict[str, Any], changes: List[str]) -> None:
    ui = state.get("ui")
    if not isinstance(ui, dict):
        state["ui"] = dict(DEFAULT_UI)
        changes.append("ui")
        return
    if ui.get("currentView") not in _VIEW_VALUES:
        ui["currentView"] = DEFAULT_UI["currentView"]
        changes.append("ui.currentView")
    if ui.get("currentMonth") not in _MONTH_VALUES:
        ui["currentMonth"] = DEFAULT_UI["currentMonth"]
        changes.append("ui.currentMonth")


def _repair_workbook(state: Dict[str, Any], changes: List[str]) -> Dict[str, Any]:
    wb = state.get("workbook")
    if not isinstance(wb, dict):
        wb = _dump(build_empty_workbook())
        state["workbook"] = wb
        changes.append("workbook")
    return wb


def _set_aside(container: Dict[str, Any], field: str, entries: Dict[str, Any],
               path: str, changes: List[str]) -> None:
    """Moves unreadable entries under an extra field instead of deleting them."""
    kept = container.get(field)
    if not isinstance(kept, dict):
        kept = {}
    kept.update(entries)
    container[field] = kept
    changes.append(f"{path}.{field}")


def _repair_months(wb: Dict[str, Any], changes: List[str]) -> None:
    months = wb.get("months")
    if not isinstance(months, dict):
        months = {}
        changes.append("workbook.months")

    unknown = {k: v for k, v in months.items() if k not in _MONTH_VALUES}
    if unknown:
        logger.warning("Setting aside month records with unknown names: %s", list(unknown))
        _set_aside(wb, UNKNOWN_MONTHS_FIELD, unknown, "workbook", changes)

    year = wb["year"]
    ordered: Dict[str, Any] = {}
    for name in MonthName:
        path = f"workbook.months.{name.value}"
        defaults = _dump(build_empty_month(name, int(year)))
        record = months.get(name.value)
        if not isinstance(record, dict):
            ordered[name.value] = defaults
            changes.append(path)
            continue
        for logs in ("dailyLogs", "weeklyLogs"):
            if isinstance(record.get(logs), dict):
                _text_mapping(record[logs], f"{path}.{logs}", changes)
        _fill(record, defaults, path, changes)
        if record["selectedWeek"] not in _WEEK_VALUES:
            record["selectedWeek"] = defaults["selectedWeek"]
            changes.append(f"{path}.selectedWeek")
        weekly = record["weeklyLogs"]
        odd_weeks = {k: weekly.pop(k) for k in list(weekly) if k not in _WEEK_VALUES}
        if odd_weeks:
            logger.warning("Setting aside %s weekly logs with unknown keys: %s",
                           name.value, list(odd_weeks))
            _set_aside(record, UNKNOWN_WEEKS_FIELD, odd_weeks, path, changes)
        ordered[name.value] = record

    if [k for k in months if k in _MONTH_VALUES] != list(ordered):
        changes.append("workbook.months(order)")
    wb["months"] = ordered


def _repair_year_end(wb: Dict[str, Any], changes: List[str]) -> None:
    defaults = _dump(build_empty_year_end())
    if not isinstance(wb.get("yearEnd"), dict):
        wb["yearEnd"] = defaults
        changes.append("workbook.yearEnd")
        return
    _fill(wb["yearEnd"], defaults, "workbook.yearEnd", changes)


def _repair_workbook_fields(wb: Dict[str, Any], changes: List[str]) -> None:
    defaults = _dump(build_empty_workbook())
    for key in ("title", "themeLine"):
        if not _matches(wb.get(key), defaults[key]):
            wb[key] = defaults[key]
            changes.append(f"workbook.{key}")

    insights = wb.get("profileInsights")
    try:
        DerivedInsights.model_validate(insights)
    except ValidationError:
        # derived data only; the controller recomputes it from the profile
        wb["profileInsights"] = defaults["profileInsights"]
        changes.append("workbook.profileInsights")


def _repair_year(wb: Dict[str, Any], changes: List[str]) -> None:
    year = wb.get("year")
    if isinstance(year, bool) or not isinstance(year, int) or not 1 <= year <= 9999:
        wb["year"] = WORKBOOK_YEAR
        changes.append("workbook.year")


def _repair_profile(state: Dict[str, Any], changes: List[str]) -> None:
    profile = state.get("profile")
    if profile is None:
        state["profile"] = None
        return
    if not isinstance(profile, dict):
        logger.warning("Discarding unreadable profile of type %s", type(profile).__name__)
        state["profile"] = None
        changes.append("profile")
        return
    _fill(profile, {"name": "", "birthdate": "", "birthplace": ""}, "profile", changes)


# ----------------------------------------------------
# PUBLIC API
# ----------------------------------------------------

def migrate_state(raw: Any) -> Dict[str, Any]:
    """
    Returns a repaired deep copy of `raw` that satisfies every structural
    invariant of RootState. Present user values are preserved as-is.
    """
    state: Dict[str, Any] = copy.deepcopy(raw) if isinstance(raw, dict) else {}
    changes: List[str] = []

    _repair_ui(state, changes)
    wb = _repair_workbook(state, changes)
    _repair_year(wb, changes)
    _repair_months(wb, changes)
    _repair_year_end(wb, changes)
    _repair_workbook_fields(wb, changes)
    _repair_profile(state, changes)

    if changes:
        logger.info("Migrated stored state (%d repairs): %s", len(changes), ", ".join(changes[:20]))
    return state


def migrate(raw: Any) -> RootState:
    """migrate_state followed by typed validation; raises ValidationError if still unreadable."""
    return RootState.model_validate(migrate_state(raw))
