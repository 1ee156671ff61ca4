import atexit
import threading
from datetime import datetime
from typing import Any, Dict, Optional, Tuple, Union

from pydantic.alias_generators import to_snake

from .config import settings
from .exceptions import ProfileExistsError, ProfileMissingError, ProfileValidationError, UnknownKeyError
from .logging_config import ensure_logging_setup, get_logger
from .schemas import (
    Decision, DerivedInsights, ExportRecord, IdentityWheel, MonthName, MonthRecord,
    Profile, RootState, View, WeekKey, Workbook, YearEndRecord,
)
from .services.autosave import AutosaveScheduler, TimerFactory
from .services.defaults import default_theme
from .services.export import build_export, export_json
from .services.numerology import parse_iso_date
from .services.storage import StorageGateway
from .services.themes import apply_owner_title, derive_insights, generate_theme

logger = get_logger(__name__)

MonthKey = Union[MonthName, str]

TEXT_FIELDS = ("theme", "reflection", "expression", "relationships")


def _model_field(model, name: str, kind: str) -> str:
    """camelCase or snake_case name → model attribute, UnknownKeyError otherwise."""
    attr = to_snake(name) if isinstance(name, str) else name
    if attr not in model.model_fields:
        allowed = [f.alias or k for k, f in model.model_fields.items()]
        raise UnknownKeyError(kind, name, allowed)
    return attr


def _parse_month(name: MonthKey) -> MonthName:
    try:
        return MonthName(name)
    except ValueError:
        raise UnknownKeyError("month", name, [m.value for m in MonthName]) from None


def _parse_week(key: Union[WeekKey, str]) -> WeekKey:
    try:
        return WeekKey(key)
    except ValueError:
        raise UnknownKeyError("week", key, [w.value for w in WeekKey]) from None


def _require_text(field: str, value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{field} expects text, got {type(value).__name__}")
    return value


class WorkbookController:
    """
    In-memory mutation API used by the UI adapters.

    Every mutation changes the live RootState under the controller lock and
    then schedules a debounced save; the save writes whatever state is live
    when the quiet window ends.
    """

    def __init__(
        self,
        gateway: StorageGateway,
        debounce_ms: Optional[int] = None,
        timer_factory: Optional[TimerFactory] = None,
        owner_name: Optional[str] = None,
        owner_title: Optional[str] = None,
    ):
        self.gateway = gateway
        self.owner_name = settings.OWNER_NAME if owner_name is None else owner_name
        self.owner_title = owner_title or settings.OWNER_TITLE
        self._lock = threading.RLock()
        delay = (settings.AUTOSAVE_DEBOUNCE_MS if debounce_ms is None else debounce_ms) / 1000.0
        self.autosave = AutosaveScheduler(self._save, delay, timer_factory)

        self._state = gateway.ensure()
        self._refresh_insights()

    # ----------------------------------------------------
    # READ ACCESSORS
    # ----------------------------------------------------

    @property
    def state(self) -> RootState:
        return self._state

    @property
    def profile(self) -> Optional[Profile]:
        return self._state.profile

    @property
    def workbook(self) -> Workbook:
        return self._state.workbook

    @property
    def insights(self) -> DerivedInsights:
        return self._state.workbook.profile_insights

    def month(self, name: MonthKey) -> MonthRecord:
        return self._state.workbook.months[_parse_month(name)]

    # ----------------------------------------------------
    # PERSISTENCE
    # ----------------------------------------------------

    def _save(self) -> None:
        with self._lock:
            self.gateway.save(self._state)

    def _schedule_save(self) -> None:
        self.autosave.schedule()

    def flush(self) -> bool:
        """Write a pending autosave now (e.g. before the host shuts down)."""
        return self.autosave.flush()

    def reset(self) -> RootState:
        """Deletes every stored entry and starts over from defaults. Cannot be undone."""
        with self._lock:
            self.autosave.cancel()
            self.gateway.reset()
            self._state = self.gateway.ensure()
            self._refresh_insights()
        return self._state

    # ----------------------------------------------------
    # PROFILE
    # ----------------------------------------------------

    def _refresh_insights(self) -> None:
        with self._lock:
            wb = self._state.workbook
            birthdate = self._state.profile.birthdate if self._state.profile else None
            wb.profile_insights = derive_insights(birthdate, wb.year)

    @staticmethod
    def _validate_profile(name: Any, birthdate: Any, birthplace: Any) -> Profile:
        errors: Dict[str, str] = {}
        name = name.strip() if isinstance(name, str) else ""
        birthdate = birthdate.strip() if isinstance(birthdate, str) else ""
        birthplace = birthplace.strip() if isinstance(birthplace, str) else ""
        if not name:
            errors["name"] = "required"
        if not birthdate:
            errors["birthdate"] = "required"
        elif parse_iso_date(birthdate) is None:
            errors["birthdate"] = "must be a valid YYYY-MM-DD date"
        if errors:
            raise ProfileValidationError(errors)
        return Profile(name=name, birthdate=birthdate, birthplace=birthplace)

    def create_profile(self, name: str, birthdate: str, birthplace: str = "") -> Profile:
        """
        Onboarding: sets the profile, applies the generated theme and opens
        the dashboard. Raises ProfileValidationError without touching state
        when name or birthdate is unusable.
        """
        profile = self._validate_profile(name, birthdate, birthplace)
        with self._lock:
            if self._state.profile is not None:
                raise ProfileExistsError("A profile already exists; use edit_profile")
            self._set_profile(profile, previous=None)
            self._state.ui.current_view = View.DASHBOARD
        logger.info("Profile created")
        self._schedule_save()
        return profile

    def edit_profile(self, name: str, birthdate: str, birthplace: str = "") -> Profile:
        profile = self._validate_profile(name, birthdate, birthplace)
        with self._lock:
            previous = self._state.profile
            if previous is None:
                raise ProfileMissingError("No profile yet; use create_profile")
            self._set_profile(profile, previous=previous)
        logger.info("Profile edited")
        self._schedule_save()
        return profile

    def _set_profile(self, profile: Profile, previous: Optional[Profile]) -> None:
        self._state.profile = profile
        self._apply_generated_theme(previous)
        apply_owner_title(self._state, self.owner_name, self.owner_title)

    def _apply_generated_theme(self, previous: Optional[Profile]) -> None:
        wb = self._state.workbook
        generated = generate_theme(self._state.profile, wb.year)
        if generated is None:
            self._refresh_insights()
            return
        before = generate_theme(previous, wb.year) if previous is not None else None

        wb.title = generated.title
        wb.theme_line = generated.theme_line
        wb.profile_insights = generated.insights

        for month in MonthName:
            record = wb.months[month]
            replaceable = {"", default_theme(month)}
            if before is not None:
                replaceable.add(before.month_themes.get(month, default_theme(month)))
            if record.theme in replaceable:
                record.theme = generated.month_themes.get(month, default_theme(month))

    def apply_theme(self) -> None:
        """Regenerates title/theme line/month themes for the current profile."""
        with self._lock:
            if self._state.profile is None:
                raise ProfileMissingError("No profile to derive a theme from")
            self._apply_generated_theme(previous=self._state.profile)
            apply_owner_title(self._state, self.owner_name, self.owner_title)
        self._schedule_save()

    # ----------------------------------------------------
    # MONTH EDITS
    # ----------------------------------------------------

    def _resolve_path(self, field_path: str) -> Tuple[Optional[str], str]:
        """'decision.fear' → ('decision', 'fear'); 'reflection' → (None, 'reflection')."""
        if not isinstance(field_path, str) or not field_path:
            raise UnknownKeyError("month field", field_path)
        head, _, tail = field_path.partition(".")
        attr = _model_field(MonthRecord, head, "month field")
        if attr == "decision" and tail:
            return attr, _model_field(Decision, tail, "decision field")
        if attr == "identity_wheel" and tail:
            return attr, _model_field(IdentityWheel, tail, "identity wheel dimension")
        if tail or attr not in TEXT_FIELDS + ("alignment_score",):
            raise UnknownKeyError("month field", field_path)
        return None, attr

    def edit_month_field(self, month: MonthKey, field_path: str, value: Any) -> MonthRecord:
        """
        Sets one editable field of a month:
        - theme / reflection / expression / relationships
        - alignmentScore (clamped 0–100)
        - decision.<prompt|fear|costOfInaction|alignedAction|smallestStep>
        - identityWheel.<dimension> (clamped 0–10)
        """
        name = _parse_month(month)
        group, attr = self._resolve_path(field_path)
        with self._lock:
            record = self._state.workbook.months[name]
            if group is None:
                if attr in TEXT_FIELDS:
                    value = _require_text(field_path, value)
                setattr(record, attr, value)
            elif group == "decision":
                setattr(record.decision, attr, _require_text(field_path, value))
            else:
                setattr(record.identity_wheel, attr, value)
        self._schedule_save()
        return record

    def upsert_daily_log(self, month: MonthKey, date_iso: str, text: str) -> None:
        """Creates or overwrites the entry for one day of the month."""
        name = _parse_month(month)
        day = self._day_in_month(name, date_iso)
        text = _require_text("daily log", text)
        with self._lock:
            record = self._state.workbook.months[name]
            record.daily_logs[day] = text
            record.selected_day = day
        self._schedule_save()

    def upsert_weekly_log(self, month: MonthKey, week_key: Union[WeekKey, str], text: str) -> None:
        name = _parse_month(month)
        week = _parse_week(week_key)
        text = _require_text("weekly log", text)
        with self._lock:
            record = self._state.workbook.months[name]
            record.weekly_logs[week] = text
            record.selected_week = week
        self._schedule_save()

    def _day_in_month(self, month: MonthName, date_iso: str) -> str:
        d = parse_iso_date(date_iso)
        year = self._state.workbook.year
        if d is None or d.year != year or d.month != month.number:
            raise UnknownKeyError(f"day of {month.value} {year}", date_iso)
        return d.isoformat()

    def edit_year_end_field(self, field: str, value: str) -> YearEndRecord:
        attr = _model_field(YearEndRecord, field, "year-end field")
        value = _require_text(field, value)
        with self._lock:
            setattr(self._state.workbook.year_end, attr, value)
        self._schedule_save()
        return self._state.workbook.year_end

    # ----------------------------------------------------
    # UI CURSOR
    # ----------------------------------------------------

    def navigate(self, view: Union[View, str], month: Optional[MonthKey] = None) -> View:
        """
        Moves the UI to a view (and month). Without a profile only the home
        view is reachable. Returns the view actually selected.
        """
        try:
            target = View(view)
        except ValueError:
            raise UnknownKeyError("view", view, [v.value for v in View]) from None
        name = _parse_month(month) if month is not None else None
        with self._lock:
            if self._state.profile is None and target != View.HOME:
                target = View.HOME
            self._state.ui.current_view = target
            if name is not None:
                self._state.ui.current_month = name
        self._schedule_save()
        return target

    def select_day(self, month: MonthKey, date_iso: str) -> None:
        name = _parse_month(month)
        day = self._day_in_month(name, date_iso)
        with self._lock:
            self._state.workbook.months[name].selected_day = day
        self._schedule_save()

    def select_week(self, month: MonthKey, week_key: Union[WeekKey, str]) -> None:
        name = _parse_month(month)
        week = _parse_week(week_key)
        with self._lock:
            self._state.workbook.months[name].selected_week = week
        self._schedule_save()

    # ----------------------------------------------------
    # EXPORT
    # ----------------------------------------------------

    def export(self, now: Optional[datetime] = None) -> ExportRecord:
        with self._lock:
            apply_owner_title(self._state, self.owner_name, self.owner_title)
            return build_export(self._state, now)

    def export_json(self, now: Optional[datetime] = None) -> str:
        with self._lock:
            apply_owner_title(self._state, self.owner_name, self.owner_title)
            return export_json(self._state, now)


def build_controller() -> WorkbookController:
    """
    Controller over the configured local database, with logging set up.
    A pending autosave is flushed at interpreter exit.
    """
    ensure_logging_setup()
    controller = WorkbookController(StorageGateway())
    atexit.register(controller.flush)
    return controller
