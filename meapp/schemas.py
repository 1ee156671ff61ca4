import math
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# ----------------------------------------------------
# CLOSED KEY SETS
# ----------------------------------------------------

class MonthName(str, Enum):
    JANUARY = "January"
    FEBRUARY = "February"
    MARCH = "March"
    APRIL = "April"
    MAY = "May"
    JUNE = "June"
    JULY = "July"
    AUGUST = "August"
    SEPTEMBER = "September"
    OCTOBER = "October"
    NOVEMBER = "November"
    DECEMBER = "December"

    @property
    def number(self) -> int:
        return list(MonthName).index(self) + 1


class WheelDimension(str, Enum):
    SELF_EXPRESSION = "selfExpression"
    COURAGE = "courage"
    BOUNDARIES = "boundaries"
    CREATIVITY = "creativity"
    RELATIONSHIPS = "relationships"
    DISCIPLINE = "discipline"


class WeekKey(str, Enum):
    WEEK1 = "week1"
    WEEK2 = "week2"
    WEEK3 = "week3"
    WEEK4 = "week4"
    WEEK5 = "week5"


class View(str, Enum):
    HOME = "home"
    DASHBOARD = "dashboard"
    MONTH = "month"
    YEAR_END = "yearEnd"


ALIGNMENT_RANGE = (0, 100)
WHEEL_RANGE = (0, 10)


def clamp_score(value: Any, low: int, high: int) -> Any:
    """Round numeric input and clamp it into [low, high]; leave the rest to pydantic."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return value
    if isinstance(value, float) and not math.isfinite(value):
        return value
    if isinstance(value, (int, float)):
        return max(low, min(high, int(round(value))))
    return value


class StateModel(BaseModel):
    """Base for every persisted model: camelCase on the wire, unknown fields kept."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        validate_assignment=True,
    )


# ----------------------------------------------------
# PROFILE & DERIVED INSIGHTS
# ----------------------------------------------------

class Profile(StateModel):
    name: str
    birthdate: str
    birthplace: str = ""


class ChineseZodiac(StateModel):
    element: str
    animal: str


class DerivedInsights(StateModel):
    """Read-only numbers derived from (profile.birthdate, workbook.year)."""
    life_path: Optional[int] = None
    birthday_number: Optional[int] = None
    personal_year: Optional[int] = None
    sun_sign: Optional[str] = None
    chinese_zodiac: Optional[ChineseZodiac] = None


# ----------------------------------------------------
# MONTH
# ----------------------------------------------------

class Decision(StateModel):
    prompt: str = ""
    fear: str = ""
    cost_of_inaction: str = ""
    aligned_action: str = ""
    smallest_step: str = ""


class IdentityWheel(StateModel):
    self_expression: int = 5
    courage: int = 5
    boundaries: int = 5
    creativity: int = 5
    relationships: int = 5
    discipline: int = 5

    @field_validator(
        "self_expression", "courage", "boundaries", "creativity", "relationships", "discipline",
        mode="before",
    )
    @classmethod
    def _clamp(cls, v: Any) -> Any:
        return clamp_score(v, *WHEEL_RANGE)

    def scores(self) -> Dict[WheelDimension, int]:
        return {dim: getattr(self, _WHEEL_ATTRS[dim]) for dim in WheelDimension}


_WHEEL_ATTRS = {
    WheelDimension.SELF_EXPRESSION: "self_expression",
    WheelDimension.COURAGE: "courage",
    WheelDimension.BOUNDARIES: "boundaries",
    WheelDimension.CREATIVITY: "creativity",
    WheelDimension.RELATIONSHIPS: "relationships",
    WheelDimension.DISCIPLINE: "discipline",
}


def wheel_attr(dimension: WheelDimension) -> str:
    return _WHEEL_ATTRS[dimension]


def _empty_weekly_logs() -> Dict[WeekKey, str]:
    return {k: "" for k in WeekKey}


class MonthRecord(StateModel):
    theme: str = ""
    reflection: str = ""
    expression: str = ""
    relationships: str = ""
    alignment_score: int = 50
    decision: Decision = Field(default_factory=Decision)
    identity_wheel: IdentityWheel = Field(default_factory=IdentityWheel)
    daily_logs: Dict[str, str] = Field(default_factory=dict)
    weekly_logs: Dict[WeekKey, str] = Field(default_factory=_empty_weekly_logs)
    # UI cursor: last viewed day / week, safe to reset
    selected_day: str = ""
    selected_week: WeekKey = WeekKey.WEEK1

    @field_validator("alignment_score", mode="before")
    @classmethod
    def _clamp_alignment(cls, v: Any) -> Any:
        return clamp_score(v, *ALIGNMENT_RANGE)

    @field_validator("weekly_logs", mode="after")
    @classmethod
    def _all_weeks(cls, v: Dict[WeekKey, str]) -> Dict[WeekKey, str]:
        return {k: v.get(k, "") for k in WeekKey}


# ----------------------------------------------------
# WORKBOOK & ROOT
# ----------------------------------------------------

class YearEndRecord(StateModel):
    stayed_true: str = ""
    shifted: str = ""
    decisions_that_mattered: str = ""
    identity_snapshot: str = ""
    letter_to_past_self: str = ""
    letter_to_future_self: str = ""


class Workbook(StateModel):
    year: int
    title: str
    theme_line: str = ""
    profile_insights: DerivedInsights = Field(default_factory=DerivedInsights)
    months: Dict[MonthName, MonthRecord]
    year_end: YearEndRecord = Field(default_factory=YearEndRecord)

    @field_validator("months", mode="after")
    @classmethod
    def _all_months(cls, v: Dict[MonthName, MonthRecord]) -> Dict[MonthName, MonthRecord]:
        missing = [m.value for m in MonthName if m not in v]
        if missing:
            raise ValueError(f"missing month records: {', '.join(missing)}")
        return {m: v[m] for m in MonthName}


class UIState(StateModel):
    current_view: View = View.HOME
    current_month: MonthName = MonthName.JANUARY


class RootState(StateModel):
    profile: Optional[Profile] = None
    workbook: Workbook
    ui: UIState = Field(default_factory=UIState)

    def to_json(self, indent: Optional[int] = None) -> str:
        return self.model_dump_json(by_alias=True, indent=indent)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ExportRecord(StateModel):
    exported_at: str
    app: str
    version: str
    profile: Optional[Profile] = None
    workbook: Workbook


class GeneratedTheme(BaseModel):
    """Output of theme generation; not persisted as such."""
    title: str
    theme_line: str
    month_themes: Dict[MonthName, str]
    insights: DerivedInsights


def month_date(year: int, month: MonthName, day: int = 1) -> date:
    return date(year, month.number, day)
