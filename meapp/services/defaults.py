from typing import Dict

from ..schemas import (
    DerivedInsights, MonthName, MonthRecord, RootState, UIState, Workbook,
    YearEndRecord, month_date,
)

WORKBOOK_YEAR = 2026
DEFAULT_TITLE = "2026 Personal Workbook"

DEFAULT_MONTH_THEMES: Dict[MonthName, str] = {
    MonthName.JANUARY: "Where I Am Now",
    MonthName.FEBRUARY: "Choice",
    MonthName.MARCH: "Momentum",
    MonthName.APRIL: "Truth in Motion",
    MonthName.MAY: "Creative Bloom",
    MonthName.JUNE: "Alignment",
    MonthName.JULY: "Expression",
    MonthName.AUGUST: "Courage Month",
    MonthName.SEPTEMBER: "Integration",
    MonthName.OCTOBER: "Stability",
    MonthName.NOVEMBER: "Protection",
    MonthName.DECEMBER: "Living It Out Loud",
}


def default_theme(name: MonthName) -> str:
    return DEFAULT_MONTH_THEMES.get(MonthName(name), "")


def build_empty_month(name: MonthName, year: int = WORKBOOK_YEAR) -> MonthRecord:
    """Fresh month record: default theme, scores at 50 / 5, empty text."""
    name = MonthName(name)
    return MonthRecord(
        theme=default_theme(name),
        selected_day=month_date(year, name).isoformat(),
    )


def build_empty_year_end() -> YearEndRecord:
    return YearEndRecord()


def build_empty_workbook(year: int = WORKBOOK_YEAR) -> Workbook:
    return Workbook(
        year=year,
        title=DEFAULT_TITLE,
        theme_line="",
        profile_insights=DerivedInsights(),
        months={m: build_empty_month(m, year) for m in MonthName},
        year_end=build_empty_year_end(),
    )


def build_root_state(year: int = WORKBOOK_YEAR) -> RootState:
    """Brand-new state for a first run: no profile, home view, January."""
    return RootState(
        profile=None,
        workbook=build_empty_workbook(year),
        ui=UIState(),
    )
