import json
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from ..schemas import (
    ChineseZodiac, DerivedInsights, GeneratedTheme, IdentityWheel, MonthName,
    MonthRecord, Profile, RootState,
)
from .astrology import sun_sign
from .chinese import chinese_zodiac
from .defaults import DEFAULT_MONTH_THEMES, DEFAULT_TITLE
from .numerology import birthday_number, life_path, parse_iso_date, personal_year

DATA_DIR = Path(__file__).resolve().parent.parent / "data"

# Months whose theme gets a hint suffix, and the hint table feeding each one.
HINT_MONTHS: Tuple[Tuple[MonthName, str, int], ...] = (
    (MonthName.FEBRUARY, "personal_year", 0),
    (MonthName.MAY, "sun_sign", 0),
    (MonthName.AUGUST, "personal_year", 1),
    (MonthName.DECEMBER, "sun_sign", 1),
)


def load_json(name: str) -> dict:
    """Loads a JSON table from meapp/data."""
    with open(DATA_DIR / name, "r", encoding="utf-8") as f:
        return json.load(f)


def _lookup(table: dict, key: Optional[object]) -> object:
    return table.get(str(key), table["default"]) if key is not None else table["default"]


# ----------------------------------------------------
# DERIVED INSIGHTS
# ----------------------------------------------------

def derive_insights(birthdate_iso: Optional[str], target_year: int) -> DerivedInsights:
    """Every read-only number shown for a profile; all None without a valid birthdate."""
    d = parse_iso_date(birthdate_iso)
    if d is None:
        return DerivedInsights()
    cz = chinese_zodiac(d.year)
    return DerivedInsights(
        life_path=life_path(birthdate_iso),
        birthday_number=birthday_number(birthdate_iso),
        personal_year=personal_year(birthdate_iso, target_year),
        sun_sign=sun_sign(birthdate_iso),
        chinese_zodiac=ChineseZodiac(**cz) if cz else None,
    )


# ----------------------------------------------------
# THEME GENERATION
# ----------------------------------------------------

def generate_theme(profile: Optional[Profile], target_year: int) -> Optional[GeneratedTheme]:
    """
    Builds the year's title, one-line theme and month overrides:
    - personal year → word triple
    - life path → guidance line
    - sun sign → action phrase
    - chinese zodiac → element + animal
    Returns None when there is no usable birthdate.
    """
    if profile is None or parse_iso_date(profile.birthdate) is None:
        return None

    insights = derive_insights(profile.birthdate, target_year)

    words: List[str] = _lookup(load_json("personal_year_words.json"), insights.personal_year)
    guidance: str = _lookup(load_json("life_path_guidance.json"), insights.life_path)
    action: str = _lookup(load_json("sun_sign_actions.json"), insights.sun_sign)
    hints = load_json("month_hints.json")

    title = f"{target_year} Orientation: {', '.join(words)}"

    cz = insights.chinese_zodiac
    theme_line = (
        f"Personal Year {insights.personal_year}: {guidance} "
        f"As a {insights.sun_sign} {cz.element} {cz.animal}, {action}."
    )

    month_themes: Dict[MonthName, str] = {}
    for month, table, idx in HINT_MONTHS:
        key = insights.personal_year if table == "personal_year" else insights.sun_sign
        hint = _lookup(hints[table], key)[idx]
        month_themes[month] = f"{DEFAULT_MONTH_THEMES[month]} ({hint})"

    return GeneratedTheme(
        title=title,
        theme_line=theme_line,
        month_themes=month_themes,
        insights=insights,
    )


def apply_owner_title(state: RootState, owner_name: str, owner_title: str) -> None:
    """
    The configured owner always gets the owner title; anyone else who
    inherited it is put back on the default title.
    """
    name = (state.profile.name if state.profile else "").strip().lower()
    owner = (owner_name or "").strip().lower()
    if owner and name == owner:
        state.workbook.title = owner_title
    elif not state.workbook.title or state.workbook.title == owner_title:
        state.workbook.title = DEFAULT_TITLE


# ----------------------------------------------------
# DISPLAY HELPERS
# ----------------------------------------------------

ALIGNMENT_LABELS = (
    (85, "Fully Aligned"),
    (70, "Mostly Aligned"),
    (50, "Mixed / In Progress"),
    (30, "Off Track / Draining"),
)


def alignment_label(score: int) -> str:
    for threshold, label in ALIGNMENT_LABELS:
        if score >= threshold:
            return label
    return "Silencing Myself"


def filled_sections(month: MonthRecord) -> int:
    return sum(
        1 for text in (month.reflection, month.expression, month.relationships, month.decision.prompt)
        if text and text.strip()
    )


def month_progress(month: MonthRecord) -> str:
    return f"{filled_sections(month)}/4 sections filled"


def wheel_average(wheel: IdentityWheel) -> float:
    scores = list(wheel.scores().values())
    return round(sum(scores) / len(scores), 1)
