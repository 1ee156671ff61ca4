import pytest

from meapp.schemas import IdentityWheel, MonthName, MonthRecord, Profile
from meapp.services import themes
from meapp.services.defaults import DEFAULT_MONTH_THEMES, DEFAULT_TITLE, build_root_state
from meapp.services.themes import (
    alignment_label, apply_owner_title, derive_insights, generate_theme, month_progress, wheel_average,
)


def test_derive_insights():
    insights = derive_insights("1990-03-15", 2026)
    assert insights.life_path == 1
    assert insights.birthday_number == 6
    assert insights.personal_year == 1
    assert insights.sun_sign == "Pisces"
    assert insights.chinese_zodiac.element == "Metal"
    assert insights.chinese_zodiac.animal == "Horse"


def test_derive_insights_is_deterministic():
    assert derive_insights("1975-07-30", 2026) == derive_insights("1975-07-30", 2026)


def test_derive_insights_without_birthdate():
    insights = derive_insights(None, 2026)
    assert insights.life_path is None
    assert insights.sun_sign is None
    assert insights.chinese_zodiac is None


def test_generate_theme():
    theme = generate_theme(Profile(name="Ada", birthdate="1990-03-15", birthplace=""), 2026)

    assert theme.title == "2026 Orientation: Begin, Initiate, Plant"
    assert theme.theme_line == (
        "Personal Year 1: Lead with your own voice before waiting for permission. "
        "As a Pisces Metal Horse, let intuition lead and give it a shape."
    )
    assert theme.month_themes == {
        MonthName.FEBRUARY: "Choice (first steps)",
        MonthName.MAY: "Creative Bloom (dream)",
        MonthName.AUGUST: "Courage Month (bold starts)",
        MonthName.DECEMBER: "Living It Out Loud (flow)",
    }
    assert theme.insights == derive_insights("1990-03-15", 2026)


@pytest.mark.parametrize("profile", [None, Profile(name="Ada", birthdate=""), Profile(name="Ada", birthdate="03/15/1990")])
def test_generate_theme_skipped_without_birthdate(profile):
    assert generate_theme(profile, 2026) is None


def test_unmapped_values_fall_back(monkeypatch):
    real = themes.load_json

    def sparse(name):
        table = real(name)
        if name == "month_hints.json":
            return {k: {"default": v["default"]} for k, v in table.items()}
        return {"default": table["default"]}

    monkeypatch.setattr(themes, "load_json", sparse)
    theme = generate_theme(Profile(name="Ada", birthdate="1990-03-15"), 2026)

    assert theme.title == "2026 Orientation: Grow, Notice, Choose"
    assert "Take one honest step at a time." in theme.theme_line
    assert theme.theme_line.endswith("move with intention.")
    assert theme.month_themes[MonthName.FEBRUARY] == "Choice (fresh focus)"
    assert theme.month_themes[MonthName.MAY] == "Creative Bloom (intention)"


def test_data_tables_cover_every_number_and_sign():
    keys = {str(n) for n in list(range(1, 10)) + [11, 22, 33]}
    assert keys <= set(themes.load_json("personal_year_words.json"))
    assert keys <= set(themes.load_json("life_path_guidance.json"))
    signs = set(themes.load_json("sun_sign_actions.json")) - {"default"}
    assert len(signs) == 12
    hints = themes.load_json("month_hints.json")
    assert keys <= set(hints["personal_year"])
    assert signs <= set(hints["sun_sign"])


def test_owner_title():
    state = build_root_state()
    state.profile = Profile(name="  Jane DOE ", birthdate="1990-03-15")
    apply_owner_title(state, "jane doe", "Owner Title")
    assert state.workbook.title == "Owner Title"

    state.profile = Profile(name="Someone Else", birthdate="1990-03-15")
    apply_owner_title(state, "jane doe", "Owner Title")
    assert state.workbook.title == DEFAULT_TITLE


def test_owner_title_leaves_generated_title_alone():
    state = build_root_state()
    state.profile = Profile(name="Ada", birthdate="1990-03-15")
    state.workbook.title = "2026 Orientation: Begin, Initiate, Plant"
    apply_owner_title(state, "", "Owner Title")
    assert state.workbook.title == "2026 Orientation: Begin, Initiate, Plant"


@pytest.mark.parametrize("score,label", [
    (100, "Fully Aligned"), (85, "Fully Aligned"), (84, "Mostly Aligned"),
    (70, "Mostly Aligned"), (50, "Mixed / In Progress"), (49, "Off Track / Draining"),
    (30, "Off Track / Draining"), (29, "Silencing Myself"), (0, "Silencing Myself"),
])
def test_alignment_label(score, label):
    assert alignment_label(score) == label


def test_month_progress():
    m = MonthRecord(theme=DEFAULT_MONTH_THEMES[MonthName.MARCH])
    assert month_progress(m) == "0/4 sections filled"
    m.reflection = "Long month."
    m.decision.prompt = "Move?"
    m.expression = "   "
    assert month_progress(m) == "2/4 sections filled"


def test_wheel_average():
    assert wheel_average(IdentityWheel()) == 5.0
    assert wheel_average(IdentityWheel(courage=10, discipline=0, creativity=8)) == 5.5
