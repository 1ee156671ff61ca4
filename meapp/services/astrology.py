from typing import Optional, Tuple

from .numerology import parse_iso_date

# (month, first day, sign) ordered through the calendar year.
# Capricorn wraps the year end, so dates before Jan 20 fall back to it.
SIGN_STARTS: Tuple[Tuple[int, int, str], ...] = (
    (1, 20, "Aquarius"),
    (2, 19, "Pisces"),
    (3, 21, "Aries"),
    (4, 20, "Taurus"),
    (5, 21, "Gemini"),
    (6, 21, "Cancer"),
    (7, 23, "Leo"),
    (8, 23, "Virgo"),
    (9, 23, "Libra"),
    (10, 23, "Scorpio"),
    (11, 22, "Sagittarius"),
    (12, 22, "Capricorn"),
)

SIGNS = tuple(s for _, _, s in SIGN_STARTS)

SIGN_ELEMENTS = {
    "Aries": "fire", "Leo": "fire", "Sagittarius": "fire",
    "Taurus": "earth", "Virgo": "earth", "Capricorn": "earth",
    "Gemini": "air", "Libra": "air", "Aquarius": "air",
    "Cancer": "water", "Scorpio": "water", "Pisces": "water",
}


def sign_for(month: int, day: int) -> str:
    """Western sun sign for a calendar (month, day) using fixed boundaries."""
    sign = "Capricorn"
    for m, d, name in SIGN_STARTS:
        if (month, day) >= (m, d):
            sign = name
    return sign


def sun_sign(birthdate_iso: Optional[str]) -> Optional[str]:
    d = parse_iso_date(birthdate_iso)
    if d is None:
        return None
    return sign_for(d.month, d.day)


def sign_element(sign: Optional[str]) -> Optional[str]:
    """fire / earth / air / water, None for unknown signs."""
    return SIGN_ELEMENTS.get(sign) if sign else None
