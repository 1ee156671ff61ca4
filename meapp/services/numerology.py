import re
from datetime import date
from typing import Optional

MASTER_NUMBERS = (11, 22, 33)

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def reduce_digits(n: int) -> int:
    """
    Sums the decimal digits until the result is a single digit or a
    master number (11, 22, 33). 0 stays 0.
    """
    if n < 0:
        raise ValueError(f"reduce_digits expects a non-negative integer, got {n}")
    while n > 9 and n not in MASTER_NUMBERS:
        n = sum(int(d) for d in str(n))
    return n


def parse_iso_date(value: Optional[str]) -> Optional[date]:
    """Strict YYYY-MM-DD parser; returns None for anything else."""
    if not value or not isinstance(value, str):
        return None
    s = value.strip()
    if not _ISO_DATE.match(s):
        return None
    try:
        return date.fromisoformat(s)
    except ValueError:
        return None


def life_path(birthdate_iso: Optional[str]) -> Optional[int]:
    """Every digit of YYYYMMDD summed, then reduced."""
    d = parse_iso_date(birthdate_iso)
    if d is None:
        return None
    return reduce_digits(sum(int(c) for c in d.strftime("%Y%m%d")))


def birthday_number(birthdate_iso: Optional[str]) -> Optional[int]:
    d = parse_iso_date(birthdate_iso)
    if d is None:
        return None
    return reduce_digits(d.day)


def personal_year(birthdate_iso: Optional[str], target_year: int) -> Optional[int]:
    """
    Two-stage reduction:
    reduce(month) + reduce(day) + reduce(target_year) → reduce again.
    """
    d = parse_iso_date(birthdate_iso)
    if d is None:
        return None
    total = reduce_digits(d.month) + reduce_digits(d.day) + reduce_digits(abs(target_year))
    return reduce_digits(total)
