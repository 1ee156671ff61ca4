from typing import Dict, Optional

ANIMALS = [
    "Rat", "Ox", "Tiger", "Rabbit",
    "Dragon", "Snake", "Horse", "Goat",
    "Monkey", "Rooster", "Dog", "Pig",
]

# Heavenly stems: each element covers two consecutive years.
STEMS = [
    "Wood", "Wood", "Fire", "Fire", "Earth",
    "Earth", "Metal", "Metal", "Water", "Water",
]

CYCLE_START = 1984  # Wood Rat


def zodiac_for_year(year: int) -> str:
    # Python's % is a true modulo, so years before 1984 wrap correctly
    return ANIMALS[(year - CYCLE_START) % 12]


def element_for_year(year: int) -> str:
    return STEMS[(year - CYCLE_START) % 10]


def chinese_zodiac(birth_year: Optional[int]) -> Optional[Dict[str, str]]:
    """Element + animal for a birth year, None when the year is unknown."""
    if birth_year is None:
        return None
    return {"element": element_for_year(birth_year), "animal": zodiac_for_year(birth_year)}
