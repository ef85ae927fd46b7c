"""Deterministic habit rotation: same habits for everyone within a day, month or year."""
from datetime import date
from typing import Sequence, TypeVar

from app.schemas.catalog import ContentCatalog, HabitSchema

T = TypeVar("T")

# LCG constants: seed = (seed * 9301 + 49297) % 233280
LCG_MULTIPLIER = 9301
LCG_INCREMENT = 49297
LCG_MODULUS = 233280


def seeded_shuffle(items: Sequence[T], seed: int) -> list[T]:
    """Fisher-Yates shuffle driven by the LCG. Integer arithmetic only, so output is portable."""
    shuffled = list(items)
    current = seed
    for i in range(len(shuffled) - 1, 0, -1):
        current = (current * LCG_MULTIPLIER + LCG_INCREMENT) % LCG_MODULUS
        # floor(current / MODULUS * (i + 1)) without going through a float
        j = current * (i + 1) // LCG_MODULUS
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def select_for_period(pool: Sequence[T], period_seed: int, count: int) -> list[T]:
    """First min(count, len(pool)) items of the pool shuffled with period_seed."""
    if count <= 0:
        return []
    return seeded_shuffle(pool, period_seed)[:count]


def daily_seed(day: date) -> int:
    return day.year * 10000 + day.month * 100 + day.day


def monthly_seed(day: date) -> int:
    return day.year * 100 + day.month


def yearly_seed(day: date) -> int:
    return day.year


def daily_habits(catalog: ContentCatalog, day: date, count: int = 3) -> list[HabitSchema]:
    return select_for_period(catalog.habits_by_frequency("daily"), daily_seed(day), count)


def monthly_habits(catalog: ContentCatalog, day: date, count: int = 2) -> list[HabitSchema]:
    return select_for_period(catalog.habits_by_frequency("monthly"), monthly_seed(day), count)


def yearly_habits(catalog: ContentCatalog, day: date, count: int = 1) -> list[HabitSchema]:
    return select_for_period(catalog.habits_by_frequency("yearly"), yearly_seed(day), count)


def todays_habits(
    catalog: ContentCatalog,
    day: date,
    daily: int = 3,
    monthly: int = 2,
    yearly: int = 1,
) -> list[HabitSchema]:
    """Daily, then monthly, then yearly picks; each drawn from its own pool and seed."""
    return (
        daily_habits(catalog, day, daily)
        + monthly_habits(catalog, day, monthly)
        + yearly_habits(catalog, day, yearly)
    )


def tip_of_the_day(tips: Sequence[str], day: date) -> str | None:
    """Rotate through tips by day of year."""
    if not tips:
        return None
    return tips[day.timetuple().tm_yday % len(tips)]
