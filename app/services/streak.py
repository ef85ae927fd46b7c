"""Activity streak: consecutive calendar days with at least one recorded action."""
from datetime import date, timedelta

from app.schemas.profile import ProgressProfileSchema


def advance_streak(profile: ProgressProfileSchema, today: date) -> ProgressProfileSchema:
    """Record activity on `today`.

    Same day as the last activity: unchanged. The day after: +1.
    Any longer gap, or first activity ever: streak restarts at 1.
    """
    last = profile.last_activity_date
    if last is not None and last >= today:
        return profile

    if last is not None and last == today - timedelta(days=1):
        streak = profile.current_streak + 1
    else:
        streak = 1
    return profile.model_copy(update={"current_streak": streak, "last_activity_date": today})
