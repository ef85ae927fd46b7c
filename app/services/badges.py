"""Badge eligibility and at-most-once awards.

Every badge a profile does not hold yet is checked against the profile's
current counters. Awards grant the badge's points through the ledger, which
can push ``total_points``/``level_reached`` badges over their threshold, so
evaluation repeats until a pass awards nothing.

``perfect_quiz_score`` badges are never eligible here: the quiz completion
path awards the perfect-score badge directly (see ``progression``).
"""
import logging
from datetime import datetime, timezone

from app.core.errors import UnknownCriteriaType
from app.schemas.catalog import BadgeSchema, ContentCatalog
from app.schemas.profile import (
    AwardedBadgeSchema,
    PointsTransactionSchema,
    ProgressProfileSchema,
)
from app.services.ledger import POINTS_PER_LEVEL, apply_points

logger = logging.getLogger(__name__)

DEFAULT_BADGE_POINTS = 100


def _quiz_average(badge: BadgeSchema, profile: ProgressProfileSchema, catalog: ContentCatalog) -> bool:
    requirement = badge.criteria.requirement
    if badge.criteria.all_quizzes and profile.quizzes_taken < len(catalog.quizzes):
        return False
    return profile.average_quiz_score >= requirement


_PREDICATES = {
    "quiz_completion": lambda b, p, c: p.quizzes_taken >= b.criteria.requirement,
    "habits_enabled": lambda b, p, c: p.enabled_habit_count() >= b.criteria.requirement,
    "total_points": lambda b, p, c: p.total_points >= b.criteria.requirement,
    "level_reached": lambda b, p, c: p.level >= b.criteria.requirement,
    "activity_streak": lambda b, p, c: p.current_streak >= b.criteria.requirement,
    "quiz_average": _quiz_average,
    "perfect_quiz_score": lambda b, p, c: False,
}


def check_eligibility(badge: BadgeSchema, profile: ProgressProfileSchema, catalog: ContentCatalog) -> bool:
    """Return True when the profile meets the badge's criteria (held badges not considered)."""
    predicate = _PREDICATES.get(badge.criteria.type)
    if predicate is None:
        raise UnknownCriteriaType(badge.id, badge.criteria.type)
    return bool(predicate(badge, profile, catalog))


def available_badges(profile: ProgressProfileSchema, catalog: ContentCatalog) -> list[BadgeSchema]:
    """Catalog badges the profile has not earned yet, in catalog order."""
    held = profile.badge_ids()
    return [b for b in catalog.badges if b.id not in held]


def eligible_badges(profile: ProgressProfileSchema, catalog: ContentCatalog) -> list[BadgeSchema]:
    """Unheld badges whose criteria the profile meets right now. Malformed badges are skipped."""
    result = []
    for badge in available_badges(profile, catalog):
        try:
            if check_eligibility(badge, profile, catalog):
                result.append(badge)
        except UnknownCriteriaType as exc:
            logger.warning("Skipping badge: %s", exc)
    return result


def award_badge(
    profile: ProgressProfileSchema,
    badge: BadgeSchema,
    now: datetime | None = None,
    default_points: int = DEFAULT_BADGE_POINTS,
    points_per_level: int = POINTS_PER_LEVEL,
) -> tuple[ProgressProfileSchema, PointsTransactionSchema | None]:
    """Append badge and grant its points. Held badges are left alone (returns no transaction)."""
    if profile.has_badge(badge.id):
        return profile, None

    now = now or datetime.now(timezone.utc)
    awarded = AwardedBadgeSchema(**badge.model_dump(), earned_at=now)
    profile = profile.model_copy(update={"badges": profile.badges + (awarded,)})
    return apply_points(
        profile,
        badge.points or default_points,
        f"Earned badge: {badge.name}",
        now=now,
        points_per_level=points_per_level,
    )


def evaluate(
    profile: ProgressProfileSchema,
    catalog: ContentCatalog,
    now: datetime | None = None,
    default_points: int = DEFAULT_BADGE_POINTS,
    points_per_level: int = POINTS_PER_LEVEL,
) -> tuple[ProgressProfileSchema, list[BadgeSchema], list[PointsTransactionSchema]]:
    """Award every badge the profile qualifies for, cascading through point grants.

    Returns the updated profile, the newly awarded badges in award order and
    the points transactions those awards produced.
    """
    awarded: list[BadgeSchema] = []
    transactions: list[PointsTransactionSchema] = []

    while True:
        awarded_this_pass = False
        for badge in available_badges(profile, catalog):
            try:
                if not check_eligibility(badge, profile, catalog):
                    continue
            except UnknownCriteriaType as exc:
                logger.warning("Skipping badge: %s", exc)
                continue

            profile, txn = award_badge(
                profile, badge, now=now,
                default_points=default_points, points_per_level=points_per_level,
            )
            if txn is None:
                continue
            awarded.append(badge)
            transactions.append(txn)
            awarded_this_pass = True
        if not awarded_this_pass:
            break

    return profile, awarded, transactions
