"""Points ledger: totals and level from point grants."""
from datetime import datetime, timezone

from app.core.errors import InvalidAmount
from app.schemas.profile import PointsTransactionSchema, ProgressProfileSchema

POINTS_PER_LEVEL = 500


def compute_level(total_points: int, points_per_level: int = POINTS_PER_LEVEL) -> int:
    """Return level for a point total: one level per full points_per_level, starting at 1."""
    return total_points // points_per_level + 1


def apply_points(
    profile: ProgressProfileSchema,
    amount: int,
    reason: str,
    now: datetime | None = None,
    points_per_level: int = POINTS_PER_LEVEL,
) -> tuple[ProgressProfileSchema, PointsTransactionSchema]:
    """Add amount to the profile's total, recompute level, return the log entry to append."""
    # bool is an int subclass; reject it along with non-positive amounts
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise InvalidAmount(amount)

    total = profile.total_points + amount
    updated = profile.model_copy(
        update={"total_points": total, "level": compute_level(total, points_per_level)}
    )
    txn = PointsTransactionSchema(
        amount=amount,
        reason=reason,
        timestamp=now or datetime.now(timezone.utc),
    )
    return updated, txn
