"""SQLAlchemy declarative base and model imports for Alembic."""
from app.db.session import Base

# Import all models so Alembic can see them
from app.models.points_transaction import PointsTransactionRecord  # noqa: F401
from app.models.profile import Profile  # noqa: F401
from app.models.quiz_result import QuizResultRecord  # noqa: F401

__all__ = ["Base", "Profile", "QuizResultRecord", "PointsTransactionRecord"]
