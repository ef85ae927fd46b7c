from app.models.profile import Profile
from app.models.quiz_result import QuizResultRecord
from app.models.points_transaction import PointsTransactionRecord

__all__ = ["Profile", "QuizResultRecord", "PointsTransactionRecord"]
