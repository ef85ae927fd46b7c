"""Profile model: one per user id. Points, level, quiz stats, habits and badges."""
from sqlalchemy import Column, Date, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from app.db.session import Base


class Profile(Base):
    __tablename__ = "profiles"

    user_id = Column(String(128), primary_key=True)
    email = Column(String(255), nullable=True)
    display_name = Column(String(255), nullable=True)

    total_points = Column(Integer, nullable=False, default=0, index=True)
    level = Column(Integer, nullable=False, default=1)  # total_points // 500 + 1
    quizzes_taken = Column(Integer, nullable=False, default=0)
    total_quiz_score = Column(Float, nullable=False, default=0.0)
    average_quiz_score = Column(Float, nullable=False, default=0.0)
    current_streak = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(Date, nullable=True)

    # SQLite doesn't have native JSON; we use Text and store JSON strings
    # habits: {habit_id: bool}; badges: [{...badge, earned_at}] in award order
    habits_json = Column(Text, nullable=False, default="{}")
    badges_json = Column(Text, nullable=False, default="[]")

    # bumped on every write; updates are compare-and-set against it
    version = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=True)

    quiz_results = relationship(
        "QuizResultRecord", back_populates="profile", order_by="QuizResultRecord.id"
    )
    transactions = relationship(
        "PointsTransactionRecord", back_populates="profile", order_by="PointsTransactionRecord.id"
    )
