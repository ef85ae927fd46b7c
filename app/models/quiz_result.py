"""Quiz result model: one completed quiz attempt, append-only history per user."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from app.db.session import Base


class QuizResultRecord(Base):
    __tablename__ = "quiz_results"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), ForeignKey("profiles.user_id"), nullable=False, index=True)
    quiz_id = Column(String(64), nullable=False, index=True)
    quiz_name = Column(String(255), nullable=False)
    difficulty = Column(String(32), nullable=True)
    score = Column(Integer, nullable=False)
    total_questions = Column(Integer, nullable=False)
    percentage = Column(Integer, nullable=False)
    # JSON array indexed by question order: option index or null
    answers_json = Column(Text, nullable=False, default="[]")
    completed_at = Column(DateTime(timezone=True), nullable=False)

    profile = relationship("Profile", back_populates="quiz_results")
