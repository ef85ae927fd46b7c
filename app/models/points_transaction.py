"""Points transaction model: append-only log of every points grant."""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db.session import Base


class PointsTransactionRecord(Base):
    __tablename__ = "points_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(128), ForeignKey("profiles.user_id"), nullable=False, index=True)
    amount = Column(Integer, nullable=False)
    reason = Column(String(255), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    profile = relationship("Profile", back_populates="transactions")
