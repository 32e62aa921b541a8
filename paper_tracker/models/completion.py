"""Completion model definitions."""

from sqlalchemy import Column, Date, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from paper_tracker.database import Base


class Completion(Base):
    """Represents one attempt at a test."""
    __tablename__ = "completions"

    id = Column(Integer, primary_key=True)
    achieved_mark = Column(Integer, nullable=False)
    total_marks = Column(Integer, nullable=False)
    date = Column(Date)
    comments = Column(String)
    test_id = Column(Integer, ForeignKey("tests.id", ondelete="CASCADE"), nullable=False, index=True)

    test = relationship("Test", back_populates="completions")
