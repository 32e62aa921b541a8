"""Test (past paper) model definitions."""

from sqlalchemy import Column, ForeignKey, Index, Integer, String, func
from sqlalchemy.orm import relationship

from paper_tracker.database import Base


class Test(Base):
    """Represents a past paper tracked by a user."""
    __tablename__ = "tests"

    id = Column(Integer, primary_key=True)
    subject = Column(String, nullable=False)  # Maths, English, Science
    topic = Column(String)  # Statistics, Shakespeare, Organic Chemistry
    date_or_id = Column(String, nullable=False)  # Monday 3 June 2019, Mock Set 1
    qualification_level = Column(String)  # GCSE, A Level
    exam_board = Column(String)  # Edexcel, AQA, OCR
    paper_link = Column(String)
    mark_scheme_link = Column(String)
    comments = Column(String)
    user_id = Column(String, ForeignKey("users.id"), nullable=False, index=True)

    owner = relationship("User", back_populates="tests")
    completions = relationship(
        "Completion",
        back_populates="test",
        order_by="Completion.id",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # NULL never equals NULL in a plain UNIQUE constraint, so missing optional
    # fields are coalesced to make exact duplicates collide.
    __table_args__ = (
        Index(
            "uq_tests_full_row",
            "user_id",
            "subject",
            "date_or_id",
            func.coalesce(topic, ""),
            func.coalesce(qualification_level, ""),
            func.coalesce(exam_board, ""),
            func.coalesce(paper_link, ""),
            func.coalesce(mark_scheme_link, ""),
            func.coalesce(comments, ""),
            unique=True,
        ),
    )
