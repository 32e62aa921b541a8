"""User model definitions."""

import secrets
import string

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from paper_tracker.database import Base

USER_ID_PREFIX = "user_"
USER_ID_LENGTH = 50
USER_ID_ALPHABET = string.ascii_letters + string.digits


def generate_user_id() -> str:
    return USER_ID_PREFIX + "".join(secrets.choice(USER_ID_ALPHABET) for _ in range(USER_ID_LENGTH))


class User(Base):
    """Represents an account that owns tests."""
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=generate_user_id)
    username = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)  # Argon2id PHC string

    tests = relationship("Test", back_populates="owner", order_by="Test.id")
