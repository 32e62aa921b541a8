"""Argon2id password hashing for stored accounts."""

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

_hasher = PasswordHasher()

# Verified against when a username does not exist, so a failed login takes the
# same time whether or not the account is there.
_DUMMY_HASH = _hasher.hash("paper-tracker-dummy-password")


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(hashed_password: str, password: str) -> bool:
    try:
        return _hasher.verify(hashed_password, password)
    except (VerificationError, InvalidHashError):
        return False


def verify_dummy_password(password: str) -> bool:
    verify_password(_DUMMY_HASH, password)
    return False


def needs_rehash(hashed_password: str) -> bool:
    return _hasher.check_needs_rehash(hashed_password)
