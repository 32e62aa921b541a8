import logging

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWTError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paper_tracker.auth import jwt_handler
from paper_tracker.core import config
from paper_tracker.core.errors import NotAuthenticated, StorageError
from paper_tracker.database import get_db
from paper_tracker.models.user import User

security = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


def resolve_user(token: str | None, db: Session) -> User:
    if not token:
        raise NotAuthenticated()

    try:
        payload = jwt_handler.decode_access_token(token)
    except PyJWTError as exc:
        raise NotAuthenticated("Invalid token.") from exc

    user_id = payload.get("sub")
    if not user_id:
        raise NotAuthenticated("Invalid token subject.")

    try:
        user = db.get(User, user_id)
    except SQLAlchemyError as exc:
        logger.exception("Failed to load session user")
        raise StorageError() from exc

    if user is None:
        raise NotAuthenticated("User not found.")
    return user


def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: Session = Depends(get_db),
) -> User:
    """Accept a bearer token, or fall back to the cookie the web UI sets."""
    token = credentials.credentials if credentials else request.cookies.get(config.SESSION_COOKIE_NAME)
    return resolve_user(token, db)


def get_optional_user(request: Request, db: Session = Depends(get_db)) -> User | None:
    token = request.cookies.get(config.SESSION_COOKIE_NAME)
    if not token:
        return None
    try:
        return resolve_user(token, db)
    except NotAuthenticated:
        return None
