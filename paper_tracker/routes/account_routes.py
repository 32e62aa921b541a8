import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from paper_tracker.auth import jwt_handler, passwords
from paper_tracker.auth.dependencies import get_current_user
from paper_tracker.core.errors import DuplicateUsername, InvalidCredentials, StorageError, ValidationError
from paper_tracker.database import get_db
from paper_tracker.models.user import User

router = APIRouter(tags=['accounts'])

logger = logging.getLogger(__name__)

MAX_USERNAME_LENGTH = 64
MAX_PASSWORD_LENGTH = 1024


def normalize_username(value: str) -> str:
    normalized = value.strip().lower()
    if not normalized:
        raise ValueError('Username is required.')
    if len(normalized) > MAX_USERNAME_LENGTH:
        raise ValueError(f'Username must be {MAX_USERNAME_LENGTH} characters or fewer.')
    return normalized


def check_password(value: str) -> str:
    if not value:
        raise ValueError('Password is required.')
    if len(value) > MAX_PASSWORD_LENGTH:
        raise ValueError(f'Password must be {MAX_PASSWORD_LENGTH} characters or fewer.')
    return value


class CredentialsRequest(BaseModel):
    username: str
    password: str

    @field_validator('username')
    @classmethod
    def validate_username(cls, value: str) -> str:
        return normalize_username(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password(value)


class LoginRequest(BaseModel):
    username: str
    password: str


class ChangePasswordRequest(BaseModel):
    current_password: str
    new_password: str

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, value: str) -> str:
        return check_password(value)


class UserResponse(BaseModel):
    id: str
    username: str

    class Config:
        from_attributes = True


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'
    user: UserResponse


def issue_session(user: User, expires_minutes: int | None = None) -> SessionResponse:
    token = jwt_handler.create_access_token(
        subject=user.id,
        username=user.username,
        expires_minutes=expires_minutes,
    )
    return SessionResponse(access_token=token, user=UserResponse.model_validate(user))


def create_account(username: str, password: str, db: Session) -> User:
    try:
        username = normalize_username(username)
        password = check_password(password)
    except ValueError as exc:
        raise ValidationError(str(exc)) from exc

    try:
        if db.query(User.id).filter(User.username == username).first() is not None:
            raise DuplicateUsername()

        user = User(username=username, hashed_password=passwords.hash_password(password))
        db.add(user)
        db.commit()
        db.refresh(user)
    except IntegrityError as exc:
        # Lost a race with a concurrent registration for the same name.
        db.rollback()
        raise DuplicateUsername() from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to create account')
        raise StorageError() from exc

    logger.info('Created account %s', user.id)
    return user


def authenticate(username: str, password: str, db: Session) -> User:
    username = username.strip().lower()

    try:
        user = db.query(User).filter(User.username == username).first()
    except SQLAlchemyError as exc:
        logger.exception('Failed to look up account')
        raise StorageError() from exc

    if user is None:
        passwords.verify_dummy_password(password)
        logger.info('Rejected login for unknown username')
        raise InvalidCredentials()

    if not passwords.verify_password(user.hashed_password, password):
        logger.info('Rejected login for %s', user.id)
        raise InvalidCredentials()

    if passwords.needs_rehash(user.hashed_password):
        try:
            user.hashed_password = passwords.hash_password(password)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            logger.warning('Could not upgrade password hash for %s', user.id, exc_info=True)

    logger.info('Logged in %s', user.id)
    return user


@router.post('/register', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def register(data: CredentialsRequest, db: Session = Depends(get_db)):
    user = create_account(data.username, data.password, db)
    return issue_session(user)


@router.post('/login', response_model=SessionResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = authenticate(data.username, data.password, db)
    return issue_session(user)


@router.get('/me', response_model=UserResponse)
def me(current_user: User = Depends(get_current_user)):
    return current_user


@router.post('/password', status_code=status.HTTP_204_NO_CONTENT)
def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    if not passwords.verify_password(current_user.hashed_password, data.current_password):
        raise InvalidCredentials('Current password is incorrect.')

    try:
        current_user.hashed_password = passwords.hash_password(data.new_password)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception('Failed to change password for %s', current_user.id)
        raise StorageError() from exc

    logger.info('Changed password for %s', current_user.id)
