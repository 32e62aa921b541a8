import datetime
import logging

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, field_validator, model_validator
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from paper_tracker.auth.dependencies import get_current_user
from paper_tracker.core.errors import DuplicateTest, NotFound, NotOwner, StorageError, ValidationError
from paper_tracker.database import ensure_record_schema, get_db
from paper_tracker.models.completion import Completion
from paper_tracker.models.test import Test
from paper_tracker.models.user import User

router = APIRouter(tags=['records'])

logger = logging.getLogger(__name__)

MAX_FIELD_LENGTH = 300
MAX_COMMENTS_LENGTH = 2000
# Largest value a 32-bit INTEGER column holds.
MAX_MARKS = 2**31 - 1


def clean_required(value: str, label: str) -> str:
    normalized = value.strip()
    if not normalized:
        raise ValueError(f'{label} is required.')
    if len(normalized) > MAX_FIELD_LENGTH:
        raise ValueError(f'{label} must be {MAX_FIELD_LENGTH} characters or fewer.')
    return normalized


def clean_optional(value: str | None, max_length: int = MAX_FIELD_LENGTH) -> str | None:
    if value is None:
        return None

    normalized = value.strip()
    if not normalized:
        return None

    if len(normalized) > max_length:
        raise ValueError(f'Must be {max_length} characters or fewer.')

    return normalized


def check_marks(achieved_mark: int, total_marks: int) -> None:
    if total_marks <= 0:
        raise ValueError('Total marks must be greater than zero.')
    if achieved_mark < 0:
        raise ValueError('Achieved mark cannot be negative.')
    if total_marks > MAX_MARKS:
        raise ValueError(f'Total marks must be {MAX_MARKS} or fewer.')
    if achieved_mark > total_marks:
        raise ValueError('Achieved mark cannot exceed total marks.')


class CreateTestRequest(BaseModel):
    subject: str
    date_or_id: str
    topic: str | None = None
    qualification_level: str | None = None
    exam_board: str | None = None
    paper_link: str | None = None
    mark_scheme_link: str | None = None
    comments: str | None = None

    @field_validator('subject')
    @classmethod
    def validate_subject(cls, value: str) -> str:
        return clean_required(value, 'Subject')

    @field_validator('date_or_id')
    @classmethod
    def validate_date_or_id(cls, value: str) -> str:
        return clean_required(value, 'Date or ID')

    @field_validator('topic', 'qualification_level', 'exam_board', 'paper_link', 'mark_scheme_link')
    @classmethod
    def validate_optional(cls, value: str | None) -> str | None:
        return clean_optional(value)

    @field_validator('comments')
    @classmethod
    def validate_comments(cls, value: str | None) -> str | None:
        return clean_optional(value, MAX_COMMENTS_LENGTH)


class UpdateTestRequest(BaseModel):
    subject: str | None = None
    date_or_id: str | None = None
    topic: str | None = None
    qualification_level: str | None = None
    exam_board: str | None = None
    paper_link: str | None = None
    mark_scheme_link: str | None = None
    comments: str | None = None

    @field_validator('subject')
    @classmethod
    def validate_subject(cls, value: str | None) -> str:
        if value is None:
            raise ValueError('Subject cannot be cleared.')
        return clean_required(value, 'Subject')

    @field_validator('date_or_id')
    @classmethod
    def validate_date_or_id(cls, value: str | None) -> str:
        if value is None:
            raise ValueError('Date or ID cannot be cleared.')
        return clean_required(value, 'Date or ID')

    @field_validator('topic', 'qualification_level', 'exam_board', 'paper_link', 'mark_scheme_link')
    @classmethod
    def validate_optional(cls, value: str | None) -> str | None:
        return clean_optional(value)

    @field_validator('comments')
    @classmethod
    def validate_comments(cls, value: str | None) -> str | None:
        return clean_optional(value, MAX_COMMENTS_LENGTH)


class CreateCompletionRequest(BaseModel):
    achieved_mark: int
    total_marks: int
    date: datetime.date | None = None
    comments: str | None = None

    @field_validator('comments')
    @classmethod
    def validate_comments(cls, value: str | None) -> str | None:
        return clean_optional(value, MAX_COMMENTS_LENGTH)

    @model_validator(mode='after')
    def validate_marks(self) -> 'CreateCompletionRequest':
        check_marks(self.achieved_mark, self.total_marks)
        return self


class UpdateCompletionRequest(BaseModel):
    achieved_mark: int | None = None
    total_marks: int | None = None
    date: datetime.date | None = None
    comments: str | None = None

    @field_validator('achieved_mark', 'total_marks')
    @classmethod
    def validate_mark_present(cls, value: int | None) -> int:
        if value is None:
            raise ValueError('Marks cannot be cleared.')
        return value

    @field_validator('comments')
    @classmethod
    def validate_comments(cls, value: str | None) -> str | None:
        return clean_optional(value, MAX_COMMENTS_LENGTH)


class CompletionResponse(BaseModel):
    id: int
    test_id: int
    achieved_mark: int
    total_marks: int
    date: datetime.date | None = None
    comments: str | None = None

    class Config:
        from_attributes = True


class TestResponse(BaseModel):
    id: int
    subject: str
    topic: str | None = None
    date_or_id: str
    qualification_level: str | None = None
    exam_board: str | None = None
    paper_link: str | None = None
    mark_scheme_link: str | None = None
    comments: str | None = None
    completions: list[CompletionResponse] = []

    class Config:
        from_attributes = True


def ensure_database_ready() -> None:
    try:
        ensure_record_schema()
    except SQLAlchemyError as exc:
        logger.exception('Record schema check failed')
        raise StorageError() from exc


def ensure_test_owner(test: Test | None, user: User) -> Test:
    if test is None:
        raise NotFound('Test not found.')
    if test.user_id != user.id:
        raise NotOwner('You do not have access to this test.')
    return test


def ensure_completion_owner(completion: Completion | None, user: User) -> Completion:
    if completion is None:
        raise NotFound('Completion not found.')
    if completion.test.user_id != user.id:
        raise NotOwner('You do not have access to this completion.')
    return completion


def storage_failure(db: Session, exc: SQLAlchemyError, action: str) -> StorageError:
    db.rollback()
    logger.error('Failed to %s', action, exc_info=exc)
    return StorageError()


@router.get('/tests', response_model=list[TestResponse])
def list_tests(current_user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    ensure_database_ready()

    try:
        tests = db.query(Test).options(selectinload(Test.completions)).filter(
            Test.user_id == current_user.id,
        ).order_by(Test.id.asc()).all()

        return [TestResponse.model_validate(test) for test in tests]
    except SQLAlchemyError as exc:
        raise storage_failure(db, exc, 'list tests') from exc


@router.post('/tests', response_model=TestResponse, status_code=status.HTTP_201_CREATED)
def create_test(
    data: CreateTestRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        test = Test(user_id=current_user.id, **data.model_dump())
        db.add(test)
        db.commit()
        db.refresh(test)
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateTest() from exc
    except SQLAlchemyError as exc:
        raise storage_failure(db, exc, 'create test') from exc

    logger.info('Created test %s for %s', test.id, current_user.id)
    return TestResponse.model_validate(test)


@router.get('/tests/{test_id}', response_model=TestResponse)
def get_test(
    test_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        test = ensure_test_owner(db.get(Test, test_id), current_user)
        return TestResponse.model_validate(test)
    except SQLAlchemyError as exc:
        raise storage_failure(db, exc, 'load test') from exc


@router.patch('/tests/{test_id}', response_model=TestResponse)
def update_test(
    test_id: int,
    data: UpdateTestRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        test = ensure_test_owner(db.get(Test, test_id), current_user)

        for field_name, value in data.model_dump(exclude_unset=True).items():
            setattr(test, field_name, value)

        db.commit()
        db.refresh(test)
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateTest() from exc
    except SQLAlchemyError as exc:
        raise storage_failure(db, exc, 'update test') from exc

    logger.info('Updated test %s', test.id)
    return TestResponse.model_validate(test)


@router.delete('/tests/{test_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_test(
    test_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        test = ensure_test_owner(db.get(Test, test_id), current_user)
        db.delete(test)
        db.commit()
    except SQLAlchemyError as exc:
        raise storage_failure(db, exc, 'delete test') from exc

    logger.info('Deleted test %s and its completions', test_id)


@router.post(
    '/tests/{test_id}/completions',
    response_model=CompletionResponse,
    status_code=status.HTTP_201_CREATED,
)
def add_completion(
    test_id: int,
    data: CreateCompletionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        test = ensure_test_owner(db.get(Test, test_id), current_user)

        completion = Completion(test_id=test.id, **data.model_dump())
        db.add(completion)
        db.commit()
        db.refresh(completion)
    except SQLAlchemyError as exc:
        raise storage_failure(db, exc, 'add completion') from exc

    logger.info('Added completion %s to test %s', completion.id, test_id)
    return CompletionResponse.model_validate(completion)


@router.patch('/completions/{completion_id}', response_model=CompletionResponse)
def update_completion(
    completion_id: int,
    data: UpdateCompletionRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        completion = ensure_completion_owner(db.get(Completion, completion_id), current_user)

        changes = data.model_dump(exclude_unset=True)
        try:
            check_marks(
                changes.get('achieved_mark', completion.achieved_mark),
                changes.get('total_marks', completion.total_marks),
            )
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

        for field_name, value in changes.items():
            setattr(completion, field_name, value)

        db.commit()
        db.refresh(completion)
    except SQLAlchemyError as exc:
        raise storage_failure(db, exc, 'update completion') from exc

    logger.info('Updated completion %s', completion_id)
    return CompletionResponse.model_validate(completion)


@router.delete('/completions/{completion_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_completion(
    completion_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    ensure_database_ready()

    try:
        completion = ensure_completion_owner(db.get(Completion, completion_id), current_user)
        db.delete(completion)
        db.commit()
    except SQLAlchemyError as exc:
        raise storage_failure(db, exc, 'delete completion') from exc

    logger.info('Deleted completion %s', completion_id)
