"""Form-driven web pages: login/create-account, and the list of tests with their completions.

The pages call the same functions the JSON API exposes, so ownership checks and
validation are identical. Failures re-render the page with the error message;
successes redirect back to ``/``.
"""

from pathlib import Path

from fastapi import APIRouter, Depends, Form, HTTPException, Request, status
from fastapi.responses import RedirectResponse
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from paper_tracker.auth.dependencies import get_optional_user
from paper_tracker.core import config
from paper_tracker.database import get_db
from paper_tracker.models.user import User
from paper_tracker.routes import account_routes, record_routes

router = APIRouter(tags=['ui'], include_in_schema=False)

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / 'templates'))

LOGIN_ACTION = 'login'
CREATE_ACCOUNT_ACTION = 'create'


def validation_message(exc: PydanticValidationError) -> str:
    first_error = exc.errors()[0]
    message = first_error.get('msg', 'Invalid input.')
    return message.removeprefix('Value error, ')


def redirect_home() -> RedirectResponse:
    return RedirectResponse(url='/', status_code=status.HTTP_303_SEE_OTHER)


def render_login(request: Request, error: str | None = None, status_code: int = status.HTTP_200_OK):
    return templates.TemplateResponse(
        request,
        'login.html',
        {'error': error},
        status_code=status_code,
    )


def render_home(
    request: Request,
    user: User,
    db: Session,
    error: str | None = None,
    status_code: int = status.HTTP_200_OK,
):
    tests = record_routes.list_tests(current_user=user, db=db)
    return templates.TemplateResponse(
        request,
        'tests.html',
        {'user': user, 'tests': tests, 'error': error},
        status_code=status_code,
    )


def run_action(request: Request, user: User | None, db: Session, action):
    if user is None:
        return redirect_home()

    try:
        action()
    except PydanticValidationError as exc:
        return render_home(request, user, db, validation_message(exc), status.HTTP_422_UNPROCESSABLE_ENTITY)
    except HTTPException as exc:
        return render_home(request, user, db, str(exc.detail), exc.status_code)

    return redirect_home()


@router.get('/')
def home(request: Request, user: User | None = Depends(get_optional_user), db: Session = Depends(get_db)):
    if user is None:
        return render_login(request)
    return render_home(request, user, db)


@router.post('/ui/login')
def login_or_create_account(
    request: Request,
    username: str = Form(''),
    password: str = Form(''),
    action: str = Form(LOGIN_ACTION),
    remember_me: bool = Form(False),
    db: Session = Depends(get_db),
):
    if not username.strip() or not password:
        return render_login(request, 'Please enter a username and password.', status.HTTP_422_UNPROCESSABLE_ENTITY)

    try:
        if action == CREATE_ACCOUNT_ACTION:
            user = account_routes.create_account(username, password, db)
        else:
            user = account_routes.authenticate(username, password, db)
    except HTTPException as exc:
        return render_login(request, str(exc.detail), exc.status_code)

    # Without "remember me" the cookie lasts for the browser session only.
    if remember_me:
        expires_minutes = config.REMEMBER_ME_DAYS * 24 * 60
        max_age = expires_minutes * 60
    else:
        expires_minutes = config.BROWSER_SESSION_HOURS * 60
        max_age = None
    session = account_routes.issue_session(user, expires_minutes=expires_minutes)

    response = redirect_home()
    response.set_cookie(
        config.SESSION_COOKIE_NAME,
        session.access_token,
        max_age=max_age,
        httponly=True,
        samesite='lax',
        secure=config.SESSION_COOKIE_SECURE,
    )
    return response


@router.post('/ui/logout')
def logout():
    response = redirect_home()
    response.delete_cookie(config.SESSION_COOKIE_NAME)
    return response


@router.post('/ui/tests')
def create_test(
    request: Request,
    subject: str = Form(''),
    date_or_id: str = Form(''),
    topic: str = Form(''),
    qualification_level: str = Form(''),
    exam_board: str = Form(''),
    paper_link: str = Form(''),
    mark_scheme_link: str = Form(''),
    comments: str = Form(''),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    def action():
        data = record_routes.CreateTestRequest(
            subject=subject,
            date_or_id=date_or_id,
            topic=topic,
            qualification_level=qualification_level,
            exam_board=exam_board,
            paper_link=paper_link,
            mark_scheme_link=mark_scheme_link,
            comments=comments,
        )
        record_routes.create_test(data, current_user=user, db=db)

    return run_action(request, user, db, action)


@router.post('/ui/tests/{test_id}/edit')
def update_test(
    request: Request,
    test_id: int,
    subject: str = Form(''),
    date_or_id: str = Form(''),
    topic: str = Form(''),
    qualification_level: str = Form(''),
    exam_board: str = Form(''),
    paper_link: str = Form(''),
    mark_scheme_link: str = Form(''),
    comments: str = Form(''),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    def action():
        data = record_routes.UpdateTestRequest(
            subject=subject,
            date_or_id=date_or_id,
            topic=topic,
            qualification_level=qualification_level,
            exam_board=exam_board,
            paper_link=paper_link,
            mark_scheme_link=mark_scheme_link,
            comments=comments,
        )
        record_routes.update_test(test_id, data, current_user=user, db=db)

    return run_action(request, user, db, action)


@router.post('/ui/tests/{test_id}/delete')
def delete_test(
    request: Request,
    test_id: int,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return run_action(
        request,
        user,
        db,
        lambda: record_routes.delete_test(test_id, current_user=user, db=db),
    )


@router.post('/ui/tests/{test_id}/completions')
def add_completion(
    request: Request,
    test_id: int,
    achieved_mark: str = Form(''),
    total_marks: str = Form(''),
    date: str = Form(''),
    comments: str = Form(''),
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    def action():
        data = record_routes.CreateCompletionRequest(
            achieved_mark=achieved_mark,
            total_marks=total_marks,
            date=date or None,
            comments=comments,
        )
        record_routes.add_completion(test_id, data, current_user=user, db=db)

    return run_action(request, user, db, action)


@router.post('/ui/completions/{completion_id}/delete')
def delete_completion(
    request: Request,
    completion_id: int,
    user: User | None = Depends(get_optional_user),
    db: Session = Depends(get_db),
):
    return run_action(
        request,
        user,
        db,
        lambda: record_routes.delete_completion(completion_id, current_user=user, db=db),
    )
