from paper_tracker.auth import jwt_handler
from paper_tracker.core import config
from paper_tracker.models.completion import Completion
from paper_tracker.models.user import User


def _create_account(client, username: str = 'alice', password: str = 'pw123', **extra):
    return client.post(
        '/ui/login',
        data={'username': username, 'password': password, 'action': 'create', **extra},
        follow_redirects=False,
    )


def test_home_shows_login_form_when_logged_out(client) -> None:
    response = client.get('/')

    assert response.status_code == 200
    assert 'Create account' in response.text
    assert 'name="remember_me"' in response.text


def test_create_account_sets_session_cookie_and_redirects(client, db) -> None:
    response = _create_account(client)

    assert response.status_code == 303
    assert response.headers['location'] == '/'
    set_cookie = response.headers['set-cookie']
    assert f'{config.SESSION_COOKIE_NAME}=' in set_cookie
    assert 'HttpOnly' in set_cookie
    assert 'Max-Age' not in set_cookie
    assert db.query(User).filter(User.username == 'alice').count() == 1


def test_browser_session_token_outlives_api_token_lifetime(client) -> None:
    response = _create_account(client)

    payload = jwt_handler.decode_access_token(response.cookies[config.SESSION_COOKIE_NAME])

    assert payload['exp'] - payload['iat'] == config.BROWSER_SESSION_HOURS * 60 * 60


def test_remember_me_makes_cookie_persistent(client) -> None:
    response = _create_account(client, remember_me='true')

    assert f'Max-Age={config.REMEMBER_ME_DAYS * 24 * 60 * 60}' in response.headers['set-cookie']


def test_login_page_shows_duplicate_username_error(client) -> None:
    _create_account(client)
    client.cookies.clear()

    response = _create_account(client)

    assert response.status_code == 409
    assert 'Username already taken.' in response.text


def test_login_page_shows_invalid_credentials(client) -> None:
    _create_account(client)
    client.cookies.clear()

    response = client.post('/ui/login', data={'username': 'alice', 'password': 'nope', 'action': 'login'})

    assert response.status_code == 401
    assert 'Invalid username or password.' in response.text


def test_login_page_requires_username_and_password(client) -> None:
    response = client.post('/ui/login', data={'username': '', 'password': '', 'action': 'login'})

    assert response.status_code == 422
    assert 'Please enter a username and password.' in response.text


def test_logged_in_user_can_add_test_and_completion(client, db) -> None:
    _create_account(client)

    client.post('/ui/tests', data={'subject': 'Maths', 'date_or_id': 'Mock 1', 'topic': ''})
    page = client.get('/')
    assert 'Maths' in page.text
    assert 'Mock 1' in page.text
    assert 'No completions yet.' in page.text

    test_id = db.query(User).filter(User.username == 'alice').one().tests[0].id
    response = client.post(
        f'/ui/tests/{test_id}/completions',
        data={'achieved_mark': '18', 'total_marks': '20', 'date': '2023-05-14', 'comments': ''},
    )

    assert response.status_code == 200
    assert '18/20' in response.text
    assert '90.0%' in response.text


def test_invalid_completion_form_shows_error(client, db) -> None:
    _create_account(client)
    client.post('/ui/tests', data={'subject': 'Maths', 'date_or_id': 'Mock 1'})
    test_id = db.query(User).filter(User.username == 'alice').one().tests[0].id

    response = client.post(
        f'/ui/tests/{test_id}/completions',
        data={'achieved_mark': '25', 'total_marks': '20'},
    )

    assert response.status_code == 422
    assert 'Achieved mark cannot exceed total marks.' in response.text
    assert db.query(Completion).count() == 0


def test_ui_actions_redirect_when_logged_out(client) -> None:
    response = client.post('/ui/tests', data={'subject': 'Maths', 'date_or_id': 'Mock 1'}, follow_redirects=False)

    assert response.status_code == 303
    assert response.headers['location'] == '/'


def test_logout_clears_cookie(client) -> None:
    _create_account(client)

    response = client.post('/ui/logout', follow_redirects=False)
    client.cookies.clear()
    home = client.get('/')

    assert response.status_code == 303
    assert f'{config.SESSION_COOKIE_NAME}=""' in response.headers['set-cookie']
    assert 'Create account' in home.text


def test_edit_and_delete_test_through_forms(client, db) -> None:
    _create_account(client)
    client.post('/ui/tests', data={'subject': 'Maths', 'date_or_id': 'Mock 1'})
    test_id = db.query(User).filter(User.username == 'alice').one().tests[0].id

    edited = client.post(f'/ui/tests/{test_id}/edit', data={'subject': 'Further Maths', 'date_or_id': 'Mock 1'})
    assert 'Further Maths' in edited.text

    deleted = client.post(f'/ui/tests/{test_id}/delete')
    assert 'You have not added any tests yet.' in deleted.text


def test_ui_cannot_touch_another_users_test(client, db) -> None:
    _create_account(client, 'alice')
    client.post('/ui/tests', data={'subject': 'Maths', 'date_or_id': 'Mock 1'})
    test_id = db.query(User).filter(User.username == 'alice').one().tests[0].id
    client.cookies.clear()

    _create_account(client, 'bob')
    response = client.post(f'/ui/tests/{test_id}/delete')

    assert response.status_code == 403
    assert 'You do not have access to this test.' in response.text
