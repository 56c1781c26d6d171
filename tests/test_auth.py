"""
Tests for registration, login and logout routes in routes.auth.
"""

import pytest
from bs4 import BeautifulSoup

from core.database_models import User
from tests.conftest import login, register, user_id_for


def page_error(response):
    soup = BeautifulSoup(response.data.decode(), "html.parser")
    node = soup.find(id="error")
    return node.get_text(strip=True) if node else None


def page_message(response):
    soup = BeautifulSoup(response.data.decode(), "html.parser")
    node = soup.find(id="message")
    return node.get_text(strip=True) if node else None


@pytest.mark.auth
def test_signup_and_login_pages_render(client):
    """GET /signup and GET /login render their forms without a session."""
    signup = client.get("/signup")
    login_page = client.get("/login")

    assert signup.status_code == 200
    assert login_page.status_code == 200
    assert BeautifulSoup(signup.data.decode(), "html.parser").find("form", id="signup-form")
    assert BeautifulSoup(login_page.data.decode(), "html.parser").find("form", id="login-form")


@pytest.mark.auth
def test_register_creates_user_and_shows_login(client, app):
    """A valid registration stores one user with a hashed password."""
    response = register(client)

    assert response.status_code == 200
    assert page_message(response) == "User registered successfully! Please log in."
    with app.app_context():
        user = User.query.filter_by(email="ada@inkwell.io").one()
        assert user.name == "Ada"
        assert user.password_hash != "secret"
        assert user.password_salt


@pytest.mark.auth
def test_register_duplicate_email_is_rejected(client, app):
    """Registering an existing email renders 'already exists' and adds nothing."""
    register(client)
    response = register(client, name="Imposter", email="ADA@Inkwell.io", password="other")

    assert page_error(response) == "User already exists. Please try logging in."
    with app.app_context():
        assert User.query.filter_by(email="ada@inkwell.io").count() == 1
        assert User.query.count() == 1


@pytest.mark.auth
@pytest.mark.parametrize("missing", ["name", "email", "password"])
def test_register_requires_every_field(client, app, missing):
    """Each of name, email and password is required."""
    data = {"name": "Ada", "email": "ada@inkwell.io", "password": "secret"}
    data[missing] = ""
    response = client.post("/register", data=data)

    assert page_error(response) == "All fields are required."
    with app.app_context():
        assert User.query.count() == 0


@pytest.mark.auth
def test_register_rejects_malformed_email(client, app):
    """An address without a domain never reaches the database."""
    response = register(client, email="not-an-email")

    assert page_error(response) == "Please enter a valid email address."
    with app.app_context():
        assert User.query.count() == 0


@pytest.mark.auth
def test_login_unknown_email(client):
    """Logging in with an unregistered email renders 'User not found'."""
    response = login(client, email="nobody@inkwell.io")

    assert response.status_code == 200
    assert page_error(response) == "User not found. Please sign up."


@pytest.mark.auth
def test_login_wrong_password(client):
    """A correct email with the wrong password renders 'Invalid password'."""
    register(client)
    response = login(client, password="wrong")

    assert response.status_code == 200
    assert page_error(response) == "Invalid password."
    with client.session_transaction() as sess:
        assert "session_token" not in sess


@pytest.mark.auth
def test_login_starts_session_and_redirects_home(client, app, session_store):
    """Successful login stores a principal for the user and redirects to /."""
    register(client)
    response = login(client, email="Ada@inkwell.io")

    assert response.status_code == 302
    assert response.headers["Location"] in ("/", "/home")

    with client.session_transaction() as sess:
        token = sess["session_token"]
    principal = session_store.get(token)
    assert principal is not None
    assert principal.user_id == user_id_for(app)


@pytest.mark.auth
def test_login_accepts_address_as_typed_at_signup(client, app):
    """An address with a full-width domain logs in to the account it created."""
    email = "ada@ｉｎｋｗｅｌｌ.io"
    register(client, email=email)
    response = login(client, email=email)

    assert response.status_code == 302
    assert user_id_for(app, email="ada@inkwell.io")


@pytest.mark.auth
def test_login_replaces_previous_principal(client, session_store):
    """Logging in again discards the principal of the earlier login."""
    register(client)
    login(client)
    with client.session_transaction() as sess:
        first_token = sess["session_token"]

    login(client)
    with client.session_transaction() as sess:
        second_token = sess["session_token"]

    assert first_token != second_token
    assert session_store.get(first_token) is None
    assert session_store.get(second_token) is not None


@pytest.mark.auth
def test_logout_destroys_principal(auth_client, session_store):
    """Logout removes the server-side principal and redirects home."""
    with auth_client.session_transaction() as sess:
        token = sess["session_token"]

    response = auth_client.get("/logout")

    assert response.status_code == 302
    assert response.headers["Location"] in ("/", "/home")
    assert session_store.get(token) is None
    assert auth_client.get("/myBlogs").headers["Location"] == "/login"


@pytest.mark.auth
def test_logout_without_session_is_harmless(client):
    """Logout is reachable without a session."""
    response = client.get("/logout")
    assert response.status_code == 302


@pytest.mark.auth
def test_all_users_lists_public_fields_only(auth_client):
    """GET /allUsers returns every user without password material."""
    register(auth_client, name="Grace", email="grace@inkwell.io")

    response = auth_client.get("/allUsers")

    assert response.status_code == 200
    users = response.get_json()
    assert sorted(u["email"] for u in users) == ["ada@inkwell.io", "grace@inkwell.io"]
    for user in users:
        assert set(user) == {"id", "name", "email", "created_at"}


@pytest.mark.auth
def test_all_users_store_error(auth_client, monkeypatch):
    """A store failure on /allUsers is reported generically."""
    from core.errors import StoreError
    from services import user_service

    def broken():
        raise StoreError(detail="connection refused")

    monkeypatch.setattr(user_service, "list_users", broken)
    response = auth_client.get("/allUsers")

    assert response.status_code == 500
    assert response.get_json() == {"message": "Internal server error"}
