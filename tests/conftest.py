"""
Pytest fixtures and helpers for the Flask app and client.
"""

import pytest

from app import create_app
from core.database_models import db, Post, User


# ------------------------
# App and client fixtures
# ------------------------

@pytest.fixture
def app():
    """A fresh app on an empty in-memory database."""
    app = create_app('testing')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Return a test client for the Flask app."""
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture
def session_store(app):
    """The app's session principal store."""
    return app.extensions['session_store']


@pytest.fixture
def auth_client(client):
    """A client logged in as ada@inkwell.io."""
    register(client)
    response = login(client)
    assert response.status_code == 302
    return client


# ------------------------
# Shared test helpers
# ------------------------

def register(test_client, name="Ada", email="ada@inkwell.io", password="secret"):
    """Submit the signup form."""
    return test_client.post(
        "/register", data={"name": name, "email": email, "password": password}
    )


def login(test_client, email="ada@inkwell.io", password="secret"):
    """Submit the login form."""
    return test_client.post("/login", data={"email": email, "password": password})


def user_id_for(app, email="ada@inkwell.io"):
    """Look up a registered user's id."""
    with app.app_context():
        return User.query.filter_by(email=email).one().id


def make_posts(app, count, owner_id="someone-else", titles=None):
    """Insert posts directly and return their ids."""
    titles = titles or [f"Post {i:02d}" for i in range(count)]
    with app.app_context():
        posts = [
            Post(title=title, body=f"Body of {title}", user_id=owner_id)
            for title in titles[:count]
        ]
        db.session.add_all(posts)
        db.session.commit()
        return [post.id for post in posts]


def post_count(app):
    """Number of posts in the store."""
    with app.app_context():
        return Post.query.count()
