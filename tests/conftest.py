"""Pytest configuration and fixtures."""

import os
import tempfile
from datetime import datetime

import pytest

# Set test environment variables before importing app modules
_TEST_DIR = tempfile.mkdtemp(prefix="promptwall-test-")
os.environ["DATABASE_URL"] = "sqlite:///" + os.path.join(_TEST_DIR, "test.db")
os.environ["SCHEDULING_CONFIG_PATH"] = os.path.join(_TEST_DIR, "scheduling.json")
os.environ["PROMPT_RECONCILER_AUTOSTART"] = "false"
os.environ.setdefault("FLASK_SECRET_KEY", "test-secret")

from app import app as flask_app  # noqa: E402
from models import db, Prompt, PromptCategory, User  # noqa: E402
from services.scheduling_config import EXTENSION_KEY, SchedulingConfigStore  # noqa: E402
from utils.helpers import tz_utc  # noqa: E402


def utc(*args):
    return datetime(*args, tzinfo=tz_utc)


@pytest.fixture
def store(tmp_path):
    """A fresh config store per test, pinned to a known default base time."""
    return SchedulingConfigStore(tmp_path / "scheduling.json", clock=lambda: utc(2024, 1, 1))


@pytest.fixture
def app(store):
    """App with empty tables and the per-test config store injected."""
    flask_app.config["TESTING"] = True
    original = flask_app.extensions[EXTENSION_KEY]
    flask_app.extensions[EXTENSION_KEY] = store
    with flask_app.app_context():
        db.create_all()
        yield flask_app
        db.session.remove()
        db.drop_all()
    flask_app.extensions[EXTENSION_KEY] = original


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def category(app):
    category = PromptCategory(name="Photography", description="Capture the world", color="#4ecdc4", icon="camera")
    db.session.add(category)
    db.session.commit()
    return category


@pytest.fixture
def admin_user(app):
    user = User(name="Admin", email="admin@example.com", role="ADMIN")
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def regular_user(app):
    user = User(name="Member", email="member@example.com", role="USER")
    db.session.add(user)
    db.session.commit()
    return user


def login(client, user):
    with client.session_transaction() as sess:
        sess["user_id"] = user.id


@pytest.fixture
def make_prompt(category):
    """Factory for prompts in the shared category."""
    def _make(title, scheduled_for, is_active=False):
        prompt = Prompt(
            title=title,
            description=f"{title} description",
            category_id=category.id,
            scheduled_for=scheduled_for,
            is_active=is_active,
        )
        db.session.add(prompt)
        db.session.commit()
        return prompt
    return _make
