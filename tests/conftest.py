import os
import shutil
import tempfile

# Settings are read at import time, so point them at a scratch database first
_TEST_DIR = tempfile.mkdtemp(prefix="checkmate-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{os.path.join(_TEST_DIR, 'test.db')}"
os.environ["UPLOAD_DIR"] = os.path.join(_TEST_DIR, "uploads")
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id"
os.environ["ADMIN_EMAIL"] = "boss@example.com"
os.environ["REQUIRE_EMAIL_OTP"] = "false"
os.environ["QUOTA_TIMEZONE"] = ""

from unittest.mock import patch

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient

from app.main import app
from app.core.config import settings
from app.core.database import db_manager
from app.core.dependencies import get_current_user
from app.models.user_model import Users
from app.tasks.notification_tasks import notify_admins
from tests.factories import reset_database, run


@pytest.fixture(scope="session", autouse=True)
def _cleanup_scratch_dir():
    yield
    shutil.rmtree(_TEST_DIR, ignore_errors=True)


@pytest.fixture(autouse=True)
def upload_dir():
    os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
    yield settings.UPLOAD_DIR
    shutil.rmtree(settings.UPLOAD_DIR, ignore_errors=True)


@pytest_asyncio.fixture
async def db_session():
    await reset_database()
    async with db_manager.async_session_maker() as session:
        yield session


@pytest.fixture
def fresh_db():
    run(reset_database())


@pytest.fixture
def client(fresh_db):
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def login_as():
    """Overrides the bearer-token dependency with the given user."""
    def _login(user: Users):
        app.dependency_overrides[get_current_user] = lambda: user
        return user
    yield _login
    app.dependency_overrides.pop(get_current_user, None)


@pytest.fixture(autouse=True)
def queued_notifications():
    """Captures notify_admins.delay calls instead of publishing to the broker."""
    with patch.object(notify_admins, "delay") as mock_delay:
        yield mock_delay
