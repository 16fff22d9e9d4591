import os
import sys
import unittest
from unittest.mock import AsyncMock, patch

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)

os.environ.setdefault("FORMIC_SESSION_SECRET", "test-secret")
os.environ.setdefault("FORMIC_GOOGLE_CLIENT_ID", "client-id")
os.environ.setdefault("FORMIC_GOOGLE_CLIENT_SECRET", "client-secret")
os.environ.setdefault("FORMIC_GOOGLE_ALLOWED_EMAILS", "a@x.com,b@x.com")

import fakeredis
from fastapi.testclient import TestClient

from formic.config.database import db_config
from formic.config.settings import settings
from formic.main import app
from formic.services.google_auth_service import GoogleProfile


def fake_redis():
    return fakeredis.FakeAsyncRedis(decode_responses=True)


class AppTestCase(unittest.TestCase):
    """Runs the app against a fresh fake Redis; Google is mocked per login"""

    tenancy = "multi"
    allowed_emails = "a@x.com,b@x.com"

    def setUp(self) -> None:
        settings.TENANCY = self.tenancy
        settings.GOOGLE_ALLOWED_EMAILS = self.allowed_emails
        db_config.client = fake_redis()
        self.client = TestClient(app, follow_redirects=False)
        self.client.__enter__()

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)
        settings.TENANCY = "multi"
        settings.GOOGLE_ALLOWED_EMAILS = "a@x.com,b@x.com"

    @property
    def store(self):
        return app.state.store

    @property
    def sessions(self):
        return app.state.sessions

    def login(self, uid: str = "u1", email: str = "a@x.com"):
        profile = GoogleProfile(id=uid, email=email)
        with patch(
            "formic.routes.auth.GoogleAuthService.authenticate",
            new=AsyncMock(return_value=profile),
        ):
            return self.client.get("/oauth2callback", params={"code": "auth-code"})

