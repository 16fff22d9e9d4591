import unittest
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

from support import AppTestCase

from formic.utils.auth import is_email_allowed
from formic.utils.errors import AuthProviderError


class TestAllowList(unittest.TestCase):
    def test_exact_match(self):
        self.assertTrue(is_email_allowed("a@x.com", "a@x.com,b@x.com"))
        self.assertTrue(is_email_allowed("b@x.com", "a@x.com,b@x.com"))
        self.assertFalse(is_email_allowed("c@x.com", "a@x.com,b@x.com"))

    def test_case_sensitive(self):
        self.assertFalse(is_email_allowed("A@x.com", "a@x.com"))

    def test_anyone(self):
        self.assertTrue(is_email_allowed("whoever@somewhere.org", "anyone"))
        self.assertFalse(is_email_allowed("not-an-email", "anyone"))
        self.assertFalse(is_email_allowed("", "anyone"))

    def test_blank_items_never_match(self):
        self.assertFalse(is_email_allowed("", "a@x.com,,b@x.com"))
        self.assertTrue(is_email_allowed("b@x.com", "a@x.com, b@x.com"))


class TestLoginFlow(AppTestCase):
    def test_dashboard_redirects_to_google(self):
        res = self.client.get("/dashboard/", headers={"X-Forwarded-Proto": "https"})
        self.assertEqual(res.status_code, 302)

        location = urlparse(res.headers["location"])
        self.assertEqual(location.netloc, "accounts.google.com")
        query = parse_qs(location.query)
        self.assertEqual(query["redirect_uri"], ["https://testserver/oauth2callback"])
        self.assertEqual(query["scope"], ["email"])

    def test_callback_scheme_defaults_to_request(self):
        res = self.client.get("/dashboard/")
        query = parse_qs(urlparse(res.headers["location"]).query)
        self.assertEqual(query["redirect_uri"], ["http://testserver/oauth2callback"])

    def test_missing_code_is_forbidden(self):
        res = self.client.get("/oauth2callback")
        self.assertEqual(res.status_code, 403)
        self.assertEqual(self.client.get("/oauth2callback", params={"code": ""}).status_code, 403)

    def test_allowed_email_logs_in(self):
        res = self.login(uid="u1", email="a@x.com")
        self.assertEqual(res.status_code, 302)
        self.assertEqual(res.headers["location"], "/dashboard/")
        self.assertIn("session=", res.headers["set-cookie"])

        res = self.client.get("/dashboard/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json(), {"forms": [], "messages": []})
        self.assertTrue(self.client.get("/").json()["logged_in"])

    def test_refused_email_goes_to_landing(self):
        res = self.login(uid="u3", email="c@x.com")
        self.assertEqual(res.status_code, 302)
        self.assertEqual(res.headers["location"], "/")
        self.assertNotIn("set-cookie", res.headers)

        self.assertEqual(self.client.get("/dashboard/").status_code, 302)
        self.assertFalse(self.client.get("/").json()["logged_in"])

    def test_provider_failure_is_server_error(self):
        with patch(
            "formic.routes.auth.GoogleAuthService.authenticate",
            new=AsyncMock(side_effect=AuthProviderError("Profile has no e-mail address")),
        ):
            res = self.client.get("/oauth2callback", params={"code": "x"})
        self.assertEqual(res.status_code, 500)

    def test_logout_expires_cookie(self):
        self.login()
        res = self.client.get("/logout")
        self.assertEqual(res.status_code, 302)
        self.assertEqual(res.headers["location"], "/")
        self.assertIn("max-age=0", res.headers["set-cookie"].lower())

        self.assertEqual(self.client.get("/dashboard/").status_code, 302)

    def test_login_issues_fresh_session_id(self):
        self.login(uid="u1")
        before = self.client.cookies.get("session")
        self.login(uid="u2", email="b@x.com")
        after = self.client.cookies.get("session")
        self.assertNotEqual(before, after)

        self.client.cookies.clear()
        res = self.client.get("/dashboard/", headers={"Cookie": f"session={before}"})
        self.assertEqual(res.status_code, 302)
        res = self.client.get("/dashboard/", headers={"Cookie": f"session={after}"})
        self.assertEqual(res.status_code, 200)

    def test_forged_cookie_is_not_logged_in(self):
        res = self.client.get("/dashboard/", headers={"Cookie": "session=not-a-token"})
        self.assertEqual(res.status_code, 302)


class TestAnyoneAllowList(AppTestCase):
    allowed_emails = "anyone"

    def test_any_valid_email(self):
        res = self.login(uid="u9", email="someone@elsewhere.org")
        self.assertEqual(res.headers["location"], "/dashboard/")
        self.assertEqual(self.client.get("/dashboard/").status_code, 200)


class TestSingleTenantLogin(AppTestCase):
    tenancy = "single"

    def test_admin_flag(self):
        self.login(uid="ignored", email="a@x.com")
        self.assertEqual(self.client.get("/dashboard/").status_code, 200)


if __name__ == "__main__":
    unittest.main()
