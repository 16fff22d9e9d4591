import json
import unittest
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import httpx

import support  # noqa: F401

from formic.config.settings import settings
from formic.services.google_auth_service import GoogleAuthService, parse_profile
from formic.utils.errors import AuthProviderError


class TestParseProfile(unittest.TestCase):
    def test_legacy_shape(self):
        profile = parse_profile({"id": "123", "emails": [{"value": "a@x.com"}, {"value": "b@x.com"}]})
        self.assertEqual(profile.id, "123")
        self.assertEqual(profile.email, "a@x.com")

    def test_people_api_shape(self):
        profile = parse_profile(
            {"resourceName": "people/456", "emailAddresses": [{"value": "a@x.com"}]}
        )
        self.assertEqual(profile.id, "456")
        self.assertEqual(profile.email, "a@x.com")

    def test_missing_or_malformed_email(self):
        for data in (
            {"id": "1"},
            {"id": "1", "emails": []},
            {"id": "1", "emails": "a@x.com"},
            {"id": "1", "emails": [{"type": "account"}]},
            {"id": "1", "emails": [{"value": 7}]},
            [],
        ):
            with self.assertRaises(AuthProviderError, msg=data):
                parse_profile(data)

    def test_missing_id(self):
        with self.assertRaises(AuthProviderError):
            parse_profile({"emails": [{"value": "a@x.com"}]})


class TestAuthorizationUrl(unittest.TestCase):
    def test_query(self):
        url = GoogleAuthService("https://forms.example.org/oauth2callback").authorization_url()
        parsed = urlparse(url)
        query = parse_qs(parsed.query)

        self.assertEqual(f"{parsed.scheme}://{parsed.netloc}{parsed.path}", settings.GOOGLE_AUTH_URL)
        self.assertEqual(query["client_id"], ["client-id"])
        self.assertEqual(query["redirect_uri"], ["https://forms.example.org/oauth2callback"])
        self.assertEqual(query["response_type"], ["code"])
        self.assertEqual(query["scope"], ["email"])


class TestAuthenticate(unittest.IsolatedAsyncioTestCase):
    def _patch_transport(self, handler):
        real_client = httpx.AsyncClient

        def factory(**kwargs):
            return real_client(transport=httpx.MockTransport(handler), **kwargs)

        return patch("formic.services.google_auth_service.httpx.AsyncClient", side_effect=factory)

    async def test_code_exchange_and_profile(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            if request.method == "POST":
                return httpx.Response(200, json={"access_token": "tok", "token_type": "Bearer"})
            return httpx.Response(200, json={"id": "u1", "emails": [{"value": "a@x.com"}]})

        service = GoogleAuthService("http://testserver/oauth2callback")
        with self._patch_transport(handler):
            profile = await service.authenticate("the-code")

        self.assertEqual((profile.id, profile.email), ("u1", "a@x.com"))
        token_form = parse_qs(seen[0].content.decode())
        self.assertEqual(token_form["code"], ["the-code"])
        self.assertEqual(token_form["grant_type"], ["authorization_code"])
        self.assertEqual(token_form["redirect_uri"], ["http://testserver/oauth2callback"])
        self.assertEqual(seen[1].headers["Authorization"], "Bearer tok")

    async def test_rejected_code(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": "invalid_grant"})

        with self._patch_transport(handler):
            with self.assertRaises(AuthProviderError):
                await GoogleAuthService("http://testserver/oauth2callback").exchange_code("bad")

    async def test_token_response_without_token(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=json.dumps({"token_type": "Bearer"}))

        with self._patch_transport(handler):
            with self.assertRaises(AuthProviderError):
                await GoogleAuthService("http://testserver/oauth2callback").exchange_code("x")

    async def test_profile_not_json(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"<html>")

        with self._patch_transport(handler):
            with self.assertRaises(AuthProviderError):
                await GoogleAuthService("http://testserver/oauth2callback").fetch_profile("tok")


if __name__ == "__main__":
    unittest.main()
