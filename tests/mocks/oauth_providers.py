"""
Fake OAuth identity provider for testing.

Serves GitHub-shaped token and profile endpoints (plus a Google-shaped
userinfo endpoint) from a local aiohttp application, so the handshake can
be tested against real HTTP without external dependencies.
"""
import asyncio
from typing import Any, Dict, List, Optional

from aiohttp import web


class FakeIdentityProvider:
    """Scriptable identity provider."""

    def __init__(self):
        self.base_url = ""

        # code -> access token
        self.codes: Dict[str, str] = {"abc": "tok1"}
        self.token_status = 200
        self.token_body: Optional[str] = None
        self.token_delay = 0.0

        self.profile: Dict[str, Any] = {
            "login": "u",
            "name": "U",
            "email": "u@example.com",
        }
        self.profile_status = 200
        self.emails: List[Dict[str, Any]] = []
        self.google_profile: Dict[str, Any] = {
            "id": "google-user-123",
            "email": "g@example.com",
            "name": "G",
        }

        # Track calls for testing
        self.token_requests: List[Dict[str, str]] = []
        self.token_headers: List[Dict[str, str]] = []
        self.profile_requests: List[Optional[str]] = []

    @property
    def token_url(self) -> str:
        return f"{self.base_url}/login/oauth/access_token"

    @property
    def google_user_info_url(self) -> str:
        return f"{self.base_url}/oauth2/v2/userinfo"

    def app(self) -> web.Application:
        app = web.Application()
        app.router.add_post("/login/oauth/access_token", self._token)
        app.router.add_get("/user", self._user)
        app.router.add_get("/user/emails", self._emails)
        app.router.add_get("/oauth2/v2/userinfo", self._google_userinfo)
        return app

    async def _token(self, request: web.Request) -> web.Response:
        form = await request.post()
        self.token_requests.append({key: str(value) for key, value in form.items()})
        self.token_headers.append(dict(request.headers))

        if self.token_delay:
            await asyncio.sleep(self.token_delay)

        if self.token_body is not None:
            return web.Response(status=self.token_status, text=self.token_body, content_type="application/json")

        token = self.codes.get(form.get("code"))
        if token is None:
            # GitHub answers a bad code with 200 and an error payload.
            return web.json_response({
                "error": "bad_verification_code",
                "error_description": "The code passed is incorrect or expired.",
            })

        return web.json_response(
            {"access_token": token, "token_type": "bearer", "scope": "user:email"},
            status=self.token_status,
        )

    async def _user(self, request: web.Request) -> web.Response:
        self.profile_requests.append(request.headers.get("Authorization"))
        if self.profile_status != 200:
            return web.json_response({"message": "Bad credentials"}, status=self.profile_status)
        return web.json_response(self.profile)

    async def _emails(self, request: web.Request) -> web.Response:
        return web.json_response(self.emails)

    async def _google_userinfo(self, request: web.Request) -> web.Response:
        self.profile_requests.append(request.headers.get("Authorization"))
        if self.profile_status != 200:
            return web.json_response({"error": "invalid_token"}, status=self.profile_status)
        return web.json_response(self.google_profile)
