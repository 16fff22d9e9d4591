"""
Server-side sessions kept in Redis.
The cookie only carries the session id, signed with the session secret;
the session values live under session_<sid> with the cookie's max-age as TTL.
"""
import json
import logging
from typing import Any, Dict, Optional

import redis.asyncio as redis
from jose import JWTError, jwt
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from formic.config.settings import settings
from formic.utils.errors import BackendError, backend_errors, error_response
from formic.utils.helpers import generate_id

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "session_"


class Session:
    """Per-request session state: identity marker and flash queue"""

    def __init__(self, sid: Optional[str] = None, values: Optional[Dict[str, Any]] = None):
        self.is_new = sid is None
        self.sid = sid or generate_id(16)
        self.values: Dict[str, Any] = values or {}
        self.modified = False
        self.expired = False
        self.stale_sid: Optional[str] = None

    def get(self, key: str, default: Any = None) -> Any:
        return self.values.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self.values[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.values[key] = value
        self.modified = True

    def __contains__(self, key: str) -> bool:
        return key in self.values

    def pop(self, key: str, default: Any = None) -> Any:
        if key in self.values:
            self.modified = True
        return self.values.pop(key, default)

    def regenerate(self) -> None:
        """Move the values to a fresh id; the old id is dropped on save"""
        if not self.is_new:
            self.stale_sid = self.sid
        self.sid = generate_id(16)
        self.modified = True

    def expire(self) -> None:
        """Drop all values; the cookie is expired on the way out"""
        self.values = {}
        self.expired = True


class SessionStore:
    def __init__(self, client: redis.Redis, secret: str, max_age: int = settings.SESSION_MAX_AGE):
        self.redis = client
        self.secret = secret
        self.max_age = max_age

    def _key(self, sid: str) -> str:
        return f"{SESSION_KEY_PREFIX}{sid}"

    def sign(self, sid: str) -> str:
        return jwt.encode({"sid": sid}, self.secret, algorithm=settings.ALGORITHM)

    def unsign(self, token: str) -> Optional[str]:
        """Session id carried by a cookie value, None if the signature is bad"""
        try:
            payload = jwt.decode(token, self.secret, algorithms=[settings.ALGORITHM])
        except JWTError as e:
            logger.warning("Rejected session cookie: %s", e)
            return None
        sid = payload.get("sid")
        return sid if isinstance(sid, str) and sid else None

    @backend_errors
    async def load(self, cookie: Optional[str]) -> Session:
        """Session named by the cookie, or a fresh one"""
        if not cookie:
            return Session()
        sid = self.unsign(cookie)
        if sid is None:
            return Session()

        raw = await self.redis.get(self._key(sid))
        if raw is None:
            return Session()
        try:
            values = json.loads(raw)
        except ValueError:
            logger.warning("Discarding unreadable session %s", sid)
            return Session()
        return Session(sid=sid, values=values)

    @backend_errors
    async def save(self, session: Session) -> None:
        async with self.redis.pipeline(transaction=True) as pipe:
            if session.stale_sid:
                pipe.delete(self._key(session.stale_sid))
            pipe.set(self._key(session.sid), json.dumps(session.values), ex=self.max_age)
            await pipe.execute()
        session.stale_sid = None
        session.modified = False

    @backend_errors
    async def delete(self, session: Session) -> None:
        keys = [self._key(sid) for sid in (session.sid, session.stale_sid) if sid]
        await self.redis.delete(*keys)


class SessionMiddleware(BaseHTTPMiddleware):
    """
    Attaches request.state.session and persists it after the handler ran.
    Runs outside the app's exception handlers, so backend failures while
    loading or saving are turned into the JSON error response here.
    """

    async def dispatch(self, request: Request, call_next):
        store: SessionStore = request.app.state.sessions
        try:
            session = await store.load(request.cookies.get(settings.SESSION_COOKIE))
        except BackendError as e:
            return error_response(e)
        request.state.session = session

        response = await call_next(request)

        try:
            if session.expired:
                await store.delete(session)
                response.delete_cookie(settings.SESSION_COOKIE, path="/")
            elif session.modified:
                await store.save(session)
                response.set_cookie(
                    settings.SESSION_COOKIE,
                    store.sign(session.sid),
                    max_age=store.max_age,
                    path="/",
                    httponly=True,
                    samesite="lax",
                )
        except BackendError as e:
            return error_response(e)
        return response
