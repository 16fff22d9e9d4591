"""
Authentication utilities - login gate, identity marker and e-mail allow-list
"""
from typing import Optional

from fastapi import Request
from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from formic.config.settings import settings
from formic.services.google_auth_service import GoogleAuthService, GoogleProfile
from formic.services.session_store import Session
from formic.utils.errors import LoginRequired

ALLOW_ANYONE = "anyone"

UID_KEY = "uid"
ADMIN_KEY = "admin"
ADMIN_IDENTITY = "admin"

_email_adapter = TypeAdapter(EmailStr)


def base_url(request: Request) -> str:
    """scheme://host of the current request, honoring X-Forwarded-Proto"""
    forwarded = request.headers.get("x-forwarded-proto", "")
    scheme = forwarded.split(",")[0].strip() or request.url.scheme or "http"
    host = request.headers.get("host") or request.url.netloc
    return f"{scheme}://{host}"

def callback_url(request: Request) -> str:
    return base_url(request) + settings.CALLBACK_PATH

def submission_url(request: Request, form_id: str) -> str:
    return f"{base_url(request)}/s/{form_id}"

def is_valid_email(email: str) -> bool:
    try:
        _email_adapter.validate_python(email)
    except PydanticValidationError:
        return False
    return True

def is_email_allowed(email: str, allow_list: str) -> bool:
    """
    "anyone" lets every valid address in; otherwise the address must equal
    (case-sensitively) one of the comma-separated entries.
    """
    if not email or not is_valid_email(email):
        return False
    if allow_list.strip() == ALLOW_ANYONE:
        return True
    allowed = [item.strip() for item in allow_list.split(",")]
    return email in [item for item in allowed if item]

def get_session(request: Request) -> Session:
    return request.state.session

def session_identity(session: Session) -> Optional[str]:
    """The logged-in identity, or None"""
    if settings.MULTI_TENANT:
        uid = session.get(UID_KEY)
        return uid if uid else None
    return ADMIN_IDENTITY if session.get(ADMIN_KEY) is True else None

def mark_logged_in(session: Session, profile: GoogleProfile) -> None:
    """Record the identity under a freshly issued session id"""
    session.regenerate()
    if settings.MULTI_TENANT:
        session[UID_KEY] = profile.id
    else:
        session[ADMIN_KEY] = True

async def require_login(request: Request) -> str:
    """Dependency for protected routes: the identity, or a redirect to Google"""
    identity = session_identity(get_session(request))
    if identity is None:
        auth = GoogleAuthService(redirect_uri=callback_url(request))
        raise LoginRequired(auth.authorization_url())
    request.state.uid = identity
    return identity
