"""
Login callback and logout
"""
import logging
from typing import Optional

from fastapi import APIRouter, Request, status, Depends
from fastapi.responses import RedirectResponse
from formic.config.settings import settings
from formic.services.google_auth_service import GoogleAuthService
from formic.services.session_store import Session
from formic.utils.auth import callback_url, get_session, is_email_allowed, mark_logged_in
from formic.utils.errors import ForbiddenError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Auth"])

@router.get(settings.CALLBACK_PATH)
async def oauth2_callback(
    request: Request,
    code: Optional[str] = None,
    session: Session = Depends(get_session),
):
    """
    Google redirects here with ?code=. The code is exchanged for a token,
    the profile's first e-mail is checked against the allow-list and, when
    it passes, the session is marked as logged in.
    A refused address goes back to the landing page without any message.
    """
    if not code:
        raise ForbiddenError("Missing authorization code")

    auth = GoogleAuthService(redirect_uri=callback_url(request))
    profile = await auth.authenticate(code)

    if not is_email_allowed(profile.email, settings.GOOGLE_ALLOWED_EMAILS):
        logger.warning("Login refused for profile %s: e-mail not allowed", profile.id)
        return RedirectResponse(settings.LANDING_PATH, status_code=status.HTTP_302_FOUND)

    mark_logged_in(session, profile)
    logger.info("Profile %s logged in", profile.id)
    return RedirectResponse(settings.DASHBOARD_PATH, status_code=status.HTTP_302_FOUND)

@router.get("/logout")
async def logout(session: Session = Depends(get_session)):
    """Expire the session cookie"""
    session.expire()
    return RedirectResponse(settings.LANDING_PATH, status_code=status.HTTP_302_FOUND)
