"""
Error taxonomy shared by the store, the auth gate and the routes
"""
import functools
import logging

from fastapi import status
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)

SERVER_ERROR_DETAIL = "Internal Server Error"


class FormicError(Exception):
    """Base error; status_code is what the HTTP layer answers with"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(FormicError):
    """A required value is empty. Recoverable: shown as a flash message."""
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class NotFoundError(FormicError):
    status_code = status.HTTP_404_NOT_FOUND


class ForbiddenError(FormicError):
    status_code = status.HTTP_403_FORBIDDEN


class AuthProviderError(FormicError):
    """Token exchange or profile fetch/parse failed"""


class BackendError(FormicError):
    """Redis connectivity or command failure"""


class LoginRequired(Exception):
    """Raised by the login gate; rendered as a redirect to the provider"""

    def __init__(self, auth_url: str):
        super().__init__(auth_url)
        self.auth_url = auth_url


def error_response(exc: FormicError) -> JSONResponse:
    """JSON body for an error; server errors never echo their message"""
    detail = exc.message if exc.status_code < 500 else SERVER_ERROR_DETAIL
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


def backend_errors(func):
    """Decorator for coroutines: any Redis failure becomes a BackendError"""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except RedisError as e:
            logger.error("❌ Redis error in %s: %s", func.__name__, e)
            raise BackendError(str(e)) from e
    return wrapper
