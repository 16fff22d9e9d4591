"""
Main FastAPI application
"""
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import RedirectResponse

from formic.config.database import db_config
from formic.config.settings import settings
from formic.database.db_operations import RecordStore
from formic.database.keys import KeyNamespace
from formic.routes import auth, form, submit
from formic.services.session_store import SessionMiddleware, SessionStore
from formic.utils.auth import session_identity
from formic.utils.errors import FormicError, LoginRequired, error_response


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events"""
    # Startup
    missing = settings.missing_config()
    if missing:
        raise RuntimeError(f"Missing config: {', '.join(missing)}")

    await db_config.connect_db()
    client = db_config.get_client()
    app.state.store = RecordStore(
        client,
        KeyNamespace(settings.KEY_PREFIX),
        multi_tenant=settings.MULTI_TENANT,
        ordered_entries=settings.MULTI_TENANT,
        id_bytes=settings.ID_BYTES,
    )
    app.state.sessions = SessionStore(client, settings.SESSION_SECRET, settings.SESSION_MAX_AGE)
    print(f"🚀 {settings.APP_NAME} v{settings.VERSION} started ({settings.TENANCY}-tenant)")
    yield
    # Shutdown
    await db_config.close_db()
    print("👋 Application shutdown")

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan
)

app.add_middleware(SessionMiddleware)

@app.exception_handler(LoginRequired)
async def login_required_handler(request: Request, exc: LoginRequired):
    return RedirectResponse(exc.auth_url, status_code=status.HTTP_302_FOUND)

@app.exception_handler(FormicError)
async def formic_error_handler(request: Request, exc: FormicError):
    if exc.status_code >= 500:
        print(f"❌ {request.method} {request.url.path} failed: {exc.__class__.__name__}: {exc.message}")
    return error_response(exc)

# Request logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start_time = time.time()
    response = await call_next(request)
    duration = time.time() - start_time
    if settings.DEBUG:
        print(f"🌐 {request.method} {request.url.path} - {response.status_code} ({duration:.2f}s)")
    return response

# Include routers
app.include_router(auth.router)
app.include_router(form.router)
app.include_router(submit.router)


@app.get("/")
async def root(request: Request):
    """Landing endpoint"""
    return {
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running",
        "logged_in": session_identity(request.state.session) is not None,
    }

@app.get("/health")
async def health_check(request: Request):
    """Health check endpoint"""
    await request.app.state.store.ping()
    return {"status": "healthy"}
