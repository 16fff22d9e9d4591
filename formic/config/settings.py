"""
Application settings and configuration
"""
import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    # Application
    APP_NAME = "Formic"
    VERSION = "1.0.0"
    DEBUG = os.getenv("FORMIC_DEBUG", "False") == "True"

    # Redis
    REDIS_HOST = os.getenv("FORMIC_REDIS_HOST", "localhost")
    REDIS_PORT = int(os.getenv("FORMIC_REDIS_PORT", "6379"))
    REDIS_MAX_CONNECTIONS = int(os.getenv("FORMIC_REDIS_MAX_CONNECTIONS", "10"))
    REDIS_HEALTH_CHECK_INTERVAL = 240  # seconds a pooled connection may idle before a PING
    KEY_PREFIX = os.getenv("FORMIC_KEY_PREFIX", "formic")

    # Tenancy: "multi" keeps forms per owner, "single" keeps one global set for admins
    TENANCY = os.getenv("FORMIC_TENANCY", "multi").strip().lower()

    # Session
    SESSION_SECRET = os.getenv("FORMIC_SESSION_SECRET", "")
    SESSION_COOKIE = "session"
    SESSION_MAX_AGE = int(os.getenv("FORMIC_SESSION_MAX_AGE", str(86400 * 30)))  # 30 days
    ALGORITHM = "HS256"

    # Google OAuth
    GOOGLE_CLIENT_ID = os.getenv("FORMIC_GOOGLE_CLIENT_ID", "")
    GOOGLE_CLIENT_SECRET = os.getenv("FORMIC_GOOGLE_CLIENT_SECRET", "")
    GOOGLE_ALLOWED_EMAILS = os.getenv("FORMIC_GOOGLE_ALLOWED_EMAILS", "")
    GOOGLE_AUTH_URL = os.getenv("FORMIC_GOOGLE_AUTH_URL", "https://accounts.google.com/o/oauth2/auth")
    GOOGLE_TOKEN_URL = os.getenv("FORMIC_GOOGLE_TOKEN_URL", "https://oauth2.googleapis.com/token")
    GOOGLE_PROFILE_URL = os.getenv(
        "FORMIC_GOOGLE_PROFILE_URL",
        "https://people.googleapis.com/v1/people/me?personFields=emailAddresses",
    )
    GOOGLE_SCOPES = ["email"]

    # Routes
    CALLBACK_PATH = "/oauth2callback"
    DASHBOARD_PATH = "/dashboard/"
    LANDING_PATH = "/"

    @property
    def MULTI_TENANT(self) -> bool:
        return self.TENANCY != "single"

    @property
    def ID_BYTES(self) -> int:
        default = 4 if self.MULTI_TENANT else 8
        return int(os.getenv("FORMIC_ID_BYTES", str(default)))

    def missing_config(self) -> list:
        """Names of required settings that are empty"""
        required = {
            "Session Secret": self.SESSION_SECRET,
            "Google Client ID": self.GOOGLE_CLIENT_ID,
            "Google Client Secret": self.GOOGLE_CLIENT_SECRET,
            "Google Allowed Emails": self.GOOGLE_ALLOWED_EMAILS,
        }
        return [name for name, value in required.items() if not value]

settings = Settings()
