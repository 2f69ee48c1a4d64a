import os


def _flag(name: str, default: str = "false") -> bool:
    return str(os.getenv(name, default) or "").lower() in ("1", "true", "yes")


# ✅ Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./jobhunter.db")
RUN_MIGRATIONS = _flag("RUN_MIGRATIONS")

# ✅ Deployment
# Single source of truth for callback/return URLs. Resolved at startup.
PUBLIC_BASE_URL = (os.getenv("PUBLIC_BASE_URL") or "").rstrip("/")
STATIC_DIR = os.getenv("STATIC_DIR", "client/dist")
CORS_ALLOW_ORIGINS = [
    o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "").split(",") if o.strip()
] or ["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:5000"]
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
HTTP_TIMEOUT_SECONDS = float(os.getenv("HTTP_TIMEOUT_SECONDS", "30"))

# ✅ Security
SECRET_KEY = os.getenv("SECRET_KEY", "dev-insecure-secret-change-me")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
OAUTH_STATE_TTL_MINUTES = int(os.getenv("OAUTH_STATE_TTL_MINUTES", "10"))
OAUTH_STATE_COOKIE_NAME = os.getenv("OAUTH_STATE_COOKIE_NAME", "jobhunter.oauth_state")
# Shared secret for identity tokens posted to /api/auth/callback; unset disables that endpoint
IDENTITY_TOKEN_SECRET = os.getenv("IDENTITY_TOKEN_SECRET")
IDENTITY_TOKEN_AUDIENCE = os.getenv("IDENTITY_TOKEN_AUDIENCE", "jobhunter-api")

# ✅ Sessions
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "jobhunter.sid")
SESSION_TTL_DAYS = int(os.getenv("SESSION_TTL_DAYS", "30"))
SESSION_COOKIE_SECURE = _flag("SESSION_COOKIE_SECURE")

# ✅ Google OAuth
GOOGLE_CLIENT_ID = os.getenv("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = os.getenv("GOOGLE_CLIENT_SECRET")

# ✅ Cashfree
CASHFREE_APP_ID = os.getenv("CASHFREE_APP_ID")
CASHFREE_SECRET_KEY = os.getenv("CASHFREE_SECRET_KEY")
CASHFREE_PRODUCTION = _flag("CASHFREE_PRODUCTION")
CASHFREE_API_VERSION = os.getenv("CASHFREE_API_VERSION", "2023-08-01")
CASHFREE_DEFAULT_PHONE = os.getenv("CASHFREE_DEFAULT_PHONE", "9999999999")

# ✅ Stripe
STRIPE_SECRET_KEY = os.getenv("STRIPE_SECRET_KEY")
STRIPE_WEBHOOK_SECRET = os.getenv("STRIPE_WEBHOOK_SECRET")
STRIPE_PRICE_ID_PRO = os.getenv("STRIPE_PRICE_ID_PRO")

# ✅ Pro plan pricing
PRO_PRICE_USD = float(os.getenv("PRO_PRICE_USD", "29"))
PRO_PRICE_INR = float(os.getenv("PRO_PRICE_INR", "999"))
PRO_PLAN_DAYS = int(os.getenv("PRO_PLAN_DAYS", "30"))

# ✅ OpenAI
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-4o-mini")

# ✅ SendGrid
SENDGRID_API_KEY = os.getenv("SENDGRID_API_KEY")
SENDGRID_FROM_EMAIL = os.getenv("SENDGRID_FROM_EMAIL", "noreply@ai-jobhunter.com")

# ✅ Uploads
UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_RESUME_BYTES = int(os.getenv("MAX_RESUME_BYTES", str(10 * 1024 * 1024)))

# ✅ Geolocation
GEOIP_URL = os.getenv("GEOIP_URL", "https://ipapi.co/{ip}/country/")


def require_public_base_url() -> str:
    """Return PUBLIC_BASE_URL or fail fast when it is not configured."""
    if not PUBLIC_BASE_URL:
        raise RuntimeError(
            "PUBLIC_BASE_URL is not set. Set it to the externally reachable "
            "origin of this deployment, e.g. https://ai-jobhunter.com"
        )
    return PUBLIC_BASE_URL
