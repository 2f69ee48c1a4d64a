import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from jobhunter.core import config
from jobhunter.core.errors import AppError
from jobhunter.core.logging_config import setup_logging
from jobhunter.core.session_store import SqlSessionStore
from jobhunter.db.session import SessionLocal

# ✅ Import All API Routes
from jobhunter.api.routes import (
    analytics,
    applications,
    auth,
    emails,
    jobs,
    location,
    pages,
    payments,
    resume,
    system,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)
    config.require_public_base_url()

    if config.RUN_MIGRATIONS:
        from jobhunter.db.migrate import run_migrations
        run_migrations()

    store = app.state.session_store
    if isinstance(store, SqlSessionStore):
        removed = store.purge_expired()
        logger.info(f"Purged {removed} expired sessions")

    logger.info(f"AI JobHunter API started: public_base_url={config.PUBLIC_BASE_URL}")
    yield


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="AI JobHunter", lifespan=lifespan)
app.state.session_store = SqlSessionStore(SessionLocal)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


@app.middleware("http")
async def log_api_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    if request.url.path.startswith("/api"):
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(f"{request.method} {request.url.path} {response.status_code} in {elapsed_ms:.0f}ms")
    return response


# ============================================
# ✅ ERROR RESPONSES: {"error": message}
# ============================================

@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={"error": f"{field}: {message}" if field else message},
    )


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(system.router)
app.include_router(auth.router)
app.include_router(resume.router)
app.include_router(applications.router)
app.include_router(jobs.router)
app.include_router(analytics.router)
app.include_router(emails.router)
app.include_router(payments.router)
app.include_router(location.router)
# Catch-all SPA page gate, must stay last
app.include_router(pages.router)
