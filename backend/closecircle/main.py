"""Main FastAPI application."""
import json
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from closecircle.api.circle import router as circle_router
from closecircle.api.identity import router as identity_router
from closecircle.api.journal import router as journal_router
from closecircle.domain.common.errors import (
    AuthenticationError as DomainAuthenticationError,
    AuthorizationError as DomainAuthorizationError,
    ConflictError as DomainConflictError,
    NotFoundError as DomainNotFoundError,
    UpstreamError as DomainUpstreamError,
    ValidationError as DomainValidationError,
)
from closecircle.infra.db.base import Database
from closecircle.settings import settings

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    # Startup; tests install their own database before the app starts
    database = getattr(app.state, "database", None)
    owns_database = database is None
    if owns_database:
        database = Database(settings.database_url, echo=settings.database_echo)
        database.connect()
        app.state.database = database
        if settings.debug:
            try:
                await database.create_all()
            except Exception as e:
                # Database might not be ready yet; /ready reports it
                logger.warning(f"⚠️ Could not create tables during startup: {e}")
    if not settings.media_host_configured:
        logger.warning("⚠️ Cloudinary is not configured; image uploads will fail with 502")
    if not settings.google_oauth_configured:
        logger.info("Google login is not configured")

    yield

    # Shutdown
    if owns_database:
        await database.dispose()
        app.state.database = None


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    lifespan=lifespan,
)

logger.info(f"🔧 CORS: allowed origins {settings.cors_origins}")
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"],
    allow_headers=["*"],
    max_age=3600,
)


class LoggingMiddleware(BaseHTTPMiddleware):
    """Middleware to log all requests and responses."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        logger.info(f"📥 [SERVER REQUEST] {request.method} {request.url.path}")
        logger.debug(f"   Query params: {dict(request.query_params)}")
        if request.headers:
            # Don't log authorization header fully
            headers = dict(request.headers)
            if 'authorization' in headers:
                auth_header = headers['authorization']
                if auth_header.startswith('Bearer '):
                    token = auth_header[7:]
                    headers['authorization'] = f'Bearer {token[:20]}...' if len(token) > 20 else 'Bearer ***'
            logger.debug(f"   Headers: {headers}")

        response = await call_next(request)

        process_time = time.time() - start_time
        logger.info(f"📤 [SERVER RESPONSE] {request.method} {request.url.path} - {response.status_code} ({process_time:.3f}s)")
        return response


# Add logging middleware AFTER CORS (CORS must be first)
app.add_middleware(LoggingMiddleware)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with detailed logging."""
    logger.error(f"❌ [VALIDATION ERROR] {request.method} {request.url.path}")
    errors = exc.errors()
    logger.error(f"   Validation errors ({len(errors)}):")
    for i, error in enumerate(errors, 1):
        logger.error(f"   Error {i}: {json.dumps(error, indent=2, default=str)}")
    return JSONResponse(
        status_code=422,
        content={"detail": json.loads(json.dumps(errors, default=str))},
    )


# Domain error handlers: map domain exceptions to HTTP status
@app.exception_handler(DomainValidationError)
async def domain_validation_handler(request: Request, exc: DomainValidationError):
    """Return 400 for invalid arguments."""
    return JSONResponse(status_code=400, content={"detail": exc.message})


@app.exception_handler(DomainAuthenticationError)
async def domain_authentication_handler(request: Request, exc: DomainAuthenticationError):
    """Return 401 for bad credentials."""
    return JSONResponse(
        status_code=401,
        content={"detail": exc.message},
        headers={"WWW-Authenticate": "Bearer"},
    )


@app.exception_handler(DomainAuthorizationError)
async def domain_authorization_handler(request: Request, exc: DomainAuthorizationError):
    """Return 403 when the user is not authorized."""
    return JSONResponse(status_code=403, content={"detail": exc.message})


@app.exception_handler(DomainNotFoundError)
async def domain_not_found_handler(request: Request, exc: DomainNotFoundError):
    """Return 404 when a resource is not found."""
    return JSONResponse(status_code=404, content={"detail": exc.message})


@app.exception_handler(DomainConflictError)
async def domain_conflict_handler(request: Request, exc: DomainConflictError):
    """Return 409 for conflict errors."""
    return JSONResponse(status_code=409, content={"detail": exc.message})


@app.exception_handler(DomainUpstreamError)
async def domain_upstream_handler(request: Request, exc: DomainUpstreamError):
    """Return 502 when the media host, OAuth provider or mail service fails."""
    logger.error(f"❌ [UPSTREAM] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=502, content={"detail": exc.message})


@app.get("/health")
@app.get(f"{settings.api_prefix}/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "version": settings.app_version}


@app.get("/ready")
async def readiness(request: Request):
    """Readiness endpoint: run all checks and return 200 if ready, 503 otherwise."""
    from closecircle.readiness import is_ready, run_all_checks_async
    checks = await run_all_checks_async(getattr(request.app.state, "database", None))
    ready, summary = is_ready(checks)
    if ready:
        return {"ready": True, "checks": summary}
    return JSONResponse(status_code=503, content={"ready": False, "checks": summary})


app.include_router(identity_router, prefix=settings.api_prefix)
app.include_router(circle_router, prefix=settings.api_prefix)
app.include_router(journal_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("closecircle.main:app", host="0.0.0.0", port=8000, reload=True)
