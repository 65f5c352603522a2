from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from contextlib import asynccontextmanager
import traceback

from app.core.config import settings, DEFAULT_JWT_SECRET
from app.core.database import init_db, close_db
from app.core.exceptions import CampusConnectError
from app.core.logging_config import logger
from app.core.middleware import (
    RequestLoggingMiddleware,
    SecurityHeadersMiddleware,
    RequestSizeLimitMiddleware,
)
from app.core.rate_limiter import limiter, rate_limit_exceeded_handler
from app.api.v1.router import api_router
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware


def validate_critical_config():
    """Validate critical configuration at startup - fail fast in production"""
    if settings.JWT_SECRET_KEY == DEFAULT_JWT_SECRET:
        if settings.is_production():
            logger.critical("[Startup] CRITICAL: JWT_SECRET_KEY is using the default value")
            raise RuntimeError("JWT_SECRET_KEY must be set in production")
        logger.warning("[Startup] WARNING: JWT_SECRET_KEY is using the default value")

    if not settings.SMTP_USER or not settings.SMTP_PASSWORD:
        logger.warning("[Startup] WARNING: SMTP not configured - emails are written to the log")

    logger.info("[Startup] ✓ Configuration validated")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan event handler for startup and shutdown"""
    # Startup
    logger.info("=" * 60)
    logger.info(f"Starting {settings.APP_NAME} API...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    logger.info("=" * 60)

    validate_critical_config()

    settings.ISSUE_IMAGE_PATH.mkdir(parents=True, exist_ok=True)
    await init_db()
    logger.info("[Startup] Database tables ready")

    yield

    # Shutdown
    logger.info(f"Shutting down {settings.APP_NAME} API...")
    await close_db()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    description="Campus issue reporting: students and staff report problems, authorities triage and resolve them",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
    redirect_slashes=False  # Prevent 307 redirects that break CORS
)

# Add rate limiter state and exception handler
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

# Starlette wraps middleware in reverse: the last one added sees the request first.
# Innermost: body size cap, then the default per-client rate limit
app.add_middleware(RequestSizeLimitMiddleware, max_size=settings.MAX_REQUEST_SIZE)
app.add_middleware(SlowAPIMiddleware)

# Headers and request logging also cover the 413 / 429 answers above
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# Outermost so preflight requests never reach the rest
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID", "X-Response-Time"],
)


# Exception handlers
@app.exception_handler(CampusConnectError)
async def campus_connect_exception_handler(request: Request, exc: CampusConnectError):
    if exc.status_code >= 500:
        logger.log_error_with_context(exc, f"{request.method} {request.url.path}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail
    if exc.status_code == 404 and message == "Not Found":
        message = f"Not Found - {request.url.path}"
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": message},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        msg = str(error.get("msg", "Invalid request"))
        if msg.startswith("Value error, "):
            msg = msg[len("Value error, "):]
        errors.append({"field": ".".join(loc), "message": msg})

    first = errors[0] if errors else {"field": "", "message": "Invalid request"}
    message = f"{first['field']}: {first['message']}" if first["field"] else first["message"]
    return JSONResponse(status_code=400, content={"message": message, "errors": errors})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.log_error_with_context(exc, f"{request.method} {request.url.path}")
    content = {"message": str(exc) if settings.DEBUG else "Internal Server Error"}
    if not settings.is_production():
        content["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return JSONResponse(status_code=500, content=content)


# Root endpoint
@app.get("/", tags=["Root"])
async def root():
    """Root endpoint"""
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": f"{settings.API_PREFIX}/health"
    }


# Include API router
app.include_router(api_router, prefix=settings.API_PREFIX)

# Uploaded issue photos
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR, check_dir=False), name="uploads")


def run():
    """Console entry point"""
    import uvicorn
    uvicorn.run(
        "app.main:app",
        host=settings.SERVER_HOST,
        port=settings.SERVER_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run()
