import time
import traceback
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

# Import all models for SQLAlchemy relationship resolution
import models  # noqa: F401
from routers import auth, users, restaurants, menu_items, orders, favorites, reviews

from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from middleware import RequestIDMiddleware, get_request_id, limiter

from core.config import settings
from core.database import init_db
from core.exceptions import AppError
from core.logging_config import setup_logging
from utils.logger import get_logger, sanitize_log_data

setup_logging(
    log_level=settings.LOG_LEVEL,
    log_dir=settings.LOG_DIR
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Application startup complete", extra={"event": "startup", "env": settings.ENV})
    yield
    logger.info("Application shutting down", extra={"event": "shutdown"})


app = FastAPI(
    title="Food Ordering API",
    description="Backend API for restaurant browsing, favorites, reviews and food orders",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Access log: method, path, status code and duration of every request."""
    start_time = time.time()

    response = await call_next(request)

    duration = (time.time() - start_time) * 1000
    client_ip = request.client.host if request.client else "unknown"

    logger.info(
        f'{client_ip} - "{request.method} {request.url.path} HTTP/1.1" {response.status_code}',
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration, 2),
            "client_ip": client_ip
        }
    )

    return response


# Applies RATE_LIMIT_DEFAULT to routes without their own limit
app.add_middleware(SlowAPIMiddleware)

# Added last so it wraps the access log and every record gets the id
app.add_middleware(RequestIDMiddleware)


@app.get("/health")
async def health_check():
    logger.debug("Health check requested")
    return {"success": True, "status": "Healthy", "env": settings.ENV}


def _error_body(message: str, errors=None) -> dict:
    body = {"success": False, "message": message}
    if errors:
        body["errors"] = errors
    return body


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """AppError subclasses and FastAPI's own HTTP errors share one envelope."""
    errors = exc.errors if isinstance(exc, AppError) else None

    if exc.status_code >= 500:
        logger.error(
            f"Request failed: {exc.detail}",
            extra={"path": request.url.path, "method": request.method, "status_code": exc.status_code}
        )

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(str(exc.detail), errors),
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = []
    rejected = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path", "header")]
        message = error.get("msg", "Invalid value")
        # pydantic prefixes messages raised from validators
        if message.startswith("Value error, "):
            message = message[len("Value error, "):]
        errors.append({"field": ".".join(location) or None, "message": message})
        if isinstance(error.get("input"), (str, int, float, bool)):
            rejected[".".join(location)] = error["input"]

    logger.info(
        "Request validation failed",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": errors,
            "rejected_values": sanitize_log_data(rejected),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(errors[0]["message"] if errors else "Validation failed", errors),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(
        "Rate limit exceeded",
        extra={"path": request.url.path, "method": request.method, "limit": str(exc.detail)}
    )
    response = JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content=_error_body(f"Rate limit exceeded: {exc.detail}"),
    )
    return request.app.state.limiter._inject_headers(response, request.state.view_rate_limit)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """
    Anything not raised on purpose. The stack trace always goes to the log;
    the response only carries it in development.
    """
    logger.error(
        f"Unhandled exception: {str(exc)}",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "request_id": get_request_id(request)
        },
        exc_info=True
    )

    body = _error_body("Internal server error")
    if settings.ENV == "development":
        body["error_type"] = type(exc).__name__
        body["stack"] = traceback.format_exception(type(exc), exc, exc.__traceback__)

    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


app.include_router(auth.router)
app.include_router(users.router)
app.include_router(restaurants.router)
app.include_router(menu_items.router)
app.include_router(orders.router)
app.include_router(favorites.router)
app.include_router(reviews.router)


app.state.limiter = limiter
