# app/records/main.py
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import redis.asyncio as redis
import asyncpg
import logging

from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config.config import settings
from .api import auth, attendance, classes, students, performance, lessons, events, notes
from .db.db_client import AsyncPostgresClient
from .logging.logging_config import setup_logging
from .api.utilities.limiter import limiter
from .api.utilities.errors import format_validation_errors

from fastapi.middleware.cors import CORSMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Creates the shared PostgreSQL and Redis pools on startup and closes them on shutdown.
    """
    setup_logging()
    logger.info("Starting school records API...")

    postgres_pool = None
    redis_pool = None

    try:
        postgres_pool = await asyncpg.create_pool(
            dsn=settings.DATABASE_URL,
            min_size=settings.DB_POOL_MIN_SIZE,
            max_size=settings.DB_POOL_MAX_SIZE,
        )
        redis_pool = redis.ConnectionPool.from_url(
            settings.APPLICATION_REDIS_URL, decode_responses=True
        )

        app.state.postgres_pool = postgres_pool
        app.state.redis_pool = redis_pool
        logger.info("PostgreSQL and Redis connection pools created.")

        if settings.CREATE_SCHEMA_ON_STARTUP:
            await AsyncPostgresClient(pool=postgres_pool).create_schema()
            logger.info("Database schema ensured.")

    except Exception as e:
        logger.error(f"Startup failed: {e}", exc_info=True)
        app.state.postgres_pool = None
        app.state.redis_pool = None

    yield

    logger.info("Shutting down...")
    if getattr(app.state, "postgres_pool", None):
        await app.state.postgres_pool.close()
        logger.info("PostgreSQL connection pool closed.")
    if getattr(app.state, "redis_pool", None):
        await app.state.redis_pool.disconnect()
        logger.info("Redis connection pool closed.")


app = FastAPI(
    title="School Records API",
    description="Classes, enrollments, attendance and student records with role-based access.",
    version="1.0.0",
    lifespan=lifespan
)

# slowapi looks the limiter up on the app state for every decorated route
app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.CORS_ORIGIN],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Malformed input is a plain 400 with a readable message, not FastAPI's default 422."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": format_validation_errors(exc.errors())},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"},
    )


app.include_router(auth.router, prefix="/api")
app.include_router(attendance.router, prefix="/api")
app.include_router(classes.router, prefix="/api")
app.include_router(students.router, prefix="/api")
app.include_router(performance.router, prefix="/api")
app.include_router(lessons.router, prefix="/api")
app.include_router(events.router, prefix="/api")
app.include_router(notes.router, prefix="/api")


@app.get("/health", tags=["System"])
def health_check():
    """Simple liveness probe."""
    return {"status": "ok", "message": "School Records API is running."}


@app.get("/", tags=["System"])
def root():
    return {"message": "School Records API", "docs": "/docs"}
