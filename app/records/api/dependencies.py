#app/records/api/dependencies.py
from fastapi import Request, Depends
import redis.asyncio as redis
import asyncpg

from ..db.redis_client import RedisClient
from ..db.db_client import AsyncPostgresClient
from ..services.attendance_service import AttendanceService
from ..services.enrollment_service import EnrollmentService
from ..services.class_service import ClassService
from ..services.student_service import StudentService
from ..services.records_service import PerformanceService, LessonService, EventService, NoteService


def get_redis_pool(request: Request) -> redis.ConnectionPool:
    """
    Provides the Redis connection pool created at startup and kept in the application state.
    """
    return request.app.state.redis_pool

def get_postgres_pool(request: Request) -> asyncpg.Pool:
    """
    Provides the PostgreSQL connection pool created at startup and kept in the application state.
    """
    return request.app.state.postgres_pool


def get_redis_client(redis_pool: redis.ConnectionPool = Depends(get_redis_pool)) -> RedisClient:
    return RedisClient(pool=redis_pool)


def get_db_client(postgres_pool: asyncpg.Pool = Depends(get_postgres_pool)) -> AsyncPostgresClient:
    """
    Builds a fresh store client for each request on top of the shared pool.

    Services receive this client through their constructor, so tests can swap
    it for a fake by overriding this one dependency.
    """
    return AsyncPostgresClient(pool=postgres_pool)


def get_attendance_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> AttendanceService:
    return AttendanceService(db_client=db_client)


def get_enrollment_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> EnrollmentService:
    return EnrollmentService(db_client=db_client)


def get_class_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> ClassService:
    return ClassService(db_client=db_client)


def get_student_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> StudentService:
    return StudentService(db_client=db_client)


def get_performance_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> PerformanceService:
    return PerformanceService(db_client=db_client)


def get_lesson_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> LessonService:
    return LessonService(db_client=db_client)


def get_event_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> EventService:
    return EventService(db_client=db_client)


def get_note_service(db_client: AsyncPostgresClient = Depends(get_db_client)) -> NoteService:
    return NoteService(db_client=db_client)
