import logging
from fastapi import APIRouter, Depends, HTTPException, status, Response, Request
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from datetime import datetime, timedelta, timezone
from uuid import uuid4
from typing import Callable, Dict, Optional, Type, TypeVar
import jwt
from pydantic import BaseModel, ValidationError
from werkzeug.security import check_password_hash

from .schemas.user import Token, TokenData, LoginRequest, UserResponse, LoginResponse
from ..models.db_models import User
from ..models.redis_models import UserSessionRedis
from ..db.redis_client import RedisClient
from ..db.db_client import AsyncPostgresClient
from ..config.config import settings
from ..services.authorization import authorize, roles_for
from ..services.errors import ServiceError
from .dependencies import get_redis_client, get_db_client
from .utilities.errors import format_validation_errors, to_http_exception
from .utilities.limiter import limiter

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)
# auto_error is off so a missing header reaches the authorization gate as "no subject".
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

# --- Helpers ---
def create_access_token(data: dict, expires_delta: timedelta) -> str:
    """Creates a signed JWT carrying ``data`` that expires after ``expires_delta``."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


# --- Identity dependencies ---
async def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    redis_client: RedisClient = Depends(get_redis_client)
) -> Optional[User]:
    """
    Resolves the bearer token into the calling user.

    Returns None when no credential was sent. A credential that is present but
    invalid, expired or tied to a revoked session is rejected with 403.
    """
    if not token:
        return None

    invalid_token = HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail="Invalid or expired token",
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = TokenData.model_validate(payload)
    except (jwt.PyJWTError, ValidationError) as e:
        logger.warning(f"Token validation error: {e}")
        raise invalid_token

    if token_data.sub is None:
        logger.warning(f"Token is valid but missing 'sub': {payload}")
        raise invalid_token

    session = await redis_client.get_user_session(token_data.sub)
    if session is None:
        logger.warning(f"User '{token_data.sub}' has a valid token but no active session. Denying access.")
        raise invalid_token

    return session.user_data


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Like get_optional_user, but a missing credential is a 401."""
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authorization header missing",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


_gates: Dict[str, Callable] = {}


def require(operation: str) -> Callable:
    """
    Builds a dependency that passes the caller through the authorization gate
    for ``operation`` and yields the authorized user.

    The same callable is returned for the same operation, so FastAPI resolves
    the gate once per request however many dependencies ask for it.
    """
    if operation in _gates:
        return _gates[operation]
    roles_for(operation)  # unknown operations fail at import time, not per request

    async def dependency(user: Optional[User] = Depends(get_optional_user)) -> User:
        try:
            return authorize(user, operation)
        except ServiceError as e:
            raise to_http_exception(e)

    _gates[operation] = dependency
    return dependency


def gated_body(operation: str, model: Type[ModelT]) -> Callable:
    """
    Builds a dependency that parses the JSON body into ``model`` only after the
    caller has passed the gate for ``operation``.

    FastAPI decodes declared body parameters before any dependency runs; a body
    read here is decoded after the gate, so a forbidden caller always gets 403.
    """
    async def dependency(request: Request, user: User = Depends(require(operation))) -> ModelT:
        try:
            payload = await request.json()
        except ValueError:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body must be valid JSON")
        try:
            return model.model_validate(payload)
        except ValidationError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=format_validation_errors(e.errors()))

    return dependency


# --- Login ---

async def _perform_login(email: str, password: str, db_client: AsyncPostgresClient, redis_client: RedisClient) -> LoginResponse:
    logger.info(f"Login attempt for '{email}'.")

    credentials = await db_client.get_user_credentials(email)
    if credentials is None or not check_password_hash(credentials.password_hash, password):
        logger.warning(f"Failed login for '{email}'.")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password.")
    if not credentials.is_active:
        logger.warning(f"Inactive user '{email}' tried to log in.")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="This account is disabled.")

    user = User.model_validate(credentials.model_dump(exclude={"password_hash"}))
    ttl = getattr(settings, f"{user.role.value}_SESSION_TTL_SECONDS")
    now = datetime.now(timezone.utc)
    session = UserSessionRedis(
        user_data=user,
        session_id=uuid4(),
        session_start_time=now,
        session_end_time=now + timedelta(seconds=ttl)
    )
    await redis_client.save_user_session(session, ttl=ttl)

    access_token = create_access_token(
        data={"sub": str(user.id), "role": user.role.value},
        expires_delta=timedelta(seconds=ttl)
    )
    logger.info(f"User '{email}' ({user.role.value}) logged in; session TTL {ttl}s.")
    return LoginResponse(token=Token(access_token=access_token), user=UserResponse.model_validate(user))


# --- API Endpoints ---

@router.post("/token", response_model=Token)
@limiter.limit("20/minute")
async def login_for_access_token(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db_client: AsyncPostgresClient = Depends(get_db_client),
    redis_client: RedisClient = Depends(get_redis_client)
):
    """Standard OAuth2 password flow endpoint for Swagger UI; the username is the email."""
    login_response = await _perform_login(form_data.username, form_data.password, db_client, redis_client)
    return login_response.token


@router.post("/login", response_model=LoginResponse)
@limiter.limit("20/minute")
async def login(
    request: Request,
    login_request: LoginRequest,
    db_client: AsyncPostgresClient = Depends(get_db_client),
    redis_client: RedisClient = Depends(get_redis_client)
):
    """Login endpoint for web and mobile clients."""
    return await _perform_login(login_request.email, login_request.password, db_client, redis_client)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current_user: User = Depends(get_current_user),
    redis_client: RedisClient = Depends(get_redis_client)
):
    """Deletes the session; tokens issued for it stop working immediately."""
    await redis_client.delete_user_session(current_user.id)
    logger.info(f"Session for user '{current_user.id}' deleted.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse)
async def me(current_user: User = Depends(get_current_user)):
    return current_user
