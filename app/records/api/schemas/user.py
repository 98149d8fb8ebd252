# app/records/api/schemas/user.py
from pydantic import BaseModel, ConfigDict
from typing import Optional
from uuid import UUID

from ...models.db_models import Role
from .common import CamelModel

class LoginRequest(BaseModel):
    email: str
    password: str

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"

class UserResponse(CamelModel):
    id: UUID
    email: str
    role: Role
    first_name: Optional[str] = None
    last_name: Optional[str] = None

class LoginResponse(BaseModel):
    token: Token
    user: UserResponse

# Internal representation of JWT data
class TokenData(BaseModel):
    sub: Optional[UUID] = None
    role: Optional[Role] = None

    model_config = ConfigDict(extra="ignore")
