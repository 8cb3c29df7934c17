from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Una cadena vacía cuenta como campo faltante
NonEmpty = Annotated[str, Field(min_length=1)]


class GetUserByUUIDRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    uuid: NonEmpty


class CreateUserRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    name: NonEmpty
    lastname: NonEmpty
    email: NonEmpty
    password: NonEmpty
    passwordConfirm: NonEmpty
    role: NonEmpty


class UpdateUserRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    uuid: NonEmpty
    name: NonEmpty
    lastname: NonEmpty
    email: NonEmpty


class DeleteUserRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    uuid: NonEmpty


class UsuarioPublico(BaseModel):
    uuid: str
    name: str
    lastname: str
    email: str
    role: str
    createdAt: str


class TokenClaims(BaseModel):
    model_config = ConfigDict(extra="ignore")
    uuid: NonEmpty
    role: NonEmpty
    name: Optional[str] = None
    lastname: Optional[str] = None
    email: Optional[str] = None
    createdAt: Optional[str] = None


class UsersResponse(BaseModel):
    users: List[UsuarioPublico]


class UserResponse(BaseModel):
    user: UsuarioPublico


class UserWithTokenResponse(BaseModel):
    user: UsuarioPublico
    token: Optional[str] = None


class Empty(BaseModel):
    pass


TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def format_timestamp(value) -> str:
    if isinstance(value, datetime):
        return value.strftime(TIMESTAMP_FORMAT)
    return str(value)


def to_public(doc: dict) -> UsuarioPublico:
    """Proyección pública de un documento: nunca incluye el hash de la contraseña."""
    return UsuarioPublico(
        uuid=doc["uuid"],
        name=doc["name"],
        lastname=doc["lastname"],
        email=doc["email"],
        role=doc["role"],
        createdAt=format_timestamp(doc["created_at"]),
    )
