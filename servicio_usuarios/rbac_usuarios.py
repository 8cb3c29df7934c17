from enum import Enum
from typing import Optional

from loguru import logger

from errors_usuarios import ServiceError, permission_denied
from security_usuarios import TokenService
import schemas_usuarios as schemas


class Role(str, Enum):
    ADMIN = "Administrador"
    CLIENT = "Cliente"


def is_valid_role(role: str) -> bool:
    return role in (Role.ADMIN.value, Role.CLIENT.value)


def strip_bearer(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    parts = raw.split(None, 1)
    if parts and parts[0].lower() == "bearer":
        parts = parts[1:]
    return parts[0].strip() if parts else None


class AuthorizationGate:
    def __init__(self, tokens: TokenService):
        self.tokens = tokens

    def authenticate(self, raw_token: Optional[str]) -> schemas.TokenClaims:
        return self.tokens.verify_token(strip_bearer(raw_token))

    def optional_claims(self, raw_token: Optional[str]) -> Optional[schemas.TokenClaims]:
        try:
            return self.authenticate(raw_token)
        except ServiceError:
            return None

    def require_admin(self, claims: schemas.TokenClaims, message: str = "No tienes permiso para acceder a este recurso") -> None:
        if claims.role != Role.ADMIN.value:
            logger.warning(f"Acceso denegado a {claims.uuid}: requiere rol {Role.ADMIN.value}")
            raise permission_denied(message)

    def require_self_or_admin(self, claims: schemas.TokenClaims, target_uuid: str, message: str = "No tienes permiso para acceder a este recurso") -> None:
        if claims.role == Role.ADMIN.value:
            return
        if claims.uuid == target_uuid:
            logger.debug(f"{claims.uuid} no es administrador, pero opera sobre su propio usuario")
            return
        logger.warning(f"Acceso denegado a {claims.uuid} sobre {target_uuid}")
        raise permission_denied(message)
