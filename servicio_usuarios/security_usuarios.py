# security_usuarios.py
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from pydantic import ValidationError

from config_usuarios import Settings
from errors_usuarios import unauthenticated
import schemas_usuarios as schemas


class TokenService:
    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_minutes: int = 60):
        if not secret_key:
            raise RuntimeError("Falta JWT_SECRET_KEY en variables de entorno")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(settings.jwt_secret_key, settings.jwt_algorithm, settings.access_token_expire_minutes)

    # === Tokens ===
    def create_access_token(self, claims: dict, expires_delta: Optional[timedelta] = None) -> str:
        to_encode = dict(claims)
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify_token(self, token: Optional[str]) -> schemas.TokenClaims:
        if not token:
            raise unauthenticated("No se ha iniciado sesión: falta el token")
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise unauthenticated("Token expirado")
        except JWTError:
            raise unauthenticated("Token inválido o expirado")
        try:
            return schemas.TokenClaims.model_validate(payload)
        except ValidationError:
            raise unauthenticated("Token inválido: faltan datos del usuario")
