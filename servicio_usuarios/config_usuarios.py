# config_usuarios.py
from typing import Optional

from pydantic import BaseModel, ConfigDict
from starlette.config import Config


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    database_url: str = "sqlite:///./usuarios.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10

    jwt_secret_key: str
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    bcrypt_rounds: int = 12

    # Si es False, GetAllUsers y GetUserByUUID no piden token
    protect_reads: bool = True
    # Crear un Administrador exige un token de Administrador
    enforce_admin_provisioning: bool = True
    issue_tokens: bool = True

    seed_file: str = ""
    log_level: str = "INFO"


def load_settings(config: Optional[Config] = None) -> Settings:
    # Las variables de entorno tienen prioridad sobre el archivo .env
    config = config or Config(".env")

    jwt_secret_key = config("JWT_SECRET_KEY", default="")
    if not jwt_secret_key:
        # Evita levantar el servicio si falta la clave
        raise RuntimeError("Falta JWT_SECRET_KEY en variables de entorno")

    return Settings(
        database_url=config("DATABASE_URL", default="sqlite:///./usuarios.db"),
        db_pool_size=config("DB_POOL_SIZE", cast=int, default=5),
        db_max_overflow=config("DB_MAX_OVERFLOW", cast=int, default=10),
        jwt_secret_key=jwt_secret_key,
        jwt_algorithm=config("JWT_ALGORITHM", default="HS256"),
        access_token_expire_minutes=config("ACCESS_TOKEN_EXPIRE_MINUTES", cast=int, default=60),
        bcrypt_rounds=config("BCRYPT_ROUNDS", cast=int, default=12),
        protect_reads=config("PROTECT_READS", cast=bool, default=True),
        enforce_admin_provisioning=config("ENFORCE_ADMIN_PROVISIONING", cast=bool, default=True),
        issue_tokens=config("ISSUE_TOKENS", cast=bool, default=True),
        seed_file=config("SEED_FILE", default=""),
        log_level=config("LOG_LEVEL", default="INFO").upper(),
    )
