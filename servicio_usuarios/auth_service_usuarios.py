import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Union

from loguru import logger
from passlib.context import CryptContext
from sqlalchemy.engine import Engine

from db import Base
from rbac_usuarios import is_valid_role
from store_usuarios import DocumentStore
import models_usuarios  # noqa: F401  registra la tabla en Base.metadata


class CredentialHasher:
    def __init__(self, rounds: int = 12):
        self.pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, plain: str, hashed: str) -> bool:
        return self.pwd_context.verify(plain, hashed)


def init_db(engine: Engine):
    Base.metadata.create_all(bind=engine)


def seed_users(store: DocumentStore, hasher: CredentialHasher, path: Union[str, Path]) -> bool:
    """Siembra usuarios de prueba desde un JSON si la colección está vacía.

    Cada elemento lleva ``uuid, name, lastname, email, password, role`` y,
    opcionalmente, ``isActive``. Devuelve True si se insertó algo.
    """
    if store.find_all():
        logger.info("La colección de usuarios ya tiene datos, no se realizará la siembra")
        return False

    users_mock = json.loads(Path(path).read_text(encoding="utf-8"))
    now = datetime.now(timezone.utc)
    for user in users_mock:
        if not is_valid_role(user["role"]):
            raise ValueError(f"Rol inválido en la siembra: {user['role']}")
        store.insert({
            "uuid": user["uuid"],
            "name": user["name"],
            "lastname": user["lastname"],
            "email": user["email"],
            "password_hash": hasher.hash_password(user["password"]),
            "role": user["role"],
            "is_active": user.get("isActive", True),
            "created_at": now,
            "updated_at": now,
        })

    logger.info(f"Usuarios sembrados correctamente: {len(users_mock)}")
    return True
