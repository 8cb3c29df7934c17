import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from loguru import logger
from pydantic import BaseModel, ValidationError

from auth_service_usuarios import CredentialHasher
from config_usuarios import Settings
from errors_usuarios import (
    already_exists,
    catch_errors,
    internal,
    invalid_argument,
    not_found,
    permission_denied,
)
from rbac_usuarios import AuthorizationGate, Role, is_valid_role
from security_usuarios import TokenService
from store_usuarios import DocumentStore, DuplicateKeyError
import schemas_usuarios as schemas

REQUIRED_FIELDS_MESSAGE = "Todos los campos son obligatorios"
PASSWORD_FIELDS = ("password", "passwordConfirm")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserRecordService:
    """Operaciones del servicio de usuarios.

    Cada operación recibe el mensaje de la petición como dict y el valor crudo
    de la cabecera ``authorization``. Devuelve un esquema de respuesta o lanza
    ``ServiceError``; ningún otro tipo de excepción sale de aquí.
    """

    def __init__(
        self,
        store: DocumentStore,
        hasher: CredentialHasher,
        tokens: TokenService,
        protect_reads: bool = True,
        enforce_admin_provisioning: bool = True,
        issue_tokens: bool = True,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.hasher = hasher
        self.tokens = tokens
        self.gate = AuthorizationGate(tokens)
        self.protect_reads = protect_reads
        self.enforce_admin_provisioning = enforce_admin_provisioning
        self.issue_tokens = issue_tokens
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Settings, store: DocumentStore) -> "UserRecordService":
        return cls(
            store=store,
            hasher=CredentialHasher(rounds=settings.bcrypt_rounds),
            tokens=TokenService.from_settings(settings),
            protect_reads=settings.protect_reads,
            enforce_admin_provisioning=settings.enforce_admin_provisioning,
            issue_tokens=settings.issue_tokens,
        )

    @staticmethod
    def _parse(model: type, payload: Any, message: str = REQUIRED_FIELDS_MESSAGE) -> BaseModel:
        try:
            return model.model_validate(payload if payload is not None else {})
        except ValidationError:
            raise invalid_argument(message)

    def _issue_token(self, user: schemas.UsuarioPublico) -> Optional[str]:
        if not self.issue_tokens:
            return None
        return self.tokens.create_access_token(user.model_dump())

    @catch_errors
    def list_users(self, token: Optional[str] = None) -> schemas.UsersResponse:
        if self.protect_reads:
            claims = self.gate.authenticate(token)
            self.gate.require_admin(claims)

        users = [schemas.to_public(doc) for doc in self.store.find_all() if doc.get("is_active")]
        if not users:
            raise not_found("No se encontraron usuarios activos")
        return schemas.UsersResponse(users=users)

    @catch_errors
    def get_user(self, payload: Any, token: Optional[str] = None) -> schemas.UserResponse:
        req = self._parse(schemas.GetUserByUUIDRequest, payload, "El uuid es requerido")
        if self.protect_reads:
            claims = self.gate.authenticate(token)
            self.gate.require_self_or_admin(claims, req.uuid)

        user = self.store.find_one({"uuid": req.uuid})
        if not user or not user["is_active"]:
            raise not_found("Usuario no encontrado")
        return schemas.UserResponse(user=schemas.to_public(user))

    @catch_errors
    def create_user(self, payload: Any, token: Optional[str] = None) -> schemas.UserWithTokenResponse:
        req = self._parse(schemas.CreateUserRequest, payload)

        if req.password != req.passwordConfirm:
            raise invalid_argument("Las contraseñas no coinciden")

        # Incluye usuarios inactivos: el correo no se reutiliza
        if self.store.find_one({"email": req.email}):
            raise already_exists("El usuario ya existe")

        if not is_valid_role(req.role):
            raise invalid_argument("Rol inválido")

        if req.role == Role.ADMIN.value and self.enforce_admin_provisioning:
            claims = self.gate.optional_claims(token)
            if claims is None or claims.role != Role.ADMIN.value:
                raise permission_denied("No tienes permiso para crear un administrador")

        now = self.clock()
        new_user = {
            "uuid": str(uuid.uuid4()),
            "name": req.name,
            "lastname": req.lastname,
            "email": req.email,
            "password_hash": self.hasher.hash_password(req.password),
            "role": req.role,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        try:
            created = self.store.insert(new_user)
        except DuplicateKeyError:
            # Otra petición insertó el mismo correo después de la comprobación
            raise already_exists("El usuario ya existe")
        if not created:
            raise internal("Error al crear el usuario")

        user = schemas.to_public(created)
        logger.info(f"Usuario creado: {user.uuid} ({user.role})")
        return schemas.UserWithTokenResponse(user=user, token=self._issue_token(user))

    @catch_errors
    def update_user(self, payload: Any, token: Optional[str] = None) -> schemas.UserWithTokenResponse:
        # La contraseña no se cambia por esta ruta, sea cual sea el resto de la petición
        if isinstance(payload, dict) and any(payload.get(field) for field in PASSWORD_FIELDS):
            raise invalid_argument("No puedes modificar la contraseña de un usuario con este método")

        req = self._parse(schemas.UpdateUserRequest, payload)

        claims = self.gate.authenticate(token)
        self.gate.require_self_or_admin(claims, req.uuid, "No tienes permiso para actualizar este usuario")

        existing = self.store.find_one({"uuid": req.uuid})
        if not existing or not existing["is_active"]:
            raise not_found("Usuario no encontrado")

        if req.email != existing["email"] and self.store.find_one({"email": req.email}):
            raise already_exists("El correo ya está registrado")

        changes = {
            "name": req.name,
            "lastname": req.lastname,
            "email": req.email,
            "updated_at": self.clock(),
        }
        try:
            updated = self.store.merge_update({"uuid": req.uuid}, changes)
        except DuplicateKeyError:
            raise already_exists("El correo ya está registrado")
        if not updated:
            raise internal("Error al actualizar el usuario")

        user = schemas.to_public(updated)
        logger.info(f"Usuario actualizado: {user.uuid} por {claims.uuid}")
        return schemas.UserWithTokenResponse(user=user, token=self._issue_token(user))

    @catch_errors
    def delete_user(self, payload: Any, token: Optional[str] = None) -> schemas.Empty:
        req = self._parse(schemas.DeleteUserRequest, payload, "El uuid es requerido")

        claims = self.gate.authenticate(token)
        self.gate.require_admin(claims, "No tienes permiso para eliminar usuarios")

        if not self.store.find_one({"uuid": req.uuid}):
            raise not_found("Usuario no encontrado")

        # Borrado lógico: el registro se conserva inactivo
        result = self.store.merge_update({"uuid": req.uuid}, {"is_active": False, "updated_at": self.clock()})
        if not result:
            raise internal("Error al eliminar el usuario")

        logger.info(f"Usuario desactivado: {req.uuid} por {claims.uuid}")
        return schemas.Empty()
