import os
import uuid
from datetime import datetime, timezone

os.environ.setdefault("JWT_SECRET_KEY", "clave-de-pruebas")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from auth_service_usuarios import CredentialHasher
from security_usuarios import TokenService
from service_usuarios import UserRecordService
from store_usuarios import InMemoryDocumentStore
import schemas_usuarios as schemas


@pytest.fixture
def store():
    return InMemoryDocumentStore()


@pytest.fixture
def hasher():
    return CredentialHasher(rounds=4)


@pytest.fixture
def tokens():
    return TokenService("clave-de-pruebas")


@pytest.fixture
def service(store, hasher, tokens):
    return UserRecordService(store, hasher, tokens)


@pytest.fixture
def make_user(store, hasher):
    """Inserta un documento directamente en la colección y lo devuelve."""

    def _make_user(role="Cliente", is_active=True, email=None, name="Usuario", password="secreto"):
        now = datetime(2024, 5, 1, 10, 30, 0, tzinfo=timezone.utc)
        user_uuid = str(uuid.uuid4())
        return store.insert({
            "uuid": user_uuid,
            "name": name,
            "lastname": "Prueba",
            "email": email or f"{user_uuid}@example.com",
            "password_hash": hasher.hash_password(password),
            "role": role,
            "is_active": is_active,
            "created_at": now,
            "updated_at": now,
        })

    return _make_user


@pytest.fixture
def token_for(tokens):
    def _token_for(doc):
        return tokens.create_access_token(schemas.to_public(doc).model_dump())

    return _token_for


@pytest.fixture
def admin(make_user):
    return make_user(role="Administrador", name="Admin")


@pytest.fixture
def cliente(make_user):
    return make_user(role="Cliente", name="Cliente")


@pytest.fixture
def admin_token(admin, token_for):
    return token_for(admin)


@pytest.fixture
def cliente_token(cliente, token_for):
    return token_for(cliente)


@pytest.fixture
def client(service):
    from main_usuarios import app, get_service

    app.dependency_overrides[get_service] = lambda: service
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
