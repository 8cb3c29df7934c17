import json
from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from auth_service_usuarios import init_db, seed_users
from db import build_session_factory
from store_usuarios import DuplicateKeyError, InMemoryDocumentStore, SqlDocumentStore, StoreError

NOW = datetime(2024, 5, 1, 10, 30, 0, tzinfo=timezone.utc)


def document(uuid="u-1", email="ana@x.com", **overrides):
    doc = {
        "uuid": uuid,
        "name": "Ana",
        "lastname": "Ruiz",
        "email": email,
        "password_hash": "hash",
        "role": "Cliente",
        "is_active": True,
        "created_at": NOW,
        "updated_at": NOW,
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def sql_store():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    return SqlDocumentStore(build_session_factory(engine))


@pytest.fixture(params=["memory", "sql"])
def any_store(request, sql_store):
    if request.param == "memory":
        return InMemoryDocumentStore()
    return sql_store


class TestDocumentStoreContract:
    def test_insert_and_find(self, any_store):
        stored = any_store.insert(document())

        assert stored["uuid"] == "u-1"
        found = any_store.find_one({"email": "ana@x.com"})
        assert found["uuid"] == "u-1"
        assert found["password_hash"] == "hash"
        assert any_store.find_one({"uuid": "u-2"}) is None

    def test_find_with_several_keys(self, any_store):
        any_store.insert(document())
        assert any_store.find_one({"uuid": "u-1", "is_active": True})
        assert any_store.find_one({"uuid": "u-1", "is_active": False}) is None

    def test_find_all_keeps_inactive(self, any_store):
        any_store.insert(document())
        any_store.insert(document(uuid="u-2", email="b@x.com", is_active=False))
        assert [doc["uuid"] for doc in any_store.find_all()] == ["u-1", "u-2"]

    def test_insert_rejects_duplicate_email(self, any_store):
        any_store.insert(document())
        with pytest.raises(DuplicateKeyError):
            any_store.insert(document(uuid="u-2"))
        assert len(any_store.find_all()) == 1

    def test_insert_rejects_duplicate_uuid(self, any_store):
        any_store.insert(document())
        with pytest.raises(DuplicateKeyError):
            any_store.insert(document(email="otro@x.com"))

    def test_merge_update_keeps_untouched_fields(self, any_store):
        any_store.insert(document())

        merged = any_store.merge_update({"uuid": "u-1"}, {"name": "Ana María", "is_active": False})

        assert merged["name"] == "Ana María"
        assert merged["is_active"] is False
        assert merged["lastname"] == "Ruiz"
        assert merged["password_hash"] == "hash"
        assert any_store.find_one({"uuid": "u-1"})["name"] == "Ana María"

    def test_merge_update_without_match(self, any_store):
        assert any_store.merge_update({"uuid": "u-9"}, {"name": "x"}) is None

    def test_merge_update_rejects_duplicate_email(self, any_store):
        any_store.insert(document())
        any_store.insert(document(uuid="u-2", email="b@x.com"))
        with pytest.raises(DuplicateKeyError):
            any_store.merge_update({"uuid": "u-2"}, {"email": "ana@x.com"})
        assert any_store.find_one({"uuid": "u-2"})["email"] == "b@x.com"

    def test_returned_documents_are_copies(self, any_store):
        any_store.insert(document())
        found = any_store.find_one({"uuid": "u-1"})
        found["name"] = "cambiado"
        assert any_store.find_one({"uuid": "u-1"})["name"] == "Ana"


class TestSqlDocumentStore:
    def test_unknown_filter_key(self, sql_store):
        with pytest.raises(StoreError):
            sql_store.find_one({"nope": 1})

    def test_unknown_update_key(self, sql_store):
        sql_store.insert(document())
        with pytest.raises(StoreError):
            sql_store.merge_update({"uuid": "u-1"}, {"password": "x"})


class TestSeedUsers:
    @pytest.fixture
    def seed_file(self, tmp_path):
        path = tmp_path / "mockUsers.json"
        path.write_text(json.dumps([
            {"uuid": "s-1", "name": "Admin", "lastname": "Uno", "email": "admin@x.com",
             "password": "admin", "role": "Administrador", "isActive": True},
            {"uuid": "s-2", "name": "Luis", "lastname": "Dos", "email": "luis@x.com",
             "password": "luis", "role": "Cliente", "isActive": False},
        ]), encoding="utf-8")
        return path

    def test_seeds_empty_store(self, any_store, hasher, seed_file):
        assert seed_users(any_store, hasher, seed_file) is True

        admin = any_store.find_one({"uuid": "s-1"})
        assert admin["role"] == "Administrador"
        assert hasher.verify_password("admin", admin["password_hash"])
        assert any_store.find_one({"uuid": "s-2"})["is_active"] is False

    def test_skips_non_empty_store(self, any_store, hasher, seed_file):
        any_store.insert(document())
        assert seed_users(any_store, hasher, seed_file) is False
        assert len(any_store.find_all()) == 1

    def test_rejects_unknown_role(self, hasher, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps([{"uuid": "x", "name": "a", "lastname": "b", "email": "c@x.com",
                                     "password": "p", "role": "Root"}]), encoding="utf-8")
        with pytest.raises(ValueError):
            seed_users(InMemoryDocumentStore(), hasher, path)
