# store_usuarios.py
"""Colección de documentos de usuarios.

El servicio sólo conoce el contrato ``DocumentStore``; la implementación real
va sobre SQLAlchemy y la de memoria se usa en pruebas y ejecuciones locales.
Los documentos son dicts planos con las claves de ``Usuario.DOCUMENT_FIELDS``.
"""
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional, Protocol

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from models_usuarios import Usuario

Document = Dict[str, Any]

UNIQUE_KEYS = ("uuid", "email")


class StoreError(Exception):
    pass


class DuplicateKeyError(StoreError):
    pass


class DocumentStore(Protocol):
    def find_one(self, filter: Document) -> Optional[Document]: ...

    def find_all(self) -> List[Document]: ...

    def insert(self, doc: Document) -> Document:
        """Inserta sólo si ningún documento comparte uuid o email; si no, DuplicateKeyError."""
        ...

    def merge_update(self, filter: Document, partial: Document) -> Optional[Document]:
        """Mezcla ``partial`` sobre el documento encontrado. None si no hay coincidencia."""
        ...


class SqlDocumentStore:
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except IntegrityError as e:
            db.rollback()
            raise DuplicateKeyError(str(e.orig)) from e
        except SQLAlchemyError as e:
            db.rollback()
            raise StoreError(str(e)) from e
        finally:
            db.close()

    def find_one(self, filter: Document) -> Optional[Document]:
        with self._session() as db:
            row = db.query(Usuario).filter_by(**filter).first()
            return row.to_document() if row else None

    def find_all(self) -> List[Document]:
        with self._session() as db:
            return [row.to_document() for row in db.query(Usuario).order_by(Usuario.id.asc()).all()]

    def insert(self, doc: Document) -> Document:
        with self._session() as db:
            row = Usuario(**{k: v for k, v in doc.items() if k in Usuario.DOCUMENT_FIELDS})
            db.add(row)
            db.commit()
            db.refresh(row)
            return row.to_document()

    def merge_update(self, filter: Document, partial: Document) -> Optional[Document]:
        unknown = set(partial) - set(Usuario.DOCUMENT_FIELDS)
        if unknown:
            raise StoreError(f"Campos desconocidos: {sorted(unknown)}")
        with self._session() as db:
            row = db.query(Usuario).filter_by(**filter).first()
            if not row:
                return None
            for k, v in partial.items():
                setattr(row, k, v)
            db.commit()
            db.refresh(row)
            return row.to_document()


class InMemoryDocumentStore:
    def __init__(self, docs: Optional[List[Document]] = None):
        self._docs: List[Document] = []
        self._lock = threading.Lock()
        for doc in docs or []:
            self.insert(doc)

    @staticmethod
    def _matches(doc: Document, filter: Document) -> bool:
        return all(doc.get(k) == v for k, v in filter.items())

    def _conflicts(self, candidate: Document, skip: Optional[Document] = None) -> bool:
        for doc in self._docs:
            if doc is skip:
                continue
            if any(candidate.get(k) is not None and doc.get(k) == candidate.get(k) for k in UNIQUE_KEYS):
                return True
        return False

    def find_one(self, filter: Document) -> Optional[Document]:
        with self._lock:
            for doc in self._docs:
                if self._matches(doc, filter):
                    return dict(doc)
        return None

    def find_all(self) -> List[Document]:
        with self._lock:
            return [dict(doc) for doc in self._docs]

    def insert(self, doc: Document) -> Document:
        with self._lock:
            if self._conflicts(doc):
                raise DuplicateKeyError(f"uuid o email duplicado: {doc.get('uuid')}")
            stored = dict(doc)
            self._docs.append(stored)
            return dict(stored)

    def merge_update(self, filter: Document, partial: Document) -> Optional[Document]:
        with self._lock:
            target = next((doc for doc in self._docs if self._matches(doc, filter)), None)
            if target is None:
                return None
            merged = {**target, **partial}
            if self._conflicts(merged, skip=target):
                raise DuplicateKeyError(f"uuid o email duplicado: {merged.get('uuid')}")
            target.update(partial)
            return dict(target)
