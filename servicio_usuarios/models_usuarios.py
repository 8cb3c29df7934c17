from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint

from db import Base


class Usuario(Base):
    __tablename__ = "usuarios"
    id = Column(Integer, primary_key=True, index=True)
    uuid = Column(String(36), nullable=False, unique=True, index=True)
    name = Column(String(120), nullable=False)
    lastname = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(30), nullable=False, index=True)
    # Borrado lógico: la fila se conserva con is_active=False
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    __table_args__ = (UniqueConstraint("uuid"), UniqueConstraint("email"),)

    DOCUMENT_FIELDS = (
        "uuid", "name", "lastname", "email", "password_hash",
        "role", "is_active", "created_at", "updated_at",
    )

    def to_document(self) -> dict:
        return {field: getattr(self, field) for field in self.DOCUMENT_FIELDS}
