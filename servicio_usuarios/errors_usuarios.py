# errors_usuarios.py
import functools
from enum import Enum

from fastapi import status
from loguru import logger


class ErrorKind(str, Enum):
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    NOT_FOUND = "NOT_FOUND"
    ALREADY_EXISTS = "ALREADY_EXISTS"
    INTERNAL = "INTERNAL"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    ErrorKind.INVALID_ARGUMENT: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.PERMISSION_DENIED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.ALREADY_EXISTS: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


class ServiceError(Exception):
    """Fallo de negocio con su tipo y un mensaje corto para el cliente."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def to_dict(self) -> dict:
        return {"code": self.kind.value, "message": self.message}

    def __repr__(self) -> str:
        return f"ServiceError({self.kind.value}, {self.message!r})"


def invalid_argument(message: str) -> ServiceError:
    return ServiceError(ErrorKind.INVALID_ARGUMENT, message)


def unauthenticated(message: str) -> ServiceError:
    return ServiceError(ErrorKind.UNAUTHENTICATED, message)


def permission_denied(message: str) -> ServiceError:
    return ServiceError(ErrorKind.PERMISSION_DENIED, message)


def not_found(message: str) -> ServiceError:
    return ServiceError(ErrorKind.NOT_FOUND, message)


def already_exists(message: str) -> ServiceError:
    return ServiceError(ErrorKind.ALREADY_EXISTS, message)


def internal(message: str = "Error interno del servidor") -> ServiceError:
    return ServiceError(ErrorKind.INTERNAL, message)


def catch_errors(func):
    """Ninguna excepción cruda sale de una operación: todo lo que no sea
    ServiceError se registra y se devuelve como INTERNAL."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ServiceError:
            raise
        except Exception:
            logger.exception(f"Fallo inesperado en {func.__name__}")
            raise internal()

    return wrapper
