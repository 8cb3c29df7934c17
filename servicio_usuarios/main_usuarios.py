from typing import Annotated, Any, Optional

from fastapi import Body, Depends, FastAPI, Header, Request
from fastapi.responses import JSONResponse
from loguru import logger

from auth_service_usuarios import init_db, seed_users
from config_usuarios import load_settings
from db import build_engine, build_session_factory
from errors_usuarios import ServiceError
from logging_usuarios import configure_logging
from service_usuarios import UserRecordService
from store_usuarios import SqlDocumentStore
import schemas_usuarios as schemas

settings = load_settings()
configure_logging(settings.log_level)

engine = build_engine(settings.database_url, settings.db_pool_size, settings.db_max_overflow)
SessionLocal = build_session_factory(engine)
service = UserRecordService.from_settings(settings, SqlDocumentStore(SessionLocal))

app = FastAPI(
    title="API de Servicio de Usuarios",
    description="Servicio de gestión de usuarios con control de acceso por roles. Un endpoint por método RPC.",
    version="1.0.0",
)


def get_service() -> UserRecordService:
    return service


Service = Annotated[UserRecordService, Depends(get_service)]
Authorization = Annotated[Optional[str], Header()]
Message = Annotated[Any, Body()]


@app.on_event("startup")
def _startup():
    init_db(engine)
    if settings.seed_file:
        seed_users(service.store, service.hasher, settings.seed_file)
    logger.info(f"Servicio de usuarios listo (protect_reads={settings.protect_reads})")


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    return JSONResponse(status_code=exc.kind.http_status, content=exc.to_dict())


@app.get("/__health")
def health():
    return {"status": "ok"}


@app.post("/Users/GetAllUsers", response_model=schemas.UsersResponse, tags=["Users"])
def get_all_users(svc: Service, authorization: Authorization = None, payload: Message = None):
    return svc.list_users(authorization)


@app.post("/Users/GetUserByUUID", response_model=schemas.UserResponse, tags=["Users"])
def get_user_by_uuid(svc: Service, authorization: Authorization = None, payload: Message = None):
    return svc.get_user(payload, authorization)


@app.post("/Users/CreateUser", response_model=schemas.UserWithTokenResponse, tags=["Users"])
def create_user(svc: Service, authorization: Authorization = None, payload: Message = None):
    return svc.create_user(payload, authorization)


@app.post("/Users/UpdateUser", response_model=schemas.UserWithTokenResponse, tags=["Users"])
def update_user(svc: Service, authorization: Authorization = None, payload: Message = None):
    return svc.update_user(payload, authorization)


@app.post("/Users/DeleteUser", response_model=schemas.Empty, tags=["Users"])
def delete_user(svc: Service, authorization: Authorization = None, payload: Message = None):
    return svc.delete_user(payload, authorization)
