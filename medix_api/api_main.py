from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from fastapi import APIRouter, Depends, FastAPI, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, field_validator

from medix_api import medix, services
from medix_api.config import Settings, configure_logging
from medix_api.db import Database
from medix_api.errors import ValidationError, data_access, install_error_handlers, parse_id

logger = logging.getLogger(__name__)

ROOT_BANNER = (
    "API Medix attiva.\n"
    "Usa /api/health per lo stato oppure /api/users, /api/tasks, /api/medix/* per gli endpoint."
)



# Schemi

class UserCreateIn(BaseModel):
    name: str | None = None
    email: str | None = None


class TaskCreateIn(BaseModel):
    title: str | None = None
    description: str | None = None


class TaskUpdateIn(BaseModel):
    # solo i campi presenti nel body finiscono nell'update (exclude_unset)
    title: str | None = None
    description: str | None = None
    completed: bool = False
    categoryId: int | None = None

    @field_validator("completed", mode="before")
    @classmethod
    def _truthy(cls, v: Any) -> bool:
        return bool(v)



# Dipendenze

def get_db(request: Request) -> Database:
    return request.app.state.db



# Endpoints

router = APIRouter()


@router.get("/api/health")
def health() -> dict[str, Any]:
    return {"ok": True}


# USERS

@router.get("/api/users")
def api_list_users(db: Database = Depends(get_db)) -> list[dict]:
    with data_access("GET /api/users", "Impossibile elencare gli utenti"):
        return services.list_users(db)


@router.post("/api/users", status_code=status.HTTP_201_CREATED)
def api_create_user(payload: UserCreateIn, db: Database = Depends(get_db)) -> dict[str, Any]:
    if not payload.name or not payload.email:
        raise ValidationError("name ed email sono obbligatori")

    with data_access("POST /api/users", "Impossibile creare l'utente (email duplicata?)"):
        return services.create_user(db, payload.name, payload.email)


# TASKS per utente

@router.get("/api/users/{user_id}/tasks")
def api_list_tasks(user_id: str, db: Database = Depends(get_db)) -> list[dict]:
    uid = parse_id(user_id, "userId")
    with data_access("GET /api/users/:id/tasks", "Impossibile elencare i task"):
        return services.list_tasks_for_user(db, uid)


@router.post("/api/users/{user_id}/tasks", status_code=status.HTTP_201_CREATED)
def api_create_task(user_id: str, payload: TaskCreateIn, db: Database = Depends(get_db)) -> dict[str, Any]:
    uid = parse_id(user_id, "userId")
    if not payload.title:
        raise ValidationError("title è obbligatorio")

    with data_access("POST /api/users/:id/tasks", "Impossibile creare il task"):
        return services.create_task(db, uid, payload.title, payload.description)


# TASK singolo

@router.put("/api/tasks/{task_id}")
def api_update_task(
    task_id: str,
    payload: TaskUpdateIn | None = None,
    db: Database = Depends(get_db),
) -> dict[str, Any]:
    tid = parse_id(task_id)
    changes = payload.model_dump(exclude_unset=True) if payload else {}

    with data_access("PUT /api/tasks/:id", "Impossibile aggiornare il task"):
        return services.update_task(db, tid, changes)


@router.delete("/api/tasks/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
def api_delete_task(task_id: str, db: Database = Depends(get_db)) -> Response:
    tid = parse_id(task_id)
    with data_access("DELETE /api/tasks/:id", "Impossibile eliminare il task"):
        services.delete_task(db, tid)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# MEDIX (sola lettura)

@router.get("/api/medix/patients")
def api_medix_patients(db: Database = Depends(get_db)) -> list[dict]:
    with data_access("GET /api/medix/patients", "Impossibile caricare i pazienti"):
        return medix.list_patients(db)


@router.get("/api/medix/doctors")
def api_medix_doctors(db: Database = Depends(get_db)) -> list[dict]:
    with data_access("GET /api/medix/doctors", "Impossibile caricare i medici"):
        return medix.list_doctors(db)


@router.get("/api/medix/appointments")
def api_medix_appointments(db: Database = Depends(get_db)) -> list[dict]:
    with data_access("GET /api/medix/appointments", "Impossibile caricare gli appuntamenti"):
        return medix.list_appointments(db)


@router.get("/", response_class=PlainTextResponse)
def root() -> str:
    return ROOT_BANNER



# App factory

def create_app(settings: Settings | None = None, database: Database | None = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    db = database or Database(settings.database_url, echo=settings.sql_echo)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # Crea tabelle User/Task/Category (idempotente); lo schema Medix non si tocca
        if settings.init_db:
            services.init_db(db)
        logger.info("API pronta su :%s", settings.port)
        yield
        db.dispose()

    app = FastAPI(title="Medix Tasks API", version="1.0.0", lifespan=lifespan)
    app.state.db = db
    app.state.settings = settings

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)
    app.include_router(router)
    return app
