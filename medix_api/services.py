from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from .db import Database
from .models import DEFAULT_CATEGORY_NAME, Category, Task, User

logger = logging.getLogger(__name__)

# campi aggiornabili via PUT /api/tasks/:id (chiave JSON -> attributo ORM)
TASK_UPDATABLE_FIELDS = {
    "title": "title",
    "description": "description",
    "completed": "completed",
    "categoryId": "category_id",
}


# =========================
# Bootstrap DB
# =========================
def init_db(db: Database) -> None:
    """Crea le tabelle User/Task/Category se non esistono."""
    db.create_tables()


# =========================
# Helper / DTO
# =========================
@dataclass(frozen=True)
class CategoryLookup:
    ok: bool
    category_id: int | None
    error: str | None = None


def user_flat(u: User) -> dict[str, Any]:
    return {"id": u.id, "name": u.name, "email": u.email}


def task_flat(t: Task) -> dict[str, Any]:
    return {
        "id": t.id,
        "title": t.title,
        "description": t.description,
        "completed": t.completed,
        "userId": t.user_id,
        "categoryId": t.category_id,
    }


# =========================
# Users
# =========================
def list_users(db: Database) -> list[dict]:
    with db.session() as s:
        return [user_flat(u) for u in s.scalars(select(User).order_by(User.id.asc()))]


def create_user(db: Database, name: str, email: str) -> dict:
    # email duplicata -> IntegrityError dal vincolo UNIQUE
    with db.session() as s:
        u = User(name=name, email=email)
        s.add(u)
        s.flush()
        return user_flat(u)


# =========================
# Categorie
# =========================
def _fetch_or_create_category(s: Session, name: str) -> int:
    existing = s.execute(select(Category.id).where(Category.name == name)).scalar_one_or_none()
    if existing is not None:
        return existing

    try:
        with s.begin_nested():
            c = Category(name=name)
            s.add(c)
            s.flush()
            return c.id
    except IntegrityError:
        # creata nel frattempo da un'altra richiesta
        return s.execute(select(Category.id).where(Category.name == name)).scalar_one()


def ensure_default_category(s: Session) -> CategoryLookup:
    """
    Best effort: assicura la categoria "General" dentro un savepoint.
    Un errore NON blocca la creazione del task: il chiamante lo legge come "nessuna categoria".
    """
    try:
        with s.begin_nested():
            return CategoryLookup(True, _fetch_or_create_category(s, DEFAULT_CATEGORY_NAME))
    except SQLAlchemyError as e:
        logger.warning('Impossibile assicurare la categoria "%s": %s', DEFAULT_CATEGORY_NAME, e)
        return CategoryLookup(False, None, str(e))


# =========================
# Tasks
# =========================
def list_tasks_for_user(db: Database, user_id: int) -> list[dict]:
    with db.session() as s:
        q = select(Task).where(Task.user_id == user_id).order_by(Task.id.desc())
        return [task_flat(t) for t in s.scalars(q)]


def create_task(db: Database, user_id: int, title: str, description: str | None = None) -> dict:
    with db.session() as s:
        lookup = ensure_default_category(s)

        t = Task(
            title=title,
            description=description,
            completed=False,
            user_id=user_id,
            category_id=lookup.category_id if lookup.ok else None,
        )
        s.add(t)
        s.flush()
        return task_flat(t)


def _get_task(s: Session, task_id: int) -> Task:
    # NoResultFound se manca: trattato come errore di accesso dati
    return s.execute(select(Task).where(Task.id == task_id)).scalar_one()


def update_task(db: Database, task_id: int, changes: dict[str, Any]) -> dict:
    """Aggiornamento parziale: solo le chiavi presenti in `changes` vengono toccate."""
    with db.session() as s:
        t = _get_task(s, task_id)
        for key, value in changes.items():
            attr = TASK_UPDATABLE_FIELDS.get(key)
            if attr is None:
                continue
            if attr == "completed":
                value = bool(value)
            setattr(t, attr, value)
        s.flush()
        return task_flat(t)


def delete_task(db: Database, task_id: int) -> None:
    with db.session() as s:
        s.delete(_get_task(s, task_id))
