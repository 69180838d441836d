"""
Fixture comuni: DB SQLite in memoria con uno schema "public" agganciato,
così i template Medix girano identici a Postgres.
"""
from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event, text

from medix_api.api_main import create_app
from medix_api.config import Settings
from medix_api.db import Database


def _attach_public(dbapi_conn, _record) -> None:
    cursor = dbapi_conn.cursor()
    cursor.execute("ATTACH DATABASE ':memory:' AS public")
    cursor.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(database_url="sqlite://", log_level="WARNING")


@pytest.fixture
def db(settings: Settings) -> Generator[Database, None, None]:
    database = Database(settings.database_url)
    event.listen(database.engine, "connect", _attach_public)
    database.create_tables()
    yield database
    database.dispose()


@pytest.fixture
def client(settings: Settings, db: Database) -> Generator[TestClient, None, None]:
    app = create_app(settings, database=db)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def user(client: TestClient) -> dict:
    r = client.post("/api/users", json={"name": "Ana", "email": "ana@x.com"})
    assert r.status_code == 201
    return r.json()


MEDIX_DDL = [
    "CREATE TABLE public.eps (id INTEGER PRIMARY KEY, nombre TEXT NOT NULL)",
    "CREATE TABLE public.specialty (id INTEGER PRIMARY KEY, nombre TEXT NOT NULL)",
    """
    CREATE TABLE public.patient (
        id INTEGER PRIMARY KEY,
        nombre_completo TEXT NOT NULL,
        email TEXT,
        fecha_nacimiento TEXT,
        eps_id INTEGER
    )
    """,
    """
    CREATE TABLE public.doctor (
        id INTEGER PRIMARY KEY,
        nombre_completo TEXT NOT NULL,
        email TEXT,
        specialty_id INTEGER
    )
    """,
    """
    CREATE TABLE public.appointment (
        id INTEGER PRIMARY KEY,
        patient_id INTEGER NOT NULL,
        doctor_id INTEGER NOT NULL,
        scheduled_at TEXT NOT NULL,
        motivo TEXT,
        status_code TEXT NOT NULL
    )
    """,
]


@pytest.fixture
def medix_data(db: Database) -> None:
    with db.engine.begin() as conn:
        for ddl in MEDIX_DDL:
            conn.execute(text(ddl))

        conn.execute(text("INSERT INTO public.eps (id, nombre) VALUES (:id, :nombre)"), [{"id": 1, "nombre": "Sura"}])
        conn.execute(
            text("INSERT INTO public.specialty (id, nombre) VALUES (:id, :nombre)"),
            [{"id": 1, "nombre": "Cardiología"}],
        )
        conn.execute(
            text(
                "INSERT INTO public.patient (id, nombre_completo, email, fecha_nacimiento, eps_id) "
                "VALUES (:id, :n, :e, :f, :eps)"
            ),
            [
                {"id": 2, "n": "Luis Gómez", "e": "luis@x.com", "f": "1985-07-02", "eps": None},
                {"id": 1, "n": "María Pérez", "e": "maria@x.com", "f": "1990-03-14", "eps": 1},
            ],
        )
        conn.execute(
            text("INSERT INTO public.doctor (id, nombre_completo, email, specialty_id) VALUES (:id, :n, :e, :s)"),
            [
                {"id": 1, "n": "Dr. Ruiz", "e": "ruiz@x.com", "s": 1},
                {"id": 2, "n": "Dra. Soto", "e": None, "s": None},
            ],
        )
        conn.execute(
            text(
                "INSERT INTO public.appointment (id, patient_id, doctor_id, scheduled_at, motivo, status_code) "
                "VALUES (:id, :p, :d, :at, :m, :st)"
            ),
            [
                {"id": 1, "p": 1, "d": 1, "at": "2024-01-10 09:00:00", "m": "Control", "st": "DONE"},
                {"id": 2, "p": 2, "d": 2, "at": "2024-03-01 10:30:00", "m": "Dolor", "st": "SCHEDULED"},
                {"id": 3, "p": 1, "d": 2, "at": "2024-02-15 16:00:00", "m": "Revisión", "st": "CANCELLED"},
            ],
        )
