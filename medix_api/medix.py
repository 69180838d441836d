"""
Viste in sola lettura sullo schema esterno Medix (public.*).

Le query sono template SQL fissi e con nome: nessun valore viene mai interpolato.
Lo schema appartiene a un altro applicativo: qui non si crea né si modifica nulla.
"""
from __future__ import annotations

from typing import Any

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause

from .db import Database

QUERIES: dict[str, TextClause] = {
    "patients": text(
        """
        SELECT p.id,
               p.nombre_completo,
               p.email,
               p.fecha_nacimiento,
               COALESCE(e.nombre, '') AS eps_nombre
        FROM public.patient p
        LEFT JOIN public.eps e ON e.id = p.eps_id
        ORDER BY p.id ASC
        """
    ),
    "doctors": text(
        """
        SELECT d.id,
               d.nombre_completo,
               d.email,
               COALESCE(s.nombre, '') AS especialidad
        FROM public.doctor d
        LEFT JOIN public.specialty s ON s.id = d.specialty_id
        ORDER BY d.id ASC
        """
    ),
    "appointments": text(
        """
        SELECT a.id,
               a.scheduled_at,
               a.motivo,
               a.status_code,
               p.nombre_completo AS paciente,
               d.nombre_completo AS doctor
        FROM public.appointment a
        JOIN public.patient p ON p.id = a.patient_id
        JOIN public.doctor d ON d.id = a.doctor_id
        ORDER BY a.scheduled_at DESC
        """
    ),
}


def _run(db: Database, name: str) -> list[Any]:
    with db.engine.connect() as conn:
        return conn.execute(QUERIES[name]).all()


def list_patients(db: Database) -> list[dict]:
    return [
        {
            "id": r.id,
            "fullName": r.nombre_completo,
            "email": r.email,
            "birthDate": r.fecha_nacimiento,
            "insurerName": r.eps_nombre,
        }
        for r in _run(db, "patients")
    ]


def list_doctors(db: Database) -> list[dict]:
    return [
        {"id": r.id, "fullName": r.nombre_completo, "email": r.email, "specialtyName": r.especialidad}
        for r in _run(db, "doctors")
    ]


def list_appointments(db: Database) -> list[dict]:
    return [
        {
            "id": r.id,
            "scheduledAt": r.scheduled_at,
            "reason": r.motivo,
            "statusCode": r.status_code,
            "patientName": r.paciente,
            "doctorName": r.doctor,
        }
        for r in _run(db, "appointments")
    ]
