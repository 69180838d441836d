from __future__ import annotations

import argparse

import uvicorn
from sqlalchemy.exc import SQLAlchemyError

from medix_api import medix
from medix_api.config import Settings, configure_logging
from medix_api.db import Database
from medix_api.services import create_task, create_user, init_db, list_tasks_for_user, list_users


def cmd_init(db: Database, args: argparse.Namespace) -> None:
    init_db(db)
    print("Tabelle User/Task/Category pronte.")


def cmd_list(db: Database, args: argparse.Namespace) -> None:
    if args.entity == "users":
        for u in list_users(db):
            print(f"{u['id']} | {u['name']} | {u['email']}")
    elif args.entity == "tasks":
        if args.user_id is None:
            raise SystemExit("--user-id è obbligatorio per 'list tasks'")
        for t in list_tasks_for_user(db, args.user_id):
            stato = "x" if t["completed"] else " "
            print(f"{t['id']} | [{stato}] {t['title']} | categoria={t['categoryId'] or '-'}")
    elif args.entity == "patients":
        for p in medix.list_patients(db):
            print(f"{p['id']} | {p['fullName']} | {p['email'] or '-'} | {p['insurerName'] or '-'}")
    elif args.entity == "doctors":
        for d in medix.list_doctors(db):
            print(f"{d['id']} | {d['fullName']} | {d['specialtyName'] or '-'}")
    elif args.entity == "appointments":
        for a in medix.list_appointments(db):
            print(f"{a['id']} | {a['scheduledAt']} | {a['patientName']} -> {a['doctorName']} | {a['statusCode']}")


def cmd_add_user(db: Database, args: argparse.Namespace) -> None:
    u = create_user(db, args.name, args.email)
    print(f"Utente creato: {u['id']}")


def cmd_add_task(db: Database, args: argparse.Namespace) -> None:
    t = create_task(db, args.user_id, args.title, args.description)
    print(f"Task creato: {t['id']} (categoria: {t['categoryId'] or '-'})")


def cmd_serve(settings: Settings, args: argparse.Namespace) -> None:
    uvicorn.run(
        "medix_api.api_main:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="medix-cli", description="CLI Medix Tasks API")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Crea le tabelle dello store applicativo")
    p_init.set_defaults(func=cmd_init)

    p_list = sub.add_parser("list", help="Lista entità")
    p_list.add_argument("entity", choices=["users", "tasks", "patients", "doctors", "appointments"])
    p_list.add_argument("--user-id", type=int, default=None, help="Obbligatorio per 'tasks'")
    p_list.set_defaults(func=cmd_list)

    p_addu = sub.add_parser("add-user", help="Crea utente")
    p_addu.add_argument("--name", required=True)
    p_addu.add_argument("--email", required=True)
    p_addu.set_defaults(func=cmd_add_user)

    p_addt = sub.add_parser("add-task", help="Crea task per un utente")
    p_addt.add_argument("--user-id", type=int, required=True)
    p_addt.add_argument("--title", required=True)
    p_addt.add_argument("--description", default=None)
    p_addt.set_defaults(func=cmd_add_task)

    p_serve = sub.add_parser("serve", help="Avvia l'API HTTP (uvicorn)")
    p_serve.add_argument("--host", default=None)
    p_serve.add_argument("--port", type=int, default=None)
    p_serve.add_argument("--reload", action="store_true")
    p_serve.set_defaults(func=cmd_serve, serve=True)

    return p


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    if getattr(args, "serve", False):
        args.func(settings, args)
        return

    db = Database(settings.database_url, echo=settings.sql_echo)
    try:
        args.func(db, args)
    except SQLAlchemyError as e:
        raise SystemExit(f"Errore database: {e}")
    finally:
        db.dispose()


if __name__ == "__main__":
    main()
