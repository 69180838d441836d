from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Base ORM per i modelli dello store applicativo (User, Task, Category)."""
    pass


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def _sqlite_on_connect(dbapi_conn, _record) -> None:
    # pysqlite gestisce BEGIN da solo e rompe i SAVEPOINT: lo emettiamo noi in _sqlite_on_begin
    dbapi_conn.isolation_level = None
    # SQLite ignora le FOREIGN KEY se non attivate per connessione
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _sqlite_on_begin(conn) -> None:
    conn.exec_driver_sql("BEGIN")


class Database:
    """
    Handle di accesso dati condiviso da tutto il processo:
    - creato una volta all'avvio (create_app)
    - iniettato negli handler tramite dipendenza FastAPI
    - rilasciato con dispose() allo shutdown
    """

    def __init__(self, url: str, echo: bool = False) -> None:
        self.url = url
        kwargs: dict = {"echo": echo, "future": True}

        if url.startswith("sqlite"):
            # TestClient/threadpool usano thread diversi da quello che apre la connessione
            kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_sqlite(url):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True

        self.engine: Engine = create_engine(url, **kwargs)
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _sqlite_on_connect)
            event.listen(self.engine, "begin", _sqlite_on_begin)

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autoflush=False,
            autocommit=False,
            future=True,
            expire_on_commit=False,
        )

    @contextmanager
    def session(self) -> Iterator[Session]:
        """
        Context manager per gestire correttamente la sessione:
        - commit se tutto ok
        - rollback su eccezioni
        - close sempre
        """
        session: Session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_tables(self) -> None:
        """Crea le tabelle dello store applicativo se non esistono (mai quelle Medix)."""
        from . import models  # noqa: F401  registra i modelli nel metadata

        Base.metadata.create_all(bind=self.engine)

    def dispose(self) -> None:
        logger.info("Chiusura pool connessioni (%s)", self.engine.url.render_as_string(hide_password=True))
        self.engine.dispose()
