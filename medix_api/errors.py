from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ApiError):
    """Input malformato o mancante (id non numerico, campo obbligatorio assente)."""
    status_code = 400


class DataAccessError(ApiError):
    """Qualsiasi errore del layer dati: vincoli violati, record inesistente, DB giù."""
    status_code = 500

    def __init__(self, message: str, operation: str) -> None:
        super().__init__(message)
        self.operation = operation


@contextmanager
def data_access(operation: str, message: str) -> Iterator[None]:
    """Converte gli errori SQLAlchemy nel blocco in DataAccessError(operation)."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise DataAccessError(message, operation=operation) from exc


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def parse_id(raw: str, label: str = "id") -> int:
    """Gli id di path devono essere interi (spazi esterni tollerati)."""
    try:
        return int(raw.strip())
    except ValueError:
        raise ValidationError(f"{label} non valido") from None


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(DataAccessError)
    async def _data_access(request: Request, exc: DataAccessError) -> JSONResponse:
        # al client solo il messaggio generico, lo stack resta nei log
        logger.error("%s: %s", exc.operation, exc.__cause__ or exc, exc_info=exc.__cause__ or exc)
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(ApiError)
    async def _api_error(request: Request, exc: ApiError) -> JSONResponse:
        return error_response(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def _request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{loc}: {first.get('msg')}" if loc else str(first.get("msg"))
        else:
            message = "Richiesta non valida"
        return error_response(400, message)

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("%s %s: errore non gestito", request.method, request.url.path)
        return error_response(500, "Errore interno del server")
