"""Enveloppe d'erreur commune de l'API et handlers FastAPI.

Toute erreur sort sous la forme `{"code", "message", "trace_id", "details"?}`. Les erreurs du
magasin de scripts portent déjà leur `code`; ce module leur associe un statut HTTP stable.
"""

from __future__ import annotations

from typing import Any

import structlog
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from scriptvault.core.http_constants import (
    HTTP_BAD_GATEWAY,
    HTTP_BAD_REQUEST,
    HTTP_CONFLICT,
    HTTP_INTERNAL_SERVER_ERROR,
    HTTP_NOT_FOUND,
    HTTP_UNAUTHORIZED,
    HTTP_UNPROCESSABLE_ENTITY,
)
from scriptvault.domain.errors import (
    ContentTooShort,
    GenerationFailed,
    NotFound,
    ScriptStoreError,
    StorageError,
    ValidationFailed,
    VersionConflict,
)

log = structlog.get_logger(__name__)

# Statut HTTP par classe d'erreur domaine
DOMAIN_STATUS: dict[type[ScriptStoreError], int] = {
    NotFound: HTTP_NOT_FOUND,
    VersionConflict: HTTP_CONFLICT,
    ValidationFailed: HTTP_UNPROCESSABLE_ENTITY,
    ContentTooShort: HTTP_UNPROCESSABLE_ENTITY,
    GenerationFailed: HTTP_BAD_GATEWAY,
    StorageError: HTTP_INTERNAL_SERVER_ERROR,
}

# Code d'enveloppe pour les HTTPException levées par le framework
HTTP_STATUS_CODES: dict[int, str] = {
    HTTP_BAD_REQUEST: "BAD_REQUEST",
    HTTP_UNAUTHORIZED: "UNAUTHORIZED",
    HTTP_NOT_FOUND: "NOT_FOUND",
    405: "METHOD_NOT_ALLOWED",
    HTTP_CONFLICT: "CONFLICT",
    HTTP_UNPROCESSABLE_ENTITY: "VALIDATION_ERROR",
    HTTP_INTERNAL_SERVER_ERROR: "INTERNAL_ERROR",
}


class APIError(HTTPException):
    """Erreur de transport avec un code d'enveloppe explicite (authentification...)."""

    def __init__(
        self, status_code: int, code: str, message: str, details: dict[str, Any] | None = None
    ) -> None:
        super().__init__(status_code=status_code, detail=message)
        self.code = code
        self.message = message
        self.details = details


def status_for(exc: ScriptStoreError) -> int:
    """Statut HTTP d'une erreur domaine (500 pour une sous-classe non répertoriée)."""
    for cls in type(exc).__mro__:
        if cls in DOMAIN_STATUS:
            return DOMAIN_STATUS[cls]
    return HTTP_INTERNAL_SERVER_ERROR


def error_response(
    status_code: int,
    code: str,
    message: str,
    trace_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Construit la réponse JSON enveloppée; `details` est omis s'il est vide."""
    body: dict[str, Any] = {"code": code, "message": message, "trace_id": trace_id}
    if details:
        body["details"] = details
    return JSONResponse(status_code=status_code, content=body)


def trace_id_of(request: Request) -> str | None:
    """Identifiant de requête: en-tête X-Request-ID, sinon celui posé par le middleware."""
    return request.headers.get("X-Request-ID") or getattr(request.state, "request_id", None)


def handle_script_error(request: Request, exc: ScriptStoreError) -> JSONResponse:
    status = status_for(exc)
    trace_id = trace_id_of(request)
    level = log.error if status >= HTTP_INTERNAL_SERVER_ERROR else log.info
    level("script_error", code=exc.code, status_code=status, trace_id=trace_id)
    return error_response(status, exc.code, exc.message, trace_id, exc.details)


def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    trace_id = trace_id_of(request)
    log.info("api_error", code=exc.code, status_code=exc.status_code, trace_id=trace_id)
    return error_response(exc.status_code, exc.code, exc.message, trace_id, exc.details)


def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Route inconnue, méthode refusée...: code dérivé du statut."""
    return error_response(
        exc.status_code,
        HTTP_STATUS_CODES.get(exc.status_code, "HTTP_ERROR"),
        str(exc.detail),
        trace_id_of(request),
    )


def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Corps ou paramètres mal formés: 422 VALIDATION_ERROR avec la liste des erreurs."""
    errors = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg", ""), "type": err.get("type", "")}
        for err in exc.errors()
    ]
    return error_response(
        HTTP_UNPROCESSABLE_ENTITY,
        "VALIDATION_ERROR",
        "invalid request",
        trace_id_of(request),
        {"errors": errors},
    )


def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    """Erreur non prévue: journalisée avec la trace, message générique au client."""
    trace_id = trace_id_of(request)
    log.error("unexpected_error", trace_id=trace_id, exception_type=type(exc).__name__, exc_info=exc)
    return error_response(
        HTTP_INTERNAL_SERVER_ERROR, "INTERNAL_ERROR", "unexpected error", trace_id
    )


def unauthorized(message: str) -> APIError:
    """401 UNAUTHORIZED."""
    return APIError(HTTP_UNAUTHORIZED, "UNAUTHORIZED", message)


def install_error_handlers(app: FastAPI) -> None:
    """Enregistre les handlers d'erreurs sur l'application."""
    app.add_exception_handler(ScriptStoreError, handle_script_error)
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(Exception, handle_unexpected)
