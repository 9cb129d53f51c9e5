"""Erreurs métier et rendu uniforme des erreurs HTTP ``{success: false, message, error?}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Erreur interne du serveur"


class ResourceNotFoundError(LookupError):
    """Enregistrement introuvable (client, entreprise, article...)."""


class DocumentNotFoundError(ResourceNotFoundError):
    """Document (facture, proforma...) introuvable."""


class ConflictError(ValueError):
    """Doublon sur une valeur unique (email client, référence article)."""


class InvalidDocumentError(ValueError):
    """Opération refusée sur un document (type ou statut incompatible)."""


def install_error_handlers(app: FastAPI, *, expose_details: bool) -> None:
    """Branche les gestionnaires d'erreurs ; ``expose_details`` renvoie le message interne (dev)."""

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "success": False,
                "message": "Données invalides",
                "errors": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Erreur non gérée sur %s %s", request.method, request.url.path)
        content: dict[str, object] = {"success": False, "message": INTERNAL_ERROR_MESSAGE}
        if expose_details:
            content["error"] = str(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


__all__ = [
    "ConflictError",
    "DocumentNotFoundError",
    "INTERNAL_ERROR_MESSAGE",
    "InvalidDocumentError",
    "ResourceNotFoundError",
    "install_error_handlers",
]
