import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .core.exceptions import DomainException, RepositoryException

logger = logging.getLogger(__name__)


def _envelope(message: str, code: str, details: dict) -> dict:
    return {"detail": {"message": message, "code": code, "details": details}}


def register_error_handlers(app: FastAPI) -> None:
    """Keep every error body in the ``{"detail": {message, code, details}}`` shape."""

    @app.exception_handler(DomainException)
    async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
        http_exc = exc.to_http_exception()
        return JSONResponse(
            {"detail": http_exc.detail},
            status_code=http_exc.status_code,
            headers=http_exc.headers,
        )

    @app.exception_handler(RepositoryException)
    async def repository_exception_handler(
        request: Request, exc: RepositoryException
    ) -> JSONResponse:
        logger.error(f"Repository error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            _envelope("Internal server error", "REPOSITORY_ERROR", {}),
            status_code=500,
        )
