"""Error taxonomy for the analytics API and the handlers that render it."""
from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CivicSenseError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__


class AuthenticationError(CivicSenseError):
    status_code = 401
    default_message = "Not authenticated"


class AuthorizationError(CivicSenseError):
    status_code = 403
    default_message = "Access denied"


class ValidationError(CivicSenseError):
    status_code = 400
    default_message = "Invalid request"


class NotFoundError(CivicSenseError):
    # A token whose subject no longer exists is reported as 401, not 404.
    status_code = 401
    default_message = "User not found"


class TransientSourceError(CivicSenseError):
    status_code = 503
    default_message = "Report source temporarily unavailable"


class InternalError(CivicSenseError):
    status_code = 500
    default_message = "Internal server error"


class WorkflowTransitionError(ValidationError):
    default_message = "Illegal task transition"


def _payload(kind: str, detail: str) -> dict:
    return {"error": kind, "detail": detail}


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(CivicSenseError)
    async def civicsense_error(request: Request, exc: CivicSenseError):
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        if isinstance(exc, InternalError):
            # Never echo internal detail back to the caller.
            logger.error("Internal error on %s: %s", request.url.path, exc.message)
            return JSONResponse(status_code=500, content=_payload(exc.kind, InternalError.default_message))
        return JSONResponse(status_code=exc.status_code, content=_payload(exc.kind, exc.message), headers=headers)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        fields = sorted({str(err.get("loc", ["?"])[-1]) for err in exc.errors()})
        detail = f"Invalid query parameter(s): {', '.join(fields)}" if fields else ValidationError.default_message
        return JSONResponse(status_code=400, content=_payload(ValidationError.__name__, detail))

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s", request.url.path)
        return JSONResponse(
            status_code=500,
            content=_payload(InternalError.__name__, InternalError.default_message),
        )
