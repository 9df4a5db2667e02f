"""Request validation middleware.

Starlette middleware that runs ``Validator.assert_valid_http_request`` on
the query string, headers and cookies of every request before it reaches
the handler.  Rejections are answered with a ``StructuredErrorResponse``:
400 for a ``ValidationError``, 403 for an ``IntrusionError``.
"""

from __future__ import annotations

from typing import Any

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from inputguard.core.errors import IntrusionError, StructuredErrorResponse, ValidationError
from inputguard.validation.http import RequestSurface
from inputguard.validation.validator import Validator

# Paths excluded from validation
_EXCLUDED_PATHS: set[str] = {"/health", "/health/"}


class RequestValidationMiddleware(BaseHTTPMiddleware):
    """Whitelist every request surface with a shared ``Validator``."""

    def __init__(
        self,
        app: Any,
        validator: Validator,
        excluded_paths: set[str] | None = None,
    ) -> None:
        super().__init__(app)
        self.validator = validator
        self.excluded_paths = _EXCLUDED_PATHS if excluded_paths is None else excluded_paths

    async def dispatch(self, request: Request, call_next: Any) -> Response:
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        request_id = request.headers.get("X-Request-ID", "")
        try:
            self.validator.assert_valid_http_request(RequestSurface.from_starlette(request))
        except IntrusionError as exc:
            body = StructuredErrorResponse.from_exception(exc, request_id=request_id)
            return JSONResponse(status_code=403, content=body.model_dump())
        except ValidationError as exc:
            body = StructuredErrorResponse.from_exception(exc, request_id=request_id)
            return JSONResponse(status_code=400, content=body.model_dump())

        return await call_next(request)
