"""
API key gate for protected routes.

Requests under the protected prefix must carry the shared API key, either in
a header or as a query parameter. Anything else is answered with 401 before
the route handler runs.
"""

import secrets
from typing import List, Optional

import structlog
from fastapi import Request, Response, Security
from fastapi.params import Depends
from fastapi.security import APIKeyHeader, APIKeyQuery
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from ..config import SecuritySettings
from .exceptions import AuthenticationError, error_response

logger = structlog.get_logger(__name__)


def api_key_dependencies(settings: SecuritySettings) -> List[Depends]:
    """
    Security schemes for the users routes, named after the configured header
    and query parameter.

    They only document the key in the generated docs ("Authorize" button);
    enforcement happens in ApiKeyMiddleware.
    """
    header = APIKeyHeader(name=settings.api_key_header, scheme_name="ApiKeyHeader", auto_error=False)
    query = APIKeyQuery(name=settings.api_key_query, scheme_name="ApiKeyQuery", auto_error=False)
    return [Security(header), Security(query)]


def is_protected_path(path: str, prefix: str) -> bool:
    """Whether path is the prefix itself or a segment below it."""
    path = path.lower()
    prefix = prefix.lower().rstrip("/")
    return path == prefix or path.startswith(prefix + "/")


def extract_api_key(request: Request, header_name: str, query_name: str) -> Optional[str]:
    """Take the key from the header, or from the query string when no header is sent."""
    provided = request.headers.get(header_name)
    if provided is None:
        provided = request.query_params.get(query_name)
    return provided


def api_key_matches(provided: Optional[str], expected: str) -> bool:
    """Compare the supplied key with the expected one, byte for byte."""
    if provided is None or not provided.strip():
        return False
    return secrets.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


class ApiKeyMiddleware(BaseHTTPMiddleware):
    """
    Rejects requests to the protected prefix that lack the correct API key.

    The secret is resolved once, when the middleware is built.
    """

    def __init__(self, app: ASGIApp, settings: SecuritySettings) -> None:
        super().__init__(app)
        self.settings = settings
        self.api_key = settings.resolve_api_key()

        if settings.uses_default_api_key():
            logger.warning(
                "API key environment variable not set, using insecure built-in default",
                env_var=settings.api_key_env,
            )

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not is_protected_path(request.url.path, self.settings.protected_prefix):
            return await call_next(request)

        provided = extract_api_key(
            request,
            self.settings.api_key_header,
            self.settings.api_key_query,
        )

        if not api_key_matches(provided, self.api_key):
            logger.warning(
                "Authentication failed: invalid or missing API key",
                path=request.url.path,
                method=request.method,
                key_supplied=provided is not None,
            )
            return error_response(AuthenticationError())

        return await call_next(request)
