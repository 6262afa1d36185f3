"""
Tenant Middleware

Resolves the caller's session before any handler runs and stores the
principal (identity-provider user id + company id) on request.state.

This is the single place the session is checked. Handlers never parse
tokens themselves; they receive a RequestContext from
app.api.deps.get_request_context, which also confirms the company exists.

Requests without a usable bearer token are answered with a 401 envelope
here and never reach the database.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from typing import Optional
import logging

from app.core.security import decode_access_token, extract_principal
from app.utils.logging import log_security_event

logger = logging.getLogger(__name__)


class AuthContextMiddleware(BaseHTTPMiddleware):
    """
    Middleware to extract and verify the session principal.

    Runs on every request except the public paths below.
    """

    def __init__(self, app):
        super().__init__(app)
        self.excluded_paths = [
            "/docs",
            "/redoc",
            "/openapi.json",
            "/health",
        ]

    async def dispatch(self, request: Request, call_next):
        """Process each request and inject the principal."""

        if request.url.path == "/" or any(
            request.url.path.startswith(path) for path in self.excluded_paths
        ):
            return await call_next(request)

        # CORS preflight carries no credentials
        if request.method == "OPTIONS":
            return await call_next(request)

        token = self._extract_token(request)
        if not token:
            return self._unauthorized("Authentication required")

        payload = decode_access_token(token)
        principal = extract_principal(payload) if payload else None
        if not principal:
            log_security_event(
                "invalid_token",
                {"path": request.url.path, "claims_present": bool(payload)},
                logger
            )
            return self._unauthorized("Invalid or expired session")

        request.state.user_id = principal["user_id"]
        request.state.company_id = principal["company_id"]
        logger.debug(f"Request for company {principal['company_id']} by {principal['user_id']}")

        return await call_next(request)

    def _extract_token(self, request: Request) -> Optional[str]:
        auth_header = request.headers.get("Authorization", "")
        if not auth_header.startswith("Bearer "):
            return None
        token = auth_header[len("Bearer "):].strip()
        return token or None

    def _unauthorized(self, message: str) -> JSONResponse:
        return JSONResponse(
            status_code=401,
            content={"success": False, "error": message},
            headers={"WWW-Authenticate": "Bearer"}
        )
