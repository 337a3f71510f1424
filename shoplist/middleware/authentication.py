import logging
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from shoplist.utils.exceptions import AppException

logger = logging.getLogger(__name__)

BEARER_SCHEME = "bearer"


def extract_bearer_token(request: Request) -> str | None:
    """Token from ``Authorization: Bearer <token>``, or None. The scheme is case-insensitive."""
    scheme, _, token = request.headers.get("Authorization", "").partition(" ")
    if scheme.lower() != BEARER_SCHEME:
        return None
    return token.strip() or None


class AuthenticationMiddleware(BaseHTTPMiddleware):
    """
    Validates the bearer token of every request.

    On success ``request.state.principal`` holds the Principal for the rest
    of the request; on failure it stays None and the error is kept in
    ``request.state.auth_error`` so protected routes can report why. The
    request always continues: public routes work without a token and the
    route dependencies decide between 401 and 403.
    """

    def __init__(self, app, auth_service_provider: Callable):
        super().__init__(app)
        self.auth_service_provider = auth_service_provider

    def _auth_service(self, request: Request):
        # app.dependency_overrides applies here as it does to the routes
        overrides = getattr(request.app, "dependency_overrides", {})
        return overrides.get(self.auth_service_provider, self.auth_service_provider)()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.principal = None
        request.state.auth_error = None

        token = extract_bearer_token(request)
        if token is not None:
            try:
                principal = self._auth_service(request).validate_access_token(token)
            except AppException as e:
                logger.warning(f"Bearer token rejected on {request.method} {request.url.path}: "
                               f"{e.error_code}")
                request.state.auth_error = e
            else:
                request.state.principal = principal
                logger.debug(f"Authenticated userId={principal.user_id}, roles={list(principal.roles)}")

        return await call_next(request)
