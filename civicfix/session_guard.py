"""Session guard for protected views.

Each protected route declares ``Depends(require_session())`` or
``Depends(require_session(Role.ADMIN))``. The dependency resolves the
identity before the route body runs; when it cannot, it raises
``RedirectRequired`` and the app answers with a 303 redirect, so the route
never executes and no data is rendered.
"""
from typing import Optional
from fastapi import Depends, Request
import logging

from .auth_service import AuthService, default_view_for
from .config import get_settings
from .dependencies import get_auth_service
from .errors import RedirectRequired
from .models import Identity, Role

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


def extract_token(request: Request) -> Optional[str]:
    """Read the access token from the session cookie or a bearer header."""
    token = request.cookies.get(get_settings().session_cookie_name)
    if token:
        return token

    authorization = request.headers.get("authorization")
    if authorization:
        scheme, _, value = authorization.partition(" ")
        if scheme.lower() == "bearer" and value:
            return value.strip()

    return None


async def resolve_identity(request: Request, auth_service: AuthService) -> Optional[Identity]:
    token = extract_token(request)
    if not token:
        return None
    return await auth_service.get_identity(token)


def require_session(role: Optional[Role] = None):
    """Build a dependency that demands a signed-in user, optionally with a role."""

    async def guard(
        request: Request,
        auth_service: AuthService = Depends(get_auth_service)
    ) -> Identity:
        identity = await resolve_identity(request, auth_service)

        if identity is None:
            raise RedirectRequired(LOGIN_PATH)

        if role is not None and identity.role != role:
            logger.warning(f"Access denied: user {identity.user_id} is not {role.value} ({request.url.path})")
            raise RedirectRequired(default_view_for(identity.role))

        return identity

    return guard


async def optional_session(
    request: Request,
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[Identity]:
    """Resolve the identity if there is one, never redirecting."""
    return await resolve_identity(request, auth_service)
