"""FastAPI dependencies resolving the services created at startup."""
from fastapi import Request

from .auth_service import AuthService
from .db_service import DatabaseService
from .geocoding import Geocoder
from .view_session import ViewRegistry
from .votes import VoteGuard


def get_db_service(request: Request) -> DatabaseService:
    return request.app.state.db_service


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_registry(request: Request) -> ViewRegistry:
    return request.app.state.registry


def get_vote_guard(request: Request) -> VoteGuard:
    return request.app.state.vote_guard


def get_geocoder(request: Request) -> Geocoder:
    return request.app.state.geocoder
