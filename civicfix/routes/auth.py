from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse, RedirectResponse
from typing import Optional
import logging

from ..auth_service import AuthService
from ..config import get_settings
from ..dependencies import get_auth_service
from ..errors import AuthenticationError
from ..models import AuthResult, EmailRequest, LoginRequest, MessageResponse, SignUpRequest
from ..views import navigation

logger = logging.getLogger(__name__)

router = APIRouter()


def session_response(result: AuthResult, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """JSON body plus the session cookie when a session was issued."""
    response = JSONResponse(content=result.model_dump(mode="json"), status_code=status_code)
    if result.access_token:
        response.set_cookie(
            get_settings().session_cookie_name,
            result.access_token,
            httponly=True,
            samesite="lax"
        )
    return response


# ============= Pages =============

@router.get("/login")
async def login_page():
    return {"view": "login", "modes": ["login", "forgot", "resend"], "navigation": navigation("/login")}


@router.get("/signup")
async def signup_page():
    return {"view": "signup", "roles": ["citizen", "authority"], "navigation": navigation("/signup")}


# ============= Auth Endpoints =============

@router.post("/api/auth/signup", response_model=AuthResult, status_code=status.HTTP_201_CREATED)
async def sign_up(request: SignUpRequest, auth_service: AuthService = Depends(get_auth_service)):
    """Create an account; authorities land on the admin console."""
    result = await auth_service.sign_up(request)
    logger.info(f"User signed up: {result.user_id} ({result.role.value})")
    return session_response(result, status.HTTP_201_CREATED)


@router.post("/api/auth/login", response_model=AuthResult)
async def login(request: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    result = await auth_service.sign_in(request.email, request.password)
    return session_response(result)


@router.post("/api/auth/logout", response_model=MessageResponse)
async def logout():
    response = JSONResponse(content={"message": "Signed out", "redirect_to": "/login"})
    response.delete_cookie(get_settings().session_cookie_name)
    return response


@router.post("/api/auth/forgot-password", response_model=MessageResponse)
async def forgot_password(request: EmailRequest, auth_service: AuthService = Depends(get_auth_service)):
    await auth_service.send_password_reset(request.email)
    return {"message": "Check your email! We sent you a password reset link."}


@router.post("/api/auth/resend-confirmation", response_model=MessageResponse)
async def resend_confirmation(request: EmailRequest, auth_service: AuthService = Depends(get_auth_service)):
    await auth_service.resend_confirmation(request.email)
    return {"message": "Confirmation email resent! Please check your inbox."}


@router.get("/auth/callback")
async def auth_callback(
    token_hash: Optional[str] = None,
    link_type: str = Query("signup", alias="type"),
    next_path: str = Query("/dashboard", alias="next"),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Verify the emailed link for a session, then continue to ``next``."""
    if not next_path.startswith("/") or next_path.startswith("//"):
        next_path = "/dashboard"

    if token_hash:
        try:
            session = await auth_service.verify_email_link(token_hash, link_type)
        except AuthenticationError:
            session = None

        if session:
            response = RedirectResponse(next_path, status_code=status.HTTP_303_SEE_OTHER)
            response.set_cookie(
                get_settings().session_cookie_name,
                session["access_token"],
                httponly=True,
                samesite="lax"
            )
            return response

    logger.error("Auth callback error: Code expired or invalid.")
    return RedirectResponse("/login", status_code=status.HTTP_303_SEE_OTHER)
