"""Authentication against Supabase Auth."""
from typing import Callable, Optional, Dict, Any
from supabase import Client
import logging

from .db_service import DatabaseService
from .errors import AuthenticationError, RemoteOperationError
from .models import AuthResult, Identity, Role, SignUpRequest

logger = logging.getLogger(__name__)

UNCONFIRMED_EMAIL_MESSAGE = "Email not confirmed. Please check your inbox or resend the link."

# Link types GoTrue accepts alongside a token hash
EMAIL_LINK_TYPES = ("signup", "recovery", "email", "invite", "magiclink", "email_change")


def default_view_for(role: Role) -> str:
    """Landing view for a role after sign-in or a failed role check."""
    return "/admin" if role == Role.ADMIN else "/dashboard"


class AuthService:
    """Sign-up, sign-in, token resolution and recovery emails."""

    def __init__(self, client_factory: Callable[[], Client], db_service: DatabaseService, site_url: str):
        """
        Args:
            client_factory: Returns a fresh, non-persisting Supabase client
            db_service: Used to create and read profiles
            site_url: Public origin used in email redirect links
        """
        self.client_factory = client_factory
        self.db = db_service
        self.site_url = site_url.rstrip("/")

    async def sign_up(self, request: SignUpRequest) -> AuthResult:
        """Create the auth user, then force-save the profile row."""
        client = self.client_factory()

        try:
            response = client.auth.sign_up({
                "email": request.email,
                "password": request.password,
                "options": {
                    "data": {
                        "full_name": request.full_name,
                        "username": request.username,
                    },
                    "email_redirect_to": f"{self.site_url}/auth/callback"
                }
            })
        except Exception as e:
            logger.error(f"Sign-up failed for {request.email}: {e}")
            raise AuthenticationError(str(e)) from e

        if response.user is None:
            raise AuthenticationError("Sign-up did not return a user")

        role = Role.ADMIN if request.role == "authority" else Role.CITIZEN

        # Upsert rather than update: the profile trigger may not have run yet
        try:
            await self.db.upsert_profile({
                "id": response.user.id,
                "full_name": request.full_name,
                "mobile": request.mobile,
                "username": request.username,
                "role": role.value,
                "points": 0
            })
        except RemoteOperationError as e:
            logger.error(f"Error saving profile for {response.user.id}: {e}")

        session = response.session
        return AuthResult(
            user_id=response.user.id,
            email=response.user.email,
            access_token=session.access_token if session else None,
            role=role,
            redirect_to=default_view_for(role)
        )

    async def sign_in(self, email: str, password: str) -> AuthResult:
        """Sign in with email and password and look up the profile role."""
        client = self.client_factory()

        try:
            response = client.auth.sign_in_with_password({"email": email, "password": password})
        except Exception as e:
            message = str(e)
            if "Email not confirmed" in message:
                message = UNCONFIRMED_EMAIL_MESSAGE
            logger.info(f"Sign-in rejected for {email}: {message}")
            raise AuthenticationError(message) from e

        if response.user is None or response.session is None:
            raise AuthenticationError("Invalid login credentials")

        role = await self.get_role(response.user.id)
        return AuthResult(
            user_id=response.user.id,
            email=response.user.email,
            access_token=response.session.access_token,
            role=role,
            redirect_to=default_view_for(role)
        )

    async def get_identity(self, access_token: str) -> Optional[Identity]:
        """Resolve a token to an identity; any failure means not authenticated."""
        client = self.client_factory()

        try:
            response = client.auth.get_user(access_token)
        except Exception as e:
            logger.info(f"Session lookup failed: {e}")
            return None

        if response is None or response.user is None:
            return None

        role = await self.get_role(response.user.id)
        return Identity(user_id=response.user.id, email=response.user.email, role=role)

    async def get_role(self, user_id: str) -> Role:
        profile = await self.db.get_profile(user_id)
        if profile and profile.get("role") == Role.ADMIN.value:
            return Role.ADMIN
        return Role.CITIZEN

    async def send_password_reset(self, email: str) -> None:
        client = self.client_factory()
        try:
            client.auth.reset_password_for_email(email, {
                "redirect_to": f"{self.site_url}/auth/callback?next=/dashboard"
            })
        except Exception as e:
            logger.error(f"Password reset email failed for {email}: {e}")
            raise AuthenticationError(str(e)) from e

    async def resend_confirmation(self, email: str) -> None:
        client = self.client_factory()
        try:
            client.auth.resend({
                "type": "signup",
                "email": email,
                "options": {"email_redirect_to": f"{self.site_url}/auth/callback"}
            })
        except Exception as e:
            logger.error(f"Confirmation resend failed for {email}: {e}")
            raise AuthenticationError(str(e)) from e

    async def verify_email_link(self, token_hash: str, link_type: str) -> Dict[str, Any]:
        """Exchange the token hash from an emailed link for a session.

        The email templates link to ``/auth/callback?token_hash=...&type=...``,
        so the verification happens here on the server and needs no PKCE
        verifier from the browser that requested the email.
        """
        if link_type not in EMAIL_LINK_TYPES:
            raise AuthenticationError(f"Unsupported link type: {link_type}")

        client = self.client_factory()
        try:
            response = client.auth.verify_otp({"token_hash": token_hash, "type": link_type})
        except Exception as e:
            logger.error(f"Auth callback error: {e}")
            raise AuthenticationError("Code expired or invalid") from e

        if response is None or response.session is None:
            raise AuthenticationError("Code expired or invalid")

        return {"user_id": response.user.id if response.user else None,
                "access_token": response.session.access_token}
