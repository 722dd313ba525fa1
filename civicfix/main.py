"""FastAPI application for CivicFix."""
from fastapi import FastAPI, Depends, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse
from contextlib import asynccontextmanager
from typing import Optional
import logging

from .auth_service import AuthService
from .config import get_settings
from .db_service import DatabaseService
from .dependencies import get_db_service
from .errors import CivicFixError, RedirectRequired
from .geocoding import Geocoder
from .models import HealthResponse, Identity
from .session_guard import optional_session
from .supabase_client import SupabaseClient
from .view_session import ViewRegistry
from .votes import VoteGuard
from .routes.admin import router as admin_router
from .routes.auth import router as auth_router
from .routes.citizen import router as citizen_router
from .routes.profile import router as profile_router
from . import views

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

settings = get_settings()

VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    # Startup
    logger.info("Starting CivicFix service...")

    supabase = SupabaseClient(settings.supabase_url, settings.supabase_key)
    db_service = DatabaseService(supabase.get_client(), bucket=settings.storage_bucket)

    app.state.db_service = db_service
    app.state.auth_service = AuthService(supabase.auth_client, db_service, settings.site_url)
    app.state.registry = ViewRegistry(db_service, client_provider=supabase.get_async_client)
    app.state.vote_guard = VoteGuard()
    app.state.geocoder = Geocoder(
        settings.geocoding_url,
        timeout=settings.geocoding_timeout,
        user_agent=settings.geocoding_user_agent
    )

    logger.info(f"Using Supabase at: {settings.supabase_url}")
    logger.info("CivicFix service started successfully")

    yield

    # Shutdown
    logger.info("Shutting down CivicFix service...")
    await app.state.registry.close()


app = FastAPI(
    title="CivicFix API",
    description="Report, track and resolve civic issues",
    version=VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router, tags=["Auth"])
app.include_router(citizen_router, tags=["Citizen"])
app.include_router(profile_router, tags=["Profile & Rewards"])
app.include_router(admin_router, tags=["Admin"])


@app.exception_handler(RedirectRequired)
async def redirect_handler(request: Request, exc: RedirectRequired):
    return RedirectResponse(exc.location, status_code=303)


@app.exception_handler(CivicFixError)
async def civicfix_error_handler(request: Request, exc: CivicFixError):
    logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=VERSION)


@app.get("/")
async def landing(
    identity: Optional[Identity] = Depends(optional_session),
    db: DatabaseService = Depends(get_db_service)
):
    """Public landing page; signed-in users go straight to the dashboard."""
    if identity is not None:
        return RedirectResponse("/dashboard", status_code=303)

    user_count = await db.count_profiles()
    issue_count = await db.count_issues()
    return views.render_landing(user_count, issue_count)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "civicfix.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.debug,
        log_level="info"
    )
