"""Configuration management for the CivicFix service."""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings."""

    # Supabase Configuration
    supabase_url: str
    supabase_key: str
    storage_bucket: str = "issue-images"

    # API Configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    site_url: str = "http://localhost:8000"
    session_cookie_name: str = "access_token"

    # Geocoding / Map Configuration
    geocoding_url: str = "https://nominatim.openstreetmap.org/reverse"
    geocoding_timeout: float = 5.0
    geocoding_user_agent: str = "civicfix/1.0"
    map_tile_url: str = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
    map_center_lat: float = 23.3441
    map_center_lng: float = 85.3096

    class Config:
        env_file = ".env"
        case_sensitive = False


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
