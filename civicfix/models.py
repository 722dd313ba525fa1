"""Pydantic models for Supabase rows, API requests and responses."""
from pydantic import BaseModel, Field, field_validator
from typing import List, Dict, Any, Optional
from datetime import datetime
from enum import Enum
import re

PHONE_PATTERN = re.compile(r"^[6-9]\d{9}$")
MIN_PASSWORD_LENGTH = 6


class IssueStatus(str, Enum):
    """Lifecycle of a report."""
    SUBMITTED = "Submitted"
    IN_PROGRESS = "In Progress"
    RESOLVED = "Resolved"


class IssueCategory(str, Enum):
    """Categories offered by the report form."""
    POTHOLE = "Pothole"
    GARBAGE = "Garbage"
    WATER = "Water"
    ELECTRICITY = "Electricity"
    ACCIDENT = "Accident"


class Role(str, Enum):
    CITIZEN = "citizen"
    ADMIN = "admin"


def validate_mobile(value: str) -> str:
    value = value.strip()
    if not PHONE_PATTERN.match(value):
        raise ValueError("Enter a valid 10-digit mobile number starting with 6-9")
    return value


# ============= Supabase rows =============

class Issue(BaseModel):
    """A citizen-submitted civic problem report."""
    id: int
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: Optional[str] = None
    is_emergency: bool = False
    status: str = IssueStatus.SUBMITTED.value
    submitted_by: Optional[str] = None
    created_at: Optional[datetime] = None


class IssueCreate(BaseModel):
    """Fields a citizen fills in when reporting an issue."""
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    category: IssueCategory
    location: str = Field(..., min_length=1)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    is_emergency: bool = False


class Profile(BaseModel):
    """Account metadata kept apart from auth credentials."""
    id: str
    full_name: Optional[str] = None
    username: Optional[str] = None
    mobile: Optional[str] = None
    avatar_url: Optional[str] = None
    role: Role = Role.CITIZEN
    points: int = 0


class Verification(BaseModel):
    id: Optional[int] = None
    issue_id: int
    user_id: str
    is_dispute: bool = False


class Badge(BaseModel):
    id: int
    user_id: str
    badge_type: str


# ============= Requests =============

class SignUpRequest(BaseModel):
    """Request model for account creation."""
    email: str = Field(..., min_length=3)
    password: str
    full_name: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)
    mobile: str
    role: str = Field("citizen", pattern="^(citizen|authority)$")

    @field_validator("mobile")
    @classmethod
    def check_mobile(cls, value: str) -> str:
        return validate_mobile(value)

    @field_validator("password")
    @classmethod
    def check_password(cls, value: str) -> str:
        if len(value) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class EmailRequest(BaseModel):
    email: str = Field(..., min_length=3)


class ProfileUpdate(BaseModel):
    """Editable profile fields."""
    full_name: Optional[str] = None
    username: Optional[str] = None
    mobile: Optional[str] = None

    @field_validator("mobile")
    @classmethod
    def check_mobile(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        return validate_mobile(value)


class StatusUpdateRequest(BaseModel):
    status: IssueStatus


class VoteRequest(BaseModel):
    is_dispute: bool = False


# ============= Responses =============

class Identity(BaseModel):
    """Authenticated user as resolved by the session guard."""
    user_id: str
    email: Optional[str] = None
    role: Role = Role.CITIZEN


class AuthResult(BaseModel):
    user_id: str
    email: Optional[str] = None
    access_token: Optional[str] = None
    role: Role = Role.CITIZEN
    redirect_to: str = "/dashboard"


class MessageResponse(BaseModel):
    message: str


class UpdateOutcome(BaseModel):
    """Result of an optimistic status change."""
    issue_id: int
    status: str
    error: Optional[str] = None
    issues: List[Dict[str, Any]] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    timestamp: datetime = Field(default_factory=datetime.now)
