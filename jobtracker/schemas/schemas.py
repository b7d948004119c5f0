"""
Pydantic Schemas - Request/Response Validation

All API request and response schemas in one file for simplicity.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum


# ============================================================
# ENUMS
# ============================================================

class JobStatus(str, Enum):
    pending = "pending"
    interview = "interview"
    declined = "declined"


class JobType(str, Enum):
    full_time = "full-time"
    part_time = "part-time"
    remote = "remote"
    internship = "internship"


class JobSort(str, Enum):
    latest = "latest"
    oldest = "oldest"
    a_z = "a-z"
    z_a = "z-a"


# ============================================================
# AUTH SCHEMAS
# ============================================================

class RegisterRequest(BaseModel):
    email: EmailStr
    # Passwords are taken exactly as typed; login compares them unstripped
    password: str = Field(..., min_length=6)
    name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=100)

    @field_validator("email", "name", "last_name", "location", mode="before")
    @classmethod
    def strip_profile_text(cls, value):
        return value.strip() if isinstance(value, str) else value

class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, value):
        return value.strip() if isinstance(value, str) else value

class UserUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    email: Optional[EmailStr] = None
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    location: Optional[str] = Field(None, max_length=100)

class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    last_name: Optional[str] = None
    location: Optional[str] = None
    created_at: datetime

class AuthResponse(BaseModel):
    user: UserResponse
    token: str

class CurrentUserResponse(BaseModel):
    user: UserResponse


# ============================================================
# JOB SCHEMAS
# ============================================================

class JobCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True, validate_default=True)

    company: str = Field(..., min_length=1, max_length=100)
    position: str = Field(..., min_length=1, max_length=100)
    status: JobStatus = JobStatus.pending
    job_type: JobType = JobType.full_time
    job_location: Optional[str] = Field(None, max_length=100)
    applied_date: Optional[datetime] = None

class JobUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True, use_enum_values=True, validate_default=True)

    company: Optional[str] = Field(None, min_length=1, max_length=100)
    position: Optional[str] = Field(None, min_length=1, max_length=100)
    status: Optional[JobStatus] = None
    job_type: Optional[JobType] = None
    job_location: Optional[str] = Field(None, max_length=100)
    applied_date: Optional[datetime] = None

class JobResponse(BaseModel):
    id: str
    created_by: str
    company: str
    position: str
    status: JobStatus
    job_type: JobType
    job_location: Optional[str] = None
    applied_date: datetime
    created_at: datetime
    updated_at: datetime

class JobEnvelope(BaseModel):
    job: JobResponse

class JobListResponse(BaseModel):
    jobs: List[JobResponse]
    total_jobs: int
    num_of_pages: int

class JobDeleteResponse(BaseModel):
    deleted: bool = True

class DefaultStats(BaseModel):
    pending: int = 0
    interview: int = 0
    declined: int = 0

class MonthlyApplications(BaseModel):
    date: str
    count: int

class JobStatsResponse(BaseModel):
    default_stats: DefaultStats
    monthly_applications: List[MonthlyApplications]


# ============================================================
# GENERIC SCHEMAS
# ============================================================

class MessageResponse(BaseModel):
    message: str

class ErrorResponse(BaseModel):
    status: str = "error"
    message: str

class HealthResponse(BaseModel):
    status: str = "ok"
