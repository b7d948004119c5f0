"""
Schemas module - Request/Response schemas for API endpoints.
"""

from jobtracker.schemas.schemas import (
    AuthResponse,
    CurrentUserResponse,
    DefaultStats,
    ErrorResponse,
    HealthResponse,
    JobCreate,
    JobDeleteResponse,
    JobEnvelope,
    JobListResponse,
    JobResponse,
    JobSort,
    JobStatsResponse,
    JobStatus,
    JobType,
    JobUpdate,
    LoginRequest,
    MessageResponse,
    MonthlyApplications,
    RegisterRequest,
    UserResponse,
    UserUpdate,
)
