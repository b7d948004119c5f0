"""
Job Routes (every route requires a valid token)

GET    /jobs          - List the caller's jobs with filters, sorting and pagination
POST   /jobs          - Create a job application record
GET    /jobs/stats    - Counts per status and per month
GET    /jobs/{job_id} - Get one job
PATCH  /jobs/{job_id} - Update a job
DELETE /jobs/{job_id} - Delete a job
"""

import json
import logging
from typing import Optional, Type, TypeVar

from fastapi import APIRouter, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from jobtracker.core.auth import authenticate_user
from jobtracker.core.context import AppContext, RequestContext, get_app_context
from jobtracker.schemas.schemas import (
    DefaultStats, JobCreate, JobDeleteResponse, JobEnvelope, JobListResponse, JobSort,
    JobStatsResponse, JobStatus, JobType, JobUpdate, MonthlyApplications
)
from jobtracker.services.mongo_service import JobService, serialize_job

logger = logging.getLogger(__name__)

# The gate is a router dependency and resolves before every other one; bodies
# are read by json_body() dependencies, after it
router = APIRouter(prefix="/jobs", tags=["Jobs"], dependencies=[Depends(authenticate_user)])

STATUS_FILTER = "^(all|" + "|".join(s.value for s in JobStatus) + ")$"
JOB_TYPE_FILTER = "^(all|" + "|".join(t.value for t in JobType) + ")$"

ModelT = TypeVar("ModelT", bound=BaseModel)


def json_body(model: Type[ModelT]):
    """Dependency that reads and validates the JSON body as `model`."""

    async def parse(request: Request) -> ModelT:
        raw = await request.body()
        if not raw:
            raise RequestValidationError([{"type": "missing", "loc": ("body",), "msg": "Field required", "input": None}])
        try:
            data = json.loads(raw)
        except ValueError:
            raise RequestValidationError([{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "input": {}}])
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise RequestValidationError(
                [{**error, "loc": ("body", *error["loc"])} for error in e.errors(include_url=False)]
            )

    return parse


@router.get("", response_model=JobListResponse)
def list_jobs(
    status: str = Query("all", pattern=STATUS_FILTER),
    job_type: str = Query("all", pattern=JOB_TYPE_FILTER),
    search: Optional[str] = Query(None, max_length=100, description="Search in position"),
    sort: JobSort = Query(JobSort.latest),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    ctx: RequestContext = Depends(authenticate_user),
    context: AppContext = Depends(get_app_context),
):
    """List the caller's jobs. Never returns another user's records."""
    jobs, total, pages = JobService(context.db).list_for_user(
        ctx.user_id,
        status=status,
        job_type=job_type,
        search=search,
        sort=sort,
        page=page,
        limit=limit,
    )
    return JobListResponse(jobs=[serialize_job(doc) for doc in jobs], total_jobs=total, num_of_pages=pages)


@router.post("", response_model=JobEnvelope, status_code=201)
def create_job(
    ctx: RequestContext = Depends(authenticate_user),
    job: JobCreate = Depends(json_body(JobCreate)),
    context: AppContext = Depends(get_app_context),
):
    """Create a job application record owned by the caller."""
    doc = JobService(context.db).create(ctx.user_id, job.model_dump())
    logger.info(f"User {ctx.user_id} created job {doc['_id']}")
    return JobEnvelope(job=serialize_job(doc))


@router.get("/stats", response_model=JobStatsResponse)
def show_stats(ctx: RequestContext = Depends(authenticate_user), context: AppContext = Depends(get_app_context)):
    """Status counts and monthly application totals for the caller."""
    status_counts, monthly = JobService(context.db).stats_for_user(ctx.user_id)
    return JobStatsResponse(
        default_stats=DefaultStats(**status_counts),
        monthly_applications=[MonthlyApplications(**row) for row in monthly],
    )


@router.get("/{job_id}", response_model=JobEnvelope)
def get_job(job_id: str, ctx: RequestContext = Depends(authenticate_user), context: AppContext = Depends(get_app_context)):
    return JobEnvelope(job=serialize_job(JobService(context.db).get_for_user(job_id, ctx.user_id)))


@router.patch("/{job_id}", response_model=JobEnvelope)
def update_job(
    job_id: str,
    ctx: RequestContext = Depends(authenticate_user),
    update: JobUpdate = Depends(json_body(JobUpdate)),
    context: AppContext = Depends(get_app_context),
):
    """Update a job. Only the owner can update."""
    doc = JobService(context.db).update_for_user(job_id, ctx.user_id, update.model_dump(exclude_unset=True))
    return JobEnvelope(job=serialize_job(doc))


@router.delete("/{job_id}", response_model=JobDeleteResponse)
def delete_job(job_id: str, ctx: RequestContext = Depends(authenticate_user), context: AppContext = Depends(get_app_context)):
    """Delete a job. Deleting it again yields 404."""
    JobService(context.db).delete_for_user(job_id, ctx.user_id)
    logger.info(f"User {ctx.user_id} deleted job {job_id}")
    return JobDeleteResponse(deleted=True)
