# app/routes/scheduler.py
from dataclasses import asdict
from typing import List

from fastapi import APIRouter, Depends

from app.deps.security import require_roles
from app.deps.services import get_scheduler
from app.errors import ConflictError, NotFoundError
from app.schemas import ApiResponse, SchedulerJobRead
from app.services.scheduler import EventScheduler

router = APIRouter(
    prefix="/scheduler",
    tags=["Scheduler"],
    dependencies=[Depends(require_roles(["admin"]))],
)


@router.get(
    "/jobs",
    response_model=ApiResponse[List[SchedulerJobRead]],
    response_model_exclude_none=True,
)
async def list_jobs(scheduler: EventScheduler = Depends(get_scheduler)):
    jobs = scheduler.describe_jobs()
    return ApiResponse(message="Scheduled jobs", data=jobs, count=len(jobs))


@router.post("/jobs/{name}/run", response_model=ApiResponse, response_model_exclude_none=True)
async def run_job(name: str, scheduler: EventScheduler = Depends(get_scheduler)):
    if name not in scheduler.jobs:
        raise NotFoundError(f"Job {name} not found")
    result = await scheduler.run_job(name)
    if result is None:
        raise ConflictError(f"Job {name} is already running")
    return ApiResponse(message=f"Job {name} completed", data=asdict(result))
