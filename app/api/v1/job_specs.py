from typing import List

from fastapi import APIRouter, Depends

from app.api.deps import get_storage
from app.core.exceptions import NotFoundError
from app.db.storage import Storage
from app.schemas.records import JobSpec, NewJobSpec
from app.schemas.requests import JobSpecCreate

job_specs_router = APIRouter(prefix="/job-specs")


@job_specs_router.post("", response_model=JobSpec, status_code=201)
def create_job_spec(payload: JobSpecCreate, storage: Storage = Depends(get_storage)):
    if storage.get_user(payload.user_id) is None:
        raise NotFoundError("User not found", {"user_id": payload.user_id})
    return storage.create_job_spec(NewJobSpec(**payload.model_dump()))


@job_specs_router.get("/user/{user_id}", response_model=List[JobSpec])
def list_user_job_specs(user_id: int, storage: Storage = Depends(get_storage)):
    return storage.list_job_specs_by_user(user_id)


@job_specs_router.get("/{job_spec_id}", response_model=JobSpec)
def get_job_spec(job_spec_id: int, storage: Storage = Depends(get_storage)):
    job_spec = storage.get_job_spec(job_spec_id)
    if job_spec is None:
        raise NotFoundError("Job spec not found", {"job_spec_id": job_spec_id})
    return job_spec
