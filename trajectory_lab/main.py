import logging
from typing import List, Optional

from fastapi import FastAPI, Depends, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlmodel import Session

from .config import settings
from .database import init_db, get_session
from .exceptions import ProjectionWorkerError, WorkerTerminatedError
from .logging_config import setup_logging
from .models import FinancialProfile, ProfileRecord
from .schemas import (
    Trajectory, Comparison, CompareRequestBody, CompareProfilesRequest, ProfileRead,
)
from .worker import ProjectionWorkerClient
from . import crud
from .comparator import derive_changes

setup_logging(settings.log_level, settings.json_logs)
logger = logging.getLogger(__name__)

app = FastAPI(title="Trajectory Lab")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
def on_startup():
    init_db()
    app.state.worker = ProjectionWorkerClient(
        mode=settings.worker_mode,
        max_workers=settings.worker_max_workers,
    )

@app.on_event("shutdown")
def on_shutdown():
    worker = getattr(app.state, "worker", None)
    if worker is not None:
        worker.terminate()

def get_worker(request: Request) -> ProjectionWorkerClient:
    return request.app.state.worker

def _to_profile_read(record: ProfileRecord) -> ProfileRead:
    return ProfileRead(
        id=record.id,
        name=record.name,
        created_at=record.created_at,
        updated_at=record.updated_at,
        profile=record.to_profile(),
    )

@app.get("/api/health")
def health_check():
    return {"status": "ok", "service": settings.service_name}

# Projection endpoints
@app.post("/api/trajectory", response_model=Trajectory)
async def generate_trajectory(profile: FinancialProfile, worker: ProjectionWorkerClient = Depends(get_worker)):
    try:
        return await worker.generate_trajectory(profile)
    except (ProjectionWorkerError, WorkerTerminatedError) as e:
        raise HTTPException(status_code=500, detail=f"Projection failed: {str(e)}")

@app.post("/api/trajectory/quick", response_model=Trajectory)
async def generate_quick_trajectory(
    profile: FinancialProfile,
    years: Optional[int] = None,
    worker: ProjectionWorkerClient = Depends(get_worker)
):
    """Short preview projection (default_quick_years unless years is given)."""
    try:
        preview_years = years if years is not None else settings.default_quick_years
        return await worker.generate_quick_trajectory(profile, preview_years)
    except (ProjectionWorkerError, WorkerTerminatedError) as e:
        raise HTTPException(status_code=500, detail=f"Projection failed: {str(e)}")

@app.post("/api/compare", response_model=Comparison)
async def compare(body: CompareRequestBody, worker: ProjectionWorkerClient = Depends(get_worker)):
    try:
        return await worker.compare_trajectories(body.baseline, body.alternate, body.changes, body.name)
    except (ProjectionWorkerError, WorkerTerminatedError) as e:
        raise HTTPException(status_code=500, detail=f"Comparison failed: {str(e)}")

@app.post("/api/compare/profiles", response_model=Comparison)
async def compare_profiles(body: CompareProfilesRequest, worker: ProjectionWorkerClient = Depends(get_worker)):
    """
    Project two profiles and compare them. The list of changes is derived
    from the field-level differences between the two profiles.
    """
    try:
        if body.quick_years is not None:
            baseline = await worker.generate_quick_trajectory(body.baseline, body.quick_years)
            alternate = await worker.generate_quick_trajectory(body.alternate, body.quick_years)
        else:
            baseline = await worker.generate_trajectory(body.baseline)
            alternate = await worker.generate_trajectory(body.alternate)
        changes = derive_changes(body.baseline, body.alternate)
        return await worker.compare_trajectories(baseline, alternate, changes, body.name)
    except (ProjectionWorkerError, WorkerTerminatedError) as e:
        raise HTTPException(status_code=500, detail=f"Comparison failed: {str(e)}")

# Profile store
@app.get("/api/profiles", response_model=List[ProfileRead])
def read_profiles(session: Session = Depends(get_session)):
    return [_to_profile_read(record) for record in crud.get_profiles(session)]

@app.post("/api/profiles", response_model=ProfileRead)
def create_profile(profile: FinancialProfile, session: Session = Depends(get_session)):
    return _to_profile_read(crud.create_profile(session, profile))

@app.get("/api/profiles/{profile_id}", response_model=ProfileRead)
def read_profile(profile_id: str, session: Session = Depends(get_session)):
    record = crud.get_profile(session, profile_id)
    if not record:
        raise HTTPException(status_code=404, detail="Profile not found")
    return _to_profile_read(record)

@app.put("/api/profiles/{profile_id}", response_model=ProfileRead)
def update_profile(profile_id: str, profile: FinancialProfile, session: Session = Depends(get_session)):
    record = crud.update_profile(session, profile_id, profile)
    if not record:
        raise HTTPException(status_code=404, detail="Profile not found")
    return _to_profile_read(record)

@app.delete("/api/profiles/{profile_id}")
def delete_profile(profile_id: str, session: Session = Depends(get_session)):
    deleted = crud.delete_profile(session, profile_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Profile not found")
    return {"status": "deleted", "id": profile_id}

@app.get("/api/profiles/{profile_id}/trajectory", response_model=Trajectory)
async def profile_trajectory(
    profile_id: str,
    quick_years: Optional[int] = None,
    session: Session = Depends(get_session),
    worker: ProjectionWorkerClient = Depends(get_worker)
):
    record = crud.get_profile(session, profile_id)
    if not record:
        raise HTTPException(status_code=404, detail="Profile not found")
    profile = record.to_profile()
    try:
        if quick_years is not None:
            return await worker.generate_quick_trajectory(profile, quick_years)
        return await worker.generate_trajectory(profile)
    except (ProjectionWorkerError, WorkerTerminatedError) as e:
        raise HTTPException(status_code=500, detail=f"Projection failed: {str(e)}")
