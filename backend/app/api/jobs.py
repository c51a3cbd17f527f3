import logging
import re

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..config import MATCH_CANDIDATE_POOL
from ..database import get_db
from ..services import repository
from ..services.ai_service import ai_enabled, ai_job_match
from ..services.matching_engine import skill_match_breakdown
from ..utils.dependencies import get_current_user, get_current_user_record
from ..utils.error_handlers import get_error_message
from ..utils.validation import (
    EMPLOYMENT_TYPES,
    clean_string_list,
    validate_choice,
    validate_integer_field,
    validate_string_field,
)
from .serializers import application_to_public, job_to_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


class JobCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    company: str
    description: str
    location: str | None = None
    salary_range: str | None = Field(default=None, alias="salaryRange")
    required_skills: list[str] | None = Field(default=None, alias="requiredSkills")
    employment_type: str | None = Field(default=None, alias="employmentType")
    is_remote: bool = Field(default=False, alias="isRemote")


class JobUpdate(BaseModel):
    # No payment fields here. Extra keys pass through so the repository can refuse them.
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    title: str | None = None
    company: str | None = None
    description: str | None = None
    location: str | None = None
    salary_range: str | None = Field(default=None, alias="salaryRange")
    required_skills: list[str] | None = Field(default=None, alias="requiredSkills")
    employment_type: str | None = Field(default=None, alias="employmentType")
    is_remote: bool | None = Field(default=None, alias="isRemote")
    is_active: bool | None = Field(default=None, alias="isActive")


def _job_text_fields(data: dict, *, partial: bool) -> dict:
    out: dict = {}
    specs = (
        ("title", "Title", 150, True),
        ("company", "Company", 150, True),
        ("description", "Description", 20000, True),
        ("location", "Location", 100, False),
        ("salary_range", "Salary range", 50, False),
    )
    for field, label, max_length, required in specs:
        if partial and field not in data:
            continue
        out[field] = validate_string_field(data.get(field), label, max_length=max_length, required=required)
    if not partial or "required_skills" in data:
        out["required_skills"] = clean_string_list(data.get("required_skills"), "Required skills")
    if not partial or "employment_type" in data:
        out["employment_type"] = validate_choice(data.get("employment_type"), "employment type", EMPLOYMENT_TYPES)
    return out


def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _load_owned_job(db: Session, job_id: str, user: dict):
    job = repository.get_job(db, job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))
    if job.posted_by != str(user.get("sub")):
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))
    return job


@router.get("")
def list_jobs(
    skills: str | None = Query(default=None, description="Comma-separated; any match"),
    location: str | None = Query(default=None),
    is_remote: bool | None = Query(default=None, alias="isRemote"),
    limit: int | None = Query(default=None),
    offset: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    limit = validate_integer_field(limit, "limit", min_value=1, max_value=100, required=False)
    offset = validate_integer_field(offset, "offset", min_value=0, required=False)
    skill_list = [s.strip() for s in (skills or "").split(",") if s.strip()]

    jobs = repository.get_jobs(
        db,
        skills=skill_list or None,
        location=location,
        is_remote=is_remote,
        limit=limit,
        offset=offset,
    )
    return {"success": True, "jobs": [job_to_public(j) for j in jobs]}


@router.post("", status_code=201)
def create_job(
    payload: JobCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    data = _job_text_fields(payload.model_dump(), partial=False)
    data["is_remote"] = payload.is_remote
    job = repository.create_job(db, data, posted_by=str(user.get("sub")))
    return {"success": True, "job": job_to_public(job)}


@router.get("/mine")
def list_my_jobs(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    jobs = repository.get_user_jobs(db, str(user.get("sub")))
    return {"success": True, "jobs": [job_to_public(j) for j in jobs]}


# The /matches routes must be registered before /{job_id}.
@router.get("/matches")
def list_skill_matches(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    ranked = repository.get_job_matches(db, str(user.get("sub")))
    return {
        "success": True,
        "matches": [{"job": job_to_public(r.job), "matchScore": r.match_score} for r in ranked],
    }


@router.get("/matches/current-user")
async def list_current_user_matches(
    db: Session = Depends(get_db),
    user=Depends(get_current_user_record),
):
    """
    Every active job scored for the caller, best first.

    The AI scorer is tried per job until its first failure; after that, and
    whenever it is off, the skill-overlap score is used and matched/missing
    skills become strengths/gaps. One hung provider costs at most one deadline.
    """
    jobs = repository.get_jobs(db, limit=MATCH_CANDIDATE_POOL)
    profile_text = " ".join(p for p in (user.title, user.bio) if p)
    use_ai = ai_enabled()

    matches = []
    for job in jobs:
        result = None
        if use_ai:
            result, _meta = await ai_job_match(
                profile_text=profile_text,
                job_text=f"{job.title} {job.description}",
                user_skills=user.skills,
            )
            if result is None:
                logger.warning("AI scoring failed for job %s; using skill overlap for the rest", job.id)
                use_ai = False
        if result is not None:
            matches.append({
                "job": job_to_public(job),
                "matchScore": result["score"],
                "strengths": result["strengths"],
                "gaps": result["gaps"],
                "recommendations": result["recommendations"],
                "source": "ai",
            })
            continue

        breakdown = skill_match_breakdown(user.skills, job.required_skills)
        matches.append({
            "job": job_to_public(job),
            "matchScore": breakdown.score,
            "strengths": list(breakdown.matched),
            "gaps": list(breakdown.missing),
            "recommendations": [],
            "source": "skills",
        })

    matches.sort(key=lambda m: m["matchScore"], reverse=True)
    return {"success": True, "matches": matches}


@router.get("/{job_id}")
def get_job(job_id: str, db: Session = Depends(get_db)):
    job = repository.get_job(db, job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))
    return {"success": True, "job": job_to_public(job)}


@router.patch("/{job_id}")
def update_job(
    job_id: str,
    payload: JobUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    _load_owned_job(db, job_id, user)

    provided = payload.model_dump(exclude_unset=True)
    updates = _job_text_fields(provided, partial=True)
    for flag in ("is_remote", "is_active"):
        if flag in provided:
            if provided[flag] is None:
                raise HTTPException(status_code=400, detail=f"{flag} cannot be null")
            updates[flag] = bool(provided[flag])
    # Anything else (payment fields, posted_by, typos) is refused by the repository.
    known = set(JobUpdate.model_fields)
    updates.update({_snake(k): v for k, v in provided.items() if k not in known})

    job = repository.update_job(db, job_id, updates)
    return {"success": True, "job": job_to_public(job)}


@router.delete("/{job_id}")
def deactivate_job(
    job_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    _load_owned_job(db, job_id, user)
    job = repository.deactivate_job(db, job_id)
    return {"success": True, "job": job_to_public(job)}


@router.get("/{job_id}/applications")
def list_job_applications(
    job_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    _load_owned_job(db, job_id, user)
    applications = repository.get_job_applications(db, job_id)
    return {
        "success": True,
        "applications": [application_to_public(a, include_applicant=True) for a in applications],
    }
