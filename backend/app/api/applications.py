import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import repository
from ..services.ai_service import ai_job_match
from ..services.matching_engine import skill_overlap_score
from ..utils.dependencies import get_current_user, get_current_user_record
from ..utils.error_handlers import get_error_message
from ..utils.validation import APPLICATION_STATUSES, validate_choice, validate_string_field
from .serializers import application_to_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applications", tags=["Applications"])


class ApplicationCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    job_id: str = Field(alias="jobId")
    cover_letter: str | None = Field(default=None, alias="coverLetter")
    resume_url: str | None = Field(default=None, alias="resumeUrl")


class ApplicationStatusUpdate(BaseModel):
    status: str


@router.post("", status_code=201)
async def apply_to_job(
    payload: ApplicationCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user_record),
):
    job = repository.get_job(db, payload.job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=get_error_message("job_not_found"))

    # AI score when available, otherwise the skill-overlap score.
    result, meta = await ai_job_match(
        profile_text=" ".join(p for p in (user.bio, user.title) if p),
        job_text=f"{job.title} {job.description}",
        user_skills=user.skills,
    )
    if result is not None:
        match_score = result["score"]
    else:
        match_score = skill_overlap_score(user.skills, job.required_skills)
        if meta.get("enabled"):
            logger.info("Application for job %s scored by skills: %s", job.id, meta.get("warnings"))

    data = {
        "job_id": job.id,
        "cover_letter": validate_string_field(payload.cover_letter, "Cover letter", max_length=10000, required=False),
        "resume_url": validate_string_field(payload.resume_url, "Resume URL", max_length=500, required=False),
    }
    application = repository.create_job_application(db, data, applicant_id=user.id, match_score=match_score)
    return {"success": True, "application": application_to_public(application)}


@router.get("/user")
def list_my_applications(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    applications = repository.get_user_applications(db, str(user.get("sub")))
    return {
        "success": True,
        "applications": [application_to_public(a, include_job=True) for a in applications],
    }


@router.patch("/{application_id}/status")
def update_application_status(
    application_id: str,
    payload: ApplicationStatusUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    status = validate_choice(payload.status, "status", APPLICATION_STATUSES, required=True)
    application = repository.get_application(db, application_id)
    if application is None:
        raise HTTPException(status_code=404, detail=get_error_message("application_not_found"))
    job = repository.get_job(db, application.job_id)
    if job is None or job.posted_by != str(user.get("sub")):
        raise HTTPException(status_code=403, detail=get_error_message("forbidden"))

    application = repository.update_application_status(db, application_id, status)
    return {"success": True, "application": application_to_public(application)}
