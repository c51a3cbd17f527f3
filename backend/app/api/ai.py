from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from ..services import ai_service
from ..utils.dependencies import get_current_user

router = APIRouter(prefix="/ai", tags=["AI"])


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ExtractSkillsRequest(_CamelModel):
    text: str = ""


class JobMatchRequest(_CamelModel):
    candidate_profile: str = Field(default="", alias="candidateProfile")
    job_description: str = Field(default="", alias="jobDescription")
    candidate_skills: list[str] = Field(default_factory=list, alias="candidateSkills")


class CareerInsightsRequest(_CamelModel):
    profile: str = ""
    skills: list[str] = Field(default_factory=list)
    experience: list[str] = Field(default_factory=list)


class OptimizeJobRequest(_CamelModel):
    job_title: str = Field(default="", alias="jobTitle")
    job_description: str = Field(default="", alias="jobDescription")


class ProfileSummaryRequest(_CamelModel):
    name: str = ""
    experience: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    bio: str | None = None


class EnhanceJobDescriptionRequest(_CamelModel):
    description: str = ""
    required_skills: list[str] = Field(default_factory=list, alias="requiredSkills")


@router.post("/extract-skills")
async def extract_skills(payload: ExtractSkillsRequest, user=Depends(get_current_user)):
    if not payload.text.strip():
        raise HTTPException(status_code=400, detail="Text is required")
    skills = await ai_service.extract_skills(payload.text)
    return {"success": True, "skills": skills}


@router.post("/job-match")
async def job_match(payload: JobMatchRequest, user=Depends(get_current_user)):
    result = await ai_service.score_candidate_against_job(
        payload.candidate_profile,
        payload.job_description,
        payload.candidate_skills,
    )
    return {
        "success": True,
        "matchScore": result["score"],
        "strengths": result["strengths"],
        "gaps": result["gaps"],
        "recommendations": result["recommendations"],
    }


@router.post("/career-insights")
async def career_insights(payload: CareerInsightsRequest, user=Depends(get_current_user)):
    insights = await ai_service.generate_career_insights(payload.profile, payload.skills, payload.experience)
    return {"success": True, **insights}


@router.post("/optimize-job")
async def optimize_job(payload: OptimizeJobRequest, user=Depends(get_current_user)):
    if not payload.job_description.strip():
        raise HTTPException(status_code=400, detail="Job description is required")
    optimization = await ai_service.optimize_job_posting(payload.job_title, payload.job_description)
    return {"success": True, **optimization}


@router.post("/profile-summary")
async def profile_summary(payload: ProfileSummaryRequest, user=Depends(get_current_user)):
    summary = await ai_service.generate_profile_summary(
        payload.name,
        payload.experience,
        payload.skills,
        payload.bio,
    )
    return {"success": True, **summary}


@router.post("/enhance-job-description")
async def enhance_job_description(payload: EnhanceJobDescriptionRequest, user=Depends(get_current_user)):
    if not payload.description.strip():
        raise HTTPException(status_code=400, detail="Description is required")
    enhanced = await ai_service.enhance_job_description(payload.description, payload.required_skills)
    return {"success": True, "description": enhanced}
