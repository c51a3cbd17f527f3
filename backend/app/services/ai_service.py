"""
AI enrichment: skill extraction, job-match explanations, career insights,
job-posting optimization and profile summaries.

Every public coroutine fails open. When the key is missing, the call times out,
the HTTP request fails, or the answer does not fit its schema, callers get the
zeroed (or echoed) result and a warning in the log, never an exception.
"""
import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ValidationError

from ..config import (
    AI_API_KEY,
    AI_BASE_URL,
    AI_LOG_PAYLOADS,
    AI_MAX_RETRIES,
    AI_MODEL,
    AI_TIMEOUT_S,
    AI_TOTAL_TIMEOUT_S,
)
from ..schemas.ai import (
    AIJobMatchOutput,
    CareerInsightsOutput,
    JobOptimizationOutput,
    ProfileSummaryOutput,
    SkillExtractionOutput,
)
from . import ai_prompts
from .ai_client import AIClientError, AIClientHTTPError, chat_completion
from .ai_common import extract_first_json_object, sanitize_list


logger = logging.getLogger(__name__)


def ai_enabled() -> bool:
    return bool(AI_API_KEY)


def empty_match_result() -> dict[str, Any]:
    return {"score": 0, "strengths": [], "gaps": [], "recommendations": []}


async def _complete(
    *,
    operation: str,
    system_text: str,
    user_text: str,
    json_mode: bool = True,
    temperature: float = 0.3,
) -> tuple[str | None, dict[str, Any]]:
    """Returns (raw_text_or_none, meta). Never raises."""
    meta: dict[str, Any] = {
        "enabled": ai_enabled(),
        "operation": operation,
        "warnings": [],
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "model": AI_MODEL,
    }
    if not AI_API_KEY:
        meta["warnings"].append("AI disabled: AI_API_KEY not configured.")
        return None, meta

    try:
        raw_text, call_meta = await asyncio.wait_for(
            chat_completion(
                api_key=AI_API_KEY,
                base_url=AI_BASE_URL,
                model=AI_MODEL,
                user_text=user_text,
                system_text=system_text,
                json_mode=json_mode,
                temperature=temperature,
                timeout_s=AI_TIMEOUT_S,
                max_retries=AI_MAX_RETRIES,
                log_payloads=AI_LOG_PAYLOADS,
            ),
            timeout=AI_TOTAL_TIMEOUT_S,
        )
        meta["latency_ms"] = call_meta.latency_ms
        meta["retries"] = call_meta.retries
        return raw_text, meta
    except asyncio.TimeoutError:
        logger.warning("AI %s exceeded %.1fs deadline", operation, AI_TOTAL_TIMEOUT_S)
        meta["warnings"].append("AI call failed: deadline exceeded")
        return None, meta
    except AIClientHTTPError as e:
        meta["error_code"] = int(getattr(e, "status_code", 0) or 0)
        meta["warnings"].append(f"AI call failed: HTTP {meta['error_code']}")
        logger.warning("AI %s failed: %s", operation, e)
        return None, meta
    except AIClientError as e:
        logger.warning("AI %s failed: %s", operation, e)
        meta["warnings"].append(f"AI call failed: {type(e).__name__}")
        return None, meta
    except Exception as e:
        logger.exception("AI %s unexpected error: %s", operation, e)
        meta["warnings"].append("AI call failed due to unexpected error.")
        return None, meta


async def _complete_json(
    schema: type[BaseModel],
    *,
    operation: str,
    system_text: str,
    user_text: str,
    temperature: float = 0.3,
) -> tuple[BaseModel | None, dict[str, Any]]:
    raw_text, meta = await _complete(
        operation=operation,
        system_text=system_text,
        user_text=user_text,
        temperature=temperature,
    )
    if raw_text is None:
        return None, meta
    try:
        obj = extract_first_json_object(raw_text)
        return schema.model_validate(obj), meta
    except (ValueError, json.JSONDecodeError, ValidationError) as e:
        logger.warning("AI %s response rejected: %s", operation, type(e).__name__)
        meta["warnings"].append(f"AI response parse failed: {type(e).__name__}")
        return None, meta


async def extract_skills(text: str) -> list[dict[str, Any]]:
    """[{skill, relevance, category}], or [] when the AI is unavailable."""
    if not (text or "").strip():
        return []
    out, _ = await _complete_json(
        SkillExtractionOutput,
        operation="extract_skills",
        system_text=ai_prompts.skill_extraction_system_prompt(),
        user_text=ai_prompts.skill_extraction_user_prompt(text=text),
    )
    if out is None:
        return []
    seen: set[str] = set()
    skills: list[dict[str, Any]] = []
    for item in out.skills:
        key = item.skill.lower()
        if key in seen:
            continue
        seen.add(key)
        skills.append(item.model_dump())
    return skills


async def ai_job_match(
    *,
    profile_text: str,
    job_text: str,
    user_skills: list[str] | None,
) -> tuple[dict[str, Any] | None, dict[str, Any]]:
    """
    Returns (match_dict_or_none, meta).
    match_dict shape: {score(int 0-100), strengths(list), gaps(list), recommendations(list)}
    """
    out, meta = await _complete_json(
        AIJobMatchOutput,
        operation="job_match",
        system_text=ai_prompts.job_match_system_prompt(),
        user_text=ai_prompts.job_match_user_prompt(
            profile_text=profile_text,
            job_text=job_text,
            user_skills=user_skills,
        ),
    )
    if out is None:
        return None, meta
    return {
        "score": out.score,
        "strengths": sanitize_list(out.strengths, 6),
        "gaps": sanitize_list(out.gaps, 6),
        "recommendations": sanitize_list(out.recommendations, 6),
    }, meta


async def score_candidate_against_job(
    user_profile_text: str,
    job_description_text: str,
    user_skills: list[str] | None,
) -> dict[str, Any]:
    result, _ = await ai_job_match(
        profile_text=user_profile_text,
        job_text=job_description_text,
        user_skills=user_skills,
    )
    return result if result is not None else empty_match_result()


async def generate_career_insights(
    profile: str,
    skills: list[str] | None,
    experience: list[str] | None,
) -> dict[str, list[str]]:
    out, _ = await _complete_json(
        CareerInsightsOutput,
        operation="career_insights",
        system_text=ai_prompts.career_insights_system_prompt(),
        user_text=ai_prompts.career_insights_user_prompt(profile=profile, skills=skills, experience=experience),
        temperature=0.4,
    )
    if out is None:
        out = CareerInsightsOutput()
    return {
        "nextSteps": sanitize_list(out.next_steps),
        "skillRecommendations": sanitize_list(out.skill_recommendations),
        "careerPath": sanitize_list(out.career_path),
        "marketTrends": sanitize_list(out.market_trends),
    }


async def optimize_job_posting(title: str, description: str) -> dict[str, Any]:
    out, _ = await _complete_json(
        JobOptimizationOutput,
        operation="optimize_job",
        system_text=ai_prompts.job_optimization_system_prompt(),
        user_text=ai_prompts.job_optimization_user_prompt(title=title, description=description),
        temperature=0.4,
    )
    if out is None:
        return {"optimizedDescription": description, "suggestedSkills": [], "improvementTips": []}
    return {
        "optimizedDescription": out.optimized_description.strip() or description,
        "suggestedSkills": sanitize_list(out.suggested_skills),
        "improvementTips": sanitize_list(out.improvement_tips),
    }


async def generate_profile_summary(
    name: str,
    experience: list[str] | None,
    skills: list[str] | None,
    bio: str | None = None,
) -> dict[str, Any]:
    out, _ = await _complete_json(
        ProfileSummaryOutput,
        operation="profile_summary",
        system_text=ai_prompts.profile_summary_system_prompt(),
        user_text=ai_prompts.profile_summary_user_prompt(name=name, experience=experience, skills=skills, bio=bio),
        temperature=0.4,
    )
    if out is None:
        out = ProfileSummaryOutput()
    return {
        "summary": out.summary.strip(),
        "headline": out.headline.strip(),
        "strengthAreas": sanitize_list(out.strength_areas),
    }


async def enhance_job_description(description: str, required_skills: list[str] | None) -> str:
    """Plain-text rewrite; the original description comes back on any failure."""
    raw_text, _ = await _complete(
        operation="enhance_job_description",
        system_text=ai_prompts.enhance_job_description_system_prompt(),
        user_text=ai_prompts.enhance_job_description_user_prompt(
            description=description,
            required_skills=required_skills,
        ),
        json_mode=False,
        temperature=0.4,
    )
    return (raw_text or "").strip() or description
