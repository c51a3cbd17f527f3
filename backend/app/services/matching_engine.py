"""
Deterministic skill-overlap matching between user skills and job requirements.

Pure functions, no I/O. Nothing here raises for missing or malformed skill lists;
those simply score 0.
"""
import math
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ..config import MATCH_RESULTS_LIMIT


@dataclass(frozen=True)
class SkillBreakdown:
    score: int
    matched: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class RankedJob:
    job: Any
    match_score: int


def _clean_skills(skills: Any) -> list[str]:
    if isinstance(skills, (set, frozenset)):
        # Unordered input; sort so matched/missing come out the same every call.
        skills = sorted(s for s in skills if isinstance(s, str))
    if not isinstance(skills, (list, tuple)):
        return []
    return [s.strip() for s in skills if isinstance(s, str) and s.strip()]


def _round_half_up(value: float) -> int:
    # Python's round() is banker's rounding; 62.5 must become 63.
    return int(math.floor(value + 0.5))


def _skills_match(user_skill: str, required_skill: str) -> bool:
    u = user_skill.lower()
    r = required_skill.lower()
    return r in u or u in r


def skill_match_breakdown(user_skills: Any, required_skills: Any) -> SkillBreakdown:
    """
    Score = round(100 * matched_required / len(required)).

    A required skill counts as matched when, ignoring case, it is a substring of
    some user skill or some user skill is a substring of it.
    """
    required = _clean_skills(required_skills)
    user = _clean_skills(user_skills)
    if not required:
        return SkillBreakdown(score=0)
    if not user:
        return SkillBreakdown(score=0, missing=list(required))

    matched: list[str] = []
    missing: list[str] = []
    for req in required:
        if any(_skills_match(u, req) for u in user):
            matched.append(req)
        else:
            missing.append(req)

    score = _round_half_up(len(matched) / max(1, len(required)) * 100)
    return SkillBreakdown(score=max(0, min(100, score)), matched=matched, missing=missing)


def skill_overlap_score(user_skills: Any, required_skills: Any) -> int:
    return skill_match_breakdown(user_skills, required_skills).score


def _attr(obj: Any, name: str) -> Any:
    if isinstance(obj, Mapping):
        if name in obj:
            return obj.get(name)
        # camelCase payloads, e.g. {"requiredSkills": [...]}
        parts = name.split("_")
        return obj.get(parts[0] + "".join(p.title() for p in parts[1:]))
    return getattr(obj, name, None)


def rank_jobs_for_user(
    user: Any,
    jobs: Any,
    *,
    limit: int | None = MATCH_RESULTS_LIMIT,
) -> list[RankedJob]:
    """
    Score every job against the user's skills, drop zero scores, and order by
    score descending. Ties keep their input order.
    """
    user_skills = _attr(user, "skills") if user is not None else None
    ranked: list[RankedJob] = []
    for job in jobs or []:
        score = skill_overlap_score(user_skills, _attr(job, "required_skills"))
        if score > 0:
            ranked.append(RankedJob(job=job, match_score=score))

    # sorted() is stable.
    ranked = sorted(ranked, key=lambda r: r.match_score, reverse=True)
    if limit is not None:
        ranked = ranked[: max(0, limit)]
    return ranked
