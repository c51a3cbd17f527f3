from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def _clamp(v, lo: int = 0, hi: int = 100) -> int:
    try:
        v2 = int(round(float(v)))
    except (TypeError, ValueError):
        return lo
    if v2 < lo:
        return lo
    if v2 > hi:
        return hi
    return v2


def _str_list(v) -> list[str]:
    if v is None:
        return []
    if isinstance(v, str):
        return [v] if v.strip() else []
    if not isinstance(v, list):
        raise ValueError("expected a list")
    return [str(x).strip() for x in v if x is not None and str(x).strip()]


class SkillItem(BaseModel):
    skill: str
    relevance: int = 50
    category: str = "technical"

    @field_validator("skill")
    @classmethod
    def _non_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("skill must not be blank")
        return v

    @field_validator("relevance", mode="before")
    @classmethod
    def _clamp_relevance(cls, v) -> int:
        return _clamp(v, 1, 100)


class SkillExtractionOutput(BaseModel):
    skills: list[SkillItem] = Field(default_factory=list)

    @field_validator("skills", mode="before")
    @classmethod
    def _accept_plain_strings(cls, v):
        # Models sometimes answer with ["Python", "SQL"]; treat those as items.
        if not isinstance(v, list):
            raise ValueError("skills must be a list")
        return [{"skill": x} if isinstance(x, str) else x for x in v]


class AIJobMatchOutput(BaseModel):
    """A match answer is only usable when it carries a score."""

    model_config = ConfigDict(populate_by_name=True)

    score: int = Field(validation_alias=AliasChoices("matchScore", "score", "match_score"))
    strengths: list[str] = Field(default_factory=list)
    gaps: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, v) -> int:
        if v is None or isinstance(v, bool):
            raise ValueError("score must be a number")
        return _clamp(v)

    @field_validator("strengths", "gaps", "recommendations", mode="before")
    @classmethod
    def _lists(cls, v) -> list[str]:
        return _str_list(v)


class CareerInsightsOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    next_steps: list[str] = Field(default_factory=list, validation_alias=AliasChoices("nextSteps", "next_steps"))
    skill_recommendations: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("skillRecommendations", "skill_recommendations"),
    )
    career_path: list[str] = Field(default_factory=list, validation_alias=AliasChoices("careerPath", "career_path"))
    market_trends: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("marketTrends", "market_trends"),
    )

    @field_validator("*", mode="before")
    @classmethod
    def _lists(cls, v) -> list[str]:
        return _str_list(v)


class JobOptimizationOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    optimized_description: str = Field(
        default="",
        validation_alias=AliasChoices("optimizedDescription", "optimized_description"),
    )
    suggested_skills: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("suggestedSkills", "suggested_skills"),
    )
    improvement_tips: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("improvementTips", "improvement_tips"),
    )

    @field_validator("suggested_skills", "improvement_tips", mode="before")
    @classmethod
    def _lists(cls, v) -> list[str]:
        return _str_list(v)


class ProfileSummaryOutput(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    summary: str = ""
    headline: str = ""
    strength_areas: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("strengthAreas", "strength_areas"),
    )

    @field_validator("strength_areas", mode="before")
    @classmethod
    def _lists(cls, v) -> list[str]:
        return _str_list(v)
