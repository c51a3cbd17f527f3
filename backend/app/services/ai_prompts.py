def _join(items: list[str] | None) -> str:
    return ", ".join(str(s) for s in (items or []) if str(s).strip()) or "Not specified"


def skill_extraction_system_prompt() -> str:
    return (
        "You are an expert skill extractor. Return only valid JSON. No markdown, no extra text. "
        "Extract technical skills, soft skills and domain expertise relevant for job matching."
    )


def skill_extraction_user_prompt(*, text: str) -> str:
    return (
        "Extract skills from this text.\n\n"
        "Return JSON in this exact shape:\n"
        "{\n"
        '  "skills": [{"skill": string, "relevance": 1-100, "category": string}]\n'
        "}\n\n"
        "Rules:\n"
        "- category is one of: technical, soft, domain, tool, language, framework.\n"
        "- Deduplicate skills; keep common casing (e.g. AWS, SQL).\n\n"
        "Text:\n"
        "-----\n"
        f"{text or ''}\n"
        "-----\n"
    )


def job_match_system_prompt() -> str:
    return (
        "You are an expert recruiter scoring candidate/job compatibility. "
        "Return only valid JSON. No markdown, no extra text."
    )


def job_match_user_prompt(*, profile_text: str, job_text: str, user_skills: list[str] | None) -> str:
    return (
        "Analyze how well this candidate matches the job.\n\n"
        "Return JSON in this exact shape:\n"
        "{\n"
        '  "matchScore": 0-100,\n'
        '  "strengths": string[],\n'
        '  "gaps": string[],\n'
        '  "recommendations": string[]\n'
        "}\n\n"
        "Rules:\n"
        "- matchScore is an integer 0-100.\n"
        "- Up to 6 short bullets per list.\n\n"
        "Candidate profile:\n"
        f"{profile_text or ''}\n\n"
        "Candidate skills:\n"
        f"{_join(user_skills)}\n\n"
        "Job description:\n"
        f"{job_text or ''}\n"
    )


def career_insights_system_prompt() -> str:
    return (
        "You are a career advisor. Return only valid JSON. No markdown, no extra text. "
        "Give concrete, actionable guidance."
    )


def career_insights_user_prompt(*, profile: str, skills: list[str] | None, experience: list[str] | None) -> str:
    return (
        "Provide career guidance for this professional.\n\n"
        "Return JSON in this exact shape:\n"
        "{\n"
        '  "nextSteps": string[],\n'
        '  "skillRecommendations": string[],\n'
        '  "careerPath": string[],\n'
        '  "marketTrends": string[]\n'
        "}\n\n"
        "Profile:\n"
        f"{profile or ''}\n\n"
        "Current skills:\n"
        f"{_join(skills)}\n\n"
        "Experience:\n"
        f"{_join(experience)}\n"
    )


def job_optimization_system_prompt() -> str:
    return (
        "You optimize job postings for clarity and candidate matching. "
        "Return only valid JSON. No markdown, no extra text."
    )


def job_optimization_user_prompt(*, title: str, description: str) -> str:
    return (
        "Optimize this job posting.\n\n"
        "Return JSON in this exact shape:\n"
        "{\n"
        '  "optimizedDescription": string,\n'
        '  "suggestedSkills": string[],\n'
        '  "improvementTips": string[]\n'
        "}\n\n"
        "Job title:\n"
        f"{title or ''}\n\n"
        "Job description:\n"
        f"{description or ''}\n"
    )


def profile_summary_system_prompt() -> str:
    return (
        "You write professional profile summaries. Return only valid JSON. "
        "No markdown, no extra text."
    )


def profile_summary_user_prompt(
    *,
    name: str,
    experience: list[str] | None,
    skills: list[str] | None,
    bio: str | None,
) -> str:
    return (
        "Generate a professional profile.\n\n"
        "Return JSON in this exact shape:\n"
        "{\n"
        '  "summary": string,\n'
        '  "headline": string,\n'
        '  "strengthAreas": string[]\n'
        "}\n\n"
        f"Name: {name or ''}\n"
        f"Experience: {_join(experience)}\n"
        f"Skills: {_join(skills)}\n"
        f"Bio: {bio or 'Not provided'}\n"
    )


def enhance_job_description_system_prompt() -> str:
    return (
        "You improve job descriptions. Keep the original intent, improve clarity and structure, "
        "stay professional. Return only the improved description text."
    )


def enhance_job_description_user_prompt(*, description: str, required_skills: list[str] | None) -> str:
    return (
        "Enhance this job description:\n"
        "-----\n"
        f"{description or ''}\n"
        "-----\n\n"
        f"Required skills: {_join(required_skills)}\n"
    )
