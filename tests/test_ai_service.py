import asyncio
import json

import httpx
import pytest


def _meta():
    from backend.app.services.ai_client import AICallMeta

    return AICallMeta(model="test-model", latency_ms=1, status_code=200, retries=0)


@pytest.fixture()
def ai_on(monkeypatch):
    """Enable the AI service with a fake completion; returns a setter for the reply."""
    import backend.app.services.ai_service as ai_service

    monkeypatch.setattr(ai_service, "AI_API_KEY", "test-key")
    state = {"reply": "{}", "calls": []}

    async def fake_chat_completion(**kwargs):
        state["calls"].append(kwargs)
        reply = state["reply"]
        if isinstance(reply, Exception):
            raise reply
        return reply, _meta()

    monkeypatch.setattr(ai_service, "chat_completion", fake_chat_completion)
    return state


def test_extract_first_json_object_handles_wrapped_json():
    from backend.app.services.ai_common import extract_first_json_object

    raw = "here you go:\n\n{ \"a\": 1, \"b\": {\"c\": 2} }\nthanks"
    obj = extract_first_json_object(raw)
    assert obj["a"] == 1
    assert obj["b"]["c"] == 2

    fenced = "```json\n{\"matchScore\": 70}\n```"
    assert extract_first_json_object(fenced) == {"matchScore": 70}

    with pytest.raises(ValueError):
        extract_first_json_object("no braces here")
    with pytest.raises(ValueError):
        extract_first_json_object("   ")


def test_sanitize_list_drops_blanks_and_caps():
    from backend.app.services.ai_common import sanitize_list

    assert sanitize_list(["a", " ", "", "b"]) == ["a", "b"]
    assert sanitize_list(None) == []
    assert sanitize_list([str(i) for i in range(20)], n=3) == ["0", "1", "2"]
    assert sanitize_list(["x" * 10], max_len=4) == ["xxxx…"]


def test_job_match_schema_clamps_and_requires_score():
    from pydantic import ValidationError

    from backend.app.schemas.ai import AIJobMatchOutput, SkillExtractionOutput

    assert AIJobMatchOutput.model_validate({"matchScore": 140}).score == 100
    assert AIJobMatchOutput.model_validate({"score": "-5"}).score == 0
    assert AIJobMatchOutput.model_validate({"match_score": 72.6, "gaps": "Go"}).gaps == ["Go"]
    with pytest.raises(ValidationError):
        AIJobMatchOutput.model_validate({"strengths": ["Python"]})

    skills = SkillExtractionOutput.model_validate({"skills": ["Python", {"skill": "SQL", "relevance": 500}]})
    assert [s.skill for s in skills.skills] == ["Python", "SQL"]
    assert skills.skills[1].relevance == 100


def test_service_fails_open_without_key():
    from backend.app.services import ai_service

    assert ai_service.ai_enabled() is False

    result, meta = asyncio.run(ai_service.ai_job_match(profile_text="p", job_text="j", user_skills=["Python"]))
    assert result is None
    assert meta["enabled"] is False
    assert meta["warnings"]

    assert asyncio.run(ai_service.score_candidate_against_job("p", "j", [])) == ai_service.empty_match_result()
    assert asyncio.run(ai_service.extract_skills("I write Python")) == []
    assert asyncio.run(ai_service.enhance_job_description("Build APIs", ["Python"])) == "Build APIs"

    optimized = asyncio.run(ai_service.optimize_job_posting("Dev", "Original text"))
    assert optimized == {"optimizedDescription": "Original text", "suggestedSkills": [], "improvementTips": []}


def test_job_match_uses_model_answer(ai_on):
    from backend.app.services import ai_service

    ai_on["reply"] = json.dumps(
        {"matchScore": 81, "strengths": ["Python"], "gaps": ["Kafka"], "recommendations": ["Learn Kafka"]}
    )
    result, meta = asyncio.run(
        ai_service.ai_job_match(profile_text="Backend dev", job_text="Data role", user_skills=["Python"])
    )
    assert result == {"score": 81, "strengths": ["Python"], "gaps": ["Kafka"], "recommendations": ["Learn Kafka"]}
    assert meta["latency_ms"] == 1
    assert ai_on["calls"][0]["json_mode"] is True
    assert "Python" in ai_on["calls"][0]["user_text"]


@pytest.mark.parametrize(
    "reply",
    [
        "not json at all",
        json.dumps({"strengths": ["no score"]}),
        json.dumps({"matchScore": True}),
    ],
)
def test_job_match_rejects_malformed_answers(ai_on, reply):
    from backend.app.services import ai_service

    ai_on["reply"] = reply
    result, meta = asyncio.run(ai_service.ai_job_match(profile_text="p", job_text="j", user_skills=[]))
    assert result is None
    assert any("parse failed" in w for w in meta["warnings"])


def test_client_errors_fail_open(ai_on):
    from backend.app.services import ai_service
    from backend.app.services.ai_client import AIClientHTTPError, AIClientTimeout

    ai_on["reply"] = AIClientHTTPError(status_code=429, message="slow down")
    result, meta = asyncio.run(ai_service.ai_job_match(profile_text="p", job_text="j", user_skills=[]))
    assert result is None
    assert meta["error_code"] == 429

    ai_on["reply"] = AIClientTimeout("timed out")
    assert asyncio.run(ai_service.extract_skills("Python")) == []

    ai_on["reply"] = RuntimeError("boom")
    assert asyncio.run(ai_service.enhance_job_description("Keep me", [])) == "Keep me"


def test_total_deadline_is_enforced(monkeypatch):
    from backend.app.services import ai_service

    monkeypatch.setattr(ai_service, "AI_API_KEY", "test-key")
    monkeypatch.setattr(ai_service, "AI_TOTAL_TIMEOUT_S", 0.05)

    async def slow_chat_completion(**kwargs):
        await asyncio.sleep(5)
        return "{}", _meta()

    monkeypatch.setattr(ai_service, "chat_completion", slow_chat_completion)

    result, meta = asyncio.run(ai_service.ai_job_match(profile_text="p", job_text="j", user_skills=[]))
    assert result is None
    assert "AI call failed: deadline exceeded" in meta["warnings"]


def test_extract_skills_dedupes_case_insensitively(ai_on):
    from backend.app.services import ai_service

    ai_on["reply"] = json.dumps(
        {"skills": [{"skill": "Python", "relevance": 90}, {"skill": "python", "relevance": 10}, "Docker"]}
    )
    skills = asyncio.run(ai_service.extract_skills("Python and Docker"))
    assert [s["skill"] for s in skills] == ["Python", "Docker"]
    assert skills[0]["relevance"] == 90
    assert skills[1]["category"] == "technical"


def test_career_insights_and_summary_shapes(ai_on):
    from backend.app.services import ai_service

    ai_on["reply"] = json.dumps({"nextSteps": ["Ship a project"], "marketTrends": "AI"})
    insights = asyncio.run(ai_service.generate_career_insights("Dev", ["Python"], ["2 years"]))
    assert insights == {
        "nextSteps": ["Ship a project"],
        "skillRecommendations": [],
        "careerPath": [],
        "marketTrends": ["AI"],
    }

    ai_on["reply"] = json.dumps({"summary": " Builder. ", "headline": "Engineer", "strengthAreas": ["APIs"]})
    summary = asyncio.run(ai_service.generate_profile_summary("Ada", [], ["Python"]))
    assert summary == {"summary": "Builder.", "headline": "Engineer", "strengthAreas": ["APIs"]}


def test_enhance_job_description_is_plain_text(ai_on):
    from backend.app.services import ai_service

    ai_on["reply"] = "  A sharper description.  "
    assert asyncio.run(ai_service.enhance_job_description("Old", ["Python"])) == "A sharper description."
    assert ai_on["calls"][0]["json_mode"] is False


def _patch_transport(monkeypatch, handler):
    from backend.app.services import ai_client

    real_async_client = httpx.AsyncClient

    def factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return real_async_client(*args, **kwargs)

    async def no_sleep(_seconds):
        return None

    monkeypatch.setattr(ai_client.httpx, "AsyncClient", factory)
    monkeypatch.setattr(ai_client.asyncio, "sleep", no_sleep)


def test_chat_completion_retries_transient_status(monkeypatch):
    from backend.app.services.ai_client import chat_completion

    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if len(seen) == 1:
            return httpx.Response(503, text="busy")
        return httpx.Response(
            200,
            json={"model": "gpt-test", "choices": [{"message": {"content": " {\"ok\": true} "}}]},
        )

    _patch_transport(monkeypatch, handler)

    text, meta = asyncio.run(
        chat_completion(
            api_key="k",
            base_url="https://ai.example.com/v1/",
            model="gpt-test",
            user_text="hi",
            system_text="sys",
            max_retries=1,
        )
    )
    assert text == "{\"ok\": true}"
    assert meta.retries == 1
    assert meta.status_code == 200
    assert str(seen[0].url) == "https://ai.example.com/v1/chat/completions"
    assert seen[0].headers["Authorization"] == "Bearer k"
    body = json.loads(seen[0].content)
    assert body["response_format"] == {"type": "json_object"}
    assert [m["role"] for m in body["messages"]] == ["system", "user"]


def test_chat_completion_does_not_retry_client_errors(monkeypatch):
    from backend.app.services.ai_client import AIClientHTTPError, chat_completion

    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(401, text="bad key")

    _patch_transport(monkeypatch, handler)

    with pytest.raises(AIClientHTTPError) as exc:
        asyncio.run(chat_completion(api_key="k", base_url="https://ai.example.com", model="m", user_text="x", max_retries=3))
    assert exc.value.status_code == 401
    assert len(seen) == 1


def test_chat_completion_timeout_after_retries(monkeypatch):
    from backend.app.services.ai_client import AIClientTimeout, chat_completion

    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        raise httpx.ReadTimeout("slow", request=request)

    _patch_transport(monkeypatch, handler)

    with pytest.raises(AIClientTimeout):
        asyncio.run(chat_completion(api_key="k", base_url="https://ai.example.com", model="m", user_text="x", max_retries=2))
    assert len(seen) == 3


def test_ai_endpoints_fall_back_when_disabled(client, register):
    headers, _ = register("aiuser")

    r = client.post(
        "/ai/job-match",
        headers=headers,
        json={"candidateProfile": "Dev", "jobDescription": "Role", "candidateSkills": ["Python"]},
    )
    assert r.status_code == 200, r.text
    assert r.json() == {"success": True, "matchScore": 0, "strengths": [], "gaps": [], "recommendations": []}

    r = client.post("/ai/extract-skills", headers=headers, json={"text": "Python"})
    assert r.status_code == 200
    assert r.json()["skills"] == []

    r = client.post("/ai/enhance-job-description", headers=headers, json={"description": "Keep", "requiredSkills": []})
    assert r.json()["description"] == "Keep"

    r = client.post("/ai/optimize-job", headers=headers, json={"jobTitle": "Dev", "jobDescription": "Original"})
    assert r.json()["optimizedDescription"] == "Original"

    r = client.post("/ai/career-insights", headers=headers, json={"profile": "Dev"})
    assert r.json()["nextSteps"] == []

    r = client.post("/ai/profile-summary", headers=headers, json={"name": "Ada"})
    assert r.json()["summary"] == ""


def test_ai_endpoints_validate_and_require_auth(client, register):
    headers, _ = register("aiuser")

    assert client.post("/ai/extract-skills", json={"text": "Python"}).status_code == 401
    assert client.post("/ai/extract-skills", headers=headers, json={"text": "  "}).status_code == 400
    assert client.post("/ai/optimize-job", headers=headers, json={"jobTitle": "Dev"}).status_code == 400
    assert client.post("/ai/enhance-job-description", headers=headers, json={}).status_code == 400
