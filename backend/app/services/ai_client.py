import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import Any

import httpx


logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


class AIClientError(RuntimeError):
    pass


class AIClientTimeout(AIClientError):
    pass


class AIClientHTTPError(AIClientError):
    def __init__(self, *, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class AICallMeta:
    model: str
    latency_ms: int
    status_code: int | None
    retries: int


def _safe_truncate(s: str, n: int = 800) -> str:
    s = s or ""
    if len(s) <= n:
        return s
    return s[:n] + "…"


def _backoff_s(attempt: int) -> float:
    return 0.5 * (2**attempt)


def _message_text(data: dict[str, Any]) -> str:
    # { choices: [ { message: { content: "..." } } ], ... }
    choices = data.get("choices") or [{}]
    message = (choices[0] or {}).get("message") or {}
    return str(message.get("content") or "")


async def chat_completion(
    *,
    api_key: str,
    base_url: str,
    model: str,
    user_text: str,
    system_text: str | None = None,
    json_mode: bool = True,
    temperature: float = 0.3,
    timeout_s: float = 10.0,
    max_retries: int = 1,
    log_payloads: bool = False,
) -> tuple[str, AICallMeta]:
    """
    Calls an OpenAI-compatible chat completions endpoint and returns the assistant text.

    Endpoint:
      POST {base_url}/chat/completions
    Auth:
      Authorization: Bearer {api_key}
    """
    if not api_key:
        raise AIClientError("Missing AI_API_KEY")
    if not model:
        raise AIClientError("Missing AI_MODEL")
    url = f"{(base_url or '').rstrip('/')}/chat/completions"

    messages: list[dict[str, str]] = []
    if system_text:
        messages.append({"role": "system", "content": system_text.strip()})
    messages.append({"role": "user", "content": user_text or ""})
    body: dict[str, Any] = {
        "model": model,
        "messages": messages,
        "temperature": float(temperature),
    }
    if json_mode:
        body["response_format"] = {"type": "json_object"}

    headers = {
        "Authorization": f"Bearer {api_key}",
        "content-type": "application/json",
    }

    start = time.perf_counter()
    last_status: int | None = None

    for attempt in range(max_retries + 1):
        try:
            async with httpx.AsyncClient(timeout=timeout_s) as client:
                if log_payloads:
                    logger.info(
                        "AI request model=%s url=%s body=%s",
                        model,
                        url,
                        _safe_truncate(json.dumps(body, ensure_ascii=False)),
                    )
                r = await client.post(url, json=body, headers=headers)
            last_status = r.status_code

            if r.status_code >= 400:
                # Retry only on transient server errors / rate limits.
                if r.status_code in _RETRYABLE_STATUS and attempt < max_retries:
                    backoff = _backoff_s(attempt)
                    logger.warning("AI HTTP %s; retrying in %.1fs", r.status_code, backoff)
                    await asyncio.sleep(backoff)
                    continue
                raise AIClientHTTPError(status_code=r.status_code, message=_safe_truncate(r.text, 1000))

            try:
                data = r.json()
            except ValueError as e:
                raise AIClientError("AI response was not JSON") from e
            text = _message_text(data if isinstance(data, dict) else {})
            meta = AICallMeta(
                model=str(data.get("model") or model) if isinstance(data, dict) else model,
                latency_ms=int((time.perf_counter() - start) * 1000),
                status_code=r.status_code,
                retries=attempt,
            )
            logger.info(
                "AI ok model=%s status=%s latency_ms=%s retries=%s",
                meta.model,
                meta.status_code,
                meta.latency_ms,
                meta.retries,
            )
            if log_payloads:
                logger.info("AI response text=%s", _safe_truncate(text))
            return text.strip(), meta
        except (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.PoolTimeout, httpx.WriteTimeout):
            if attempt < max_retries:
                backoff = _backoff_s(attempt)
                logger.warning("AI timeout; retrying in %.1fs", backoff)
                await asyncio.sleep(backoff)
                continue
            raise AIClientTimeout("AI request timed out") from None
        except httpx.RequestError as e:
            if attempt < max_retries:
                backoff = _backoff_s(attempt)
                logger.warning("AI network error (%s); retrying in %.1fs", type(e).__name__, backoff)
                await asyncio.sleep(backoff)
                continue
            raise AIClientError(f"AI request failed: {type(e).__name__}") from e

    # Should be unreachable
    raise AIClientError(f"AI request failed after {max_retries + 1} attempts (last status {last_status})")
