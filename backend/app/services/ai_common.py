import json
import re


_JSON_OBJECT_RE = re.compile(r"\{[\s\S]*\}")
_FENCE_RE = re.compile(r"^```(?:json)?\s*([\s\S]*?)\s*```$", re.IGNORECASE)


def extract_first_json_object(text: str) -> dict:
    """
    Best-effort extraction of the first JSON object from a model response.
    Handles cases where the model wraps JSON in prose or a ```json fence.
    """
    raw = (text or "").strip()
    if not raw:
        raise ValueError("Empty AI response")

    fenced = _FENCE_RE.match(raw)
    if fenced:
        raw = fenced.group(1).strip()

    # Fast path: pure JSON
    try:
        obj = json.loads(raw)
        if isinstance(obj, dict):
            return obj
    except json.JSONDecodeError:
        pass

    # Heuristic: take first {...} block
    m = _JSON_OBJECT_RE.search(raw)
    if not m:
        raise ValueError("No JSON object found in AI response")
    obj = json.loads(m.group(0))
    if not isinstance(obj, dict):
        raise ValueError("AI response JSON is not an object")
    return obj


def sanitize_list(items: list | None, n: int = 10, max_len: int = 300) -> list[str]:
    out: list[str] = []
    for x in items or []:
        s = str(x).strip()
        if not s:
            continue
        out.append(s if len(s) <= max_len else s[:max_len] + "…")
        if len(out) >= n:
            break
    return out
