from collections.abc import Mapping
from typing import Any

# Weights sum to 100; skills scale linearly up to _SKILLS_FOR_FULL_CREDIT entries.
_FIELD_WEIGHTS = {
    "first_name": 10,
    "last_name": 10,
    "title": 15,
    "bio": 15,
    "linkedin_url": 10,
    "profile_image_url": 10,
    "wallet_address": 10,
}
_SKILLS_WEIGHT = 20
_SKILLS_FOR_FULL_CREDIT = 5


def _get(user: Any, field: str) -> Any:
    if isinstance(user, Mapping):
        return user.get(field)
    return getattr(user, field, None)


def compute_profile_strength(user: Any) -> int:
    """
    Weighted completeness of a user profile, 0..100.

    Accepts an ORM User or a plain mapping with the same snake_case keys.
    """
    score = 0
    for field, weight in _FIELD_WEIGHTS.items():
        value = _get(user, field)
        if isinstance(value, str) and value.strip():
            score += weight

    skills = _get(user, "skills")
    if isinstance(skills, (list, tuple, set, frozenset)):
        count = sum(1 for s in skills if isinstance(s, str) and s.strip())
        score += round(_SKILLS_WEIGHT * min(count, _SKILLS_FOR_FULL_CREDIT) / _SKILLS_FOR_FULL_CREDIT)

    return max(0, min(100, score))
