from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import repository
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import get_error_message
from ..utils.validation import WALLET_TYPES, clean_string_list, validate_choice, validate_string_field
from .serializers import user_to_public

router = APIRouter(prefix="/users", tags=["Users"])

# (field, label, max_length, required)
_TEXT_FIELDS = (
    ("first_name", "First name", 100, True),
    ("last_name", "Last name", 100, True),
    ("bio", "Bio", 2000, False),
    ("title", "Title", 150, False),
    ("linkedin_url", "LinkedIn URL", 255, False),
    ("wallet_address", "Wallet address", 128, False),
    ("profile_image_url", "Profile image URL", 500, False),
)


class ProfileUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    bio: str | None = None
    title: str | None = None
    linkedin_url: str | None = Field(default=None, alias="linkedinUrl")
    wallet_address: str | None = Field(default=None, alias="walletAddress")
    wallet_type: str | None = Field(default=None, alias="walletType")
    skills: list[str] | None = None
    profile_image_url: str | None = Field(default=None, alias="profileImageUrl")


@router.put("/profile")
def update_profile(
    payload: ProfileUpdate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    # Only fields present in the body are merged; explicit nulls clear optional fields.
    provided = payload.model_dump(exclude_unset=True)
    updates: dict = {}
    for field, label, max_length, required in _TEXT_FIELDS:
        if field in provided:
            updates[field] = validate_string_field(
                provided[field], label, max_length=max_length, required=required
            )
    if "wallet_type" in provided:
        updates["wallet_type"] = validate_choice(provided["wallet_type"], "wallet type", WALLET_TYPES)
    if "skills" in provided:
        updates["skills"] = clean_string_list(provided["skills"], "Skills")

    record = repository.update_user(db, str(user.get("sub")), updates)
    return {"success": True, "user": user_to_public(record)}


@router.get("/search")
def search_users(
    q: str = Query(default=""),
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    if not q.strip():
        raise HTTPException(status_code=400, detail="Search query is required")
    users = repository.search_users(db, q)
    return {"success": True, "users": [user_to_public(u) for u in users]}


@router.get("/{user_id}")
def get_user(
    user_id: str,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    record = repository.get_user(db, user_id)
    if record is None:
        raise HTTPException(status_code=404, detail=get_error_message("user_not_found"))
    return {"success": True, "user": user_to_public(record)}
