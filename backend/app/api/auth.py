import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import repository
from ..utils.dependencies import get_current_user_record
from ..utils.error_handlers import get_error_message
from ..utils.security import create_access_token, hash_password, verify_password
from ..utils.validation import (
    WALLET_TYPES,
    clean_string_list,
    validate_choice,
    validate_email,
    validate_password,
    validate_string_field,
    validate_username,
)
from .serializers import user_to_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str
    email: str
    password: str
    confirm_password: str | None = Field(default=None, alias="confirmPassword")
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    bio: str | None = None
    title: str | None = None
    linkedin_url: str | None = Field(default=None, alias="linkedinUrl")
    wallet_address: str | None = Field(default=None, alias="walletAddress")
    wallet_type: str | None = Field(default=None, alias="walletType")
    skills: list[str] | None = None
    profile_image_url: str | None = Field(default=None, alias="profileImageUrl")


class LoginRequest(BaseModel):
    email: str
    password: str


def _token_response(user, message: str | None = None) -> dict:
    token = create_access_token({"sub": str(user.id)})
    out = {
        "access_token": token,
        "token_type": "bearer",
        "user": user_to_public(user),
    }
    if message:
        out["message"] = message
    return out


@router.post("/register", status_code=201)
def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    username = validate_username(payload.username)
    validate_password(payload.password)
    if payload.confirm_password is not None and payload.confirm_password != payload.password:
        raise HTTPException(status_code=400, detail="Passwords don't match")

    data = {
        "username": username,
        "email": email,
        "first_name": validate_string_field(payload.first_name, "First name", max_length=100),
        "last_name": validate_string_field(payload.last_name, "Last name", max_length=100),
        "bio": validate_string_field(payload.bio, "Bio", max_length=2000, required=False),
        "title": validate_string_field(payload.title, "Title", max_length=150, required=False),
        "linkedin_url": validate_string_field(payload.linkedin_url, "LinkedIn URL", max_length=255, required=False),
        "wallet_address": validate_string_field(payload.wallet_address, "Wallet address", max_length=128, required=False),
        "wallet_type": validate_choice(payload.wallet_type, "wallet type", WALLET_TYPES),
        "skills": clean_string_list(payload.skills, "Skills"),
        "profile_image_url": validate_string_field(
            payload.profile_image_url, "Profile image URL", max_length=500, required=False
        ),
    }

    try:
        data["password"] = hash_password(payload.password)
    except ValueError:
        raise HTTPException(status_code=400, detail=get_error_message("weak_password"))

    user = repository.create_user(db, data)
    return _token_response(user, message="User created successfully")


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    if not payload.password:
        raise HTTPException(status_code=400, detail="Password is required")

    user = repository.get_user_by_email(db, email)
    # Same message for unknown email and wrong password.
    if user is None or not verify_password(payload.password, user.password):
        raise HTTPException(status_code=401, detail=get_error_message("invalid_credentials"))

    logger.info("User %s logged in", user.id)
    return _token_response(user)


@router.get("/me")
def me(user=Depends(get_current_user_record)):
    return {"success": True, "user": user_to_public(user)}
