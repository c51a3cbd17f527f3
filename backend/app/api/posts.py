from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import repository
from ..utils.dependencies import get_current_user
from ..utils.error_handlers import get_error_message
from ..utils.validation import POST_TYPES, clean_string_list, validate_choice, validate_string_field
from .serializers import post_to_public

router = APIRouter(prefix="/posts", tags=["Posts"])


class PostCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    type: str | None = None
    media_urls: list[str] | None = Field(default=None, alias="mediaUrls")
    tags: list[str] | None = None
    job_id: str | None = Field(default=None, alias="jobId")


@router.post("", status_code=201)
def create_post(
    payload: PostCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    data = {
        "content": validate_string_field(payload.content, "Content", max_length=5000),
        "type": validate_choice(payload.type, "post type", POST_TYPES) or "text",
        "media_urls": clean_string_list(payload.media_urls, "Media URLs", max_items=10, max_length=500),
        "tags": clean_string_list(payload.tags, "Tags", max_items=20, max_length=50),
        "job_id": (payload.job_id or "").strip() or None,
    }
    post = repository.create_post(db, data, author_id=str(user.get("sub")))
    return {"success": True, "post": post_to_public(post)}


@router.get("")
def list_posts(
    limit: int = Query(default=20, ge=1, le=100),
    offset: int = Query(default=0, ge=0),
    db: Session = Depends(get_db),
):
    posts = repository.get_posts(db, limit=limit, offset=offset)
    return {"success": True, "posts": [post_to_public(p, include_author=True) for p in posts]}


def _bump(db: Session, post_id: str, field: str) -> dict:
    if repository.get_post(db, post_id) is None:
        raise HTTPException(status_code=404, detail=get_error_message("post_not_found"))
    post = repository.update_post_stats(db, post_id, field, 1)
    return {"success": True, "post": post_to_public(post)}


@router.post("/{post_id}/like")
def like_post(post_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _bump(db, post_id, "likes")


@router.post("/{post_id}/comment")
def comment_post(post_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _bump(db, post_id, "comments")


@router.post("/{post_id}/share")
def share_post(post_id: str, db: Session = Depends(get_db), user=Depends(get_current_user)):
    return _bump(db, post_id, "shares")
