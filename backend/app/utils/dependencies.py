from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import repository
from .error_handlers import UnauthorizedError, get_error_message
from .security import decode_access_token


def get_current_user(request: Request) -> dict:
    """Decode the bearer token and return its claims (`sub` is the user id)."""
    auth_header = request.headers.get("Authorization") or ""
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail=get_error_message("no_token"))

    payload = decode_access_token(token.strip())
    if payload is None:
        raise HTTPException(status_code=401, detail=get_error_message("invalid_token"))
    return payload


def get_current_user_record(
    user: dict = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    record = repository.get_user(db, str(user.get("sub")))
    if record is None:
        # Token outlived the account.
        raise UnauthorizedError(get_error_message("invalid_token"))
    return record
