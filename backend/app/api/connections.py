from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.orm import Session

from ..database import get_db
from ..services import repository
from ..utils.dependencies import get_current_user
from ..utils.validation import CONNECTION_DECISIONS, validate_choice, validate_string_field
from .serializers import connection_to_public

router = APIRouter(prefix="/connections", tags=["Connections"])


class ConnectionCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recipient_id: str = Field(alias="recipientId")


class ConnectionDecision(BaseModel):
    status: str


@router.post("", status_code=201)
def request_connection(
    payload: ConnectionCreate,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    recipient_id = validate_string_field(payload.recipient_id, "Recipient ID", max_length=36)
    connection = repository.create_connection(db, str(user.get("sub")), recipient_id)
    return {"success": True, "connection": connection_to_public(connection)}


@router.get("")
def list_connections(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    connections = repository.get_user_connections(db, str(user.get("sub")))
    return {
        "success": True,
        "connections": [connection_to_public(c, include_users=True) for c in connections],
    }


@router.get("/pending")
def list_pending_connections(
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    connections = repository.get_pending_connections(db, str(user.get("sub")))
    return {
        "success": True,
        "connections": [connection_to_public(c, include_users=True) for c in connections],
    }


@router.patch("/{connection_id}")
def respond_to_connection(
    connection_id: str,
    payload: ConnectionDecision,
    db: Session = Depends(get_db),
    user=Depends(get_current_user),
):
    status = validate_choice(payload.status, "status", CONNECTION_DECISIONS, required=True)
    connection = repository.update_connection_status(db, connection_id, str(user.get("sub")), status)
    return {"success": True, "connection": connection_to_public(connection)}
