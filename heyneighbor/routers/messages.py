from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from heyneighbor.core.utils import upload_url
from heyneighbor.services.errors import ValidationError
from heyneighbor.services.presenters import message_to_dict

router = APIRouter(prefix="/messages", tags=["messages"])


class MessageBody(BaseModel):
    sender_id: int
    receiver_id: int
    item_id: Optional[int] = None
    content: str = ""


@router.get("")
def read_messages(request: Request):
    return [message_to_dict(m) for m in request.app.state.repository.list_messages()]


@router.get("/user/{user_id}")
def read_user_messages(user_id: int, request: Request):
    rows = request.app.state.repository.latest_message_per_partner(user_id)
    return [
        {
            **message_to_dict(row["message"]),
            "other_user_id": row["other_user_id"],
            "other_user_name": row["other_user_name"],
            "other_user_avatar": upload_url(row["other_user_avatar"]),
        }
        for row in rows
    ]


@router.post("")
def create_message(body: MessageBody, request: Request):
    content = body.content.strip()
    if not content:
        raise ValidationError("content is required")
    entity = request.app.state.repository.create_message(
        body.sender_id, body.receiver_id, content, item_id=body.item_id or None
    )
    return {"message_id": entity.id}
