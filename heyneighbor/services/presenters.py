"""
Entity to JSON helpers shared across routers.

Verification codes and password hashes never leave the service.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from heyneighbor.core.utils import as_utc, upload_url
from heyneighbor.db.models import Account, Item, Message


def isoformat(value: date | datetime | None) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return as_utc(value).isoformat()
    return value.isoformat()


def account_to_dict(entity: Account) -> dict:
    return {
        "user_id": entity.id,
        "email": entity.email,
        "name": entity.display_name,
        "profile_picture": upload_url(entity.profile_picture),
        "rating": entity.rating,
        "is_verified": bool(entity.is_verified),
        "created_at": isoformat(entity.created_at),
    }


def item_to_dict(entity: Item, owner: Account | None = None) -> dict:
    data = {
        "item_id": entity.id,
        "owner_id": entity.owner_id,
        "name": entity.name,
        "description": entity.description,
        "image_url": upload_url(entity.image_url),
        "category": entity.category,
        "status": entity.status,
        "start_date": isoformat(entity.start_date),
        "end_date": isoformat(entity.end_date),
    }
    if owner is not None:
        data.update(
            {
                "owner_name": owner.display_name,
                "owner_avatar": upload_url(owner.profile_picture),
                "owner_rating": owner.rating,
            }
        )
    return data


def message_to_dict(entity: Message) -> dict:
    return {
        "message_id": entity.id,
        "sender_id": entity.sender_id,
        "receiver_id": entity.receiver_id,
        "item_id": entity.item_id,
        "content": entity.content,
        "sent_at": isoformat(entity.sent_at),
    }
