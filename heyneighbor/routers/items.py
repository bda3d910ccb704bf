from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from heyneighbor.domain.patches import PatchError, item_patch
from heyneighbor.repositories.sql_repository import SQLRepository
from heyneighbor.services.errors import NotFoundError, ValidationError
from heyneighbor.services.presenters import item_to_dict
from heyneighbor.services.retirement_service import RetirementCoordinator

router = APIRouter(prefix="/items", tags=["items"])

ItemStatus = Literal["available", "borrowed", "pending"]


class ItemCreateBody(BaseModel):
    owner_id: int
    name: str
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    status: ItemStatus = "available"
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ItemUpdateBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    image_url: Optional[str] = None
    category: Optional[str] = None
    status: Optional[ItemStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


def _repository(request: Request) -> SQLRepository:
    return request.app.state.repository


def _coordinator(request: Request) -> RetirementCoordinator:
    svc = getattr(getattr(request.app, "state", None), "retirement", None)
    if not svc:
        raise RuntimeError("RetirementCoordinator not configured")
    return svc


@router.get("")
def read_items(request: Request):
    return [item_to_dict(item) for item in _repository(request).list_items()]


@router.get("/{item_id}")
def read_item(item_id: int, request: Request):
    item, owner = _repository(request).get_item_with_owner(item_id)
    if not item:
        raise NotFoundError("Item not found")
    return item_to_dict(item, owner)


@router.post("")
def create_item(body: ItemCreateBody, request: Request):
    if not body.name.strip():
        raise ValidationError("name is required")
    fields = body.model_dump(exclude={"owner_id", "name"})
    item = _repository(request).create_item(body.owner_id, body.name.strip(), **fields)
    return {"item_id": item.id}


@router.put("/{item_id}")
def update_item(item_id: int, body: ItemUpdateBody, request: Request):
    try:
        patch = item_patch(body.model_dump(exclude_unset=True))
    except PatchError as exc:
        raise ValidationError(str(exc)) from exc
    item = _repository(request).update_item(item_id, patch)
    if not item:
        raise NotFoundError("Item not found")
    return item_to_dict(item)


@router.delete("/{item_id}")
def delete_item(item_id: int, request: Request):
    result = _coordinator(request).retire_item(item_id)
    return {
        "status": "deleted",
        "message": "Item deleted successfully",
        "item_id": result.item_id,
        "history_deleted": result.history_deleted,
        "requests_deleted": result.requests_deleted,
        "messages_deleted": result.messages_deleted,
    }
