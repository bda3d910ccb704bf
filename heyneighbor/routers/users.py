from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from heyneighbor.domain.patches import PatchError, user_patch
from heyneighbor.services.errors import NotFoundError, ValidationError
from heyneighbor.services.presenters import account_to_dict

router = APIRouter(prefix="/users", tags=["users"])


class UserUpdateBody(BaseModel):
    name: Optional[str] = None
    profile_picture: Optional[str] = None


@router.get("")
def read_users(request: Request):
    return [account_to_dict(acc) for acc in request.app.state.repository.list_accounts()]


@router.get("/{user_id}")
def read_user(user_id: int, request: Request):
    account = request.app.state.repository.get_account(user_id)
    if not account:
        raise NotFoundError("User not found")
    return account_to_dict(account)


@router.put("/{user_id}")
def update_user(user_id: int, body: UserUpdateBody, request: Request):
    values = body.model_dump(exclude_unset=True)
    if "name" in values:
        values["display_name"] = values.pop("name")
    try:
        patch = user_patch(values)
    except PatchError as exc:
        raise ValidationError(str(exc)) from exc
    account = request.app.state.repository.update_account(user_id, patch)
    if not account:
        raise NotFoundError("User not found")
    return account_to_dict(account)
