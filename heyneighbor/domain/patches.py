"""
Typed partial updates.

A patch maps a closed set of updatable column names to new values. The
repository turns a validated patch into a parameterized UPDATE.
"""
from __future__ import annotations

from typing import Any, Mapping

from heyneighbor.db.models import ITEM_STATUSES

USER_PATCH_FIELDS = frozenset({"display_name", "profile_picture"})
ITEM_PATCH_FIELDS = frozenset(
    {"name", "description", "image_url", "category", "status", "start_date", "end_date"}
)
REQUIRED_FIELDS = frozenset({"display_name", "name", "status"})


class PatchError(ValueError):
    """Raised when a patch is empty or names fields outside the allowed set."""


def _validate(values: Mapping[str, Any], allowed: frozenset[str]) -> dict[str, Any]:
    if not values:
        raise PatchError("No fields to update")
    unknown = sorted(set(values) - allowed)
    if unknown:
        raise PatchError(f"Fields cannot be updated: {', '.join(unknown)}")
    patch = dict(values)
    for field in REQUIRED_FIELDS & set(patch):
        value = patch[field]
        if value is None or (isinstance(value, str) and not value.strip()):
            raise PatchError(f"{field} cannot be empty")
    return patch


def user_patch(values: Mapping[str, Any]) -> dict[str, Any]:
    return _validate(values, USER_PATCH_FIELDS)


def item_patch(values: Mapping[str, Any]) -> dict[str, Any]:
    patch = _validate(values, ITEM_PATCH_FIELDS)
    status = patch.get("status")
    if status is not None and status not in ITEM_STATUSES:
        raise PatchError(f"status must be one of {', '.join(ITEM_STATUSES)}")
    start, end = patch.get("start_date"), patch.get("end_date")
    if start and end and end < start:
        raise PatchError("end_date cannot be before start_date")
    return patch
