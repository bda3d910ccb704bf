from __future__ import annotations

from datetime import date
from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from heyneighbor.repositories.sql_repository import SQLRepository
from heyneighbor.services.errors import NotFoundError
from heyneighbor.services.presenters import isoformat

router = APIRouter(prefix="/borrow", tags=["borrow"])


class BorrowBody(BaseModel):
    requester_id: int
    item_id: int


class HistoryBody(BaseModel):
    returned: bool = False
    return_date: Optional[date] = None


def _history_to_dict(entity) -> dict:
    return {
        "request_id": entity.request_id,
        "returned": bool(entity.returned),
        "return_date": isoformat(entity.return_date),
    }


def _require_request(repository: SQLRepository, request_id: int) -> None:
    if repository.get_borrow_request(request_id) is None:
        raise NotFoundError("Borrowing request not found")


@router.get("/active")
def read_active_borrow_requests(request: Request):
    rows = request.app.state.repository.list_active_borrow_requests()
    return [{**row, "created_at": isoformat(row["created_at"])} for row in rows]


@router.post("")
def create_borrow_request(body: BorrowBody, request: Request):
    entity = request.app.state.repository.create_borrow_request(body.requester_id, body.item_id)
    return {"request_id": entity.id}


@router.get("/{request_id}/history")
def read_borrow_history(request_id: int, request: Request):
    repository: SQLRepository = request.app.state.repository
    entity = repository.get_history(request_id)
    if entity is None:
        raise NotFoundError("Borrowing history not found")
    return _history_to_dict(entity)


@router.put("/{request_id}/history")
def record_borrow_history(request_id: int, body: HistoryBody, request: Request):
    """Create or replace the lending outcome recorded for a request."""
    repository: SQLRepository = request.app.state.repository
    _require_request(repository, request_id)
    entity = repository.record_history(request_id, returned=body.returned, return_date=body.return_date)
    return _history_to_dict(entity)
