"""Item retirement: removes an item and every row that only describes it."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from heyneighbor.repositories.sql_repository import SQLRepository
from heyneighbor.services.errors import NotFoundError, ServiceError

logger = logging.getLogger("heyneighbor.retirement")


class ItemNotFoundError(NotFoundError):
    pass


class RetirementFailedError(ServiceError):
    code = "internal_error"
    status_code = 500


@dataclass
class RetirementResult:
    item_id: int
    history_deleted: int
    requests_deleted: int
    messages_deleted: int


class RetirementCoordinator:
    """Runs the cascading delete of an item inside a single transaction."""

    def __init__(self, repository: SQLRepository) -> None:
        self.repository = repository

    def retire_item(self, item_id: int) -> RetirementResult:
        repo = self.repository
        try:
            with repo.database.transaction() as session:
                request_ids = repo.request_ids_for_item(session, item_id)
                history = repo.delete_history_for_requests(session, request_ids)
                requests = repo.delete_requests_for_item(session, item_id)
                messages = repo.delete_messages_for_item(session, item_id)
                if repo.delete_item_row(session, item_id) == 0:
                    # raising inside the transaction discards the dependent deletes
                    raise ItemNotFoundError("Item not found")
        except SQLAlchemyError as exc:
            logger.exception("Retirement of item %s rolled back", item_id)
            raise RetirementFailedError("Internal server error") from exc
        logger.info(
            "Item %s retired (history=%s, requests=%s, messages=%s)",
            item_id,
            history,
            requests,
            messages,
        )
        return RetirementResult(
            item_id=item_id,
            history_deleted=history,
            requests_deleted=requests,
            messages_deleted=messages,
        )
