"""High-level data access helpers backed by SQLAlchemy."""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.orm import Session

from heyneighbor.db.models import (
    Account,
    BorrowingHistory,
    BorrowingRequest,
    Item,
    Message,
)
from heyneighbor.db.session import Database

_NO_SYNC = {"synchronize_session": False}


class SQLRepository:
    """CRUD helpers wrapping sessions from an injected Database."""

    def __init__(self, database: Database) -> None:
        self.database = database

    def _persist(self, entity):
        with self.database.transaction() as session:
            session.add(entity)
            session.flush()
            session.refresh(entity)
        return entity

    # -------------------------- accounts --------------------------
    def get_account(self, account_id: int) -> Optional[Account]:
        with self.database.session() as session:
            return session.get(Account, account_id)

    def get_account_by_email(self, email: str) -> Optional[Account]:
        with self.database.session() as session:
            stmt = select(Account).where(Account.email == email)
            return session.execute(stmt).scalar_one_or_none()

    def list_accounts(self) -> list[Account]:
        with self.database.session() as session:
            return list(session.execute(select(Account).order_by(Account.id)).scalars().all())

    def create_account(
        self,
        email: str,
        display_name: str,
        *,
        code: str,
        expires_at: datetime,
        password_hash: str | None = None,
    ) -> Account:
        """Insert an unverified account carrying its first verification code."""
        entity = Account(
            email=email,
            display_name=display_name,
            password_hash=password_hash,
            verification_code=code,
            code_expires_at=expires_at,
            is_verified=False,
        )
        return self._persist(entity)

    def store_verification_code(self, email: str, code: str, expires_at: datetime) -> bool:
        """Overwrite the active code of an unverified account; False when no row qualified."""
        stmt = (
            update(Account)
            .where(Account.email == email, Account.is_verified.is_(False))
            .values(verification_code=code, code_expires_at=expires_at)
            .execution_options(**_NO_SYNC)
        )
        with self.database.transaction() as session:
            return session.execute(stmt).rowcount == 1

    def consume_verification_code(self, email: str, code: str, now: datetime) -> bool:
        """Mark the account verified only if the same unexpired code is still stored."""
        stmt = (
            update(Account)
            .where(
                Account.email == email,
                Account.verification_code == code,
                Account.code_expires_at > now,
                Account.is_verified.is_(False),
            )
            .values(is_verified=True, verification_code=None, code_expires_at=None)
            .execution_options(**_NO_SYNC)
        )
        with self.database.transaction() as session:
            return session.execute(stmt).rowcount == 1

    def update_account(self, account_id: int, patch: Mapping[str, Any]) -> Optional[Account]:
        stmt = update(Account).where(Account.id == account_id).values(**patch).execution_options(**_NO_SYNC)
        with self.database.transaction() as session:
            if session.execute(stmt).rowcount == 0:
                return None
        return self.get_account(account_id)

    # -------------------------- items --------------------------
    def list_items(self) -> list[Item]:
        with self.database.session() as session:
            return list(session.execute(select(Item).order_by(Item.id)).scalars().all())

    def get_item(self, item_id: int) -> Optional[Item]:
        with self.database.session() as session:
            return session.get(Item, item_id)

    def get_item_with_owner(self, item_id: int) -> tuple[Optional[Item], Optional[Account]]:
        with self.database.session() as session:
            stmt = (
                select(Item, Account)
                .join(Account, Item.owner_id == Account.id, isouter=True)
                .where(Item.id == item_id)
            )
            row = session.execute(stmt).first()
            if not row:
                return None, None
            return row[0], row[1]

    def create_item(self, owner_id: int, name: str, **fields: Any) -> Item:
        entity = Item(owner_id=owner_id, name=name, **fields)
        return self._persist(entity)

    def update_item(self, item_id: int, patch: Mapping[str, Any]) -> Optional[Item]:
        stmt = update(Item).where(Item.id == item_id).values(**patch).execution_options(**_NO_SYNC)
        with self.database.transaction() as session:
            if session.execute(stmt).rowcount == 0:
                return None
        return self.get_item(item_id)

    # ---------------- item retirement steps (caller owns the transaction) ----------------
    def request_ids_for_item(self, session: Session, item_id: int) -> list[int]:
        stmt = select(BorrowingRequest.id).where(BorrowingRequest.item_id == item_id)
        return list(session.execute(stmt).scalars().all())

    def delete_history_for_requests(self, session: Session, request_ids: Iterable[int]) -> int:
        ids = list(request_ids)
        if not ids:
            return 0
        stmt = delete(BorrowingHistory).where(BorrowingHistory.request_id.in_(ids)).execution_options(**_NO_SYNC)
        return session.execute(stmt).rowcount

    def delete_requests_for_item(self, session: Session, item_id: int) -> int:
        stmt = delete(BorrowingRequest).where(BorrowingRequest.item_id == item_id).execution_options(**_NO_SYNC)
        return session.execute(stmt).rowcount

    def delete_messages_for_item(self, session: Session, item_id: int) -> int:
        stmt = delete(Message).where(Message.item_id == item_id).execution_options(**_NO_SYNC)
        return session.execute(stmt).rowcount

    def delete_item_row(self, session: Session, item_id: int) -> int:
        stmt = delete(Item).where(Item.id == item_id).execution_options(**_NO_SYNC)
        return session.execute(stmt).rowcount

    # -------------------------- borrowing --------------------------
    def create_borrow_request(self, requester_id: int, item_id: int) -> BorrowingRequest:
        entity = BorrowingRequest(requester_id=requester_id, item_id=item_id)
        return self._persist(entity)

    def get_borrow_request(self, request_id: int) -> Optional[BorrowingRequest]:
        with self.database.session() as session:
            return session.get(BorrowingRequest, request_id)

    def list_active_borrow_requests(self) -> list[dict]:
        """Requests whose item is still awaiting a decision."""
        with self.database.session() as session:
            stmt = (
                select(
                    BorrowingRequest.id,
                    Account.display_name,
                    Item.name,
                    BorrowingRequest.created_at,
                )
                .join(Account, BorrowingRequest.requester_id == Account.id)
                .join(Item, BorrowingRequest.item_id == Item.id)
                .where(Item.status == "pending")
                .order_by(BorrowingRequest.created_at, BorrowingRequest.id)
            )
            return [
                {"request_id": rid, "requester": requester, "item": item, "created_at": created_at}
                for rid, requester, item, created_at in session.execute(stmt).all()
            ]

    def record_history(self, request_id: int, *, returned: bool = False, return_date: date | None = None) -> BorrowingHistory:
        with self.database.transaction() as session:
            entity = session.get(BorrowingHistory, request_id)
            if not entity:
                entity = BorrowingHistory(request_id=request_id)
                session.add(entity)
            entity.returned = returned
            entity.return_date = return_date
        return entity

    def get_history(self, request_id: int) -> Optional[BorrowingHistory]:
        with self.database.session() as session:
            return session.get(BorrowingHistory, request_id)

    # -------------------------- messages --------------------------
    def list_messages(self) -> list[Message]:
        with self.database.session() as session:
            stmt = select(Message).order_by(Message.sent_at, Message.id)
            return list(session.execute(stmt).scalars().all())

    def create_message(self, sender_id: int, receiver_id: int, content: str, item_id: int | None = None) -> Message:
        entity = Message(sender_id=sender_id, receiver_id=receiver_id, item_id=item_id, content=content)
        return self._persist(entity)

    def latest_message_per_partner(self, account_id: int) -> list[dict]:
        """One row per conversation partner with the most recent message exchanged."""
        with self.database.session() as session:
            stmt = (
                select(Message)
                .where(or_(Message.sender_id == account_id, Message.receiver_id == account_id))
                .order_by(Message.sent_at.desc(), Message.id.desc())
            )
            latest: dict[int, Message] = {}
            for message in session.execute(stmt).scalars():
                partner = message.receiver_id if message.sender_id == account_id else message.sender_id
                latest.setdefault(partner, message)
            if not latest:
                return []
            partners = {
                acc.id: acc
                for acc in session.execute(select(Account).where(Account.id.in_(list(latest)))).scalars()
            }
        rows = []
        for partner_id in sorted(latest):
            partner = partners.get(partner_id)
            rows.append(
                {
                    "message": latest[partner_id],
                    "other_user_id": partner_id,
                    "other_user_name": partner.display_name if partner else None,
                    "other_user_avatar": partner.profile_picture if partner else None,
                }
            )
        return rows

    # -------------------------- counters --------------------------
    def count_rows(self) -> dict[str, int]:
        """Row counts per table; printed by scripts/retire_item.py and checked in tests."""
        with self.database.session() as session:
            return {
                model.__tablename__: session.execute(select(func.count()).select_from(model)).scalar_one()
                for model in (Account, Item, BorrowingRequest, BorrowingHistory, Message)
            }
