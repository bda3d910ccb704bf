"""SQLAlchemy models for accounts, items, borrowing and messages."""
from __future__ import annotations

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import relationship

from .session import Base

ITEM_STATUSES = ("available", "borrowed", "pending")


class Account(Base):
    __tablename__ = "app_user"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    password_hash = Column(Text, nullable=True)
    profile_picture = Column(String(255), nullable=True)
    rating = Column(Float, nullable=True)
    verification_code = Column(String(6), nullable=True)
    code_expires_at = Column(DateTime(timezone=True), nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    items = relationship("Item", back_populates="owner")


class Item(Base):
    __tablename__ = "item"
    __table_args__ = (
        CheckConstraint("status IN ('available', 'borrowed', 'pending')", name="ck_item_status"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("app_user.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    image_url = Column(String(255), nullable=True)
    category = Column(String(50), nullable=True)
    status = Column(String(20), default="available", nullable=False)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    owner = relationship("Account", back_populates="items")


class BorrowingRequest(Base):
    __tablename__ = "borrowing_request"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requester_id = Column(Integer, ForeignKey("app_user.id"), nullable=False)
    item_id = Column(Integer, ForeignKey("item.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)


class BorrowingHistory(Base):
    __tablename__ = "borrowing_history"

    request_id = Column(Integer, ForeignKey("borrowing_request.id"), primary_key=True)
    returned = Column(Boolean, default=False, nullable=False)
    return_date = Column(Date, nullable=True)


class Message(Base):
    __tablename__ = "message"

    id = Column(Integer, primary_key=True, autoincrement=True)
    sender_id = Column(Integer, ForeignKey("app_user.id"), nullable=False, index=True)
    receiver_id = Column(Integer, ForeignKey("app_user.id"), nullable=False, index=True)
    item_id = Column(Integer, ForeignKey("item.id"), nullable=True, index=True)
    content = Column(Text, nullable=False)
    sent_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
