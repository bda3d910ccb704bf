"""
Authentication and identity related use cases.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from heyneighbor.core.config import Settings, get_settings
from heyneighbor.core.mailer import SMTPNotificationSender
from heyneighbor.core.security import verify_password
from heyneighbor.core.utils import utcnow
from heyneighbor.db.models import Account
from heyneighbor.domain.emails import normalize_email
from heyneighbor.repositories.sql_repository import SQLRepository
from heyneighbor.services.errors import ServiceError, ValidationError
from heyneighbor.services.verification_service import (
    AccountActivator,
    ActivationResult,
    IssueResult,
    NotificationSender,
    VerificationCodeIssuer,
)


class InvalidCredentialsError(ServiceError):
    code = "invalid_credentials"
    status_code = 401

    def __init__(self) -> None:
        super().__init__("Invalid email or password")


class VerificationRequiredError(ServiceError):
    code = "verification_required"
    status_code = 403

    def __init__(self, email: str):
        super().__init__("Email not verified. Please check your inbox for the verification code.")
        self.email = email

    def to_dict(self) -> dict:
        payload = super().to_dict()
        payload.update({"email": self.email, "requiresVerification": True})
        return payload


class NotificationFailedError(ServiceError):
    code = "notification_failed"
    status_code = 502


@dataclass
class SignupResult:
    email: str
    email_sent: bool


@dataclass
class ResendResult:
    email: str
    email_sent: bool


class SessionGate:
    """Decides whether a login may proceed; unverified accounts never pass."""

    def __init__(self, repository: SQLRepository) -> None:
        self.repository = repository

    def authenticate(self, email: str, credential: Optional[str] = None) -> Account:
        raw_email = normalize_email(email)
        if not raw_email:
            raise ValidationError("email is required")
        account = self.repository.get_account_by_email(raw_email)
        if not account:
            raise InvalidCredentialsError()
        if account.password_hash and not verify_password(credential, account.password_hash):
            raise InvalidCredentialsError()
        if not account.is_verified:
            raise VerificationRequiredError(account.email)
        return account


@dataclass
class AuthService:
    """Handles signup, code resend, verification and login flows."""

    repository: SQLRepository
    sender: Optional[NotificationSender] = None
    settings: Optional[Settings] = None
    clock: Callable[[], datetime] = utcnow

    def __post_init__(self):
        self.settings = self.settings or get_settings()
        self.sender = self.sender or SMTPNotificationSender(self.settings)
        self.issuer = VerificationCodeIssuer(self.repository, self.sender, settings=self.settings, clock=self.clock)
        self.activator = AccountActivator(self.repository, clock=self.clock)
        self.gate = SessionGate(self.repository)

    # -------------------------------------- signup --------------------------------------
    def signup(self, email: str, display_name: str, password: Optional[str] = None) -> SignupResult:
        issued: IssueResult = self.issuer.issue_for_signup(email, display_name, password)
        return SignupResult(email=issued.account.email, email_sent=not issued.notification_failed)

    def resend(self, email: str) -> ResendResult:
        issued = self.issuer.issue_for_resend(email)
        return ResendResult(email=issued.account.email, email_sent=not issued.notification_failed)

    # -------------------------------------- verification --------------------------------------
    def verify(self, email: str, code: str) -> ActivationResult:
        return self.activator.activate(email, code)

    # -------------------------------------- login --------------------------------------
    def login(self, email: str, credential: Optional[str] = None) -> Account:
        return self.gate.authenticate(email, credential)
