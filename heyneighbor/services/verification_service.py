"""
Verification code issuance and account activation.

An account holds at most one active code. Issuing a new code overwrites the
previous one, and activation consumes the code with a single conditional
UPDATE so a concurrent reissue can never be bypassed.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional, Protocol

from sqlalchemy.exc import IntegrityError

from heyneighbor.core.config import Settings, get_settings
from heyneighbor.core.security import hash_password
from heyneighbor.core.utils import utcnow
from heyneighbor.db.models import Account
from heyneighbor.domain.emails import is_allowed_domain, is_valid_email, normalize_email
from heyneighbor.repositories.sql_repository import SQLRepository
from heyneighbor.services.errors import ConflictError, NotFoundError, ServiceError, ValidationError

logger = logging.getLogger("heyneighbor.verification")

CODE_MIN = 100000
CODE_MAX = 999999
MIN_PASSWORD_LENGTH = 8
INVALID_CODE_MESSAGE = "Invalid or expired verification code"


class EmailDomainError(ServiceError):
    code = "domain_rejected"
    status_code = 400


class AccountExistsError(ConflictError):
    code = "already_registered"


class AlreadyVerifiedError(ConflictError):
    code = "already_verified"


class AccountNotFoundError(NotFoundError):
    pass


class InvalidOrExpiredError(ServiceError):
    code = "invalid_or_expired"
    status_code = 400

    def __init__(self) -> None:
        super().__init__(INVALID_CODE_MESSAGE)


class NotificationSender(Protocol):
    def send(self, recipient_email: str, code: str, display_name: str) -> bool:
        ...


def generate_code() -> str:
    """Six digit code drawn uniformly from 100000..999999."""
    return str(CODE_MIN + secrets.randbelow(CODE_MAX - CODE_MIN + 1))


@dataclass
class IssueResult:
    account: Account
    code: str
    expires_at: datetime
    notification_failed: bool


@dataclass
class ActivationResult:
    account: Account
    already_verified: bool


class VerificationCodeIssuer:
    """Creates and reissues verification codes, then hands them to the sender."""

    def __init__(
        self,
        repository: SQLRepository,
        sender: NotificationSender,
        *,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.repository = repository
        self.sender = sender
        self.settings = settings or get_settings()
        self.clock = clock

    def _expires_at(self) -> datetime:
        return self.clock() + timedelta(seconds=self.settings.verification_code_ttl_seconds)

    def _notify(self, email: str, code: str, display_name: str) -> bool:
        try:
            sent = bool(self.sender.send(email, code, display_name))
        except Exception:
            logger.exception("Notification sender raised for %s", email)
            sent = False
        if not sent:
            logger.warning("Verification code for %s stored but not delivered; resend is required", email)
        return sent

    def issue_for_signup(self, email: str, display_name: str, password: Optional[str] = None) -> IssueResult:
        raw_email = normalize_email(email)
        name = (display_name or "").strip()
        if not raw_email or not name:
            raise ValidationError("email and name are required")
        if not is_valid_email(raw_email):
            raise ValidationError("email is not a valid address")
        if not is_allowed_domain(raw_email, self.settings.allowed_email_domains):
            allowed = ", ".join(f"@{d}" for d in self.settings.allowed_email_domains)
            raise EmailDomainError(f"Email must belong to an allowed domain ({allowed})")
        if password is not None and len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must have at least {MIN_PASSWORD_LENGTH} characters")
        if self.repository.get_account_by_email(raw_email):
            raise AccountExistsError("Email already in use")

        code = generate_code()
        expires_at = self._expires_at()
        try:
            account = self.repository.create_account(
                raw_email,
                name,
                code=code,
                expires_at=expires_at,
                password_hash=hash_password(password) if password else None,
            )
        except IntegrityError as exc:
            raise AccountExistsError("Email already in use") from exc
        logger.info("Account %s created, awaiting verification", raw_email)
        sent = self._notify(raw_email, code, name)
        return IssueResult(account=account, code=code, expires_at=expires_at, notification_failed=not sent)

    def issue_for_resend(self, email: str) -> IssueResult:
        raw_email = normalize_email(email)
        if not raw_email:
            raise ValidationError("Email is required")
        account = self.repository.get_account_by_email(raw_email)
        if not account:
            raise AccountNotFoundError("User not found")
        if account.is_verified:
            raise AlreadyVerifiedError("Email is already verified")

        code = generate_code()
        expires_at = self._expires_at()
        if not self.repository.store_verification_code(raw_email, code, expires_at):
            # verified (or removed) between the read and the write
            current = self.repository.get_account_by_email(raw_email)
            if current and current.is_verified:
                raise AlreadyVerifiedError("Email is already verified")
            raise AccountNotFoundError("User not found")
        logger.info("Verification code reissued for %s", raw_email)
        sent = self._notify(raw_email, code, account.display_name)
        account = self.repository.get_account_by_email(raw_email) or account
        return IssueResult(account=account, code=code, expires_at=expires_at, notification_failed=not sent)


class AccountActivator:
    """Consumes a submitted code and marks the account verified."""

    def __init__(self, repository: SQLRepository, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.repository = repository
        self.clock = clock

    def activate(self, email: str, submitted_code: str) -> ActivationResult:
        raw_email = normalize_email(email)
        code = (submitted_code or "").strip()
        if not raw_email or not code:
            raise ValidationError("Email and verification code are required")
        account = self.repository.get_account_by_email(raw_email)
        if not account:
            raise InvalidOrExpiredError()
        if account.is_verified:
            return ActivationResult(account=account, already_verified=True)

        if self.repository.consume_verification_code(raw_email, code, self.clock()):
            logger.info("Account %s verified", raw_email)
            return ActivationResult(account=self.repository.get_account_by_email(raw_email), already_verified=False)

        current = self.repository.get_account_by_email(raw_email)
        if current and current.is_verified:
            # a concurrent activation with the same code won
            return ActivationResult(account=current, already_verified=True)
        raise InvalidOrExpiredError()
