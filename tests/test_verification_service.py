from __future__ import annotations

from datetime import timedelta

import pytest

from heyneighbor.services import verification_service
from heyneighbor.services.errors import ValidationError
from heyneighbor.services.verification_service import (
    AccountActivator,
    AccountExistsError,
    AccountNotFoundError,
    AlreadyVerifiedError,
    EmailDomainError,
    InvalidOrExpiredError,
    VerificationCodeIssuer,
    generate_code,
)

EMAIL = "a@allowed.example"


@pytest.fixture()
def issuer(repository, sender, settings, clock):
    return VerificationCodeIssuer(repository, sender, settings=settings, clock=clock)


@pytest.fixture()
def activator(repository, clock):
    return AccountActivator(repository, clock=clock)


def test_generate_code_is_six_digits_without_leading_zero():
    for _ in range(500):
        code = generate_code()
        assert len(code) == 6
        assert code.isdigit()
        assert 100000 <= int(code) <= 999999


def test_signup_persists_code_with_fifteen_minute_expiry(issuer, repository, sender, clock):
    result = issuer.issue_for_signup("  A@Allowed.Example ", "A")

    assert result.notification_failed is False
    assert result.expires_at == clock.now + timedelta(minutes=15)
    assert sender.sent == [(EMAIL, result.code, "A")]
    account = repository.get_account_by_email(EMAIL)
    assert account.verification_code == result.code
    assert account.is_verified is False


def test_signup_rejects_outside_domain(issuer, repository, sender):
    with pytest.raises(EmailDomainError) as err:
        issuer.issue_for_signup("someone@gmail.com", "Someone")
    assert err.value.code == "domain_rejected"
    assert repository.get_account_by_email("someone@gmail.com") is None
    assert sender.sent == []


def test_signup_rejects_lookalike_domain(issuer):
    with pytest.raises(EmailDomainError):
        issuer.issue_for_signup("a@evil-allowed.example", "A")


def test_signup_requires_email_and_name(issuer):
    with pytest.raises(ValidationError):
        issuer.issue_for_signup("", "A")
    with pytest.raises(ValidationError):
        issuer.issue_for_signup(EMAIL, "  ")


def test_signup_rejects_existing_email(issuer):
    issuer.issue_for_signup(EMAIL, "A")
    with pytest.raises(AccountExistsError) as err:
        issuer.issue_for_signup(EMAIL, "A again")
    assert err.value.message == "Email already in use"
    assert err.value.status_code == 409


def test_signup_rejects_short_password(issuer, repository):
    with pytest.raises(ValidationError):
        issuer.issue_for_signup(EMAIL, "A", password="short")
    assert repository.get_account_by_email(EMAIL) is None


def test_failed_notification_keeps_the_account(repository, settings, clock):
    from conftest import FakeSender

    failing = FakeSender(fail=True)
    issuer = VerificationCodeIssuer(repository, failing, settings=settings, clock=clock)
    result = issuer.issue_for_signup(EMAIL, "A")

    assert result.notification_failed is True
    account = repository.get_account_by_email(EMAIL)
    assert account is not None
    assert account.verification_code == result.code


def test_raising_sender_is_reported_as_failed_notification(repository, settings, clock):
    class ExplodingSender:
        def send(self, recipient_email, code, display_name):
            raise ConnectionError("smtp down")

    issuer = VerificationCodeIssuer(repository, ExplodingSender(), settings=settings, clock=clock)
    result = issuer.issue_for_signup(EMAIL, "A")
    assert result.notification_failed is True
    assert repository.get_account_by_email(EMAIL) is not None


def test_resend_supersedes_previous_code(issuer, activator, clock):
    first = issuer.issue_for_signup(EMAIL, "A")
    clock.advance(minutes=1)
    second = issuer.issue_for_resend(EMAIL)
    while second.code == first.code:
        second = issuer.issue_for_resend(EMAIL)

    with pytest.raises(InvalidOrExpiredError):
        activator.activate(EMAIL, first.code)
    result = activator.activate(EMAIL, second.code)
    assert result.already_verified is False
    assert result.account.is_verified is True


def test_resend_unknown_and_verified_accounts(issuer, activator):
    with pytest.raises(AccountNotFoundError) as err:
        issuer.issue_for_resend("ghost@allowed.example")
    assert err.value.code == "not_found"

    issued = issuer.issue_for_signup(EMAIL, "A")
    activator.activate(EMAIL, issued.code)
    with pytest.raises(AlreadyVerifiedError):
        issuer.issue_for_resend(EMAIL)


def test_code_at_exact_expiry_is_rejected(issuer, activator, clock):
    issued = issuer.issue_for_signup(EMAIL, "A")
    clock.now = issued.expires_at
    with pytest.raises(InvalidOrExpiredError):
        activator.activate(EMAIL, issued.code)


def test_code_just_before_expiry_is_accepted(issuer, activator, clock):
    issued = issuer.issue_for_signup(EMAIL, "A")
    clock.now = issued.expires_at - timedelta(microseconds=1)
    assert activator.activate(EMAIL, issued.code).account.is_verified is True


def test_failure_reasons_share_one_message(issuer, activator, clock):
    issued = issuer.issue_for_signup(EMAIL, "A")
    wrong = "100000" if issued.code != "100000" else "100001"

    messages = []
    for email, code in (("ghost@allowed.example", issued.code), (EMAIL, wrong)):
        with pytest.raises(InvalidOrExpiredError) as err:
            activator.activate(email, code)
        messages.append(err.value.to_dict())
    clock.advance(minutes=16)
    with pytest.raises(InvalidOrExpiredError) as err:
        activator.activate(EMAIL, issued.code)
    messages.append(err.value.to_dict())

    assert all(m == messages[0] for m in messages)


def test_activation_is_idempotent_and_clears_code(issuer, activator, repository):
    issued = issuer.issue_for_signup(EMAIL, "A")
    assert activator.activate(EMAIL, issued.code).already_verified is False

    again = activator.activate(EMAIL, issued.code)
    assert again.already_verified is True
    account = repository.get_account_by_email(EMAIL)
    assert account.is_verified is True
    assert account.verification_code is None
    assert account.code_expires_at is None


def test_resend_between_check_and_write_defeats_old_code(issuer, activator, repository, monkeypatch):
    issued = issuer.issue_for_signup(EMAIL, "A")
    original = repository.consume_verification_code

    def resend_first(email, code, now):
        # another request reissues the code after the activator read the account
        issuer.issue_for_resend(EMAIL)
        return original(email, code, now)

    monkeypatch.setattr(repository, "consume_verification_code", resend_first)
    monkeypatch.setattr(verification_service, "generate_code", lambda: "999999" if issued.code != "999999" else "888888")

    with pytest.raises(InvalidOrExpiredError):
        activator.activate(EMAIL, issued.code)
    assert repository.get_account_by_email(EMAIL).is_verified is False


def test_activation_between_check_and_write_defeats_resend(issuer, activator, repository, monkeypatch):
    issued = issuer.issue_for_signup(EMAIL, "A")
    original = repository.store_verification_code

    def activate_first(email, code, expires_at):
        activator.activate(EMAIL, issued.code)
        return original(email, code, expires_at)

    monkeypatch.setattr(repository, "store_verification_code", activate_first)
    with pytest.raises(AlreadyVerifiedError):
        issuer.issue_for_resend(EMAIL)
    assert repository.get_account_by_email(EMAIL).verification_code is None
