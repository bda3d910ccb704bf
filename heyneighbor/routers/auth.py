from __future__ import annotations

from typing import Optional, Union

from fastapi import APIRouter, Request
from pydantic import BaseModel

from heyneighbor.core.rate_limiter import rate_limit_ip, rate_limit_key
from heyneighbor.domain.emails import normalize_email
from heyneighbor.services.auth_service import AuthService, NotificationFailedError
from heyneighbor.services.presenters import account_to_dict

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupBody(BaseModel):
    email: str = ""
    name: str = ""
    password: Optional[str] = None


class LoginBody(BaseModel):
    email: str = ""
    password: Optional[str] = None


class VerifyBody(BaseModel):
    email: str = ""
    code: Union[str, int] = ""


class ResendBody(BaseModel):
    email: str = ""


def _auth_service(request: Request) -> AuthService:
    svc = getattr(getattr(request.app, "state", None), "auth_service", None)
    if not svc:
        raise RuntimeError("AuthService not configured")
    return svc


def _limit(request: Request, scope: str, email: str) -> None:
    """Limit code traffic per client address and per target account."""
    settings = request.app.state.settings
    rate_limit_ip(
        request,
        scope,
        limit=settings.verify_rate_limit,
        window_seconds=settings.verify_rate_window_seconds,
        trusted_proxies=settings.trusted_proxies,
    )
    email = normalize_email(email)
    if email:
        rate_limit_key(
            request,
            f"{scope}:email:{email}",
            limit=settings.verify_rate_limit,
            window_seconds=settings.verify_rate_window_seconds,
        )


@router.post("/signup")
def signup(body: SignupBody, request: Request):
    result = _auth_service(request).signup(body.email, body.name, body.password)
    return {
        "status": "pending_verification",
        "message": "Signup successful. Please check your email for a verification code.",
        "requiresVerification": True,
        "email": result.email,
        "notification": "sent" if result.email_sent else "failed",
    }


@router.post("/resend-verification")
def resend_verification(body: ResendBody, request: Request):
    _limit(request, "auth:resend", body.email)
    result = _auth_service(request).resend(body.email)
    if not result.email_sent:
        raise NotificationFailedError("A new code was issued but the email could not be sent. Try again shortly.")
    return {"status": "sent", "message": "Verification code sent. Please check your email."}


@router.post("/verify-code")
def verify_code(body: VerifyBody, request: Request):
    _limit(request, "auth:verify", body.email)
    result = _auth_service(request).verify(body.email, str(body.code))
    if result.already_verified:
        return {"status": "already_verified", "message": "Email already verified", "user": account_to_dict(result.account)}
    return {"status": "verified", "message": "Email verified successfully!", "user": account_to_dict(result.account)}


@router.post("/login")
def login(body: LoginBody, request: Request):
    account = _auth_service(request).login(body.email, body.password)
    return {"message": "Login successful", "user": account_to_dict(account)}
