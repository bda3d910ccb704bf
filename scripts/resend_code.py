#!/usr/bin/env python3
"""
Reissue a verification code for an unverified account (operator recovery
after a failed verification email).

Usage:
  python scripts/resend_code.py --email someone@calvin.edu [--show-code]
"""
from __future__ import annotations

import argparse
import sys

from heyneighbor.app import configure_logging
from heyneighbor.core.config import get_settings
from heyneighbor.core.mailer import SMTPNotificationSender
from heyneighbor.db.session import Database
from heyneighbor.repositories.sql_repository import SQLRepository
from heyneighbor.services.errors import ServiceError
from heyneighbor.services.verification_service import VerificationCodeIssuer


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Reissue a verification code")
    ap.add_argument("--email", required=True, help="Email of the unverified account")
    ap.add_argument("--show-code", action="store_true", help="Print the new code (delivery fallback)")
    args = ap.parse_args(argv)

    settings = get_settings()
    configure_logging(settings)
    database = Database(settings.database_url)
    try:
        issuer = VerificationCodeIssuer(SQLRepository(database), SMTPNotificationSender(settings), settings=settings)
        try:
            result = issuer.issue_for_resend(args.email)
        except ServiceError as exc:
            sys.stderr.write(f"Error ({exc.code}): {exc.message}\n")
            return 1
    finally:
        database.dispose()

    print("OK: verification code reissued")
    print(f"  Email: {result.account.email}")
    print(f"  Expires at: {result.expires_at.isoformat()}")
    print(f"  Email sent: {'no' if result.notification_failed else 'yes'}")
    if args.show_code:
        print(f"  Code: {result.code}")
    return 0 if not result.notification_failed else 2


if __name__ == "__main__":
    raise SystemExit(main())
