#!/usr/bin/env python3
"""
Send a test message through the configured email transport.

Usage:
    python -m alumni_portal.scripts.send_test_email you@example.com
"""

import argparse
from typing import List, Optional

from alumni_portal.core.config import settings
from alumni_portal.scripts import run_script
from alumni_portal.services.email_service import email_service


async def run(to_email: str) -> int:
    print(f"[EmailTest] Transport: {email_service.transport}")
    if email_service.transport == "smtp":
        print(f"[EmailTest] SMTP: {settings.SMTP_HOST}:{settings.SMTP_PORT} as {settings.SMTP_USER or '(no user)'}")
    print(f"[EmailTest] From: {settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM}>")

    if not email_service.is_configured:
        print("[EmailTest] ERROR: Email is not configured. Set SENDGRID_API_KEY or SMTP_USER/SMTP_PASSWORD.")
        return 1

    print(f"[EmailTest] Sending test email to {to_email}...")
    if not await email_service.send_test_email(to_email):
        print("[EmailTest] FAILED: see the log for the transport error")
        return 1

    print("[EmailTest] Test email sent")
    return 0


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Send a test email")
    parser.add_argument("to", help="Recipient address")
    args = parser.parse_args(argv)
    run_script(run(args.to))


if __name__ == "__main__":
    main()
