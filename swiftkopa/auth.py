"""Admin allow-list for the review dashboard.

Sign-in itself is handled by the identity provider; this module only
decides whether an already authenticated email may see applications.
"""
import os

from swiftkopa.config import ADMIN_EMAILS_ENV
from swiftkopa.exceptions import AccessDeniedError


def load_admin_emails(raw=None):
    """Parse a comma separated allow-list (default: the environment variable)."""
    if raw is None:
        raw = os.environ.get(ADMIN_EMAILS_ENV, "")
    return frozenset(
        email.strip().lower() for email in raw.split(",") if email.strip()
    )


def is_admin_email(email, allowed=None) -> bool:
    if not email:
        return False
    if allowed is None:
        allowed = load_admin_emails()
    return email.strip().lower() in allowed


def require_admin(email, allowed=None):
    """Return the normalized email, or raise AccessDeniedError."""
    if not is_admin_email(email, allowed):
        raise AccessDeniedError(email)
    return email.strip().lower()
