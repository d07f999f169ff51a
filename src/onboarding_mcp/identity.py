"""Employee identity detection.

Works out whose onboarding a tool call is about when no email is given:
corporate environment variables first, then a Windows domain login, then
a lone existing profile.
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping

from onboarding_mcp.errors import IdentityUnresolvedError, InvalidEmailError
from onboarding_mcp.storage.profile_store import ProfileStore, normalize_email

logger = logging.getLogger(__name__)

# Path separators are excluded: the address names the profile file
_EMAIL_RE = re.compile(r"^[^\s@/\\]+@[^\s@/\\]+\.[^\s@/\\]+$")

EMAIL_ENV_VARS = ("USER_EMAIL", "USERPRINCIPALNAME", "OFFICE_365_EMAIL")


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def domain_login_candidates(username: str, domain: str) -> list[str]:
    """Addresses a ``DOMAIN\\username`` login may map to, in order of preference."""
    domain = domain.lower()
    return [f"{username}@{domain}.com", f"{username}@{domain}.onmicrosoft.com"]


class EmployeeIdentifier:
    """Resolves the current employee's email."""

    def __init__(self, store: ProfileStore, environ: Mapping[str, str] | None = None) -> None:
        self.store = store
        self.environ = os.environ if environ is None else environ

    def resolve_email(self, email: str | None = None) -> str:
        """Return a normalized email for the current employee.

        Raises:
            InvalidEmailError: If ``email`` is given but is not an address.
            IdentityUnresolvedError: If no email was given or detected.
        """
        if email:
            normalized = normalize_email(email)
            if not is_valid_email(normalized):
                raise InvalidEmailError(f"Invalid email address: {email}")
            return normalized

        for var in EMAIL_ENV_VARS:
            value = self.environ.get(var)
            if value and is_valid_email(value.strip()):
                logger.debug("Employee email taken from %s", var)
                return normalize_email(value)

        username = self.environ.get("USERNAME")
        domain = self.environ.get("USERDOMAIN")
        if username and domain and domain != username:
            candidates = [
                normalize_email(c)
                for c in domain_login_candidates(username, domain)
                if is_valid_email(c)
            ]
            # A candidate already on file wins over the first well-formed one
            known = set(self.store.profile_emails())
            for candidate in candidates:
                if candidate in known:
                    logger.debug("Employee email matched domain login to %s", candidate)
                    return candidate
            if candidates:
                logger.debug("Employee email derived from domain login")
                return candidates[0]

        emails = self.store.profile_emails()
        if len(emails) == 1:
            return emails[0]

        raise IdentityUnresolvedError(
            "Could not determine the employee email; register the employee first."
        )
