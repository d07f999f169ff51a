"""Onboarding error taxonomy.

Validation outcomes (out of order, already completed) are not errors; they
are reported through ``CompletionStatus``. Step documents that fail to parse
are logged and skipped by the loader.
"""

__all__ = [
    "OnboardingError",
    "IdentityUnresolvedError",
    "InvalidEmailError",
    "InvalidStepDataError",
    "StorageUnavailableError",
]


class OnboardingError(Exception):
    """Base class for all onboarding errors."""

    pass


class IdentityUnresolvedError(OnboardingError):
    """No employee email was supplied and none could be detected.

    The tool layer turns this into a prompt to call ``register_employee``.
    """

    pass


class InvalidEmailError(OnboardingError):
    """An email is malformed or cannot name a profile record."""

    pass


class InvalidStepDataError(OnboardingError):
    """Fields for a step record do not fit its typed keys."""

    pass


class StorageUnavailableError(OnboardingError):
    """The profile store could not be read or written."""

    def __init__(self, message: str, path: str | None = None):
        """Initialize StorageUnavailableError.

        Args:
            message: Error description.
            path: File or directory that failed, when known.
        """
        super().__init__(message)
        self.path = path
