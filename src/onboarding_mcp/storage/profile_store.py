"""JSON file store for employee profiles.

Layout under ``data_path``::

    <email>.json            one record per employee
    progress-index.json     derived summary, rebuilt on every save
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from onboarding_mcp.errors import InvalidEmailError, StorageUnavailableError
from onboarding_mcp.models.profile import (
    EmployeeProfile,
    ProgressIndex,
    ProgressIndexEntry,
    utc_now,
)

logger = logging.getLogger(__name__)

INDEX_FILENAME = "progress-index.json"


def normalize_email(email: str) -> str:
    return email.strip().lower()


class ProfileStore:
    """Reads and writes one JSON record per employee."""

    def __init__(self, data_path: str | Path) -> None:
        self.data_path = Path(data_path)

    @property
    def index_path(self) -> Path:
        return self.data_path / INDEX_FILENAME

    def profile_path(self, email: str) -> Path:
        """Record path for ``email``, always directly inside ``data_path``.

        Raises:
            InvalidEmailError: If the email would name a file elsewhere.
        """
        name = normalize_email(email)
        if not name or "/" in name or "\\" in name:
            raise InvalidEmailError(f"Invalid email address: {email}")
        path = self.data_path / f"{name}.json"
        if path.resolve().parent != self.data_path.resolve():
            raise InvalidEmailError(f"Invalid email address: {email}")
        return path

    def _profile_files(self) -> list[Path]:
        if not self.data_path.is_dir():
            return []
        return sorted(
            p for p in self.data_path.glob("*.json") if p.name != INDEX_FILENAME
        )

    def _read(self, path: Path) -> EmployeeProfile:
        try:
            return EmployeeProfile.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise StorageUnavailableError(f"Cannot read profile {path.name}: {e}", str(path)) from e
        except ValidationError as e:
            raise StorageUnavailableError(f"Corrupt profile {path.name}: {e}", str(path)) from e

    def load(self, email: str) -> EmployeeProfile | None:
        """Stored profile for ``email``, or None if there is none."""
        path = self.profile_path(email)
        if not path.exists():
            return None
        return self._read(path)

    def save(self, profile: EmployeeProfile) -> EmployeeProfile:
        """Write ``profile``, refreshing ``metadata.last_updated``."""
        path = self.profile_path(profile.email)
        now = utc_now()
        record = profile.model_copy(
            update={"metadata": profile.metadata.model_copy(update={"last_updated": now})}
        )
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            self.data_path.mkdir(parents=True, exist_ok=True)
            # Readers never see a half-written record
            tmp_path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
            tmp_path.replace(path)
        except OSError as e:
            raise StorageUnavailableError(f"Cannot write profile {path.name}: {e}", str(path)) from e

        profile.metadata.last_updated = now
        self.rebuild_index()
        return profile

    def list_profiles(self) -> list[EmployeeProfile]:
        """All readable profiles, most recently updated first."""
        profiles = []
        for path in self._profile_files():
            try:
                profiles.append(self._read(path))
            except StorageUnavailableError as e:
                logger.warning("Skipping profile: %s", e)
        profiles.sort(key=lambda p: p.metadata.last_updated, reverse=True)
        return profiles

    def profile_emails(self) -> list[str]:
        return [p.stem for p in self._profile_files()]

    def rebuild_index(self) -> ProgressIndex | None:
        """Regenerate the progress index from the profile records.

        The index is derived data, so failures are logged and not raised.
        """
        profiles = self.list_profiles()
        index = ProgressIndex(
            total_employees=len(profiles),
            profiles=[
                ProgressIndexEntry(
                    email=p.email,
                    current_step=p.current_step,
                    last_updated=p.metadata.last_updated,
                )
                for p in profiles
            ],
        )
        try:
            self.index_path.write_text(index.model_dump_json(indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning("Failed to update progress index: %s", e)
            return None
        return index
