"""
Per-user profile and workout log storage.

The engine depends only on the async ProfileStore protocol.  Two
implementations are provided:

- JsonProfileStore: one directory per user holding profile.json
  (overwritten on save) and workout_log.jsonl (one entry per line,
  append-only).
- MemoryProfileStore: in-process store for embedding and tests.
"""

import asyncio
import copy
import json
import os
import re
import tempfile
from pathlib import Path
from typing import Protocol

from ..core.config import (
    PROFILE_FILENAME,
    USERS_DIRNAME,
    WORKOUT_LOG_FILENAME,
    get_data_root,
)
from ..core.errors import StoreLoadError, StoreWriteError, ValidationError
from ..core.models import StoredProfile, WorkoutLogEntry
from .serializers import (
    dict_to_log_entry,
    dict_to_stored_profile,
    log_entry_to_json_line,
    stored_profile_to_dict,
)

_USERNAME_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]*$")


def validate_username(username: str) -> str:
    """
    Validate a username for use as a storage key.

    Raises:
        ValidationError: If the username is empty, starts with a dot or
            contains characters other than letters, digits, '_', '-', '.'
    """
    if not isinstance(username, str) or not _USERNAME_RE.match(username):
        raise ValidationError(
            f"Invalid username: {username!r}. Use letters, digits, '_', '-' or '.'"
        )
    return username


class ProfileStore(Protocol):
    """Async per-user storage contract."""

    async def get_profile(self, username: str) -> StoredProfile | None: ...

    async def save_profile(self, stored: StoredProfile) -> None: ...

    async def get_workout_logs(self, username: str) -> list[WorkoutLogEntry]: ...

    async def add_workout_log(self, username: str, entry: WorkoutLogEntry) -> None: ...


class JsonProfileStore:
    """
    Stores each user's data as JSON files under ``<root>/users/<username>/``.

    File I/O runs in worker threads so the event loop is never blocked.
    """

    def __init__(self, root: str | Path | None = None):
        """
        Initialize the store.

        Args:
            root: Storage root (default: $FITPLAN_HOME or ~/.fitplan)
        """
        self.root = Path(root) if root is not None else get_data_root()

    def user_dir(self, username: str) -> Path:
        return self.root / USERS_DIRNAME / validate_username(username)

    def profile_path(self, username: str) -> Path:
        return self.user_dir(username) / PROFILE_FILENAME

    def log_path(self, username: str) -> Path:
        return self.user_dir(username) / WORKOUT_LOG_FILENAME

    # -- sync implementations ----------------------------------------------

    def _read_profile(self, username: str) -> StoredProfile | None:
        path = self.profile_path(username)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return dict_to_stored_profile(data)
        except (OSError, json.JSONDecodeError, ValidationError) as e:
            raise StoreLoadError(f"Could not read {path}: {e}") from e

    def _write_profile(self, stored: StoredProfile) -> None:
        path = self.profile_path(stored.username)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Write to a temp file, then rename over the profile
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=".profile-", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(stored_profile_to_dict(stored), f, indent=2)
                os.replace(tmp, path)
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            raise StoreWriteError(f"Could not write {path}: {e}") from e

    def _read_logs(self, username: str) -> list[WorkoutLogEntry]:
        path = self.log_path(username)
        if not path.exists():
            return []

        entries: list[WorkoutLogEntry] = []
        try:
            with open(path, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        entries.append(dict_to_log_entry(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError) as e:
                        raise StoreLoadError(
                            f"Error parsing line {line_num} in {path}: {e}"
                        ) from e
        except OSError as e:
            raise StoreLoadError(f"Could not read {path}: {e}") from e

        # Stored oldest first; callers get most recent first
        entries.reverse()
        return entries

    def _append_log(self, username: str, entry: WorkoutLogEntry) -> None:
        path = self.log_path(username)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "a", encoding="utf-8") as f:
                f.write(log_entry_to_json_line(entry, username) + "\n")
        except OSError as e:
            raise StoreWriteError(f"Could not append to {path}: {e}") from e

    # -- ProfileStore ------------------------------------------------------

    async def get_profile(self, username: str) -> StoredProfile | None:
        """
        Load the stored profile for a user.

        Returns:
            StoredProfile, or None if the user has none yet

        Raises:
            StoreLoadError: If the file exists but cannot be read or parsed
        """
        return await asyncio.to_thread(self._read_profile, username)

    async def save_profile(self, stored: StoredProfile) -> None:
        """Overwrite the user's profile.json."""
        await asyncio.to_thread(self._write_profile, stored)

    async def get_workout_logs(self, username: str) -> list[WorkoutLogEntry]:
        """Return all log entries, most recent first."""
        return await asyncio.to_thread(self._read_logs, username)

    async def add_workout_log(self, username: str, entry: WorkoutLogEntry) -> None:
        """Append one log entry; raises StoreWriteError on failure."""
        await asyncio.to_thread(self._append_log, username, entry)


class MemoryProfileStore:
    """In-process ProfileStore.  Stores and returns deep copies."""

    def __init__(self) -> None:
        self.profiles: dict[str, StoredProfile] = {}
        self.logs: dict[str, list[WorkoutLogEntry]] = {}
        self.save_count = 0

    async def get_profile(self, username: str) -> StoredProfile | None:
        stored = self.profiles.get(validate_username(username))
        return copy.deepcopy(stored) if stored is not None else None

    async def save_profile(self, stored: StoredProfile) -> None:
        self.profiles[validate_username(stored.username)] = copy.deepcopy(stored)
        self.save_count += 1

    async def get_workout_logs(self, username: str) -> list[WorkoutLogEntry]:
        return list(reversed(self.logs.get(validate_username(username), [])))

    async def add_workout_log(self, username: str, entry: WorkoutLogEntry) -> None:
        self.logs.setdefault(validate_username(username), []).append(entry)
