"""
Persistence synchronizer.

Loads a user's durable state and writes committed state back whenever it
changes.  Two rules govern it:

- Load gate: nothing is written for a user until that user's load has
  completed successfully.  Otherwise default in-memory state could
  overwrite what is stored.
- Best-effort writes: saving is fire-and-forget.  Snapshots are drained
  by a single background task (so writes for a user never overlap), only
  the newest pending snapshot is kept, and each snapshot gets
  SAVE_MAX_ATTEMPTS attempts before it is dropped.  Failures are logged,
  never surfaced; in-memory state stays authoritative for the session.
"""

import asyncio
import copy
from dataclasses import dataclass

from loguru import logger

from ..core.config import SAVE_MAX_ATTEMPTS
from ..core.errors import StoreLoadError
from ..core.models import LoadedUserData, Profile, StoredProfile, WorkoutPlan
from .profile_store import ProfileStore, validate_username


@dataclass
class UserContext:
    """The user the engine is currently keyed to, and the load-gate state."""

    username: str
    load_complete: bool = False


class PersistenceSynchronizer:
    """Gates and performs writes of committed state to a ProfileStore."""

    def __init__(self, store: ProfileStore, max_attempts: int = SAVE_MAX_ATTEMPTS):
        self.store = store
        self.max_attempts = max(1, max_attempts)
        self.context: UserContext | None = None
        self._pending: StoredProfile | None = None
        self._worker: asyncio.Task | None = None

    @property
    def gate_open(self) -> bool:
        return self.context is not None and self.context.load_complete

    async def load_for_user(self, username: str) -> LoadedUserData:
        """
        Load profile and workout history for a user.

        Switching users closes the gate until this load has finished.  The
        gate opens only when the load succeeds.

        Args:
            username: Authenticated user whose data to load

        Returns:
            LoadedUserData; ``profile`` is None if the user has no stored
            profile yet

        Raises:
            ValidationError: If the username is not a valid storage key
            StoreLoadError: If stored data cannot be read
        """
        validate_username(username)
        self.context = UserContext(username=username)
        context = self.context

        try:
            stored = await self.store.get_profile(username)
            history = await self.store.get_workout_logs(username)
        except Exception as e:
            logger.error(f"Failed to load data for {username!r}: {e}")
            raise StoreLoadError(f"Could not load data for {username!r}") from e

        if self.context is not context:
            # Another user was opened while this load was in flight
            raise StoreLoadError(f"Load for {username!r} superseded")

        context.load_complete = True
        logger.debug(f"Loaded {username!r}: profile={'yes' if stored else 'no'}, {len(history)} log entries")

        if stored is None:
            return LoadedUserData(profile=None, workout_plan=None, history=history)
        return LoadedUserData(
            profile=stored.user_data,
            workout_plan=stored.workout_plan,
            history=history,
        )

    def on_state_change(self, profile: Profile, plan: WorkoutPlan | None) -> None:
        """
        Schedule a write of the current committed state.

        Does nothing while the load gate is closed.  Must be called from
        within a running event loop.
        """
        context = self.context
        if context is None or not context.load_complete:
            logger.debug("Load gate closed; state change not persisted")
            return

        self._pending = StoredProfile(
            username=context.username,
            user_data=copy.deepcopy(profile),
            workout_plan=plan.clone() if plan is not None else None,
        )
        if self._worker is None or self._worker.done():
            self._worker = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending is not None:
            snapshot, self._pending = self._pending, None
            await self._write(snapshot)

    async def _write(self, snapshot: StoredProfile) -> None:
        for attempt in range(1, self.max_attempts + 1):
            try:
                await self.store.save_profile(snapshot)
                logger.debug(f"Saved profile for {snapshot.username!r}")
                return
            except Exception as e:
                logger.warning(
                    f"Failed to save profile for {snapshot.username!r}"
                    f" (attempt {attempt}/{self.max_attempts}): {e}"
                )
        logger.error(f"Dropping unsaved profile snapshot for {snapshot.username!r}")

    async def flush(self) -> None:
        """Wait until every scheduled write has been attempted."""
        while self._worker is not None and not self._worker.done():
            await self._worker
