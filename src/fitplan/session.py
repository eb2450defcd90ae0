"""
Plan session: one authenticated user's view of the engine.

Wires the lifecycle controller, edit overlay, completion tracker and
persistence synchronizer together, and threads the current user through
them.  Frontends (the CLI, or anything embedding fitplan) talk to this
class only.

Usage:
    session = PlanSession(JsonProfileStore(root))
    if await session.open("alice"):
        session.update_profile(profile)
        await session.generate()
        became_complete = await session.log_workout(0)
    await session.close()
"""

from typing import Any, Sequence

from loguru import logger

from .core.completion import CompletionTracker, is_week_complete
from .core.editing import EditCommand, EditOverlay
from .core.errors import ErrorKind, SessionNotLoadedError, StoreLoadError, WorkoutLogError
from .core.generator import PlanGenerator, TemplatePlanGenerator
from .core.lifecycle import PlanLifecycleController
from .core.models import (
    ActiveSection,
    LifecycleMode,
    Profile,
    WorkoutLogEntry,
    WorkoutPlan,
)
from .io.profile_store import ProfileStore
from .io.synchronizer import PersistenceSynchronizer


class PlanSession:
    """Facade over the plan lifecycle engine for a single user at a time."""

    def __init__(self, store: ProfileStore, generator: PlanGenerator | None = None):
        self.store = store
        self.overlay = EditOverlay()
        self.controller = PlanLifecycleController(
            generator if generator is not None else TemplatePlanGenerator(),
            self.overlay,
        )
        self.tracker = CompletionTracker(store)
        self.sync = PersistenceSynchronizer(store)
        self.controller.subscribe(self.sync.on_state_change)
        self.history: list[WorkoutLogEntry] = []
        self.loaded = False

    # -- read-only views ---------------------------------------------------

    @property
    def username(self) -> str | None:
        return self.sync.context.username if self.sync.context is not None else None

    @property
    def profile(self) -> Profile:
        return self.controller.profile

    @property
    def plan(self) -> WorkoutPlan | None:
        return self.controller.plan

    @property
    def draft(self) -> WorkoutPlan | None:
        return self.overlay.draft

    @property
    def mode(self) -> LifecycleMode:
        return self.controller.mode

    @property
    def busy(self) -> bool:
        return self.controller.busy

    @property
    def error(self) -> str | None:
        return self.controller.error

    @property
    def error_kind(self) -> ErrorKind | None:
        return self.controller.error_kind

    @property
    def active_day(self) -> int:
        return self.controller.active_day

    @property
    def active_section(self) -> ActiveSection:
        return self.controller.active_section

    @property
    def is_week_complete(self) -> bool:
        return is_week_complete(self.controller.plan)

    def _require_loaded(self) -> None:
        if not self.loaded:
            raise SessionNotLoadedError("No user data loaded; call open() first")

    # -- user switching ----------------------------------------------------

    async def open(self, username: str) -> bool:
        """
        Load a user's data and key the session to that user.

        Pending writes for the previous user are flushed first, and any
        in-flight generation becomes stale.

        Returns:
            True if the data loaded; False if loading failed (the LOAD
            error is recorded and the session stays unloaded)
        """
        if self.sync.context is not None:
            await self.sync.flush()

        self.controller.invalidate_generation()
        self.loaded = False
        self.history = []
        self.controller.install(Profile.blank(), None)
        self.controller.clear_error()

        try:
            data = await self.sync.load_for_user(username)
        except StoreLoadError:
            self.controller.set_error(ErrorKind.LOAD)
            return False

        profile = data.profile if data.profile is not None else Profile.blank()
        self.controller.install(profile, data.workout_plan)
        self.history = list(data.history)
        self.loaded = True
        return True

    async def close(self) -> None:
        """Wait for pending writes to finish."""
        await self.sync.flush()

    # -- lifecycle ---------------------------------------------------------

    def update_profile(self, profile: Profile) -> None:
        self._require_loaded()
        self.controller.update_profile(profile)

    async def generate(self) -> bool:
        """Generate a plan from the current profile."""
        self._require_loaded()
        return await self.controller.request_generation()

    async def regenerate_with(self, profile: Profile) -> bool:
        """Replace the profile, then generate from it.  Rejected with no change while busy."""
        self._require_loaded()
        return await self.controller.request_generation(profile)

    def reset_for_new_plan(self) -> None:
        self._require_loaded()
        self.controller.reset_for_new_plan()

    def consume_new_week_message(self) -> bool:
        return self.controller.consume_new_week_message()

    def select_day(self, index: int) -> int:
        """Select a plan day, clamped to the plan; returns the selected index."""
        plan = self.controller.plan
        last = len(plan.plan) - 1 if plan is not None and plan.plan else 0
        self.controller.active_day = min(max(index, 0), last)
        return self.controller.active_day

    def change_section(self, section: ActiveSection) -> None:
        """
        Switch the active view section.

        Entering EDITING starts an edit (and is refused without a plan);
        leaving it drops the draft.
        """
        self._require_loaded()
        if section == ActiveSection.EDITING:
            if self.start_edit() is None:
                return
        elif self.controller.active_section == ActiveSection.EDITING and self.overlay.is_editing:
            self.overlay.discard()
        self.controller.active_section = section

    # -- editing -----------------------------------------------------------

    def start_edit(self) -> WorkoutPlan | None:
        self._require_loaded()
        draft = self.overlay.start_edit(self.controller.plan)
        if draft is not None:
            self.controller.active_section = ActiveSection.EDITING
        return draft

    def commit_edit(self) -> bool:
        """Replace the committed plan with the draft."""
        self._require_loaded()
        plan = self.overlay.commit()
        if plan is None:
            return False
        # Ledger comes from the committed plan, not the draft
        current = self.controller.plan
        if current is not None:
            labels = set(plan.day_labels())
            plan.completed_days = [d for d in current.completed_days if d in labels]
        self.controller.set_plan(plan)
        self.controller.active_section = ActiveSection.PLAN
        self.select_day(self.controller.active_day)
        return True

    def discard_edit(self) -> None:
        self.overlay.discard()
        if self.controller.active_section == ActiveSection.EDITING:
            self.controller.active_section = ActiveSection.PLAN

    def apply_edit(self, command: EditCommand) -> bool:
        return self.overlay.apply(command)

    def set_field(self, path: Sequence[Any], value: Any) -> bool:
        return self.overlay.set_field(path, value)

    def add_exercise(self, day_index: int, group_index: int) -> bool:
        return self.overlay.add_exercise(day_index, group_index)

    def delete_exercise(self, day_index: int, group_index: int, exercise_index: int) -> bool:
        return self.overlay.delete_exercise(day_index, group_index, exercise_index)

    # -- completion --------------------------------------------------------

    async def log_workout(self, day_index: int) -> bool:
        """
        Log the workout for one plan day.

        Returns:
            True if this log completed the week

        Raises:
            ValidationError: If day_index is out of range
        """
        self._require_loaded()
        plan = self.controller.plan
        if plan is None:
            return False

        try:
            outcome = await self.tracker.log_workout(self.username, plan, day_index)
        except WorkoutLogError:
            self.controller.set_error(ErrorKind.LOG_WORKOUT)
            return False

        self.history.insert(0, outcome.entry)

        if self.controller.plan is not plan:
            logger.warning("Plan replaced while logging; ledger of the new plan left unchanged")
            return False

        if outcome.next_day_index is not None:
            self.controller.active_day = outcome.next_day_index
        self.controller.set_plan(outcome.plan)
        if self.is_week_complete:
            self.controller.active_section = ActiveSection.PLAN
        return outcome.became_complete
