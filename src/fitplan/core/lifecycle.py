"""
Plan lifecycle controller.

Owns the profile, the committed plan and the lifecycle mode, and runs
generation requests.  Every change to the profile or the committed plan
is announced to subscribers (the persistence synchronizer), which is how
committed state reaches the store.

Admission control: only one generation may be in flight.  A request made
while ``busy`` is True is ignored and reported by returning False; the
generator is not called.
"""

from typing import Callable

from loguru import logger

from .config import ERROR_MESSAGES
from .editing import EditOverlay
from .errors import ErrorKind, ValidationError
from .generator import PlanGenerator, validate_generated_plan
from .metrics import calculate_bmi
from .models import ActiveSection, LifecycleMode, Profile, WorkoutPlan

StateListener = Callable[[Profile, WorkoutPlan | None], None]


class PlanLifecycleController:
    """
    State machine for profile intake and plan generation.

    Attributes:
        profile: Current intake data
        plan: Committed plan, or None
        mode: COLLECTING_INPUT or VIEWING_PLAN
        busy: True while a generation request is in flight
        error: Generic user-facing message for the last failure, or None
        error_kind: Category of ``error``
        show_new_week_message: One-shot advisory set by reset_for_new_plan
        active_day: Index of the selected plan day
        active_section: View section; not persisted
    """

    def __init__(
        self,
        generator: PlanGenerator,
        overlay: EditOverlay | None = None,
        profile: Profile | None = None,
    ):
        self.generator = generator
        self.overlay = overlay if overlay is not None else EditOverlay()
        self.profile: Profile = profile if profile is not None else Profile.blank()
        self.plan: WorkoutPlan | None = None
        self.mode = LifecycleMode.COLLECTING_INPUT
        self.busy = False
        self.error: str | None = None
        self.error_kind: ErrorKind | None = None
        self.show_new_week_message = False
        self.active_day = 0
        self.active_section = ActiveSection.PLAN
        self._generation_token = 0
        self._listeners: list[StateListener] = []

    # -- notifications -----------------------------------------------------

    def subscribe(self, listener: StateListener) -> None:
        """Call *listener(profile, plan)* after every committed-state change."""
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self.profile, self.plan)

    def set_plan(self, plan: WorkoutPlan | None) -> None:
        """Replace the committed plan and announce the change."""
        self.plan = plan
        self._notify()

    # -- errors ------------------------------------------------------------

    def set_error(self, kind: ErrorKind) -> None:
        self.error_kind = kind
        self.error = ERROR_MESSAGES[kind]

    def clear_error(self) -> None:
        self.error_kind = None
        self.error = None

    # -- state installation ------------------------------------------------

    def install(self, profile: Profile, plan: WorkoutPlan | None) -> None:
        """
        Install freshly loaded state without announcing it.

        Loaded state already matches the store, so nothing is written back.
        """
        self.profile = profile
        self.plan = plan
        self.overlay.discard()
        self.mode = LifecycleMode.VIEWING_PLAN if plan is not None else LifecycleMode.COLLECTING_INPUT
        self.active_day = 0
        self.active_section = ActiveSection.PLAN

    def invalidate_generation(self) -> None:
        """Make any in-flight generation result stale."""
        self._generation_token += 1

    # -- operations --------------------------------------------------------

    def update_profile(self, profile: Profile) -> None:
        """
        Replace the profile.

        Raises:
            ValidationError: If *profile* is not a Profile
        """
        if not isinstance(profile, Profile):
            raise ValidationError(f"Expected Profile, got {type(profile).__name__}")
        self.profile = profile
        self._notify()

    async def request_generation(self, profile: Profile | None = None) -> bool:
        """
        Generate and install a new plan.

        The mode switches to VIEWING_PLAN before the generator resolves and
        reverts to COLLECTING_INPUT on failure.  ``busy`` is cleared on
        every path.

        A request made while another generation is in flight is rejected
        without touching any state.

        Args:
            profile: New intake data.  Installed as the current profile
                before generating, so the stored profile always matches the
                plan built from it (default: current profile)

        Returns:
            True if a new plan was installed
        """
        if self.busy:
            logger.warning("Generation already in progress; request ignored")
            return False

        if profile is not None:
            self.update_profile(profile)
        profile = self.profile

        if not profile.free_days:
            self.set_error(ErrorKind.VALIDATION)
            return False

        self.show_new_week_message = False
        self.busy = True
        self.clear_error()
        self.overlay.discard()
        self.active_section = ActiveSection.PLAN
        self.active_day = 0
        self.set_plan(None)
        self.mode = LifecycleMode.VIEWING_PLAN

        self._generation_token += 1
        token = self._generation_token

        try:
            bmi = calculate_bmi(profile.weight, profile.height)
            logger.info(f"Generating plan for {len(profile.free_days)} free days (BMI {bmi})")
            result = await self.generator.generate(profile, bmi)
            generated = validate_generated_plan(result, profile)
        except Exception as e:
            if token != self._generation_token:
                logger.warning(f"Stale generation failed after reset; ignored: {e}")
                return False
            logger.error(f"Plan generation failed: {e!r}")
            self.set_error(ErrorKind.GENERATION)
            self.mode = LifecycleMode.COLLECTING_INPUT
            return False
        finally:
            self.busy = False

        if token != self._generation_token:
            logger.warning("Discarding stale generation result")
            return False

        plan = generated.clone()
        plan.completed_days = []
        self.active_day = 0
        self.mode = LifecycleMode.VIEWING_PLAN
        self.set_plan(plan)
        logger.info(f"Installed {len(plan.plan)}-day plan")
        return True

    def reset_for_new_plan(self) -> None:
        """
        Return to input collection for a new week.

        Clears the plan, draft and error, keeps only the profile name, and
        raises the one-shot "new week" advisory.
        """
        self.invalidate_generation()
        self.mode = LifecycleMode.COLLECTING_INPUT
        self.overlay.discard()
        self.clear_error()
        self.show_new_week_message = True
        self.active_day = 0
        self.profile = self.profile.cleared()
        self.plan = None
        self._notify()

    def consume_new_week_message(self) -> bool:
        """Return the one-shot advisory flag and clear it."""
        shown = self.show_new_week_message
        self.show_new_week_message = False
        return shown
