"""
Tests for the plan lifecycle controller: admission control, mode
transitions, error reporting, stale generation results and reset.
"""

import asyncio

import pytest

from fitplan.core.config import ERROR_MESSAGES
from fitplan.core.editing import EditOverlay
from fitplan.core.errors import ErrorKind, ValidationError
from fitplan.core.lifecycle import PlanLifecycleController
from fitplan.core.models import (
    ActiveSection,
    Exercise,
    LifecycleMode,
    MuscleGroup,
    PlanDay,
    Profile,
    WorkoutPlan,
)


def _make_profile(free_days: list[str] | None = None) -> Profile:
    return Profile(
        name="Sam",
        weight="70",
        height="175",
        free_days=["Monday", "Thursday"] if free_days is None else free_days,
        fitness_level="beginner",
        goal="lose weight",
        max_session_time="45",
    )


def _make_plan(labels: list[str], completed: list[str] | None = None) -> WorkoutPlan:
    return WorkoutPlan(
        plan=[
            PlanDay(
                day=label,
                muscle_groups=[MuscleGroup("Legs", [Exercise("Squat", "3", "12")])],
                focus="Full Body",
                approximate_time="40 minutes",
                calories_burned=250,
            )
            for label in labels
        ],
        summary="Generated",
        completed_days=list(completed or []),
    )


class StubGenerator:
    """Returns a fixed plan (or raises) and records every call."""

    def __init__(self, result=None, error: Exception | None = None):
        self.result = result
        self.error = error
        self.calls: list[tuple[Profile, float]] = []

    async def generate(self, profile, bmi):
        self.calls.append((profile, bmi))
        if self.error is not None:
            raise self.error
        if self.result is not None:
            return self.result
        return _make_plan(profile.free_days)


class GatedGenerator(StubGenerator):
    """Blocks inside generate() until ``release`` is set."""

    def __init__(self, result=None, error: Exception | None = None):
        super().__init__(result, error)
        self.started = asyncio.Event()
        self.release = asyncio.Event()

    async def generate(self, profile, bmi):
        self.started.set()
        await self.release.wait()
        return await super().generate(profile, bmi)


def _controller(generator=None, profile: Profile | None = None):
    controller = PlanLifecycleController(
        generator if generator is not None else StubGenerator(),
        EditOverlay(),
        profile if profile is not None else _make_profile(),
    )
    snapshots: list[tuple[Profile, WorkoutPlan | None]] = []
    controller.subscribe(lambda p, plan: snapshots.append((p, plan)))
    return controller, snapshots


class TestRequestGeneration:
    @pytest.mark.asyncio
    async def test_success_installs_plan(self):
        generator = StubGenerator()
        controller, _ = _controller(generator)

        assert await controller.request_generation() is True
        assert controller.mode == LifecycleMode.VIEWING_PLAN
        assert controller.plan.day_labels() == ["Monday", "Thursday"]
        assert controller.busy is False
        assert controller.error is None
        assert controller.active_day == 0
        assert controller.active_section == ActiveSection.PLAN

    @pytest.mark.asyncio
    async def test_bmi_passed_to_generator(self):
        """70 kg / 1.75^2 = 22.9"""
        generator = StubGenerator()
        controller, _ = _controller(generator)

        await controller.request_generation()
        assert generator.calls[0][1] == 22.9

    @pytest.mark.asyncio
    async def test_generated_ledger_is_always_empty(self):
        generator = StubGenerator(result=_make_plan(["Monday", "Thursday"], ["Monday"]))
        controller, _ = _controller(generator)

        await controller.request_generation()
        assert controller.plan.completed_days == []

    @pytest.mark.asyncio
    async def test_installed_plan_is_a_copy_of_generator_result(self):
        result = _make_plan(["Monday", "Thursday"])
        controller, _ = _controller(StubGenerator(result=result))

        await controller.request_generation()
        assert controller.plan == result
        assert controller.plan is not result

    @pytest.mark.asyncio
    async def test_empty_free_days_never_calls_generator(self):
        generator = StubGenerator()
        controller, snapshots = _controller(generator, _make_profile(free_days=[]))

        assert await controller.request_generation() is False
        assert generator.calls == []
        assert controller.error_kind == ErrorKind.VALIDATION
        assert controller.error == ERROR_MESSAGES[ErrorKind.VALIDATION]
        assert controller.mode == LifecycleMode.COLLECTING_INPUT
        assert snapshots == []

    @pytest.mark.asyncio
    async def test_generator_failure(self):
        controller, _ = _controller(StubGenerator(error=RuntimeError("upstream 500")))

        assert await controller.request_generation() is False
        assert controller.mode == LifecycleMode.COLLECTING_INPUT
        assert controller.plan is None
        assert controller.busy is False
        assert controller.error_kind == ErrorKind.GENERATION
        assert "upstream" not in controller.error

    @pytest.mark.asyncio
    async def test_malformed_result_is_a_generation_failure(self):
        controller, _ = _controller(StubGenerator(result=_make_plan(["Monday"])))

        assert await controller.request_generation() is False
        assert controller.error_kind == ErrorKind.GENERATION
        assert controller.plan is None

    @pytest.mark.asyncio
    async def test_new_request_clears_previous_error(self):
        controller, _ = _controller(StubGenerator(), _make_profile(free_days=[]))
        await controller.request_generation()
        assert controller.error is not None

        controller.update_profile(_make_profile())
        assert await controller.request_generation() is True
        assert controller.error is None

    @pytest.mark.asyncio
    async def test_optimistic_mode_and_busy_while_in_flight(self):
        generator = GatedGenerator()
        controller, _ = _controller(generator)
        controller.plan = _make_plan(["Monday", "Thursday"])

        task = asyncio.create_task(controller.request_generation())
        await generator.started.wait()

        assert controller.busy is True
        assert controller.mode == LifecycleMode.VIEWING_PLAN
        assert controller.plan is None

        generator.release.set()
        assert await task is True
        assert controller.busy is False

    @pytest.mark.asyncio
    async def test_overlapping_request_is_ignored(self):
        generator = GatedGenerator()
        controller, _ = _controller(generator)

        first = asyncio.create_task(controller.request_generation())
        await generator.started.wait()

        assert await controller.request_generation() is False
        assert len(generator.calls) == 0  # first call still blocked before recording

        generator.release.set()
        assert await first is True
        assert len(generator.calls) == 1

    @pytest.mark.asyncio
    async def test_generation_discards_draft(self):
        controller, _ = _controller()
        controller.plan = _make_plan(["Monday", "Thursday"])
        controller.overlay.start_edit(controller.plan)

        await controller.request_generation()
        assert controller.overlay.draft is None

    @pytest.mark.asyncio
    async def test_explicit_profile_argument(self):
        generator = StubGenerator()
        controller, _ = _controller(generator, _make_profile(free_days=[]))

        new_profile = _make_profile(["Tuesday"])
        assert await controller.request_generation(new_profile) is True
        assert controller.plan.day_labels() == ["Tuesday"]
        assert controller.profile is new_profile
        assert generator.calls[0][0] is new_profile

    @pytest.mark.asyncio
    async def test_explicit_profile_saved_alongside_plan(self):
        controller, snapshots = _controller()
        new_profile = _make_profile(["Tuesday", "Saturday"])

        await controller.request_generation(new_profile)

        profile, plan = snapshots[-1]
        assert profile is new_profile
        assert plan.day_labels() == ["Tuesday", "Saturday"]

    @pytest.mark.asyncio
    async def test_overlapping_request_leaves_profile_untouched(self):
        generator = GatedGenerator()
        original = _make_profile(["Monday"])
        controller, snapshots = _controller(generator, original)

        first = asyncio.create_task(controller.request_generation())
        await generator.started.wait()
        seen = len(snapshots)

        assert await controller.request_generation(_make_profile(["Friday", "Sunday"])) is False
        assert controller.profile is original
        assert len(snapshots) == seen

        generator.release.set()
        assert await first is True
        assert controller.plan.day_labels() == ["Monday"]
        assert snapshots[-1][0] is original


class TestStaleGeneration:
    @pytest.mark.asyncio
    async def test_result_after_reset_is_dropped(self):
        generator = GatedGenerator()
        controller, _ = _controller(generator)

        task = asyncio.create_task(controller.request_generation())
        await generator.started.wait()
        controller.reset_for_new_plan()

        generator.release.set()
        assert await task is False
        assert controller.plan is None
        assert controller.mode == LifecycleMode.COLLECTING_INPUT
        assert controller.busy is False

    @pytest.mark.asyncio
    async def test_failure_after_reset_sets_no_error(self):
        generator = GatedGenerator(error=RuntimeError("boom"))
        controller, _ = _controller(generator)

        task = asyncio.create_task(controller.request_generation())
        await generator.started.wait()
        controller.invalidate_generation()

        generator.release.set()
        assert await task is False
        assert controller.error is None


class TestNotifications:
    @pytest.mark.asyncio
    async def test_generation_announces_cleared_then_new_plan(self):
        controller, snapshots = _controller()
        await controller.request_generation()

        assert [plan is None for _, plan in snapshots] == [True, False]
        assert snapshots[-1][1] is controller.plan

    def test_update_profile_announces(self):
        controller, snapshots = _controller()
        profile = _make_profile(["Sunday"])
        controller.update_profile(profile)

        assert controller.profile is profile
        assert snapshots == [(profile, None)]

    def test_update_profile_rejects_other_types(self):
        controller, _ = _controller()
        with pytest.raises(ValidationError):
            controller.update_profile({"name": "Sam"})

    def test_install_does_not_announce(self):
        controller, snapshots = _controller()
        controller.install(_make_profile(), _make_plan(["Monday"]))

        assert snapshots == []
        assert controller.mode == LifecycleMode.VIEWING_PLAN


class TestResetForNewPlan:
    def test_clears_everything_but_name(self):
        controller, snapshots = _controller()
        controller.plan = _make_plan(["Monday", "Thursday"], ["Monday"])
        controller.active_day = 1
        controller.overlay.start_edit(controller.plan)
        controller.set_error(ErrorKind.GENERATION)

        controller.reset_for_new_plan()

        assert controller.mode == LifecycleMode.COLLECTING_INPUT
        assert controller.plan is None
        assert controller.overlay.draft is None
        assert controller.error is None
        assert controller.active_day == 0
        assert controller.profile == Profile(name="Sam")
        assert snapshots[-1] == (Profile(name="Sam"), None)

    def test_new_week_message_is_one_shot(self):
        controller, _ = _controller()
        controller.reset_for_new_plan()

        assert controller.consume_new_week_message() is True
        assert controller.consume_new_week_message() is False

    @pytest.mark.asyncio
    async def test_generation_clears_new_week_message(self):
        controller, _ = _controller()
        controller.reset_for_new_plan()
        controller.update_profile(_make_profile())

        await controller.request_generation()
        assert controller.show_new_week_message is False
