"""
Tests for the persistence synchronizer: the load gate, coalesced
background writes and the retry-then-drop policy.
"""

import asyncio

import pytest

from fitplan.core.errors import StoreLoadError, StoreWriteError, ValidationError
from fitplan.core.models import PlanDay, Profile, StoredProfile, WorkoutPlan
from fitplan.io.profile_store import MemoryProfileStore
from fitplan.io.synchronizer import PersistenceSynchronizer


def _make_stored(username: str = "alice") -> StoredProfile:
    return StoredProfile(
        username=username,
        user_data=Profile(name="Alice", free_days=["Monday"]),
        workout_plan=WorkoutPlan(plan=[PlanDay("Monday", focus="Full Body")]),
    )


class FlakyStore(MemoryProfileStore):
    """Fails the first ``failures`` saves, then behaves."""

    def __init__(self, failures: int):
        super().__init__()
        self.failures = failures
        self.attempts = 0

    async def save_profile(self, stored):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise StoreWriteError("temporarily unavailable")
        await super().save_profile(stored)


class BrokenReadStore(MemoryProfileStore):
    async def get_profile(self, username):
        raise StoreLoadError("corrupt profile")


class SlowStore(MemoryProfileStore):
    """Records every saved snapshot; each save yields to the loop first."""

    def __init__(self):
        super().__init__()
        self.saved: list[StoredProfile] = []

    async def save_profile(self, stored):
        await asyncio.sleep(0)
        self.saved.append(stored)
        await super().save_profile(stored)


class TestLoadGate:
    @pytest.mark.asyncio
    async def test_no_write_before_load(self):
        store = MemoryProfileStore()
        sync = PersistenceSynchronizer(store)

        sync.on_state_change(Profile(name="Default"), None)
        await sync.flush()

        assert store.save_count == 0
        assert sync.gate_open is False

    @pytest.mark.asyncio
    async def test_load_opens_gate(self):
        store = MemoryProfileStore()
        store.profiles["alice"] = _make_stored()
        sync = PersistenceSynchronizer(store)

        data = await sync.load_for_user("alice")

        assert sync.gate_open is True
        assert data.profile.name == "Alice"
        assert data.workout_plan.day_labels() == ["Monday"]
        assert data.history == []

    @pytest.mark.asyncio
    async def test_missing_profile_loads_as_none(self):
        sync = PersistenceSynchronizer(MemoryProfileStore())
        data = await sync.load_for_user("newbie")

        assert data.profile is None
        assert data.workout_plan is None
        assert sync.gate_open is True

    @pytest.mark.asyncio
    async def test_failed_load_keeps_gate_closed(self):
        store = BrokenReadStore()
        sync = PersistenceSynchronizer(store)

        with pytest.raises(StoreLoadError):
            await sync.load_for_user("alice")

        sync.on_state_change(Profile(name="Default"), None)
        await sync.flush()
        assert sync.gate_open is False
        assert store.save_count == 0

    @pytest.mark.asyncio
    async def test_invalid_username(self):
        sync = PersistenceSynchronizer(MemoryProfileStore())
        with pytest.raises(ValidationError):
            await sync.load_for_user("../etc")
        assert sync.context is None

    @pytest.mark.asyncio
    async def test_switching_user_closes_gate(self):
        store = MemoryProfileStore()
        sync = PersistenceSynchronizer(store)
        await sync.load_for_user("alice")

        original_get = store.get_profile
        gate_during_load = []

        async def observing_get(username):
            gate_during_load.append(sync.gate_open)
            return await original_get(username)

        store.get_profile = observing_get
        await sync.load_for_user("bob")

        assert gate_during_load == [False]
        assert sync.context.username == "bob"


class TestWrites:
    @pytest.mark.asyncio
    async def test_state_change_is_written_after_load(self):
        store = MemoryProfileStore()
        sync = PersistenceSynchronizer(store)
        await sync.load_for_user("alice")

        plan = WorkoutPlan(plan=[PlanDay("Monday")], completed_days=["Monday"])
        sync.on_state_change(Profile(name="Alice"), plan)
        await sync.flush()

        saved = store.profiles["alice"]
        assert saved.username == "alice"
        assert saved.user_data.name == "Alice"
        assert saved.workout_plan.completed_days == ["Monday"]

    @pytest.mark.asyncio
    async def test_snapshot_is_taken_at_change_time(self):
        store = MemoryProfileStore()
        sync = PersistenceSynchronizer(store)
        await sync.load_for_user("alice")

        profile = Profile(name="Alice")
        sync.on_state_change(profile, None)
        profile.name = "Mutated later"
        await sync.flush()

        assert store.profiles["alice"].user_data.name == "Alice"

    @pytest.mark.asyncio
    async def test_rapid_changes_are_coalesced_in_order(self):
        store = SlowStore()
        sync = PersistenceSynchronizer(store)
        await sync.load_for_user("alice")

        for i in range(5):
            sync.on_state_change(Profile(name=f"v{i}"), None)
        await sync.flush()

        names = [s.user_data.name for s in store.saved]
        assert names[-1] == "v4"
        assert len(names) < 5
        assert store.profiles["alice"].user_data.name == "v4"

    @pytest.mark.asyncio
    async def test_retry_then_succeed(self):
        store = FlakyStore(failures=1)
        sync = PersistenceSynchronizer(store, max_attempts=2)
        await sync.load_for_user("alice")

        sync.on_state_change(Profile(name="Alice"), None)
        await sync.flush()

        assert store.attempts == 2
        assert store.profiles["alice"].user_data.name == "Alice"

    @pytest.mark.asyncio
    async def test_drop_after_max_attempts(self):
        store = FlakyStore(failures=10)
        sync = PersistenceSynchronizer(store, max_attempts=2)
        await sync.load_for_user("alice")

        sync.on_state_change(Profile(name="Alice"), None)
        await sync.flush()

        assert store.attempts == 2
        assert "alice" not in store.profiles

    @pytest.mark.asyncio
    async def test_later_snapshot_written_after_dropped_one(self):
        store = FlakyStore(failures=2)
        sync = PersistenceSynchronizer(store, max_attempts=2)
        await sync.load_for_user("alice")

        sync.on_state_change(Profile(name="first"), None)
        await sync.flush()
        sync.on_state_change(Profile(name="second"), None)
        await sync.flush()

        assert store.profiles["alice"].user_data.name == "second"
