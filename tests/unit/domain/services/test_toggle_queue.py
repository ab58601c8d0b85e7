"""Unit tests for ToggleQueue."""

import asyncio

import pytest

from expense_rbac.domain.services.toggle_queue import ToggleQueue


class RecordingApply:
    """Apply callback that records calls and can fail chosen features."""

    def __init__(self, failing=()):
        self.calls = []
        self.failing = set(failing)

    async def __call__(self, role_id, feature_id, enabled):
        if feature_id in self.failing:
            raise ValueError(f"{feature_id} rejected")
        self.calls.append((role_id, feature_id, enabled))


@pytest.mark.asyncio
async def test_last_value_wins_per_pair():
    apply = RecordingApply()
    queue = ToggleQueue(apply, quiet_period=10)

    queue.enqueue("r1", "charts", True)
    queue.enqueue("r1", "charts", False)
    queue.enqueue("r1", "charts", True)
    outcomes = await queue.flush()

    assert apply.calls == [("r1", "charts", True)]
    assert len(outcomes) == 1
    assert outcomes[0].applied is True
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_each_pair_written_once():
    apply = RecordingApply()
    queue = ToggleQueue(apply, quiet_period=10)

    queue.enqueue("r1", "charts", True)
    queue.enqueue("r2", "themes", False)
    queue.enqueue("r1", "analytics", True)
    queue.enqueue("r2", "themes", True)
    await queue.flush()

    assert apply.calls == [
        ("r1", "charts", True),
        ("r1", "analytics", True),
        ("r2", "themes", True),
    ]


@pytest.mark.asyncio
async def test_drains_after_quiet_period():
    apply = RecordingApply()
    queue = ToggleQueue(apply, quiet_period=0.05)

    queue.enqueue("r1", "charts", True)
    assert queue.armed is True
    queue.enqueue("r1", "charts", False)

    await asyncio.sleep(0.3)

    assert apply.calls == [("r1", "charts", False)]
    assert queue.armed is False
    assert len(queue) == 0


@pytest.mark.asyncio
async def test_failed_write_is_reported_and_others_continue():
    apply = RecordingApply(failing={"charts"})
    queue = ToggleQueue(apply, quiet_period=10)

    queue.enqueue("r1", "charts", True)
    queue.enqueue("r1", "themes", True)
    outcomes = await queue.flush()

    assert outcomes[0].applied is False
    assert outcomes[0].error == "charts rejected"
    assert outcomes[1].applied is True
    assert apply.calls == [("r1", "themes", True)]


@pytest.mark.asyncio
async def test_cancel_drops_entries_without_writing():
    apply = RecordingApply()
    queue = ToggleQueue(apply, quiet_period=0.05)

    queue.enqueue("r1", "charts", True)
    queue.enqueue("r2", "themes", True)

    assert queue.cancel() == 2
    await asyncio.sleep(0.1)

    assert apply.calls == []
    assert queue.armed is False


@pytest.mark.asyncio
async def test_discard_one_role():
    apply = RecordingApply()
    queue = ToggleQueue(apply, quiet_period=10)

    queue.enqueue("r1", "charts", True)
    queue.enqueue("r2", "themes", True)

    assert queue.discard("r1") == 1
    await queue.flush()

    assert apply.calls == [("r2", "themes", True)]


@pytest.mark.asyncio
async def test_queued_value():
    queue = ToggleQueue(RecordingApply(), quiet_period=10)

    assert queue.queued_value("r1", "charts") is None

    queue.enqueue("r1", "charts", True)
    queue.enqueue("r1", "charts", False)

    assert queue.queued_value("r1", "charts") is False
    assert [entry.enabled for entry in queue.pending] == [True, False]
    queue.cancel()


@pytest.mark.asyncio
async def test_flush_empty_queue():
    queue = ToggleQueue(RecordingApply(), quiet_period=10)

    assert await queue.flush() == []
