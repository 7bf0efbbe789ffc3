from __future__ import annotations

import asyncio
from collections.abc import Callable

import pytest

from garagebridge.config import ConfirmationPolicy
from garagebridge.dispatcher import CommandDispatcher
from garagebridge.exceptions import GarageApiError, GarageTransportError
from garagebridge.models.command import CommandStyle, RemoteCommand
from garagebridge.models.device import Device
from garagebridge.models.door import DoorState, DoorStatus, TargetState
from garagebridge.reconciler import ReconciliationLoop
from garagebridge.state.mapping import get_profile
from garagebridge.state.snapshot import DoorSnapshot

DEVICE_ID = "123456"


class _FakeGateway:
    """Records commands and replays scripted fetch results (last one repeats)."""

    def __init__(self, *results: str | Exception, send_error: Exception | None = None) -> None:
        self._results = list(results)
        self._send_error = send_error
        self.commands: list[RemoteCommand] = []
        self.fetches = 0

    async def login(self) -> None:
        return None

    async def list_devices(self) -> list[Device]:
        return []

    async def fetch_state(self, device_id: str) -> str:
        self.fetches += 1
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result

    async def send_command(self, device_id: str, command: RemoteCommand) -> None:
        assert device_id == DEVICE_ID
        if self._send_error is not None:
            raise self._send_error
        self.commands.append(command)


def _dispatcher(
    gateway: _FakeGateway,
    snapshot: DoorSnapshot,
    *,
    interval: float = 0.01,
    deadline: float = 1.0,
    delay_first: bool = True,
    profile: str = "myq",
    infer_target: bool | None = None,
    queue_size: int = 4,
) -> CommandDispatcher:
    return CommandDispatcher(
        gateway,
        DEVICE_ID,
        snapshot,
        get_profile(profile, infer_target=infer_target),
        policy=ConfirmationPolicy(interval=interval, deadline=deadline, delay_first=delay_first),
        queue_size=queue_size,
    )


async def _wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    async with asyncio.timeout(timeout):
        while not predicate():
            await asyncio.sleep(0.005)


@pytest.mark.asyncio
async def test_open_confirmed_on_first_poll() -> None:
    snapshot = DoorSnapshot()
    gateway = _FakeGateway("1")
    dispatcher = _dispatcher(gateway, snapshot, interval=0.02, deadline=1.0)

    task = await dispatcher.dispatch(TargetState.OPEN)
    assert task is not None
    result = await task

    assert gateway.commands == [RemoteCommand(style=CommandStyle.STATE_NAME, value="1")]
    assert result.confirmed
    assert result.elapsed < 1.0
    assert gateway.fetches == 1
    assert snapshot.read() == DoorStatus(current=DoorState.OPEN, target=TargetState.OPEN)
    assert dispatcher.pending is None


@pytest.mark.asyncio
async def test_confirmation_times_out_without_hanging() -> None:
    snapshot = DoorSnapshot(current=DoorState.OPEN, target=TargetState.OPEN)
    gateway = _FakeGateway("1")
    dispatcher = _dispatcher(gateway, snapshot, interval=0.01, deadline=0.05)

    task = await dispatcher.dispatch(TargetState.CLOSED)
    assert task is not None
    async with asyncio.timeout(1.0):
        result = await task

    assert not result.confirmed
    assert gateway.fetches >= 1
    assert result.last_state is DoorState.OPEN
    assert snapshot.get_current() is DoorState.OPEN
    # Set when the command was accepted; the timed-out sequence leaves it alone.
    assert snapshot.get_target() is TargetState.CLOSED
    assert dispatcher.pending is None
    assert not dispatcher.confirmations


@pytest.mark.asyncio
async def test_stopped_door_times_out_and_keeps_commanded_target() -> None:
    snapshot = DoorSnapshot(current=DoorState.OPEN, target=TargetState.OPEN)
    gateway = _FakeGateway("3")
    dispatcher = _dispatcher(gateway, snapshot, interval=0.01, deadline=0.05)

    task = await dispatcher.dispatch(TargetState.CLOSED)
    assert task is not None
    result = await task

    assert not result.confirmed
    assert result.last_state is DoorState.STOPPED
    assert snapshot.read() == DoorStatus(current=DoorState.STOPPED, target=TargetState.CLOSED)


@pytest.mark.asyncio
async def test_send_failure_leaves_target_and_skips_confirmation() -> None:
    snapshot = DoorSnapshot()
    gateway = _FakeGateway("2", send_error=GarageApiError("rejected", code="-1"))
    dispatcher = _dispatcher(gateway, snapshot)

    task = await dispatcher.dispatch(TargetState.OPEN)

    assert task is None
    assert snapshot.get_target() is TargetState.CLOSED
    assert dispatcher.pending is None
    assert gateway.fetches == 0


@pytest.mark.asyncio
async def test_door_walks_through_transitional_states() -> None:
    snapshot = DoorSnapshot()
    seen: list[DoorState] = [snapshot.get_current()]

    def _record(status: DoorStatus) -> None:
        if status.current is not seen[-1]:
            seen.append(status.current)

    snapshot.subscribe(_record)
    gateway = _FakeGateway("4", "4", "1")
    dispatcher = _dispatcher(gateway, snapshot, interval=0.01, deadline=1.0)

    task = await dispatcher.dispatch(TargetState.OPEN)
    assert task is not None
    result = await task

    assert seen == [DoorState.CLOSED, DoorState.OPENING, DoorState.OPEN]
    assert result.confirmed
    assert gateway.fetches == 3
    assert snapshot.get_target() is TargetState.OPEN


@pytest.mark.asyncio
async def test_check_first_policy_polls_immediately() -> None:
    snapshot = DoorSnapshot()
    gateway = _FakeGateway("1")
    dispatcher = _dispatcher(gateway, snapshot, interval=0.5, deadline=2.0, delay_first=False)

    task = await dispatcher.dispatch(TargetState.OPEN)
    assert task is not None
    result = await task

    assert result.confirmed
    assert result.elapsed < 0.5


@pytest.mark.asyncio
async def test_fetch_errors_during_confirmation_are_retried() -> None:
    snapshot = DoorSnapshot()
    gateway = _FakeGateway(GarageTransportError("timeout"), "garbage", "1")
    dispatcher = _dispatcher(gateway, snapshot, interval=0.01, deadline=1.0)

    task = await dispatcher.dispatch(TargetState.OPEN)
    assert task is not None
    result = await task

    assert result.confirmed
    assert gateway.fetches == 3


@pytest.mark.asyncio
async def test_newer_command_supersedes_pending_target() -> None:
    snapshot = DoorSnapshot()
    gateway = _FakeGateway("1")
    dispatcher = _dispatcher(gateway, snapshot, interval=0.01, deadline=0.1, infer_target=False)

    first = await dispatcher.dispatch(TargetState.OPEN)
    second = await dispatcher.dispatch(TargetState.CLOSED)
    assert first is not None and second is not None
    assert dispatcher.pending is not None
    assert dispatcher.pending.desired_state is DoorState.CLOSED

    results = await dispatcher.wait_for_confirmations()

    assert sorted(r.confirmed for r in results) == [False, True]
    assert snapshot.get_current() is DoorState.OPEN
    assert snapshot.get_target() is TargetState.CLOSED


@pytest.mark.asyncio
async def test_request_is_dropped_when_queue_full() -> None:
    dispatcher = _dispatcher(_FakeGateway("2"), DoorSnapshot(), queue_size=1)

    assert dispatcher.request_target_state(TargetState.OPEN) is True
    assert dispatcher.request_target_state(TargetState.CLOSED) is False

    await dispatcher.stop()


@pytest.mark.asyncio
async def test_consumer_dispatches_queued_requests() -> None:
    snapshot = DoorSnapshot()
    gateway = _FakeGateway("1")
    dispatcher = _dispatcher(gateway, snapshot)

    dispatcher.start()
    try:
        assert dispatcher.request_target_state(TargetState.OPEN)
        await _wait_until(lambda: len(gateway.commands) == 1)
        results = await dispatcher.wait_for_confirmations()
    finally:
        await dispatcher.stop()

    assert [r.confirmed for r in results] == [True]
    assert snapshot.read() == DoorStatus(current=DoorState.OPEN, target=TargetState.OPEN)


@pytest.mark.asyncio
async def test_stop_does_not_cancel_running_confirmation() -> None:
    gateway = _FakeGateway("4", "4", "4", "1")
    dispatcher = _dispatcher(gateway, DoorSnapshot(), interval=0.01, deadline=1.0)

    task = await dispatcher.dispatch(TargetState.OPEN)
    assert task is not None
    await dispatcher.stop()
    result = await task

    assert result.confirmed


@pytest.mark.asyncio
async def test_basic_profile_scenario_without_transitions() -> None:
    snapshot = DoorSnapshot()
    gateway = _FakeGateway("closed", "closed", "open")
    profile = get_profile("basic")
    loop = ReconciliationLoop(
        gateway,
        DEVICE_ID,
        snapshot,
        profile,
        update_interval=3600.0,
        fast_poll_interval=0.001,
    )
    dispatcher = CommandDispatcher(
        gateway,
        DEVICE_ID,
        snapshot,
        profile,
        policy=ConfirmationPolicy(interval=0.01, deadline=1.0),
    )

    await loop.run_tick()
    assert not loop.fast_poll_armed

    task = await dispatcher.dispatch(TargetState.OPEN)
    assert task is not None
    result = await task

    assert gateway.commands == [RemoteCommand(style=CommandStyle.ACTION, value="OPEN_DOOR", door_id="1")]
    assert result.confirmed
    assert snapshot.read() == DoorStatus(current=DoorState.OPEN, target=TargetState.OPEN)
    assert not loop.fast_poll_armed


@pytest.mark.asyncio
async def test_update_tick_keeps_target_of_pending_command() -> None:
    snapshot = DoorSnapshot()
    gateway = _FakeGateway("2")
    dispatcher = _dispatcher(gateway, snapshot, interval=0.05, deadline=0.2)
    loop = ReconciliationLoop(
        gateway,
        DEVICE_ID,
        snapshot,
        get_profile("myq"),
        update_interval=3600.0,
        fast_poll_interval=1.0,
        has_pending=lambda: dispatcher.pending is not None,
    )

    task = await dispatcher.dispatch(TargetState.OPEN)
    assert task is not None
    assert dispatcher.pending is not None

    # The API still reports the old state right after the command.
    await loop.run_tick()
    assert snapshot.read() == DoorStatus(current=DoorState.CLOSED, target=TargetState.OPEN)

    result = await task
    assert not result.confirmed
    assert dispatcher.pending is None

    # Once the command is settled the loop infers the target again.
    await loop.run_tick()
    assert snapshot.get_target() is TargetState.CLOSED
