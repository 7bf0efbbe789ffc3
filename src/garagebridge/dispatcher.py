"""Command dispatcher.

Target state requests from the presentation layer land on a bounded
queue and are handled by one consumer task.  An accepted command spawns
a confirmation task that polls faster than the regular loop until the
door reaches the commanded state or a deadline passes.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time

from garagebridge.config import ConfirmationPolicy
from garagebridge.exceptions import GarageError, UnknownStateError
from garagebridge.gateway import StateGateway
from garagebridge.models.door import ConfirmationResult, DoorState, PendingCommand, TargetState
from garagebridge.reconciler import refresh_door_state
from garagebridge.state.mapping import DoorProfile, map_local_to_remote_command
from garagebridge.state.snapshot import DoorSnapshot

_logger = logging.getLogger(__name__)


class CommandDispatcher:
    """Translate target state requests into remote commands and confirm them."""

    def __init__(
        self,
        gateway: StateGateway,
        device_id: str,
        snapshot: DoorSnapshot,
        profile: DoorProfile,
        *,
        policy: ConfirmationPolicy | None = None,
        queue_size: int = 4,
    ) -> None:
        self._gateway = gateway
        self._device_id = device_id
        self._snapshot = snapshot
        self._profile = profile
        self._policy = policy or ConfirmationPolicy()
        self._queue: asyncio.Queue[TargetState] = asyncio.Queue(maxsize=queue_size)
        self._pending: PendingCommand | None = None
        self._confirmations: set[asyncio.Task[ConfirmationResult]] = set()
        self._consumer: asyncio.Task[None] | None = None

    @property
    def pending(self) -> PendingCommand | None:
        """The most recent command still awaiting confirmation."""
        return self._pending

    @property
    def confirmations(self) -> frozenset[asyncio.Task[ConfirmationResult]]:
        return frozenset(self._confirmations)

    # ------------------------------------------------------------------
    # Intake
    # ------------------------------------------------------------------

    def request_target_state(self, target: TargetState) -> bool:
        """Queue a target state change without blocking.

        Returns ``False`` when the queue is full and the request was
        dropped; the user can simply retry.
        """
        try:
            self._queue.put_nowait(TargetState(target))
        except asyncio.QueueFull:
            _logger.warning("Dropping request to set garage door to %s: command queue full", target)
            return False
        return True

    def start(self) -> asyncio.Task[None]:
        """Spawn the queue consumer."""
        if self._consumer is not None and not self._consumer.done():
            raise RuntimeError("command dispatcher already running")
        self._consumer = asyncio.create_task(self._consume(), name="garagebridge-dispatch")
        return self._consumer

    async def stop(self) -> None:
        """Stop consuming requests.

        Queued requests are discarded.  Confirmation tasks keep running
        and end on their own deadline.
        """
        consumer = self._consumer
        self._consumer = None
        if consumer is not None and not consumer.done():
            consumer.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await consumer
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()

    async def wait_for_confirmations(self) -> list[ConfirmationResult]:
        """Wait for every running confirmation task to finish."""
        tasks = list(self._confirmations)
        if not tasks:
            return []
        return list(await asyncio.gather(*tasks))

    async def _consume(self) -> None:
        while True:
            target = await self._queue.get()
            try:
                await self.dispatch(target)
            finally:
                self._queue.task_done()

    # ------------------------------------------------------------------
    # Command handling
    # ------------------------------------------------------------------

    async def dispatch(self, target: TargetState) -> asyncio.Task[ConfirmationResult] | None:
        """Send the command for *target* and start its confirmation.

        Returns the confirmation task, or ``None`` when the send failed
        (the snapshot target is then left untouched).
        """
        command = map_local_to_remote_command(target, self._profile)
        _logger.info("Setting garage door to %s", target)
        try:
            await self._gateway.send_command(self._device_id, command)
        except GarageError as exc:
            _logger.error("Unable to set garage door state: %s", exc)
            return None

        pending = PendingCommand(desired_state=target.door_state)
        if self._pending is not None:
            _logger.debug("Command for %s supersedes pending %s", target, self._pending.desired_state)
        self._pending = pending
        self._snapshot.set_target(target)

        task = asyncio.create_task(self._confirm(pending), name=f"garagebridge-confirm-{target}")
        self._confirmations.add(task)
        task.add_done_callback(self._confirmations.discard)
        return task

    async def _check(self) -> DoorState | None:
        try:
            return await refresh_door_state(
                self._gateway,
                self._device_id,
                self._snapshot,
                self._profile,
                infer=False,
            )
        except UnknownStateError as exc:
            _logger.warning("Ignoring unrecognized door state %r", exc.token)
        except GarageError as exc:
            _logger.warning("Error fetching current state: %s", exc)
        return None

    async def _confirm(self, pending: PendingCommand) -> ConfirmationResult:
        """Poll until the door reaches ``pending.desired_state`` or the deadline passes."""
        policy = self._policy
        desired = pending.desired_state
        deadline = pending.issued_at + policy.deadline
        last_state: DoorState | None = None
        try:
            while time.monotonic() < deadline:
                if policy.delay_first:
                    # The API often reports the old state right after a command.
                    await asyncio.sleep(policy.interval)
                state = await self._check()
                if state is not None:
                    last_state = state
                if state is desired:
                    elapsed = time.monotonic() - pending.issued_at
                    if self._pending is pending:
                        self._snapshot.update(current=desired, target=TargetState(desired.value))
                    else:
                        _logger.debug("Confirmed superseded command for %s", desired)
                    _logger.info("Door reached target state (%s) after %.1fs", desired, elapsed)
                    return ConfirmationResult(
                        desired_state=desired,
                        confirmed=True,
                        elapsed=elapsed,
                        last_state=last_state,
                    )
                if not policy.delay_first:
                    await asyncio.sleep(min(policy.interval, max(0.0, deadline - time.monotonic())))

            elapsed = time.monotonic() - pending.issued_at
            _logger.info(
                "Door did not report %s within %.0fs (last state %s); leaving it to the update loop",
                desired,
                policy.deadline,
                last_state,
            )
            return ConfirmationResult(desired_state=desired, confirmed=False, elapsed=elapsed, last_state=last_state)
        finally:
            if self._pending is pending:
                self._pending = None
