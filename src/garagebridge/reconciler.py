"""Door state reconciliation loop.

Keeps :class:`~garagebridge.state.snapshot.DoorSnapshot` in sync with the
remote door.  Two timers feed the same tick:

* the regular timer fires every ``update_interval`` seconds, always;
* the fast-poll timer fires once, ``fast_poll_interval`` seconds after a
  tick that saw the door ``opening`` or ``closing``.

After every tick the fast timer is re-armed if the door is moving and
disarmed otherwise.  The loop waits on whichever of {regular timer, fast
timer, stop signal} comes first.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from garagebridge.exceptions import GarageError, UnknownStateError
from garagebridge.gateway import StateGateway
from garagebridge.models.door import DoorState
from garagebridge.state.mapping import DoorProfile, infer_target, map_remote_to_local
from garagebridge.state.snapshot import DoorSnapshot

_logger = logging.getLogger(__name__)


async def refresh_door_state(
    gateway: StateGateway,
    device_id: str,
    snapshot: DoorSnapshot,
    profile: DoorProfile,
    *,
    infer: bool = True,
) -> DoorState:
    """Fetch the remote state and write it into *snapshot*.

    When *infer* is set and the profile infers targets, ``target``
    follows the observed state as well.  Otherwise only ``current`` is
    written.

    Raises
    ------
    UnknownStateError
        The token is not in the profile; *snapshot* is left untouched.
    GarageError
        The fetch failed; *snapshot* is left untouched.
    """
    token = await gateway.fetch_state(device_id)
    state = map_remote_to_local(token, profile)
    target = infer_target(state) if infer and profile.infer_target else None
    snapshot.update(current=state, target=target)
    _logger.debug("Door state is %s (remote token %r)", state, token)
    return state


class ReconciliationLoop:
    """Background task that polls the remote door and adapts its cadence."""

    def __init__(
        self,
        gateway: StateGateway,
        device_id: str,
        snapshot: DoorSnapshot,
        profile: DoorProfile,
        *,
        update_interval: float,
        fast_poll_interval: float,
        shutdown_timeout: float = 10.0,
        has_pending: Callable[[], bool] | None = None,
    ) -> None:
        self._gateway = gateway
        self._device_id = device_id
        self._snapshot = snapshot
        self._profile = profile
        self._update_interval = update_interval
        self._fast_poll_interval = fast_poll_interval
        self._shutdown_timeout = shutdown_timeout
        self._has_pending = has_pending
        self._stop_event = asyncio.Event()
        self._fast_due: float | None = None
        self._task: asyncio.Task[None] | None = None

    @property
    def fast_poll_armed(self) -> bool:
        return self._fast_due is not None

    @property
    def fast_poll_due(self) -> float | None:
        """Event loop time the fast-poll timer fires at, or ``None`` when disarmed."""
        return self._fast_due

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def _rearm(self, state: DoorState) -> None:
        if state.is_transitional:
            self._fast_due = asyncio.get_running_loop().time() + self._fast_poll_interval
        else:
            self._fast_due = None

    async def run_tick(self) -> DoorState:
        """Run one fetch/update/cadence cycle.

        Fetch failures and unknown tokens keep the previous state, and
        the cadence is decided from that retained state.  While a command
        awaits confirmation the target belongs to it and is not inferred.
        """
        pending = self._has_pending is not None and self._has_pending()
        try:
            state = await refresh_door_state(
                self._gateway,
                self._device_id,
                self._snapshot,
                self._profile,
                infer=not pending,
            )
        except UnknownStateError as exc:
            _logger.warning("Ignoring unrecognized door state %r", exc.token)
            state = self._snapshot.get_current()
        except GarageError as exc:
            _logger.warning("Error fetching current state: %s", exc)
            state = self._snapshot.get_current()
        self._rearm(state)
        return state

    async def run(self, *, initial_tick: bool = True) -> None:
        """Tick immediately, then on every timer fire until stopped.

        Pass ``initial_tick=False`` when the snapshot was already populated
        by a direct :meth:`run_tick` call.
        """
        _logger.info("Entering garage door state update loop")
        if not self._profile.observes_transitions:
            _logger.info("Profile %s never reports a moving door; fast polling stays idle", self._profile.name)
        try:
            if initial_tick:
                await self.run_tick()
            loop = asyncio.get_running_loop()
            regular_due = loop.time() + self._update_interval

            while not self._stop_event.is_set():
                fast_due = self._fast_due
                due = regular_due if fast_due is None else min(regular_due, fast_due)
                try:
                    await asyncio.wait_for(self._stop_event.wait(), max(0.0, due - loop.time()))
                    break
                except TimeoutError:
                    pass

                now = loop.time()
                if now >= regular_due:
                    while regular_due <= now:
                        regular_due += self._update_interval
                elif fast_due is None or now < fast_due:
                    continue
                await self.run_tick()
        finally:
            self._fast_due = None
            _logger.info("Exiting garage door state update loop")

    def start(self, *, initial_tick: bool = True) -> asyncio.Task[None]:
        """Spawn :meth:`run` as a background task."""
        if self.is_running:
            raise RuntimeError("state update loop already running")
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run(initial_tick=initial_tick), name="garagebridge-reconcile")
        return self._task

    async def stop(self) -> None:
        """Signal the loop to exit and wait for it.

        An in-flight tick that outlives ``shutdown_timeout`` is cancelled.
        """
        self._stop_event.set()
        task = self._task
        self._task = None
        if task is None or task.done():
            return
        try:
            await asyncio.wait_for(task, self._shutdown_timeout)
        except TimeoutError:
            _logger.warning("State update loop did not stop within %.1fs; cancelled", self._shutdown_timeout)
