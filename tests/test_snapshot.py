from __future__ import annotations

import threading

from garagebridge.models.door import DoorState, DoorStatus, TargetState
from garagebridge.state.snapshot import DoorSnapshot


def test_current_and_target_are_independent() -> None:
    snapshot = DoorSnapshot()

    snapshot.set_target(TargetState.OPEN)

    assert snapshot.get_current() is DoorState.CLOSED
    assert snapshot.get_target() is TargetState.OPEN
    assert snapshot.read() == DoorStatus(current=DoorState.CLOSED, target=TargetState.OPEN)


def test_listeners_see_every_write() -> None:
    snapshot = DoorSnapshot()
    seen: list[DoorStatus] = []
    snapshot.subscribe(seen.append)

    snapshot.update(current=DoorState.OPENING, target=TargetState.OPEN)
    snapshot.update(current=DoorState.OPENING)

    assert [s.current for s in seen] == [DoorState.OPENING, DoorState.OPENING]
    assert all(s.target is TargetState.OPEN for s in seen)


def test_failing_listener_does_not_break_writes() -> None:
    snapshot = DoorSnapshot()
    seen: list[DoorStatus] = []

    def _boom(_status: DoorStatus) -> None:
        raise RuntimeError("listener failure")

    snapshot.subscribe(_boom)
    snapshot.subscribe(seen.append)

    snapshot.set_current(DoorState.OPEN)

    assert snapshot.get_current() is DoorState.OPEN
    assert len(seen) == 1


def test_unsubscribe_stops_notifications() -> None:
    snapshot = DoorSnapshot()
    seen: list[DoorStatus] = []
    unsubscribe = snapshot.subscribe(seen.append)

    unsubscribe()
    unsubscribe()
    snapshot.set_current(DoorState.STOPPED)

    assert seen == []


def test_concurrent_writers_leave_consistent_state() -> None:
    snapshot = DoorSnapshot()

    def _writer(current: DoorState, target: TargetState) -> None:
        for _ in range(500):
            snapshot.update(current=current, target=target)

    threads = [
        threading.Thread(target=_writer, args=(DoorState.OPEN, TargetState.OPEN)),
        threading.Thread(target=_writer, args=(DoorState.CLOSED, TargetState.CLOSED)),
    ]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    status = snapshot.read()
    assert status.current.value == status.target.value
