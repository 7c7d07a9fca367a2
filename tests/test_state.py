from __future__ import annotations

from netsentry.scanner.models import ScanStatus
from netsentry.state import Derived, ReadOnly, ScanSession, Writable
from netsentry.state.session import PHASE_COMPLETE, PHASE_INITIALIZING

from .conftest import make_device


def test_writable_pushes_current_value_and_changes():
    store = Writable(1)
    seen: list[int] = []

    unsubscribe = store.subscribe(seen.append)
    store.set(2)
    store.update(lambda value: value * 10)
    unsubscribe()
    unsubscribe()
    store.set(99)

    assert seen == [1, 2, 20]
    assert store.get() == 99


def test_derived_is_never_stale():
    source = Writable([1, 2, 3])
    total = Derived(source, sum)
    pushed: list[int] = []
    total.subscribe(pushed.append)

    source.set([5])

    assert total.get() == 5
    assert pushed == [6, 5]


def test_read_only_view_cannot_set():
    view = ReadOnly(Writable("x"))
    assert view.get() == "x"
    assert not hasattr(view, "set")


def test_initial_session_state():
    session = ScanSession()

    assert session.status.get() == ScanStatus(is_scanning=False, progress=0, current_phase="")
    assert session.devices.get() == ()
    assert session.health_score.get() == 0


def test_health_score_follows_device_changes():
    session = ScanSession()
    scores: list[int] = []
    session.health_score.subscribe(scores.append)

    session.replace_devices((make_device("10.0.0.1", "safe"), make_device("10.0.0.2", "danger")))
    assert session.health_score.get() == 60
    session.begin()

    assert session.health_score.get() == 0
    assert scores == [0, 60, 0]


def test_progress_updates_leave_scanning_flag_alone():
    session = ScanSession()
    session.begin()
    assert session.status.get() == ScanStatus(True, 0, PHASE_INITIALIZING)

    session.apply_progress("discovering", 10)
    session.apply_progress("probing ports", 50)

    assert session.status.get() == ScanStatus(True, 50, "probing ports")


def test_progress_is_clamped_and_monotonic():
    session = ScanSession()
    session.begin()

    session.apply_progress("late phase", 70)
    session.apply_progress("stale phase", 30)
    assert session.status.get().progress == 70
    assert session.status.get().current_phase == "stale phase"

    session.apply_progress("overflow", 250)
    assert session.status.get().progress == 100


def test_finish_keeps_error_phase():
    session = ScanSession()
    session.begin()
    session.fail("engine exploded")
    session.finish()

    assert session.status.get() == ScanStatus(False, 100, "error: engine exploded")


def test_finish_marks_completion():
    session = ScanSession()
    session.begin()
    session.apply_progress("scoring", 95)
    session.finish()

    assert session.status.get() == ScanStatus(False, 100, PHASE_COMPLETE)
