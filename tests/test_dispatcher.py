from __future__ import annotations

import threading
from concurrent.futures import ThreadPoolExecutor

from reaper.app.state.edit_state import EditKind, EditStatus
from reaper.ops.dispatcher import EditOperationDispatcher


def test_success_resolves_on_gui_thread(qtbot, immediate_executor) -> None:
    d = EditOperationDispatcher(executor=immediate_executor)
    busy = []
    d.busyChanged.connect(busy.append)

    req = d.submit(EditKind.RESIZE, {"width": 10, "height": 5}, lambda: "artifact")
    assert req is not None
    assert req.status is EditStatus.PENDING
    assert d.busy is True

    qtbot.waitUntil(lambda: not d.busy, timeout=1000)
    assert d.status is EditStatus.SUCCEEDED
    assert d.request.artifact == "artifact"
    assert d.request.params == {"width": 10, "height": 5}
    assert busy == [True, False]


def test_second_submit_while_pending_is_ignored(qtbot) -> None:
    gate = threading.Event()
    calls = []

    def slow():
        calls.append("slow")
        gate.wait(5)
        return 1

    def other():
        calls.append("other")
        return 2

    pool = ThreadPoolExecutor(max_workers=2)
    try:
        d = EditOperationDispatcher(executor=pool)
        first = d.submit(EditKind.CROP, {}, slow)
        assert d.submit(EditKind.CROP, {}, other) is None
        assert d.request is first

        gate.set()
        qtbot.waitUntil(lambda: d.status is EditStatus.SUCCEEDED, timeout=5000)
        assert calls == ["slow"]
        assert d.request.id == first.id
    finally:
        gate.set()
        pool.shutdown(wait=True)


def test_failure_then_retry(qtbot, immediate_executor) -> None:
    d = EditOperationDispatcher(executor=immediate_executor)

    def boom():
        raise RuntimeError("backend exploded")

    d.submit(EditKind.CONVERT, {"target_format": "png"}, boom)
    qtbot.waitUntil(lambda: not d.busy, timeout=1000)
    assert d.status is EditStatus.FAILED
    assert d.request.error == "backend exploded"
    assert d.request.artifact is None

    retry = d.submit(EditKind.CONVERT, {"target_format": "png"}, lambda: "ok")
    assert retry is not None
    qtbot.waitUntil(lambda: d.status is EditStatus.SUCCEEDED, timeout=1000)
    assert d.request.artifact == "ok"


def test_error_without_message_uses_type_name(qtbot, immediate_executor) -> None:
    d = EditOperationDispatcher(executor=immediate_executor)

    def fail():
        raise KeyError()

    d.submit(EditKind.CROP, {}, fail)
    qtbot.waitUntil(lambda: not d.busy, timeout=1000)
    assert d.request.error == "KeyError"


def test_resolution_after_clear_is_dropped(qtbot, immediate_executor) -> None:
    d = EditOperationDispatcher(executor=immediate_executor)
    changes = []
    d.requestChanged.connect(changes.append)

    d.submit(EditKind.CROP, {}, lambda: "late")
    # the queued resolution has not been delivered yet
    d.clear()
    assert d.status is EditStatus.IDLE

    qtbot.wait(50)
    assert d.request is None
    assert d.status is EditStatus.IDLE
    assert [c.status if c else None for c in changes] == [EditStatus.PENDING, None]


def test_stale_resolution_does_not_touch_newer_request(qtbot, immediate_executor) -> None:
    d = EditOperationDispatcher(executor=immediate_executor)
    d.submit(EditKind.CROP, {}, lambda: "old")
    d.clear()
    newer = d.submit(EditKind.CROP, {}, lambda: "new")

    qtbot.waitUntil(lambda: not d.busy, timeout=1000)
    assert d.request.id == newer.id
    assert d.request.artifact == "new"


def test_clear_after_success_returns_to_idle(qtbot, immediate_executor) -> None:
    d = EditOperationDispatcher(executor=immediate_executor)
    d.submit(EditKind.MERGE, {}, lambda: b"%PDF")
    qtbot.waitUntil(lambda: d.status is EditStatus.SUCCEEDED, timeout=1000)
    d.clear()
    assert d.status is EditStatus.IDLE
    assert d.busy is False


def test_shutdown_leaves_borrowed_executor_running() -> None:
    pool = ThreadPoolExecutor(max_workers=1)
    try:
        d = EditOperationDispatcher(executor=pool)
        d.shutdown()
        assert pool.submit(lambda: 3).result(timeout=5) == 3
    finally:
        pool.shutdown(wait=True)


def test_submit_after_shutdown_is_rejected(immediate_executor) -> None:
    d = EditOperationDispatcher(executor=immediate_executor)
    d.shutdown()
    assert d.submit(EditKind.CROP, {}, lambda: "x") is None
    assert immediate_executor.calls == 0


def _blocking_job(gate: threading.Event):
    def job():
        gate.wait(timeout=5)
        return "late"

    return job


def test_late_result_after_shutdown_is_dropped(qtbot, caplog) -> None:
    pool = ThreadPoolExecutor(max_workers=1)
    gate = threading.Event()
    d = EditOperationDispatcher(executor=pool)
    changes = []
    d.requestChanged.connect(changes.append)
    d.submit(EditKind.CONVERT, {"target_format": "png"}, _blocking_job(gate))

    d.shutdown()
    gate.set()
    pool.shutdown(wait=True)
    qtbot.wait(20)

    assert d.request is None
    assert changes[-1] is None
    assert not [r for r in caplog.records if "exception calling callback" in r.getMessage()]


def test_late_result_after_teardown_is_dropped(caplog) -> None:
    import shiboken6

    pool = ThreadPoolExecutor(max_workers=1)
    gate = threading.Event()
    d = EditOperationDispatcher(executor=pool)
    d.submit(EditKind.RESIZE, {"width": 1, "height": 1}, _blocking_job(gate))

    shiboken6.delete(d)
    gate.set()
    pool.shutdown(wait=True)

    assert not [r for r in caplog.records if "exception calling callback" in r.getMessage()]
