"""Single-in-flight edit operation runner.

Crop, resize, convert and merge all go through the same lifecycle:
IDLE -> PENDING -> SUCCEEDED | FAILED, back to IDLE only via `clear()`.
The operation runs on a worker thread; its outcome is marshalled back to the
GUI thread through a queued signal tagged with the request id, so a result
arriving after `clear()` (or after a newer request) is dropped.
"""

from __future__ import annotations

from collections.abc import Callable
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from functools import partial
from typing import Any

from PySide6.QtCore import QObject, Qt, Signal, Slot

from reaper.app.state.edit_state import EditKind, EditRequest, EditStatus
from reaper.logger import get_logger

_logger = get_logger("dispatcher")


class EditOperationDispatcher(QObject):
    """Runs at most one edit operation at a time for one view."""

    # Current request, or None after clear()
    requestChanged = Signal(object)
    busyChanged = Signal(bool)

    # worker thread -> GUI thread: request id, artifact, error
    _resolved = Signal(int, object, object)

    def __init__(self, parent: QObject | None = None, executor: Executor | None = None) -> None:
        super().__init__(parent)
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="reaper-edit")
        self._request: EditRequest | None = None
        self._next_id = 1
        self._closed = False
        self._resolved.connect(self._apply_resolution, Qt.ConnectionType.QueuedConnection)

    @property
    def request(self) -> EditRequest | None:
        return self._request

    @property
    def status(self) -> EditStatus:
        return self._request.status if self._request is not None else EditStatus.IDLE

    @property
    def busy(self) -> bool:
        return self._request is not None and self._request.is_pending

    def submit(self, kind: EditKind, params: dict[str, Any], operation: Callable[[], Any]) -> EditRequest | None:
        """Start `operation` unless another request is pending.

        Returns the new PENDING request, or None when rejected (nothing is
        queued and `operation` is not called).
        """
        if self._closed:
            _logger.debug("submit %s rejected: dispatcher shut down", kind.value)
            return None
        if self.busy:
            _logger.debug("submit %s rejected: request %s still pending", kind.value, self._request.id)
            return None

        req = EditRequest(id=self._next_id, kind=kind, params=dict(params))
        self._next_id += 1
        self._request = req
        _logger.info("submit %s #%d params=%s", kind.value, req.id, params)
        self.requestChanged.emit(req)
        self.busyChanged.emit(True)

        try:
            future = self._executor.submit(operation)
        except Exception as e:
            _logger.exception("submit %s #%d failed to start", kind.value, req.id)
            self._resolved.emit(req.id, None, str(e) or type(e).__name__)
            return req
        future.add_done_callback(partial(self._on_done, req.id))
        return req

    def clear(self) -> None:
        """Forget the current request; a pending one resolves into nothing."""
        req = self._request
        if req is None:
            return
        was_busy = req.is_pending
        self._request = None
        _logger.debug("clear: dropped %s #%d (%s)", req.kind.value, req.id, req.status.value)
        self.requestChanged.emit(None)
        if was_busy:
            self.busyChanged.emit(False)

    def shutdown(self) -> None:
        self._closed = True
        self.clear()
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    def _on_done(self, req_id: int, future: Future) -> None:
        # Runs on the worker thread; only emit from here.
        if self._closed:
            _logger.debug("request #%d finished after shutdown; dropped", req_id)
            return
        try:
            artifact = future.result()
        except Exception as e:
            _logger.debug("request #%d raised %s", req_id, e, exc_info=True)
            self._emit_resolved(req_id, None, str(e) or type(e).__name__)
            return
        self._emit_resolved(req_id, artifact, None)

    def _emit_resolved(self, req_id: int, artifact: Any, error: Any) -> None:
        try:
            self._resolved.emit(req_id, artifact, error)
        except RuntimeError:
            # Owner widget already torn down
            _logger.debug("request #%d resolved after teardown; dropped", req_id)

    @Slot(int, object, object)
    def _apply_resolution(self, req_id: int, artifact: Any, error: Any) -> None:
        req = self._request
        if req is None or req.id != req_id or not req.is_pending:
            _logger.debug("resolution for #%d dropped (stale)", req_id)
            return
        if error is not None:
            done = req.failed(str(error))
            _logger.warning("%s #%d failed: %s", req.kind.value, req.id, error)
        else:
            done = req.succeeded(artifact)
            _logger.info("%s #%d succeeded", req.kind.value, req.id)
        self._request = done
        self.requestChanged.emit(done)
        self.busyChanged.emit(False)
