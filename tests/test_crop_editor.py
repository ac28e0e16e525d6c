from __future__ import annotations

from concurrent.futures import Future

import pytest

from reaper.app.state.edit_state import EditKind, EditStatus
from reaper.app.state.viewport_state import InteractionMode
from reaper.image_engine.source import EncodedImage, SourceImage
from reaper.ops.crop_editor import CropEditor
from reaper.ops.crop_mapping import InvalidSelectionError
from reaper.ops.geometry import Point, Rect, Size


class _BlockingExecutor:
    """Accepts jobs but never runs them, so the request stays PENDING."""

    def __init__(self) -> None:
        self.jobs = []

    def submit(self, fn, *args, **kwargs):
        self.jobs.append(fn)
        return Future()

    def shutdown(self, wait=True, *, cancel_futures=False):
        pass


def _source(w: int = 800, h: int = 600) -> SourceImage:
    return SourceImage(EncodedImage(b"img", "image/png", w, h), "photo.png")


def _editor(executor, calls=None) -> CropEditor:
    def fake_crop(image, x, y, w, h):
        if calls is not None:
            calls.append((x, y, w, h))
        return EncodedImage(b"out", image.mime_type, w, h)

    editor = CropEditor(debounce_ms=10, frame_interval_ms=5, executor=executor, crop_fn=fake_crop)
    editor.set_source(_source())
    return editor


def _commit(qtbot, editor: CropEditor, region: Rect) -> None:
    editor.selection.update(region)
    qtbot.waitUntil(lambda: editor.selection.committed == region, timeout=1000)


def test_crop_maps_committed_selection_to_source_pixels(qtbot, immediate_executor) -> None:
    calls = []
    editor = _editor(immediate_executor, calls)
    _commit(qtbot, editor, Rect(100, 50, 200, 100))

    req = editor.submit_crop(Size(400, 300))
    assert req is not None
    assert req.kind is EditKind.CROP
    assert req.params == {"x": 200, "y": 100, "width": 400, "height": 200}

    qtbot.waitUntil(lambda: editor.dispatcher.status is EditStatus.SUCCEEDED, timeout=1000)
    assert calls == [(200, 100, 400, 200)]
    assert editor.dispatcher.request.artifact.width == 400


def test_preview_zoom_does_not_affect_mapping(qtbot, immediate_executor) -> None:
    calls = []
    editor = _editor(immediate_executor, calls)
    editor.zoom_in()
    editor.zoom_in()
    _commit(qtbot, editor, Rect(0, 0, 400, 300))

    editor.submit_crop(Size(400, 300))
    qtbot.waitUntil(lambda: bool(calls), timeout=1000)
    assert calls == [(0, 0, 800, 600)]


def test_submit_without_selection_raises(immediate_executor) -> None:
    editor = _editor(immediate_executor)
    with pytest.raises(InvalidSelectionError):
        editor.submit_crop(Size(400, 300))
    assert editor.dispatcher.request is None
    assert immediate_executor.calls == 0


def test_submit_outside_image_raises(qtbot, immediate_executor) -> None:
    editor = _editor(immediate_executor)
    _commit(qtbot, editor, Rect(500, 400, 20, 20))
    with pytest.raises(InvalidSelectionError):
        editor.submit_crop(Size(400, 300))
    assert immediate_executor.calls == 0


def test_pending_selection_is_not_submitted(immediate_executor) -> None:
    editor = _editor(immediate_executor)
    editor.selection.update(Rect(0, 0, 50, 50))
    # still inside the debounce window: nothing committed yet
    with pytest.raises(InvalidSelectionError):
        editor.submit_crop(Size(400, 300))


def test_second_submit_while_pending_has_no_effect(qtbot) -> None:
    executor = _BlockingExecutor()
    editor = _editor(executor)
    _commit(qtbot, editor, Rect(0, 0, 100, 100))

    first = editor.submit_crop(Size(400, 300))
    assert first is not None
    assert editor.submit_crop(Size(400, 300)) is None
    assert len(executor.jobs) == 1


def test_pan_mode_disables_selection(immediate_executor) -> None:
    editor = _editor(immediate_executor)
    editor.set_mode(InteractionMode.PAN)
    assert editor.selection.enabled is False
    assert editor.selection.update(Rect(0, 0, 10, 10)) is False

    editor.toggle_mode()
    assert editor.mode is InteractionMode.CROP
    assert editor.selection.enabled is True


def test_inputs_locked_while_busy(qtbot) -> None:
    editor = _editor(_BlockingExecutor())
    _commit(qtbot, editor, Rect(0, 0, 100, 100))
    editor.submit_crop(Size(400, 300))

    assert editor.busy is True
    assert editor.selection.enabled is False
    editor.zoom_in()
    assert editor.viewport.zoom == 1.0
    editor.set_mode(InteractionMode.PAN)
    assert editor.mode is InteractionMode.CROP


def test_busy_start_ends_pan_gesture(qtbot) -> None:
    editor = _editor(_BlockingExecutor())
    _commit(qtbot, editor, Rect(0, 0, 100, 100))
    editor.zoom_in()
    editor.set_mode(InteractionMode.PAN)
    assert editor.gesture.start(Point(0, 0)) is True

    # submit is only offered in crop mode, so drive the dispatcher directly
    editor.dispatcher.submit(EditKind.CROP, {}, lambda: None)
    assert editor.gesture.active is False


def test_new_source_resets_state(qtbot, immediate_executor) -> None:
    editor = _editor(immediate_executor)
    _commit(qtbot, editor, Rect(0, 0, 100, 100))
    editor.zoom_in()
    editor.set_mode(InteractionMode.PAN)
    modes = []
    editor.modeChanged.connect(modes.append)

    editor.set_source(_source(1024, 768))

    assert editor.source.width == 1024
    assert editor.viewport.zoom == 1.0
    assert editor.viewport.pan == (0.0, 0.0)
    assert editor.mode is InteractionMode.CROP
    assert modes == [InteractionMode.CROP]
    assert editor.selection.committed is None
    assert editor.dispatcher.request is None


def test_failed_crop_can_be_retried(qtbot, immediate_executor) -> None:
    attempts = []

    def flaky(image, x, y, w, h):
        attempts.append((x, y, w, h))
        if len(attempts) == 1:
            raise RuntimeError("vips error")
        return EncodedImage(b"ok", image.mime_type, w, h)

    editor = CropEditor(debounce_ms=10, executor=immediate_executor, crop_fn=flaky)
    editor.set_source(_source())
    _commit(qtbot, editor, Rect(0, 0, 40, 40))

    editor.submit_crop(Size(400, 300))
    qtbot.waitUntil(lambda: editor.dispatcher.status is EditStatus.FAILED, timeout=1000)
    assert editor.dispatcher.request.error == "vips error"
    assert editor.selection.enabled is True

    editor.submit_crop(Size(400, 300))
    qtbot.waitUntil(lambda: editor.dispatcher.status is EditStatus.SUCCEEDED, timeout=1000)
    assert attempts == [(0, 0, 80, 80), (0, 0, 80, 80)]
