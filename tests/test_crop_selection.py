from __future__ import annotations

from reaper.ops.crop_selection import CropSelectionEngine, move_region, resize_region
from reaper.ops.geometry import Point, Rect, Size


def test_burst_of_updates_commits_last_once(qtbot) -> None:
    engine = CropSelectionEngine(debounce_ms=100)
    commits = []
    engine.committedChanged.connect(commits.append)

    for i in range(10):
        engine.update(Rect(0, 0, 10 + i, 10 + i))
        assert engine.pending == Rect(0, 0, 10 + i, 10 + i)

    assert engine.committed is None
    assert engine.debounce_active is True

    with qtbot.waitSignal(engine.committedChanged, timeout=1000):
        pass
    assert commits == [Rect(0, 0, 19, 19)]
    assert engine.committed == Rect(0, 0, 19, 19)


def test_updates_are_normalized() -> None:
    engine = CropSelectionEngine(debounce_ms=1000)
    engine.update(Rect(50, 40, -20, -10))
    assert engine.pending == Rect(30, 30, 20, 10)


def test_disabled_engine_ignores_updates() -> None:
    engine = CropSelectionEngine(debounce_ms=1000)
    engine.set_enabled(False)
    assert engine.update(Rect(0, 0, 5, 5)) is False
    assert engine.pending is None
    assert engine.debounce_active is False


def test_clear_cancels_pending_commit(qtbot) -> None:
    engine = CropSelectionEngine(debounce_ms=50)
    engine.update(Rect(0, 0, 5, 5))
    engine.clear()
    qtbot.wait(120)
    assert engine.pending is None
    assert engine.committed is None


def test_move_region_stays_in_bounds() -> None:
    bounds = Size(400, 300)
    out = move_region(Rect(300, 200, 100, 50), Point(80, 90), bounds)
    assert out == Rect(300, 250, 100, 50)

    out = move_region(Rect(10, 10, 100, 50), Point(-40, -40), bounds)
    assert out == Rect(0, 0, 100, 50)


def test_resize_region_flips_past_opposite_edge() -> None:
    bounds = Size(400, 300)
    start = Rect(100, 100, 50, 50)
    out = resize_region(start, "br", Point(60, 70), bounds)
    assert out == Rect(60, 70, 40, 30)


def test_resize_region_single_edge_and_clip() -> None:
    bounds = Size(400, 300)
    start = Rect(100, 100, 50, 50)
    out = resize_region(start, "r", Point(900, 10), bounds)
    assert out == Rect(100, 100, 300, 50)

    out = resize_region(start, "t", Point(0, -30), bounds)
    assert out == Rect(100, 0, 50, 150)
