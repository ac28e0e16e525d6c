from __future__ import annotations

import pytest
from PySide6.QtWidgets import QApplication

from reaper.styles import ReaperColors, apply_theme, build_stylesheet


@pytest.mark.parametrize("theme", ["dark", "light"])
def test_stylesheet_has_no_unfilled_placeholders(theme) -> None:
    qss = build_stylesheet(theme, 11)
    assert "{{" not in qss
    assert "font-size: 11pt" in qss


def test_accent_follows_theme() -> None:
    assert ReaperColors.DARK_ACCENT in build_stylesheet("dark")
    assert ReaperColors.LIGHT_ACCENT in build_stylesheet("light")


def test_apply_theme_sets_app_stylesheet() -> None:
    app = QApplication.instance()
    apply_theme(app, "light")
    try:
        assert app.styleSheet() == build_stylesheet("light")
    finally:
        apply_theme(app, "dark")
