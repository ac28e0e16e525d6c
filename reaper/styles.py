from __future__ import annotations

from PySide6.QtGui import QColor, QFont, QPalette
from PySide6.QtWidgets import QApplication

THEMES = ("dark", "light")


class ReaperColors:
    # Dark: near-black surfaces, red accent
    DARK_WINDOW = "#0B0B0B"
    DARK_SURFACE = "#171717"
    DARK_SURFACE_ALT = "#222222"
    DARK_BORDER = "#3A3A3A"
    DARK_TEXT = "#E5E5E5"
    DARK_TEXT_SEC = "#9CA3AF"
    DARK_ACCENT = "#EF4444"
    DARK_ACCENT_HOVER = "#DC2626"
    DARK_ACCENT_TEXT = "#000000"
    DARK_ERROR = "#F87171"

    # Light
    LIGHT_WINDOW = "#F5F5F5"
    LIGHT_SURFACE = "#FFFFFF"
    LIGHT_SURFACE_ALT = "#F0F0F0"
    LIGHT_BORDER = "#D4D4D4"
    LIGHT_TEXT = "#171717"
    LIGHT_TEXT_SEC = "#525252"
    LIGHT_ACCENT = "#DC2626"
    LIGHT_ACCENT_HOVER = "#B91C1C"
    LIGHT_ACCENT_TEXT = "#FFFFFF"
    LIGHT_ERROR = "#B91C1C"


COMMON_QSS = """
    * {
        font-size: {{font_size}}pt;
    }
    QToolTip {
        color: {{text}};
        background-color: {{surface}};
        border: 1px solid {{border}};
        padding: 4px;
    }
    QStatusBar {
        background-color: {{window}};
        color: {{text_sec}};
        border-top: 1px solid {{border}};
    }
    QMenuBar {
        background-color: {{window}};
        color: {{text}};
        border-bottom: 1px solid {{border}};
    }
    QMenuBar::item:selected, QMenu::item:selected {
        background-color: {{accent}};
        color: {{accent_text}};
    }
    QMenu {
        background-color: {{surface}};
        color: {{text}};
        border: 1px solid {{border}};
    }

    /* Tabs */
    QTabWidget::pane {
        border: 1px solid {{border}};
        border-radius: 6px;
    }
    QTabBar::tab {
        background: {{surface}};
        color: {{text_sec}};
        padding: 6px 16px;
        border: 1px solid {{border}};
        border-bottom: none;
        border-top-left-radius: 6px;
        border-top-right-radius: 6px;
    }
    QTabBar::tab:selected {
        color: {{accent}};
        border-color: {{accent}};
    }

    /* Buttons */
    QPushButton {
        background-color: {{surface_alt}};
        color: {{accent}};
        border: 1px solid {{accent}};
        border-radius: 6px;
        padding: 6px 14px;
    }
    QPushButton:hover {
        background-color: {{accent}};
        color: {{accent_text}};
    }
    QPushButton:pressed, QPushButton:checked {
        background-color: {{accent_hover}};
        color: {{accent_text}};
    }
    QPushButton:disabled {
        color: {{text_sec}};
        border-color: {{border}};
    }

    /* Inputs */
    QSpinBox, QComboBox, QListWidget {
        background-color: {{surface}};
        color: {{text}};
        border: 1px solid {{border}};
        border-radius: 4px;
        padding: 4px;
    }
    QSpinBox:focus, QComboBox:focus, QListWidget:focus {
        border: 1px solid {{accent}};
    }
    QListWidget::item:selected {
        background-color: {{accent}};
        color: {{accent_text}};
    }
    QProgressBar {
        border: 1px solid {{border}};
        border-radius: 3px;
        max-height: 6px;
    }
    QProgressBar::chunk {
        background-color: {{accent}};
    }

    /* App-specific */
    #dropZone {
        border: 2px dashed {{accent}};
        border-radius: 8px;
    }
    #dropTitle, #resultTitle {
        color: {{accent}};
        font-size: {{title_font_size}}pt;
        font-weight: bold;
    }
    #metadata {
        color: {{text_sec}};
    }
    #error {
        color: {{error}};
    }
"""


def _palette_for(theme: str) -> dict[str, str]:
    c = ReaperColors
    if theme == "light":
        return {
            "window": c.LIGHT_WINDOW,
            "surface": c.LIGHT_SURFACE,
            "surface_alt": c.LIGHT_SURFACE_ALT,
            "border": c.LIGHT_BORDER,
            "text": c.LIGHT_TEXT,
            "text_sec": c.LIGHT_TEXT_SEC,
            "accent": c.LIGHT_ACCENT,
            "accent_hover": c.LIGHT_ACCENT_HOVER,
            "accent_text": c.LIGHT_ACCENT_TEXT,
            "error": c.LIGHT_ERROR,
        }
    return {
        "window": c.DARK_WINDOW,
        "surface": c.DARK_SURFACE,
        "surface_alt": c.DARK_SURFACE_ALT,
        "border": c.DARK_BORDER,
        "text": c.DARK_TEXT,
        "text_sec": c.DARK_TEXT_SEC,
        "accent": c.DARK_ACCENT,
        "accent_hover": c.DARK_ACCENT_HOVER,
        "accent_text": c.DARK_ACCENT_TEXT,
        "error": c.DARK_ERROR,
    }


def build_stylesheet(theme: str = "dark", font_size: int = 10) -> str:
    qss = COMMON_QSS.replace("{{font_size}}", str(font_size))
    qss = qss.replace("{{title_font_size}}", str(font_size + 4))
    for key, val in _palette_for(theme).items():
        qss = qss.replace(f"{{{{{key}}}}}", val)
    return qss


def apply_theme(app: QApplication, theme: str = "dark", font_size: int = 10) -> None:
    """Apply palette, font and stylesheet for `theme` ("dark" or "light")."""
    pal_def = _palette_for(theme)
    app.setStyle("Fusion")

    palette = QPalette()
    c_surface = QColor(pal_def["surface"])
    c_text = QColor(pal_def["text"])
    c_accent = QColor(pal_def["accent"])
    c_disabled = QColor(pal_def["text_sec"])
    palette.setColor(QPalette.ColorRole.Window, QColor(pal_def["window"]))
    palette.setColor(QPalette.ColorRole.WindowText, c_text)
    palette.setColor(QPalette.ColorRole.Base, c_surface)
    palette.setColor(QPalette.ColorRole.AlternateBase, QColor(pal_def["surface_alt"]))
    palette.setColor(QPalette.ColorRole.Text, c_text)
    palette.setColor(QPalette.ColorRole.Button, c_surface)
    palette.setColor(QPalette.ColorRole.ButtonText, c_text)
    palette.setColor(QPalette.ColorRole.Highlight, c_accent)
    palette.setColor(QPalette.ColorRole.HighlightedText, QColor(pal_def["accent_text"]))
    palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.Text, c_disabled)
    palette.setColor(QPalette.ColorGroup.Disabled, QPalette.ColorRole.ButtonText, c_disabled)
    app.setPalette(palette)

    font = QFont()
    font.setStyleHint(QFont.StyleHint.SansSerif)
    font.setPointSize(font_size)
    app.setFont(font)

    app.setStyleSheet(build_stylesheet(theme, font_size))
