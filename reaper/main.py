import os
import sys
from concurrent.futures import Executor
from pathlib import Path

from PySide6.QtCore import Slot
from PySide6.QtGui import QAction, QActionGroup, QKeySequence
from PySide6.QtWidgets import QApplication, QMainWindow, QStackedWidget, QTabWidget

from reaper.file_operations import choose_image_file, local_paths_from_mime
from reaper.image_engine.source import IngestionError, SourceImage, load_image
from reaper.logger import ENV_CATS, ENV_LEVEL, get_logger, setup_logger
from reaper.settings_manager import SettingsManager, default_settings_path
from reaper.styles import THEMES, apply_theme
from reaper.ui_convert import ConvertView
from reaper.ui_crop import CropView
from reaper.ui_drop_zone import DropZone
from reaper.ui_edit_view import EditView
from reaper.ui_merge import MergeView
from reaper.ui_resize import ResizeView

# --- CLI logging options -----------------------------------------------------
# Qt rejects unknown options, so ours are moved into REAPER_LOG_LEVEL /
# REAPER_LOG_CATS and removed from sys.argv before QApplication sees them.


def _apply_cli_logging_options(argv: list[str] | None = None) -> list[str]:
    import argparse

    args_in = sys.argv if argv is None else argv
    parser = argparse.ArgumentParser(description="Reaper", add_help=False)
    parser.add_argument("--log-level", help="Set log level")
    parser.add_argument("--log-cats", help="Set log categories")
    args, remaining = parser.parse_known_args(args_in[1:])
    if args.log_level:
        os.environ[ENV_LEVEL] = args.log_level
    if args.log_cats:
        os.environ[ENV_CATS] = args.log_cats
    args_in[:] = [args_in[0], *remaining]
    # loggers created at import time pick up the new level/categories
    setup_logger()
    return args_in


logger = get_logger("main")


class EditorWindow(QMainWindow):
    """Main window: the image editor tabs and the PDF merge tab."""

    def __init__(self, settings: SettingsManager | None = None, *, executor: Executor | None = None):
        super().__init__()
        self.setWindowTitle("Reaper")
        self.resize(1100, 720)
        self._settings = settings if settings is not None else SettingsManager(default_settings_path())
        self._source: SourceImage | None = None

        # Image tab: drop zone until an image is loaded, then the edit views
        self.drop_zone = DropZone()
        self.drop_zone.fileDropped.connect(self.open_image)
        self.drop_zone.selectRequested.connect(self.choose_image)

        self.crop_view = CropView(self._settings, executor=executor)
        self.resize_view = ResizeView(self._settings, executor=executor)
        self.convert_view = ConvertView(self._settings, executor=executor)
        self.views: list[EditView] = [self.crop_view, self.resize_view, self.convert_view]
        self.edit_tabs = QTabWidget()
        for title, view in zip(("Crop", "Resize", "Convert"), self.views):
            self.edit_tabs.addTab(view, title)
            view.clearRequested.connect(self.clear_image)
            view.notify.connect(self.notify)

        self.image_stack = QStackedWidget()
        self.image_stack.addWidget(self.drop_zone)
        self.image_stack.addWidget(self.edit_tabs)

        self.merge_view = MergeView(self._settings, executor=executor)
        self.merge_view.notify.connect(self.notify)

        self.tabs = QTabWidget()
        self.tabs.addTab(self.image_stack, "Image")
        self.tabs.addTab(self.merge_view, "Merge PDFs")
        self.setCentralWidget(self.tabs)
        self.statusBar()

        self.theme_group: QActionGroup | None = None
        self._build_menus()
        # Drops anywhere on the Image tab replace the source, also once the drop zone is hidden
        self.setAcceptDrops(True)

    # ---- menus ----
    def _build_menus(self) -> None:
        menu_bar = self.menuBar()

        file_menu = menu_bar.addMenu("File(&F)")
        open_action = QAction("Open Image...(&O)", self)
        open_action.setShortcut(QKeySequence("Ctrl+O"))
        open_action.triggered.connect(self.choose_image)
        file_menu.addAction(open_action)

        merge_action = QAction("Merge PDFs(&M)", self)
        merge_action.setShortcut(QKeySequence("Ctrl+M"))
        merge_action.triggered.connect(self.show_merge)
        file_menu.addAction(merge_action)

        file_menu.addSeparator()
        exit_action = QAction("Quit(&Q)", self)
        exit_action.setShortcut(QKeySequence("Ctrl+Q"))
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        view_menu = menu_bar.addMenu("View(&V)")
        theme_menu = view_menu.addMenu("Theme")
        self.theme_group = QActionGroup(self)
        self.theme_group.setExclusive(True)
        current = self._settings.get("theme", "dark")
        for theme in THEMES:
            action = QAction(theme.capitalize(), self, checkable=True)
            action.setData(theme)
            action.setChecked(theme == current)
            action.triggered.connect(lambda _checked=False, t=theme: self.set_theme(t))
            self.theme_group.addAction(action)
            theme_menu.addAction(action)

    # ---- image source ----
    @property
    def source(self) -> SourceImage | None:
        return self._source

    def open_image(self, path: str) -> bool:
        """Load `path` into every edit view; on failure the previous image stays."""
        try:
            source = load_image(path)
        except IngestionError as e:
            logger.error("failed to open %s: %s", path, e)
            self.notify(f"Failed to load image: {e}")
            return False
        self._settings.set("last_open_dir", path)
        self.set_source(source)
        self.notify(f"Loaded {source.file_name}")
        return True

    def _dropped_image_path(self, event) -> str | None:
        if self.tabs.currentWidget() is not self.image_stack:
            return None
        paths = local_paths_from_mime(event.mimeData())
        return paths[0] if paths else None

    def dragEnterEvent(self, event) -> None:  # type: ignore
        if self._dropped_image_path(event):
            event.acceptProposedAction()
            return
        event.ignore()

    def dropEvent(self, event) -> None:  # type: ignore
        path = self._dropped_image_path(event)
        if path is None:
            event.ignore()
            return
        event.acceptProposedAction()
        self.open_image(path)

    def set_source(self, source: SourceImage | None) -> None:
        self._source = source
        for view in self.views:
            view.set_source(source)
        self.image_stack.setCurrentWidget(self.edit_tabs if source is not None else self.drop_zone)
        if source is not None:
            self.setWindowTitle(f"Reaper - {source.file_name}")
        else:
            self.setWindowTitle("Reaper")

    @Slot()
    def clear_image(self) -> None:
        logger.debug("clearing image")
        self.set_source(None)

    @Slot()
    def choose_image(self) -> None:
        path = choose_image_file(self, self._settings.last_open_dir)
        if path:
            self.tabs.setCurrentWidget(self.image_stack)
            self.open_image(path)

    @Slot()
    def show_merge(self) -> None:
        self.tabs.setCurrentWidget(self.merge_view)

    # ---- misc ----
    @Slot(str)
    def notify(self, message: str) -> None:
        self.statusBar().showMessage(message, self._settings.get_int("toast_duration_ms"))

    def set_theme(self, theme: str) -> None:
        app = QApplication.instance()
        if app is None:
            return
        apply_theme(app, theme)
        self._settings.set("theme", theme)
        logger.debug("theme applied: %s", theme)

    def closeEvent(self, event) -> None:  # type: ignore
        for view in self.views:
            view.shutdown()
        self.merge_view.shutdown()
        super().closeEvent(event)


def run(argv: list[str] | None = None) -> int:
    """Application entrypoint (packaging-friendly)."""
    import argparse

    argv = _apply_cli_logging_options(list(sys.argv if argv is None else argv))

    parser = argparse.ArgumentParser(add_help=False)
    parser.add_argument("start_path", nargs="?", help="Image file to open")
    args, _ = parser.parse_known_args(argv[1:])
    start_path = Path(args.start_path) if args.start_path else None

    app = QApplication(argv)
    window = EditorWindow()
    apply_theme(app, window._settings.get("theme", "dark"))

    if start_path is not None:
        window.open_image(str(start_path))
    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(run())
