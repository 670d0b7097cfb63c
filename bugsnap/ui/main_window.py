"""
Main window for BugSnap application.

This module contains the main application window: the list of slides that
make up one bug report, the editor for the active slide, and the menu
actions that work across slides (open, navigate, PDF export, summary).
"""

from pathlib import Path
from typing import List, Optional, Sequence

from PySide6.QtGui import QAction, QKeySequence
from PySide6.QtWidgets import (
    QApplication,
    QFileDialog,
    QMainWindow,
    QMessageBox,
    QWidget,
)

from bugsnap.core.errors import BugSnapError
from bugsnap.core.pdf_export import export_pdf
from bugsnap.core.summary import render_summary
from bugsnap.editor.annotations import MediaSource, Slide, load_image_slide
from bugsnap.editor.editor_widget import EditorWidget
from bugsnap.services.config_service import ConfigService
from bugsnap.services.logging_service import get_logger

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.webp *.bmp *.gif)"


class MainWindow(QMainWindow):
    """
    Main application window for BugSnap.

    The window owns the report: the ordered slides and which one is active.
    Edits made in the editor come back through EditorWidget.slide_updated and
    replace the stored slide with the same id.
    """

    def __init__(
        self,
        config_service: Optional[ConfigService] = None,
        parent: Optional[QWidget] = None
    ) -> None:
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config_service
        self._slides: List[Slide] = []
        self._active_id: Optional[str] = None

        self._setup_window()
        self._setup_central_widget()
        self._setup_menu_bar()

        self._logger.info("MainWindow initialized")

    def _setup_window(self) -> None:
        """Configure main window properties."""
        self.setWindowTitle("BugSnap - Annotated Bug Reports")
        self.setMinimumSize(800, 600)
        self.resize(1280, 800)

    def _setup_central_widget(self) -> None:
        """Set up the central widget (editor)."""
        self._editor = EditorWidget(self._config, self)
        self._editor.slide_updated.connect(self.update_slide)
        self._editor.pdf_requested.connect(self._on_export_pdf)
        self.setCentralWidget(self._editor)

    def _setup_menu_bar(self) -> None:
        """Create and configure the menu bar."""
        menu_bar = self.menuBar()

        # ─── File Menu ────────────────────────────────────────────────
        file_menu = menu_bar.addMenu("&File")

        open_action = QAction("&Open Images...", self)
        open_action.setShortcut(QKeySequence.StandardKey.Open)
        open_action.triggered.connect(self._on_open)
        file_menu.addAction(open_action)

        pdf_action = QAction("Export &PDF...", self)
        pdf_action.setShortcut("Ctrl+P")
        pdf_action.triggered.connect(self._on_export_pdf)
        file_menu.addAction(pdf_action)

        summary_action = QAction("Copy &Summary", self)
        summary_action.setShortcut("Ctrl+Shift+C")
        summary_action.triggered.connect(self._on_copy_summary)
        file_menu.addAction(summary_action)

        file_menu.addSeparator()

        quit_action = QAction("&Quit", self)
        quit_action.setShortcut(QKeySequence.StandardKey.Quit)
        quit_action.triggered.connect(self.close)
        file_menu.addAction(quit_action)

        # ─── Slide Menu ───────────────────────────────────────────────
        slide_menu = menu_bar.addMenu("&Slide")

        prev_action = QAction("&Previous", self)
        prev_action.setShortcut("PgUp")
        prev_action.triggered.connect(self.previous_slide)
        slide_menu.addAction(prev_action)

        next_action = QAction("&Next", self)
        next_action.setShortcut("PgDown")
        next_action.triggered.connect(self.next_slide)
        slide_menu.addAction(next_action)

    # ─── Slides ───────────────────────────────────────────────────────────

    @property
    def slides(self) -> List[Slide]:
        return list(self._slides)

    @property
    def active_slide(self) -> Optional[Slide]:
        for slide in self._slides:
            if slide.id == self._active_id:
                return slide
        return None

    def add_slides(self, slides: Sequence[Slide]) -> None:
        """Append slides to the report and activate the first new one."""
        if not slides:
            return
        self._slides.extend(slides)
        self.set_active_slide(slides[0].id)

    def update_slide(self, slide: Slide) -> None:
        """Replace the stored slide that has the same id."""
        for index, existing in enumerate(self._slides):
            if existing.id == slide.id:
                self._slides[index] = slide
                return
        self._logger.warning(f"Update for unknown slide {slide.id} ignored")

    def set_active_slide(self, slide_id: str) -> None:
        """Mount a slide in the editor; selection and gestures start fresh."""
        self._active_id = slide_id
        slide = self.active_slide
        self._editor.set_slide(slide)
        self._update_title()

    def next_slide(self) -> None:
        self._step(1)

    def previous_slide(self) -> None:
        self._step(-1)

    def _step(self, delta: int) -> None:
        ids = [s.id for s in self._slides]
        if self._active_id not in ids:
            return
        index = ids.index(self._active_id) + delta
        if 0 <= index < len(ids):
            self.set_active_slide(ids[index])

    def _update_title(self) -> None:
        slide = self.active_slide
        if slide is None:
            self.setWindowTitle("BugSnap - Annotated Bug Reports")
            return
        position = [s.id for s in self._slides].index(slide.id) + 1
        self.setWindowTitle(f"BugSnap - {slide.name} ({position}/{len(self._slides)})")

    def _source_for(self, slide: Slide) -> Optional[MediaSource]:
        if slide.id == self._active_id:
            return self._editor.canvas.live_source()
        return None

    # ─── Menu Actions ─────────────────────────────────────────────────────

    def open_images(self, paths: Sequence[str]) -> None:
        """Load image files as new slides; unreadable files are reported."""
        loaded = []
        for path in paths:
            try:
                loaded.append(load_image_slide(path))
            except BugSnapError as e:
                self._logger.error(f"Could not open {path}: {e}")
                QMessageBox.warning(self, "Open failed", str(e))
        self.add_slides(loaded)
        self._logger.info(f"Opened {len(loaded)} of {len(paths)} images")

    def _on_open(self) -> None:
        """Handle File > Open Images."""
        paths, _ = QFileDialog.getOpenFileNames(self, "Open Images", "", IMAGE_FILTER)
        if paths:
            self.open_images(paths)

    def _on_export_pdf(self) -> None:
        """Handle File > Export PDF."""
        if not self._slides:
            return

        if self._config:
            folder = Path(self._config.default_save_folder)
        else:
            folder = Path.home()
        suggested = str(folder / "Bug_Report.pdf")
        path, _ = QFileDialog.getSaveFileName(self, "Export PDF", suggested, "PDF (*.pdf)")
        if not path:
            return

        try:
            export_pdf(self._slides, self._editor.renderer, path, self._source_for)
        except (BugSnapError, OSError) as e:
            self._logger.error(f"PDF export failed: {e}")
            QMessageBox.warning(self, "Export failed", str(e))

    def _on_copy_summary(self) -> None:
        """Handle File > Copy Summary."""
        if not self._slides:
            return
        QApplication.clipboard().setText(render_summary(self._slides))
        self._logger.info("Copied report summary to clipboard")
