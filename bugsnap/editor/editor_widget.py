"""
Editor widget for BugSnap - the main editor UI component.

This widget composes the complete editor interface:
- Top toolbar with tools, undo/delete/discard and export buttons
- Center canvas for drawing annotations over the slide
- Right "Observations" panel with one comment box per annotation
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QImage
from PySide6.QtWidgets import (
    QApplication,
    QButtonGroup,
    QFrame,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPlainTextEdit,
    QScrollArea,
    QSizePolicy,
    QToolBar,
    QToolButton,
    QVBoxLayout,
    QWidget,
)

from bugsnap.core.errors import BugSnapError
from bugsnap.core.renderer import CompositeRenderer, RenderSettings
from bugsnap.editor.annotations import Slide
from bugsnap.editor.controller import ControllerSettings, ToolType
from bugsnap.editor.editor_canvas import EditorCanvas
from bugsnap.services.config_service import ConfigService
from bugsnap.services.logging_service import get_logger


class ObservationCard(QFrame):
    """Numbered comment editor for one annotation."""

    comment_edited = Signal(int, str)
    delete_requested = Signal(int)
    activated = Signal(int)

    def __init__(self, annotation_id: int, number: int, color: str, comment: str, parent=None):
        super().__init__(parent)
        self._annotation_id = annotation_id

        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 8, 10, 8)

        header = QHBoxLayout()
        self._badge = QLabel(str(number))
        self._badge.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._badge.setFixedSize(20, 20)
        self._badge.setStyleSheet(
            f"background-color: {color}; color: white; border-radius: 10px; font-weight: bold;"
        )
        header.addWidget(self._badge)
        self._title = QLabel(f"Issue #{number}")
        header.addWidget(self._title, 1)

        delete_btn = QToolButton()
        delete_btn.setText("✕")
        delete_btn.setToolTip("Delete observation")
        delete_btn.clicked.connect(lambda: self.delete_requested.emit(self._annotation_id))
        header.addWidget(delete_btn)
        layout.addLayout(header)

        self._editor = QPlainTextEdit()
        self._editor.setPlaceholderText("Describe the issue...")
        self._editor.setPlainText(comment)
        self._editor.setMinimumHeight(80)
        self._editor.textChanged.connect(self._on_text_changed)
        layout.addWidget(self._editor)

        self.set_selected(False)

    @property
    def annotation_id(self) -> int:
        return self._annotation_id

    def set_number(self, number: int) -> None:
        self._badge.setText(str(number))
        self._title.setText(f"Issue #{number}")

    def set_selected(self, selected: bool) -> None:
        border = "#3b82f6" if selected else "#e2e8f0"
        self.setStyleSheet(f"ObservationCard {{ border: 1px solid {border}; border-radius: 10px; }}")

    def focus_editor(self) -> None:
        self._editor.setFocus()

    def mousePressEvent(self, event) -> None:
        self.activated.emit(self._annotation_id)
        super().mousePressEvent(event)

    def _on_text_changed(self) -> None:
        self.comment_edited.emit(self._annotation_id, self._editor.toPlainText())


class ObservationsPanel(QScrollArea):
    """Right-hand list of observations for the mounted slide."""

    comment_edited = Signal(int, str)
    delete_requested = Signal(int)
    annotation_activated = Signal(int)

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWidgetResizable(True)
        self.setFixedWidth(320)
        self._cards: Dict[int, ObservationCard] = {}

        container = QWidget()
        self._layout = QVBoxLayout(container)
        self._layout.setAlignment(Qt.AlignmentFlag.AlignTop)

        title = QLabel("Observations")
        title.setStyleSheet("font-weight: bold; font-size: 16px;")
        self._layout.addWidget(title)
        self._empty = QLabel("No observations yet.\nSelect a tool and draw on the image.")
        self._empty.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self._layout.addWidget(self._empty)
        self.setWidget(container)

    def sync(self, slide: Optional[Slide], selected_id: Optional[int]) -> None:
        """
        Bring the cards in line with the slide.

        Cards are only created or removed when annotations come or go, so a
        comment box keeps focus while its text is being edited.
        """
        annotations = slide.annotations if slide else ()
        ids = [a.id for a in annotations]

        for annotation_id in list(self._cards):
            if annotation_id not in ids:
                self._cards.pop(annotation_id).deleteLater()

        for number, annotation in enumerate(annotations, start=1):
            card = self._cards.get(annotation.id)
            if card is None:
                card = ObservationCard(annotation.id, number, annotation.color, annotation.comment)
                card.comment_edited.connect(self.comment_edited)
                card.delete_requested.connect(self.delete_requested)
                card.activated.connect(self.annotation_activated)
                self._cards[annotation.id] = card
                self._layout.addWidget(card)
            card.set_number(number)
            card.set_selected(annotation.id == selected_id)

        self._empty.setVisible(not annotations)

    def reset(self) -> None:
        for card in self._cards.values():
            card.deleteLater()
        self._cards.clear()

    def focus_card(self, annotation_id: int) -> None:
        card = self._cards.get(annotation_id)
        if card:
            self.ensureWidgetVisible(card)
            card.focus_editor()


class EditorWidget(QWidget):
    """
    Main editor widget composing toolbar, canvas and observations panel.

    Signals:
        slide_updated: Emitted with the new Slide after every committed edit;
            the owner of the slide list stores it.
        pdf_requested: Emitted when the user asks for a multi-slide PDF.
    """

    slide_updated = Signal(object)
    pdf_requested = Signal()

    def __init__(self, config_service: Optional[ConfigService] = None, parent=None):
        super().__init__(parent)
        self._logger = get_logger(__name__)
        self._config = config_service

        if config_service is not None:
            controller_settings = ControllerSettings.from_config(config_service)
            render_settings = RenderSettings.from_config(config_service)
        else:
            controller_settings = ControllerSettings()
            render_settings = RenderSettings()
        self._renderer = CompositeRenderer(render_settings)
        self._canvas = EditorCanvas(controller_settings)

        self._setup_ui()
        self._connect_signals()
        self._select_tool(ToolType.RECTANGLE)

    def _setup_ui(self) -> None:
        """Build the UI layout."""
        main_layout = QVBoxLayout(self)
        main_layout.setContentsMargins(0, 0, 0, 0)
        main_layout.setSpacing(0)

        # ─── Top Toolbar ──────────────────────────────────────────────
        self._toolbar = QToolBar()
        self._toolbar.setMovable(False)

        self._tool_group = QButtonGroup(self)
        self._tool_group.setExclusive(True)

        tool_configs = [
            (ToolType.SELECT, "Select", "V"),
            (ToolType.RECTANGLE, "Rectangle", "R"),
            (ToolType.ELLIPSE, "Ellipse", "E"),
        ]
        for tool_type, label, shortcut in tool_configs:
            btn = QToolButton()
            btn.setText(label)
            btn.setToolTip(f"{label} ({shortcut})")
            btn.setCheckable(True)
            btn.setProperty("tool_type", tool_type)
            btn.clicked.connect(lambda checked, t=tool_type: self._select_tool(t))
            self._tool_group.addButton(btn)
            self._toolbar.addWidget(btn)

        self._toolbar.addSeparator()

        actions = [
            ("Undo", "Remove last annotation (Ctrl+Z)", self._undo_last),
            ("Delete", "Delete selected annotation (Del)", self._delete_selected),
            ("Discard All", "Remove every annotation on this slide", self._discard_all),
        ]
        for label, tooltip, handler in actions:
            btn = QToolButton()
            btn.setText(label)
            btn.setToolTip(tooltip)
            btn.clicked.connect(handler)
            self._toolbar.addWidget(btn)

        spacer = QWidget()
        spacer.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Preferred)
        self._toolbar.addWidget(spacer)

        copy_btn = QToolButton()
        copy_btn.setText("Copy")
        copy_btn.setToolTip("Copy report image to clipboard (Ctrl+C)")
        copy_btn.clicked.connect(self._copy_to_clipboard)
        self._toolbar.addWidget(copy_btn)

        save_btn = QToolButton()
        save_btn.setText("Save")
        save_btn.setToolTip("Save report image (Ctrl+S)")
        save_btn.clicked.connect(self._save_image)
        self._toolbar.addWidget(save_btn)

        pdf_btn = QToolButton()
        pdf_btn.setText("PDF")
        pdf_btn.setToolTip("Export every slide as a PDF report")
        pdf_btn.clicked.connect(lambda: self.pdf_requested.emit())
        self._toolbar.addWidget(pdf_btn)

        main_layout.addWidget(self._toolbar)

        # ─── Center Content ───────────────────────────────────────────
        content = QHBoxLayout()
        content.setContentsMargins(0, 0, 0, 0)
        content.setSpacing(0)
        content.addWidget(self._canvas, 1)

        self._observations = ObservationsPanel()
        content.addWidget(self._observations)
        main_layout.addLayout(content, 1)

    def _connect_signals(self) -> None:
        self._canvas.slide_changed.connect(self._on_slide_changed)
        self._canvas.selection_changed.connect(self._on_selection_changed)
        self._observations.comment_edited.connect(self._on_comment_edited)
        self._observations.delete_requested.connect(self._on_delete_requested)
        self._observations.annotation_activated.connect(self._on_annotation_activated)

    # ─── Public API ───────────────────────────────────────────────────────

    @property
    def canvas(self) -> EditorCanvas:
        return self._canvas

    @property
    def renderer(self) -> CompositeRenderer:
        return self._renderer

    def set_slide(self, slide: Optional[Slide]) -> None:
        """Mount a slide in the editor."""
        self._observations.reset()
        self._canvas.set_slide(slide)
        self._observations.sync(slide, None)

    # ─── Tool Management ──────────────────────────────────────────────────

    def _select_tool(self, tool_type: ToolType) -> None:
        self._canvas.set_tool(tool_type)
        for btn in self._tool_group.buttons():
            if btn.property("tool_type") == tool_type:
                btn.setChecked(True)
                break

    # ─── Signal Handlers ──────────────────────────────────────────────────

    @Slot(object)
    def _on_slide_changed(self, slide: Slide) -> None:
        controller = self._canvas.controller
        self._observations.sync(slide, controller.selected_annotation_id if controller else None)
        self.slide_updated.emit(slide)

    @Slot(object)
    def _on_selection_changed(self, annotation_id) -> None:
        self._observations.sync(self._canvas.slide, annotation_id)
        controller = self._canvas.controller
        # A freshly drawn annotation is the last one; focus its comment box
        if controller and annotation_id is not None and controller.annotations:
            if controller.annotations[-1].id == annotation_id:
                self._observations.focus_card(annotation_id)

    @Slot(int, str)
    def _on_comment_edited(self, annotation_id: int, text: str) -> None:
        controller = self._canvas.controller
        if controller:
            controller.set_comment(annotation_id, text)

    @Slot(int)
    def _on_delete_requested(self, annotation_id: int) -> None:
        controller = self._canvas.controller
        if controller:
            controller.delete_annotation(annotation_id)

    @Slot(int)
    def _on_annotation_activated(self, annotation_id: int) -> None:
        controller = self._canvas.controller
        if controller:
            controller.select(annotation_id)
            self._observations.sync(controller.slide, annotation_id)
            self._canvas.update()

    def _undo_last(self) -> None:
        if self._canvas.controller:
            self._canvas.controller.undo_last()

    def _delete_selected(self) -> None:
        if self._canvas.controller:
            self._canvas.controller.delete_selected()

    def _discard_all(self) -> None:
        controller = self._canvas.controller
        if controller is None or not controller.annotations:
            return
        answer = QMessageBox.question(
            self, "Discard annotations", "Remove every annotation on this slide?"
        )
        if answer == QMessageBox.StandardButton.Yes:
            controller.discard_all()

    # ─── Export ───────────────────────────────────────────────────────────

    def render_current(self) -> Optional[QImage]:
        """Composite of the mounted slide at its live display width."""
        slide = self._canvas.slide
        if slide is None:
            return None
        return self._renderer.compose(slide, self._canvas.live_source())

    def _save_image(self) -> Optional[Path]:
        """Render the mounted slide and save it as PNG; returns the written path."""
        slide = self._canvas.slide
        if slide is None:
            return None

        if self._config:
            save_folder = Path(self._config.default_save_folder)
        else:
            save_folder = Path.home() / "Pictures" / "BugSnap"

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        filepath = save_folder / f"bugsnap_{timestamp}.png"

        try:
            artifact = self._renderer.render_composite(slide, self._canvas.live_source())
            save_folder.mkdir(parents=True, exist_ok=True)
            filepath.write_bytes(artifact.data)
        except (BugSnapError, OSError) as e:
            self._logger.error(f"Could not save slide: {e}")
            QMessageBox.warning(self, "Save failed", str(e))
            return None

        self._logger.info(f"Saved to {filepath}")
        return filepath

    def _copy_to_clipboard(self) -> None:
        """Copy the mounted slide's composite to the clipboard."""
        try:
            image = self.render_current()
        except BugSnapError as e:
            self._logger.error(f"Could not render slide: {e}")
            QMessageBox.warning(self, "Copy failed", str(e))
            return
        if image is None:
            return

        QApplication.clipboard().setImage(image)
        self._logger.info("Copied report image to clipboard")

    # ─── Key Events ───────────────────────────────────────────────────────

    def keyPressEvent(self, event) -> None:
        """Handle keyboard shortcuts."""
        key = event.key()
        modifiers = event.modifiers()

        tool_shortcuts = {
            Qt.Key.Key_V: ToolType.SELECT,
            Qt.Key.Key_R: ToolType.RECTANGLE,
            Qt.Key.Key_E: ToolType.ELLIPSE,
        }
        if key in tool_shortcuts and modifiers == Qt.KeyboardModifier.NoModifier:
            self._select_tool(tool_shortcuts[key])
            return

        if modifiers & Qt.KeyboardModifier.ControlModifier:
            if key == Qt.Key.Key_Z:
                self._undo_last()
                return
            if key == Qt.Key.Key_S:
                self._save_image()
                return
            if key == Qt.Key.Key_C:
                self._copy_to_clipboard()
                return

        super().keyPressEvent(event)
