from bugsnap.editor.annotations import Point
from bugsnap.ui import main_window
from bugsnap.ui.main_window import MainWindow


def test_navigation_and_slide_updates(make_slide) -> None:
    window = MainWindow()
    first, second = make_slide(400, 300), make_slide(640, 480)
    window.add_slides([first, second])
    assert window.active_slide.id == first.id

    controller = window._editor.canvas.controller
    controller.pointer_down(Point(10, 10))
    controller.pointer_up(Point(120, 90))
    assert len(window.slides[0].annotations) == 1

    window.next_slide()
    assert window.active_slide.id == second.id
    assert window._editor.canvas.controller.selected_annotation_id is None
    window.next_slide()
    assert window.active_slide.id == second.id

    window.previous_slide()
    assert window.active_slide.id == first.id
    assert len(window._editor.canvas.slide.annotations) == 1


def test_pdf_export_reports_unwritable_path(make_slide, tmp_path, monkeypatch) -> None:
    warnings = []
    blocker = tmp_path / "not_a_folder"
    blocker.write_text("")
    monkeypatch.setattr(
        main_window.QFileDialog, "getSaveFileName",
        lambda *args: (str(blocker / "report.pdf"), "PDF (*.pdf)"),
    )
    monkeypatch.setattr(
        main_window.QMessageBox, "warning", lambda *args: warnings.append(args[1])
    )
    window = MainWindow()
    window.add_slides([make_slide(400, 300)])

    window._on_export_pdf()
    assert warnings == ["Export failed"]
