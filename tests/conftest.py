import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtCore import Qt
from PySide6.QtGui import QImage
from PySide6.QtWidgets import QApplication

from bugsnap.editor.annotations import MediaKind, MediaRef, Slide


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def make_slide(qapp):
    def _make(width=1600, height=900, kind=MediaKind.IMAGE, annotations=(), **media):
        image = QImage(width, height, QImage.Format.Format_RGB32)
        image.fill(Qt.GlobalColor.white)
        ref = MediaRef(image=image, **media)
        return Slide(kind, ref, name="Login page", annotations=tuple(annotations))

    return _make
