"""
CHIP-8の表示バッファを拡大描画するウィジェット。
"""
from typing import List, Optional, Tuple

from PySide6.QtWidgets import QWidget, QSizePolicy
from PySide6.QtGui import QColor, QPainter, QPen
from PySide6.QtCore import QSize, QRect

from chip8_tracer.arch.chip8.display import DisplayView as FrameView
from chip8_tracer.arch.chip8.memory_map import DISPLAY_WIDTH, DISPLAY_HEIGHT
from chip8_tracer.config.models import DisplayConfig

# @intent:responsibility 点灯セルを前景色＋輪郭色、消灯セルを背景色で描画します。
class DisplayView(QWidget):
    def __init__(self, config: Optional[DisplayConfig] = None, parent=None):
        super().__init__(parent)
        self._frame: Optional[FrameView] = None
        self.apply_config(config or DisplayConfig())
        self.setSizePolicy(QSizePolicy.Fixed, QSizePolicy.Fixed)

    def apply_config(self, config: DisplayConfig) -> None:
        self.scale = config.scale
        self.foreground = QColor(config.foreground)
        self.outline = QColor(config.outline)
        self.background = QColor(config.background)
        self.setFixedSize(self.sizeHint())
        self.update()

    def set_frame(self, frame: FrameView) -> None:
        self._frame = frame
        self.setFixedSize(self.sizeHint())
        self.update()

    def sizeHint(self) -> QSize:
        width = self._frame.width if self._frame else DISPLAY_WIDTH
        height = self._frame.height if self._frame else DISPLAY_HEIGHT
        return QSize(width * self.scale, height * self.scale)

    # @intent:responsibility 点灯セルの描画矩形（x, y, w, h）を列挙します。
    def lit_cells(self) -> List[Tuple[int, int, int, int]]:
        if self._frame is None:
            return []
        return [(x * self.scale, y * self.scale, self.scale, self.scale)
                for x, y, lit in self._frame if lit]

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), self.background)
        pen = QPen(self.outline)
        pen.setWidth(1)
        painter.setPen(pen)
        for x, y, w, h in self.lit_cells():
            painter.fillRect(x, y, w, h, self.foreground)
            painter.drawRect(QRect(x, y, w - 1, h - 1))
        painter.end()
