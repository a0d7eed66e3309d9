# src/chip8_tracer/ui/register_view.py
"""
CPUのレジスタを表示するウィジェット。
AbstractCpuのレイアウト情報を利用して動的にUIを構築します。
"""
from typing import Dict, List, Optional
from PySide6.QtWidgets import QWidget, QVBoxLayout, QFormLayout, QLabel, QGroupBox
from PySide6.QtCore import Qt

from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.ui.fonts import get_monospace_font_family

VALUE_COLOR = "#FFD700"
CHANGED_COLOR = "#FF6060"

# @intent:responsibility CPUのレジスタ値をグループ別に表示し、直前の更新から変化した値を強調します。
class RegisterView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setStyleSheet("background-color: #121212; color: #BBBBBB;")

        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(5, 5, 5, 5)

        self._font_family = get_monospace_font_family()
        self._register_labels: Dict[str, QLabel] = {}
        self._register_widths: Dict[str, int] = {}
        self._previous_values: Dict[str, int] = {}
        self._changed: List[str] = []
        self._cpu: Optional[AbstractCpu] = None

    def set_cpu(self, cpu: AbstractCpu) -> None:
        self._cpu = cpu
        self._setup_ui()

    def _setup_ui(self):
        while self.layout.count():
            item = self.layout.takeAt(0)
            if item.widget():
                item.widget().deleteLater()
        self._register_labels.clear()
        self._register_widths.clear()
        self._previous_values.clear()
        self._changed = []

        for group in self._cpu.get_register_layout():
            group_box = QGroupBox(group.group_name)
            group_box.setStyleSheet("""
                QGroupBox {
                    font-weight: bold;
                    border: 1px solid #222;
                    border-radius: 4px;
                    margin-top: 20px;
                    color: #EEE;
                }
                QGroupBox::title {
                    subcontrol-origin: margin;
                    subcontrol-position: top left;
                    padding: 0 5px;
                    left: 10px;
                    color: #00C800;
                }
            """)
            group_layout = QFormLayout(group_box)
            group_layout.setLabelAlignment(Qt.AlignLeft)
            group_layout.setContentsMargins(10, 15, 10, 10)
            group_layout.setSpacing(4)

            for reg in group.registers:
                hex_width = (reg.width + 3) // 4  # 16bit -> 4桁, 8bit -> 2桁
                self._register_widths[reg.name] = hex_width

                label_name = QLabel(f"{reg.name}:")
                label_value = QLabel(self.format_value(reg.name, 0))
                self._apply_color(label_value, VALUE_COLOR)
                label_value.setAlignment(Qt.AlignRight)

                group_layout.addRow(label_name, label_value)
                self._register_labels[reg.name] = label_value

            self.layout.addWidget(group_box)

        self.layout.addStretch()

    def format_value(self, name: str, value: int) -> str:
        width = self._register_widths.get(name, 4)
        return f"0x{value:0{width}X}"

    def _apply_color(self, label: QLabel, color: str) -> None:
        label.setStyleSheet(f"font-family: '{self._font_family}', monospace; color: {color};")

    # @intent:responsibility 表示値を更新します。初回の更新では変化ありとみなしません。
    def update_registers(self):
        if not self._cpu:
            return
        changed = []
        for name, value in self._cpu.get_register_map().items():
            label = self._register_labels.get(name)
            if label is None:
                continue
            previous = self._previous_values.get(name)
            is_changed = previous is not None and previous != value
            if is_changed:
                changed.append(name)
            label.setText(self.format_value(name, value))
            self._apply_color(label, CHANGED_COLOR if is_changed else VALUE_COLOR)
            self._previous_values[name] = value
        self._changed = changed

    def changed_registers(self) -> List[str]:
        """直前のupdate_registersで値が変化したレジスタ名の一覧。"""
        return list(self._changed)

    def value_text(self, name: str) -> str:
        return self._register_labels[name].text()
