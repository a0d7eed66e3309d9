"""
逆アセンブルコードを表示するウィジェット。
"""
from typing import Iterable

from PySide6.QtWidgets import QWidget, QVBoxLayout, QTableWidget, QTableWidgetItem, QHeaderView
from PySide6.QtGui import QColor

from chip8_tracer.transport.bus import Bus, BusAccess, BusAccessType
from chip8_tracer.arch.chip8.disassembler import disassemble
from chip8_tracer.arch.chip8.memory_map import MEMORY_STACK
from chip8_tracer.ui.fonts import get_monospace_font

HIGHLIGHT = QColor("#404000")
NORMAL = QColor("#101010")

# @intent:responsibility 逆アセンブル結果を表形式で表示し、現在のPC行をハイライトします。
class CodeView(QWidget):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.layout = QVBoxLayout(self)
        self.layout.setContentsMargins(0, 0, 0, 0)

        self.table = QTableWidget()
        self.table.setColumnCount(3)
        self.table.setHorizontalHeaderLabels(["Address", "Bytes", "Mnemonic"])
        self.table.horizontalHeader().setSectionResizeMode(0, QHeaderView.ResizeToContents)
        self.table.horizontalHeader().setSectionResizeMode(1, QHeaderView.ResizeToContents)
        self.table.horizontalHeader().setSectionResizeMode(2, QHeaderView.Stretch)
        self.table.setFont(get_monospace_font(10))
        self.table.verticalHeader().setVisible(False)
        self.table.setEditTriggers(QTableWidget.NoEditTriggers)
        self.table.setSelectionBehavior(QTableWidget.SelectRows)
        self.table.setShowGrid(False)
        self.table.setStyleSheet("background-color: #101010; color: #BBBBBB;")
        self.layout.addWidget(self.table)

        # [(addr, hex, mnemonic), ...]
        self.disassembled_data = []
        self.current_row = -1

    # @intent:responsibility PCが表示範囲内ならハイライト移動のみ、範囲外ならPCから再逆アセンブルします。
    def update_code(self, bus: Bus, pc: int):
        row_index = self._row_of(pc)

        if row_index == -1:
            # CHIP-8命令は2バイト境界に揃っていない場合もあるため、PCを起点に逆アセンブルし直す
            length = max(2, MEMORY_STACK - pc) if pc < MEMORY_STACK else 0x100
            self.disassembled_data = disassemble(bus, pc, length)
            self.table.setRowCount(len(self.disassembled_data))
            for row, (addr, hex_dump, mnemonic) in enumerate(self.disassembled_data):
                self.table.setItem(row, 0, QTableWidgetItem(f"{addr:04X}"))
                self.table.setItem(row, 1, QTableWidgetItem(hex_dump))
                self.table.setItem(row, 2, QTableWidgetItem(mnemonic))
            row_index = self._row_of(pc)

        for row in range(self.table.rowCount()):
            color = HIGHLIGHT if row == row_index else NORMAL
            for column in range(3):
                self.table.item(row, column).setBackground(color)

        self.current_row = row_index
        if row_index != -1:
            self.table.scrollToItem(self.table.item(row_index, 0), QTableWidget.PositionAtCenter)

    # @intent:responsibility 表示中の範囲へ書き込みがあった場合（自己書き換え）、次の更新で再逆アセンブルさせます。
    def note_writes(self, accesses: Iterable[BusAccess]) -> bool:
        if not self.disassembled_data:
            return False
        first = self.disassembled_data[0][0]
        last = self.disassembled_data[-1][0] + 1  # 最終行の下位バイト
        for access in accesses:
            if access.access_type == BusAccessType.WRITE and first <= access.address <= last:
                self.disassembled_data = []
                return True
        return False

    def _row_of(self, pc: int) -> int:
        for i, (addr, _, _) in enumerate(self.disassembled_data):
            if addr == pc:
                return i
        return -1

    def reset_cache(self):
        """ROMのロードなどでメモリ内容が変わった際に呼び出します。"""
        self.disassembled_data = []
        self.current_row = -1
        self.table.setRowCount(0)
