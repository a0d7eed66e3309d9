# src/chip8_tracer/ui/main_window.py
"""
メインウィンドウの実装。
表示、レジスタ、逆アセンブルの各ビューを保持し、QTimerでフレームループを駆動します。
"""
import logging
from typing import Optional

from PySide6.QtWidgets import (QMainWindow, QApplication, QDockWidget, QTabWidget, QToolBar,
                               QFileDialog, QMessageBox, QWidget, QVBoxLayout)
from PySide6.QtGui import QAction, QCloseEvent, QColor, QKeyEvent, QPalette
from PySide6.QtCore import Qt, QTimer, Slot

from chip8_tracer.core.errors import AddressOutOfRangeError, TracerError
from chip8_tracer.config.loader import ConfigLoader
from chip8_tracer.config.builder import MachineBuilder
from chip8_tracer.config.models import MachineConfig
from chip8_tracer.loader.loader import RomLoader
from chip8_tracer.debugger.debugger import Debugger
from chip8_tracer.arch.chip8.driver import FrameDriver
from .display_view import DisplayView
from .keymap import KeyMap
from .register_view import RegisterView
from .code_view import CodeView

logger = logging.getLogger(__name__)

# @intent:responsibility アプリケーションのメインウィンドウを定義し、UIの主要なコンポーネントを組み立てます。
class MainWindow(QMainWindow):
    def __init__(self, config: Optional[MachineConfig] = None, parent=None):
        super().__init__(parent)
        self.setWindowTitle("CHIP-8 Tracer")
        self.setDockNestingEnabled(True)

        self._rom_data: Optional[bytes] = None
        self.timer = QTimer(self)
        self.timer.timeout.connect(self._on_frame)

        self._set_dark_theme()
        self._create_central_display()
        self._create_status_inspector()
        self._create_toolbar()
        self._create_menus()

        self.apply_config(config or MachineConfig())

    # @intent:responsibility 構成からバックエンド（CPU、Bus、Debugger、FrameDriver）を組み立て直します。
    def apply_config(self, config: MachineConfig) -> None:
        self.timer.stop()
        self.config = config
        self.cpu, self.bus = MachineBuilder().build_machine(config)
        self.debugger = Debugger(self.cpu)
        self.driver = FrameDriver(self.cpu,
                                  instructions_per_second=config.timing.instructions_per_second,
                                  frame_rate=config.timing.frame_rate)
        self.keymap = KeyMap(config.keymap)
        self._rom_data = RomLoader().read_file(config.rom) if config.rom else None

        self.display_view.apply_config(config.display)
        self.register_view.set_cpu(self.cpu)
        self.code_view.reset_cache()
        self._refresh_views()

        self.timer.start(self.driver.frame_interval_ms)

    def _create_central_display(self):
        central = QWidget()
        layout = QVBoxLayout(central)
        self.display_view = DisplayView()
        layout.addWidget(self.display_view, alignment=Qt.AlignCenter)
        self.setCentralWidget(central)

    def _create_status_inspector(self):
        status_dock = QDockWidget("Status Inspector", self)
        status_dock.setAllowedAreas(Qt.RightDockWidgetArea)
        tab_widget = QTabWidget()
        self.register_view = RegisterView()
        tab_widget.addTab(self.register_view, "Registers")
        self.code_view = CodeView()
        tab_widget.addTab(self.code_view, "Code")
        status_dock.setWidget(tab_widget)
        self.addDockWidget(Qt.RightDockWidgetArea, status_dock)

    def _create_toolbar(self):
        toolbar = QToolBar("Main Toolbar")
        self.addToolBar(toolbar)

        self.pause_action = QAction("Pause", self)
        self.pause_action.setCheckable(True)
        self.pause_action.triggered.connect(self.toggle_pause)
        toolbar.addAction(self.pause_action)

        self.step_action = QAction("Step", self)
        self.step_action.setShortcut("F10")
        self.step_action.triggered.connect(self.step)
        toolbar.addAction(self.step_action)

        self.reset_action = QAction("Reset", self)
        self.reset_action.triggered.connect(self.reset)
        toolbar.addAction(self.reset_action)

    def _create_menus(self):
        file_menu = self.menuBar().addMenu("File")

        open_rom_action = QAction("Open ROM...", self)
        open_rom_action.setShortcut("Ctrl+O")
        open_rom_action.triggered.connect(self._open_rom_dialog)
        file_menu.addAction(open_rom_action)

        load_config_action = QAction("Load Config...", self)
        load_config_action.triggered.connect(self._load_config_dialog)
        file_menu.addAction(load_config_action)

        machine_menu = self.menuBar().addMenu("Machine")
        machine_menu.addAction(self.pause_action)
        machine_menu.addAction(self.step_action)
        machine_menu.addAction(self.reset_action)

    # @intent:responsibility ROMイメージをインストールし、直前の実行履歴を破棄します。
    def load_rom(self, data: bytes) -> None:
        self.cpu.initialize()
        self.cpu.load_rom(data)
        self._rom_data = bytes(data)
        self.debugger.clear_history()
        self.code_view.reset_cache()
        self._refresh_views()

    @Slot()
    def reset(self) -> None:
        self.cpu.initialize()
        if self._rom_data is not None:
            self.cpu.load_rom(self._rom_data)
        self.debugger.clear_history()
        self.code_view.reset_cache()
        self._refresh_views()

    @Slot()
    def toggle_pause(self) -> None:
        self.driver.toggle_pause()
        self._refresh_views()

    # @intent:responsibility 一時停止中に1命令だけ実行します。
    @Slot()
    def step(self) -> None:
        if self.cpu.is_running:
            self.cpu.pause()
        try:
            snapshot = self.debugger.step_instruction()
            self.code_view.note_writes(snapshot.bus_activity)
        except AddressOutOfRangeError as e:
            self.statusBar().showMessage(str(e))
            logger.warning("Step rejected: %s", e)
        self._refresh_views()

    @Slot()
    def _on_frame(self) -> None:
        snapshots = self.driver.run_frame()
        for snapshot in snapshots:
            self.code_view.note_writes(snapshot.bus_activity)
        if snapshots or not self.cpu.is_running:
            self._refresh_views()

    def _refresh_views(self) -> None:
        # 初期化や状態復元で表示バッファが作り直されるため、毎回ビューを取り直す
        self.display_view.set_frame(self.cpu.get_display())
        self.pause_action.setChecked(not self.cpu.is_running)
        # 実行中は毎フレームのテーブル更新を避け、停止時のみ詳細ビューを更新する
        if not self.cpu.is_running:
            self.register_view.update_registers()
            self.code_view.update_code(self.bus, self.cpu.get_state().pc)
        error = self.driver.get_last_error()
        message = f"{self.cpu.get_run_state().value}  PC={self.cpu.get_state().pc:04X}"
        if self.cpu.sound_active:
            message += "  SOUND"
        if error is not None:
            message += f"  {error}"
        self.statusBar().showMessage(message)

    # @intent:responsibility Spaceで一時停止の切り替え、Escで終了し、その他はキーパッドへ送ります。
    def keyPressEvent(self, event: QKeyEvent):
        if event.key() == Qt.Key_Space:
            self.toggle_pause()
            return
        if event.key() == Qt.Key_Escape:
            self.close()
            return
        key = self.keymap.lookup(event.key())
        if key is None or event.isAutoRepeat():
            super().keyPressEvent(event)
            return
        self.cpu.press_key(key)

    def keyReleaseEvent(self, event: QKeyEvent):
        key = self.keymap.lookup(event.key())
        if key is None or event.isAutoRepeat():
            super().keyReleaseEvent(event)
            return
        self.cpu.release_key(key)

    @Slot()
    def _open_rom_dialog(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Open ROM", "", "CHIP-8 ROMs (*.ch8 *.c8);;All Files (*)")
        if not file_name:
            return
        try:
            self.load_rom(RomLoader().read_file(file_name))
        except (OSError, TracerError) as e:
            QMessageBox.critical(self, "Error", f"Failed to load ROM: {e}")

    @Slot()
    def _load_config_dialog(self):
        file_name, _ = QFileDialog.getOpenFileName(self, "Open Machine Config", "", "YAML Files (*.yaml *.yml);;All Files (*)")
        if not file_name:
            return
        try:
            self.apply_config(ConfigLoader().load_from_file(file_name))
        except (OSError, TracerError) as e:
            QMessageBox.critical(self, "Error", f"Failed to load config: {e}")

    def _set_dark_theme(self):
        dark_palette = QPalette()
        dark_palette.setColor(QPalette.Window, QColor(29, 29, 29))
        dark_palette.setColor(QPalette.WindowText, QColor(224, 224, 224))
        dark_palette.setColor(QPalette.Base, QColor(30, 30, 30))
        dark_palette.setColor(QPalette.Text, QColor(224, 224, 224))
        dark_palette.setColor(QPalette.Button, QColor(53, 53, 53))
        dark_palette.setColor(QPalette.ButtonText, QColor(224, 224, 224))
        dark_palette.setColor(QPalette.Highlight, QColor(42, 130, 218))
        QApplication.setPalette(dark_palette)

    def closeEvent(self, event: QCloseEvent):
        self.timer.stop()
        event.accept()
