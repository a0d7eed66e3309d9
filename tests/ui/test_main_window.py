# tests/ui/test_main_window.py
"""
MainWindowの操作（ROMロード、ステップ実行、リセット、キー入力）を検証するテスト。
"""
import pytest
from PySide6.QtCore import QEvent, Qt
from PySide6.QtGui import QKeyEvent

from chip8_tracer.config.models import MachineConfig, TimingConfig
from chip8_tracer.arch.chip8.state import Register, RunState
from chip8_tracer.ui.main_window import MainWindow

PROGRAM = bytes([
    0x60, 0x05,  # 200: LD V0, #05
    0xF0, 0x29,  # 202: LD F, V0
    0xD1, 0x15,  # 204: DRW V1, V1, #5
    0x12, 0x06,  # 206: JP 206
])


@pytest.fixture
def window(qapp):
    win = MainWindow(MachineConfig(timing=TimingConfig(instructions_per_second=600, frame_rate=60)))
    win.timer.stop()
    yield win
    win.close()


class TestMainWindow:
    def test_initial_state(self, window):
        assert window.cpu.get_run_state() is RunState.RUNNING
        assert window.driver.instructions_per_frame == 10

    # @intent:test_case_step ステップ実行で一時停止し、1命令ずつ進んで各ビューが更新されることを検証します。
    def test_load_rom_and_step(self, window):
        window.load_rom(PROGRAM)
        window.step()
        assert window.cpu.get_run_state() is RunState.PAUSED
        assert window.cpu.get_register(Register.V0) == 5
        assert window.register_view.value_text("V0") == "0x05"
        assert window.code_view.current_row == 0
        assert window.code_view.disassembled_data[0][0] == 0x202

        window.step()
        window.step()
        assert window.display_view.lit_cells()
        assert len(window.debugger.get_history()) == 3

    def test_frame_runs_program(self, window):
        window.load_rom(PROGRAM)
        window._on_frame()
        assert window.cpu.get_state().pc == 0x206
        assert window.display_view.lit_cells()

    def test_reset_reinstalls_rom(self, window):
        window.load_rom(PROGRAM)
        window._on_frame()
        window.reset()
        assert window.cpu.get_state().pc == 0x200
        assert window.bus.peek(0x200) == 0x60
        assert window.display_view.lit_cells() == []
        assert window.debugger.get_history() == []

    def test_toggle_pause(self, window):
        window.toggle_pause()
        assert window.pause_action.isChecked()
        window.toggle_pause()
        assert not window.pause_action.isChecked()

    # @intent:test_case_keys マッピングされたキーの押下と解放がキーパッドへ伝わることを検証します。
    def test_key_events(self, window):
        window.keyPressEvent(QKeyEvent(QEvent.KeyPress, Qt.Key_W, Qt.NoModifier))
        assert window.cpu.get_state().keypad.is_pressed(0x5)
        window.keyReleaseEvent(QKeyEvent(QEvent.KeyRelease, Qt.Key_W, Qt.NoModifier))
        assert not window.cpu.get_state().keypad.is_pressed(0x5)

    # @intent:test_case_self_modifying プログラムが表示中のコードを書き換えた場合、コードビューが新しい命令を表示することを検証します。
    def test_code_view_follows_self_modifying_write(self, window):
        window.load_rom(bytes([
            0x60, 0x00,  # 200: LD V0, #00
            0x61, 0xE0,  # 202: LD V1, #E0
            0xA2, 0x0A,  # 204: LD I, $20A
            0xF1, 0x55,  # 206: LD [I], V1
            0x12, 0x08,  # 208: JP 208
            0x12, 0x0A,  # 20A: JP 20A (00E0 に書き換えられる)
        ]))
        window.step()
        assert (0x20A, "12 0A", "JP $20A") in window.code_view.disassembled_data
        for _ in range(3):
            window.step()
        assert window.bus.peek(0x20B) == 0xE0
        assert window.code_view.disassembled_data[0][0] == 0x208
        assert window.code_view.table.item(1, 2).text() == "CLS"
