# tests/ui/test_inspector_views.py
"""
RegisterViewとCodeViewの更新ロジック（キャッシュとハイライト）を検証するテスト。
UIウィジェットですが、QApplicationがあればロジックのテストは可能です。
"""
import pytest

from chip8_tracer.transport.bus import Bus, BusAccess, BusAccessType, RAM
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.state import Register
from chip8_tracer.ui.code_view import CodeView, HIGHLIGHT, NORMAL
from chip8_tracer.ui.register_view import RegisterView

PROGRAM = bytes([
    0x60, 0x2A,  # 200: LD V0, #2A
    0xA3, 0x00,  # 202: LD I, $300
    0x12, 0x04,  # 204: JP 204
])


@pytest.fixture
def machine(qapp):
    bus = Bus()
    bus.register_device(0x0000, 0x0FFF, RAM(0x1000))
    cpu = Chip8Cpu(bus)
    cpu.initialize()
    cpu.load_rom(PROGRAM)
    return cpu, bus


class TestRegisterView:
    def test_layout_and_initial_values(self, machine):
        cpu, _ = machine
        view = RegisterView()
        view.set_cpu(cpu)
        view.update_registers()
        assert view.value_text("V0") == "0x00"
        assert view.value_text("PC") == "0x0200"
        assert view.value_text("SP") == "0x0ECF"
        assert view.value_text("DT") == "0x00"

    def test_update_after_step(self, machine):
        cpu, _ = machine
        view = RegisterView()
        view.set_cpu(cpu)
        cpu.step()
        cpu.step()
        view.update_registers()
        assert view.value_text("V0") == "0x2A"
        assert view.value_text("I") == "0x0300"
        assert view.value_text("PC") == "0x0204"

    # @intent:test_case_changed 直前の更新から値が変化したレジスタのみが変化として報告されることを検証します。
    def test_changed_registers(self, machine):
        cpu, _ = machine
        view = RegisterView()
        view.set_cpu(cpu)
        view.update_registers()
        assert view.changed_registers() == []

        cpu.step()  # LD V0, #2A
        view.update_registers()
        assert sorted(view.changed_registers()) == ["PC", "V0"]

        view.update_registers()
        assert view.changed_registers() == []

    def test_set_cpu_rebuilds_labels(self, machine):
        cpu, _ = machine
        view = RegisterView()
        view.set_cpu(cpu)
        view.set_cpu(cpu)
        cpu.set_register(Register.VF, 1)
        view.update_registers()
        assert view.value_text("VF") == "0x01"


class TestCodeView:
    # @intent:test_case_initial_update 初回の更新でPCから逆アセンブルし、PC行がハイライトされることを検証します。
    def test_initial_update(self, machine):
        _, bus = machine
        view = CodeView()
        view.update_code(bus, 0x200)
        assert view.table.rowCount() > 3
        assert view.table.item(0, 0).text() == "0200"
        assert view.table.item(0, 1).text() == "60 2A"
        assert view.table.item(0, 2).text() == "LD V0, #2A"
        assert view.current_row == 0
        assert view.table.item(0, 0).background().color() == HIGHLIGHT

    # @intent:test_case_cached_move 表示範囲内のPC移動では再逆アセンブルせず、ハイライトのみ移動することを検証します。
    def test_move_within_cache(self, machine):
        _, bus = machine
        view = CodeView()
        view.update_code(bus, 0x200)
        cached = view.disassembled_data
        view.update_code(bus, 0x204)
        assert view.disassembled_data is cached
        assert view.current_row == 2
        assert view.table.item(0, 0).background().color() == NORMAL
        assert view.table.item(2, 2).text() == "JP $204"

    def test_pc_outside_cache_redisassembles(self, machine):
        _, bus = machine
        view = CodeView()
        view.update_code(bus, 0x204)
        view.update_code(bus, 0x200)
        assert view.disassembled_data[0][0] == 0x200
        assert view.current_row == 0

    def test_reset_cache(self, machine):
        _, bus = machine
        view = CodeView()
        view.update_code(bus, 0x200)
        view.reset_cache()
        assert view.table.rowCount() == 0
        assert view.current_row == -1

    # @intent:test_case_self_modifying 表示範囲への書き込みでキャッシュが破棄され、新しい命令が表示されることを検証します。
    def test_write_into_cached_range_redisassembles(self, machine):
        _, bus = machine
        view = CodeView()
        view.update_code(bus, 0x200)
        bus.get_and_clear_activity_log()
        bus.write(0x204, 0x00)
        bus.write(0x205, 0xE0)

        assert view.note_writes(bus.get_and_clear_activity_log())
        view.update_code(bus, 0x204)
        assert view.table.item(0, 2).text() == "CLS"
        assert view.current_row == 0

    def test_unrelated_accesses_keep_cache(self, machine):
        _, bus = machine
        view = CodeView()
        view.update_code(bus, 0x200)
        cached = view.disassembled_data
        accesses = [
            BusAccess(0x1B0, 0x00, BusAccessType.WRITE, 0xF0),  # フォント領域
            BusAccess(0x202, 0xA3, BusAccessType.READ),
        ]
        assert not view.note_writes(accesses)
        assert view.disassembled_data is cached

    def test_note_writes_without_cache(self, qapp):
        assert not CodeView().note_writes([BusAccess(0x200, 0x00, BusAccessType.WRITE, 0x60)])
