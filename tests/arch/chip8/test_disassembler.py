# tests/arch/chip8/test_disassembler.py
"""
chip8_tracer.arch.chip8.disassemblerモジュールの単体テスト。
"""
import pytest

from chip8_tracer.transport.bus import Bus, RAM
from chip8_tracer.arch.chip8.disassembler import disassemble, format_opcode

# @intent:test_suite ニーモニック表記と、範囲逆アセンブルがバスログを汚さないことを検証します。

@pytest.mark.parametrize("opcode, text", [
    (0x00E0, "CLS"),
    (0x00EE, "RET"),
    (0x0123, "SYS $123"),
    (0x1228, "JP $228"),
    (0x2300, "CALL $300"),
    (0x3A12, "SE VA, #12"),
    (0x9120, "SNE V1, V2"),
    (0x6A2B, "LD VA, #2B"),
    (0x812E, "SHL V1, V2"),
    (0xB300, "JP V0, $300"),
    (0xC10F, "RND V1, #0F"),
    (0xD125, "DRW V1, V2, #5"),
    (0xE19E, "SKP V1"),
    (0xF10A, "LD V1, K"),
    (0xF115, "LD DT, V1"),
    (0xF129, "LD F, V1"),
    (0xF133, "LD B, V1"),
    (0xF155, "LD [I], V1"),
    (0xF165, "LD V1, [I]"),
    (0xFFFF, "UNKNOWN $FFFF"),
])
def test_format_opcode(opcode, text):
    assert format_opcode(opcode) == text


class TestDisassemble:
    @pytest.fixture
    def bus(self):
        bus = Bus()
        bus.register_device(0x0000, 0x0FFF, RAM(0x1000))
        bus.load_block(0x200, [0xA2, 0x0A, 0x61, 0x00, 0xD1, 0x25])
        return bus

    def test_range(self, bus):
        assert disassemble(bus, 0x200, 6) == [
            (0x200, "A2 0A", "LD I, $20A"),
            (0x202, "61 00", "LD V1, #00"),
            (0x204, "D1 25", "DRW V1, V2, #5"),
        ]

    def test_does_not_log_bus_activity(self, bus):
        disassemble(bus, 0x200, 6)
        assert bus.get_and_clear_activity_log() == []

    # @intent:test_case_end メモリ末尾で停止し、例外を送出しないことを検証します。
    def test_stops_at_end_of_memory(self, bus):
        lines = disassemble(bus, 0xFFC, 16)
        assert [addr for addr, _, _ in lines] == [0xFFC, 0xFFE]
