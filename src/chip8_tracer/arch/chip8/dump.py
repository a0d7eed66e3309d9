# src/chip8_tracer/arch/chip8/dump.py
"""
デバッグ用のテキストダンプ（メモリ、表示バッファ、レジスタ）。
"""
from typing import List

from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.display import Display
from chip8_tracer.arch.chip8.memory_map import MEMORY_SIZE
from chip8_tracer.arch.chip8.state import Chip8CpuState

# @intent:responsibility メモリ内容を16バイト単位の表として文字列化します。
# @intent:rationale 開始アドレスは16バイト境界へ切り下げ、終了アドレスは次の16バイト境界へ切り上げます。
def memory_dump(bus: Bus, start: int, end: int) -> str:
    start &= 0xFFF0
    end = min((end + 16) & 0xFFF0, MEMORY_SIZE)

    lines: List[str] = [
        f"Memory dump {start:04x} - {end:04x}:",
        "\t" + " ".join(f"{i:02x}" for i in range(16)),
    ]
    for row in range(start, end, 16):
        values = " ".join(f"{bus.peek(row + i):02x}" for i in range(16))
        lines.append(f"{row:04x}\t{values}")
    return "\n".join(lines)

# @intent:responsibility 表示バッファを'*'と空白で文字列化し、16進の桁ルーラーを付与します。
def display_dump(display: Display) -> str:
    width = display.width
    border = "   |" + "-" * width + "|"

    tens = "    " + "".join(f"{(i >> 4) & 0xF:X}" if i & 0xF == 0 else " " for i in range(width))
    units = "    " + "".join(f"{i & 0xF:X}" for i in range(width))

    lines = [tens, units, border]
    for y, row in enumerate(display.rows()):
        lines.append(f"{y:2X} |" + "".join("*" if lit else " " for lit in row) + "|")
    lines.append(border)
    return "\n".join(lines)

def register_dump(state: Chip8CpuState) -> str:
    return "\n".join([
        "Register Dump:",
        f"PC:\t{state.pc:04x}",
        f"SP:\t{state.sp:04x}",
        f"DT:\t{state.delay_timer:02x}",
        f"ST:\t{state.sound_timer:02x}",
        f" I:\t{state.i:04x}",
        " V:\t" + " ".join(f"{value:02x}" for value in state.v),
    ])
