# src/chip8_tracer/arch/chip8/instructions/graphics.py
"""
表示命令（画面消去、スプライト描画）の実装。
"""
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import (
    Instruction, InstructionKind, ExecutionEnvironment,
    build_instruction, advance, check_memory, field_x, field_y, reg_name,
)

# --- CLS (00E0) ---
def decode_cls(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.CLS, opcode, address, "CLS")

def execute_cls(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.display.clear()
    advance(state)

# --- DRW Vx, Vy, n (Dxyn) ---
def decode_drw(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.DRW, opcode, address, "DRW",
                             [reg_name(field_x(opcode)), reg_name(field_y(opcode)), f"#{opcode & 0xF:X}"])

# @intent:responsibility Iから読み出したn行のスプライトを(Vx, Vy)にXOR描画し、衝突をVFへ報告します。
# @intent:rationale 原点は画面サイズでラップしますが、原点からはみ出した行・列はクリップされます（ラップしない）。
def execute_drw(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    display = state.display
    origin_x = state.v[op.x] & (display.width - 1)
    origin_y = state.v[op.y] & (display.height - 1)

    check_memory(bus, state.i, op.n)
    sprite = [bus.read(state.i + row) for row in range(op.n)]

    state.vf = 0
    for row, bits in enumerate(sprite):
        y = origin_y + row
        if y >= display.height:
            break
        for column in range(8):
            x = origin_x + column
            if x >= display.width:
                break
            if bits & (0x80 >> column):
                if display.xor_pixel(x, y):
                    state.vf = 1

    advance(state)
