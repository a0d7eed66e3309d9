# src/chip8_tracer/arch/chip8/instructions/alu.py
"""
算術論理演算命令の実装。

VFはフラグレジスタを兼ねます。フラグを定義する命令では、デスティネーションへの書き込みを
先に行い、VFへの書き込みを最後に行います（デスティネーションがVFの場合もフラグが優先）。
"""
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import (
    Instruction, InstructionKind, ExecutionEnvironment,
    build_instruction, advance, field_x, field_y, reg_name, imm8,
)

def _decode_xy(kind: InstructionKind, mnemonic: str, opcode: int, address: int) -> Instruction:
    return build_instruction(kind, opcode, address, mnemonic,
                             [reg_name(field_x(opcode)), reg_name(field_y(opcode))])

# --- ADD Vx, nn (7xnn) ---
def decode_add_vx_nn(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.ADD_VX_NN, opcode, address, "ADD",
                             [reg_name(field_x(opcode)), imm8(opcode & 0xFF)])

# @intent:responsibility 即値加算。キャリーフラグは変更しません（歴史的仕様）。
def execute_add_vx_nn(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.v[op.x] = (state.v[op.x] + op.nn) & 0xFF
    advance(state)

# --- OR / AND / XOR (8xy1 / 8xy2 / 8xy3) ---
def decode_or(opcode: int, address: int) -> Instruction:
    return _decode_xy(InstructionKind.OR, "OR", opcode, address)

def execute_or(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.v[op.x] = state.v[op.x] | state.v[op.y]
    state.vf = 0
    advance(state)

def decode_and(opcode: int, address: int) -> Instruction:
    return _decode_xy(InstructionKind.AND, "AND", opcode, address)

def execute_and(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.v[op.x] = state.v[op.x] & state.v[op.y]
    state.vf = 0
    advance(state)

def decode_xor(opcode: int, address: int) -> Instruction:
    return _decode_xy(InstructionKind.XOR, "XOR", opcode, address)

def execute_xor(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.v[op.x] = state.v[op.x] ^ state.v[op.y]
    state.vf = 0
    advance(state)

# --- ADD Vx, Vy (8xy4) ---
def decode_add_vx_vy(opcode: int, address: int) -> Instruction:
    return _decode_xy(InstructionKind.ADD_VX_VY, "ADD", opcode, address)

# @intent:responsibility 加算し、8bitを超えた場合にVF=1、それ以外はVF=0とします。
def execute_add_vx_vy(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    result = state.v[op.x] + state.v[op.y]
    state.v[op.x] = result & 0xFF
    state.vf = 1 if result > 0xFF else 0
    advance(state)

# --- SUB Vx, Vy (8xy5) ---
def decode_sub(opcode: int, address: int) -> Instruction:
    return _decode_xy(InstructionKind.SUB, "SUB", opcode, address)

# @intent:responsibility Vx = Vx - Vy。ボローが発生しなかった場合（Vx >= Vy）にVF=1。
def execute_sub(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    left, right = state.v[op.x], state.v[op.y]
    state.v[op.x] = (left - right) & 0xFF
    state.vf = 1 if left >= right else 0
    advance(state)

# --- SUBN Vx, Vy (8xy7) ---
def decode_subn(opcode: int, address: int) -> Instruction:
    return _decode_xy(InstructionKind.SUBN, "SUBN", opcode, address)

# @intent:responsibility Vx = Vy - Vx。ボローが発生しなかった場合（Vy >= Vx）にVF=1。
def execute_subn(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    left, right = state.v[op.y], state.v[op.x]
    state.v[op.x] = (left - right) & 0xFF
    state.vf = 1 if left >= right else 0
    advance(state)

# --- SHR Vx {, Vy} (8xy6) ---
def decode_shr(opcode: int, address: int) -> Instruction:
    return _decode_xy(InstructionKind.SHR, "SHR", opcode, address)

# @intent:responsibility 右シフト。押し出されたbit0をVFへ格納します。
# @intent:rationale オリジナルCHIP-8ではVyをVxへコピーしてからシフトし、それ以外のバージョンではVyを無視します。
def execute_shr(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    if env.quirks.shift_copies_source:
        state.v[op.x] = state.v[op.y]
    value = state.v[op.x]
    state.v[op.x] = value >> 1
    state.vf = value & 0x01
    advance(state)

# --- SHL Vx {, Vy} (8xyE) ---
def decode_shl(opcode: int, address: int) -> Instruction:
    return _decode_xy(InstructionKind.SHL, "SHL", opcode, address)

# @intent:responsibility 左シフト。押し出されたbit7をVFへ格納します。
def execute_shl(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    if env.quirks.shift_copies_source:
        state.v[op.x] = state.v[op.y]
    value = state.v[op.x]
    state.v[op.x] = (value << 1) & 0xFF
    state.vf = (value >> 7) & 0x01
    advance(state)
