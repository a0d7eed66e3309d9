# src/chip8_tracer/arch/chip8/instructions/load.py
"""
転送命令（レジスタ/即値/タイマー/インデックスレジスタ/メモリブロック）の実装。
"""
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.memory_map import MEMORY_FONT
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import (
    Instruction, InstructionKind, ExecutionEnvironment,
    build_instruction, advance, check_memory, field_x, field_y, reg_name, imm8, addr12,
)

# --- LD Vx, nn (6xnn) ---
def decode_ld_vx_nn(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_VX_NN, opcode, address, "LD",
                             [reg_name(field_x(opcode)), imm8(opcode & 0xFF)])

def execute_ld_vx_nn(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.set_register(op.vx, op.nn)
    advance(state)

# --- LD Vx, Vy (8xy0) ---
def decode_ld_vx_vy(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_VX_VY, opcode, address, "LD",
                             [reg_name(field_x(opcode)), reg_name(field_y(opcode))])

def execute_ld_vx_vy(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.set_register(op.vx, state.get_register(op.vy))
    advance(state)

# --- LD I, nnn (Annn) ---
def decode_ld_i_nnn(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_I_NNN, opcode, address, "LD", ["I", addr12(opcode & 0xFFF)])

def execute_ld_i_nnn(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.i = op.nnn
    advance(state)

# --- RND Vx, nn (Cxnn) ---
def decode_rnd(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.RND, opcode, address, "RND",
                             [reg_name(field_x(opcode)), imm8(opcode & 0xFF)])

# @intent:responsibility [0,255]の一様乱数とマスクの論理積をVxへ格納します。
def execute_rnd(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.set_register(op.vx, env.rng.randrange(0x100) & op.nn)
    advance(state)

# --- タイマー (Fx07 / Fx15 / Fx18) ---
def decode_ld_vx_dt(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_VX_DT, opcode, address, "LD", [reg_name(field_x(opcode)), "DT"])

def execute_ld_vx_dt(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.set_register(op.vx, state.delay_timer)
    advance(state)

def decode_ld_dt_vx(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_DT_VX, opcode, address, "LD", ["DT", reg_name(field_x(opcode))])

def execute_ld_dt_vx(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.delay_timer = state.v[op.x]
    advance(state)

def decode_ld_st_vx(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_ST_VX, opcode, address, "LD", ["ST", reg_name(field_x(opcode))])

def execute_ld_st_vx(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.sound_timer = state.v[op.x]
    advance(state)

# --- ADD I, Vx (Fx1E) ---
def decode_add_i_vx(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.ADD_I_VX, opcode, address, "ADD", ["I", reg_name(field_x(opcode))])

# @intent:responsibility Iへの加算。フラグは変更しません。範囲検証はIを使用する命令側で行います。
def execute_add_i_vx(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.i = (state.i + state.v[op.x]) & 0xFFFF
    advance(state)

# --- LD F, Vx (Fx29) ---
def decode_ld_f_vx(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_F_VX, opcode, address, "LD", ["F", reg_name(field_x(opcode))])

# @intent:responsibility Iをフォントテーブルの基点 + (Vx & 0xF) に設定します。
def execute_ld_f_vx(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.i = MEMORY_FONT + (state.v[op.x] & 0xF)
    advance(state)

# --- LD B, Vx (Fx33) ---
def decode_ld_b_vx(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_B_VX, opcode, address, "LD", ["B", reg_name(field_x(opcode))])

# @intent:responsibility Vxを百・十・一の位に分解し、I, I+1, I+2 へ書き込みます。
def execute_ld_b_vx(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    check_memory(bus, state.i, 3)
    value = state.v[op.x]
    bus.write(state.i, value // 100)
    bus.write(state.i + 1, (value % 100) // 10)
    bus.write(state.i + 2, value % 10)
    advance(state)

# --- LD [I], Vx (Fx55) ---
def decode_ld_mem_vx(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_MEM_VX, opcode, address, "LD", ["[I]", reg_name(field_x(opcode))])

# @intent:responsibility V0..Vxをメモリへ退避し、Iを転送バイト数だけ進めます。
def execute_ld_mem_vx(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    count = op.x + 1
    check_memory(bus, state.i, count)
    for index in range(count):
        bus.write(state.i + index, state.v[index])
    state.i = (state.i + count) & 0xFFFF
    advance(state)

# --- LD Vx, [I] (Fx65) ---
def decode_ld_vx_mem(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_VX_MEM, opcode, address, "LD", [reg_name(field_x(opcode)), "[I]"])

# @intent:responsibility メモリからV0..Vxへ復元し、Iを転送バイト数だけ進めます。
def execute_ld_vx_mem(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    count = op.x + 1
    check_memory(bus, state.i, count)
    for index in range(count):
        state.v[index] = bus.read(state.i + index)
    state.i = (state.i + count) & 0xFFFF
    advance(state)
