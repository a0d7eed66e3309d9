# src/chip8_tracer/arch/chip8/instructions/control.py
"""
制御転送命令（ジャンプ、サブルーチン呼び出し/復帰）と条件スキップ命令の実装。
"""
from chip8_tracer.core.errors import AddressOutOfRangeError
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.memory_map import STACK_REGION
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import (
    Instruction, InstructionKind, ExecutionEnvironment,
    build_instruction, skip_if, reg_name, imm8, addr12,
)

# --- SYS (0nnn) ---
# @intent:responsibility マシン語ルーチン呼び出し。実行関数を持たず、未知オペコードのポリシーで処理されます。
def decode_sys(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.SYS, opcode, address, "SYS", [addr12(opcode & 0xFFF)])

# --- RET (00EE) ---
def decode_ret(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.RET, opcode, address, "RET")

# @intent:responsibility スタックから復帰アドレスを取り出し、呼び出し命令の次から実行を再開します。
# @intent:pre-condition SP+1, SP+2 がスタック領域内であること（アンダーフロー検出）。
def execute_ret(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    if not STACK_REGION.contains(state.sp + 2):
        raise AddressOutOfRangeError(state.sp + 2, f"Stack underflow: RET with SP={state.sp:#06x}.")
    return_address = bus.read_word(state.sp + 1)
    state.sp = (state.sp + 2) & 0xFFFF
    state.pc = (return_address + 2) & 0xFFFF

# --- JP (1nnn) ---
def decode_jp(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.JP, opcode, address, "JP", [addr12(opcode & 0xFFF)])

def execute_jp(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.pc = op.nnn

# --- CALL (2nnn) ---
def decode_call(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.CALL, opcode, address, "CALL", [addr12(opcode & 0xFFF)])

# @intent:responsibility 現在のPC（CALL命令自身のアドレス）をビッグエンディアンでSPの直下2バイトへ保存し、SPを2減らします。
# @intent:pre-condition SP-1 がスタック領域内であること（オーバーフロー検出）。
def execute_call(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    if not STACK_REGION.contains(state.sp - 1) or not STACK_REGION.contains(state.sp):
        raise AddressOutOfRangeError(state.sp - 1, f"Stack overflow: CALL with SP={state.sp:#06x}.")
    bus.write_word(state.sp - 1, state.pc)
    state.sp = (state.sp - 2) & 0xFFFF
    state.pc = op.nnn

# --- JP V0 (Bnnn) ---
def decode_jp_v0(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.JP_V0, opcode, address, "JP", ["V0", addr12(opcode & 0xFFF)])

def execute_jp_v0(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    state.pc = (op.nnn + state.v[0]) & 0xFFFF

# --- SE / SNE ---
def decode_se_vx_nn(opcode: int, address: int) -> Instruction:
    x = (opcode >> 8) & 0xF
    return build_instruction(InstructionKind.SE_VX_NN, opcode, address, "SE", [reg_name(x), imm8(opcode & 0xFF)])

def execute_se_vx_nn(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    skip_if(state, state.v[op.x] == op.nn)

def decode_sne_vx_nn(opcode: int, address: int) -> Instruction:
    x = (opcode >> 8) & 0xF
    return build_instruction(InstructionKind.SNE_VX_NN, opcode, address, "SNE", [reg_name(x), imm8(opcode & 0xFF)])

def execute_sne_vx_nn(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    skip_if(state, state.v[op.x] != op.nn)

def decode_se_vx_vy(opcode: int, address: int) -> Instruction:
    x, y = (opcode >> 8) & 0xF, (opcode >> 4) & 0xF
    return build_instruction(InstructionKind.SE_VX_VY, opcode, address, "SE", [reg_name(x), reg_name(y)])

def execute_se_vx_vy(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    skip_if(state, state.v[op.x] == state.v[op.y])

def decode_sne_vx_vy(opcode: int, address: int) -> Instruction:
    x, y = (opcode >> 8) & 0xF, (opcode >> 4) & 0xF
    return build_instruction(InstructionKind.SNE_VX_VY, opcode, address, "SNE", [reg_name(x), reg_name(y)])

def execute_sne_vx_vy(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    skip_if(state, state.v[op.x] != state.v[op.y])
