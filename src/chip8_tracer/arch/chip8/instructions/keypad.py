# src/chip8_tracer/arch/chip8/instructions/keypad.py
"""
キーパッド命令の実装。
"""
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import (
    Instruction, InstructionKind, ExecutionEnvironment,
    build_instruction, advance, skip_if, field_x, reg_name,
)

# --- SKP Vx (Ex9E) ---
def decode_skp(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.SKP, opcode, address, "SKP", [reg_name(field_x(opcode))])

def execute_skp(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    skip_if(state, state.keypad.is_pressed(state.v[op.x] & 0xF))

# --- SKNP Vx (ExA1) ---
def decode_sknp(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.SKNP, opcode, address, "SKNP", [reg_name(field_x(opcode))])

def execute_sknp(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    skip_if(state, not state.keypad.is_pressed(state.v[op.x] & 0xF))

# --- LD Vx, K (Fx0A) ---
def decode_ld_vx_k(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.LD_VX_K, opcode, address, "LD", [reg_name(field_x(opcode)), "K"])

# @intent:responsibility キー入力待ち。押下キーがなければPCを進めず、次サイクルで再実行されます。
# @intent:rationale 押下状態はクリアしないため、押し続けたキーは繰り返し読み取られます。
def execute_ld_vx_k(state: Chip8CpuState, bus: Bus, op: Instruction, env: ExecutionEnvironment) -> None:
    key = state.keypad.first_pressed()
    if key is None:
        return
    state.v[op.x] = key
    advance(state)
