# src/chip8_tracer/arch/chip8/instructions/maps.py
"""
オペコードと命令実装のマッピング定義。

上位ニブルを一次セレクタとし、ALU族(8xyN)は下位ニブル、キー族(ExNN)とタイマー/IO族(FxNN)は
下位バイトを二次セレクタとして命令種別を決定します。
"""
from . import alu
from . import control
from . import graphics
from . import keypad
from . import load
from .base import Instruction, InstructionKind, UNSUPPORTED_KINDS, build_instruction


# @intent:responsibility どのパターンにも一致しないオペコードを UNKNOWN として分類します。
def decode_unknown(opcode: int, address: int) -> Instruction:
    return build_instruction(InstructionKind.UNKNOWN, opcode, address, "UNKNOWN", [f"${opcode:04X}"])


def _decode_system(opcode: int, address: int) -> Instruction:
    decoder = SYSTEM_DECODE_MAP.get(opcode, control.decode_sys)
    return decoder(opcode, address)

def _decode_alu(opcode: int, address: int) -> Instruction:
    decoder = ALU_DECODE_MAP.get(opcode & 0x000F, decode_unknown)
    return decoder(opcode, address)

def _decode_key(opcode: int, address: int) -> Instruction:
    decoder = KEY_DECODE_MAP.get(opcode & 0x00FF, decode_unknown)
    return decoder(opcode, address)

def _decode_misc(opcode: int, address: int) -> Instruction:
    decoder = MISC_DECODE_MAP.get(opcode & 0x00FF, decode_unknown)
    return decoder(opcode, address)

def _require_low_nibble_zero(decoder):
    def decode(opcode: int, address: int) -> Instruction:
        if opcode & 0x000F:
            return decode_unknown(opcode, address)
        return decoder(opcode, address)
    return decode


# @intent:map 00xx 族（完全一致）。一致しない 0nnn は SYS として扱います。
SYSTEM_DECODE_MAP = {
    0x00E0: graphics.decode_cls,
    0x00EE: control.decode_ret,
}

# @intent:map 8xyN 族（下位ニブル）。
ALU_DECODE_MAP = {
    0x0: load.decode_ld_vx_vy,
    0x1: alu.decode_or,
    0x2: alu.decode_and,
    0x3: alu.decode_xor,
    0x4: alu.decode_add_vx_vy,
    0x5: alu.decode_sub,
    0x6: alu.decode_shr,
    0x7: alu.decode_subn,
    0xE: alu.decode_shl,
}

# @intent:map ExNN 族（下位バイト）。
KEY_DECODE_MAP = {
    0x9E: keypad.decode_skp,
    0xA1: keypad.decode_sknp,
}

# @intent:map FxNN 族（下位バイト）。
MISC_DECODE_MAP = {
    0x07: load.decode_ld_vx_dt,
    0x0A: keypad.decode_ld_vx_k,
    0x15: load.decode_ld_dt_vx,
    0x18: load.decode_ld_st_vx,
    0x1E: load.decode_add_i_vx,
    0x29: load.decode_ld_f_vx,
    0x33: load.decode_ld_b_vx,
    0x55: load.decode_ld_mem_vx,
    0x65: load.decode_ld_vx_mem,
}

# @intent:map 上位ニブルからデコード関数へのマッピングテーブル。
DECODE_MAP = {
    0x0: _decode_system,
    0x1: control.decode_jp,
    0x2: control.decode_call,
    0x3: control.decode_se_vx_nn,
    0x4: control.decode_sne_vx_nn,
    0x5: _require_low_nibble_zero(control.decode_se_vx_vy),
    0x6: load.decode_ld_vx_nn,
    0x7: alu.decode_add_vx_nn,
    0x8: _decode_alu,
    0x9: _require_low_nibble_zero(control.decode_sne_vx_vy),
    0xA: load.decode_ld_i_nnn,
    0xB: control.decode_jp_v0,
    0xC: load.decode_rnd,
    0xD: graphics.decode_drw,
    0xE: _decode_key,
    0xF: _decode_misc,
}

# @intent:map 命令種別から実行関数へのマッピングテーブル。
EXECUTE_MAP = {
    # Control
    InstructionKind.RET: control.execute_ret,
    InstructionKind.JP: control.execute_jp,
    InstructionKind.CALL: control.execute_call,
    InstructionKind.JP_V0: control.execute_jp_v0,
    InstructionKind.SE_VX_NN: control.execute_se_vx_nn,
    InstructionKind.SNE_VX_NN: control.execute_sne_vx_nn,
    InstructionKind.SE_VX_VY: control.execute_se_vx_vy,
    InstructionKind.SNE_VX_VY: control.execute_sne_vx_vy,

    # Load/Store
    InstructionKind.LD_VX_NN: load.execute_ld_vx_nn,
    InstructionKind.LD_VX_VY: load.execute_ld_vx_vy,
    InstructionKind.LD_I_NNN: load.execute_ld_i_nnn,
    InstructionKind.RND: load.execute_rnd,
    InstructionKind.LD_VX_DT: load.execute_ld_vx_dt,
    InstructionKind.LD_DT_VX: load.execute_ld_dt_vx,
    InstructionKind.LD_ST_VX: load.execute_ld_st_vx,
    InstructionKind.ADD_I_VX: load.execute_add_i_vx,
    InstructionKind.LD_F_VX: load.execute_ld_f_vx,
    InstructionKind.LD_B_VX: load.execute_ld_b_vx,
    InstructionKind.LD_MEM_VX: load.execute_ld_mem_vx,
    InstructionKind.LD_VX_MEM: load.execute_ld_vx_mem,

    # ALU
    InstructionKind.ADD_VX_NN: alu.execute_add_vx_nn,
    InstructionKind.OR: alu.execute_or,
    InstructionKind.AND: alu.execute_and,
    InstructionKind.XOR: alu.execute_xor,
    InstructionKind.ADD_VX_VY: alu.execute_add_vx_vy,
    InstructionKind.SUB: alu.execute_sub,
    InstructionKind.SUBN: alu.execute_subn,
    InstructionKind.SHR: alu.execute_shr,
    InstructionKind.SHL: alu.execute_shl,

    # Display / Keypad
    InstructionKind.CLS: graphics.execute_cls,
    InstructionKind.DRW: graphics.execute_drw,
    InstructionKind.SKP: keypad.execute_skp,
    InstructionKind.SKNP: keypad.execute_sknp,
    InstructionKind.LD_VX_K: keypad.execute_ld_vx_k,
}

# @intent:invariant サポート対象の全命令種別が実行関数を持つこと（網羅性）。
_missing = set(InstructionKind) - set(EXECUTE_MAP) - UNSUPPORTED_KINDS
if _missing:
    raise ImportError(f"No executor registered for: {sorted(k.name for k in _missing)}")
