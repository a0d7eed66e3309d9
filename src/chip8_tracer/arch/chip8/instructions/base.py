# src/chip8_tracer/arch/chip8/instructions/base.py
"""
CHIP-8命令実装用の共通定義とユーティリティ。

オペコードは一度だけデコードされ、閉じた命令種別（InstructionKind）と
型付きのオペランドフィールドを持つInstructionに変換されます。
"""
import random
from dataclasses import dataclass, field
from enum import Enum

from chip8_tracer.core.snapshot import Operation
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState, Quirks, Register

# @intent:constant 命令種別。UNKNOWNとSYSは実行関数を持たず、未知オペコードのポリシーで処理されます。
class InstructionKind(Enum):
    CLS = "00E0"
    RET = "00EE"
    SYS = "0nnn"
    JP = "1nnn"
    CALL = "2nnn"
    SE_VX_NN = "3xnn"
    SNE_VX_NN = "4xnn"
    SE_VX_VY = "5xy0"
    LD_VX_NN = "6xnn"
    ADD_VX_NN = "7xnn"
    LD_VX_VY = "8xy0"
    OR = "8xy1"
    AND = "8xy2"
    XOR = "8xy3"
    ADD_VX_VY = "8xy4"
    SUB = "8xy5"
    SHR = "8xy6"
    SUBN = "8xy7"
    SHL = "8xyE"
    SNE_VX_VY = "9xy0"
    LD_I_NNN = "Annn"
    JP_V0 = "Bnnn"
    RND = "Cxnn"
    DRW = "Dxyn"
    SKP = "Ex9E"
    SKNP = "ExA1"
    LD_VX_DT = "Fx07"
    LD_VX_K = "Fx0A"
    LD_DT_VX = "Fx15"
    LD_ST_VX = "Fx18"
    ADD_I_VX = "Fx1E"
    LD_F_VX = "Fx29"
    LD_B_VX = "Fx33"
    LD_MEM_VX = "Fx55"
    LD_VX_MEM = "Fx65"
    UNKNOWN = "????"


UNSUPPORTED_KINDS = frozenset({InstructionKind.SYS, InstructionKind.UNKNOWN})

# @intent:responsibility 型付きオペランドを持つデコード済みCHIP-8命令です。
@dataclass(frozen=True)
class Instruction(Operation):
    kind: InstructionKind = InstructionKind.UNKNOWN
    x: int = 0    # bits 8-11
    y: int = 0    # bits 4-7
    n: int = 0    # bits 0-3
    nn: int = 0   # bits 0-7
    nnn: int = 0  # bits 0-11

    @property
    def vx(self) -> Register:
        return Register.v(self.x)

    @property
    def vy(self) -> Register:
        return Register.v(self.y)

    @property
    def supported(self) -> bool:
        return self.kind not in UNSUPPORTED_KINDS

# @intent:responsibility 命令実行に必要な、状態以外の環境（Quirk設定と乱数源）を保持します。
@dataclass
class ExecutionEnvironment:
    quirks: Quirks = field(default_factory=Quirks)
    rng: random.Random = field(default_factory=random.Random)


# @intent:utility_function オペコードからオペランドフィールドを位置で抽出します。
def field_x(opcode: int) -> int:
    return (opcode >> 8) & 0xF

def field_y(opcode: int) -> int:
    return (opcode >> 4) & 0xF

def field_n(opcode: int) -> int:
    return opcode & 0xF

def field_nn(opcode: int) -> int:
    return opcode & 0xFF

def field_nnn(opcode: int) -> int:
    return opcode & 0xFFF


# @intent:utility_function 通常のPC更新（次の命令へ）。
def advance(state: Chip8CpuState) -> None:
    state.pc = (state.pc + 2) & 0xFFFF

# @intent:utility_function スキップ命令の条件成立時のPC更新（次の命令を飛ばす）。
def skip_if(state: Chip8CpuState, condition: bool) -> None:
    state.pc = (state.pc + (4 if condition else 2)) & 0xFFFF

# @intent:utility_function インデックスレジスタ起点のメモリブロックが範囲内であることを、変更前に検証します。
def check_memory(bus: Bus, address: int, length: int) -> None:
    bus.check_range(address, length)


# @intent:utility_function オペランド表記の整形。
def reg_name(index: int) -> str:
    return f"V{index:X}"

def imm8(value: int) -> str:
    return f"#{value:02X}"

def addr12(value: int) -> str:
    return f"${value:03X}"


# @intent:utility_function デコード結果のInstructionを組み立てます。全オペランドフィールドを位置で抽出して保持します。
def build_instruction(kind: InstructionKind, opcode: int, address: int, mnemonic: str, operands=None) -> Instruction:
    return Instruction(
        opcode=opcode,
        address=address,
        mnemonic=mnemonic,
        operands=list(operands or []),
        length=2,
        kind=kind,
        x=field_x(opcode),
        y=field_y(opcode),
        n=field_n(opcode),
        nn=field_nn(opcode),
        nnn=field_nnn(opcode),
    )
