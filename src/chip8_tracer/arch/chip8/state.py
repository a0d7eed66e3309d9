# src/chip8_tracer/arch/chip8/state.py
"""
CHIP-8 固有の状態定義。

レジスタ識別子（Register）を介したアクセサを提供し、呼び出し側が数値インデックスを
直接扱わずに済むようにします。
"""
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List

from chip8_tracer.core.state import CpuState
from chip8_tracer.arch.chip8.display import Display
from chip8_tracer.arch.chip8.keypad import Keypad

# @intent:constant レジスタ識別子。V0-VFの値は汎用レジスタ配列のインデックスと一致します。
class Register(IntEnum):
    V0 = 0x0
    V1 = 0x1
    V2 = 0x2
    V3 = 0x3
    V4 = 0x4
    V5 = 0x5
    V6 = 0x6
    V7 = 0x7
    V8 = 0x8
    V9 = 0x9
    VA = 0xA
    VB = 0xB
    VC = 0xC
    VD = 0xD
    VE = 0xE
    VF = 0xF
    I = 0x10
    SP = 0x11
    DT = 0x12  # delay timer
    ST = 0x13  # sound timer
    PC = 0x14

    @classmethod
    def v(cls, index: int) -> "Register":
        """オペコードのニブルから汎用レジスタ識別子を得ます。"""
        return cls(index & 0xF)

    @property
    def is_general(self) -> bool:
        return self <= Register.VF


GENERAL_REGISTERS = [Register(i) for i in range(16)]

# 各レジスタのビット幅
REGISTER_WIDTHS = {r: 8 for r in GENERAL_REGISTERS}
REGISTER_WIDTHS.update({
    Register.I: 16,
    Register.SP: 16,
    Register.PC: 16,
    Register.DT: 8,
    Register.ST: 8,
})

# @intent:responsibility 一部命令の歴史的な挙動差を選択するマシンバージョン。
class MachineVersion(Enum):
    CHIP_8 = "CHIP_8"
    SUPER_CHIP_MODERN = "SUPER_CHIP_MODERN"
    SUPER_CHIP_LEGACY = "SUPER_CHIP_LEGACY"
    XO_CHIP = "XO_CHIP"

# @intent:responsibility マシンバージョンから導かれる命令挙動の差異（Quirk）をまとめます。
@dataclass(frozen=True)
class Quirks:
    # シフト命令がVyをVxへコピーしてからシフトするか
    shift_copies_source: bool = False

    @classmethod
    def for_version(cls, version: MachineVersion) -> "Quirks":
        # COSMAC VIP由来のオリジナルCHIP-8のみがVyを参照する
        return cls(shift_copies_source=version is MachineVersion.CHIP_8)

# @intent:responsibility ライフサイクル（命令セマンティクスではない）の状態。
class RunState(Enum):
    UNINITIALIZED = "UNINITIALIZED"
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    HALTED = "HALTED"

# @intent:responsibility CHIP-8の全レジスタ、表示バッファ、キーパッドの状態を保持します。
@dataclass
class Chip8CpuState(CpuState):
    """
    CHIP-8の状態を保持するデータクラス。
    spはスタック領域内のバイトオフセット（インデックスではない）です。
    """
    v: List[int] = field(default_factory=lambda: [0] * 16)
    i: int = 0x0000
    delay_timer: int = 0x00
    sound_timer: int = 0x00
    display: Display = field(default_factory=Display)
    keypad: Keypad = field(default_factory=Keypad)

    # @intent:accessor レジスタ識別子による読み出し。
    def get_register(self, register: Register) -> int:
        if register.is_general:
            return self.v[register]
        if register is Register.I:
            return self.i
        if register is Register.SP:
            return self.sp
        if register is Register.PC:
            return self.pc
        if register is Register.DT:
            return self.delay_timer
        if register is Register.ST:
            return self.sound_timer
        raise ValueError(f"Unknown register {register!r}")

    # @intent:accessor レジスタ識別子による書き込み。値はレジスタ幅でマスクされます。
    def set_register(self, register: Register, value: int) -> None:
        value &= (1 << REGISTER_WIDTHS[register]) - 1
        if register.is_general:
            self.v[register] = value
        elif register is Register.I:
            self.i = value
        elif register is Register.SP:
            self.sp = value
        elif register is Register.PC:
            self.pc = value
        elif register is Register.DT:
            self.delay_timer = value
        elif register is Register.ST:
            self.sound_timer = value
        else:
            raise ValueError(f"Unknown register {register!r}")

    @property
    def vf(self) -> int:
        return self.v[0xF]

    @vf.setter
    def vf(self, value: int) -> None:
        self.v[0xF] = value & 0xFF
