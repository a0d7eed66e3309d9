# chip8_tracer/core/state.py
"""
Core Layer (CPU状態)

このモジュールは、全アーキテクチャに共通するレジスタ（PC/SP）と、
レジスタ識別子による読み書きのインターフェースを定義します。
"""
import copy
from dataclasses import dataclass

# @intent:responsibility CPUのレジスタ状態を保持します。アーキテクチャ固有のレジスタはこれを拡張します。
@dataclass
class CpuState:
    """
    PCとSPのみを持つ基底状態。
    レジスタ識別子は名前（``.name``を持つ列挙値、または文字列）で解決されます。
    サブクラスは固有のレジスタを扱うためにget_register/set_registerを上書きします。
    """
    pc: int = 0x0000  # Program Counter
    sp: int = 0x0000  # Stack Pointer

    @staticmethod
    def _field_of(register) -> str:
        name = str(getattr(register, "name", register)).lower()
        if name not in ("pc", "sp"):
            raise ValueError(f"Unknown register {register!r}")
        return name

    def get_register(self, register) -> int:
        return getattr(self, self._field_of(register))

    # @intent:accessor PC/SPは16ビットでマスクして書き込みます。
    def set_register(self, register, value: int) -> None:
        setattr(self, self._field_of(register), value & 0xFFFF)

    # @intent:responsibility スナップショットや状態復元のため、共有部分を持たない複製を返します。
    def copy(self) -> "CpuState":
        return copy.deepcopy(self)
