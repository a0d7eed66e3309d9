# chip8_tracer/core/snapshot.py
"""
実行状態の不変スナップショット

このモジュールは、1命令の実行結果（CPU状態・命令・バスアクセス・診断）を記録した
不変のデータ構造を定義します。UIへの情報提供と、デバッグ時の状態記録に用いる責務を負います。
"""
from dataclasses import dataclass, field
from typing import List

from chip8_tracer.core.state import CpuState
from chip8_tracer.core.diagnostics import Diagnostic
from chip8_tracer.transport.bus import BusAccess


# @intent:responsibility デコードされた命令の詳細を記録します。
@dataclass(frozen=True)
class Operation:
    """
    デコードされた命令の詳細（生のオペコード、アドレス、ニーモニック、オペランド）。
    アーキテクチャ固有の命令型はこれを拡張し、型付きのオペランドフィールドを追加します。
    """
    opcode: int = 0x0000  # 例: 0x1228
    address: int = 0x0000  # 命令がフェッチされたアドレス
    mnemonic: str = "NOP"  # 例: "JP"
    operands: List[str] = field(default_factory=list)  # 例: ["$228"]
    length: int = 2  # 命令のバイト長

    # @intent:responsibility 表示用のアセンブリ文字列を返します。
    def text(self) -> str:
        if self.operands:
            return f"{self.mnemonic} " + ", ".join(self.operands)
        return self.mnemonic


# @intent:responsibility 外部ロギング向けの命令単位トレースレコードです。
@dataclass(frozen=True)
class TraceRecord:
    address: int
    opcode: int
    mnemonic: str
    operands: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        text = self.mnemonic
        if self.operands:
            text += " " + ", ".join(self.operands)
        return f"{self.address:04X}: {self.opcode:04X}  {text}"


# @intent:responsibility 実行に関するメタデータを記録します。
@dataclass(frozen=True)
class Metadata:
    """
    実行に関するメタデータ（累計実行命令数、表示用の命令文字列）。
    """
    instruction_count: int
    symbol_info: str = ""  # 例: "DRW V1, V2, #5"


# @intent:responsibility ある一時点におけるCPUとバスの状態を不変に記録します。
@dataclass(frozen=True)
class Snapshot:
    """
    1命令実行直後のCPU状態のコピー、実行した命令、バスアクセス、診断イベントを保持します。
    """
    state: CpuState
    operation: Operation
    metadata: Metadata
    bus_activity: List[BusAccess] = field(default_factory=list)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    # @intent:rationale stateは生成時にコピーされたものを受け取るため、後続の実行で変化しません。
