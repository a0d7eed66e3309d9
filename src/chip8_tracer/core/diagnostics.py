# chip8_tracer/core/diagnostics.py
"""
診断イベントの定義。

実行中に検出された問題（未知のオペコード、範囲外アクセス）を、
プロセスを停止させずに外部（ドライバ、デバッガ、ログ）へ通知するためのデータ構造です。
"""
from dataclasses import dataclass
from enum import Enum


# @intent:responsibility 診断イベントの種類を定義します。
class DiagnosticKind(Enum):
    UNKNOWN_OPCODE = "UNKNOWN_OPCODE"
    ADDRESS_OUT_OF_RANGE = "ADDRESS_OUT_OF_RANGE"


# @intent:responsibility 未知のオペコードを検出した際の振る舞いを定義します。
class UnknownOpcodePolicy(Enum):
    SKIP = "skip"  # PCを2進めて実行を継続する
    HALT = "halt"  # 実行を停止する（PCは進めない）


# @intent:responsibility 単一の診断イベントを不変に記録します。
@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    address: int
    opcode: int
    message: str

    def __str__(self) -> str:
        return f"[{self.kind.value}] {self.address:04X}: {self.opcode:04X} {self.message}"
