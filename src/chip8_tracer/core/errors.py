# chip8_tracer/core/errors.py
"""
エミュレータ全体で使用する例外階層。

各例外は、呼び出し側が既存の組み込み例外（IndexError, ValueError, RuntimeError）で
捕捉できるように、対応する組み込み例外を併せて継承します。
"""
from typing import Optional


class TracerError(Exception):
    """全てのエミュレータ例外の基底クラス。"""


# @intent:responsibility メモリ範囲外アクセスを表します。
# @intent:post-condition この例外が送出された命令は、状態を一切変更していません。
class AddressOutOfRangeError(TracerError, IndexError):
    def __init__(self, address: int, message: Optional[str] = None):
        self.address = address
        super().__init__(message or f"Address {address:#06x} is out of range.")


# @intent:responsibility ROMがユーザー領域に収まらないことを表します。
class RomTooLargeError(TracerError, ValueError):
    def __init__(self, size: int, capacity: int):
        self.size = size
        self.capacity = capacity
        super().__init__(f"ROM of {size} bytes exceeds the available {capacity} bytes of program memory.")


# @intent:responsibility 未知または未サポートのオペコードを表します。
class UnknownOpcodeError(TracerError):
    def __init__(self, opcode: int, address: int):
        self.opcode = opcode
        self.address = address
        super().__init__(f"Unknown opcode {opcode:04X} at {address:#06x}.")


class LifecycleError(TracerError, RuntimeError):
    """ライフサイクル上許可されない操作（未初期化での実行など）。"""


class ConfigError(TracerError, ValueError):
    """システム構成ファイルの内容が不正な場合に送出されます。"""
