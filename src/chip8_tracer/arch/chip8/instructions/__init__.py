# src/chip8_tracer/arch/chip8/instructions/__init__.py
"""
CHIP-8命令セット実装パッケージ。
"""
from chip8_tracer.core.errors import UnknownOpcodeError
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.state import Chip8CpuState
from .base import Instruction, InstructionKind, ExecutionEnvironment, UNSUPPORTED_KINDS
from .maps import DECODE_MAP, EXECUTE_MAP

# @intent:responsibility 16bitオペコードを型付きのInstructionへデコードします。
def decode_opcode(opcode: int, address: int = 0x0000) -> Instruction:
    """
    上位ニブルで命令グループを選択し、族命令は二次セレクタで種別を決定します。
    どのパターンにも一致しない場合は InstructionKind.UNKNOWN を返します（例外は送出しません）。
    """
    opcode &= 0xFFFF
    return DECODE_MAP[opcode >> 12](opcode, address)

# @intent:responsibility デコードされたCHIP-8命令を実行します。
# @intent:pre-condition 未サポートの命令種別（UNKNOWN, SYS）は呼び出し側のポリシーで処理されている必要があります。
def execute_instruction(operation: Instruction, state: Chip8CpuState, bus: Bus,
                        env: ExecutionEnvironment) -> None:
    executor = EXECUTE_MAP.get(operation.kind)
    if executor is None:
        raise UnknownOpcodeError(operation.opcode, operation.address)
    executor(state, bus, operation, env)

__all__ = [
    "decode_opcode",
    "execute_instruction",
    "Instruction",
    "InstructionKind",
    "ExecutionEnvironment",
    "UNSUPPORTED_KINDS",
]
