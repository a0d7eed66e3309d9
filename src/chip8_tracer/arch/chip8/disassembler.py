# src/chip8_tracer/arch/chip8/disassembler.py
"""
CHIP-8 Disassembler

メモリ上のバイナリデータを解析し、CHIP-8のアセンブリ表記（ニーモニック）に変換します。
Instruction Layerのデコードロジックを再利用しますが、バスアクセスログを汚さないように
peek（ログなし読み込み）でオペコードを取得します。
"""
from typing import List, Tuple

from chip8_tracer.core.errors import AddressOutOfRangeError
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8.instructions import decode_opcode

# @intent:responsibility 単一のオペコードを表示用文字列に変換します。
def format_opcode(opcode: int, address: int = 0x0000) -> str:
    return decode_opcode(opcode, address).text()

# @intent:responsibility 指定されたメモリ範囲を逆アセンブルし、表示用データを生成します。
def disassemble(bus: Bus, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
    """
    指定された範囲のメモリを2バイト単位で逆アセンブルします。

    Returns:
        List of (address, hex_bytes, mnemonic) tuples.
    """
    result = []
    current_addr = start_addr
    end_addr = start_addr + length

    while current_addr < end_addr:
        try:
            high = bus.peek(current_addr)
            low = bus.peek(current_addr + 1)
        except AddressOutOfRangeError:
            # メモリ末尾に到達
            break

        opcode = (high << 8) | low
        operation = decode_opcode(opcode, current_addr)
        result.append((current_addr, f"{high:02X} {low:02X}", operation.text()))
        current_addr += operation.length

    return result
