# src/chip8_tracer/arch/chip8/memory_map.py
"""
CHIP-8のメモリレイアウトとフォントデータの定義。
"""
from typing import List, NamedTuple

DISPLAY_WIDTH = 64
DISPLAY_HEIGHT = 32

# @intent:constant 4KBのフラットなアドレス空間と、その中の固定領域の開始オフセット。
MEMORY_SIZE = 0x1000
MEMORY_FONT = 0x01B0
MEMORY_USER = 0x0200
MEMORY_STACK = MEMORY_SIZE - 0x0200 + 0x00A0  # 0x0EA0
MEMORY_INT_AREA = MEMORY_STACK + 0x0030       # 0x0ED0
MEMORY_REG_AREA = MEMORY_INT_AREA + 0x0020    # 0x0EF0
MEMORY_DISPLAY = MEMORY_REG_AREA + 0x0010     # 0x0F00

# スタックポインタの初期値はスタック領域の最終バイト
STACK_TOP = MEMORY_INT_AREA - 1               # 0x0ECF

# ROMはユーザー領域（スタック領域の直前まで）に収まる必要がある
ROM_CAPACITY = MEMORY_STACK - MEMORY_USER

# @intent:constant 16進数字 0-F の 4x5 フォントスプライト。
FONT_DATA = bytes([
    0xF0, 0x90, 0x90, 0x90, 0xF0,  # 0
    0x20, 0x60, 0x20, 0x20, 0x70,  # 1
    0xF0, 0x10, 0xF0, 0x80, 0xF0,  # 2
    0xF0, 0x10, 0xF0, 0x10, 0xF0,  # 3
    0x90, 0x90, 0xF0, 0x10, 0x10,  # 4
    0xF0, 0x80, 0xF0, 0x10, 0xF0,  # 5
    0xF0, 0x80, 0xF0, 0x90, 0xF0,  # 6
    0xF0, 0x10, 0x20, 0x40, 0x40,  # 7
    0xF0, 0x90, 0xF0, 0x90, 0xF0,  # 8
    0xF0, 0x90, 0xF0, 0x10, 0xF0,  # 9
    0xF0, 0x90, 0xF0, 0x90, 0x90,  # A
    0xE0, 0x90, 0xE0, 0x90, 0xE0,  # B
    0xF0, 0x80, 0x80, 0x80, 0xF0,  # C
    0xE0, 0x90, 0x90, 0x90, 0xE0,  # D
    0xF0, 0x80, 0xF0, 0x80, 0xF0,  # E
    0xF0, 0x80, 0xF0, 0x80, 0x80,  # F
])

# @intent:data_structure メモリ領域の表示・検証用の定義。
class MemoryRegion(NamedTuple):
    label: str
    start: int
    end: int  # inclusive

    def contains(self, address: int) -> bool:
        return self.start <= address <= self.end


MEMORY_REGIONS: List[MemoryRegion] = [
    MemoryRegion("Font", MEMORY_FONT, MEMORY_FONT + len(FONT_DATA) - 1),
    MemoryRegion("User program", MEMORY_USER, MEMORY_STACK - 1),
    MemoryRegion("Stack", MEMORY_STACK, MEMORY_INT_AREA - 1),
    MemoryRegion("Interpreter", MEMORY_INT_AREA, MEMORY_REG_AREA - 1),
    MemoryRegion("Registers", MEMORY_REG_AREA, MEMORY_DISPLAY - 1),
    MemoryRegion("Display", MEMORY_DISPLAY, MEMORY_SIZE - 1),
]

STACK_REGION = MEMORY_REGIONS[2]
