# src/chip8_tracer/arch/chip8/display.py
"""
CHIP-8 のモノクロ表示バッファ。

64x32 の点灯/消灯セルを行優先で保持します。色への変換や画面への提示は
外部の描画コンポーネントの責務であり、このモジュールは関与しません。
"""
from typing import Iterator, List, Tuple

from chip8_tracer.arch.chip8.memory_map import DISPLAY_WIDTH, DISPLAY_HEIGHT

# @intent:responsibility 表示バッファのセル状態を保持し、座標のラップアラウンドとXOR描画を提供します。
class Display:
    """
    行優先の点灯/消灯バッファ。
    座標は幅・高さ（2のべき乗）でマスクされてからアクセスされます。
    """
    def __init__(self, width: int = DISPLAY_WIDTH, height: int = DISPLAY_HEIGHT):
        self.width = width
        self.height = height
        self._pixels = bytearray(width * height)

    def _index(self, x: int, y: int) -> int:
        return (x & (self.width - 1)) + (y & (self.height - 1)) * self.width

    # @intent:responsibility 全セルを消灯します。
    def clear(self) -> None:
        self._pixels[:] = bytes(len(self._pixels))

    def get_pixel(self, x: int, y: int) -> bool:
        return self._pixels[self._index(x, y)] != 0

    def set_pixel(self, x: int, y: int, lit: bool) -> None:
        self._pixels[self._index(x, y)] = 1 if lit else 0

    # @intent:responsibility セルを反転し、点灯していたセルが消灯した（衝突した）かを返します。
    def xor_pixel(self, x: int, y: int) -> bool:
        index = self._index(x, y)
        was_lit = self._pixels[index] != 0
        self._pixels[index] = 0 if was_lit else 1
        return was_lit

    def rows(self) -> List[Tuple[bool, ...]]:
        w = self.width
        return [tuple(b != 0 for b in self._pixels[y * w:(y + 1) * w]) for y in range(self.height)]

    def lit_count(self) -> int:
        return sum(self._pixels)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Display):
            return NotImplemented
        return (self.width, self.height, self._pixels) == (other.width, other.height, other._pixels)

    def __repr__(self) -> str:
        return f"Display({self.width}x{self.height}, lit={self.lit_count()})"


# @intent:responsibility 描画コンポーネント向けの読み取り専用ビューを提供します。
# @intent:rationale 外部コンポーネントが表示バッファを直接変更できないよう、書き込み系メソッドを公開しません。
class DisplayView:
    def __init__(self, display: Display):
        self._display = display

    @property
    def width(self) -> int:
        return self._display.width

    @property
    def height(self) -> int:
        return self._display.height

    def pixel(self, x: int, y: int) -> bool:
        return self._display.get_pixel(x, y)

    def rows(self) -> List[Tuple[bool, ...]]:
        return self._display.rows()

    def __iter__(self) -> Iterator[Tuple[int, int, bool]]:
        for y, row in enumerate(self._display.rows()):
            for x, lit in enumerate(row):
                yield x, y, lit
