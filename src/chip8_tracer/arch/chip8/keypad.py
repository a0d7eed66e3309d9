# src/chip8_tracer/arch/chip8/keypad.py
"""
16キーの16進キーパッド状態。

キー状態を発生させるのは外部の入力コンポーネントであり、コアはこれを読むだけです。
"""
from typing import List, Optional

KEY_COUNT = 0x10

# @intent:responsibility 16個のキーの押下状態を保持します。
class Keypad:
    def __init__(self):
        self._keys: List[bool] = [False] * KEY_COUNT

    @staticmethod
    def _check(key: int) -> int:
        if not 0 <= key < KEY_COUNT:
            raise ValueError(f"Key index {key} is outside 0x0-0xF.")
        return key

    def set_key(self, key: int, pressed: bool) -> None:
        self._keys[self._check(key)] = bool(pressed)

    def press(self, key: int) -> None:
        self.set_key(key, True)

    def release(self, key: int) -> None:
        self.set_key(key, False)

    def is_pressed(self, key: int) -> bool:
        return self._keys[self._check(key)]

    def clear(self) -> None:
        self._keys = [False] * KEY_COUNT

    # @intent:responsibility 昇順に走査し、最初に押されているキーの番号を返します。
    # @intent:rationale 押下状態のクリア（デバウンス）は行いません。押し続けたキーは繰り返し読み取られます。
    def first_pressed(self) -> Optional[int]:
        for key, pressed in enumerate(self._keys):
            if pressed:
                return key
        return None

    def pressed_keys(self) -> List[int]:
        return [key for key, pressed in enumerate(self._keys) if pressed]

    def __eq__(self, other) -> bool:
        if not isinstance(other, Keypad):
            return NotImplemented
        return self._keys == other._keys

    def __repr__(self) -> str:
        return f"Keypad(pressed={self.pressed_keys()})"
