"""
ホストキーボードとCHIP-8 16進キーパッドの対応付け。
"""
from typing import Dict, Mapping, Optional

from PySide6.QtCore import Qt

from chip8_tracer.config.models import DEFAULT_KEYMAP

# @intent:utility キー名（"Q", "1", "Left"など）をQtのキーコードへ変換します。
def key_code(name: str) -> int:
    if len(name) == 1:
        # 英数字のQtキーコードはASCII大文字と一致する
        return ord(name.upper())
    member = getattr(Qt.Key, f"Key_{name.capitalize()}", None)
    if member is None:
        raise ValueError(f"Unknown host key name '{name}'")
    return member.value if hasattr(member, "value") else int(member)

# @intent:responsibility ホストのキーコードをキーパッドのインデックス（0x0-0xF）に変換します。
class KeyMap:
    def __init__(self, mapping: Optional[Mapping[str, int]] = None):
        self._codes: Dict[int, int] = {}
        for name, key in (mapping or DEFAULT_KEYMAP).items():
            self._codes[key_code(name)] = key

    def lookup(self, code) -> Optional[int]:
        """マッピングされていないキーにはNoneを返します。"""
        if hasattr(code, "value"):
            code = code.value
        return self._codes.get(int(code))

    def __len__(self) -> int:
        return len(self._codes)
