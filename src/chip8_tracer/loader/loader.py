# chip8_tracer/loader/loader.py
"""
ROMローダーモジュール。

CHIP-8のROMファイルは不透明なバイナリであり、そのままユーザー領域へ配置されます。
"""
import logging
from pathlib import Path
from typing import Union

from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.memory_map import MEMORY_USER

logger = logging.getLogger(__name__)

class RomLoader:
    """
    バイナリROMファイルを読み込み、CPUのユーザー領域へインストールするローダー。
    """
    def read_file(self, file_path: Union[str, Path]) -> bytes:
        with open(file_path, 'rb') as f:
            return f.read()

    def load_file(self, file_path: Union[str, Path], cpu: Chip8Cpu, offset: int = MEMORY_USER) -> int:
        data = self.read_file(file_path)
        logger.info("Loading ROM %s (%d bytes)", file_path, len(data))
        return cpu.load_rom(data, offset)
