from dataclasses import dataclass, field
from typing import Dict, Optional

from chip8_tracer.core.diagnostics import UnknownOpcodePolicy
from chip8_tracer.arch.chip8.state import MachineVersion

# 1234/QWER/ASDF/ZXCV の配置を COSMAC VIP の 16進キーパッドへ対応付ける
DEFAULT_KEYMAP: Dict[str, int] = {
    "1": 0x1, "2": 0x2, "3": 0x3, "4": 0xC,
    "Q": 0x4, "W": 0x5, "E": 0x6, "R": 0xD,
    "A": 0x7, "S": 0x8, "D": 0x9, "F": 0xE,
    "Z": 0xA, "X": 0x0, "C": 0xB, "V": 0xF,
}

@dataclass
class TimingConfig:
    instructions_per_second: int = 500
    frame_rate: int = 60

@dataclass
class DisplayConfig:
    scale: int = 10
    foreground: str = "#00C800"
    outline: str = "#C80000"
    background: str = "#000000"

@dataclass
class MachineConfig:
    version: MachineVersion = MachineVersion.CHIP_8
    unknown_opcode_policy: UnknownOpcodePolicy = UnknownOpcodePolicy.SKIP
    timing: TimingConfig = field(default_factory=TimingConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    keymap: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_KEYMAP))
    rom: Optional[str] = None
