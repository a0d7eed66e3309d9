import random
from typing import Optional, Tuple

from chip8_tracer.transport.bus import Bus, RAM
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.memory_map import MEMORY_SIZE
from chip8_tracer.loader.loader import RomLoader
from .models import MachineConfig

# @intent:responsibility マシン構成（Config）に基づいて、Bus、RAM、CPUを生成・接続し、初期化します。
class MachineBuilder:
    def build_machine(self, config: MachineConfig,
                      rng: Optional[random.Random] = None) -> Tuple[Chip8Cpu, Bus]:
        bus = Bus()
        bus.register_device(0x0000, MEMORY_SIZE - 1, RAM(MEMORY_SIZE))

        cpu = Chip8Cpu(bus, version=config.version,
                       unknown_opcode_policy=config.unknown_opcode_policy, rng=rng)
        cpu.initialize()

        if config.rom:
            RomLoader().load_file(config.rom, cpu)

        return cpu, bus
