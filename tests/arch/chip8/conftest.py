# tests/arch/chip8/conftest.py
"""
CHIP-8テスト用の共通フィクスチャ。
"""
import random

import pytest

from chip8_tracer.core.diagnostics import UnknownOpcodePolicy
from chip8_tracer.transport.bus import Bus, RAM
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.memory_map import MEMORY_SIZE
from chip8_tracer.arch.chip8.state import MachineVersion


@pytest.fixture
def make_machine():
    """
    初期化済みのマシンを生成するファクトリ。programを渡すとユーザー領域へ配置します。
    """
    def factory(program=b"", version=MachineVersion.CHIP_8,
                policy=UnknownOpcodePolicy.SKIP, seed=1234):
        bus = Bus()
        bus.register_device(0x0000, MEMORY_SIZE - 1, RAM(MEMORY_SIZE))
        cpu = Chip8Cpu(bus, version=version, unknown_opcode_policy=policy, rng=random.Random(seed))
        cpu.initialize()
        if program:
            cpu.load_rom(bytes(program))
        return cpu, bus
    return factory


@pytest.fixture
def machine(make_machine):
    return make_machine()


@pytest.fixture
def run_steps():
    """count命令を実行し、最後のSnapshotを返す関数。"""
    def run(cpu, count):
        snapshot = None
        for _ in range(count):
            snapshot = cpu.step()
        return snapshot
    return run
