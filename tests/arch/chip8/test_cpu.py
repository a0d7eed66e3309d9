# tests/arch/chip8/test_cpu.py
"""
chip8_tracer.arch.chip8.cpuモジュールの単体テスト。
ライフサイクル、ROMの配置、未知オペコードのポリシー、実行シナリオを検証します。
"""
import logging

import pytest

from chip8_tracer.core.diagnostics import DiagnosticKind, UnknownOpcodePolicy
from chip8_tracer.core.errors import LifecycleError, RomTooLargeError
from chip8_tracer.transport.bus import Bus, RAM
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.memory_map import FONT_DATA, MEMORY_FONT, MEMORY_USER, ROM_CAPACITY, STACK_TOP
from chip8_tracer.arch.chip8.state import Chip8CpuState, MachineVersion, Register, RunState

# @intent:test_suite CHIP-8仮想マシンのライフサイクルと実行サイクルを検証します。

SCENARIO = bytes([0xA2, 0x0A, 0x61, 0x00, 0x62, 0x0A, 0xD1, 0x25, 0x12, 0x08,
                  0xF0, 0x90, 0xF0, 0x90, 0xF0, 0x00])


class TestLifecycle:
    def test_new_machine_is_uninitialized(self):
        bus = Bus()
        bus.register_device(0x0000, 0x0FFF, RAM(0x1000))
        cpu = Chip8Cpu(bus)
        assert cpu.get_run_state() is RunState.UNINITIALIZED
        with pytest.raises(LifecycleError):
            cpu.step()

    # @intent:test_case_init 初期化によりフォントが配置され、PC/SPが設定されることを検証します。
    def test_initialize(self, machine):
        cpu, bus = machine
        state = cpu.get_state()
        assert isinstance(state, Chip8CpuState)
        assert state.pc == MEMORY_USER
        assert state.sp == STACK_TOP
        assert cpu.get_run_state() is RunState.RUNNING
        assert bytes(bus.peek(MEMORY_FONT + k) for k in range(len(FONT_DATA))) == FONT_DATA

    # @intent:test_case_reinit 再初期化でメモリ、レジスタ、表示、キー、タイマーが全てクリアされることを検証します。
    def test_reinitialize_clears_everything(self, make_machine):
        cpu, bus = make_machine(SCENARIO)
        for _ in range(4):
            cpu.step()
        cpu.press_key(3)
        cpu.set_register(Register.DT, 9)
        cpu.initialize()
        assert bus.peek(MEMORY_USER) == 0
        assert cpu.get_state().v == [0] * 16
        assert cpu.get_display().rows() == [tuple([False] * 64)] * 32
        assert cpu.get_state().keypad.pressed_keys() == []
        assert cpu.get_register(Register.DT) == 0
        assert cpu.get_rom_size() == 0
        assert cpu.get_instruction_count() == 0

    def test_initialize_selects_version(self, machine):
        cpu, _ = machine
        cpu.initialize(MachineVersion.SUPER_CHIP_MODERN)
        assert cpu.get_version() is MachineVersion.SUPER_CHIP_MODERN
        assert not cpu.get_quirks().shift_copies_source
        cpu.reset()
        assert cpu.get_version() is MachineVersion.SUPER_CHIP_MODERN

    def test_pause_and_resume(self, machine):
        cpu, _ = machine
        cpu.pause()
        assert cpu.get_run_state() is RunState.PAUSED
        assert not cpu.is_running
        cpu.toggle_pause()
        assert cpu.is_running
        cpu.toggle_pause()
        cpu.resume()
        assert cpu.is_running

    # @intent:test_case_single_step 一時停止中でも明示的なstepは実行されることを検証します。
    def test_step_while_paused(self, make_machine):
        cpu, _ = make_machine([0x60, 0x07])
        cpu.pause()
        cpu.step()
        assert cpu.get_register(Register.V0) == 7
        assert cpu.get_run_state() is RunState.PAUSED

    def test_lifecycle_logging(self, caplog):
        bus = Bus()
        bus.register_device(0x0000, 0x0FFF, RAM(0x1000))
        cpu = Chip8Cpu(bus)
        with caplog.at_level(logging.INFO, logger="chip8_tracer"):
            cpu.initialize()
            cpu.load_rom(b"\x00\xE0")
        assert "Machine initialized (version=CHIP_8)" in caplog.text
        assert "ROM installed at 0x0200 (2 bytes)" in caplog.text


class TestLoadRom:
    def test_rom_is_placed_in_user_area(self, machine):
        cpu, bus = machine
        assert cpu.load_rom(SCENARIO) == len(SCENARIO)
        assert bus.peek(MEMORY_USER) == 0xA2
        assert bus.peek(MEMORY_USER + len(SCENARIO) - 1) == 0x00
        assert cpu.get_rom_size() == len(SCENARIO)

    def test_rom_of_full_capacity_fits(self, machine):
        cpu, bus = machine
        cpu.load_rom(bytes([0x11]) * ROM_CAPACITY)
        assert bus.peek(MEMORY_USER + ROM_CAPACITY - 1) == 0x11

    # @intent:test_case_too_large 容量超過のROMは拒否され、1バイトもコピーされないことを検証します。
    def test_rom_too_large(self, machine):
        cpu, bus = machine
        with pytest.raises(RomTooLargeError) as excinfo:
            cpu.load_rom(bytes([0x11]) * (ROM_CAPACITY + 1))
        assert excinfo.value.capacity == ROM_CAPACITY
        assert bus.peek(MEMORY_USER) == 0
        assert cpu.get_rom_size() == 0

    def test_invalid_offset(self, machine):
        cpu, _ = machine
        with pytest.raises(ValueError):
            cpu.load_rom(b"\x00", offset=0x100)

    # @intent:test_case_reentrancy 命令実行中のROM配置はLifecycleErrorとなることを検証します。
    def test_load_during_step_is_rejected(self, make_machine):
        cpu, _ = make_machine([0x60, 0x01])
        errors = []

        def reload(record):
            try:
                cpu.load_rom(b"\x12\x00")
            except LifecycleError as e:
                errors.append(e)

        cpu.add_trace_listener(reload)
        cpu.step()
        assert len(errors) == 1

    # @intent:test_case_uninitialized 初期化前のROM配置は拒否され、メモリは変更されないことを検証します。
    def test_load_before_initialize_is_rejected(self):
        bus = Bus()
        bus.register_device(0x0000, 0x0FFF, RAM(0x1000))
        cpu = Chip8Cpu(bus)
        with pytest.raises(LifecycleError):
            cpu.load_rom(b"\x12\x00")
        assert bus.peek(MEMORY_USER) == 0
        assert cpu.get_rom_size() == 0

        cpu.initialize()
        assert cpu.load_rom(b"\x12\x00") == 2
        assert bus.peek(MEMORY_USER) == 0x12


class TestUnknownOpcode:
    # @intent:test_case_skip SKIPポリシーでは診断を報告し、PCを2進めて継続することを検証します。
    def test_skip_policy(self, make_machine):
        cpu, _ = make_machine([0x51, 0x21, 0x60, 0x09])
        received = []
        cpu.add_diagnostic_listener(received.append)

        snapshot = cpu.step()
        assert cpu.get_state().pc == 0x202
        assert cpu.is_running
        assert len(received) == 1
        assert received[0].kind is DiagnosticKind.UNKNOWN_OPCODE
        assert (received[0].address, received[0].opcode) == (0x200, 0x5121)
        assert snapshot.diagnostics == received

        snapshot = cpu.step()
        assert cpu.get_register(Register.V0) == 9
        assert snapshot.diagnostics == []

    # @intent:test_case_halt HALTポリシーではPCを変えずに停止し、以降のstepは何も実行しないことを検証します。
    def test_halt_policy(self, make_machine):
        cpu, _ = make_machine([0xFF, 0xFF, 0x60, 0x09], policy=UnknownOpcodePolicy.HALT)
        cpu.step()
        assert cpu.is_halted
        assert cpu.get_state().pc == 0x200
        count = cpu.get_instruction_count()

        snapshot = cpu.step()
        assert snapshot.operation.mnemonic == "HALT"
        assert snapshot.state.pc == 0x200
        assert cpu.get_register(Register.V0) == 0
        assert cpu.get_instruction_count() == count

        cpu.initialize()
        assert cpu.is_running

    # @intent:test_case_restore_clears_halt 過去の状態へ戻すとHALTが解除され、同じ命令が再実行されることを検証します。
    def test_restore_state_clears_halt(self, make_machine):
        cpu, _ = make_machine([0x60, 0x05, 0xFF, 0xFF], policy=UnknownOpcodePolicy.HALT)
        before = cpu.step().state
        cpu.step()
        assert cpu.is_halted

        cpu.restore_state(before)
        assert cpu.get_run_state() is RunState.PAUSED
        snapshot = cpu.step()
        assert snapshot.operation.opcode == 0xFFFF
        assert cpu.is_halted

    def test_sys_is_treated_as_unknown(self, make_machine):
        cpu, _ = make_machine([0x01, 0x23])
        snapshot = cpu.step()
        assert snapshot.operation.mnemonic == "SYS"
        assert snapshot.diagnostics[0].opcode == 0x0123
        assert cpu.get_state().pc == 0x202

    def test_policy_can_be_changed(self, machine):
        cpu, _ = machine
        cpu.set_unknown_opcode_policy(UnknownOpcodePolicy.HALT)
        assert cpu.get_unknown_opcode_policy() is UnknownOpcodePolicy.HALT

    def test_diagnostic_is_logged_as_warning(self, make_machine, caplog):
        cpu, _ = make_machine([0xFF, 0xFF])
        with caplog.at_level(logging.WARNING, logger="chip8_tracer"):
            cpu.step()
        assert "[UNKNOWN_OPCODE] 0200: FFFF" in caplog.text


class TestScenario:
    # @intent:test_case_scenario Iの設定、座標設定、スプライト描画、自己ループからなるプログラムを検証します。
    def test_draw_and_loop_program(self, make_machine, run_steps):
        cpu, _ = make_machine(SCENARIO)
        run_steps(cpu, 5)
        state = cpu.get_state()
        assert state.i == 0x20A
        assert state.pc == 0x208
        assert cpu.get_register(Register.VF) == 0

        rows = cpu.get_display().rows()
        assert rows[10][:4] == (True, True, True, True)
        assert rows[11][:4] == (True, False, False, True)
        assert rows[12][:4] == (True, True, True, True)
        assert rows[14][:4] == (True, True, True, True)
        assert state.display.lit_count() == 16

        # 自己ループではPCは変化しない
        run_steps(cpu, 10)
        assert cpu.get_state().pc == 0x208
        assert cpu.get_state().display.lit_count() == 16

    # @intent:test_case_trace 実行命令ごとにトレースレコードが通知されることを検証します。
    def test_trace_records(self, make_machine, run_steps):
        cpu, _ = make_machine(SCENARIO)
        records = []
        cpu.add_trace_listener(records.append)
        run_steps(cpu, 4)
        assert [str(r) for r in records] == [
            "0200: A20A  LD I, $20A",
            "0202: 6100  LD V1, #00",
            "0204: 620A  LD V2, #0A",
            "0206: D125  DRW V1, V2, #5",
        ]

    # @intent:test_case_isolation 複数のマシンが状態を共有しないことを検証します。
    def test_machines_are_independent(self, make_machine):
        cpu_a, _ = make_machine([0x60, 0x01])
        cpu_b, _ = make_machine([0x60, 0x02])
        cpu_a.step()
        cpu_b.step()
        assert cpu_a.get_register(Register.V0) == 1
        assert cpu_b.get_register(Register.V0) == 2


class TestInspection:
    def test_register_map_and_layout(self, machine):
        cpu, _ = machine
        registers = cpu.get_register_map()
        assert registers["PC"] == 0x200
        assert registers["SP"] == STACK_TOP
        assert set(registers) == {f"V{i:X}" for i in range(16)} | {"I", "SP", "PC", "DT", "ST"}

        layout = cpu.get_register_layout()
        names = [reg.name for group in layout for reg in group.registers]
        assert sorted(names) == sorted(registers)

    def test_disassemble_via_cpu(self, make_machine):
        cpu, _ = make_machine(SCENARIO)
        lines = cpu.disassemble(0x200, 10)
        assert lines[0] == (0x200, "A2 0A", "LD I, $20A")
        assert lines[-1] == (0x208, "12 08", "JP $208")
