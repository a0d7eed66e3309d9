# src/chip8_tracer/arch/chip8/cpu.py
"""
CHIP-8 CPUエミュレーションの中心モジュール。

フェッチ・デコード・実行のサイクルに加え、ライフサイクル制御（初期化、ROM配置、
一時停止/再開、未知オペコードによる停止）と、外部コンポーネント（描画・入力・ストレージ）
との境界インターフェースを提供します。
"""
import logging
import random
from typing import Dict, Iterable, List, Optional, Tuple

from chip8_tracer.common.types import RegisterLayoutInfo, RegisterInfo
from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.core.diagnostics import Diagnostic, DiagnosticKind, UnknownOpcodePolicy
from chip8_tracer.core.errors import LifecycleError, RomTooLargeError
from chip8_tracer.core.snapshot import Metadata, Operation, Snapshot
from chip8_tracer.transport.bus import Bus
from chip8_tracer.arch.chip8 import disassembler, dump
from chip8_tracer.arch.chip8.display import DisplayView
from chip8_tracer.arch.chip8.instructions import (
    ExecutionEnvironment, Instruction, decode_opcode, execute_instruction,
)
from chip8_tracer.arch.chip8.memory_map import (
    FONT_DATA, MEMORY_FONT, MEMORY_STACK, MEMORY_USER, STACK_TOP,
)
from chip8_tracer.arch.chip8.state import (
    Chip8CpuState, MachineVersion, Quirks, Register, RunState,
)

logger = logging.getLogger(__name__)

# @intent:responsibility CHIP-8 CPUの具体的なエミュレーションロジック（フェッチ、デコード、実行）とライフサイクルを提供します。
class Chip8Cpu(AbstractCpu):
    """
    CHIP-8 仮想マシン。

    生成直後は全状態がゼロの UNINITIALIZED であり、`initialize()` によって
    フォントの配置とPC/SPの設定が行われ RUNNING になります。
    インスタンスはグローバル状態を持たないため、複数のマシンを独立して同時に扱えます。
    """
    def __init__(self, bus: Bus,
                 version: MachineVersion = MachineVersion.CHIP_8,
                 unknown_opcode_policy: UnknownOpcodePolicy = UnknownOpcodePolicy.SKIP,
                 rng: Optional[random.Random] = None):
        self._version = version
        self._unknown_opcode_policy = unknown_opcode_policy
        self._env = ExecutionEnvironment(Quirks.for_version(version), rng or random.Random())
        self._run_state = RunState.UNINITIALIZED
        self._rom_size = 0
        self._stepping = False
        super().__init__(bus)

    def _create_initial_state(self) -> Chip8CpuState:
        return Chip8CpuState()

    # --- Lifecycle -------------------------------------------------------

    # @intent:responsibility マシンを初期化します（バージョン選択、全状態のクリア、フォント配置、PC/SPの設定）。
    # @intent:post-condition run_stateはRUNNINGになります。
    def initialize(self, version: Optional[MachineVersion] = None) -> None:
        if self._stepping:
            raise LifecycleError("Cannot initialize the machine while an instruction is executing.")
        if version is not None:
            self._version = version
        self._env.quirks = Quirks.for_version(self._version)

        self._bus.clear()
        self._state = self._create_initial_state()
        self._bus.load_block(MEMORY_FONT, FONT_DATA)
        self._state.pc = MEMORY_USER
        self._state.sp = STACK_TOP
        self._instruction_count = 0
        self._rom_size = 0
        self._run_state = RunState.RUNNING

        logger.debug("Font loaded at %#06x, PC=%#06x, SP=%#06x", MEMORY_FONT, self._state.pc, self._state.sp)
        logger.info("Machine initialized (version=%s)", self._version.value)

    def reset(self) -> None:
        """現在のバージョンで再初期化します。ROMも消去されます。"""
        self.initialize(self._version)

    # @intent:responsibility ROMのバイト列をユーザー領域へ配置し、そのサイズを記録します。
    # @intent:pre-condition 命令の実行中でないこと。初期化済みであること。容量を超える場合は1バイトもコピーされません。
    def load_rom(self, data: Iterable[int], offset: int = MEMORY_USER) -> int:
        if self._run_state is RunState.UNINITIALIZED:
            raise LifecycleError("Machine is not initialized; call initialize() before installing a ROM.")
        if self._stepping:
            raise LifecycleError("Cannot install a ROM while an instruction is executing.")
        if not MEMORY_USER <= offset < MEMORY_STACK:
            raise ValueError(f"ROM offset {offset:#06x} is outside the user program area.")

        payload = bytes(data)
        capacity = MEMORY_STACK - offset
        if len(payload) > capacity:
            raise RomTooLargeError(len(payload), capacity)

        self._bus.load_block(offset, payload)
        self._rom_size = len(payload)
        logger.info("ROM installed at %#06x (%d bytes)", offset, self._rom_size)
        return self._rom_size

    def pause(self) -> None:
        if self._run_state is RunState.RUNNING:
            self._run_state = RunState.PAUSED
            logger.info("Paused at PC=%#06x", self._state.pc)

    def resume(self) -> None:
        if self._run_state is RunState.PAUSED:
            self._run_state = RunState.RUNNING
            logger.info("Resumed at PC=%#06x", self._state.pc)

    def toggle_pause(self) -> None:
        if self._run_state is RunState.PAUSED:
            self.resume()
        else:
            self.pause()

    # @intent:responsibility 過去の状態へ戻した場合、HALTはPAUSEDに解除します。
    # @intent:rationale 停止させた命令はPCを進めないため、次のstepで同じ命令が再実行されます。
    def restore_state(self, state: Chip8CpuState) -> None:
        super().restore_state(state)
        if self._run_state is RunState.HALTED:
            self._run_state = RunState.PAUSED
            logger.info("Halt cleared by state restore at PC=%#06x", self._state.pc)

    def get_run_state(self) -> RunState:
        return self._run_state

    @property
    def is_running(self) -> bool:
        return self._run_state is RunState.RUNNING

    @property
    def is_halted(self) -> bool:
        return self._run_state is RunState.HALTED

    def get_version(self) -> MachineVersion:
        return self._version

    def get_quirks(self) -> Quirks:
        return self._env.quirks

    def get_rom_size(self) -> int:
        return self._rom_size

    def get_unknown_opcode_policy(self) -> UnknownOpcodePolicy:
        return self._unknown_opcode_policy

    def set_unknown_opcode_policy(self, policy: UnknownOpcodePolicy) -> None:
        self._unknown_opcode_policy = policy

    # --- Instruction cycle ----------------------------------------------

    # @intent:responsibility 1命令を原子的に実行します。PAUSED中でも明示的なstep呼び出しは実行されます（単一ステップ実行用）。
    def step(self) -> Snapshot:
        if self._run_state is RunState.UNINITIALIZED:
            raise LifecycleError("Machine is not initialized; call initialize() first.")
        self._stepping = True
        try:
            return super().step()
        finally:
            self._stepping = False

    # @intent:responsibility HALT中は命令を実行せず、PCを変えずにHALTスナップショットを返します。
    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        if self._run_state is not RunState.HALTED:
            return None
        return Snapshot(
            state=self._copy_state(),
            operation=Operation(opcode=0x0000, address=current_pc, mnemonic="HALT"),
            metadata=Metadata(instruction_count=self._instruction_count, symbol_info="HALT"),
        )

    def _fetch(self) -> int:
        return self._bus.read_word(self._state.pc)

    def _decode(self, opcode: int) -> Instruction:
        return decode_opcode(opcode, self._state.pc)

    # @intent:rationale CHIP-8では各命令が自らPCを更新する（制御転送命令は直接設定する）ため、事前更新は行いません。
    def _update_pc(self, operation: Operation) -> None:
        pass

    def _execute(self, operation: Instruction) -> None:
        if not operation.supported:
            self._handle_unknown_opcode(operation)
            return
        execute_instruction(operation, self._state, self._bus, self._env)

    # @intent:responsibility 未知/未サポートのオペコードを診断イベントとして報告し、設定されたポリシーに従います。
    def _handle_unknown_opcode(self, operation: Instruction) -> None:
        halting = self._unknown_opcode_policy is UnknownOpcodePolicy.HALT
        self.report_diagnostic(Diagnostic(
            kind=DiagnosticKind.UNKNOWN_OPCODE,
            address=operation.address,
            opcode=operation.opcode,
            message=f"{operation.text()} ({'halting' if halting else 'skipped'})",
        ))
        if halting:
            self._run_state = RunState.HALTED
            logger.info("Halted at PC=%#06x on opcode %04X", operation.address, operation.opcode)
        else:
            self._state.pc = (self._state.pc + 2) & 0xFFFF

    # --- Timers / Keypad / Display --------------------------------------

    # @intent:responsibility 遅延タイマーとサウンドタイマーをそれぞれ1だけ減算します（0未満にはしない）。
    # @intent:rationale 命令実行とは独立に、駆動側が一定周期（通常60Hz）で呼び出します。
    def tick_timers(self) -> None:
        if self._state.delay_timer > 0:
            self._state.delay_timer -= 1
        if self._state.sound_timer > 0:
            self._state.sound_timer -= 1

    @property
    def sound_active(self) -> bool:
        return self._state.sound_timer > 0

    def set_key(self, key: int, pressed: bool) -> None:
        self._state.keypad.set_key(key, pressed)

    def press_key(self, key: int) -> None:
        self._state.keypad.press(key)

    def release_key(self, key: int) -> None:
        self._state.keypad.release(key)

    def clear_keys(self) -> None:
        self._state.keypad.clear()

    def get_display(self) -> DisplayView:
        return DisplayView(self._state.display)

    def get_register(self, register: Register) -> int:
        return self._state.get_register(register)

    def set_register(self, register: Register, value: int) -> None:
        self._state.set_register(register, value)

    # --- Inspection ------------------------------------------------------

    # @intent:responsibility UI表示用に、現在のレジスタ値を辞書形式で提供します。
    def get_register_map(self) -> Dict[str, int]:
        s = self._state
        registers = {f"V{index:X}": value for index, value in enumerate(s.v)}
        registers.update({"I": s.i, "SP": s.sp, "PC": s.pc, "DT": s.delay_timer, "ST": s.sound_timer})
        return registers

    # @intent:responsibility UIのレジスタ表示レイアウト（グループ化）を定義します。
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        return [
            RegisterLayoutInfo("General", [RegisterInfo(f"V{index:X}", 8) for index in range(16)]),
            RegisterLayoutInfo("Index/Pointers", [
                RegisterInfo("I", 16), RegisterInfo("SP", 16), RegisterInfo("PC", 16)
            ]),
            RegisterLayoutInfo("Timers", [
                RegisterInfo("DT", 8), RegisterInfo("ST", 8)
            ]),
        ]

    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        return disassembler.disassemble(self._bus, start_addr, length)

    def memory_dump(self, start: int, end: int) -> str:
        return dump.memory_dump(self._bus, start, end)

    def display_dump(self) -> str:
        return dump.display_dump(self._state.display)

    def register_dump(self) -> str:
        return dump.register_dump(self._state)
