# chip8_tracer/debugger/debugger.py
"""
デバッガモジュール。

コアエンジンの実行を制御し、ユーザーが指定した条件（ブレークポイント）で
実行を中断させる責務を負います。実行履歴を保持し、1命令ずつ過去へ戻ることもできます。
"""
import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from chip8_tracer.core.cpu import AbstractCpu
from chip8_tracer.core.diagnostics import Diagnostic, DiagnosticKind
from chip8_tracer.core.errors import AddressOutOfRangeError, UnknownOpcodeError
from chip8_tracer.core.snapshot import Snapshot
from chip8_tracer.core.state import CpuState
from chip8_tracer.transport.bus import BusAccessType
from chip8_tracer.arch.chip8.state import Register

logger = logging.getLogger(__name__)

# @intent:responsibility ブレークポイントの条件タイプを定義します。
class BreakpointConditionType(Enum):
    PC_MATCH = "PC_MATCH"               # プログラムカウンタが特定のアドレスに一致
    MEMORY_READ = "MEMORY_READ"         # 特定のアドレスが読み込まれた
    MEMORY_WRITE = "MEMORY_WRITE"       # 特定のアドレスに書き込まれた
    REGISTER_VALUE = "REGISTER_VALUE"   # 特定のレジスタが特定の値になった
    REGISTER_CHANGE = "REGISTER_CHANGE" # 特定のレジスタの値が変化した
    OPCODE = "OPCODE"                   # 特定のオペコードが実行された

# @intent:responsibility ブレークポイントをトリガーする条件を定義します。
@dataclass(frozen=True)
class BreakpointCondition:
    """
    ブレークポイントがヒットするための条件を定義するデータクラス。
    """
    condition_type: BreakpointConditionType
    value: Optional[int] = None           # PC_MATCH, REGISTER_VALUE, OPCODEで使用
    address: Optional[int] = None         # MEMORY_READ, MEMORY_WRITEで使用
    register_name: Optional[str] = None   # REGISTER_VALUE, REGISTER_CHANGEで使用（例: "V3", "I"）
    mnemonic: Optional[str] = None        # OPCODEで使用（例: "DRW"）。valueを指定した場合は生のオペコードと比較
    enabled: bool = True

# @intent:utility レジスタ名（"V3", "I", "DT"など）から状態の値を取得します。
def read_register(state: CpuState, name: str) -> Optional[int]:
    try:
        return state.get_register(Register[name.upper()])
    except (KeyError, ValueError):
        return getattr(state, name.lower(), None)

# @intent:responsibility コアエンジンの実行制御とブレークポイント管理を行います。
class Debugger:
    """
    CPUの実行を制御し、ブレークポイントの管理を行うクラス。
    """
    def __init__(self, cpu: AbstractCpu):
        self._cpu = cpu
        self._breakpoints: List[BreakpointCondition] = []
        self._running: bool = False
        self._previous_state: CpuState = self._cpu.get_state().copy()
        self._last_snapshot: Optional[Snapshot] = None
        self._history: List[Snapshot] = []
        # @intent:responsibility 履歴が尽きた時に戻るための初期状態を保持します。
        self._initial_state: CpuState = self._cpu.get_state().copy()

    def add_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition not in self._breakpoints:
            self._breakpoints.append(condition)

    def update_breakpoint(self, old_condition: BreakpointCondition, new_condition: BreakpointCondition) -> None:
        if old_condition in self._breakpoints:
            idx = self._breakpoints.index(old_condition)
            self._breakpoints[idx] = new_condition

    def remove_breakpoint(self, condition: BreakpointCondition) -> None:
        if condition in self._breakpoints:
            self._breakpoints.remove(condition)

    def get_breakpoints(self) -> List[BreakpointCondition]:
        return list(self._breakpoints)

    def get_history(self) -> List[Snapshot]:
        return list(self._history)

    def clear_history(self) -> None:
        """
        実行履歴を破棄し、現在の状態を新たな初期状態とします（ROMロードやリセット後に使用）。
        """
        self._history.clear()
        self._last_snapshot = None
        self._initial_state = self._cpu.get_state().copy()
        self._previous_state = self._initial_state

    def get_last_snapshot(self) -> Optional[Snapshot]:
        return self._last_snapshot

    def is_running(self) -> bool:
        return self._running

    def _pc_breakpoint_hit(self, pc: int) -> bool:
        return any(bp.enabled and bp.condition_type == BreakpointConditionType.PC_MATCH and bp.value == pc
                   for bp in self._breakpoints)

    def _check_other_breakpoints(self, snapshot: Snapshot) -> bool:
        """
        Snapshotに基づいてPC_MATCH以外のブレークポイントをチェックします。
        """
        current_state = snapshot.state

        for bp in self._breakpoints:
            if not bp.enabled:
                continue

            if bp.condition_type == BreakpointConditionType.MEMORY_READ:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.READ and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.MEMORY_WRITE:
                for access in snapshot.bus_activity:
                    if access.access_type == BusAccessType.WRITE and access.address == bp.address:
                        return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_VALUE:
                if bp.register_name and read_register(current_state, bp.register_name) == bp.value:
                    return True
            elif bp.condition_type == BreakpointConditionType.REGISTER_CHANGE:
                if bp.register_name:
                    before = read_register(self._previous_state, bp.register_name)
                    after = read_register(current_state, bp.register_name)
                    if before != after:
                        return True
            elif bp.condition_type == BreakpointConditionType.OPCODE:
                operation = snapshot.operation
                if operation.mnemonic == "HALT":
                    continue
                if bp.mnemonic is not None and operation.mnemonic == bp.mnemonic.upper():
                    return True
                if bp.value is not None and operation.opcode == bp.value:
                    return True
        return False

    def step_instruction(self) -> Snapshot:
        """
        CPUを1命令分実行し、その結果のSnapshotを返します。
        """
        self._previous_state = self._cpu.get_state().copy()
        snapshot = self._cpu.step()
        self._last_snapshot = snapshot
        self._history.append(snapshot)
        return snapshot

    def step_back(self) -> Optional[Snapshot]:
        """
        実行履歴を1つ戻り、CPUとメモリの状態を復元します。
        """
        if not self._history:
            return None

        snapshot_to_revert = self._history.pop()

        # バスアクティビティを逆順にスキャンし、書き込み操作を元に戻す（loadはログに残らない）
        bus = self._cpu.get_bus()
        for access in reversed(snapshot_to_revert.bus_activity):
            if access.access_type == BusAccessType.WRITE and access.previous_data is not None:
                bus.load(access.address, access.previous_data)

        if self._history:
            previous_snapshot = self._history[-1]
            self._cpu.restore_state(previous_snapshot.state)
            self._last_snapshot = previous_snapshot
            return previous_snapshot

        self._cpu.restore_state(self._initial_state)
        self._last_snapshot = None
        return None

    # @intent:responsibility ブレークポイント、HALT、範囲外アクセス、またはstop()まで実行を継続します。
    # @intent:pre-condition max_stepsを指定した場合、その命令数で必ず停止します。
    def run(self, max_steps: Optional[int] = None, strict: bool = False) -> int:
        """
        CPUの実行を継続し、実行した命令数を返します。
        strict=Trueの場合、未知のオペコードを実行した時点で停止し、UnknownOpcodeErrorを送出します。
        """
        self._running = True
        steps = 0

        # 現在のPCにブレークポイントがある場合、まず1命令進めてから判定を始める
        if self._pc_breakpoint_hit(self._cpu.get_state().pc):
            if not self._execute_one():
                return steps
            steps += 1
            if strict:
                self._raise_on_unknown_opcode(self._last_snapshot)

        while self._running and (max_steps is None or steps < max_steps):
            current_pc = self._cpu.get_state().pc
            if self._pc_breakpoint_hit(current_pc):
                self._running = False
                logger.info("Breakpoint hit at PC: %#06x", current_pc)
                break

            if not self._execute_one():
                break
            steps += 1
            snapshot = self._last_snapshot

            if snapshot.operation.mnemonic == "HALT":
                self._running = False
                logger.info("Machine halted at PC: %#06x", snapshot.state.pc)
                break

            if strict:
                self._raise_on_unknown_opcode(snapshot)

            if self._check_other_breakpoints(snapshot):
                self._running = False
                logger.info("Breakpoint hit at PC: %#06x", snapshot.state.pc)

        self._running = False
        return steps

    def _raise_on_unknown_opcode(self, snapshot: Snapshot) -> None:
        for diagnostic in snapshot.diagnostics:
            if diagnostic.kind is DiagnosticKind.UNKNOWN_OPCODE:
                self._running = False
                raise UnknownOpcodeError(diagnostic.opcode, diagnostic.address)

    # @intent:responsibility 1命令を実行し、範囲外アクセスを診断として報告します。失敗時はFalseを返します。
    def _execute_one(self) -> bool:
        try:
            self.step_instruction()
            return True
        except AddressOutOfRangeError as e:
            self._running = False
            pc = self._cpu.get_state().pc
            self._cpu.report_diagnostic(Diagnostic(
                kind=DiagnosticKind.ADDRESS_OUT_OF_RANGE,
                address=pc,
                opcode=self._peek_opcode(pc),
                message=str(e),
            ))
            return False

    def _peek_opcode(self, pc: int) -> int:
        bus = self._cpu.get_bus()
        try:
            return (bus.peek(pc) << 8) | bus.peek(pc + 1)
        except AddressOutOfRangeError:
            return 0x0000

    def run_back(self) -> int:
        """
        CPUの実行を逆方向（過去）へ連続的に戻し、戻った命令数を返します。
        """
        self._running = True
        steps = 0

        while self._running and self._history:
            snapshot = self.step_back()
            steps += 1

            if snapshot is None:
                self._running = False
                logger.info("Reached start of history.")
                break

            if self._pc_breakpoint_hit(snapshot.state.pc) or self._check_other_breakpoints(snapshot):
                self._running = False
                logger.info("Reverse breakpoint hit at PC: %#06x", snapshot.state.pc)

        return steps

    def stop(self) -> None:
        self._running = False
