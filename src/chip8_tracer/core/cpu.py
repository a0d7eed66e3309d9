# chip8_tracer/core/cpu.py
"""
Core Layer (抽象CPU)

このモジュールは、CPUの基本的な状態管理と命令サイクルの駆動に関する抽象化を提供します。
具体的な命令の振る舞いはInstruction Layerに移譲されます。
"""
import logging
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Optional, Tuple

from chip8_tracer.transport.bus import Bus
from chip8_tracer.core.diagnostics import Diagnostic
from chip8_tracer.core.snapshot import Snapshot, Operation, Metadata, TraceRecord
from chip8_tracer.core.state import CpuState
from chip8_tracer.common.types import RegisterLayoutInfo

logger = logging.getLogger(__name__)

TraceListener = Callable[[TraceRecord], None]
DiagnosticListener = Callable[[Diagnostic], None]

# @intent:responsibility 抽象CPUの基本機能とインターフェースを定義します。
class AbstractCpu(ABC):
    """
    全てのCPUエミュレーションの基底となる抽象クラス。
    Busとのインターフェース、基本的な状態管理、命令サイクルの抽象化を提供します。
    """
    # @intent:responsibility CPUの状態とバスへの参照を初期化します。
    # @intent:pre-condition `bus`は有効なBusオブジェクトである必要があります。
    def __init__(self, bus: Bus):
        self._bus = bus
        self._state: CpuState = self._create_initial_state()
        self._instruction_count: int = 0
        self._trace_listeners: List[TraceListener] = []
        self._diagnostic_listeners: List[DiagnosticListener] = []
        self._pending_diagnostics: List[Diagnostic] = []
        # @intent:rationale Stateオブジェクトの直接操作を避けるため、protectedな命名規則を採用。
        #                  外部からのアクセスは`get_state()`メソッドを介して行う。

    @abstractmethod
    def _create_initial_state(self) -> CpuState:
        """
        CPUの初期状態を生成して返します。
        具体的なアーキテクチャはこのメソッドを実装し、固有のCpuStateのサブクラスを返します。
        """
        pass

    def reset(self) -> None:
        """
        CPUの状態を初期値にリセットします。
        """
        self._state = self._create_initial_state()
        self._instruction_count = 0

    def get_state(self) -> CpuState:
        """
        現在のCPUの状態（レジスタ値など）を返します。
        """
        return self._state

    # @intent:responsibility デバッガのステップバックなどで、CPU状態を過去の時点に戻します。
    def restore_state(self, state: CpuState) -> None:
        self._state = state.copy()

    def _copy_state(self) -> CpuState:
        return self._state.copy()

    def get_bus(self) -> Bus:
        return self._bus

    def get_instruction_count(self) -> int:
        return self._instruction_count

    # @intent:responsibility 命令単位のトレースレコードを受け取るリスナーを登録します。
    # @intent:rationale リスナーは観測専用であり、実行セマンティクスに影響を与えません。
    def add_trace_listener(self, listener: TraceListener) -> None:
        if listener not in self._trace_listeners:
            self._trace_listeners.append(listener)

    def remove_trace_listener(self, listener: TraceListener) -> None:
        if listener in self._trace_listeners:
            self._trace_listeners.remove(listener)

    # @intent:responsibility 診断イベントを受け取るリスナーを登録します。
    def add_diagnostic_listener(self, listener: DiagnosticListener) -> None:
        if listener not in self._diagnostic_listeners:
            self._diagnostic_listeners.append(listener)

    def remove_diagnostic_listener(self, listener: DiagnosticListener) -> None:
        if listener in self._diagnostic_listeners:
            self._diagnostic_listeners.remove(listener)

    # @intent:responsibility 診断イベントを記録し、ログとリスナーへ通知します。
    def report_diagnostic(self, diagnostic: Diagnostic) -> None:
        logger.warning("%s", diagnostic)
        self._pending_diagnostics.append(diagnostic)
        for listener in list(self._diagnostic_listeners):
            listener(diagnostic)

    @abstractmethod
    def _fetch(self) -> int:
        """
        現在のPCからメモリの次の命令（オペコード）をフェッチし、その値を返します。
        """
        pass

    @abstractmethod
    def _decode(self, opcode: int) -> Operation:
        """
        与えられたオペコードを解析し、Operationオブジェクトとして返します。
        """
        pass

    @abstractmethod
    def _execute(self, operation: Operation) -> None:
        """
        デコードされた命令を実行し、レジスタやメモリなどの状態を更新します。
        """
        pass

    # @intent:responsibility CPUを1命令サイクル進め、その結果のスナップショットを返します。
    # @intent:rationale Template Methodパターンを採用し、共通の実行フロー（ログクリア→フェッチ→デコード→PC更新→実行→Snapshot生成）を定義します。
    #                  アーキテクチャ固有の振る舞い（HALT処理など）はフックメソッドで対応します。
    def step(self) -> Snapshot:
        """
        CPUを1命令サイクル進め、その時点でのCPUとバスの状態を含むSnapshotオブジェクトを返します。
        命令が範囲外アクセスで拒否された場合、例外はそのまま送出され、状態は変更されません。
        """
        # 1. 前処理: 前サイクルまでの残存ログを破棄
        self._bus.get_and_clear_activity_log()
        self._pending_diagnostics = []
        initial_pc = self._state.pc

        # 2. HALT判定 (Hook)
        halt_snapshot = self._handle_halt(initial_pc)
        if halt_snapshot:
            return halt_snapshot

        # 3. フェッチ
        opcode = self._fetch()

        # 4. デコード
        operation = self._decode(opcode)

        # 5. PC更新 (Hook)
        self._update_pc(operation)

        # 6. 実行
        self._execute(operation)

        # 7. 後処理 & Snapshot生成
        return self._create_snapshot(initial_pc, operation)

    def _handle_halt(self, current_pc: int) -> Optional[Snapshot]:
        """
        HALT状態の場合の処理。デフォルトは何もしない（Noneを返す）。
        """
        return None

    def _update_pc(self, operation: Operation) -> None:
        """
        命令実行前のPC更新。デフォルトは命令長分進める。
        命令自身がPCを更新するアーキテクチャではオーバーライドして何もしないようにします。
        """
        self._state.pc = (self._state.pc + operation.length) & 0xFFFF

    # @intent:responsibility スナップショットとトレースレコードを生成します。
    def _create_snapshot(self, initial_pc: int, operation: Operation) -> Snapshot:
        bus_activity = self._bus.get_and_clear_activity_log()
        self._instruction_count += 1

        record = TraceRecord(
            address=initial_pc,
            opcode=operation.opcode,
            mnemonic=operation.mnemonic,
            operands=list(operation.operands),
        )
        logger.debug("%s", record)
        for listener in list(self._trace_listeners):
            listener(record)

        return Snapshot(
            state=self._copy_state(),
            operation=operation,
            metadata=Metadata(instruction_count=self._instruction_count, symbol_info=operation.text()),
            bus_activity=bus_activity,
            diagnostics=list(self._pending_diagnostics),
        )

    @abstractmethod
    def get_register_map(self) -> Dict[str, int]:
        """
        現在のレジスタ値を辞書形式で返す。
        UIがCPUの内部構造を知らなくても値を表示できるようにするために使用される。
        """
        pass

    @abstractmethod
    def get_register_layout(self) -> List[RegisterLayoutInfo]:
        """
        レジスタをUI上でどのように配置・グループ化すべきかの定義を返す。
        """
        pass

    @abstractmethod
    def disassemble(self, start_addr: int, length: int) -> List[Tuple[int, str, str]]:
        """
        指定されたメモリ範囲を逆アセンブルし、(address, hex_bytes, mnemonic) のタプルリストを返す。
        """
        pass
