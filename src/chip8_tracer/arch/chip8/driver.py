# src/chip8_tracer/arch/chip8/driver.py
"""
フレーム駆動ループ。

1フレームごとに一定数の命令を実行し、その後タイマーを1回だけ減算します。
タイマーの減算は命令実行とは独立しており、フレーム周期（通常60Hz）でのみ行われます。
"""
import logging
from typing import List, Optional

from chip8_tracer.core.diagnostics import Diagnostic, DiagnosticKind
from chip8_tracer.core.errors import AddressOutOfRangeError
from chip8_tracer.core.snapshot import Snapshot
from chip8_tracer.arch.chip8.cpu import Chip8Cpu
from chip8_tracer.arch.chip8.state import RunState

logger = logging.getLogger(__name__)

DEFAULT_INSTRUCTIONS_PER_SECOND = 500
DEFAULT_FRAME_RATE = 60

# @intent:responsibility 埋め込み側のタイミングループ（命令実行数とタイマー周期）を管理します。
class FrameDriver:
    def __init__(self, cpu: Chip8Cpu,
                 instructions_per_second: int = DEFAULT_INSTRUCTIONS_PER_SECOND,
                 frame_rate: int = DEFAULT_FRAME_RATE):
        if instructions_per_second <= 0 or frame_rate <= 0:
            raise ValueError("instructions_per_second and frame_rate must be positive.")
        self._cpu = cpu
        self.instructions_per_second = instructions_per_second
        self.frame_rate = frame_rate
        self._frame_count = 0
        self._last_error: Optional[AddressOutOfRangeError] = None

    @property
    def instructions_per_frame(self) -> int:
        return max(1, self.instructions_per_second // self.frame_rate)

    @property
    def frame_interval_ms(self) -> int:
        return max(1, round(1000 / self.frame_rate))

    def get_frame_count(self) -> int:
        return self._frame_count

    def get_last_error(self) -> Optional[AddressOutOfRangeError]:
        return self._last_error

    def toggle_pause(self) -> None:
        self._cpu.toggle_pause()

    # @intent:responsibility 1フレーム分の命令を実行し、タイマーを1回減算します。
    # @intent:rationale PAUSED/HALTEDでは何もしません。範囲外アクセスは診断として報告し、マシンを停止します。
    def run_frame(self) -> List[Snapshot]:
        snapshots: List[Snapshot] = []
        if self._cpu.get_run_state() is not RunState.RUNNING:
            return snapshots

        for _ in range(self.instructions_per_frame):
            try:
                snapshots.append(self._cpu.step())
            except AddressOutOfRangeError as e:
                self._last_error = e
                pc = self._cpu.get_state().pc
                self._cpu.report_diagnostic(Diagnostic(
                    kind=DiagnosticKind.ADDRESS_OUT_OF_RANGE,
                    address=pc,
                    opcode=self._peek_opcode(pc),
                    message=str(e),
                ))
                self._cpu.pause()
                break
            if self._cpu.is_halted:
                break

        self._cpu.tick_timers()
        self._frame_count += 1
        return snapshots

    def _peek_opcode(self, pc: int) -> int:
        bus = self._cpu.get_bus()
        try:
            return (bus.peek(pc) << 8) | bus.peek(pc + 1)
        except AddressOutOfRangeError:
            return 0x0000
