# src/chip8_tracer/ui/app.py
"""
アプリケーションのエントリポイント。
コマンドライン引数からマシン構成を組み立て、メインウィンドウを起動します。
"""
import argparse
import logging
import sys
from typing import List, Optional

from chip8_tracer.core.diagnostics import UnknownOpcodePolicy
from chip8_tracer.core.errors import TracerError
from chip8_tracer.config.loader import ConfigLoader
from chip8_tracer.config.models import MachineConfig
from chip8_tracer.arch.chip8.state import MachineVersion

logger = logging.getLogger(__name__)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="chip8-tracer", description="CHIP-8 virtual machine and tracer")
    parser.add_argument("rom", nargs="?", help="ROM image to load")
    parser.add_argument("--config", help="YAML machine configuration")
    parser.add_argument("--machine", choices=[v.name for v in MachineVersion],
                        help="machine version (overrides the config file)")
    parser.add_argument("--halt-on-unknown", action="store_true",
                        help="halt instead of skipping unknown opcodes")
    parser.add_argument("--debug", action="store_true", help="log every executed instruction")
    return parser

# @intent:responsibility 構成ファイルとコマンドライン引数を合成して最終的なマシン構成を返します。
def build_config(args: argparse.Namespace) -> MachineConfig:
    config = ConfigLoader().load_from_file(args.config) if args.config else MachineConfig()
    if args.machine:
        config.version = MachineVersion[args.machine]
    if args.halt_on_unknown:
        config.unknown_opcode_policy = UnknownOpcodePolicy.HALT
    if args.rom:
        config.rom = args.rom
    return config

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.debug else logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        config = build_config(args)
    except (OSError, TracerError) as e:
        logger.error("%s", e)
        return 2

    from PySide6.QtWidgets import QApplication
    from .main_window import MainWindow

    app = QApplication(sys.argv[:1])
    try:
        main_win = MainWindow(config)
    except (OSError, TracerError) as e:
        logger.error("%s", e)
        return 2
    main_win.show()
    return app.exec()

if __name__ == '__main__':
    sys.exit(main())
