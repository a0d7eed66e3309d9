import logging
import re
from typing import Any, Dict, Optional

import yaml

from chip8_tracer.core.diagnostics import UnknownOpcodePolicy
from chip8_tracer.core.errors import ConfigError
from chip8_tracer.arch.chip8.state import MachineVersion
from .models import MachineConfig, TimingConfig, DisplayConfig, DEFAULT_KEYMAP

logger = logging.getLogger(__name__)

_COLOR_PATTERN = re.compile(r"^#[0-9A-Fa-f]{6}$")

class ConfigLoader:
    def load_from_file(self, path: str) -> MachineConfig:
        with open(path, 'r') as f:
            data = yaml.safe_load(f)
        config = self.parse(data or {})
        logger.info("Loaded machine config from %s", path)
        return config

    def load_from_string(self, text: str) -> MachineConfig:
        return self.parse(yaml.safe_load(text) or {})

    def parse(self, data: Dict[str, Any]) -> MachineConfig:
        if not isinstance(data, dict):
            raise ConfigError("Machine config must be a mapping.")

        version = self._parse_enum(MachineVersion, data.get("version", "CHIP_8"), "version")
        policy = self._parse_enum(UnknownOpcodePolicy, data.get("unknown_opcode_policy", "skip"),
                                  "unknown_opcode_policy")

        timing_data = data.get("timing") or {}
        timing = TimingConfig(
            instructions_per_second=self._parse_positive(timing_data.get("instructions_per_second", 500),
                                                         "timing.instructions_per_second"),
            frame_rate=self._parse_positive(timing_data.get("frame_rate", 60), "timing.frame_rate"),
        )

        display_data = data.get("display") or {}
        defaults = DisplayConfig()
        display = DisplayConfig(
            scale=self._parse_positive(display_data.get("scale", defaults.scale), "display.scale"),
            foreground=self._parse_color(display_data.get("foreground", defaults.foreground), "display.foreground"),
            outline=self._parse_color(display_data.get("outline", defaults.outline), "display.outline"),
            background=self._parse_color(display_data.get("background", defaults.background), "display.background"),
        )

        keymap = self._parse_keymap(data.get("keymap"))
        rom = data.get("rom")

        return MachineConfig(
            version=version,
            unknown_opcode_policy=policy,
            timing=timing,
            display=display,
            keymap=keymap,
            rom=str(rom) if rom is not None else None,
        )

    def _parse_int(self, value: Any) -> int:
        if isinstance(value, bool):
            raise ConfigError(f"Invalid integer format: {value}")
        if isinstance(value, int):
            return value
        if isinstance(value, str):
            try:
                if value.lower().startswith("0x"):
                    return int(value, 16)
                return int(value)
            except ValueError:
                pass
        raise ConfigError(f"Invalid integer format: {value}")

    def _parse_positive(self, value: Any, name: str) -> int:
        number = self._parse_int(value)
        if number <= 0:
            raise ConfigError(f"{name} must be positive, got {number}")
        return number

    def _parse_enum(self, enum_type, value: Any, name: str):
        text = str(value)
        for member in enum_type:
            if text.upper() == member.name or text.lower() == str(member.value).lower():
                return member
        choices = ", ".join(member.name for member in enum_type)
        raise ConfigError(f"Unknown {name} '{value}' (expected one of: {choices})")

    def _parse_color(self, value: Any, name: str) -> str:
        text = str(value)
        if not _COLOR_PATTERN.match(text):
            raise ConfigError(f"{name} must be a #RRGGBB colour, got '{value}'")
        return text.upper()

    def _parse_keymap(self, data: Optional[Dict[Any, Any]]) -> Dict[str, int]:
        if not data:
            return dict(DEFAULT_KEYMAP)
        if not isinstance(data, dict):
            raise ConfigError("keymap must be a mapping of host key to CHIP-8 key.")
        keymap = {}
        for host_key, target in data.items():
            key = self._parse_int(target)
            if not 0 <= key <= 0xF:
                raise ConfigError(f"keymap target for '{host_key}' must be within 0x0-0xF, got {key}")
            keymap[str(host_key).upper()] = key
        return keymap
