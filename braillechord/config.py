"""
Configuration loading and management.
"""

import logging
import os
import yaml
from pathlib import Path
from dataclasses import dataclass, field
from typing import Dict, Optional

from .keyboard import CONTROLS
from .zones import ZoneLayout

log = logging.getLogger(__name__)


@dataclass
class LayoutConfig:
    """Screen geometry of the zone grid."""
    origin_x: float = 40
    origin_y: float = 40
    dot_size: float = 45
    dot_spacing: float = 15

    def to_layout(self) -> ZoneLayout:
        return ZoneLayout(
            dot_size=self.dot_size,
            dot_spacing=self.dot_spacing,
            origin_x=self.origin_x,
            origin_y=self.origin_y
        )


@dataclass
class RepeatConfig:
    """Delete auto-repeat timing."""
    initial_delay_ms: int = 500
    interval_ms: int = 100


def default_controls() -> Dict[str, str]:
    return {
        'delete': 'f9',
        'newline': 'f10',
        'space': 'f11',
        'blank_cell': 'f12',
    }


@dataclass
class Config:
    """Main application configuration."""
    mapping_file: Optional[str] = None  # None -> bundled table
    layout: LayoutConfig = field(default_factory=LayoutConfig)
    delete_repeat: RepeatConfig = field(default_factory=RepeatConfig)
    controls: Dict[str, str] = field(default_factory=default_controls)  # control -> key name
    log_level: str = 'INFO'


def get_config_path() -> Path:
    """Get the configuration file path."""
    if os.name == 'nt':  # Windows
        base = Path(os.environ.get('APPDATA', '~'))
    elif os.name == 'posix':
        if 'darwin' in os.uname().sysname.lower():  # macOS
            base = Path.home() / 'Library' / 'Application Support'
        else:  # Linux
            base = Path(os.environ.get('XDG_CONFIG_HOME', Path.home() / '.config'))
    else:
        base = Path.home()

    return base / 'braillechord' / 'config.yaml'


def _number(section: dict, key: str, default, cast=float, minimum=None):
    """Read a numeric setting, falling back to the default when invalid."""
    value = section.get(key, default)
    try:
        value = cast(value)
    except (TypeError, ValueError):
        log.warning(f"Invalid {key}: {value!r}, using {default}")
        return default
    if minimum is not None and value < minimum:
        log.warning(f"{key} must be at least {minimum}, using {default}")
        return default
    return value


def _section(data: dict, key: str) -> dict:
    section = data.get(key) or {}
    if not isinstance(section, dict):
        log.warning(f"Ignoring malformed '{key}' section")
        return {}
    return section


def load_config(path: Optional[Path] = None) -> Config:
    """Load configuration from YAML file."""
    if path is None:
        path = get_config_path()

    if not path.exists():
        return create_default_config(path)

    with open(path, 'r', encoding='utf-8') as f:
        data = yaml.safe_load(f) or {}

    config = Config()

    mapping_file = data.get('mapping_file')
    config.mapping_file = str(mapping_file) if mapping_file else None

    # Parse layout
    layout = _section(data, 'layout')
    defaults = LayoutConfig()
    config.layout = LayoutConfig(
        origin_x=_number(layout, 'origin_x', defaults.origin_x),
        origin_y=_number(layout, 'origin_y', defaults.origin_y),
        dot_size=_number(layout, 'dot_size', defaults.dot_size, minimum=1),
        dot_spacing=_number(layout, 'dot_spacing', defaults.dot_spacing, minimum=0)
    )

    # Parse delete repeat
    repeat = _section(data, 'delete_repeat')
    config.delete_repeat = RepeatConfig(
        initial_delay_ms=_number(repeat, 'initial_delay_ms', 500, cast=int, minimum=1),
        interval_ms=_number(repeat, 'interval_ms', 100, cast=int, minimum=1)
    )

    # Parse controls (control name -> key name)
    controls = _section(data, 'controls')
    if controls:
        config.controls = {}
        for name, key_name in controls.items():
            if name not in CONTROLS:
                log.warning(f"Ignoring unknown control '{name}'")
                continue
            if key_name:
                config.controls[name] = str(key_name).lower()

    config.log_level = str(data.get('log_level', 'INFO')).upper()

    return config


def create_default_config(path: Path) -> Config:
    """Create and save a default configuration."""
    default_yaml = """# braillechord Configuration

# CSV table of character,pattern rows (null uses the bundled Unicode Braille table)
mapping_file: null

# Screen position and size of the 2x4 zone grid, in pixels
layout:
  origin_x: 40
  origin_y: 40
  dot_size: 45
  dot_spacing: 15

# Holding delete: one delete, then repeat after the initial delay
delete_repeat:
  initial_delay_ms: 500
  interval_ms: 100

# Keys for the dedicated controls
controls:
  delete: f9
  newline: f10
  space: f11
  blank_cell: f12

log_level: INFO
"""

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        f.write(default_yaml)

    return load_config(path)


def save_config(config: Config, path: Optional[Path] = None):
    """Save configuration to YAML file."""
    if path is None:
        path = get_config_path()

    data = {
        'mapping_file': config.mapping_file,
        'layout': {
            'origin_x': config.layout.origin_x,
            'origin_y': config.layout.origin_y,
            'dot_size': config.layout.dot_size,
            'dot_spacing': config.layout.dot_spacing
        },
        'delete_repeat': {
            'initial_delay_ms': config.delete_repeat.initial_delay_ms,
            'interval_ms': config.delete_repeat.interval_ms
        },
        'controls': dict(config.controls),
        'log_level': config.log_level
    }

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, 'w', encoding='utf-8') as f:
        yaml.dump(data, f, default_flow_style=False)
