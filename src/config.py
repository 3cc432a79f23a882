"""Configuration loading for the tasktree front-end.

Priority: real environment variable > ``.env`` in the working directory >
default. Nothing here mutates the environment.
"""
from __future__ import annotations
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

from dropzone import DROP_ZONE_THRESHOLD
from history import MAX_UNDO_LEVELS
from projection import ROW_HEIGHT

DEFAULT_DATA_DIR = Path.home() / '.tasktree'
DEFAULT_BASENAME = 'tasktree'
MIN_WRAP_WIDTH = 10

DOTENV_LINE_RE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_]*)\s*=\s*(.*)$")


class ConfigError(RuntimeError):
    """Raised when a configuration value is present but invalid."""


@dataclass(frozen=True)
class AppConfig:
    data_dir: Path
    basename: str = DEFAULT_BASENAME
    max_undo: int = MAX_UNDO_LEVELS
    row_height: int = ROW_HEIGHT
    drop_zone_threshold: float = DROP_ZONE_THRESHOLD
    alt_screen: bool = True
    # text columns for wrapped rows; None follows the terminal width
    wrap_width: Optional[int] = None


def read_dotenv(dotenv_path: Path) -> Dict[str, str]:
    """KEY=value pairs of a .env file; the first assignment of a key wins.

    Comments, blank values and lines that are not assignments are ignored.
    A missing or unreadable file reads as empty.
    """
    try:
        content = dotenv_path.read_text(encoding='utf-8')
    except OSError:
        return {}
    values: Dict[str, str] = {}
    for line in content.splitlines():
        m = DOTENV_LINE_RE.match(line.strip())
        if not m:
            continue
        key, value = m.group(1), m.group(2).strip()
        if value[:1] in ('"', "'") and value.endswith(value[0]) and len(value) > 1:
            value = value[1:-1]
        if value:
            values.setdefault(key, value)
    return values


def _lookup(key: str, dotenv: Dict[str, str]) -> Optional[str]:
    raw = os.environ.get(key)
    if raw is None:
        raw = dotenv.get(key)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _read_bool(raw: Optional[str], *, default: bool, key: str) -> bool:
    if raw is None:
        return default
    normalized = raw.lower()
    if normalized in {'1', 'true', 'yes', 'on'}:
        return True
    if normalized in {'0', 'false', 'no', 'off'}:
        return False
    raise ConfigError(f"{key} must be a boolean value.")


def _read_int(raw: Optional[str], *, default: int, key: str, minimum: int = 1) -> int:
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{key} must be an integer.") from None
    if value < minimum:
        raise ConfigError(f"{key} must be at least {minimum}.")
    return value


def _read_fraction(raw: Optional[str], *, default: float, key: str) -> float:
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ConfigError(f"{key} must be a number.") from None
    if not 0 < value < 0.5:
        raise ConfigError(f"{key} must be between 0 and 0.5.")
    return value


def load_config() -> AppConfig:
    dotenv = read_dotenv(Path.cwd() / '.env')

    def value(key: str) -> Optional[str]:
        return _lookup(key, dotenv)

    raw_dir = value('TASKTREE_HOME')
    raw_wrap = value('TASKTREE_WRAP_WIDTH')

    return AppConfig(
        data_dir=Path(raw_dir).expanduser() if raw_dir else DEFAULT_DATA_DIR,
        basename=value('TASKTREE_BASENAME') or DEFAULT_BASENAME,
        max_undo=_read_int(value('TASKTREE_MAX_UNDO'),
                           default=MAX_UNDO_LEVELS, key='TASKTREE_MAX_UNDO'),
        row_height=_read_int(value('TASKTREE_ROW_HEIGHT'),
                             default=ROW_HEIGHT, key='TASKTREE_ROW_HEIGHT'),
        drop_zone_threshold=_read_fraction(value('TASKTREE_DROP_ZONE'),
                                           default=DROP_ZONE_THRESHOLD, key='TASKTREE_DROP_ZONE'),
        alt_screen=_read_bool(value('TASKTREE_ALT_SCREEN'),
                              default=True, key='TASKTREE_ALT_SCREEN'),
        wrap_width=_read_int(raw_wrap, default=0, key='TASKTREE_WRAP_WIDTH',
                             minimum=MIN_WRAP_WIDTH) if raw_wrap else None,
    )
