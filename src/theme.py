"""Color & style helpers for the terminal front-end.

- Truecolor when COLORTERM says so, otherwise the xterm 256-color cube.
- Disabled when stdout is not a TTY unless FORCE_COLOR=1; NO_COLOR disables.
- Palette overrides via TASKTREE_OPEN / TASKTREE_DONE / TASKTREE_ACCENT
  (environment first, then the project .env file).
"""
from __future__ import annotations
import os, sys
from pathlib import Path

from config import read_dotenv

_FORCE = os.environ.get("FORCE_COLOR", "").lower() in {"1", "true", "yes", "on"}
_NO_COLOR = os.environ.get("NO_COLOR") is not None
_ENABLE = (_FORCE or sys.stdout.isatty()) and not _NO_COLOR
_COLORTERM = os.environ.get("COLORTERM", "").lower()
_USE_TRUECOLOR = _ENABLE and any(tok in _COLORTERM for tok in ("truecolor", "24bit"))
_DOTENV = read_dotenv(Path.cwd() / '.env')


def _code(part: str) -> str:
    return f"\033[{part}m" if _ENABLE else ''


def _hex_to_rgb(hex_code: str) -> tuple[int, int, int]:
    h = hex_code.lstrip('#')
    if len(h) == 3:
        h = ''.join(c * 2 for c in h)
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def _fg_256(r: int, g: int, b: int) -> str:
    """Approximate RGB to xterm 256-color cube."""
    def to_6(x: int) -> int:
        return int(round(x / 255 * 5))
    return f"\033[38;5;{16 + 36 * to_6(r) + 6 * to_6(g) + to_6(b)}m"


def _from_hex(hex_code: str) -> str:
    if not _ENABLE:
        return ''
    r, g, b = _hex_to_rgb(hex_code)
    if _USE_TRUECOLOR:
        return f"\033[38;2;{r};{g};{b}m"
    return _fg_256(r, g, b)


def _is_hex(value: str) -> bool:
    h = value.lstrip('#')
    return len(h) in (3, 6) and all(c in '0123456789abcdefABCDEF' for c in h)


def _palette(key: str, default: str) -> str:
    value = os.environ.get(key) or _DOTENV.get(key)
    return '#' + value.lstrip('#') if value and _is_hex(value) else default


RESET = _code('0')
BOLD = _code('1')
DIM = _code('2')
REVERSE = _code('7')

HEX_OPEN = _palette('TASKTREE_OPEN', '#48B3AF')
HEX_DONE = _palette('TASKTREE_DONE', '#A7E399')
HEX_ACCENT = _palette('TASKTREE_ACCENT', '#476EAE')

OPEN_COLOR = _from_hex(HEX_OPEN)
DONE_COLOR = _from_hex(HEX_DONE) + DIM
ACCENT = _from_hex(HEX_ACCENT)
ID_COLOR = ACCENT + BOLD
SELECTED = REVERSE


def color(text: str, *styles: str) -> str:
    if not _ENABLE:
        return text
    return ''.join(styles) + text + RESET
