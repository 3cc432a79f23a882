"""Settings record: one ``key:value`` pair per line.

Only the projection flags are interpreted here; every other key (fonts,
colors, frame pacing written by other front-ends) is kept verbatim so a save
does not lose it.
"""
from __future__ import annotations
import re
from dataclasses import dataclass, field
from typing import Dict

from models import SORT_CUSTOM, SORT_MODES

SETTING_RE = re.compile(r"^([^:]+):(.+)")


@dataclass
class Settings:
    show_completed: bool = True
    sort_mode: str = SORT_CUSTOM
    wrap_task_text: bool = False
    extra: Dict[str, str] = field(default_factory=dict)


def parse_settings(content: str) -> Settings:
    settings = Settings()
    for line in content.splitlines():
        m = SETTING_RE.match(line)
        if not m:
            continue
        key, value = m.group(1), m.group(2)
        if key == 'show_completed':
            settings.show_completed = value == 'true'
        elif key == 'sort_mode':
            settings.sort_mode = value if value in SORT_MODES else SORT_CUSTOM
        elif key == 'wrap_task_text':
            settings.wrap_task_text = value == 'true'
        else:
            settings.extra[key] = value
    return settings


def dump_settings(settings: Settings) -> str:
    lines = [
        f"show_completed:{str(settings.show_completed).lower()}",
        f"sort_mode:{settings.sort_mode}",
        f"wrap_task_text:{str(settings.wrap_task_text).lower()}",
    ]
    lines.extend(f"{k}:{v}" for k, v in settings.extra.items())
    return '\n'.join(lines) + '\n'
