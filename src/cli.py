"""Interactive loop for the task tree.

The board is redrawn from the display list after every command and the
document is saved whenever a command changed it.
"""
import re
import shutil
from typing import List, Optional

from board import Board
from models import AFTER, BEFORE, CHILD, PARENT, SIBLING, SORT_ALPHABETICAL, SORT_CUSTOM
from storage import Storage
from theme import color, ACCENT, DIM, DONE_COLOR, ID_COLOR, OPEN_COLOR, SELECTED

INDENT = '  '
# screen lines used by the header, undo line and prompt
CHROME_LINES = 4
DOCUMENT_NAME_RE = re.compile(r"[\w.-]+")

POSITION_ALIASES = {
    'b': BEFORE,
    'before': BEFORE,
    'a': AFTER,
    'after': AFTER,
    'c': CHILD,
    'child': CHILD,
}

SORT_ALIASES = {
    'custom': SORT_CUSTOM,
    'c': SORT_CUSTOM,
    'alpha': SORT_ALPHABETICAL,
    'alphabetical': SORT_ALPHABETICAL,
    'a': SORT_ALPHABETICAL,
}


def _clear_screen() -> None:
    print("\033[3J\033[H\033[2J\033[H", end="", flush=True)


def _enter_alt_screen() -> None:
    print("\033[?1049h", end="", flush=True)


def _leave_alt_screen() -> None:
    print("\033[?1049l", end="", flush=True)


def _parse_id(raw: str) -> Optional[int]:
    raw = raw.rstrip('.')
    return int(raw) if raw.isdigit() else None


def render_lines(board: Board) -> List[str]:
    """One line per display row: indentation, fold marker, checkbox, id, text.

    Wrapped text continues on extra lines aligned under the first one.
    """
    rows = board.display_list()
    if not rows:
        return [color('(empty)', DIM, ACCENT)]
    lines: List[str] = []
    for row in rows:
        task = board.store.tasks[row.id]
        if not task.children:
            marker = ' '
        else:
            marker = '+' if task.collapsed else '-'
        box = '[x]' if task.done else '[ ]'
        style = DONE_COLOR if task.done else OPEN_COLOR
        label = str(task.id) + '.'
        first, *rest = board.projection.text_lines(task, row.depth)
        line = f"{INDENT * row.depth}{marker} {box} {color(label, ID_COLOR)} {color(first, style)}"
        if row.id == board.selected_id:
            line = color('>', SELECTED) + line
        else:
            line = ' ' + line
        lines.append(line)
        hang = ' ' * (1 + len(INDENT) * row.depth + len(marker) + len(box) + len(label) + 3)
        lines.extend(hang + color(part, style) for part in rest)
    return lines


class CLI:
    def __init__(self, board: Board, storage: Storage, alt_screen: bool = True):
        self.board: Board = board
        self.storage: Storage = storage
        self.alt_screen: bool = alt_screen

    def run(self) -> None:
        exit_message: Optional[str] = None
        if self.alt_screen:
            _enter_alt_screen()
        try:
            while True:
                _clear_screen()
                self.display()
                line = input("\n: ").strip()
                if not line:
                    continue
                lower = line.lower()
                if lower == 'help':
                    _clear_screen()
                    self._help()
                    input("\nPress Enter to return to the tree...")
                    continue
                if lower == 'exit':
                    self.save()
                    exit_message = "Goodbye."
                    break
                message = self.handle_command(line)
                self.save()
                if message:
                    print(message)
                    input("Press Enter to continue...")
        except (KeyboardInterrupt, EOFError):
            self.save()
            exit_message = "Interrupted. Goodbye."
        finally:
            if self.alt_screen:
                _leave_alt_screen()
            if exit_message:
                print(exit_message)

    def display(self) -> None:
        print("Task Tree:")
        for line in render_lines(self.board):
            print(line)
        label = self.board.history.peek_label()
        print(color(f"\nUndo: {label}" if label else "\nNothing to undo", DIM))

    def save(self) -> None:
        if not self.board.needs_save:
            return
        self.storage.save_tasks(self.board.store)
        self.storage.save_settings(self.board.settings)
        self.board.needs_save = False

    # -------------------- command dispatch --------------------
    def handle_command(self, line: str) -> Optional[str]:
        """Apply one command; returns a message for the user or None."""
        tokens = line.split()
        if not tokens:
            return None
        cmd, args = tokens[0].lower(), tokens[1:]
        rest = line.split(None, 1)[1] if args else ''
        if cmd in ('add', 'sub', 'out'):
            placement = {'add': SIBLING, 'sub': CHILD, 'out': PARENT}[cmd]
            if self.board.add(rest, placement) is None:
                return "Text required."
            return None
        if cmd == 'sel':
            return self._cmd_sel(args)
        if cmd in ('rm', 'done', 'fold'):
            return self._cmd_single(cmd, args)
        if cmd == 'mv':
            return self._cmd_mv(args)
        if cmd == 'drop':
            return self._cmd_drop(args)
        if cmd == 'undo':
            action = self.board.undo()
            return f"Undid: {action}" if action else "Nothing to undo."
        if cmd == 'filter':
            self.board.set_show_completed(not self.board.settings.show_completed)
            return None
        if cmd == 'sort':
            mode = SORT_ALIASES.get(args[0].lower()) if len(args) == 1 else None
            if mode is None:
                return "Usage: sort custom|alpha"
            self.board.set_sort_mode(mode)
            return None
        if cmd == 'wrap':
            self.board.set_wrap_task_text(not self.board.settings.wrap_task_text)
            return None
        if cmd == 'at':
            return self._cmd_at(args)
        if cmd == 'open':
            return self._cmd_open(args)
        return "Unknown command. Type 'help' for instructions."

    # ---- individual command helpers ----
    def _cmd_sel(self, args: List[str]) -> Optional[str]:
        if not args:
            self.board.select(None)
            return None
        tid = _parse_id(args[0])
        if tid is None:
            return "Invalid id."
        self.board.select(tid)
        return None if self.board.selected_id == tid else f"Task {tid} not visible."

    def _cmd_single(self, cmd: str, args: List[str]) -> Optional[str]:
        if len(args) != 1 or _parse_id(args[0]) is None:
            return f"Usage: {cmd} <id>"
        tid = _parse_id(args[0])
        action = {'rm': self.board.delete, 'done': self.board.toggle_done,
                  'fold': self.board.toggle_collapsed}[cmd]
        if not action(tid):
            return f"Nothing to do for task {tid}."
        return None

    def _cmd_mv(self, args: List[str]) -> Optional[str]:
        if len(args) != 3:
            return "Usage: mv <id> <before|after|child> <target id>"
        tid, target = _parse_id(args[0]), _parse_id(args[2])
        position = POSITION_ALIASES.get(args[1].lower())
        if tid is None or target is None or position is None:
            return "Usage: mv <id> <before|after|child> <target id>"
        if not self.board.move(tid, target, position):
            return "Move refused."
        return None

    def _cmd_drop(self, args: List[str]) -> Optional[str]:
        if len(args) not in (2, 3):
            return "Usage: drop <id> <y> [scroll]"
        try:
            tid = int(args[0])
            pointer_y = float(args[1])
            scroll = float(args[2]) if len(args) == 3 else 0.0
        except ValueError:
            return "Usage: drop <id> <y> [scroll]"
        if not self.board.drop(tid, pointer_y, scroll, self.viewport_height()):
            return "Nothing to drop on."
        return None

    def _cmd_at(self, args: List[str]) -> Optional[str]:
        if len(args) not in (1, 2):
            return "Usage: at <y> [scroll]"
        try:
            pointer_y = float(args[0])
            scroll = float(args[1]) if len(args) == 2 else 0.0
        except ValueError:
            return "Usage: at <y> [scroll]"
        scroll = self.board.projection.clamp_scroll(scroll, self.viewport_height())
        if self.board.select_at(pointer_y, scroll) is None:
            return "No task at that position."
        return None

    def _cmd_open(self, args: List[str]) -> Optional[str]:
        if len(args) != 1 or not DOCUMENT_NAME_RE.fullmatch(args[0]):
            return "Usage: open <name>"
        self.save()
        self.storage = Storage(self.storage.data_dir, args[0])
        self.board.load_document(self.storage.load_tasks(), self.storage.load_settings())
        return f"Opened {self.storage.tasks_file}."

    def viewport_height(self) -> int:
        """Height of the visible list in row units, from the terminal size."""
        lines = shutil.get_terminal_size((120, 30)).lines - CHROME_LINES
        return max(1, lines) * self.board.projection.row_height

    # -------------------- help --------------------
    def _help(self) -> None:
        print("Commands:")
        print("  add <text>                 Add after the selected task (selects it)")
        print("  sub <text>                 Add as last child of the selected task")
        print("  out <text>                 Add after the selected task's parent")
        print("  sel [<id>]                 Select a task (no id clears)")
        print("  at <y> [scroll]            Select the task under a pointer y offset")
        print("  done <id>                  Toggle completion")
        print("  fold <id>                  Collapse/expand children")
        print("  rm <id>                    Delete a task and its subtasks")
        print("  mv <id> <b|a|c> <target>   Move before/after/as child of target")
        print("  drop <id> <y> [scroll]     Drop at a pointer y offset (row height %d)"
              % self.board.projection.row_height)
        print("  undo                       Undo the last change")
        print("  filter                     Show/hide completed tasks")
        print("  sort custom|alpha          Sibling ordering")
        print("  wrap                       Wrap long task text on/off")
        print("  open <name>                Save, then switch to another task file")
        print("  help                       Show this help (press Enter to return)")
        print("  exit                       Save and exit")
