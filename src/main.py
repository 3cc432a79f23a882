"""Main entry point for tasktree.

Without a subcommand the interactive shell starts; the other commands apply
one change to the saved tree and print the result.
"""
import logging
import os
import shutil
from dataclasses import replace
from pathlib import Path
from typing import Optional, Tuple

import click

from board import Board
from cli import CLI, POSITION_ALIASES, SORT_ALIASES, render_lines
from config import MIN_WRAP_WIDTH, AppConfig, ConfigError, load_config
from models import CHILD, PARENT, SIBLING
from storage import Storage


# columns taken by the selection mark, fold marker, checkbox and id of a root row
TEXT_MARGIN = 12


def terminal_wrap_width() -> int:
    columns = shutil.get_terminal_size((120, 30)).columns
    return max(MIN_WRAP_WIDTH, columns - TEXT_MARGIN)


def open_board(config: AppConfig) -> Tuple[Board, Storage]:
    storage = Storage(config.data_dir, config.basename)
    board = Board(
        storage.load_tasks(),
        storage.load_settings(),
        max_undo=config.max_undo,
        drop_zone_threshold=config.drop_zone_threshold,
        row_height=config.row_height,
        wrap_width=config.wrap_width or terminal_wrap_width(),
    )
    return board, storage


def _setup_logging(verbose: bool) -> None:
    level_name = 'DEBUG' if verbose else os.environ.get('TASKTREE_LOG_LEVEL', 'WARNING').upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.WARNING),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


class _Session:
    def __init__(self, board: Board, storage: Storage, alt_screen: bool):
        self.board = board
        self.storage = storage
        self.alt_screen = alt_screen

    def finish(self, message: Optional[str] = None) -> None:
        if self.board.needs_save:
            self.storage.save_tasks(self.board.store)
            self.storage.save_settings(self.board.settings)
            self.board.needs_save = False
        if message:
            click.echo(message, err=True)
        for line in render_lines(self.board):
            click.echo(line)


pass_session = click.make_pass_decorator(_Session)


@click.group(invoke_without_command=True)
@click.option('--home', type=click.Path(file_okay=False, path_type=Path), help='Directory holding the task and settings files.')
@click.option('-v', '--verbose', is_flag=True, help='Debug logging.')
@click.pass_context
def main(ctx: click.Context, home: Optional[Path], verbose: bool) -> None:
    """Hierarchical task list with undo."""
    _setup_logging(verbose)
    try:
        config = load_config()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    if home:
        config = replace(config, data_dir=home)
    board, storage = open_board(config)
    ctx.obj = _Session(board, storage, config.alt_screen)
    if ctx.invoked_subcommand is None:
        ctx.invoke(shell)


@main.command()
@click.option('--no-alt-screen', is_flag=True, help='Draw in the normal screen buffer.')
@pass_session
def shell(session: _Session, no_alt_screen: bool = False) -> None:
    """Interactive editing loop (default)."""
    CLI(session.board, session.storage, session.alt_screen and not no_alt_screen).run()


@main.command()
@pass_session
def show(session: _Session) -> None:
    """Print the visible tree."""
    session.finish()


@main.command()
@click.argument('text', nargs=-1, required=True)
@click.option('--after', 'anchor', type=int, help='Task the new one is placed relative to.')
@click.option('--child', is_flag=True, help='Add as last child of the anchor.')
@click.option('--outdent', is_flag=True, help="Add after the anchor's parent.")
@pass_session
def add(session: _Session, text: tuple, anchor: Optional[int], child: bool, outdent: bool) -> None:
    """Add a task."""
    if child and outdent:
        raise click.UsageError('--child and --outdent are exclusive.')
    if anchor is not None:
        session.board.select(anchor)
    placement = CHILD if child else PARENT if outdent else SIBLING
    new_id = session.board.add(' '.join(text), placement)
    session.finish(None if new_id is not None else 'Text required.')


@main.command()
@click.argument('task_id', type=int)
@pass_session
def rm(session: _Session, task_id: int) -> None:
    """Delete a task and its subtasks."""
    session.finish(None if session.board.delete(task_id) else f'Task {task_id} not found.')


@main.command()
@click.argument('task_id', type=int)
@pass_session
def done(session: _Session, task_id: int) -> None:
    """Toggle completion."""
    session.finish(None if session.board.toggle_done(task_id) else f'Task {task_id} not found.')


@main.command()
@click.argument('task_id', type=int)
@pass_session
def fold(session: _Session, task_id: int) -> None:
    """Collapse or expand a task's children."""
    ok = session.board.toggle_collapsed(task_id)
    session.finish(None if ok else f'Task {task_id} not found or has no children.')


@main.command()
@click.argument('task_id', type=int)
@click.argument('position', type=click.Choice(sorted(POSITION_ALIASES), case_sensitive=False))
@click.argument('target_id', type=int)
@pass_session
def mv(session: _Session, task_id: int, position: str, target_id: int) -> None:
    """Move TASK_ID before/after/as child of TARGET_ID."""
    ok = session.board.move(task_id, target_id, POSITION_ALIASES[position.lower()])
    session.finish(None if ok else 'Move refused.')


@main.command(name='filter')
@click.argument('state', type=click.Choice(['show', 'hide']))
@pass_session
def filter_completed(session: _Session, state: str) -> None:
    """Show or hide completed tasks."""
    session.board.set_show_completed(state == 'show')
    session.finish()


@main.command()
@click.argument('mode', type=click.Choice(sorted(SORT_ALIASES), case_sensitive=False))
@pass_session
def sort(session: _Session, mode: str) -> None:
    """Custom or alphabetical sibling ordering."""
    session.board.set_sort_mode(SORT_ALIASES[mode.lower()])
    session.finish()


@main.command()
@click.argument('state', type=click.Choice(['on', 'off']))
@pass_session
def wrap(session: _Session, state: str) -> None:
    """Wrap long task text onto several lines."""
    session.board.set_wrap_task_text(state == 'on')
    session.finish()


if __name__ == "__main__":
    main()
