"""Interactive console presenter: renders snapshots and diffs, asks the user."""

from __future__ import annotations

import sys
import time
from typing import Callable, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import track
from rich.table import Table

from .diff import DiffResult
from .formatting import field_label, format_changes, format_similarity, format_snapshot
from .schema import ADVANCED, UPTIME_MINUTES, FieldSet, ListField
from .system_state import Snapshot

MODE_CHOICES = {"1": "simple", "2": "advanced"}
DEFAULT_MODE = "advanced"


class ConsolePresenter:
    def __init__(self, console: Optional[Console] = None, ui: bool = False) -> None:
        self.console = console or Console()
        self.ui = ui

    def show_loading(self, steps: int = 20, delay: float = 0.1) -> None:
        self.console.print("Gathering system information...")
        for _ in track(range(steps), description="Fetching", console=self.console, transient=True):
            time.sleep(delay)
        self.console.print("Fetched info!")

    def choose_mode(self) -> str:
        """Ask for the run mode; anything but "1" or "2" falls back to advanced."""
        answer = self._read_line("Select mode (1 = Simple, 2 = Advanced): ")
        return MODE_CHOICES.get(answer.strip(), DEFAULT_MODE)

    def show_snapshot(self, snapshot: Snapshot, field_set: FieldSet = ADVANCED) -> None:
        if self.ui:
            self._render_rich_snapshot(snapshot, field_set)
            return
        self.console.print("\n--- Current System Information ---", markup=False, highlight=False)
        self.console.print(format_snapshot(snapshot, field_set), markup=False, highlight=False)

    def show_diff(self, result: DiffResult) -> None:
        if self.ui:
            self._render_rich_diff(result)
            return
        self.console.print("\n--- System Changes ---", markup=False, highlight=False)
        self.console.print(format_changes(result), markup=False, highlight=False)

    def confirm_save(self) -> bool:
        """Only a case-insensitive "y" counts as yes; any other line, or EOF, is no."""
        return self._read_line("\nDo you want to save this log? (y/n): ").strip().lower() == "y"

    def report_saved(self, path: object) -> None:
        self.console.print(f"Log saved successfully to {path}.", markup=False, highlight=False)

    def report_error(self, message: str) -> None:
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}", highlight=False)

    def exit_pause(self, timeout: int = 60, interval: float = 1.0) -> None:
        self.console.print(f"\nPress [Enter] to exit immediately or wait {timeout} seconds... ", end="", markup=False)
        wait_for_keypress(iterations=int(timeout / interval), interval=interval)
        self.console.print()

    def _read_line(self, prompt: str) -> str:
        try:
            return self.console.input(prompt, markup=False)
        except EOFError:
            return ""

    def _render_rich_snapshot(self, snapshot: Snapshot, field_set: FieldSet) -> None:
        self.console.print(Panel(f"System snapshot - {snapshot.timestamp:%Y-%m-%d %H:%M:%S}", style="bold cyan"))

        summary = Table(show_header=False, box=box.ROUNDED)
        lists = []
        for descriptor in field_set.in_display_order():
            if isinstance(descriptor, ListField):
                lists.append(descriptor)
                continue
            value = descriptor.render(snapshot)
            if descriptor is UPTIME_MINUTES:
                value = f"{value} minutes"
            summary.add_row(descriptor.label, escape(value))
        self.console.print(summary)

        for descriptor in lists:
            table = Table(title=descriptor.label, box=box.SIMPLE_HEAD)
            table.add_column("#", justify="right")
            table.add_column(descriptor.item_label)
            items = descriptor.render(snapshot)
            if not items:
                table.add_row("-", "none")
            for index, item in enumerate(items, start=1):
                table.add_row(str(index), escape(item))
            self.console.print(table)

    def _render_rich_diff(self, result: DiffResult) -> None:
        if result.changes:
            changes = Table(title="System changes", box=box.SIMPLE_HEAD)
            changes.add_column("Field", style="bold")
            changes.add_column("Current", style="green")
            changes.add_column("Previous", style="red")
            for change in result.changes:
                changes.add_row(
                    field_label(change.field_name), escape(change.current_value), escape(change.previous_value)
                )
            self.console.print(changes)
        else:
            self.console.print(Panel("No changes since the last saved snapshot.", style="bold green"))
        if result.skipped_fields:
            skipped = ", ".join(field_label(name) for name in result.skipped_fields)
            self.console.print(f"Not compared (older log format): {skipped}", style="yellow")
        self.console.print(format_similarity(result), style="bold")


def wait_for_keypress(
    iterations: int = 60,
    interval: float = 1.0,
    key_pressed: Optional[Callable[[], bool]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> bool:
    """Poll ``key_pressed`` once per ``interval`` up to ``iterations`` times.

    Returns True if the wait was cut short by a keypress.
    """
    key_pressed = key_pressed or enter_pressed
    for _ in range(iterations):
        if key_pressed():
            return True
        sleep(interval)
    return False


def enter_pressed() -> bool:
    """Non-blocking check for a pending Enter on the controlling terminal."""
    if sys.platform == "win32":
        import msvcrt

        while msvcrt.kbhit():
            if msvcrt.getwch() in ("\r", "\n"):
                return True
        return False

    import select

    if not sys.stdin or not sys.stdin.isatty():
        return False
    ready, _, _ = select.select([sys.stdin], [], [], 0)
    if ready:
        sys.stdin.readline()
        return True
    return False
