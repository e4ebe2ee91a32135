"""
Global progress reporting for Meeting Insights.

A single reporter shows a Rich status spinner for the running stage and a
checkmark line for each finished one. Before the CLI initializes it, every
call is a no-op so the pipeline can run silently from library code and tests.
"""

from typing import List, Optional

from rich.console import Console
from rich.status import Status


class ProgressReporter:
    """
    Stage-level progress reporter with completion tracking.
    """

    def __init__(self):
        self._status: Optional[Status] = None
        self._console: Optional[Console] = None
        self._completed_steps: List[str] = []
        self._current_step: Optional[str] = None

    def initialize(self, console: Console, initial_message: str = "Starting...") -> Status:
        """
        Bind the reporter to a console and create its status object.

        Returns:
            Status object that should be used in a context manager
        """
        self._console = console
        self._status = console.status(f"[dim]{initial_message}[/dim]")
        self._completed_steps = []
        self._current_step = initial_message
        return self._status

    def reset(self) -> None:
        """Detach from the console; later calls become no-ops."""
        self._status = None
        self._console = None
        self._current_step = None

    @property
    def completed_steps(self) -> List[str]:
        return list(self._completed_steps)

    def step(self, message: str) -> None:
        """
        Mark the current step completed and start a new one.
        """
        if self._status is None:
            return
        if self._current_step is not None:
            self._completed_steps.append(self._current_step)
            if self._console is not None:
                self._console.print(f"[green]✓[/green] [dim]{self._current_step}[/dim]")
        self._current_step = message
        self._status.update(f"[dim]{message}[/dim]")

    def complete_step(self, message: Optional[str] = None) -> None:
        if self._current_step is None:
            return
        completion_msg = message or self._current_step
        self._completed_steps.append(completion_msg)
        if self._console is not None:
            self._console.print(f"[green]✓[/green] [dim]{completion_msg}[/dim]")
        self._current_step = None

    def sub_step(self, message: str, current: int = 0, total: int = 0) -> None:
        """
        Update the spinner text without completing the current step.

        Args:
            message: Sub-step message to display
            current: Current attempt/step number (optional)
            total: Total number of attempts/steps (optional)
        """
        if self._status is None:
            return
        progress_msg = f"{message} ({current}/{total})" if current > 0 and total > 0 else message
        self._status.update(f"[dim]{progress_msg}[/dim]")

    def complete_sub_step(self, message: str) -> None:
        """Print an indented checkmark without changing the current step."""
        if self._console is not None:
            self._console.print(f"  [green]✓[/green] [dim]{message}[/dim]")

    def warn_sub_step(self, message: str) -> None:
        if self._console is not None:
            self._console.print(f"  [yellow]![/yellow] [dim]{message}[/dim]")


# Global reporter instance
reporter = ProgressReporter()
