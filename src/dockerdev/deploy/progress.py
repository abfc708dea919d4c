"""Step-based progress reporting for deployment operations.

Resource hooks report progress through a :class:`StepGroup`. Each call to
:meth:`StepGroup.add` opens a step that must end with :meth:`Step.done` or
:meth:`Step.abort`. Steps are context managers that abort on exit unless
they were marked done, so every exit path terminates them:

    >>> with log.add("Creating new container...") as step:
    ...     step.update("Starting container")
    ...     step.done()
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from types import TracebackType
from typing import TextIO

import click


class StepStatus(str, Enum):
    """Outcome marker for a step."""

    RUNNING = "running"
    OK = "ok"
    WARNING = "warning"
    ERROR = "error"


class Step(ABC):
    """A single unit of progress within a step group."""

    def __init__(self, message: str) -> None:
        self.message = message
        self.step_status = StepStatus.RUNNING
        self.finished = False
        self.aborted = False

    def update(self, message: str) -> None:
        """Replace the step message."""
        self.message = message
        self._on_update()

    def status(self, status: StepStatus) -> None:
        """Set the outcome marker shown when the step finishes."""
        self.step_status = status

    def output(self, line: str) -> None:
        """Write a line of raw output (e.g. image pull progress) under the step."""
        self._on_output(line)

    def done(self) -> None:
        """Mark the step complete. Later calls to abort are ignored."""
        if self.finished:
            return
        self.finished = True
        if self.step_status == StepStatus.RUNNING:
            self.step_status = StepStatus.OK
        self._on_finish()

    def abort(self) -> None:
        """Mark the step failed unless it already finished."""
        if self.finished:
            return
        self.finished = True
        self.aborted = True
        self._on_finish()

    def __enter__(self) -> Step:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.abort()

    @abstractmethod
    def _on_update(self) -> None: ...

    @abstractmethod
    def _on_output(self, line: str) -> None: ...

    @abstractmethod
    def _on_finish(self) -> None: ...


class StepGroup(ABC):
    """Collection of steps belonging to one logical operation."""

    def __init__(self) -> None:
        self.steps: list[Step] = []

    def add(self, message: str) -> Step:
        """Open a new step."""
        step = self._new_step(message)
        self.steps.append(step)
        return step

    def wait(self) -> None:
        """Abort every step that was left open."""
        for step in self.steps:
            step.abort()

    def __enter__(self) -> StepGroup:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.wait()

    @abstractmethod
    def _new_step(self, message: str) -> Step: ...


class NullStep(Step):
    """Step that records its outcome but prints nothing."""

    def _on_update(self) -> None:
        pass

    def _on_output(self, line: str) -> None:
        pass

    def _on_finish(self) -> None:
        pass


class NullStepGroup(StepGroup):
    """Step group used in quiet mode and by library callers without a terminal."""

    def _new_step(self, message: str) -> Step:
        return NullStep(message)


_MARKERS = {
    StepStatus.OK: ("✓", "green"),
    StepStatus.WARNING: ("!", "yellow"),
    StepStatus.ERROR: ("✗", "red"),
}


class TerminalStep(Step):
    """Step that writes its progress to a terminal stream.

    Markers are styled with click, which drops the colors when the stream
    is not a terminal.
    """

    def __init__(
        self, message: str, stream: TextIO | None, color: bool | None = None
    ) -> None:
        super().__init__(message)
        self._stream = stream
        self._color = color
        self._echo(f"  {message}")

    def _echo(self, text: str) -> None:
        click.echo(text, file=self._stream, color=self._color)

    def _on_update(self) -> None:
        self._echo(f"  {self.message}")

    def _on_output(self, line: str) -> None:
        self._echo(f"    {line}")

    def _on_finish(self) -> None:
        if self.aborted:
            marker = click.style("✗", fg="red")
            text = click.style(f"{self.message} (aborted)", dim=True)
            self._echo(f"{marker} {text}")
            return
        symbol, fg = _MARKERS.get(self.step_status, ("✓", "green"))
        self._echo(f"{click.style(symbol, fg=fg)} {self.message}")


class TerminalStepGroup(StepGroup):
    """Step group printing to stdout, or to a given stream.

    Args:
        stream: Output stream, defaults to stdout
        color: Force colors on or off; ``None`` detects a terminal
    """

    def __init__(self, stream: TextIO | None = None, color: bool | None = None) -> None:
        super().__init__()
        self._stream = stream
        self._color = color

    def _new_step(self, message: str) -> Step:
        return TerminalStep(message, self._stream, self._color)
