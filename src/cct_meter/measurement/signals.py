"""Session control signals and their sources.

The measurement loop waits for one SessionSignal between sessions. Where
the signal comes from is a collaborator concern: the console source reads
lines from the operator, the scripted source replays a fixed sequence for
tests and unattended runs.

Console mapping (case-insensitive, surrounding whitespace ignored):

    ``q``        -> QUIT
    ``d``        -> START_WITH_OFFSET (dark offset, then measure)
    anything else -> START_SESSION
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from enum import Enum
from typing import Protocol, runtime_checkable

from cct_meter.observability import get_logger

logger = get_logger(__name__)

__all__ = [
    "SessionSignal",
    "SignalSource",
    "ConsoleSignalSource",
    "ScriptedSignalSource",
    "parse_signal",
    "DEFAULT_PROMPT",
]

DEFAULT_PROMPT = (
    "press enter to start a measurement - 'd' to start with offset, 'q' to quit"
)


class SessionSignal(Enum):
    """External events that drive the measurement loop between sessions."""

    START_SESSION = "start"
    START_WITH_OFFSET = "start_with_offset"
    QUIT = "quit"


@runtime_checkable
class SignalSource(Protocol):  # pragma: no cover
    """Protocol for blocking sources of session control signals."""

    def next_signal(self) -> SessionSignal:
        """Block until the next signal is available and return it."""
        ...


def parse_signal(text: str) -> SessionSignal:
    """Map one operator input line to a SessionSignal.

    Example:
        >>> parse_signal(" Q ")
        <SessionSignal.QUIT: 'quit'>
        >>> parse_signal("")
        <SessionSignal.START_SESSION: 'start'>
    """
    key = text.strip().lower()
    if key == "q":
        return SessionSignal.QUIT
    if key == "d":
        return SessionSignal.START_WITH_OFFSET
    return SessionSignal.START_SESSION


class ConsoleSignalSource:
    """Reads session signals line by line from the operator.

    End of input is treated as QUIT so piped or closed stdin ends the run
    cleanly between sessions.
    """

    def __init__(
        self,
        prompt: str = DEFAULT_PROMPT,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], object] = print,
    ) -> None:
        """Create a console signal source.

        Args:
            prompt: Text shown before every wait.
            input_func: Line reader, ``input`` by default. Injectable for
                tests.
            output_func: Writer for the prompt, ``print`` by default.
        """
        self._prompt = prompt
        self._input = input_func
        self._output = output_func

    def next_signal(self) -> SessionSignal:
        self._output("")
        self._output(self._prompt)
        try:
            line = self._input("")
        except EOFError:
            logger.debug("Console input closed, quitting")
            return SessionSignal.QUIT
        return parse_signal(line)


class ScriptedSignalSource:
    """Replays a fixed sequence of signals, then QUIT forever."""

    def __init__(self, signals: Iterable[SessionSignal]) -> None:
        self._signals: Iterator[SessionSignal] = iter(signals)

    def next_signal(self) -> SessionSignal:
        return next(self._signals, SessionSignal.QUIT)
