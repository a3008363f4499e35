"""Tests for session control signals and their sources."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from cct_meter.measurement import (
    ConsoleSignalSource,
    ScriptedSignalSource,
    SessionSignal,
    SignalSource,
    parse_signal,
)
from cct_meter.measurement.signals import DEFAULT_PROMPT
from tests.helpers import assert_implements_protocol


class TestParseSignal:
    """Operator input mapping."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("", SessionSignal.START_SESSION),
            ("go", SessionSignal.START_SESSION),
            ("q", SessionSignal.QUIT),
            (" Q \n", SessionSignal.QUIT),
            ("d", SessionSignal.START_WITH_OFFSET),
            ("D", SessionSignal.START_WITH_OFFSET),
            ("dq", SessionSignal.START_SESSION),
        ],
    )
    def test_mapping(self, text: str, expected: SessionSignal) -> None:
        assert parse_signal(text) is expected


class TestConsoleSignalSource:
    """Console source with injected input and output."""

    def test_prompts_then_parses_input(self) -> None:
        """Verifies the prompt is shown and the answer parsed.

        Arrangement:
        1. input_func returning "d".
        2. output_func recording lines.

        Action:
        Calls next_signal() once.

        Assertion Strategy:
        - Returns START_WITH_OFFSET.
        - Output was an empty line followed by the default prompt.
        """
        lines: list[str] = []
        source = ConsoleSignalSource(
            input_func=lambda _prompt: "d", output_func=lines.append
        )

        assert source.next_signal() is SessionSignal.START_WITH_OFFSET
        assert lines == ["", DEFAULT_PROMPT]

    def test_end_of_input_quits(self) -> None:
        reader = MagicMock(side_effect=EOFError)
        source = ConsoleSignalSource(input_func=reader, output_func=lambda _: None)

        assert source.next_signal() is SessionSignal.QUIT

    def test_custom_prompt(self) -> None:
        lines: list[str] = []
        source = ConsoleSignalSource(
            prompt="ready?", input_func=lambda _: "", output_func=lines.append
        )

        assert source.next_signal() is SessionSignal.START_SESSION
        assert lines[-1] == "ready?"

    def test_implements_protocol(self) -> None:
        assert_implements_protocol(ConsoleSignalSource(), SignalSource)


class TestScriptedSignalSource:
    """Replay of fixed signal sequences."""

    def test_replays_then_quits(self) -> None:
        source = ScriptedSignalSource(
            [SessionSignal.START_SESSION, SessionSignal.START_WITH_OFFSET]
        )

        assert source.next_signal() is SessionSignal.START_SESSION
        assert source.next_signal() is SessionSignal.START_WITH_OFFSET
        assert source.next_signal() is SessionSignal.QUIT
        assert source.next_signal() is SessionSignal.QUIT

    def test_implements_protocol(self) -> None:
        assert_implements_protocol(ScriptedSignalSource([]), SignalSource)
