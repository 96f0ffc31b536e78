"""User-facing output sinks for provisioning messages and streamed applier output."""

from __future__ import annotations

import os
import sys
from typing import Protocol, TextIO

import ubelt as ub


class UI(Protocol):
    colored: bool

    def info(self, line: str) -> None: ...


class BasicUI:
    colored = False

    def __init__(self, stream: TextIO | None = None) -> None:
        self.stream = stream

    def info(self, line: str) -> None:
        print(line, file=self.stream or sys.stdout, flush=True)


class ColoredUI(BasicUI):
    colored = True

    def __init__(self, stream: TextIO | None = None, color: str = 'green') -> None:
        super().__init__(stream)
        self.color = color

    def info(self, line: str) -> None:
        print(ub.color_text(line, self.color), file=self.stream or sys.stdout, flush=True)


class RecordingUI:
    """Collects lines in memory; used by dry runs and tests."""

    def __init__(self, colored: bool = False) -> None:
        self.colored = colored
        self.lines: list[str] = []

    def info(self, line: str) -> None:
        self.lines.append(line)


def console_ui(stream: TextIO | None = None) -> BasicUI:
    out = stream or sys.stdout
    if out.isatty() and os.getenv('NO_COLOR') is None:
        return ColoredUI(stream)
    return BasicUI(stream)
