from __future__ import annotations

import sys
from typing import Callable, List, Optional, Protocol, Sequence, TextIO


class StatusReporter(Protocol):
    def start(self) -> None: ...

    def update(self, text: str) -> None: ...

    def stop(self) -> None: ...


class Operator(Protocol):
    def confirm(self, message: str, default: bool = False) -> bool: ...

    def choose(self, question: str, choices: Sequence[str]) -> str: ...


class ConsoleStatus:
    """Single status line that is rewritten in place while a call is in flight."""

    def __init__(self, text: str, tag: str = "prdsmith", stream: Optional[TextIO] = None) -> None:
        self.base_text = text
        self.tag = tag
        self.stream = stream or sys.stderr
        self.active = False
        self._width = 0

    def _render(self, line: str) -> None:
        if self.stream.isatty():
            padded = line.ljust(self._width)
            self._width = max(self._width, len(line))
            self.stream.write("\r" + padded)
        else:
            self.stream.write(line + "\n")
        self.stream.flush()

    def start(self) -> None:
        self.active = True
        self._render(f"[{self.tag}] {self.base_text}")

    def update(self, text: str) -> None:
        if not self.active:
            self.active = True
        self._render(f"[{self.tag}] {self.base_text} ({text})")

    def stop(self) -> None:
        if not self.active:
            return
        self.active = False
        if self.stream.isatty():
            self.stream.write("\r" + " " * self._width + "\r")
            self.stream.flush()
        self._width = 0


class ConsoleOperator:
    """Asks the person at the terminal; falls back to defaults when stdin is closed."""

    def __init__(self, input_fn: Optional[Callable[[str], str]] = None) -> None:
        self.input_fn = input_fn

    def _ask(self, prompt: str) -> Optional[str]:
        try:
            return (self.input_fn or input)(prompt)
        except EOFError:
            return None

    def confirm(self, message: str, default: bool = False) -> bool:
        hint = "Y/n" if default else "y/N"
        while True:
            answer = self._ask(f"{message} [{hint}] ")
            if answer is None:
                return default
            answer = answer.strip().lower()
            if not answer:
                return default
            if answer in ("y", "yes"):
                return True
            if answer in ("n", "no"):
                return False
            print("Please answer y or n.")

    def choose(self, question: str, choices: Sequence[str]) -> str:
        """Number picks a choice; any other non-empty text is a free-form answer."""
        lines: List[str] = [question]
        lines.extend(f"  {index}. {choice}" for index, choice in enumerate(choices, start=1))
        lines.append("  (or type your own answer)")
        print("\n".join(lines))
        while True:
            answer = self._ask("> ")
            if answer is None:
                return choices[0] if choices else ""
            answer = answer.strip()
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                return choices[int(answer) - 1]
            if answer:
                return answer
