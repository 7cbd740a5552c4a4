from __future__ import annotations

import io

from prdsmith.utils.console import ConsoleOperator, ConsoleStatus


def _scripted(*answers: str):
    queue = list(answers)

    def _input(prompt: str) -> str:
        if not queue:
            raise EOFError
        return queue.pop(0)

    return _input


def test_choose_by_number_or_free_text() -> None:
    choices = ["Web", "Mobile"]
    assert ConsoleOperator(_scripted("2")).choose("Platform?", choices) == "Mobile"
    assert ConsoleOperator(_scripted("  Smart TV ")).choose("Platform?", choices) == "Smart TV"


def test_choose_reprompts_on_blank_answer() -> None:
    assert ConsoleOperator(_scripted("", "1")).choose("Platform?", ["Web"]) == "Web"


def test_closed_stdin_falls_back_to_defaults() -> None:
    operator = ConsoleOperator(_scripted())
    assert operator.choose("Platform?", ["Web", "Mobile"]) == "Web"
    assert operator.confirm("Keep trying?") is False
    assert operator.confirm("Keep trying?", default=True) is True


def test_confirm_accepts_yes_and_no() -> None:
    assert ConsoleOperator(_scripted("maybe", "yes")).confirm("Keep trying?") is True
    assert ConsoleOperator(_scripted("N")).confirm("Keep trying?", default=True) is False


def test_status_writes_plain_lines_when_not_a_tty() -> None:
    stream = io.StringIO()
    status = ConsoleStatus("Generating PRD", stream=stream)
    status.start()
    status.update("rate limited, retrying in 10s 1/1000")
    status.stop()
    assert stream.getvalue().splitlines() == [
        "[prdsmith] Generating PRD",
        "[prdsmith] Generating PRD (rate limited, retrying in 10s 1/1000)",
    ]
