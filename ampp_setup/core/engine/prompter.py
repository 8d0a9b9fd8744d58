"""
Prompter — the operator's side of the conversation.

The sequencer asks questions and reports progress through this
interface so the core never writes to the terminal itself. The CLI
plugs in ``ClickPrompter``; tests plug in ``ScriptedPrompter``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterable


class Prompter(ABC):
    """Ask y/n questions and show status lines."""

    @abstractmethod
    def confirm(self, question: str) -> bool:
        """Ask a yes/no question. Anything but an explicit yes is no."""

    @abstractmethod
    def echo(self, message: str = "") -> None:
        """Plain output line."""

    def info(self, message: str) -> None:
        self.echo(f"ℹ︎ {message}")

    def success(self, message: str) -> None:
        self.echo(f"✔ {message}")

    def warn(self, message: str) -> None:
        self.echo(f"⚠ {message}")

    def error(self, message: str) -> None:
        self.echo(f"✘ {message}")


class AutoPrompter(Prompter):
    """Answer every question the same way (``install --yes``)."""

    def __init__(self, answer: bool = True, output: Prompter | None = None):
        self.answer = answer
        self._output = output

    def confirm(self, question: str) -> bool:
        self.echo(f"{question} [y/N] {'y' if self.answer else 'n'}")
        return self.answer

    def echo(self, message: str = "") -> None:
        if self._output is not None:
            self._output.echo(message)

    def info(self, message: str) -> None:
        if self._output is not None:
            self._output.info(message)

    def success(self, message: str) -> None:
        if self._output is not None:
            self._output.success(message)

    def warn(self, message: str) -> None:
        if self._output is not None:
            self._output.warn(message)

    def error(self, message: str) -> None:
        if self._output is not None:
            self._output.error(message)


class ScriptedPrompter(Prompter):
    """Replay queued answers and record everything said.

    ``default`` answers questions once the queue runs dry; with no
    default an unexpected question raises LookupError.
    """

    def __init__(self, answers: Iterable[bool] = (), default: bool | None = None):
        self._answers = deque(answers)
        self.default = default
        self.questions: list[str] = []
        self.messages: list[tuple[str, str]] = []

    def confirm(self, question: str) -> bool:
        self.questions.append(question)
        self.messages.append(("question", question))
        if self._answers:
            return self._answers.popleft()
        if self.default is None:
            raise LookupError(f"No scripted answer for: {question}")
        return self.default

    def echo(self, message: str = "") -> None:
        self.messages.append(("echo", message))

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def warn(self, message: str) -> None:
        self.messages.append(("warn", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    @property
    def remaining(self) -> int:
        return len(self._answers)

    def said(self, level: str) -> list[str]:
        """Messages logged at one level, in order."""
        return [text for lvl, text in self.messages if lvl == level]

    def transcript(self) -> list[str]:
        """Every question and message, in the order they happened."""
        return [text for _, text in self.messages]
