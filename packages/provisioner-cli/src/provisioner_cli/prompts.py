"""Operator decision points.

The provisioner never reads the terminal directly; it asks an Operator.
Tests pass a scripted one.
"""

from typing import Protocol

from rich.console import Console
from rich.prompt import Confirm, Prompt


class Operator(Protocol):
    """Someone who answers the provisioner's questions."""

    def confirm(self, question: str) -> bool:
        """Yes/no question. Anything but an explicit yes means no."""
        ...

    def ask(self, question: str, secret: bool = False) -> str:
        """Free-form answer; empty string when the operator just presses Enter."""
        ...


class ConsoleOperator:
    """Operator answering on the terminal through rich prompts."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    def confirm(self, question: str) -> bool:
        return Confirm.ask(question, default=False, console=self.console)

    def ask(self, question: str, secret: bool = False) -> str:
        return Prompt.ask(
            question,
            default="",
            show_default=False,
            password=secret,
            console=self.console,
        )
