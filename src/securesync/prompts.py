"""Interactive yes/no prompts, injectable so the orchestration stays testable."""

from __future__ import annotations

from abc import ABC, abstractmethod

import click


class Prompter(ABC):
    """Asks the operator for consent."""

    @abstractmethod
    def confirm(self, message: str) -> bool:
        """Ask a yes/no question.

        Args:
            message: Question shown to the operator.

        Returns:
            True if the operator answered yes.
        """


class ClickPrompter(Prompter):
    """Terminal prompter backed by ``click.confirm``."""

    def confirm(self, message: str) -> bool:
        return click.confirm(
            click.style(message, fg="cyan", bold=True),
            default=None,
            err=True,
        )
