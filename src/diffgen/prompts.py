"""Interactive prompting.

The pipeline only talks to a ``Prompter``; the terminal implementation is
backed by questionary and tests swap in a scripted one.
"""

from typing import Any, Protocol, Sequence

import questionary

from .errors import SelectionAborted


class Prompter(Protocol):
    def choose_one(self, message: str, choices: Sequence[tuple[str, Any]]) -> Any: ...

    def read_text(self, message: str) -> str: ...

    def read_secret(self, message: str) -> str: ...


class QuestionaryPrompter:
    def choose_one(self, message, choices):
        options = [questionary.Choice(title=label, value=value) for label, value in choices]
        selected = questionary.select(message, choices=options).ask()
        if selected is None:
            raise SelectionAborted()
        return selected

    def read_text(self, message):
        answer = questionary.text(message).ask()
        if answer is None:
            raise SelectionAborted()
        return answer

    def read_secret(self, message):
        answer = questionary.password(message).ask()
        if answer is None:
            raise SelectionAborted()
        return answer
