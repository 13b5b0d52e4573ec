"""Operator prompts used by the setup interview."""
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence

import typer

from nodesetup.errors import InputAbortedError, ValidationError

Validator = Callable[[str], None]

YES = "Yes"
NO = "No"


class Prompter(ABC):
    """Asks the operator questions.

    ask() and select() show the default, repeat the question until the answer
    passes validation, and raise InputAbortedError when the operator gives up
    (Ctrl-C or end of input).
    """

    @abstractmethod
    def ask(self, question: str, default: str, validator: Optional[Validator] = None) -> str:
        ...

    @abstractmethod
    def select(self, question: str, options: Sequence[str], default: str) -> str:
        ...

    @abstractmethod
    def echo(self, message: str) -> None:
        ...


def choice_validator(options: Sequence[str]) -> Validator:
    """Validator accepting one of the options (case-insensitive) or its 1-based number."""
    def validate(value: str) -> None:
        if resolve_choice(value, options) is None:
            raise ValidationError(f"invalid response; got {value}, expected one of: {', '.join(options)}")
    return validate


def resolve_choice(value: str, options: Sequence[str]) -> Optional[str]:
    value = value.strip()
    if value.isdigit() and 1 <= int(value) <= len(options):
        return options[int(value) - 1]
    for option in options:
        if option.lower() == value.lower():
            return option
    return None


def ask_yes_no(prompter: Prompter, question: str, default: str = YES) -> bool:
    """Ask a Yes/No question, returning True for Yes."""
    answer = prompter.select(question, [YES, NO], default)
    return answer == YES


class TerminalPrompter(Prompter):
    """Prompter reading from the terminal through typer."""

    def ask(self, question: str, default: str, validator: Optional[Validator] = None) -> str:
        while True:
            try:
                value = typer.prompt(question, default=default, show_default=True)
            except typer.Abort as e:
                raise InputAbortedError("interview aborted by the operator") from e
            value = str(value).strip()
            if not value:
                typer.echo("❗ A value is required")
                continue
            if validator is not None:
                try:
                    validator(value)
                except ValidationError as e:
                    typer.echo(f"❗ {e}")
                    continue
            return value

    def select(self, question: str, options: Sequence[str], default: str) -> str:
        lines = [question, ""]
        lines += [f"  {i}) {option}" for i, option in enumerate(options, start=1)]
        typer.echo("\n".join(lines))
        value = self.ask("Your choice", default, choice_validator(options))
        return resolve_choice(value, options)

    def echo(self, message: str) -> None:
        typer.echo(message)
