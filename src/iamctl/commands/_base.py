"""Click command classes carrying per-command usage examples.

Every iamctl command and group accepts ``examples=`` (a block of text or a
sequence of lines). The examples are shown by an eager ``--examples`` flag
instead of being folded into ``--help``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import click


def _example_lines(examples: str | Sequence[str] | None) -> tuple[str, ...]:
    if not examples:
        return ()
    lines = examples.splitlines() if isinstance(examples, str) else list(examples)
    return tuple(line.strip() for line in lines if line.strip())


def _print_examples(ctx: click.Context, _param: click.Parameter, value: bool) -> None:
    if not value or ctx.resilient_parsing:
        return
    click.echo(f"Examples for '{ctx.command_path}':\n")
    for line in getattr(ctx.command, "examples", ()):
        click.echo(f"  {line}")
    ctx.exit(0)


class _ExamplesMixin:
    """Adds the ``--examples`` flag when a command has examples to show."""

    examples: tuple[str, ...]

    def _init_examples(self, examples: str | Sequence[str] | None) -> None:
        self.examples = _example_lines(examples)

    def get_params(self, ctx: click.Context) -> list[click.Parameter]:
        params: list[click.Parameter] = super().get_params(ctx)  # type: ignore[misc]
        if self.examples:
            params.append(
                click.Option(
                    ["--examples"],
                    is_flag=True,
                    expose_value=False,
                    is_eager=True,
                    callback=_print_examples,
                    help="Show usage examples and exit.",
                )
            )
        return params


class IamCommand(_ExamplesMixin, click.Command):
    def __init__(
        self, *args: Any, examples: str | Sequence[str] | None = None, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)


class IamGroup(_ExamplesMixin, click.Group):
    """Group whose subcommands are :class:`IamCommand` and subgroups :class:`IamGroup`."""

    command_class = IamCommand
    group_class = type

    def __init__(
        self, *args: Any, examples: str | Sequence[str] | None = None, **kwargs: Any
    ) -> None:
        super().__init__(*args, **kwargs)
        self._init_examples(examples)

