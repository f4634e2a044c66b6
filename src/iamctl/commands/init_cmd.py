"""Command: data root initialization (named init_cmd to avoid shadowing builtins)."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import click

from iamctl.commands._base import IamCommand

if TYPE_CHECKING:
    from iamctl.commands._context import AppContext

_INIT_EXAMPLES = """\
  iamctl init
  iamctl init /srv/iam --hash-iterations 1200000
  iamctl init . --no-cache --force"""


@click.command("init", cls=IamCommand, examples=_INIT_EXAMPLES)
@click.argument("path", required=False, default=".")
@click.option("--no-cache", is_flag=True, help="Disable the client cache in the new config.")
@click.option("--hash-iterations", type=click.IntRange(min=1), default=None, help="PBKDF2 rounds.")
@click.option("--force", is_flag=True, help="Overwrite an existing iamctl.toml.")
@click.pass_obj
def init_cmd(
    app: AppContext,
    path: str,
    no_cache: bool,
    hash_iterations: int | None,
    force: bool,
) -> None:
    """Create iamctl.toml and an empty database."""
    from iamctl.services.init import InitService

    app.emit(
        InitService.init_store(
            Path(path).resolve(),
            cache_enabled=not no_cache,
            hash_iterations=hash_iterations,
            force=force,
        )
    )
