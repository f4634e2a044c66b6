"""Subcommand modules for iamctl.

Provides register_commands() which uses deferred imports to keep
``iamctl --help`` fast as the codebase grows.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    import click


def register_commands(cli: click.Group) -> None:
    """Register all command groups and standalone commands on the root CLI group.

    7 groups (have subcommands) + 1 standalone command.
    """
    # --- Groups ---
    from iamctl.commands.account import account
    from iamctl.commands.client import client
    from iamctl.commands.reference import audience, authority, grant_type, role, scope

    cli.add_command(audience)
    cli.add_command(scope)
    cli.add_command(grant_type)
    cli.add_command(authority)
    cli.add_command(role)
    cli.add_command(account)
    cli.add_command(client)

    # --- Standalone commands ---
    from iamctl.commands.init_cmd import init_cmd

    cli.add_command(init_cmd)
