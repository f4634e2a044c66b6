"""Command group: accounts and password changes."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from iamctl.commands._base import IamGroup
from iamctl.domain.entities import Account, AccountDraft
from iamctl.services.account import AccountService

if TYPE_CHECKING:
    from iamctl.commands._context import AppContext

_ACCOUNT_EXAMPLES = """\
  iamctl account create alice --role <role-id>
  iamctl account find alice
  iamctl account update <id> --locked
  iamctl account password <id>
  iamctl --json account list"""


@click.group(cls=IamGroup, examples=_ACCOUNT_EXAMPLES)
@click.pass_obj
def account(app: AppContext) -> None:
    """Manage accounts."""


@account.command("create", examples="  iamctl account create alice --role <role-id>")
@click.argument("username")
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Initial password (prompted when omitted).",
)
@click.option("--role", "role_ids", multiple=True, help="Role id (repeatable).")
@click.option("--locked", is_flag=True, help="Create the account locked.")
@click.pass_obj
def create(
    app: AppContext, username: str, password: str, role_ids: tuple[str, ...], locked: bool
) -> None:
    """Create an account."""
    service = AccountService(app.store)
    assembled = service.assemble(
        AccountDraft(username=username, password=password, locked=locked, role_ids=list(role_ids))
    )
    app.emit(service.create(assembled.or_raise()).with_warnings(assembled.warnings))


@account.command("update", examples="  iamctl account update <id> --username bob --unlocked")
@click.argument("account_id", metavar="ID")
@click.option("--username", default=None, help="New username.")
@click.option("--locked/--unlocked", default=None, help="Lock or unlock the account.")
@click.option("--role", "role_ids", multiple=True, help="Replace roles (repeatable).")
@click.pass_obj
def update(
    app: AppContext,
    account_id: str,
    username: str | None,
    locked: bool | None,
    role_ids: tuple[str, ...],
) -> None:
    """Change username, lock state or roles. The password is never touched."""
    service = AccountService(app.store)
    current = service.find_by_id(account_id)
    if current.rejected():
        app.emit(current.with_op("update_account"))
        return
    existing = current.or_raise()
    warnings: list[str] = []
    if role_ids:
        assembled = service.assemble(AccountDraft(role_ids=list(role_ids)))
        existing.roles = assembled.or_raise().roles
        warnings = assembled.warnings
    if username is not None:
        existing.username = username
    if locked is not None:
        existing.locked = locked
    app.emit(service.update(existing).with_warnings(warnings))


@account.command("password", examples="  iamctl account password <id>")
@click.argument("account_id", metavar="ID")
@click.option("--current", prompt="Current password", hide_input=True, help="Current password.")
@click.option(
    "--new",
    "new_password",
    prompt="New password",
    hide_input=True,
    confirmation_prompt=True,
    help="New password.",
)
@click.pass_obj
def password(app: AppContext, account_id: str, current: str, new_password: str) -> None:
    """Change an account's password."""
    service = AccountService(app.store)
    app.emit(service.update_password(Account(id=account_id), current, new_password))


@account.command("delete", examples="  iamctl account delete <id>")
@click.argument("account_id", metavar="ID")
@click.pass_obj
def delete(app: AppContext, account_id: str) -> None:
    """Delete an account."""
    app.emit(AccountService(app.store).delete(Account(id=account_id)))


@account.command("get", examples="  iamctl account get <id>")
@click.argument("account_id", metavar="ID")
@click.pass_obj
def get(app: AppContext, account_id: str) -> None:
    """Show an account by id."""
    app.emit(AccountService(app.store).find_by_id(account_id))


@account.command("find", examples="  iamctl account find alice")
@click.argument("username")
@click.pass_obj
def find(app: AppContext, username: str) -> None:
    """Show an account by username."""
    app.emit(AccountService(app.store).find_by_username(username))


@account.command("list", examples="  iamctl account list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List accounts, ordered by username."""
    app.emit(AccountService(app.store).list())
