"""Command group: clients and the client credential check."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from iamctl.commands._base import IamGroup
from iamctl.domain.entities import Client, ClientDraft
from iamctl.domain.kinds import EntityKind, info
from iamctl.services.authentication import (
    BadClientCredentialsError,
    ClientAuthenticationService,
    ClientNotFoundError,
)
from iamctl.services.client import ClientService
from iamctl.services.result import Result, ServiceError

if TYPE_CHECKING:
    from iamctl.commands._context import AppContext

_CLI = info(EntityKind.CLIENT)

_CLIENT_EXAMPLES = """\
  iamctl client create web-app --grant-type <grant-type-id> --scope <scope-id>
  iamctl client find web-app
  iamctl client update <id> --access-validity 3600
  iamctl client authenticate web-app
  iamctl --json client list"""


def _reference_options(func: click.decorators.FC) -> click.decorators.FC:
    """Repeatable id options for every embedded reference kind."""
    for flag, dest, label in reversed(
        [
            ("--scope", "scope_ids", "Scope id"),
            ("--grant-type", "grant_type_ids", "Grant type id"),
            ("--authority", "authority_ids", "Authority id"),
            ("--audience", "audience_ids", "Audience id"),
        ]
    ):
        func = click.option(flag, dest, multiple=True, help=f"{label} (repeatable).")(func)
    return func


@click.group(cls=IamGroup, examples=_CLIENT_EXAMPLES)
@click.pass_obj
def client(app: AppContext) -> None:
    """Manage clients."""


@client.command("create", examples="  iamctl client create web-app --grant-type <id>")
@click.argument("client_id")
@click.option(
    "--secret",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Client secret (prompted when omitted).",
)
@_reference_options
@click.option("--access-validity", type=int, default=None, help="Access token lifetime (s).")
@click.option("--refresh-validity", type=int, default=None, help="Refresh token lifetime (s).")
@click.pass_obj
def create(
    app: AppContext,
    client_id: str,
    secret: str,
    scope_ids: tuple[str, ...],
    grant_type_ids: tuple[str, ...],
    authority_ids: tuple[str, ...],
    audience_ids: tuple[str, ...],
    access_validity: int | None,
    refresh_validity: int | None,
) -> None:
    """Register a client."""
    service = ClientService(app.store)
    assembled = service.assemble(
        ClientDraft(
            client_id=client_id,
            client_secret=secret,
            scope_ids=list(scope_ids),
            grant_type_ids=list(grant_type_ids),
            authority_ids=list(authority_ids),
            audience_ids=list(audience_ids),
            access_token_validity_seconds=access_validity,
            refresh_token_validity_seconds=refresh_validity,
        )
    )
    app.emit(service.create(assembled.or_raise()).with_warnings(assembled.warnings))


@client.command("update", examples="  iamctl client update <id> --client-id web --scope <id>")
@click.argument("client_pk", metavar="ID")
@click.option("--client-id", default=None, help="New public identifier.")
@click.option("--secret", default=None, help="New client secret.")
@_reference_options
@click.option("--access-validity", type=int, default=None, help="Access token lifetime (s).")
@click.option("--refresh-validity", type=int, default=None, help="Refresh token lifetime (s).")
@click.pass_obj
def update(
    app: AppContext,
    client_pk: str,
    client_id: str | None,
    secret: str | None,
    scope_ids: tuple[str, ...],
    grant_type_ids: tuple[str, ...],
    authority_ids: tuple[str, ...],
    audience_ids: tuple[str, ...],
    access_validity: int | None,
    refresh_validity: int | None,
) -> None:
    """Change a client. Each given reference option replaces that whole set."""
    service = ClientService(app.store)
    current = service.find_by_id(client_pk)
    if current.rejected():
        app.emit(current.with_op("update_client"))
        return
    existing = current.or_raise()

    assembled = service.assemble(
        ClientDraft(
            scope_ids=list(scope_ids),
            grant_type_ids=list(grant_type_ids),
            authority_ids=list(authority_ids),
            audience_ids=list(audience_ids),
        )
    )
    resolved = assembled.or_raise()
    if scope_ids:
        existing.scopes = resolved.scopes
    if grant_type_ids:
        existing.grant_types = resolved.grant_types
    if authority_ids:
        existing.authorities = resolved.authorities
    if audience_ids:
        existing.audiences = resolved.audiences
    if client_id is not None:
        existing.client_id = client_id
    if secret is not None:
        existing.client_secret = secret
    if access_validity is not None:
        existing.access_token_validity_seconds = access_validity
    if refresh_validity is not None:
        existing.refresh_token_validity_seconds = refresh_validity
    app.emit(service.update(existing).with_warnings(assembled.warnings))


@client.command("delete", examples="  iamctl client delete <id>")
@click.argument("client_pk", metavar="ID")
@click.pass_obj
def delete(app: AppContext, client_pk: str) -> None:
    """Delete a client."""
    app.emit(ClientService(app.store).delete(Client(id=client_pk)))


@client.command("get", examples="  iamctl client get <id>")
@click.argument("client_pk", metavar="ID")
@click.pass_obj
def get(app: AppContext, client_pk: str) -> None:
    """Show a client by id."""
    app.emit(ClientService(app.store).find_by_id(client_pk))


@client.command("find", examples="  iamctl client find web-app")
@click.argument("client_id")
@click.pass_obj
def find(app: AppContext, client_id: str) -> None:
    """Show a client by its public identifier."""
    app.emit(ClientService(app.store).find_by_client_id(client_id))


@client.command("list", examples="  iamctl client list")
@click.pass_obj
def list_cmd(app: AppContext) -> None:
    """List clients, ordered by client identifier."""
    app.emit(ClientService(app.store).list())


@client.command("authenticate", examples="  iamctl client authenticate web-app --secret s3cret")
@click.argument("client_id")
@click.option("--secret", prompt=True, hide_input=True, help="Client secret to verify.")
@click.pass_obj
def authenticate(app: AppContext, client_id: str, secret: str) -> None:
    """Check a client's credentials the way the token endpoint does."""
    op = "authenticate_client"
    service = ClientAuthenticationService(app.store)
    try:
        found = service.authenticate(client_id, secret)
    except ClientNotFoundError:
        app.emit(
            Result.reject(
                ServiceError.not_found(_CLI.code(8), f"No such client identifier: {client_id}"),
                op=op,
            )
        )
        return
    except BadClientCredentialsError:
        app.emit(Result.reject(ServiceError.unprocessable(_CLI.code(9), "Bad credentials."), op=op))
        return
    app.emit(Result.accept(found, op=op))
