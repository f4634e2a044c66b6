"""Command groups: reference entities (audience, scope, grant-type, authority, role).

The five groups are identical apart from their kind, so they are built by
one factory.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import click

from iamctl.commands._base import IamGroup
from iamctl.domain.entities import REFERENCE_MODELS
from iamctl.domain.kinds import EntityKind, info
from iamctl.services._helpers import op_name
from iamctl.services.reference import reference_service

if TYPE_CHECKING:
    from iamctl.commands._context import AppContext


_VERB_EXAMPLES: dict[str, tuple[str, ...]] = {
    "create": ('create "{sample}" --description "{label} for end users"',),
    "get": ("get <id>",),
    "find": ('find "{sample}"',),
    "update": ('update <id> --name "{sample}s"', 'update <id> --description "text"'),
    "delete": ("delete <id>",),
    "list": ("list", "--json {command} list"),
}


def _examples(command: str, label: str, *verbs: str) -> list[str]:
    """Example lines for *verbs* of one reference group (all verbs when none given)."""
    lines: list[str] = []
    for verb in verbs or tuple(_VERB_EXAMPLES):
        for template in _VERB_EXAMPLES[verb]:
            text = template.format(sample="user", label=label.capitalize(), command=command)
            lines.append(f"iamctl {text}" if text.startswith("--") else f"iamctl {command} {text}")
    return lines


def make_reference_group(kind: EntityKind, command: str) -> click.Group:
    """Build the click group managing one reference kind."""
    meta = info(kind)
    model = REFERENCE_MODELS[kind]

    @click.group(
        command, cls=IamGroup, examples=_examples(command, meta.label), help=f"Manage {meta.plural}."
    )
    @click.pass_obj
    def group(app: AppContext) -> None:
        pass

    @group.command("create", examples=_examples(command, meta.label, "create"))
    @click.argument("name")
    @click.option("--description", default=None, help="Free-text description.")
    @click.pass_obj
    def create(app: AppContext, name: str, description: str | None) -> None:
        """Create a new entity."""
        service = reference_service(app.store, kind)
        app.emit(service.create(model(name=name, description=description)))

    @group.command("update", examples=_examples(command, meta.label, "update"))
    @click.argument("entity_id", metavar="ID")
    @click.option("--name", default=None, help="New name.")
    @click.option("--description", default=None, help="New description.")
    @click.pass_obj
    def update(app: AppContext, entity_id: str, name: str | None, description: str | None) -> None:
        """Rename or re-describe an entity."""
        service = reference_service(app.store, kind)
        current = service.find_by_id(entity_id)
        if current.rejected():
            app.emit(current.with_op(op_name("update", kind)))
            return
        entity = current.or_raise()
        if name is not None:
            entity.name = name
        if description is not None:
            entity.description = description
        app.emit(service.update(entity))

    @group.command("delete", examples=_examples(command, meta.label, "delete"))
    @click.argument("entity_id", metavar="ID")
    @click.pass_obj
    def delete(app: AppContext, entity_id: str) -> None:
        """Delete an entity nothing links to."""
        service = reference_service(app.store, kind)
        app.emit(service.delete(model(id=entity_id)))

    @group.command("get", examples=_examples(command, meta.label, "get"))
    @click.argument("entity_id", metavar="ID")
    @click.pass_obj
    def get(app: AppContext, entity_id: str) -> None:
        """Show an entity by id."""
        app.emit(reference_service(app.store, kind).find_by_id(entity_id))

    @group.command("find", examples=_examples(command, meta.label, "find"))
    @click.argument("name")
    @click.pass_obj
    def find(app: AppContext, name: str) -> None:
        """Show an entity by name."""
        app.emit(reference_service(app.store, kind).find_by_name(name))

    @group.command("list", examples=_examples(command, meta.label, "list"))
    @click.pass_obj
    def list_cmd(app: AppContext) -> None:
        """List every entity, ordered by name."""
        app.emit(reference_service(app.store, kind).list())

    return group


audience = make_reference_group(EntityKind.AUDIENCE, "audience")
scope = make_reference_group(EntityKind.SCOPE, "scope")
grant_type = make_reference_group(EntityKind.GRANT_TYPE, "grant-type")
authority = make_reference_group(EntityKind.AUTHORITY, "authority")
role = make_reference_group(EntityKind.ROLE, "role")
