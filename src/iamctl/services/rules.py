"""Rule catalogue — the validator chain for every entity kind.

Each ``build_*_validator`` function returns a fresh :class:`Validator`.
Rules yield :class:`ServiceError` values and never raise for bad input;
repository-backed rules run against the caller's transaction.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

from iamctl.domain.entities import Account, Client, ReferenceEntity
from iamctl.domain.ids import is_blank
from iamctl.domain.kinds import KINDS, EntityKind, generic_code, info, system_code
from iamctl.infrastructure.repositories.reference import ReferenceRepository
from iamctl.services._helpers import capitalize_first
from iamctl.services.result import ServiceError
from iamctl.services.validation import Operation, Validator

if TYPE_CHECKING:
    from iamctl.config.models import SecurityConfig
    from iamctl.infrastructure.repositories.account import AccountRepository
    from iamctl.infrastructure.repositories.base import TableRepository
    from iamctl.infrastructure.repositories.client import ClientRepository

NAME_MAX_LENGTH = 128
DESCRIPTION_MAX_LENGTH = 255
USERNAME_MAX_LENGTH = 128

_CREATE = Operation.CREATE
_UPDATE = Operation.UPDATE
_DELETE = Operation.DELETE


def _strip(value: str | None) -> str | None:
    return value.strip() if value is not None else None


# ---------------------------------------------------------------------------
# Rules shared by every kind
# ---------------------------------------------------------------------------


def id_required(entity: ReferenceEntity | Account | Client, repo: object) -> Iterator[ServiceError]:
    if is_blank(entity.id):
        yield ServiceError.unprocessable(generic_code(1), "An id is required.")


def exists(
    entity: ReferenceEntity | Account | Client, repo: TableRepository  # type: ignore[type-arg]
) -> Iterator[ServiceError]:
    if is_blank(entity.id):
        return
    assert entity.id is not None
    if not repo.exists(entity.id):
        yield ServiceError.not_found(
            system_code(1),
            f"No such {info(entity.kind).label} id: {entity.id}",
            id=entity.id,
        )


def _missing_references(
    repo: TableRepository,  # type: ignore[type-arg]
    kind: EntityKind,
    members: list[ReferenceEntity],
) -> Iterator[ServiceError]:
    """NotFound for every embedded entity whose id does not resolve."""
    label = info(kind).label
    ids = [m.id for m in members]
    for member_id in ids:
        if is_blank(member_id):
            yield ServiceError.unprocessable(
                generic_code(1), f"An id is required for every embedded {label}."
            )
    wanted = [i for i in ids if not is_blank(i)]
    found = ReferenceRepository(repo.conn, kind).find_many(wanted)  # type: ignore[arg-type]
    for member_id in dict.fromkeys(wanted):
        if member_id not in found:
            yield ServiceError.not_found(
                system_code(1), f"No such {label} id: {member_id}", id=member_id
            )


# ---------------------------------------------------------------------------
# Reference entities
# ---------------------------------------------------------------------------


def build_reference_validator(kind: EntityKind) -> Validator[ReferenceEntity]:
    """Rule chain for audiences, scopes, grant types, authorities and roles."""
    meta = KINDS[kind]
    subject = capitalize_first(meta.with_article)
    validator: Validator[ReferenceEntity] = Validator(kind)

    @validator.normalizer
    def strip_fields(entity: ReferenceEntity) -> None:
        entity.name = _strip(entity.name)
        entity.description = _strip(entity.description) or None

    validator.rule(_UPDATE, _DELETE)(id_required)
    validator.rule(_UPDATE, _DELETE)(exists)

    @validator.rule(_CREATE, _UPDATE)
    def name_required(entity: ReferenceEntity, repo: ReferenceRepository) -> Iterator[ServiceError]:
        if is_blank(entity.name):
            yield ServiceError.unprocessable(meta.code(1), f"{subject} name is required.")

    @validator.rule(_CREATE, _UPDATE)
    def name_length(entity: ReferenceEntity, repo: ReferenceRepository) -> Iterator[ServiceError]:
        if entity.name is not None and len(entity.name) > NAME_MAX_LENGTH:
            yield ServiceError.unprocessable(
                meta.code(2),
                f"{subject} name cannot be greater than {NAME_MAX_LENGTH} characters.",
            )

    @validator.rule(_CREATE, _UPDATE)
    def description_length(
        entity: ReferenceEntity, repo: ReferenceRepository
    ) -> Iterator[ServiceError]:
        if entity.description is not None and len(entity.description) > DESCRIPTION_MAX_LENGTH:
            yield ServiceError.unprocessable(
                meta.code(4),
                f"{subject} description cannot be greater than "
                f"{DESCRIPTION_MAX_LENGTH} characters.",
            )

    @validator.rule(_CREATE, _UPDATE)
    def name_unique(entity: ReferenceEntity, repo: ReferenceRepository) -> Iterator[ServiceError]:
        if is_blank(entity.name):
            return
        assert entity.name is not None
        if repo.name_taken(entity.name, exclude_id=entity.id):
            yield ServiceError.conflict(
                meta.code(3), f"This {meta.label} name is already in use.", name=entity.name
            )

    return validator


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


def build_account_validator(security: SecurityConfig) -> Validator[Account]:
    """Rule chain for accounts. Password length bounds come from *security*."""
    meta = KINDS[EntityKind.ACCOUNT]
    validator: Validator[Account] = Validator(EntityKind.ACCOUNT)

    @validator.normalizer
    def strip_username(account: Account) -> None:
        account.username = _strip(account.username)

    validator.rule(_UPDATE, _DELETE)(id_required)
    validator.rule(_UPDATE, _DELETE)(exists)

    @validator.rule(_CREATE, _UPDATE)
    def username_required(account: Account, repo: AccountRepository) -> Iterator[ServiceError]:
        if is_blank(account.username):
            yield ServiceError.unprocessable(meta.code(1), "An account username is required.")

    @validator.rule(_CREATE, _UPDATE)
    def username_length(account: Account, repo: AccountRepository) -> Iterator[ServiceError]:
        if account.username is not None and len(account.username) > USERNAME_MAX_LENGTH:
            yield ServiceError.unprocessable(
                meta.code(2),
                f"An account username cannot be greater than {USERNAME_MAX_LENGTH} characters.",
            )

    @validator.rule(_CREATE, _UPDATE)
    def username_unique(account: Account, repo: AccountRepository) -> Iterator[ServiceError]:
        if is_blank(account.username):
            return
        assert account.username is not None
        if repo.username_taken(account.username, exclude_id=account.id):
            yield ServiceError.conflict(
                meta.code(3), "This username is already in use.", username=account.username
            )

    @validator.rule(_CREATE)
    def password_required(account: Account, repo: AccountRepository) -> Iterator[ServiceError]:
        if account.password is None or account.password == "":
            yield ServiceError.unprocessable(meta.code(4), "An account password is required.")

    @validator.rule(_CREATE)
    def password_length(account: Account, repo: AccountRepository) -> Iterator[ServiceError]:
        if not account.password:
            return
        low, high = security.min_password_length, security.max_password_length
        if not low <= len(account.password) <= high:
            yield ServiceError.unprocessable(
                meta.code(5), f"An account password must be between {low} and {high} characters."
            )

    @validator.rule(_CREATE, _UPDATE)
    def roles_exist(account: Account, repo: AccountRepository) -> Iterator[ServiceError]:
        yield from _missing_references(repo, EntityKind.ROLE, list(account.roles))

    return validator


# ---------------------------------------------------------------------------
# Clients
# ---------------------------------------------------------------------------


def build_client_validator() -> Validator[Client]:
    """Rule chain for the client aggregate."""
    meta = KINDS[EntityKind.CLIENT]
    validator: Validator[Client] = Validator(EntityKind.CLIENT)

    @validator.normalizer
    def strip_client_id(client: Client) -> None:
        client.client_id = _strip(client.client_id)

    validator.rule(_UPDATE, _DELETE)(id_required)
    validator.rule(_UPDATE, _DELETE)(exists)

    @validator.rule(_CREATE, _UPDATE)
    def client_id_required(client: Client, repo: ClientRepository) -> Iterator[ServiceError]:
        if is_blank(client.client_id):
            yield ServiceError.unprocessable(meta.code(1), "A client identifier is required.")

    @validator.rule(_CREATE)
    def secret_required(client: Client, repo: ClientRepository) -> Iterator[ServiceError]:
        if is_blank(client.client_secret):
            yield ServiceError.unprocessable(meta.code(2), "A client secret is required.")

    @validator.rule(_CREATE, _UPDATE)
    def client_id_unique(client: Client, repo: ClientRepository) -> Iterator[ServiceError]:
        if is_blank(client.client_id):
            return
        assert client.client_id is not None
        if repo.client_id_taken(client.client_id, exclude_id=client.id):
            yield ServiceError.conflict(
                meta.code(3),
                "This client identifier is already in use.",
                client_id=client.client_id,
            )

    @validator.rule(_CREATE, _UPDATE)
    def grant_type_required(client: Client, repo: ClientRepository) -> Iterator[ServiceError]:
        if not client.grant_types:
            yield ServiceError.unprocessable(
                meta.code(4), "A client requires at least one grant type."
            )

    @validator.rule(_CREATE, _UPDATE)
    def access_token_validity(client: Client, repo: ClientRepository) -> Iterator[ServiceError]:
        value = client.access_token_validity_seconds
        if value is not None and value < 1:
            yield ServiceError.unprocessable(
                meta.code(5), "The access token validity must be at least 1 second."
            )

    @validator.rule(_CREATE, _UPDATE)
    def refresh_token_validity(client: Client, repo: ClientRepository) -> Iterator[ServiceError]:
        value = client.refresh_token_validity_seconds
        if value is not None and value < 1:
            yield ServiceError.unprocessable(
                meta.code(7), "The refresh token validity must be at least 1 second."
            )

    @validator.rule(_CREATE, _UPDATE)
    def references_exist(client: Client, repo: ClientRepository) -> Iterator[ServiceError]:
        for kind, members in client.embedded().items():
            yield from _missing_references(repo, kind, members)

    return validator
