"""End-to-end audience lifecycle: create, conflict, guarded delete, release."""

from __future__ import annotations

from iamctl.domain.entities import Audience
from iamctl.infrastructure.store import Store
from iamctl.services.client import ClientService
from iamctl.services.reference import AudienceService
from iamctl.services.result import ErrorKind
from tests.conftest import create_client


def test_audience_lifecycle(store: Store) -> None:
    audiences = AudienceService(store)

    first = audiences.create(Audience(name="user"))
    assert first.ok
    audience = first.or_raise()
    assert audience.id is not None
    assert audience.created == audience.updated

    second = audiences.create(Audience(name="user"))
    assert second.rejected()
    assert second.error is not None and second.error.kind is ErrorKind.CONFLICT
    assert second.messages() == ["This audience name is already in use."]

    client = create_client(store, "web", audiences=[audience])
    blocked = audiences.delete(audience)
    assert blocked.rejected()
    assert "1 client" in blocked.messages()[0]

    assert ClientService(store).delete(client).ok
    assert audiences.delete(audience).ok

    gone = audiences.find_by_id(audience.id)
    assert gone.error is not None and gone.error.kind is ErrorKind.NOT_FOUND
    assert gone.messages() == [f"No such audience id: {audience.id}"]
