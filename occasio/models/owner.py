from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class IndividualOwner:
    """An event published by a single user."""

    user_id: int


@dataclass(frozen=True)
class OrganizationOwner:
    """An event published on behalf of an organization."""

    organization_id: int


Owner = Union[IndividualOwner, OrganizationOwner]


def owner_columns(owner: Owner) -> dict:
    """Map an owner onto the two mutually exclusive foreign key columns."""
    if isinstance(owner, IndividualOwner):
        return {"organizer_id": owner.user_id, "organization_id": None}
    if isinstance(owner, OrganizationOwner):
        return {"organizer_id": None, "organization_id": owner.organization_id}
    raise TypeError(f"Unsupported event owner: {owner!r}")
