from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(slots=True)
class Address:
    city: str
    country: str


@dataclass(slots=True)
class User:
    """Aggregate root for a polling account and its lifecycle flags.

    ``created_at`` stays ``None`` until the store has inserted the record.
    """

    username: str
    email: str
    password_hash: str = field(repr=False)
    address: Address
    enabled: bool = False
    account_locked: bool = False
    created_at: datetime | None = None

    @property
    def is_new(self) -> bool:
        return self.created_at is None
