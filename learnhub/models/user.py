from __future__ import annotations

import datetime
from dataclasses import dataclass
from uuid import uuid4

from learnhub.models.principal import Principal, Role


def now_ts() -> int:
    return int(datetime.datetime.now(datetime.UTC).timestamp())


@dataclass(frozen=True, slots=True)
class UserProfile:
    """Row of the ``users`` table.

    password_hash is only populated by the local identity provider, which
    keeps credentials on the profile row.  Hosted providers own the
    credentials and leave it None.
    """

    id: str
    name: str
    email: str
    role: Role = "student"
    password_hash: str | None = None
    created_at: int = 0

    @staticmethod
    def new(
        *,
        name: str,
        email: str,
        role: Role = "student",
        password_hash: str | None = None,
        id: str | None = None,
    ) -> UserProfile:
        return UserProfile(
            id=id or str(uuid4()),
            name=name,
            email=email,
            role=role,
            password_hash=password_hash,
            created_at=now_ts(),
        )

    def to_principal(self) -> Principal:
        return Principal(
            user_id=self.id, role=self.role, name=self.name, email=self.email
        )
