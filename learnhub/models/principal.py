from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

Role = Literal["student", "admin"]
ROLES: tuple[Role, ...] = ("student", "admin")


@dataclass(frozen=True, slots=True)
class Principal:
    """The signed-in identity for one session.

    Built from the profile row after the identity provider has accepted
    the credentials or token.  Role is fixed for the lifetime of the
    principal; there is no promotion path inside a session.
    """

    user_id: str
    role: Role
    name: str
    email: str

    def has_role(self, role: str) -> bool:
        return self.role == role

    def is_student(self) -> bool:
        return self.role == "student"

    def is_admin(self) -> bool:
        return self.role == "admin"
