from __future__ import annotations

from dataclasses import replace
from typing import Protocol

from learnhub.models.user import UserProfile


class UserRepo(Protocol):
    async def get_by_id(self, user_id: str) -> UserProfile | None: ...
    async def get_by_email(self, email: str) -> UserProfile | None: ...
    async def add(self, user: UserProfile) -> None: ...
    async def delete(self, user_id: str) -> bool: ...
    async def update_password_hash(self, user_id: str, password_hash: str) -> None: ...


class InMemoryUserRepo:
    def __init__(self) -> None:
        self._by_email: dict[str, UserProfile] = {}
        self._by_id: dict[str, UserProfile] = {}

    async def get_by_id(self, user_id: str) -> UserProfile | None:
        return self._by_id.get(user_id)

    async def get_by_email(self, email: str) -> UserProfile | None:
        return self._by_email.get(email)

    async def add(self, user: UserProfile) -> None:
        if user.email in self._by_email:
            raise ValueError("email already exists")
        if user.id in self._by_id:
            raise ValueError("user id already exists")
        self._by_email[user.email] = user
        self._by_id[user.id] = user

    async def delete(self, user_id: str) -> bool:
        u = self._by_id.pop(user_id, None)
        if u is None:
            return False
        self._by_email.pop(u.email, None)
        return True

    async def update_password_hash(self, user_id: str, password_hash: str) -> None:
        u = self._by_id.get(user_id)
        if u is None:
            raise KeyError("user not found")

        updated = replace(u, password_hash=password_hash)
        self._by_id[user_id] = updated
        self._by_email[updated.email] = updated

    def clear(self) -> None:
        self._by_email.clear()
        self._by_id.clear()
