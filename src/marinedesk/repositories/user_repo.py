from __future__ import annotations

from typing import Optional

from ..domain import User
from ..errors import NotFoundError
from ..store import State


class UserRepository:
    def upsert(self, state: State, user: User) -> User:
        state.users[user.id] = user
        return user

    def get(self, state: State, user_id: str) -> Optional[User]:
        return state.users.get(user_id)

    def get_by_username(self, state: State, username: str) -> Optional[User]:
        username = username.strip()
        for user in state.users.values():
            if user.username == username:
                return user
        return None

    def require_by_username(self, state: State, username: str) -> User:
        user = self.get_by_username(state, username)
        if user is None:
            raise NotFoundError(f"Unknown user: {username}")
        return user

    def list(self, state: State) -> list[User]:
        return list(state.users.values())
