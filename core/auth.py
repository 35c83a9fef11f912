"""
Authentication context.

Login itself happens elsewhere; the front end reports the logged-in user
to this service (see routes.api). The peripheral services only need to know
whether someone is logged in, who it is, and the token to call the API with.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Iterable, Optional

from .exceptions import PermissionDeniedError


@dataclass(frozen=True)
class UserIdentity:
    """The logged-in user."""

    id: str
    name: str = ""
    role: str = ""


class AuthContext:
    """Current session's user and API token."""

    def __init__(self):
        self._user: Optional[UserIdentity] = None
        self._token: Optional[str] = None
        self._lock = threading.Lock()

    @property
    def user(self) -> Optional[UserIdentity]:
        return self._user

    @property
    def access_token(self) -> Optional[str]:
        return self._token

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None and bool(self._token)

    def login(self, user: UserIdentity, access_token: str) -> None:
        with self._lock:
            self._user = user
            self._token = access_token

    def logout(self) -> None:
        with self._lock:
            self._user = None
            self._token = None

    def require_role(self, action: str, allowed_roles: Iterable[str]) -> UserIdentity:
        """
        Check that the current user may perform an action.

        Raises:
            PermissionDeniedError: If nobody is logged in or the role is not allowed
        """
        user = self._user
        if user is None or not self.is_authenticated:
            raise PermissionDeniedError(action)
        allowed = {role.upper() for role in allowed_roles}
        if user.role.upper() not in allowed:
            raise PermissionDeniedError(action, user.role)
        return user
