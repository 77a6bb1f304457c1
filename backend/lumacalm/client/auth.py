"""Authentication seam for the chat client.

Sign-in and session storage belong to the hosted auth service; the client
only needs to ask who is signed in and to sign out.
"""
from typing import NamedTuple, Protocol


class AuthUser(NamedTuple):
    """The signed-in user as reported by the auth service."""

    id: str
    email: str | None = None


class AuthProvider(Protocol):
    async def get_current_user(self) -> AuthUser | None: ...

    async def sign_out(self) -> None: ...


class NotAuthenticated(Exception):
    """Raised when a protected view is opened without a signed-in user."""

    def __init__(self, message: str = "Please sign in to continue."):
        self.message = message
        super().__init__(self.message)


async def require_user(auth: AuthProvider) -> AuthUser:
    """Return the signed-in user or raise NotAuthenticated."""
    user = await auth.get_current_user()
    if user is None:
        raise NotAuthenticated()
    return user
