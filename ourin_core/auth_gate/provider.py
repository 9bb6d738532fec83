"""Interface of the external auth provider consumed by the gate."""

from typing import Any, Callable, Protocol

from .models import AuthSnapshot

Listener = Callable[[AuthSnapshot], None]
Unsubscribe = Callable[[], None]


class AuthProvider(Protocol):
    """
    Protocol for the auth provider - allows swappable implementations.

    ``is_authenticated`` and ``is_loading`` are live; every change must be
    reported to subscribed listeners from the event loop thread.
    """

    is_authenticated: bool
    is_loading: bool

    async def sign_in(self, method: str) -> Any:
        """
        Start a sign-in with the given method (e.g. "anonymous").

        May resolve before the new state has been reported to listeners.
        """
        ...

    def subscribe(self, listener: Listener) -> Unsubscribe:
        """Register a state listener and return a function that removes it."""
        ...


def snapshot_of(provider: AuthProvider) -> AuthSnapshot:
    return AuthSnapshot(
        is_authenticated=bool(provider.is_authenticated),
        is_loading=bool(provider.is_loading),
    )
