"""
Shared fixtures for ourin-core tests.
"""

import asyncio
from typing import List, Optional

import pytest

from ourin_core.auth_gate import AuthSnapshot
from ourin_core.config import AuthGateConfig

TEST_SECRET = "test-secret-key-for-testing-purposes"


class FakeAuthProvider:
    """
    In-memory auth provider.

    Like the real provider, sign_in() resolves before the authenticated
    state is reported to listeners.
    """

    def __init__(
        self,
        is_authenticated: bool = False,
        is_loading: bool = False,
        sign_in_delay: float = 0.0,
        fail_with: Optional[Exception] = None,
        authenticate_on_sign_in: bool = True,
    ):
        self.is_authenticated = is_authenticated
        self.is_loading = is_loading
        self.sign_in_delay = sign_in_delay
        self.fail_with = fail_with
        self.authenticate_on_sign_in = authenticate_on_sign_in
        self.sign_in_calls: List[str] = []
        self._listeners = []

    def subscribe(self, listener):
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_state(self, is_authenticated: Optional[bool] = None, is_loading: Optional[bool] = None):
        if is_authenticated is not None:
            self.is_authenticated = is_authenticated
        if is_loading is not None:
            self.is_loading = is_loading
        snapshot = AuthSnapshot(self.is_authenticated, self.is_loading)
        for listener in list(self._listeners):
            listener(snapshot)

    async def sign_in(self, method: str):
        self.sign_in_calls.append(method)
        await asyncio.sleep(self.sign_in_delay)
        if self.fail_with is not None:
            raise self.fail_with
        if self.authenticate_on_sign_in:
            asyncio.get_running_loop().call_soon(
                lambda: self.set_state(is_authenticated=True, is_loading=False)
            )
        return {"method": method}

    @property
    def listener_count(self) -> int:
        return len(self._listeners)


@pytest.fixture
def secret():
    return TEST_SECRET


@pytest.fixture
def provider():
    return FakeAuthProvider()


@pytest.fixture
def gate_config():
    """Short timeouts, no background sign-in."""
    return AuthGateConfig(
        loading_timeout=0.2,
        in_flight_timeout=0.7,
        propagation_timeout=0.2,
        sign_in_timeout=0.5,
        auto_sign_in=False,
    )
