"""
Unit Tests for the Anonymous Auth Gate
======================================
Coalescing, bounded waits and background sign-in.
"""

import asyncio
import time

import pytest

from ourin_core.auth_gate import AuthGate, AuthGateFailure, AuthStatus
from ourin_core.config import AuthGateConfig

from .conftest import FakeAuthProvider


class TestEnsureAuthenticated:
    """Tests for ensure_authenticated()."""

    @pytest.mark.asyncio
    async def test_already_authenticated(self, gate_config):
        """Authenticated provider resolves True without signing in."""
        provider = FakeAuthProvider(is_authenticated=True)

        async with AuthGate(provider, gate_config) as gate:
            assert await gate.ensure_authenticated() is True
            assert gate.status == AuthStatus.AUTHENTICATED

        assert provider.sign_in_calls == []

    @pytest.mark.asyncio
    async def test_signs_in_anonymously(self, provider, gate_config):
        """Unauthenticated provider triggers one anonymous sign-in."""
        async with AuthGate(provider, gate_config) as gate:
            assert await gate.ensure_authenticated() is True
            assert gate.is_authenticated is True
            assert gate.sign_in_in_flight is False
            assert gate.last_failure is None

        assert provider.sign_in_calls == ["anonymous"]

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_sign_in(self, gate_config):
        """10 concurrent callers produce exactly one sign-in."""
        provider = FakeAuthProvider(sign_in_delay=0.05)

        async with AuthGate(provider, gate_config) as gate:
            results = await asyncio.gather(
                *(gate.ensure_authenticated() for _ in range(10))
            )

        assert results == [True] * 10
        assert provider.sign_in_calls == ["anonymous"]

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_failure(self, gate_config):
        """All coalesced callers see the same failed outcome."""
        provider = FakeAuthProvider(sign_in_delay=0.05, fail_with=RuntimeError("boom"))

        async with AuthGate(provider, gate_config) as gate:
            results = await asyncio.gather(
                *(gate.ensure_authenticated() for _ in range(10))
            )

        assert results == [False] * 10
        assert len(provider.sign_in_calls) == 1

    @pytest.mark.asyncio
    async def test_joiners_agree_with_slow_attempt(self, gate_config):
        """Joiners outlast an attempt that finishes just inside sign_in_timeout."""
        provider = FakeAuthProvider(sign_in_delay=0.45)

        async with AuthGate(provider, gate_config) as gate:
            results = await asyncio.gather(
                *(gate.ensure_authenticated() for _ in range(5))
            )

        assert results == [True] * 5
        assert provider.sign_in_calls == ["anonymous"]

    def test_default_join_timeout_covers_attempt(self):
        config = AuthGateConfig()

        assert config.in_flight_timeout >= config.sign_in_timeout + config.propagation_timeout

    @pytest.mark.asyncio
    async def test_in_flight_marked_before_first_suspension(self, gate_config):
        """A second caller started right after the first joins its attempt."""
        provider = FakeAuthProvider(sign_in_delay=0.05)

        async with AuthGate(provider, gate_config) as gate:
            first = asyncio.create_task(gate.ensure_authenticated())
            await asyncio.sleep(0)

            assert gate.sign_in_in_flight is True
            assert gate.status == AuthStatus.AUTHENTICATING

            second = asyncio.create_task(gate.ensure_authenticated())
            assert await first is True
            assert await second is True

        assert len(provider.sign_in_calls) == 1

    @pytest.mark.asyncio
    async def test_sign_in_failure_clears_flag_and_allows_retry(self, gate_config):
        """Provider rejection resolves False and a later call can retry."""
        provider = FakeAuthProvider(fail_with=RuntimeError("network down"))

        async with AuthGate(provider, gate_config) as gate:
            assert await gate.ensure_authenticated() is False
            assert gate.last_failure == AuthGateFailure.SIGN_IN_FAILED
            assert gate.sign_in_in_flight is False
            assert gate.status == AuthStatus.UNAUTHENTICATED

            provider.fail_with = None
            assert await gate.ensure_authenticated() is True
            assert gate.last_failure is None

        assert provider.sign_in_calls == ["anonymous", "anonymous"]

    @pytest.mark.asyncio
    async def test_state_never_propagates(self, gate_config):
        """sign_in resolving without an auth update times out to False."""
        provider = FakeAuthProvider(authenticate_on_sign_in=False)

        async with AuthGate(provider, gate_config) as gate:
            started = time.monotonic()
            assert await gate.ensure_authenticated() is False
            elapsed = time.monotonic() - started

            assert gate.last_failure == AuthGateFailure.TIMEOUT
            assert gate.sign_in_in_flight is False

        assert elapsed < gate_config.propagation_timeout + 1.0

    @pytest.mark.asyncio
    async def test_sign_in_call_hangs(self):
        """A provider call that never returns is bounded by sign_in_timeout."""
        provider = FakeAuthProvider(sign_in_delay=60)
        config = AuthGateConfig(sign_in_timeout=0.05, auto_sign_in=False)

        async with AuthGate(provider, config) as gate:
            assert await gate.ensure_authenticated() is False
            assert gate.last_failure == AuthGateFailure.TIMEOUT
            assert gate.sign_in_in_flight is False

    @pytest.mark.asyncio
    async def test_joiner_wait_is_bounded(self):
        """A caller joining a slow attempt returns best-known state on timeout."""
        provider = FakeAuthProvider(sign_in_delay=1.0)
        config = AuthGateConfig(
            in_flight_timeout=0.05,
            sign_in_timeout=5.0,
            auto_sign_in=False,
        )

        async with AuthGate(provider, config) as gate:
            first = asyncio.create_task(gate.ensure_authenticated())
            await asyncio.sleep(0)

            started = time.monotonic()
            assert await gate.ensure_authenticated() is False
            assert time.monotonic() - started < 0.5

            # The shared attempt is not cancelled by the joiner's timeout
            assert gate.sign_in_in_flight is True
            assert await first is True

        assert len(provider.sign_in_calls) == 1


class TestLoading:
    """Tests for calls made while the provider is still loading."""

    @pytest.mark.asyncio
    async def test_loading_never_resolves(self, gate_config):
        """Stuck provider resolves False within the loading timeout."""
        provider = FakeAuthProvider(is_loading=True)

        async with AuthGate(provider, gate_config) as gate:
            assert gate.status == AuthStatus.UNKNOWN

            started = time.monotonic()
            assert await gate.ensure_authenticated() is False
            elapsed = time.monotonic() - started

            assert gate.last_failure == AuthGateFailure.TIMEOUT

        assert elapsed < gate_config.loading_timeout + 0.5
        assert provider.sign_in_calls == []

    @pytest.mark.asyncio
    async def test_loading_resolves_authenticated(self, gate_config):
        """Restored session resolves True without signing in."""
        provider = FakeAuthProvider(is_loading=True)

        async with AuthGate(provider, gate_config) as gate:
            call = asyncio.create_task(gate.ensure_authenticated())
            await asyncio.sleep(0.01)
            provider.set_state(is_authenticated=True, is_loading=False)

            assert await call is True

        assert provider.sign_in_calls == []

    @pytest.mark.asyncio
    async def test_loading_resolves_unauthenticated(self, gate_config):
        """No session after loading falls through to sign-in."""
        provider = FakeAuthProvider(is_loading=True)

        async with AuthGate(provider, gate_config) as gate:
            call = asyncio.create_task(gate.ensure_authenticated())
            await asyncio.sleep(0.01)
            provider.set_state(is_loading=False)

            assert await call is True

        assert provider.sign_in_calls == ["anonymous"]

    @pytest.mark.asyncio
    async def test_waiting_callers_coalesce_after_loading(self, gate_config):
        """Callers queued during loading still share one sign-in."""
        provider = FakeAuthProvider(is_loading=True, sign_in_delay=0.02)

        async with AuthGate(provider, gate_config) as gate:
            calls = [asyncio.create_task(gate.ensure_authenticated()) for _ in range(5)]
            await asyncio.sleep(0.01)
            provider.set_state(is_loading=False)

            assert await asyncio.gather(*calls) == [True] * 5

        assert provider.sign_in_calls == ["anonymous"]


class TestAutoSignIn:
    """Tests for the background first-load sign-in."""

    @pytest.mark.asyncio
    async def test_auto_sign_in_on_start(self):
        """Settled unauthenticated provider is signed in on start."""
        provider = FakeAuthProvider()
        config = AuthGateConfig(auto_sign_in=True)

        async with AuthGate(provider, config) as gate:
            assert gate.sign_in_in_flight is True
            assert await gate.ensure_authenticated() is True

        assert provider.sign_in_calls == ["anonymous"]

    @pytest.mark.asyncio
    async def test_auto_sign_in_after_loading(self):
        """Background sign-in starts once loading settles unauthenticated."""
        provider = FakeAuthProvider(is_loading=True)
        config = AuthGateConfig(auto_sign_in=True)

        async with AuthGate(provider, config) as gate:
            assert gate.sign_in_in_flight is False

            provider.set_state(is_loading=False)
            assert gate.sign_in_in_flight is True

            assert await gate.ensure_authenticated() is True

        assert provider.sign_in_calls == ["anonymous"]

    @pytest.mark.asyncio
    async def test_auto_sign_in_runs_once(self):
        """Signing out later does not trigger another background attempt."""
        provider = FakeAuthProvider()
        config = AuthGateConfig(auto_sign_in=True)

        async with AuthGate(provider, config) as gate:
            assert await gate.ensure_authenticated() is True

            provider.set_state(is_authenticated=False)
            assert gate.sign_in_in_flight is False
            assert gate.status == AuthStatus.UNAUTHENTICATED

        assert provider.sign_in_calls == ["anonymous"]

    @pytest.mark.asyncio
    async def test_auto_sign_in_disabled(self, provider, gate_config):
        async with AuthGate(provider, gate_config) as gate:
            await asyncio.sleep(0)
            assert gate.sign_in_in_flight is False

        assert provider.sign_in_calls == []


class TestLifecycle:
    """Tests for construction, close and reset."""

    @pytest.mark.asyncio
    async def test_independent_gates(self, gate_config):
        """Gates on different providers never share in-flight state."""
        first_provider = FakeAuthProvider(sign_in_delay=0.02)
        second_provider = FakeAuthProvider(sign_in_delay=0.02)

        async with AuthGate(first_provider, gate_config) as first, \
                AuthGate(second_provider, gate_config) as second:
            results = await asyncio.gather(
                first.ensure_authenticated(),
                second.ensure_authenticated(),
            )

        assert results == [True, True]
        assert first_provider.sign_in_calls == ["anonymous"]
        assert second_provider.sign_in_calls == ["anonymous"]

    @pytest.mark.asyncio
    async def test_ensure_authenticated_starts_gate(self, provider, gate_config):
        """Using the gate without start() subscribes lazily."""
        gate = AuthGate(provider, gate_config)

        assert await gate.ensure_authenticated() is True
        assert provider.listener_count == 1

        await gate.close()
        assert provider.listener_count == 0

    @pytest.mark.asyncio
    async def test_close_cancels_in_flight(self, gate_config):
        """close() cancels a pending sign-in and unblocks joiners."""
        provider = FakeAuthProvider(sign_in_delay=60)
        config = AuthGateConfig(sign_in_timeout=120, in_flight_timeout=120, auto_sign_in=False)
        gate = AuthGate(provider, config)
        gate.start()

        call = asyncio.create_task(gate.ensure_authenticated())
        await asyncio.sleep(0.01)
        assert gate.sign_in_in_flight is True

        await gate.close()

        assert await call is False
        assert gate.sign_in_in_flight is False

    @pytest.mark.asyncio
    async def test_reset(self, gate_config):
        """reset() returns the gate to its initial state."""
        provider = FakeAuthProvider(fail_with=RuntimeError("boom"))
        gate = AuthGate(provider, gate_config)

        assert await gate.ensure_authenticated() is False
        assert gate.last_failure == AuthGateFailure.SIGN_IN_FAILED

        await gate.reset()

        assert gate.last_failure is None
        assert gate.sign_in_in_flight is False
        assert provider.listener_count == 0

    @pytest.mark.asyncio
    async def test_status_transitions(self, gate_config):
        provider = FakeAuthProvider(is_loading=True, sign_in_delay=0.02)

        async with AuthGate(provider, gate_config) as gate:
            assert gate.status == AuthStatus.UNKNOWN

            provider.set_state(is_loading=False)
            assert gate.status == AuthStatus.UNAUTHENTICATED

            call = asyncio.create_task(gate.ensure_authenticated())
            await asyncio.sleep(0)
            assert gate.status == AuthStatus.AUTHENTICATING

            assert await call is True
            assert gate.status == AuthStatus.AUTHENTICATED
