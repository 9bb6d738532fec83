"""
Auth Gate Core
==============
Ensures an identity exists before calls that need a chat token.

Concurrent callers share a single anonymous sign-in attempt, and every wait
is bounded, so ``ensure_authenticated`` always resolves to a bool.
"""

import asyncio
import contextlib
from typing import Callable, Optional
import structlog

from ..config import AuthGateConfig
from .models import AuthGateFailure, AuthSnapshot, AuthStatus
from .provider import AuthProvider, Unsubscribe, snapshot_of

logger = structlog.get_logger(__name__)


class AuthGate:
    """
    Coordinates anonymous sign-in for one auth provider.

    Example:
        async with AuthGate(provider) as gate:
            if not await gate.ensure_authenticated():
                return show_retry()
            issued = await api.generate_chat_token()
    """

    def __init__(
        self,
        provider: AuthProvider,
        config: Optional[AuthGateConfig] = None,
    ):
        self.provider = provider
        self.config = config or AuthGateConfig()
        self._unsubscribe: Optional[Unsubscribe] = None
        self._init_state()

    def _init_state(self) -> None:
        self._snapshot = snapshot_of(self.provider)
        self._changed = asyncio.Event()
        self._sign_in_task: Optional[asyncio.Task] = None
        self._auto_attempted = False
        self.last_failure: Optional[AuthGateFailure] = None

    # --- Observables ---

    @property
    def is_authenticated(self) -> bool:
        return self._snapshot.is_authenticated

    @property
    def is_loading(self) -> bool:
        return self._snapshot.is_loading

    @property
    def sign_in_in_flight(self) -> bool:
        return self._sign_in_task is not None

    @property
    def status(self) -> AuthStatus:
        if self._snapshot.is_authenticated:
            return AuthStatus.AUTHENTICATED
        if self._sign_in_task is not None:
            return AuthStatus.AUTHENTICATING
        if self._snapshot.is_loading:
            return AuthStatus.UNKNOWN
        return AuthStatus.UNAUTHENTICATED

    # --- Lifecycle ---

    def start(self) -> None:
        """
        Subscribe to provider changes and run the first-load check.

        Must be called from a running event loop. Calling it again is a no-op.
        """
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.provider.subscribe(self._on_provider_change)
        self._on_provider_change(snapshot_of(self.provider))

    async def close(self) -> None:
        """Unsubscribe and cancel any in-flight sign-in."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        task = self._sign_in_task
        self._sign_in_task = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

    async def reset(self) -> None:
        """Close the gate and return it to its freshly constructed state."""
        await self.close()
        self._init_state()

    async def __aenter__(self) -> "AuthGate":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    # --- State transitions ---

    def _on_provider_change(self, snapshot: AuthSnapshot) -> None:
        self._snapshot = snapshot

        # Wake every waiter; each re-checks its own condition.
        changed, self._changed = self._changed, asyncio.Event()
        changed.set()

        self._maybe_auto_sign_in()

    def _maybe_auto_sign_in(self) -> None:
        if (
            not self.config.auto_sign_in
            or self._auto_attempted
            or self._snapshot.is_loading
            or self._snapshot.is_authenticated
            or self._sign_in_task is not None
        ):
            return

        self._auto_attempted = True
        logger.info("auth_gate_auto_sign_in", method=self.config.sign_in_method)
        self._begin_sign_in()

    def _begin_sign_in(self) -> asyncio.Task:
        # No await between the in-flight check and this assignment.
        task = asyncio.get_running_loop().create_task(self._sign_in())
        self._sign_in_task = task
        return task

    async def _sign_in(self) -> bool:
        try:
            return await self._run_sign_in(self.config.sign_in_method)
        finally:
            if self._sign_in_task is asyncio.current_task():
                self._sign_in_task = None

    async def _run_sign_in(self, method: str) -> bool:
        logger.debug("auth_gate_sign_in_started", method=method)
        try:
            await asyncio.wait_for(
                self.provider.sign_in(method),
                timeout=self.config.sign_in_timeout,
            )
        except asyncio.TimeoutError:
            self.last_failure = AuthGateFailure.TIMEOUT
            logger.warning(
                "auth_gate_timeout",
                stage="sign_in",
                timeout=self.config.sign_in_timeout,
            )
            return False
        except Exception as e:
            self.last_failure = AuthGateFailure.SIGN_IN_FAILED
            logger.error("auth_gate_sign_in_failed", method=method, error=str(e))
            return False

        # sign_in resolves before the provider reports the new state
        authenticated = await self._wait_until(
            lambda: self._snapshot.is_authenticated,
            self.config.propagation_timeout,
        )
        if authenticated:
            self.last_failure = None
            logger.info("auth_gate_signed_in", method=method)
        else:
            self.last_failure = AuthGateFailure.TIMEOUT
            logger.warning(
                "auth_gate_timeout",
                stage="propagation",
                timeout=self.config.propagation_timeout,
            )
        return authenticated

    async def _wait_until(self, predicate: Callable[[], bool], timeout: float) -> bool:
        """Suspend until predicate() holds or timeout elapses; return predicate()."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            remaining = deadline - loop.time()
            if remaining <= 0:
                return predicate()
            try:
                await asyncio.wait_for(self._changed.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                return predicate()
        return True

    async def _await_sign_in(self, task: asyncio.Task, timeout: Optional[float]) -> bool:
        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
        except asyncio.TimeoutError:
            self.last_failure = AuthGateFailure.TIMEOUT
            logger.warning("auth_gate_timeout", stage="in_flight", timeout=timeout)
            return self._snapshot.is_authenticated
        except asyncio.CancelledError:
            # Shared attempt cancelled by close(); the caller itself was not.
            if not task.cancelled():
                raise
            return self._snapshot.is_authenticated

    # --- Public API ---

    async def ensure_authenticated(self) -> bool:
        """
        Ensure the provider has an authenticated session.

        Signs in anonymously when needed, joining an attempt that is already
        in flight instead of starting a second one.

        Returns:
            True if authenticated, False if sign-in failed or a wait timed out
        """
        self.start()

        if self._snapshot.is_authenticated:
            return True

        if self._snapshot.is_loading:
            settled = await self._wait_until(
                lambda: not self._snapshot.is_loading,
                self.config.loading_timeout,
            )
            if self._snapshot.is_authenticated:
                return True
            if not settled:
                self.last_failure = AuthGateFailure.TIMEOUT
                logger.warning(
                    "auth_gate_timeout",
                    stage="loading",
                    timeout=self.config.loading_timeout,
                )
                return False

        task = self._sign_in_task
        if task is not None:
            return await self._await_sign_in(task, self.config.in_flight_timeout)

        # Bounded by sign_in_timeout + propagation_timeout inside the task.
        return await self._await_sign_in(self._begin_sign_in(), None)
