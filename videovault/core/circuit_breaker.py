"""
Circuit breaker for the object storage collaborator.

After `failure_threshold` consecutive failures the breaker opens and every
call fails fast with CircuitBreakerOpenError. Once `recovery_timeout_sec`
has elapsed a single trial call is let through (HALF_OPEN) while further
calls keep failing fast: success closes the breaker, failure opens it again.
"""
import asyncio
import logging
import time
from enum import Enum
from threading import Lock
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from videovault.core.exceptions import CircuitBreakerOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """
    Usage:
        breaker = CircuitBreaker("object_storage", failure_threshold=5)
        result = await breaker.call(lambda: storage.upload(path))
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = 5,
        recovery_timeout_sec: float = 30,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._name = name
        self._failure_threshold = failure_threshold
        self._recovery_timeout_sec = recovery_timeout_sec
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: Optional[float] = None
        self._trial_in_flight = False
        # Guards state only; never held across an await
        self._lock = Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failure_count

    def snapshot(self) -> Dict[str, Any]:
        """State summary for readiness reporting."""
        with self._lock:
            return {
                "name": self._name,
                "state": self._state.value,
                "failure_count": self._failure_count,
            }

    async def call(
        self,
        func: Callable[[], Awaitable[T]],
        fallback: Optional[Callable[[], T]] = None,
    ) -> T:
        """
        Await `func()` unless the breaker is open.

        Raises:
            CircuitBreakerOpenError: If the breaker is open and no fallback is given
        """
        if not self._allow_call():
            if fallback is not None:
                logger.warning(f"Circuit breaker '{self._name}' open, serving fallback")
                return fallback()
            raise CircuitBreakerOpenError(self._name)

        try:
            result = await func()
        except asyncio.CancelledError:
            self._release_trial()
            raise
        except Exception as e:
            self._record_failure()
            if fallback is not None:
                logger.warning(f"Circuit breaker '{self._name}' call failed, serving fallback: {e}")
                return fallback()
            raise

        self._record_success()
        return result

    def reset(self) -> None:
        with self._lock:
            self._failure_count = 0
            self._trial_in_flight = False
            self._transition(CircuitState.CLOSED)

    def _allow_call(self) -> bool:
        with self._lock:
            if self._state is CircuitState.CLOSED:
                return True
            if self._state is CircuitState.HALF_OPEN:
                return not self._trial_in_flight
            if self._clock() - (self._opened_at or 0) < self._recovery_timeout_sec:
                return False
            self._transition(CircuitState.HALF_OPEN)
            self._trial_in_flight = True
            return True

    def _release_trial(self) -> None:
        with self._lock:
            self._trial_in_flight = False

    def _record_success(self) -> None:
        with self._lock:
            self._trial_in_flight = False
            self._failure_count = 0
            if self._state is CircuitState.HALF_OPEN:
                self._transition(CircuitState.CLOSED)

    def _record_failure(self) -> None:
        with self._lock:
            self._trial_in_flight = False
            self._failure_count += 1
            trial_failed = self._state is CircuitState.HALF_OPEN
            if trial_failed or self._failure_count >= self._failure_threshold:
                self._opened_at = self._clock()
                self._transition(CircuitState.OPEN)

    def _transition(self, new_state: CircuitState) -> None:
        # Caller holds the lock
        if new_state is self._state:
            return
        previous, self._state = self._state, new_state
        if new_state is CircuitState.CLOSED:
            self._opened_at = None
        log = logger.error if new_state is CircuitState.OPEN else logger.info
        log(
            f"Circuit breaker '{self._name}' {previous.value} -> {new_state.value} "
            f"(failures={self._failure_count})"
        )
