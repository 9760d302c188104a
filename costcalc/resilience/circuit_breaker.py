"""
Circuit breaker for optional collaborators.

Used in front of the pricing cache: after repeated cache failures the
accessor stops calling the cache for a while and reads the durable store
directly. An open breaker never fails a calculation.
"""
from enum import Enum
import logging
import time
from typing import Any, Callable, Dict, Optional

from costcalc.core.config import config

logger = logging.getLogger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"  # Calls pass through
    OPEN = "open"  # Calls skipped
    HALF_OPEN = "half_open"  # One trial call allowed


class CircuitBreaker:
    """
    Consecutive-failure circuit breaker.

    CLOSED -> OPEN after failure_threshold consecutive failures.
    OPEN -> HALF_OPEN once open_seconds have elapsed.
    HALF_OPEN -> CLOSED on success, back to OPEN on failure.
    """

    def __init__(
        self,
        name: str,
        failure_threshold: int = config.CACHE_FAILURE_THRESHOLD,
        open_seconds: float = config.CACHE_OPEN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize circuit breaker.

        Args:
            name: Name of the protected collaborator (e.g., "pricing_cache")
            failure_threshold: Consecutive failures before opening
            open_seconds: Seconds to stay OPEN before allowing a trial call
            clock: Monotonic time source, injectable for tests
        """
        self.name = name
        self.failure_threshold = failure_threshold
        self.open_seconds = open_seconds
        self._clock = clock

        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at: Optional[float] = None
        self._trial_in_flight = False

    def _transition(self, new_state: CircuitState, reason: str) -> None:
        logger.warning(
            "Circuit breaker for %s: %s -> %s (%s)",
            self.name, self.state.name, new_state.name, reason
        )
        self.state = new_state

    def allow_request(self) -> bool:
        """
        Check whether the protected call should be attempted.

        Returns:
            True if the call may proceed, False to skip it
        """
        if self.state == CircuitState.OPEN:
            if self.opened_at is not None and self._clock() - self.opened_at >= self.open_seconds:
                self._transition(CircuitState.HALF_OPEN, "testing recovery")
                self._trial_in_flight = True
                return True
            return False

        if self.state == CircuitState.HALF_OPEN:
            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
            return True

        return True

    def release_trial(self) -> None:
        """Clear a half-open trial that ended without a recorded result (e.g. cancelled)."""
        self._trial_in_flight = False

    def record_success(self) -> None:
        """Reset the failure count; closes a half-open breaker."""
        if self.state == CircuitState.HALF_OPEN:
            self._transition(CircuitState.CLOSED, "collaborator recovered")
            self.opened_at = None
        self._trial_in_flight = False
        self.failure_count = 0

    def record_failure(self) -> None:
        """Count a failure; opens the breaker at the threshold."""
        self.failure_count += 1
        self._trial_in_flight = False

        if self.state == CircuitState.HALF_OPEN:
            self._transition(CircuitState.OPEN, "collaborator still failing")
            self.opened_at = self._clock()
        elif self.state == CircuitState.CLOSED and self.failure_count >= self.failure_threshold:
            self._transition(
                CircuitState.OPEN, f"{self.failure_count} consecutive failures"
            )
            self.opened_at = self._clock()

    def reset(self) -> None:
        """Force the breaker back to CLOSED."""
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.opened_at = None
        self._trial_in_flight = False

    def to_dict(self) -> Dict[str, Any]:
        """Breaker status for diagnostics."""
        return {
            "name": self.name,
            "state": self.state.value,
            "failure_count": self.failure_count,
        }


# Global circuit breaker instances (one per collaborator)
_circuit_breakers: Dict[str, CircuitBreaker] = {}


def get_circuit_breaker(name: str) -> CircuitBreaker:
    """
    Get or create the circuit breaker for a collaborator.

    Args:
        name: Collaborator name

    Returns:
        Shared CircuitBreaker instance
    """
    if name not in _circuit_breakers:
        _circuit_breakers[name] = CircuitBreaker(name)
    return _circuit_breakers[name]
