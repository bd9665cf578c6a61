"""Per-provider circuit breaker state machine."""

from enum import Enum
from typing import Optional

import structlog
from pydantic import BaseModel, Field

logger = structlog.get_logger(__name__)


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half-open"


class CircuitBreakerConfig(BaseModel):
    """Circuit breaker configuration."""

    failure_threshold: int = Field(default=5, ge=1)
    open_duration: float = Field(default=60.0, gt=0, description="Seconds to stay open")


class CircuitBreaker:
    """Circuit breaker for one provider.

    The breaker holds no clock of its own; callers pass ``now`` (epoch
    seconds) so the owning registry controls time.
    """

    def __init__(self, name: str, config: Optional[CircuitBreakerConfig] = None):
        self.name = name
        self.config = config or CircuitBreakerConfig()
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.last_failure_time: float = 0.0

    def would_allow(self, now: float) -> bool:
        """Same answer as ``allows_request`` without changing state."""
        if self.state != CircuitState.OPEN:
            return True
        return now - self.last_failure_time > self.config.open_duration

    def allows_request(self, now: float) -> bool:
        """Check whether calls may flow, moving open -> half-open once cooled down."""
        if self.state != CircuitState.OPEN:
            return True

        if now - self.last_failure_time > self.config.open_duration:
            self.state = CircuitState.HALF_OPEN
            logger.info("circuit_half_open", provider=self.name)
            return True

        return False

    def record_success(self) -> None:
        if self.state == CircuitState.HALF_OPEN:
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            logger.info("circuit_closed", provider=self.name)

    def record_failure(self, now: float) -> bool:
        """Count a failure; return True when this failure opened the circuit."""
        self.failure_count += 1
        if self.failure_count < self.config.failure_threshold:
            return False

        was_open = self.state == CircuitState.OPEN
        self.state = CircuitState.OPEN
        self.last_failure_time = now
        if not was_open:
            logger.warning(
                "circuit_opened", provider=self.name, failure_count=self.failure_count
            )
        return not was_open

    def force_open(self, now: float) -> None:
        self.state = CircuitState.OPEN
        self.last_failure_time = now
        self.failure_count = max(self.failure_count, self.config.failure_threshold)

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN

    @property
    def is_closed(self) -> bool:
        return self.state == CircuitState.CLOSED

    def reset(self) -> None:
        self.state = CircuitState.CLOSED
        self.failure_count = 0
        self.last_failure_time = 0.0
