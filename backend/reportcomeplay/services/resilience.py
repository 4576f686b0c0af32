"""
Report Come Play Backend — Outbound Call Resilience
=====================================================

What:  Circuit breaker and tenacity retry policy shared by every outbound
       HTTP integration (Supabase Storage, Resend email).
How:   Each integration owns one CircuitBreaker; the retrying coroutine is
       decorated with `outbound_retry()` and the breaker is consulted around it.
Who:   StorageService (supabase backend) and EmailService.

Error Handling Chain:
    HTTP call fails transiently → tenacity retries (N attempts with backoff)
    → all retries fail → breaker.record_failure()
    → threshold reached → later calls rejected instantly (CircuitBreakerOpenError)
    → recovery timeout → one trial call (HALF_OPEN) → CLOSED or back to OPEN
"""

import logging
import time
from typing import Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from reportcomeplay.config import settings
from reportcomeplay.exceptions import CircuitBreakerOpenError

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Circuit Breaker
# ══════════════════════════════════════════════════════════════════════════

class CircuitBreaker:
    """
    Circuit breaker for one upstream service.

    State Machine:
        CLOSED (normal operation)
            → On failure: increment failure_count
            → When failure_count >= threshold: transition to OPEN
        OPEN (rejecting all requests)
            → can_execute() raises CircuitBreakerOpenError
            → After recovery_timeout seconds: transition to HALF_OPEN
        HALF_OPEN (testing recovery)
            → On success: CLOSED (failure_count reset)
            → On failure: OPEN (timer reset)

    Not thread-safe: uvicorn async workers share one event loop per process,
    and each process keeps its own breaker.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        service: str,
        failure_threshold: int = 5,
        recovery_timeout: int = 60,
    ):
        self.service = service
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time: Optional[float] = None

    def can_execute(self) -> bool:
        """
        Returns True when a call may proceed.

        Raises:
            CircuitBreakerOpenError if OPEN and the recovery timeout hasn't elapsed.
        """
        if self.state == self.CLOSED:
            return True

        if self.state == self.OPEN:
            elapsed = time.time() - (self.last_failure_time or 0)
            if elapsed >= self.recovery_timeout:
                logger.info(
                    "Circuit breaker for %s transitioning to HALF_OPEN after %.1fs",
                    self.service,
                    elapsed,
                )
                self.state = self.HALF_OPEN
                return True
            remaining = int(self.recovery_timeout - elapsed)
            raise CircuitBreakerOpenError(service=self.service, recovery_time=remaining)

        return True

    def record_success(self) -> None:
        if self.state == self.HALF_OPEN:
            logger.info("Circuit breaker for %s transitioning to CLOSED", self.service)
        self.failure_count = 0
        self.state = self.CLOSED
        self.last_failure_time = None

    def record_failure(self) -> None:
        self.failure_count += 1
        self.last_failure_time = time.time()

        if self.state == self.HALF_OPEN:
            logger.warning(
                "Circuit breaker for %s returning to OPEN (trial call failed)",
                self.service,
            )
            self.state = self.OPEN
        elif self.failure_count >= self.failure_threshold:
            logger.warning(
                "Circuit breaker for %s OPENING after %d consecutive failures",
                self.service,
                self.failure_count,
            )
            self.state = self.OPEN


def build_circuit_breaker(service: str) -> CircuitBreaker:
    return CircuitBreaker(
        service=service,
        failure_threshold=settings.cb_failure_threshold,
        recovery_timeout=settings.cb_recovery_timeout,
    )


# ══════════════════════════════════════════════════════════════════════════
# Retry Policy
# ══════════════════════════════════════════════════════════════════════════

def is_transient_http_error(exc: BaseException) -> bool:
    """
    Network failures and 5xx/429 answers are worth retrying; any other
    4xx means the request itself is wrong and would fail again.
    """
    if isinstance(exc, httpx.TransportError):
        return True
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        return status >= 500 or status == 429
    return False


def outbound_retry():
    """
    Tenacity decorator for a single outbound HTTP call.

    wait = min(max_wait, min_wait * 2^attempt) + jitter; the last exception
    is re-raised unchanged once attempts run out.
    """
    return retry(
        retry=retry_if_exception(is_transient_http_error),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1 if settings.retry_max_wait else 0,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
