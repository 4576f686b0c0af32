"""
Report Come Play Backend — Rate Limiting Middleware
=====================================================

What:  Per-IP sliding-window rate limits, one window per named policy.
How:   Every request is checked against each policy that matches its method
       and path. The request is admitted only if every matching window has
       room, and is then recorded in all of them.

Policies (defaults from settings):
    global      every request                                  100 / 15 min
    auth        POST register, login, resend-verification       10 / 15 min
    submission  POST fields, reports, upload                    20 / 1 hour

Algorithm: Sliding Window Log
    1. Each (policy, IP) pair keeps a list of request timestamps
    2. Timestamps older than the window are dropped on every check
    3. A full window → 429 with Retry-After = seconds until the oldest
       entry expires

Single-process only: state lives in this middleware instance. Several
uvicorn workers each enforce their own windows.
"""

import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Optional, Tuple

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from reportcomeplay.config import settings
from reportcomeplay.middleware.logging import client_ip_of
from reportcomeplay.middleware.request_id import request_id_var

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitPolicy:
    """
    A named limit. Empty `methods`/`paths` match everything; paths compare
    without a trailing slash.
    """

    name: str
    limit: int
    window: int
    methods: FrozenSet[str] = field(default_factory=frozenset)
    paths: FrozenSet[str] = field(default_factory=frozenset)
    message: Optional[str] = None

    def matches(self, method: str, path: str) -> bool:
        if self.methods and method.upper() not in self.methods:
            return False
        if self.paths and path.rstrip("/") not in self.paths:
            return False
        return True


def default_policies() -> List[RateLimitPolicy]:
    return [
        RateLimitPolicy(
            name="global",
            limit=settings.rate_limit_requests,
            window=settings.rate_limit_window,
            message="Too many requests from this IP, please try again later.",
        ),
        RateLimitPolicy(
            name="auth",
            limit=settings.auth_rate_limit_requests,
            window=settings.auth_rate_limit_window,
            methods=frozenset({"POST"}),
            paths=frozenset({
                "/api/auth/register",
                "/api/auth/login",
                "/api/auth/resend-verification",
            }),
            message="Too many authentication attempts, please try again later.",
        ),
        RateLimitPolicy(
            name="submission",
            limit=settings.submission_rate_limit_requests,
            window=settings.submission_rate_limit_window,
            methods=frozenset({"POST"}),
            paths=frozenset({"/api/fields", "/api/reports", "/api/upload"}),
            message="Too many submissions, please try again later.",
        ),
    ]


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Args:
        policies: Override the settings-derived policies (tests use tiny limits)
        enabled:  Override settings.rate_limit_enabled
    """

    EXCLUDED_PATHS = {"/", "/health", "/docs", "/openapi.json", "/redoc"}

    def __init__(
        self,
        app,
        policies: Optional[Iterable[RateLimitPolicy]] = None,
        enabled: Optional[bool] = None,
        **kwargs,
    ):
        super().__init__(app, **kwargs)
        self.policies = list(policies) if policies is not None else default_policies()
        self.enabled = settings.rate_limit_enabled if enabled is None else enabled
        self._requests: Dict[Tuple[str, str], List[float]] = defaultdict(list)
        self._recorded = 0

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if not self.enabled or path in self.EXCLUDED_PATHS or request.method == "OPTIONS":
            return await call_next(request)

        client_ip = client_ip_of(request)
        now = time.time()
        matching = [p for p in self.policies if p.matches(request.method, path)]

        for policy in matching:
            key = (policy.name, client_ip)
            window_start = now - policy.window
            timestamps = [ts for ts in self._requests[key] if ts > window_start]
            self._requests[key] = timestamps

            if len(timestamps) >= policy.limit:
                retry_after = int(timestamps[0] + policy.window - now) + 1
                logger.warning(
                    "Rate limit '%s' exceeded for IP %s: %d requests in %ds window",
                    policy.name,
                    client_ip,
                    len(timestamps),
                    policy.window,
                )
                return self._reject(policy, retry_after)

        for policy in matching:
            self._requests[(policy.name, client_ip)].append(now)

        self._recorded += 1
        if self._recorded % 1000 == 0:
            self._cleanup_inactive(now)

        return await call_next(request)

    def _reject(self, policy: RateLimitPolicy, retry_after: int) -> JSONResponse:
        message = policy.message or (
            f"Too many requests. Please wait {retry_after} seconds before retrying."
        )
        return JSONResponse(
            status_code=429,
            content={
                "error": "rate_limit_exceeded",
                "message": message,
                "details": {"retry_after": retry_after, "policy": policy.name},
                "request_id": request_id_var.get("") or None,
            },
            headers={"Retry-After": str(retry_after)},
        )

    def _cleanup_inactive(self, now: float) -> None:
        """Drops (policy, IP) keys with no timestamps left inside their window."""
        windows = {p.name: p.window for p in self.policies}
        inactive = [
            key for key, timestamps in self._requests.items()
            if not timestamps or max(timestamps) < now - windows.get(key[0], 0)
        ]
        for key in inactive:
            del self._requests[key]
        if inactive:
            logger.debug("Cleaned up %d inactive rate-limit entries", len(inactive))
