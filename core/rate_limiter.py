"""
Rate Limiting System.

Per-client request ceiling over a sliding window. Each client key keeps the
timestamps of its recent requests; a request is allowed while fewer than
`requests` timestamps fall inside the last `window` seconds.

Key Components:
- `RateLimitRule`: number of requests allowed per window.
- `MemoryRateLimiter`: in-process sliding-window log. Suitable for a single
  instance; several instances behind a load balancer each enforce their own
  ceiling.
  Windows of clients that have gone quiet are dropped whenever the table
  doubles past its last live size.
- `RateLimitMiddleware` (in `core.security_middleware`) applies the limiter
  to every request.
"""

import threading
import time
from collections import deque
from dataclasses import dataclass
from typing import Any, Deque, Dict, Optional, Tuple

from core.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class RateLimitRule:
    """Rate limit rule configuration"""

    requests: int  # Number of requests allowed
    window: int  # Time window in seconds


class MemoryRateLimiter:
    """In-memory sliding-window rate limiter"""

    def __init__(
        self, default_rule: Optional[RateLimitRule] = None, prune_threshold: int = 1000
    ):
        self.rules: Dict[str, RateLimitRule] = {}
        self.windows: Dict[str, Deque[float]] = {}
        self.prune_threshold = prune_threshold
        self._prune_at = prune_threshold
        self._lock = threading.Lock()
        if default_rule is not None:
            self.add_rule("default", default_rule)

    def add_rule(self, key: str, rule: RateLimitRule):
        """Add a rate limiting rule"""
        with self._lock:
            self.rules[key] = rule
        logger.info(
            f"Added rate limit rule for {key}: {rule.requests} requests per {rule.window}s"
        )

    def check_rate_limit(
        self, identifier: str, rule_key: str = "default", now: Optional[float] = None
    ) -> Tuple[bool, Dict[str, Any]]:
        """Record a request for `identifier` and report whether it is allowed"""
        now = time.time() if now is None else now

        with self._lock:
            # Idle clients are dropped once the table outgrows its last live size
            if len(self.windows) >= self._prune_at:
                self._prune(now)
                self._prune_at = max(self.prune_threshold, 2 * len(self.windows))

            rule = self.rules.get(rule_key)
            if rule is None:
                return True, {"allowed": True, "remaining": None, "retry_after": 0}

            bucket_key = f"{rule_key}:{identifier}"
            window = self.windows.setdefault(bucket_key, deque())

            cutoff = now - rule.window
            while window and window[0] <= cutoff:
                window.popleft()

            if len(window) < rule.requests:
                window.append(now)
                allowed = True
                retry_after = 0
            else:
                allowed = False
                retry_after = max(1, int(window[0] + rule.window - now + 0.999))

            reset_at = (window[0] + rule.window) if window else now + rule.window

        info = {
            "allowed": allowed,
            "limit": rule.requests,
            "remaining": max(0, rule.requests - len(window)),
            "reset_at": int(reset_at),
            "retry_after": retry_after,
        }

        if not allowed:
            logger.warning(f"Rate limit exceeded for {identifier} on rule {rule_key}")

        return allowed, info

    def _prune(self, now: float) -> int:
        """Drop windows with no request inside their rule's window. Caller holds the lock."""
        removed = 0
        for bucket_key in list(self.windows):
            rule = self.rules.get(bucket_key.split(":", 1)[0])
            window = self.windows[bucket_key]
            if rule is None or not window or window[-1] <= now - rule.window:
                del self.windows[bucket_key]
                removed += 1
        if removed:
            logger.debug(f"Pruned {removed} idle rate limit windows")
        return removed
