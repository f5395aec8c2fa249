"""
RateLimitTracker module for throttle backoff and retry bounds
"""

import math
from dataclasses import dataclass
from typing import Mapping, Optional


RATE_LIMIT_HEADER = 'x-amzn-ratelimit-limit'


def rate_limit_header(headers: Optional[Mapping[str, str]]) -> Optional[str]:
    """Return the rate limit header value, matched case-insensitively"""
    for name, value in (headers or {}).items():
        if name.lower() == RATE_LIMIT_HEADER:
            return value
    return None


def _positive(value: float) -> bool:
    # time.sleep rejects negative and NaN delays
    return math.isfinite(value) and value > 0


@dataclass
class RetryPolicy:
    """
    Bounds for self-healing retries (throttling and expired tokens)

    max_attempts of None means retry until the remote recovers. expiry_backoff
    only applies between repeated token-expiry retries (the first retry is
    immediate); throttle waits come from the restore rate.
    """
    max_attempts: Optional[int] = None
    expiry_backoff: float = 0.0
    max_delay: Optional[float] = None

    def allows(self, attempts: int) -> bool:
        """True if another retry is allowed after the given number of retries"""
        return self.max_attempts is None or attempts < self.max_attempts

    def expiry_delay(self, attempts: int) -> float:
        """Exponential delay before the next token-expiry retry"""
        if attempts <= 0 or self.expiry_backoff <= 0:
            return 0.0
        return self.cap(self.expiry_backoff * (2 ** (attempts - 1)))

    def cap(self, delay: float) -> float:
        if self.max_delay is not None:
            return min(delay, self.max_delay)
        return delay


class RateLimitTracker:
    """Computes throttle restore delays within the bounds of a RetryPolicy"""

    def __init__(self, policy: Optional[RetryPolicy] = None):
        self.policy = policy or RetryPolicy()

    def restore_delay(self, headers: Optional[Mapping[str, str]],
                      restore_rate: Optional[float]) -> Optional[float]:
        """
        Seconds to wait before retrying a throttled call

        Args:
            headers: Response headers of the throttled call
            restore_rate: Static restore rate of the operation in seconds

        Returns:
            1 / rate limit header when it is a positive finite number, else the restore rate,
            else None (no delay)
        """
        header_value = rate_limit_header(headers)
        if header_value is not None:
            try:
                rate = float(header_value)
            except (TypeError, ValueError):
                rate = None
            if rate is not None and _positive(rate):
                return self.policy.cap(1 / rate)

        if restore_rate is not None and _positive(float(restore_rate)):
            return self.policy.cap(float(restore_rate))

        return None

