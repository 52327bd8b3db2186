"""
Retry policy and backoff calculation for resilient requests.
"""

import random
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple


DEFAULT_RETRY_STATUS_CODES: Tuple[int, ...] = (408, 429, 500, 502, 503, 504)


@dataclass
class RetryPolicy:
    """Configuration for retry behavior.

    Delays are expressed in seconds.
    """

    max_retries: int = 3
    retry_delay: float = 1.0
    max_retry_delay: float = 30.0
    exponential_backoff: bool = True
    retry_status_codes: Tuple[int, ...] = field(default=DEFAULT_RETRY_STATUS_CODES)
    retry_network_errors: bool = True

    def to_dict(self) -> Dict[str, Any]:
        return {
            "max_retries": self.max_retries,
            "retry_delay": self.retry_delay,
            "max_retry_delay": self.max_retry_delay,
            "exponential_backoff": self.exponential_backoff,
            "retry_status_codes": list(self.retry_status_codes),
            "retry_network_errors": self.retry_network_errors,
        }


@dataclass(frozen=True)
class RetryState:
    """Retry bookkeeping for one logical request.

    ``count`` is the number of retries already performed; a state with
    ``count > 0`` belongs to a re-dispatch. Failures raised out of a
    re-dispatch surface as gateway errors and are never fed back into the
    retry path, so each failure is consumed by at most one retry.
    """

    count: int = 0

    def advance(self) -> "RetryState":
        return replace(self, count=self.count + 1)


def should_retry(status_code: Optional[int], policy: RetryPolicy) -> bool:
    """Check whether a failure with ``status_code`` qualifies for a retry.

    A missing status code means no response was received (network error).
    """
    if status_code is None:
        return policy.retry_network_errors

    return status_code in policy.retry_status_codes


def compute_delay(retry_count: int, policy: RetryPolicy) -> float:
    """Calculate the delay before retry number ``retry_count`` (0-based)."""
    if not policy.exponential_backoff:
        return policy.retry_delay

    delay = min(policy.retry_delay * (2 ** retry_count), policy.max_retry_delay)

    # additive jitter, 0-20% of the capped delay
    jitter = delay * 0.2 * random.random()
    return delay + jitter


def can_retry(state: RetryState, policy: Optional[RetryPolicy]) -> bool:
    """Check the retry ceiling for the next attempt of ``state``."""
    if policy is None:
        return False
    return state.count + 1 <= policy.max_retries
