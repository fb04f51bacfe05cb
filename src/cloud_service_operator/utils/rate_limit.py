"""Client-side rate limiting for Kubernetes and AWS API calls.

Handlers run on kopf's worker threads, so each API family is guarded by its
own lock and calls are spaced process-wide.
"""

from __future__ import annotations

import os
import threading
import time
from functools import wraps
from typing import Any, Callable, TypeVar

_F = TypeVar("_F", bound=Callable[..., Any])

_K8S_RATE_LIMIT_PER_SECOND = float(os.getenv("K8S_RATE_LIMIT_PER_SECOND", "10.0"))
_AWS_RATE_LIMIT_PER_SECOND = float(os.getenv("AWS_RATE_LIMIT_PER_SECOND", "5.0"))

_k8s_last_call_time: float = 0.0
_aws_last_call_time: float = 0.0

_k8s_lock = threading.Lock()
_aws_lock = threading.Lock()


def _throttle(rate_per_second: float, last_call_time: float) -> float:
    """Sleep until ``1 / rate_per_second`` has passed since ``last_call_time``.

    Returns:
        The time of the call about to be made
    """
    min_interval = 1.0 / rate_per_second
    elapsed = time.time() - last_call_time
    if elapsed < min_interval:
        time.sleep(min_interval - elapsed)
    return time.time()


def rate_limit_k8s(func: _F) -> _F:
    """Space calls to the Kubernetes API by ``K8S_RATE_LIMIT_PER_SECOND``."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _k8s_last_call_time
        with _k8s_lock:
            _k8s_last_call_time = _throttle(_K8S_RATE_LIMIT_PER_SECOND, _k8s_last_call_time)
        return func(*args, **kwargs)

    return wrapper  # type: ignore


def rate_limit_aws(func: _F) -> _F:
    """Space calls to AWS by ``AWS_RATE_LIMIT_PER_SECOND``."""
    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        global _aws_last_call_time
        with _aws_lock:
            _aws_last_call_time = _throttle(_AWS_RATE_LIMIT_PER_SECOND, _aws_last_call_time)
        return func(*args, **kwargs)

    return wrapper  # type: ignore
