"""Shared utilities for handlers."""

from __future__ import annotations

import os

from kubernetes import client, config

DEFAULT_REQUEUE_DELAY_SECONDS = 60.0


def requeue_delay() -> float:
    """Delay before retrying a reconcile that has not converged yet."""
    return float(os.getenv("REQUEUE_DELAY_SECONDS", str(DEFAULT_REQUEUE_DELAY_SECONDS)))


def drift_check_interval() -> int:
    """Interval of the periodic drift check, in seconds."""
    return int(os.getenv("DRIFT_CHECK_INTERVAL_SECONDS", "300"))


def get_core_api() -> client.CoreV1Api:
    """Get Kubernetes CoreV1Api client.

    Returns:
        CoreV1Api instance
    """
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()

    return client.CoreV1Api()


def retry_backoff() -> float:
    """Delay kopf waits before retrying a handler that raised an unexpected error."""
    return float(os.getenv("RETRY_BACKOFF_SECONDS", "10"))
