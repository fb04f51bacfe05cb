"""Utility functions for the Cloud Service Operator."""

from .conditions import (
    latest_condition,
    merge_condition,
    set_active_condition,
    set_failed_condition,
    set_provisioning_condition,
    set_updating_condition,
)
from .errors import sanitize_dict, sanitize_error_message, sanitize_exception
from .events import emit_event
from .rate_limit import rate_limit_aws, rate_limit_k8s
from .secrets import KubernetesCredentialClient

__all__ = [
    "latest_condition",
    "merge_condition",
    "set_active_condition",
    "set_failed_condition",
    "set_provisioning_condition",
    "set_updating_condition",
    "sanitize_dict",
    "sanitize_error_message",
    "sanitize_exception",
    "emit_event",
    "rate_limit_aws",
    "rate_limit_k8s",
    "KubernetesCredentialClient",
]
