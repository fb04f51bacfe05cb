"""Redaction of credentials and account identifiers in error text.

Provider errors end up in status conditions, Kubernetes events and logs, all
of which are readable by far more people than the AWS account itself.
"""

import re
from typing import Any

REDACTED = "[REDACTED]"

# Each pattern captures the part to redact in group 1
_SENSITIVE_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"arn:aws[a-z\-]*:[a-z0-9\-]+:[a-z0-9\-]*:(\d{12})",
        r"account[_\s]?id[:\s]+(\d{12})",
        r"access[_\s]?key[_\s]?id[:\s]+([A-Z0-9]{20})",
        r"secret[_\s]?access[_\s]?key[:\s]+([A-Za-z0-9/+=]{40})",
        r"session[_\s]?token[:\s]+([A-Za-z0-9/+=]+)",
    )
]

SENSITIVE_FIELDS = frozenset({
    "access_key_id",
    "secret_access_key",
    "session_token",
    "master_user_password",
    "password",
    "secret",
    "credentials",
    "token",
})

_SENSITIVE_ASSIGNMENTS = [
    (field, re.compile(rf"\b{field}[:\s]+([^\s,;\)]+)", re.IGNORECASE))
    for field in sorted(SENSITIVE_FIELDS)
]


def _redact_group(match: re.Match) -> str:
    return match.group(0).replace(match.group(1), REDACTED)


def sanitize_error_message(message: str) -> str:
    """Return ``message`` with secrets and AWS account ids replaced by ``[REDACTED]``."""
    for pattern in _SENSITIVE_PATTERNS:
        message = pattern.sub(_redact_group, message)
    for field, pattern in _SENSITIVE_ASSIGNMENTS:
        message = pattern.sub(f"{field}: {REDACTED}", message)
    return message


def sanitize_exception(error: Exception) -> str:
    return sanitize_error_message(str(error))


def sanitize_dict(data: dict[str, Any], sensitive_keys: set[str] | None = None) -> dict[str, Any]:
    """Redact a mapping before it is logged.

    Keys containing any of ``SENSITIVE_FIELDS`` (or ``sensitive_keys``) lose
    their value entirely; string values are passed through
    :func:`sanitize_error_message`. Nested mappings and lists are walked.
    """
    keys = SENSITIVE_FIELDS | (sensitive_keys or set())

    def clean(value: Any) -> Any:
        if isinstance(value, dict):
            return sanitize_dict(value, sensitive_keys)
        if isinstance(value, list):
            return [clean(item) for item in value]
        if isinstance(value, str):
            return sanitize_error_message(value)
        return value

    return {
        key: REDACTED if any(s in key.lower() for s in keys) else clean(value)
        for key, value in data.items()
    }
