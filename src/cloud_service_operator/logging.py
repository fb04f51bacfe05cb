"""Structured logging configuration for the Cloud Service Operator."""

import json
import logging
import os
import sys
from typing import Any

from .utils.errors import sanitize_dict


class JsonLineFormatter(logging.Formatter):
    """Render every record as one JSON object per line.

    Records produced by :func:`log_resource_event` already carry a JSON
    message and are written as is.
    """

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, "structured", False):
            return record.getMessage()

        entry = {
            "time": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def setup_structured_logging() -> None:
    """Configure structured JSON logging at ``LOG_LEVEL`` (default INFO)."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonLineFormatter())
    level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=getattr(logging, level, logging.INFO), handlers=[handler], force=True)


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured event about one custom resource.

    Extra keyword arguments become additional fields; values under sensitive
    keys are redacted.
    """
    log_data = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
        "level": logging.getLevelName(level),
    }
    log_data.update(sanitize_dict(kwargs))
    logger.log(level, json.dumps(log_data, default=str), extra={"structured": True})
