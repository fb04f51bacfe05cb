"""Main entry point for the Cloud Service Operator."""

from __future__ import annotations

import os
from typing import Any

import kopf

from . import handlers  # noqa: F401
from . import health
from . import logging as structured_logging


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    # Set up structured JSON logging
    structured_logging.setup_structured_logging()

    # Keep handler progress out of the status subresource the engines own
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = 0
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = int(os.getenv("MAX_WORKERS", "4"))

    metrics_port = int(os.getenv("METRICS_PORT", "8080"))
    health.start_metrics_server(metrics_port)
    health.set_ready()


@kopf.on.cleanup()
def shutdown(**_: Any) -> None:
    """Report not ready while the operator stops."""
    health.set_ready(False)


def run() -> None:
    """Run the operator, scoped to WATCH_NAMESPACE when it is set."""
    namespace = os.getenv("WATCH_NAMESPACE", "")
    if namespace:
        kopf.run(namespaces=[ns.strip() for ns in namespace.split(",") if ns.strip()])
    else:
        kopf.run(clusterwide=True)


if __name__ == "__main__":
    run()
