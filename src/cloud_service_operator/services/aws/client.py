"""boto3 client factory and the adapter base shared by AWS resource kinds."""

from __future__ import annotations

import logging
import os
import time
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

from ... import metrics
from ...utils.rate_limit import rate_limit_aws
from ..base import BaseAdapter
from ..errors import ThrottledError
from .errors import translate_client_error

logger = logging.getLogger(__name__)

DEFAULT_REGION = "us-east-1"


def default_region() -> str:
    """Region used when a resource does not set one."""
    return os.getenv("AWS_REGION") or os.getenv("AWS_DEFAULT_REGION") or DEFAULT_REGION


def create_client(service: str, region: str | None = None) -> Any:
    """Create a boto3 client using the standard credential chain.

    Args:
        service: AWS service name (e.g. "ec2", "dynamodb", "rds")
        region: Region override; defaults to AWS_REGION

    Returns:
        boto3 client
    """
    config = Config(
        retries={"max_attempts": 3, "mode": "standard"},
        user_agent_extra="cloud-service-operator",
    )
    return boto3.client(service, region_name=region or default_region(), config=config)


class AWSAdapter(BaseAdapter):
    """Base class for adapters backed by one boto3 client."""

    service: str = ""

    def __init__(self, region: str | None = None, client: Any = None) -> None:
        """Initialize the adapter.

        Args:
            region: AWS region; defaults to AWS_REGION
            client: Pre-built boto3 client, mainly for tests
        """
        self.region = region or default_region()
        self.client = client if client is not None else create_client(self.service, self.region)

    def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        """Invoke a client operation with rate limiting, metrics and error translation.

        Raises:
            ProviderError: If the call fails
        """
        start_time = time.time()
        try:
            response = rate_limit_aws(getattr(self.client, operation))(**kwargs)
            metrics.api_call_total.labels(api_type=self.service, operation=operation, result="success").inc()
            return response
        except ClientError as e:
            error = translate_client_error(e, operation)
            metrics.api_call_total.labels(api_type=self.service, operation=operation, result="error").inc()
            if isinstance(error, ThrottledError):
                metrics.rate_limit_hits_total.labels(api_type=self.service).inc()
            logger.debug(f"{self.service}.{operation} failed: {error.code}")
            raise error from e
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type=self.service, operation=operation).observe(duration)

    @classmethod
    def from_spec(cls, spec: Any) -> AWSAdapter:
        """Build an adapter for the region the spec targets."""
        return cls(region=getattr(spec, "region", None))

    @classmethod
    def from_raw_spec(cls, spec: dict[str, Any]) -> AWSAdapter:
        """Build an adapter from an unvalidated custom resource spec.

        Used where the spec no longer validates but the remote resource still
        has to be reached, such as deletion.
        """
        return cls(region=spec.get("region") or None)
