"""Kubernetes Secrets holding connection details of provisioned resources."""

from __future__ import annotations

import base64
import logging

from kubernetes import client

from ..constants import CONTROLLER_NAME, FIELD_MANAGER, LABEL_MANAGED_BY, LABEL_RESOURCE_KIND
from .rate_limit import rate_limit_k8s

logger = logging.getLogger(__name__)


def create_secret(
    api: client.CoreV1Api,
    namespace: str,
    secret_name: str,
    data: dict[str, str],
    labels: dict[str, str] | None = None,
) -> None:
    """Create an Opaque secret from plain-text ``data``.

    Raises:
        kubernetes.client.exceptions.ApiException: 409 when the secret exists
    """
    body = client.V1Secret(
        metadata=client.V1ObjectMeta(name=secret_name, namespace=namespace, labels=labels or {}),
        type="Opaque",
        data={key: base64.b64encode(value.encode("utf-8")).decode("utf-8") for key, value in data.items()},
    )
    rate_limit_k8s(api.create_namespaced_secret)(namespace=namespace, body=body, field_manager=FIELD_MANAGER)


def delete_secret(api: client.CoreV1Api, namespace: str, secret_name: str) -> None:
    rate_limit_k8s(api.delete_namespaced_secret)(name=secret_name, namespace=namespace)


class KubernetesCredentialClient:
    """Credential store backed by the Kubernetes Secrets API.

    Secrets are labelled as managed by the operator and, when ``kind`` is
    given, with the resource kind that published them.
    """

    def __init__(self, api: client.CoreV1Api | None = None, kind: str | None = None) -> None:
        self.api = api if api is not None else client.CoreV1Api()
        self.kind = kind

    def _labels(self) -> dict[str, str]:
        labels = {LABEL_MANAGED_BY: CONTROLLER_NAME}
        if self.kind:
            labels[LABEL_RESOURCE_KIND] = self.kind
        return labels

    def create_secret(self, name: str, namespace: str, data: dict[str, str]) -> bool:
        """Create the secret, returning False if it already exists."""
        try:
            create_secret(self.api, namespace, name, data, labels=self._labels())
        except client.exceptions.ApiException as e:
            if e.status != 409:
                raise
            logger.debug(f"Secret {namespace}/{name} already exists")
            return False
        return True

    def delete_secret(self, name: str, namespace: str) -> bool:
        """Delete the secret, returning False if it does not exist."""
        try:
            delete_secret(self.api, namespace, name)
        except client.exceptions.ApiException as e:
            if e.status != 404:
                raise
            logger.debug(f"Secret {namespace}/{name} already deleted")
            return False
        return True
