"""Idempotent teardown of a bound remote resource."""

from __future__ import annotations

import logging

from ..constants import COND_TERMINATING, EVENT_REASON_DELETE_FAILED
from ..services.base import CredentialClient, ResourceAdapter
from ..services.errors import NotFoundError
from ..utils.conditions import merge_condition
from ..utils.errors import sanitize_exception
from .models import OSOKStatus, SecretRef

logger = logging.getLogger(__name__)


class DeletionEngine:
    """Deletes the remote resource recorded in a status record.

    Deleting is idempotent: an empty identifier or a resource the provider no
    longer knows both count as done. The owning object must keep its finalizer
    until :meth:`delete` reports done.
    """

    def __init__(
        self,
        adapter: ResourceAdapter,
        credentials: CredentialClient | None = None,
    ) -> None:
        self.adapter = adapter
        self.credentials = credentials

    def delete(
        self,
        status: OSOKStatus,
        secret_ref: SecretRef | None = None,
    ) -> tuple[bool, Exception | None]:
        """Delete the bound resource and any connection secret.

        Args:
            status: Status record; its identifier is cleared once deletion is confirmed
            secret_ref: Connection secret to remove after the primary delete

        Returns:
            Tuple of (done, error)
        """
        kind = self.adapter.kind
        if not status.identifier:
            logger.info(f"{kind} has no identifier, nothing to delete")
            return True, None

        identifier = status.identifier
        logger.info(f"Deleting {kind} {identifier}")
        try:
            self.adapter.delete(identifier)
        except NotFoundError:
            logger.info(f"{kind} {identifier} not found, treating as already deleted")
        except Exception as e:
            message = sanitize_exception(e)
            logger.error(f"Error while deleting {kind} {identifier}: {message}")
            merge_condition(status.conditions, COND_TERMINATING, "True", EVENT_REASON_DELETE_FAILED, message)
            return False, e

        status.identifier = ""
        self._delete_secret(secret_ref)
        return True, None

    def _delete_secret(self, secret_ref: SecretRef | None) -> None:
        if self.credentials is None or secret_ref is None:
            return
        try:
            self.credentials.delete_secret(secret_ref.name, secret_ref.namespace)
        except Exception as e:
            # Secret cleanup never blocks deletion of the owning object
            logger.error(
                f"Error while deleting connection secret {secret_ref.namespace}/{secret_ref.name}: "
                f"{sanitize_exception(e)}"
            )
