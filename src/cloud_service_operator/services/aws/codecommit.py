"""CodeCommit repository adapter for DevOps projects."""

from __future__ import annotations

import logging
from typing import Any

from ...constants import CONTROLLER_NAME, KIND_DEVOPS_PROJECT
from ...core.models import RemoteResource
from ..errors import NotFoundError
from .client import AWSAdapter
from .ec2 import MANAGED_BY_TAG
from .models import DevOpsProjectSpec

logger = logging.getLogger(__name__)

# CodeCommit repositories have no lifecycle; a readable repository is active
REPOSITORY_ACTIVE = "ACTIVE"
NOTIFICATION_TRIGGER = f"{CONTROLLER_NAME}-notifications"


class DevOpsProjectAdapter(AWSAdapter):
    """Adapter for DevOps projects backed by CodeCommit repositories.

    The repository name is both the display name and the identifier. The
    notification topic is wired up as a repository trigger owned by the
    operator; triggers added by other tools are left in place.
    """

    service = "codecommit"
    kind = KIND_DEVOPS_PROJECT
    spec_type = DevOpsProjectSpec

    ok_states = frozenset({REPOSITORY_ACTIVE})

    def to_resource(self, metadata: dict[str, Any]) -> RemoteResource:
        return RemoteResource(
            identifier=metadata["repositoryName"],
            lifecycle_state=REPOSITORY_ACTIVE,
            display_name=metadata["repositoryName"],
            attributes={
                "arn": metadata.get("Arn"),
                "repository_id": metadata.get("repositoryId"),
                "description": metadata.get("repositoryDescription") or "",
                "clone_url_http": metadata.get("cloneUrlHttp"),
                "clone_url_ssh": metadata.get("cloneUrlSsh"),
            },
        )

    def list_by_name(self, spec: DevOpsProjectSpec) -> list[RemoteResource]:
        try:
            return [self.get(spec.display_name)]
        except NotFoundError:
            return []

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("get_repository", repositoryName=identifier)
        return self.to_resource(response["repositoryMetadata"])

    def create(self, spec: DevOpsProjectSpec) -> RemoteResource:
        logger.info(f"Creating CodeCommit repository {spec.display_name}")
        response = self._call(
            "create_repository",
            repositoryName=spec.display_name,
            repositoryDescription=spec.description or "",
            tags={MANAGED_BY_TAG: CONTROLLER_NAME, **spec.tags},
        )
        resource = self.to_resource(response["repositoryMetadata"])
        if spec.notification_topic_arn:
            self._sync_notification_trigger(resource.identifier, spec.notification_topic_arn)
        return resource

    def update(self, current: RemoteResource, spec: DevOpsProjectSpec) -> bool:
        changed = False
        if spec.description is not None and current.attributes.get("description") != spec.description:
            logger.info(f"Updating description of CodeCommit repository {current.identifier}")
            self._call(
                "update_repository_description",
                repositoryName=current.identifier,
                repositoryDescription=spec.description,
            )
            changed = True

        if spec.notification_topic_arn:
            changed = self._sync_notification_trigger(current.identifier, spec.notification_topic_arn) or changed
        return self._sync_tags(current, spec) or changed

    def _sync_notification_trigger(self, repository: str, topic_arn: str) -> bool:
        """Point the operator's repository trigger at ``topic_arn``.

        Returns:
            Whether the triggers were rewritten
        """
        triggers = self._call("get_repository_triggers", repositoryName=repository).get("triggers", [])
        ours = next((t for t in triggers if t.get("name") == NOTIFICATION_TRIGGER), None)
        if ours is not None and ours.get("destinationArn") == topic_arn:
            return False

        others = [t for t in triggers if t.get("name") != NOTIFICATION_TRIGGER]
        trigger = {"name": NOTIFICATION_TRIGGER, "destinationArn": topic_arn, "branches": [], "events": ["all"]}
        logger.info(f"Setting notification trigger of CodeCommit repository {repository}")
        self._call("put_repository_triggers", repositoryName=repository, triggers=others + [trigger])
        return True

    def _sync_tags(self, current: RemoteResource, spec: DevOpsProjectSpec) -> bool:
        arn = current.attributes.get("arn")
        if not spec.tags or not arn:
            return False
        existing = self._call("list_tags_for_resource", resourceArn=arn).get("tags", {})
        missing = {k: v for k, v in spec.tags.items() if existing.get(k) != v}
        if not missing:
            return False
        self._call("tag_resource", resourceArn=arn, tags=missing)
        return True

    def delete(self, identifier: str) -> None:
        self._call("delete_repository", repositoryName=identifier)
