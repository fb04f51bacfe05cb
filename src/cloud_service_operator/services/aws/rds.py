"""RDS DB instance adapter."""

from __future__ import annotations

import logging
from typing import Any

from ...constants import CONTROLLER_NAME, KIND_DATABASE_INSTANCE
from ...core.models import RemoteResource
from ..errors import NotFoundError
from .client import AWSAdapter
from .ec2 import MANAGED_BY_TAG, dict_to_tags
from .models import DatabaseInstanceSpec

logger = logging.getLogger(__name__)


class DatabaseInstanceAdapter(AWSAdapter):
    """Adapter for RDS DB instances.

    The master password is managed by RDS in Secrets Manager; the connection
    Secret only carries the endpoint and the ARN of that secret.
    """

    service = "rds"
    kind = KIND_DATABASE_INSTANCE
    spec_type = DatabaseInstanceSpec

    transient_states = frozenset({
        "creating",
        "modifying",
        "backing-up",
        "rebooting",
        "starting",
        "stopping",
        "upgrading",
        "renaming",
        "resetting-master-credentials",
        "maintenance",
        "configuring-enhanced-monitoring",
        "configuring-iam-database-auth",
        "configuring-log-exports",
        "converting-to-vpc",
        "moving-to-vpc",
        "storage-full",
        "storage-config-upgrade",
    })
    ok_states = frozenset({"available", "stopped", "storage-optimization"})
    failed_states = frozenset({
        "failed",
        "deleting",
        "incompatible-network",
        "incompatible-option-group",
        "incompatible-parameters",
        "incompatible-restore",
        "inaccessible-encryption-credentials",
        "inaccessible-encryption-credentials-recoverable",
        "restore-error",
    })

    def __init__(
        self,
        region: str | None = None,
        client: Any = None,
        skip_final_snapshot: bool = True,
    ) -> None:
        super().__init__(region=region, client=client)
        self.skip_final_snapshot = skip_final_snapshot

    @classmethod
    def from_spec(cls, spec: DatabaseInstanceSpec) -> DatabaseInstanceAdapter:
        return cls(region=spec.region, skip_final_snapshot=spec.skip_final_snapshot)

    @classmethod
    def from_raw_spec(cls, spec: dict[str, Any]) -> DatabaseInstanceAdapter:
        return cls(
            region=spec.get("region") or None,
            skip_final_snapshot=bool(spec.get("skipFinalSnapshot", True)),
        )

    def to_resource(self, item: dict[str, Any]) -> RemoteResource:
        endpoint = item.get("Endpoint") or {}
        return RemoteResource(
            identifier=item["DBInstanceIdentifier"],
            lifecycle_state=item.get("DBInstanceStatus", ""),
            display_name=item["DBInstanceIdentifier"],
            attributes={
                "engine": item.get("Engine"),
                "instance_class": item.get("DBInstanceClass"),
                "allocated_storage": item.get("AllocatedStorage"),
                "master_username": item.get("MasterUsername"),
                "endpoint": endpoint.get("Address"),
                "port": endpoint.get("Port"),
                "master_user_secret_arn": (item.get("MasterUserSecret") or {}).get("SecretArn"),
            },
        )

    def list_by_name(self, spec: DatabaseInstanceSpec) -> list[RemoteResource]:
        try:
            return [self.get(spec.display_name)]
        except NotFoundError:
            return []

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("describe_db_instances", DBInstanceIdentifier=identifier)
        instances = response.get("DBInstances", [])
        if not instances:
            raise NotFoundError(f"DB instance {identifier} not found", code="DBInstanceNotFound")
        return self.to_resource(instances[0])

    def create(self, spec: DatabaseInstanceSpec) -> RemoteResource:
        params: dict[str, Any] = {
            "DBInstanceIdentifier": spec.display_name,
            "Engine": spec.engine,
            "DBInstanceClass": spec.instance_class,
            "AllocatedStorage": spec.allocated_storage,
            "MasterUsername": spec.master_username,
            "ManageMasterUserPassword": True,
            "PubliclyAccessible": spec.publicly_accessible,
            "Tags": dict_to_tags({MANAGED_BY_TAG: CONTROLLER_NAME, **spec.tags}),
        }
        if spec.engine_version:
            params["EngineVersion"] = spec.engine_version
        if spec.db_name:
            params["DBName"] = spec.db_name
        if spec.subnet_group_name:
            params["DBSubnetGroupName"] = spec.subnet_group_name
        if spec.vpc_security_group_ids:
            params["VpcSecurityGroupIds"] = list(spec.vpc_security_group_ids)

        logger.info(f"Creating DB instance {spec.display_name} ({spec.engine}, {spec.instance_class})")
        response = self._call("create_db_instance", **params)
        return self.to_resource(response["DBInstance"])

    def update(self, current: RemoteResource, spec: DatabaseInstanceSpec) -> bool:
        if current.lifecycle_state != "available":
            logger.debug(f"DB instance {current.identifier} is {current.lifecycle_state}, skipping update")
            return False

        params: dict[str, Any] = {}
        if current.attributes.get("instance_class") != spec.instance_class:
            params["DBInstanceClass"] = spec.instance_class
        if current.attributes.get("allocated_storage") != spec.allocated_storage:
            params["AllocatedStorage"] = spec.allocated_storage
        if not params:
            return False

        logger.info(f"Modifying DB instance {current.identifier}: {sorted(params)}")
        self._call(
            "modify_db_instance",
            DBInstanceIdentifier=current.identifier,
            ApplyImmediately=True,
            **params,
        )
        return True

    def delete(self, identifier: str) -> None:
        params: dict[str, Any] = {"DBInstanceIdentifier": identifier}
        if self.skip_final_snapshot:
            params["SkipFinalSnapshot"] = True
        else:
            params["SkipFinalSnapshot"] = False
            params["FinalDBSnapshotIdentifier"] = f"{identifier}-final"
        self._call("delete_db_instance", **params)

    def connection_details(self, resource: RemoteResource) -> dict[str, str]:
        attrs = resource.attributes
        if not attrs.get("endpoint"):
            return {}
        details = {
            "id": resource.identifier,
            "endpoint": str(attrs["endpoint"]),
            "port": str(attrs.get("port") or ""),
            "engine": str(attrs.get("engine") or ""),
            "username": str(attrs.get("master_username") or ""),
        }
        if attrs.get("master_user_secret_arn"):
            details["masterUserSecretArn"] = str(attrs["master_user_secret_arn"])
        return details
