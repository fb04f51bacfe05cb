"""DynamoDB table adapter."""

from __future__ import annotations

import logging
from typing import Any

from ...constants import CONTROLLER_NAME, KIND_NOSQL_TABLE
from ...core.models import RemoteResource
from ..errors import NotFoundError
from .client import AWSAdapter
from .ec2 import MANAGED_BY_TAG, dict_to_tags
from .models import NoSQLTableSpec

logger = logging.getLogger(__name__)

PROVISIONED = "PROVISIONED"


class NoSQLTableAdapter(AWSAdapter):
    """Adapter for DynamoDB tables.

    DynamoDB keys tables by name, so the table name is both the display name
    and the identifier. Creation returns to the scheduler without waiting.
    """

    service = "dynamodb"
    kind = KIND_NOSQL_TABLE
    spec_type = NoSQLTableSpec

    transient_states = frozenset({"CREATING", "UPDATING"})
    ok_states = frozenset({"ACTIVE"})
    failed_states = frozenset({
        "DELETING",
        "ARCHIVING",
        "ARCHIVED",
        "INACCESSIBLE_ENCRYPTION_CREDENTIALS",
    })

    def to_resource(self, table: dict[str, Any]) -> RemoteResource:
        throughput = table.get("ProvisionedThroughput", {})
        billing = table.get("BillingModeSummary", {}).get("BillingMode", PROVISIONED)
        return RemoteResource(
            identifier=table["TableName"],
            lifecycle_state=table.get("TableStatus", ""),
            display_name=table["TableName"],
            attributes={
                "arn": table.get("TableArn"),
                "billing_mode": billing,
                "read_capacity_units": throughput.get("ReadCapacityUnits"),
                "write_capacity_units": throughput.get("WriteCapacityUnits"),
            },
        )

    def list_by_name(self, spec: NoSQLTableSpec) -> list[RemoteResource]:
        try:
            return [self.get(spec.display_name)]
        except NotFoundError:
            return []

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("describe_table", TableName=identifier)
        return self.to_resource(response["Table"])

    def create(self, spec: NoSQLTableSpec) -> RemoteResource:
        key_schema = [{"AttributeName": spec.partition_key.name, "KeyType": "HASH"}]
        attributes = [{"AttributeName": spec.partition_key.name, "AttributeType": spec.partition_key.type}]
        if spec.sort_key:
            key_schema.append({"AttributeName": spec.sort_key.name, "KeyType": "RANGE"})
            attributes.append({"AttributeName": spec.sort_key.name, "AttributeType": spec.sort_key.type})

        params: dict[str, Any] = {
            "TableName": spec.display_name,
            "KeySchema": key_schema,
            "AttributeDefinitions": attributes,
            "BillingMode": spec.billing_mode,
            "Tags": dict_to_tags({MANAGED_BY_TAG: CONTROLLER_NAME, **spec.tags}),
        }
        if spec.billing_mode == PROVISIONED:
            params["ProvisionedThroughput"] = self._throughput(spec)

        logger.info(f"Creating DynamoDB table {spec.display_name}")
        response = self._call("create_table", **params)
        return self.to_resource(response["TableDescription"])

    def update(self, current: RemoteResource, spec: NoSQLTableSpec) -> bool:
        if current.lifecycle_state != "ACTIVE":
            logger.debug(f"Table {current.identifier} is {current.lifecycle_state}, skipping update")
            return False

        params: dict[str, Any] = {}
        attrs = current.attributes
        if attrs.get("billing_mode") != spec.billing_mode:
            params["BillingMode"] = spec.billing_mode
        if spec.billing_mode == PROVISIONED and (
            attrs.get("read_capacity_units") != spec.read_capacity_units
            or attrs.get("write_capacity_units") != spec.write_capacity_units
        ):
            params["ProvisionedThroughput"] = self._throughput(spec)
        if not params:
            return False

        logger.info(f"Updating DynamoDB table {current.identifier}: {sorted(params)}")
        self._call("update_table", TableName=current.identifier, **params)
        return True

    def _throughput(self, spec: NoSQLTableSpec) -> dict[str, int]:
        return {
            "ReadCapacityUnits": spec.read_capacity_units or 1,
            "WriteCapacityUnits": spec.write_capacity_units or 1,
        }

    def delete(self, identifier: str) -> None:
        self._call("delete_table", TableName=identifier)
