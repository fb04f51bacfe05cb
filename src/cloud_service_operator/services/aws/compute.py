"""EC2 instance adapter."""

from __future__ import annotations

import logging
from typing import Any

from ...constants import KIND_COMPUTE_INSTANCE
from ...core.models import RemoteResource, RetryPolicy
from .ec2 import Ec2Adapter, tags_to_dict
from .models import ComputeInstanceSpec

logger = logging.getLogger(__name__)


class ComputeInstanceAdapter(Ec2Adapter):
    """Adapter for EC2 instances.

    Instances are waited on after launch: the reconcile blocks on a bounded
    poll until the instance leaves ``pending``.
    """

    kind = KIND_COMPUTE_INSTANCE
    spec_type = ComputeInstanceSpec
    resource_type = "instance"
    post_create_poll = RetryPolicy()

    transient_states = frozenset({"pending"})
    ok_states = frozenset({"running", "stopping", "stopped"})
    failed_states = frozenset({"shutting-down", "terminated"})

    def to_resource(self, item: dict[str, Any]) -> RemoteResource:
        tags = tags_to_dict(item.get("Tags"))
        return RemoteResource(
            identifier=item["InstanceId"],
            lifecycle_state=item.get("State", {}).get("Name", ""),
            display_name=tags.get("Name"),
            attributes={
                "instance_type": item.get("InstanceType"),
                "private_ip": item.get("PrivateIpAddress"),
                "public_ip": item.get("PublicIpAddress"),
                "tags": tags,
            },
        )

    def _instances(self, response: dict[str, Any]) -> list[dict[str, Any]]:
        return [
            instance
            for reservation in response.get("Reservations", [])
            for instance in reservation.get("Instances", [])
        ]

    def list_by_name(self, spec: ComputeInstanceSpec) -> list[RemoteResource]:
        response = self._call("describe_instances", Filters=self.name_filters(spec))
        return [self.to_resource(item) for item in self._instances(response)]

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("describe_instances", InstanceIds=[identifier])
        return self._single(self._instances(response), identifier)

    def create(self, spec: ComputeInstanceSpec) -> RemoteResource:
        params: dict[str, Any] = {
            "ImageId": spec.image_id,
            "InstanceType": spec.instance_type,
            "MinCount": 1,
            "MaxCount": 1,
            "MetadataOptions": {"HttpTokens": "required", "HttpEndpoint": "enabled"},
            "TagSpecifications": self.tag_specifications(spec),
        }
        if spec.subnet_id:
            params["SubnetId"] = spec.subnet_id
        if spec.security_group_ids:
            params["SecurityGroupIds"] = list(spec.security_group_ids)
        if spec.key_name:
            params["KeyName"] = spec.key_name

        logger.info(f"Launching instance {spec.display_name} ({spec.instance_type}, {spec.image_id})")
        response = self._call("run_instances", **params)
        return self.to_resource(response["Instances"][0])

    def delete(self, identifier: str) -> None:
        self._call("terminate_instances", InstanceIds=[identifier])
