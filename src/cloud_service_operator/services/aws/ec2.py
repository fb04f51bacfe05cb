"""EC2 networking adapters: VPCs, subnets, gateways, route tables and security groups."""

from __future__ import annotations

import logging
from typing import Any

from ...constants import (
    CONTROLLER_NAME,
    KIND_INTERNET_GATEWAY,
    KIND_NAT_GATEWAY,
    KIND_ROUTE_TABLE,
    KIND_SECURITY_GROUP,
    KIND_SUBNET,
    KIND_VPC,
)
from ...core.models import RemoteResource
from ..errors import NotFoundError, ProviderError
from .client import AWSAdapter
from .models import (
    IngressRule,
    InternetGatewaySpec,
    NatGatewaySpec,
    Route,
    RouteTableSpec,
    SecurityGroupSpec,
    SubnetSpec,
    VpcSpec,
)

logger = logging.getLogger(__name__)

MANAGED_BY_TAG = "managed-by"

# Route tables and security groups have no lifecycle on EC2
STATELESS_STATE = "available"


def tags_to_dict(tags: list[dict[str, str]] | None) -> dict[str, str]:
    """Convert an EC2 tag list to a dict."""
    return {tag["Key"]: tag["Value"] for tag in tags or []}


def dict_to_tags(tags: dict[str, str]) -> list[dict[str, str]]:
    """Convert a dict to an EC2 tag list."""
    return [{"Key": key, "Value": value} for key, value in tags.items()]


class Ec2Adapter(AWSAdapter):
    """Shared EC2 behavior: Name-tag discovery and tag convergence."""

    service = "ec2"
    resource_type: str = ""

    def desired_tags(self, spec: Any) -> dict[str, str]:
        tags = {MANAGED_BY_TAG: CONTROLLER_NAME, **spec.tags}
        if spec.display_name:
            tags["Name"] = spec.display_name
        return tags

    def tag_specifications(self, spec: Any) -> list[dict[str, Any]]:
        return [{"ResourceType": self.resource_type, "Tags": dict_to_tags(self.desired_tags(spec))}]

    def name_filters(self, spec: Any) -> list[dict[str, Any]]:
        return [{"Name": "tag:Name", "Values": [spec.display_name]}]

    def sync_tags(self, current: RemoteResource, spec: Any) -> bool:
        """Add or overwrite tags that differ. Tags not managed here are left alone.

        Returns:
            Whether any tag was written
        """
        existing = current.attributes.get("tags", {})
        changed = {k: v for k, v in self.desired_tags(spec).items() if existing.get(k) != v}
        if not changed:
            return False
        logger.info(f"Updating tags of {self.kind} {current.identifier}: {sorted(changed)}")
        self._call("create_tags", Resources=[current.identifier], Tags=dict_to_tags(changed))
        return True

    def update(self, current: RemoteResource, spec: Any) -> bool:
        return self.sync_tags(current, spec)

    def _single(self, items: list[dict[str, Any]], identifier: str) -> RemoteResource:
        if not items:
            raise NotFoundError(f"{self.kind} {identifier} not found", code="NotFound")
        return self.to_resource(items[0])

    def to_resource(self, item: dict[str, Any]) -> RemoteResource:
        raise NotImplementedError


class VpcAdapter(Ec2Adapter):
    """Adapter for EC2 VPCs."""

    kind = KIND_VPC
    spec_type = VpcSpec
    resource_type = "vpc"

    transient_states = frozenset({"pending"})
    ok_states = frozenset({"available"})

    def to_resource(self, item: dict[str, Any]) -> RemoteResource:
        tags = tags_to_dict(item.get("Tags"))
        return RemoteResource(
            identifier=item["VpcId"],
            lifecycle_state=item.get("State", ""),
            display_name=tags.get("Name"),
            attributes={"cidr_block": item.get("CidrBlock"), "tags": tags},
        )

    def list_by_name(self, spec: VpcSpec) -> list[RemoteResource]:
        response = self._call("describe_vpcs", Filters=self.name_filters(spec))
        return [self.to_resource(item) for item in response.get("Vpcs", [])]

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("describe_vpcs", VpcIds=[identifier])
        return self._single(response.get("Vpcs", []), identifier)

    def create(self, spec: VpcSpec) -> RemoteResource:
        logger.info(f"Creating VPC {spec.display_name} with CIDR {spec.cidr_block}")
        response = self._call(
            "create_vpc",
            CidrBlock=spec.cidr_block,
            TagSpecifications=self.tag_specifications(spec),
        )
        return self.to_resource(response["Vpc"])

    def delete(self, identifier: str) -> None:
        self._call("delete_vpc", VpcId=identifier)


class SubnetAdapter(Ec2Adapter):
    """Adapter for EC2 subnets."""

    kind = KIND_SUBNET
    spec_type = SubnetSpec
    resource_type = "subnet"

    transient_states = frozenset({"pending"})
    ok_states = frozenset({"available"})

    def to_resource(self, item: dict[str, Any]) -> RemoteResource:
        tags = tags_to_dict(item.get("Tags"))
        return RemoteResource(
            identifier=item["SubnetId"],
            lifecycle_state=item.get("State", ""),
            display_name=tags.get("Name"),
            attributes={
                "vpc_id": item.get("VpcId"),
                "cidr_block": item.get("CidrBlock"),
                "availability_zone": item.get("AvailabilityZone"),
                "map_public_ip_on_launch": bool(item.get("MapPublicIpOnLaunch", False)),
                "tags": tags,
            },
        )

    def name_filters(self, spec: SubnetSpec) -> list[dict[str, Any]]:
        return super().name_filters(spec) + [{"Name": "vpc-id", "Values": [spec.vpc_id]}]

    def list_by_name(self, spec: SubnetSpec) -> list[RemoteResource]:
        response = self._call("describe_subnets", Filters=self.name_filters(spec))
        return [self.to_resource(item) for item in response.get("Subnets", [])]

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("describe_subnets", SubnetIds=[identifier])
        return self._single(response.get("Subnets", []), identifier)

    def create(self, spec: SubnetSpec) -> RemoteResource:
        params: dict[str, Any] = {
            "VpcId": spec.vpc_id,
            "CidrBlock": spec.cidr_block,
            "TagSpecifications": self.tag_specifications(spec),
        }
        if spec.availability_zone:
            params["AvailabilityZone"] = spec.availability_zone

        logger.info(f"Creating subnet {spec.display_name} in {spec.vpc_id}")
        response = self._call("create_subnet", **params)
        resource = self.to_resource(response["Subnet"])
        if spec.map_public_ip_on_launch:
            self._set_map_public_ip(resource.identifier, True)
        return resource

    def update(self, current: RemoteResource, spec: SubnetSpec) -> bool:
        changed = False
        if current.attributes.get("map_public_ip_on_launch") != spec.map_public_ip_on_launch:
            self._set_map_public_ip(current.identifier, spec.map_public_ip_on_launch)
            changed = True
        return self.sync_tags(current, spec) or changed

    def _set_map_public_ip(self, identifier: str, value: bool) -> None:
        self._call(
            "modify_subnet_attribute",
            SubnetId=identifier,
            MapPublicIpOnLaunch={"Value": value},
        )

    def delete(self, identifier: str) -> None:
        self._call("delete_subnet", SubnetId=identifier)


class InternetGatewayAdapter(Ec2Adapter):
    """Adapter for EC2 internet gateways.

    An internet gateway has no state of its own; its lifecycle state is the
    state of its VPC attachment, or ``detached`` without one.
    """

    kind = KIND_INTERNET_GATEWAY
    spec_type = InternetGatewaySpec
    resource_type = "internet-gateway"

    transient_states = frozenset({"attaching", "detaching"})
    ok_states = frozenset({"available", "attached", "detached"})

    def to_resource(self, item: dict[str, Any]) -> RemoteResource:
        tags = tags_to_dict(item.get("Tags"))
        attachments = item.get("Attachments") or []
        state = attachments[0].get("State", "") if attachments else "detached"
        return RemoteResource(
            identifier=item["InternetGatewayId"],
            lifecycle_state=state,
            display_name=tags.get("Name"),
            attributes={
                "vpc_ids": [a["VpcId"] for a in attachments if a.get("VpcId")],
                "tags": tags,
            },
        )

    def list_by_name(self, spec: InternetGatewaySpec) -> list[RemoteResource]:
        response = self._call("describe_internet_gateways", Filters=self.name_filters(spec))
        return [self.to_resource(item) for item in response.get("InternetGateways", [])]

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("describe_internet_gateways", InternetGatewayIds=[identifier])
        return self._single(response.get("InternetGateways", []), identifier)

    def create(self, spec: InternetGatewaySpec) -> RemoteResource:
        logger.info(f"Creating internet gateway {spec.display_name}")
        response = self._call("create_internet_gateway", TagSpecifications=self.tag_specifications(spec))
        resource = self.to_resource(response["InternetGateway"])
        if not spec.vpc_id:
            return resource

        try:
            self._attach(resource.identifier, spec.vpc_id)
        except ProviderError:
            # Remove the detached gateway so that the next attempt starts clean
            self._call("delete_internet_gateway", InternetGatewayId=resource.identifier)
            raise
        return self.get(resource.identifier)

    def update(self, current: RemoteResource, spec: InternetGatewaySpec) -> bool:
        changed = False
        if spec.vpc_id and spec.vpc_id not in current.attributes.get("vpc_ids", []):
            self._attach(current.identifier, spec.vpc_id)
            changed = True
        return self.sync_tags(current, spec) or changed

    def _attach(self, identifier: str, vpc_id: str) -> None:
        logger.info(f"Attaching internet gateway {identifier} to {vpc_id}")
        self._call("attach_internet_gateway", InternetGatewayId=identifier, VpcId=vpc_id)

    def delete(self, identifier: str) -> None:
        current = self.get(identifier)
        for vpc_id in current.attributes.get("vpc_ids", []):
            logger.info(f"Detaching internet gateway {identifier} from {vpc_id}")
            self._call("detach_internet_gateway", InternetGatewayId=identifier, VpcId=vpc_id)
        self._call("delete_internet_gateway", InternetGatewayId=identifier)


class NatGatewayAdapter(Ec2Adapter):
    """Adapter for EC2 NAT gateways."""

    kind = KIND_NAT_GATEWAY
    spec_type = NatGatewaySpec
    resource_type = "natgateway"

    transient_states = frozenset({"pending"})
    ok_states = frozenset({"available"})
    failed_states = frozenset({"failed", "deleting", "deleted"})

    def to_resource(self, item: dict[str, Any]) -> RemoteResource:
        tags = tags_to_dict(item.get("Tags"))
        return RemoteResource(
            identifier=item["NatGatewayId"],
            lifecycle_state=item.get("State", ""),
            display_name=tags.get("Name"),
            attributes={
                "subnet_id": item.get("SubnetId"),
                "failure_message": item.get("FailureMessage"),
                "tags": tags,
            },
        )

    def list_by_name(self, spec: NatGatewaySpec) -> list[RemoteResource]:
        # The NAT gateway API names its filter parameter "Filter"
        response = self._call("describe_nat_gateways", Filter=self.name_filters(spec))
        return [self.to_resource(item) for item in response.get("NatGateways", [])]

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("describe_nat_gateways", NatGatewayIds=[identifier])
        return self._single(response.get("NatGateways", []), identifier)

    def create(self, spec: NatGatewaySpec) -> RemoteResource:
        params: dict[str, Any] = {
            "SubnetId": spec.subnet_id,
            "ConnectivityType": spec.connectivity_type,
            "TagSpecifications": self.tag_specifications(spec),
        }
        if spec.allocation_id:
            params["AllocationId"] = spec.allocation_id

        logger.info(f"Creating NAT gateway {spec.display_name} in {spec.subnet_id}")
        response = self._call("create_nat_gateway", **params)
        return self.to_resource(response["NatGateway"])

    def delete(self, identifier: str) -> None:
        self._call("delete_nat_gateway", NatGatewayId=identifier)


class RouteTableAdapter(Ec2Adapter):
    """Adapter for EC2 route tables."""

    kind = KIND_ROUTE_TABLE
    spec_type = RouteTableSpec
    resource_type = "route-table"

    ok_states = frozenset({STATELESS_STATE})

    def to_resource(self, item: dict[str, Any]) -> RemoteResource:
        tags = tags_to_dict(item.get("Tags"))
        destinations = sorted(
            route["DestinationCidrBlock"] for route in item.get("Routes", []) if route.get("DestinationCidrBlock")
        )
        return RemoteResource(
            identifier=item["RouteTableId"],
            lifecycle_state=STATELESS_STATE,
            display_name=tags.get("Name"),
            attributes={"vpc_id": item.get("VpcId"), "destinations": destinations, "tags": tags},
        )

    def name_filters(self, spec: RouteTableSpec) -> list[dict[str, Any]]:
        return super().name_filters(spec) + [{"Name": "vpc-id", "Values": [spec.vpc_id]}]

    def list_by_name(self, spec: RouteTableSpec) -> list[RemoteResource]:
        response = self._call("describe_route_tables", Filters=self.name_filters(spec))
        return [self.to_resource(item) for item in response.get("RouteTables", [])]

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("describe_route_tables", RouteTableIds=[identifier])
        return self._single(response.get("RouteTables", []), identifier)

    def create(self, spec: RouteTableSpec) -> RemoteResource:
        logger.info(f"Creating route table {spec.display_name} in {spec.vpc_id}")
        response = self._call(
            "create_route_table",
            VpcId=spec.vpc_id,
            TagSpecifications=self.tag_specifications(spec),
        )
        identifier = response["RouteTable"]["RouteTableId"]
        for route in spec.routes:
            self._create_route(identifier, route)
        if not spec.routes:
            return self.to_resource(response["RouteTable"])
        return self.get(identifier)

    def update(self, current: RemoteResource, spec: RouteTableSpec) -> bool:
        existing = set(current.attributes.get("destinations", []))
        missing = [route for route in spec.routes if route.destination_cidr_block not in existing]
        for route in missing:
            self._create_route(current.identifier, route)
        return self.sync_tags(current, spec) or bool(missing)

    def _create_route(self, identifier: str, route: Route) -> None:
        params: dict[str, Any] = {
            "RouteTableId": identifier,
            "DestinationCidrBlock": route.destination_cidr_block,
        }
        if route.gateway_id:
            params["GatewayId"] = route.gateway_id
        if route.nat_gateway_id:
            params["NatGatewayId"] = route.nat_gateway_id
        self._call("create_route", **params)

    def delete(self, identifier: str) -> None:
        self._call("delete_route_table", RouteTableId=identifier)


class SecurityGroupAdapter(Ec2Adapter):
    """Adapter for EC2 security groups."""

    kind = KIND_SECURITY_GROUP
    spec_type = SecurityGroupSpec
    resource_type = "security-group"

    ok_states = frozenset({STATELESS_STATE})

    def to_resource(self, item: dict[str, Any]) -> RemoteResource:
        tags = tags_to_dict(item.get("Tags"))
        return RemoteResource(
            identifier=item["GroupId"],
            lifecycle_state=STATELESS_STATE,
            display_name=tags.get("Name") or item.get("GroupName"),
            attributes={
                "vpc_id": item.get("VpcId"),
                "group_name": item.get("GroupName"),
                "ingress": item.get("IpPermissions", []),
                "tags": tags,
            },
        )

    def name_filters(self, spec: SecurityGroupSpec) -> list[dict[str, Any]]:
        return super().name_filters(spec) + [{"Name": "vpc-id", "Values": [spec.vpc_id]}]

    def list_by_name(self, spec: SecurityGroupSpec) -> list[RemoteResource]:
        response = self._call("describe_security_groups", Filters=self.name_filters(spec))
        return [self.to_resource(item) for item in response.get("SecurityGroups", [])]

    def get(self, identifier: str) -> RemoteResource:
        response = self._call("describe_security_groups", GroupIds=[identifier])
        return self._single(response.get("SecurityGroups", []), identifier)

    def create(self, spec: SecurityGroupSpec) -> RemoteResource:
        logger.info(f"Creating security group {spec.display_name} in {spec.vpc_id}")
        response = self._call(
            "create_security_group",
            GroupName=spec.display_name,
            Description=spec.description,
            VpcId=spec.vpc_id,
            TagSpecifications=self.tag_specifications(spec),
        )
        group_id = response["GroupId"]
        if spec.ingress_rules:
            self._call(
                "authorize_security_group_ingress",
                GroupId=group_id,
                IpPermissions=[ip_permission(rule) for rule in spec.ingress_rules],
            )
        return RemoteResource(
            identifier=group_id,
            lifecycle_state=STATELESS_STATE,
            display_name=spec.display_name,
            attributes={"vpc_id": spec.vpc_id, "group_name": spec.display_name, "tags": self.desired_tags(spec)},
        )

    def delete(self, identifier: str) -> None:
        self._call("delete_security_group", GroupId=identifier)


def ip_permission(rule: IngressRule) -> dict[str, Any]:
    """Build an EC2 IpPermissions entry from an ingress rule."""
    ip_range: dict[str, Any] = {"CidrIp": rule.cidr_block}
    if rule.description:
        ip_range["Description"] = rule.description
    permission: dict[str, Any] = {"IpProtocol": rule.protocol, "IpRanges": [ip_range]}
    if rule.from_port is not None:
        permission["FromPort"] = rule.from_port
    if rule.to_port is not None:
        permission["ToPort"] = rule.to_port
    return permission
