"""Builders for typed resource specs from custom resource specs."""

from __future__ import annotations

from typing import Any, Callable

from ..constants import (
    KIND_COMPUTE_INSTANCE,
    KIND_DATABASE_INSTANCE,
    KIND_DEVOPS_PROJECT,
    KIND_INTERNET_GATEWAY,
    KIND_NAT_GATEWAY,
    KIND_NOSQL_TABLE,
    KIND_ROUTE_TABLE,
    KIND_SECURITY_GROUP,
    KIND_SUBNET,
    KIND_VPC,
)
from ..services.aws.models import (
    ComputeInstanceSpec,
    DatabaseInstanceSpec,
    DevOpsProjectSpec,
    IngressRule,
    InternetGatewaySpec,
    KeyAttribute,
    NatGatewaySpec,
    NoSQLTableSpec,
    ResourceSpec,
    Route,
    RouteTableSpec,
    SecurityGroupSpec,
    SubnetSpec,
    VpcSpec,
)

KEY_ATTRIBUTE_TYPES = {"S", "N", "B"}
BILLING_MODES = {"PAY_PER_REQUEST", "PROVISIONED"}


def _required(spec: dict[str, Any], key: str) -> Any:
    value = spec.get(key)
    if value is None or value == "":
        raise ValueError(f"{key} is required")
    return value


def _common(spec: dict[str, Any]) -> dict[str, Any]:
    """Extract the fields every kind shares.

    Without an id the displayName is what discovery and creation use, so one
    of the two must be set.

    Raises:
        ValueError: If neither id nor displayName is given
    """
    identifier = (spec.get("id") or "").strip() or None
    display_name = spec.get("displayName") or None
    if identifier is None and display_name is None:
        raise ValueError("either id or displayName is required")

    tags = spec.get("tags") or {}
    if not isinstance(tags, dict):
        raise ValueError("tags must be a map of strings")

    return {
        "id": identifier,
        "display_name": display_name,
        "tags": {str(k): str(v) for k, v in tags.items()},
        "region": spec.get("region") or None,
    }


def build_vpc_spec(spec: dict[str, Any]) -> VpcSpec:
    return VpcSpec(cidr_block=_required(spec, "cidrBlock"), **_common(spec))


def build_subnet_spec(spec: dict[str, Any]) -> SubnetSpec:
    return SubnetSpec(
        vpc_id=_required(spec, "vpcId"),
        cidr_block=_required(spec, "cidrBlock"),
        availability_zone=spec.get("availabilityZone"),
        map_public_ip_on_launch=bool(spec.get("mapPublicIpOnLaunch", False)),
        **_common(spec),
    )


def build_internet_gateway_spec(spec: dict[str, Any]) -> InternetGatewaySpec:
    return InternetGatewaySpec(vpc_id=spec.get("vpcId"), **_common(spec))


def build_nat_gateway_spec(spec: dict[str, Any]) -> NatGatewaySpec:
    connectivity = spec.get("connectivityType", "public")
    if connectivity not in ("public", "private"):
        raise ValueError("connectivityType must be public or private")
    if connectivity == "public" and not spec.get("allocationId"):
        raise ValueError("allocationId is required for a public NAT gateway")
    return NatGatewaySpec(
        subnet_id=_required(spec, "subnetId"),
        allocation_id=spec.get("allocationId"),
        connectivity_type=connectivity,
        **_common(spec),
    )


def build_route_table_spec(spec: dict[str, Any]) -> RouteTableSpec:
    routes = []
    for i, route in enumerate(spec.get("routes") or []):
        destination = route.get("destinationCidrBlock")
        if not destination:
            raise ValueError(f"routes[{i}].destinationCidrBlock is required")
        targets = [t for t in (route.get("gatewayId"), route.get("natGatewayId")) if t]
        if len(targets) != 1:
            raise ValueError(f"routes[{i}] must set exactly one of gatewayId or natGatewayId")
        routes.append(Route(
            destination_cidr_block=destination,
            gateway_id=route.get("gatewayId"),
            nat_gateway_id=route.get("natGatewayId"),
        ))
    return RouteTableSpec(vpc_id=_required(spec, "vpcId"), routes=routes, **_common(spec))


def build_security_group_spec(spec: dict[str, Any]) -> SecurityGroupSpec:
    rules = []
    for i, rule in enumerate(spec.get("ingressRules") or []):
        protocol = str(rule.get("protocol", "tcp"))
        if protocol != "-1" and (rule.get("fromPort") is None or rule.get("toPort") is None):
            raise ValueError(f"ingressRules[{i}] requires fromPort and toPort for protocol {protocol}")
        rules.append(IngressRule(
            protocol=protocol,
            from_port=rule.get("fromPort"),
            to_port=rule.get("toPort"),
            cidr_block=rule.get("cidrBlock", "0.0.0.0/0"),
            description=rule.get("description"),
        ))

    extra: dict[str, Any] = {}
    if spec.get("description"):
        extra["description"] = spec["description"]
    return SecurityGroupSpec(
        vpc_id=_required(spec, "vpcId"),
        ingress_rules=rules,
        **extra,
        **_common(spec),
    )


def build_compute_instance_spec(spec: dict[str, Any]) -> ComputeInstanceSpec:
    return ComputeInstanceSpec(
        image_id=_required(spec, "imageId"),
        instance_type=_required(spec, "instanceType"),
        subnet_id=spec.get("subnetId"),
        security_group_ids=list(spec.get("securityGroupIds") or []),
        key_name=spec.get("keyName"),
        **_common(spec),
    )


def _key_attribute(data: dict[str, Any] | None, field_name: str) -> KeyAttribute | None:
    if not data:
        return None
    name = data.get("name")
    if not name:
        raise ValueError(f"{field_name}.name is required")
    attr_type = data.get("type", "S")
    if attr_type not in KEY_ATTRIBUTE_TYPES:
        raise ValueError(f"{field_name}.type must be one of {sorted(KEY_ATTRIBUTE_TYPES)}")
    return KeyAttribute(name=name, type=attr_type)


def build_nosql_table_spec(spec: dict[str, Any]) -> NoSQLTableSpec:
    partition_key = _key_attribute(spec.get("partitionKey"), "partitionKey")
    if partition_key is None:
        raise ValueError("partitionKey is required")

    billing_mode = spec.get("billingMode", "PAY_PER_REQUEST")
    if billing_mode not in BILLING_MODES:
        raise ValueError(f"billingMode must be one of {sorted(BILLING_MODES)}")
    if billing_mode == "PROVISIONED" and (
        not spec.get("readCapacityUnits") or not spec.get("writeCapacityUnits")
    ):
        raise ValueError("readCapacityUnits and writeCapacityUnits are required for PROVISIONED billing")

    return NoSQLTableSpec(
        partition_key=partition_key,
        sort_key=_key_attribute(spec.get("sortKey"), "sortKey"),
        billing_mode=billing_mode,
        read_capacity_units=spec.get("readCapacityUnits"),
        write_capacity_units=spec.get("writeCapacityUnits"),
        **_common(spec),
    )


def build_database_instance_spec(spec: dict[str, Any]) -> DatabaseInstanceSpec:
    storage = _required(spec, "allocatedStorage")
    if not isinstance(storage, int) or storage <= 0:
        raise ValueError("allocatedStorage must be a positive integer")

    connection_secret = spec.get("connectionSecret") or {}
    return DatabaseInstanceSpec(
        engine=_required(spec, "engine"),
        instance_class=_required(spec, "instanceClass"),
        allocated_storage=storage,
        master_username=_required(spec, "masterUsername"),
        engine_version=spec.get("engineVersion"),
        db_name=spec.get("dbName"),
        publicly_accessible=bool(spec.get("publiclyAccessible", False)),
        subnet_group_name=spec.get("subnetGroupName"),
        vpc_security_group_ids=list(spec.get("vpcSecurityGroupIds") or []),
        skip_final_snapshot=bool(spec.get("skipFinalSnapshot", True)),
        connection_secret_name=connection_secret.get("name"),
        **_common(spec),
    )


def build_devops_project_spec(spec: dict[str, Any]) -> DevOpsProjectSpec:
    topic_arn = spec.get("notificationTopicArn") or None
    if topic_arn is not None and not str(topic_arn).startswith("arn:"):
        raise ValueError("notificationTopicArn must be an ARN")

    return DevOpsProjectSpec(
        description=spec.get("description"),
        notification_topic_arn=topic_arn,
        **_common(spec),
    )


SPEC_BUILDERS: dict[str, Callable[[dict[str, Any]], ResourceSpec]] = {
    KIND_VPC: build_vpc_spec,
    KIND_SUBNET: build_subnet_spec,
    KIND_INTERNET_GATEWAY: build_internet_gateway_spec,
    KIND_NAT_GATEWAY: build_nat_gateway_spec,
    KIND_ROUTE_TABLE: build_route_table_spec,
    KIND_SECURITY_GROUP: build_security_group_spec,
    KIND_COMPUTE_INSTANCE: build_compute_instance_spec,
    KIND_NOSQL_TABLE: build_nosql_table_spec,
    KIND_DATABASE_INSTANCE: build_database_instance_spec,
    KIND_DEVOPS_PROJECT: build_devops_project_spec,
}


def build_spec(kind: str, spec: dict[str, Any]) -> ResourceSpec:
    """Create a typed spec for a resource kind from a custom resource spec.

    Args:
        kind: Resource kind
        spec: Custom resource spec

    Returns:
        Typed spec

    Raises:
        ValueError: If the kind is unknown or the spec is invalid
    """
    try:
        builder = SPEC_BUILDERS[kind]
    except KeyError:
        raise ValueError(f"unsupported kind {kind}") from None
    return builder(spec or {})
