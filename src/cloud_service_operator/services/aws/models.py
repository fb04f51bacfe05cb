"""Typed specs for the AWS-backed resource kinds."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(kw_only=True)
class ResourceSpec:
    """Fields shared by every kind.

    ``id`` binds the custom resource to an existing provider resource. Without
    it the resource is discovered by ``display_name`` or created.
    """

    id: str | None = None
    display_name: str | None = None
    tags: dict[str, str] = field(default_factory=dict)
    region: str | None = None


@dataclass(kw_only=True)
class VpcSpec(ResourceSpec):
    cidr_block: str


@dataclass(kw_only=True)
class SubnetSpec(ResourceSpec):
    vpc_id: str
    cidr_block: str
    availability_zone: str | None = None
    map_public_ip_on_launch: bool = False


@dataclass(kw_only=True)
class InternetGatewaySpec(ResourceSpec):
    vpc_id: str | None = None


@dataclass(kw_only=True)
class NatGatewaySpec(ResourceSpec):
    subnet_id: str
    allocation_id: str | None = None
    connectivity_type: str = "public"


@dataclass(frozen=True)
class Route:
    """One route table entry. Exactly one target is set."""

    destination_cidr_block: str
    gateway_id: str | None = None
    nat_gateway_id: str | None = None


@dataclass(kw_only=True)
class RouteTableSpec(ResourceSpec):
    vpc_id: str
    routes: list[Route] = field(default_factory=list)


@dataclass(frozen=True)
class IngressRule:
    """Inbound rule of a security group."""

    protocol: str
    from_port: int | None = None
    to_port: int | None = None
    cidr_block: str = "0.0.0.0/0"
    description: str | None = None


@dataclass(kw_only=True)
class SecurityGroupSpec(ResourceSpec):
    vpc_id: str
    description: str = "Managed by cloud-service-operator"
    ingress_rules: list[IngressRule] = field(default_factory=list)


@dataclass(kw_only=True)
class ComputeInstanceSpec(ResourceSpec):
    image_id: str
    instance_type: str
    subnet_id: str | None = None
    security_group_ids: list[str] = field(default_factory=list)
    key_name: str | None = None


@dataclass(frozen=True)
class KeyAttribute:
    """DynamoDB key attribute (type is S, N or B)."""

    name: str
    type: str = "S"


@dataclass(kw_only=True)
class NoSQLTableSpec(ResourceSpec):
    partition_key: KeyAttribute
    sort_key: KeyAttribute | None = None
    billing_mode: str = "PAY_PER_REQUEST"
    read_capacity_units: int | None = None
    write_capacity_units: int | None = None


@dataclass(kw_only=True)
class DatabaseInstanceSpec(ResourceSpec):
    engine: str
    instance_class: str
    allocated_storage: int
    master_username: str
    engine_version: str | None = None
    db_name: str | None = None
    publicly_accessible: bool = False
    subnet_group_name: str | None = None
    vpc_security_group_ids: list[str] = field(default_factory=list)
    skip_final_snapshot: bool = True
    connection_secret_name: str | None = None


@dataclass(kw_only=True)
class DevOpsProjectSpec(ResourceSpec):
    """CodeCommit repository; ``notification_topic_arn`` receives its events."""

    description: str | None = None
    notification_topic_arn: str | None = None
