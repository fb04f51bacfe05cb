"""AWS-backed resource adapters."""

from __future__ import annotations

from ...constants import (
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
from .client import AWSAdapter
from .codecommit import DevOpsProjectAdapter
from .compute import ComputeInstanceAdapter
from .dynamodb import NoSQLTableAdapter
from .ec2 import (
    InternetGatewayAdapter,
    NatGatewayAdapter,
    RouteTableAdapter,
    SecurityGroupAdapter,
    SubnetAdapter,
    VpcAdapter,
)
from .rds import DatabaseInstanceAdapter

ADAPTERS: dict[str, type[AWSAdapter]] = {
    KIND_VPC: VpcAdapter,
    KIND_SUBNET: SubnetAdapter,
    KIND_INTERNET_GATEWAY: InternetGatewayAdapter,
    KIND_NAT_GATEWAY: NatGatewayAdapter,
    KIND_ROUTE_TABLE: RouteTableAdapter,
    KIND_SECURITY_GROUP: SecurityGroupAdapter,
    KIND_COMPUTE_INSTANCE: ComputeInstanceAdapter,
    KIND_NOSQL_TABLE: NoSQLTableAdapter,
    KIND_DATABASE_INSTANCE: DatabaseInstanceAdapter,
    KIND_DEVOPS_PROJECT: DevOpsProjectAdapter,
}

__all__ = [
    "ADAPTERS",
    "AWSAdapter",
    "ComputeInstanceAdapter",
    "DatabaseInstanceAdapter",
    "DevOpsProjectAdapter",
    "InternetGatewayAdapter",
    "NatGatewayAdapter",
    "NoSQLTableAdapter",
    "RouteTableAdapter",
    "SecurityGroupAdapter",
    "SubnetAdapter",
    "VpcAdapter",
]
