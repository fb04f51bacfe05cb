"""Tests for the RDS DB instance adapter."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import ClientError

from cloud_service_operator.core.deletion import DeletionEngine
from cloud_service_operator.core.engine import ReconciliationEngine
from cloud_service_operator.core.models import LifecycleClass, OSOKStatus, RemoteResource, SecretRef
from cloud_service_operator.services.aws.models import DatabaseInstanceSpec
from cloud_service_operator.services.aws.rds import DatabaseInstanceAdapter
from cloud_service_operator.services.errors import NotFoundError


def db(status: str = "available", endpoint: bool = True) -> dict:
    item = {
        "DBInstanceIdentifier": "orders-db",
        "DBInstanceStatus": status,
        "Engine": "postgres",
        "DBInstanceClass": "db.t3.micro",
        "AllocatedStorage": 20,
        "MasterUsername": "admin",
        "MasterUserSecret": {"SecretArn": "arn:aws:secretsmanager:eu-west-1:123456789012:secret:rds"},
    }
    if endpoint:
        item["Endpoint"] = {"Address": "orders-db.abc.eu-west-1.rds.amazonaws.com", "Port": 5432}
    return item


def spec(**kwargs) -> DatabaseInstanceSpec:
    params = {
        "engine": "postgres",
        "instance_class": "db.t3.micro",
        "allocated_storage": 20,
        "master_username": "admin",
        "display_name": "orders-db",
    }
    params.update(kwargs)
    return DatabaseInstanceSpec(**params)


def db_not_found() -> ClientError:
    return ClientError(
        {"Error": {"Code": "DBInstanceNotFound", "Message": "DBInstance orders-db not found."},
         "ResponseMetadata": {"HTTPStatusCode": 404}},
        "DescribeDBInstances",
    )


class TestDatabaseInstanceAdapter:
    """Test cases for DatabaseInstanceAdapter."""

    def test_create_uses_managed_password(self):
        """Test that the master password is managed by RDS."""
        client = MagicMock()
        client.create_db_instance.return_value = {"DBInstance": db("creating", endpoint=False)}

        resource = DatabaseInstanceAdapter(client=client).create(
            spec(engine_version="16.1", vpc_security_group_ids=["sg-1"], subnet_group_name="private")
        )

        kwargs = client.create_db_instance.call_args.kwargs
        assert kwargs["ManageMasterUserPassword"] is True
        assert "MasterUserPassword" not in kwargs
        assert kwargs["EngineVersion"] == "16.1"
        assert kwargs["VpcSecurityGroupIds"] == ["sg-1"]
        assert kwargs["DBSubnetGroupName"] == "private"
        assert resource.lifecycle_state == "creating"

    def test_get_not_found(self):
        """Test that a missing instance raises NotFoundError."""
        client = MagicMock()
        client.describe_db_instances.side_effect = db_not_found()

        with pytest.raises(NotFoundError):
            DatabaseInstanceAdapter(client=client).get("orders-db")

    def test_update_modifies_class_and_storage(self):
        """Test that changed class and storage are applied immediately."""
        client = MagicMock()
        adapter = DatabaseInstanceAdapter(client=client)

        assert adapter.update(adapter.to_resource(db()), spec(instance_class="db.t3.small", allocated_storage=50)) is True

        client.modify_db_instance.assert_called_once_with(
            DBInstanceIdentifier="orders-db",
            ApplyImmediately=True,
            DBInstanceClass="db.t3.small",
            AllocatedStorage=50,
        )

    def test_update_skipped_while_modifying(self):
        """Test that a busy instance is left alone."""
        client = MagicMock()
        adapter = DatabaseInstanceAdapter(client=client)

        assert adapter.update(adapter.to_resource(db("modifying")), spec(instance_class="db.t3.small")) is False

        client.modify_db_instance.assert_not_called()

    @pytest.mark.parametrize("skip,expected", [
        (True, {"DBInstanceIdentifier": "orders-db", "SkipFinalSnapshot": True}),
        (False, {
            "DBInstanceIdentifier": "orders-db",
            "SkipFinalSnapshot": False,
            "FinalDBSnapshotIdentifier": "orders-db-final",
        }),
    ])
    def test_delete_snapshot_policy(self, skip, expected):
        """Test that deletion honors skip_final_snapshot."""
        client = MagicMock()
        DatabaseInstanceAdapter(client=client, skip_final_snapshot=skip).delete("orders-db")
        client.delete_db_instance.assert_called_once_with(**expected)

    def test_from_spec(self):
        """Test that the adapter takes region and snapshot policy from the spec."""
        with patch("cloud_service_operator.services.aws.client.create_client") as mock_create:
            adapter = DatabaseInstanceAdapter.from_spec(spec(region="eu-west-1", skip_final_snapshot=False))
        assert adapter.region == "eu-west-1"
        assert adapter.skip_final_snapshot is False
        mock_create.assert_called_once_with("rds", "eu-west-1")

    def test_from_raw_spec(self):
        """Test that an unvalidated spec still selects region and snapshot policy."""
        with patch("cloud_service_operator.services.aws.client.create_client") as mock_create:
            adapter = DatabaseInstanceAdapter.from_raw_spec({"region": "eu-west-1", "skipFinalSnapshot": False})
        assert adapter.region == "eu-west-1"
        assert adapter.skip_final_snapshot is False
        mock_create.assert_called_once_with("rds", "eu-west-1")

    def test_connection_details(self):
        """Test the connection details published for an available instance."""
        adapter = DatabaseInstanceAdapter(client=MagicMock())

        details = adapter.connection_details(adapter.to_resource(db()))

        assert details["endpoint"] == "orders-db.abc.eu-west-1.rds.amazonaws.com"
        assert details["port"] == "5432"
        assert details["username"] == "admin"
        assert details["engine"] == "postgres"
        assert details["masterUserSecretArn"].startswith("arn:aws:secretsmanager")
        assert adapter.connection_details(adapter.to_resource(db(endpoint=False))) == {}

    def test_lifecycle(self):
        """Test classification of DB instance states."""
        adapter = DatabaseInstanceAdapter(client=MagicMock())
        assert adapter.classify_lifecycle(RemoteResource("d", "backing-up")) is LifecycleClass.TRANSIENT
        assert adapter.classify_lifecycle(RemoteResource("d", "stopped")) is LifecycleClass.TERMINAL_OK
        assert adapter.classify_lifecycle(RemoteResource("d", "incompatible-network")) is LifecycleClass.TERMINAL_FAILED

    def test_engine_publishes_connection_secret(self):
        """Test that an available bound instance writes its connection secret."""
        client = MagicMock()
        client.describe_db_instances.return_value = {"DBInstances": [db()]}
        credentials = MagicMock()
        credentials.create_secret.return_value = True
        engine = ReconciliationEngine(DatabaseInstanceAdapter(client=client), credentials=credentials)

        outcome = engine.reconcile(spec(id="orders-db"), OSOKStatus(), SecretRef("orders-db-connection", "apps"))

        assert outcome.succeeded is True
        name, namespace, data = credentials.create_secret.call_args.args
        assert (name, namespace) == ("orders-db-connection", "apps")
        assert data["port"] == "5432"

    def test_delete_already_gone(self):
        """Test that deleting a vanished instance succeeds and removes the secret."""
        client = MagicMock()
        client.delete_db_instance.side_effect = db_not_found()
        credentials = MagicMock()

        done, error = DeletionEngine(DatabaseInstanceAdapter(client=client), credentials).delete(
            OSOKStatus(identifier="orders-db"), SecretRef("orders-db-connection", "apps")
        )

        assert (done, error) == (True, None)
        credentials.delete_secret.assert_called_once_with("orders-db-connection", "apps")
