from unittest.mock import AsyncMock

from click.testing import CliRunner

from storesync.cli import sync_tenant as cli
from storesync.core.enums import ResourceType
from storesync.core.exceptions import AuthenticationError, TenantNotFoundError
from storesync.services.sync_service import SyncSummary


def test_sync_prints_summary(mocker):
    run_sync = mocker.patch.object(cli, "run_sync", AsyncMock(return_value=[
        SyncSummary(resource_type=ResourceType.CUSTOMERS, fetched=3, reconciled=2, failed=1, pages=1,
                    errors=["42: Customer could not be mapped"]),
    ]))
    mocker.patch.object(cli, "configure_logging")

    result = CliRunner().invoke(cli.sync_tenant, ["--shop-domain", "acme", "--resource", "customers"])

    assert result.exit_code == 0, result.output
    run_sync.assert_called_once_with("acme", "customers", None)
    assert "Reconciled: 2" in result.output
    assert "Failed: 1" in result.output
    assert "42: Customer could not be mapped" in result.output


def test_unknown_tenant_exits_with_error(mocker):
    mocker.patch.object(cli, "run_sync", AsyncMock(side_effect=TenantNotFoundError("No tenant for shop domain 'x'")))
    mocker.patch.object(cli, "configure_logging")

    result = CliRunner().invoke(cli.sync_tenant, ["--shop-domain", "x"])

    assert result.exit_code == 1
    assert "No tenant for shop domain" in result.output


def test_rejects_unknown_resource():
    result = CliRunner().invoke(cli.sync_tenant, ["--shop-domain", "x", "--resource", "inventory"])
    assert result.exit_code == 2


def test_cursor_is_passed_through(mocker):
    run_sync = mocker.patch.object(cli, "run_sync", AsyncMock(return_value=[
        SyncSummary(resource_type=ResourceType.ORDERS, fetched=1, reconciled=1, pages=1),
    ]))
    mocker.patch.object(cli, "configure_logging")

    result = CliRunner().invoke(
        cli.sync_tenant, ["--shop-domain", "acme", "--resource", "orders", "--cursor", "eyJsYXN0X2lkIjo0"]
    )

    assert result.exit_code == 0, result.output
    run_sync.assert_called_once_with("acme", "orders", "eyJsYXN0X2lkIjo0")


def test_cursor_requires_single_resource(mocker):
    run_sync = mocker.patch.object(cli, "run_sync", AsyncMock())

    result = CliRunner().invoke(cli.sync_tenant, ["--shop-domain", "acme", "--cursor", "abc"])

    assert result.exit_code == 2
    assert "--cursor needs a single --resource" in result.output
    run_sync.assert_not_called()


def test_aborted_sync_prints_resume_command(mocker):
    error = AuthenticationError("Invalid Shopify access token")
    error.resource_type = ResourceType.PRODUCTS
    error.resume_cursor = "eyJsYXN0X2lkIjo5"
    mocker.patch.object(cli, "run_sync", AsyncMock(side_effect=error))
    mocker.patch.object(cli, "configure_logging")

    result = CliRunner().invoke(cli.sync_tenant, ["--shop-domain", "acme", "--resource", "products"])

    assert result.exit_code == 1
    assert "Invalid Shopify access token" in result.output
    assert "Resume with: --resource products --cursor eyJsYXN0X2lkIjo5" in result.output
