"""
Pytest fixtures for the storage audit. Azure SDK clients are replaced with
SimpleNamespace-based fakes shaped like the management SDK models; no network.
"""

from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from azure.core.exceptions import HttpResponseError

SUBSCRIPTION_ID = "00000000-1111-2222-3333-444444444444"


def account_sdk_props(
    allow_blob_public_access=False,
    allow_shared_key_access=False,
    enable_https_traffic_only=True,
    minimum_tls_version="TLS1_2",
    default_action="Deny",
    public_network_access="Disabled",
):
    return SimpleNamespace(
        allow_blob_public_access=allow_blob_public_access,
        allow_shared_key_access=allow_shared_key_access,
        enable_https_traffic_only=enable_https_traffic_only,
        minimum_tls_version=minimum_tls_version,
        network_rule_set=SimpleNamespace(default_action=default_action),
        public_network_access=public_network_access,
    )


def blob_sdk_props(
    delete_enabled=True,
    delete_days=7,
    container_enabled=True,
    container_days=7,
    versioning=True,
    change_feed=True,
    restore=True,
    last_access=True,
):
    return SimpleNamespace(
        delete_retention_policy=SimpleNamespace(enabled=delete_enabled, days=delete_days),
        container_delete_retention_policy=SimpleNamespace(enabled=container_enabled, days=container_days),
        is_versioning_enabled=versioning,
        change_feed=None if change_feed is None else SimpleNamespace(enabled=change_feed),
        restore_policy=None if restore is None else SimpleNamespace(enabled=restore),
        last_access_time_tracking_policy=None if last_access is None else SimpleNamespace(enable=last_access),
    )


def arm_id(name, resource_group="rg-data"):
    return (f"/subscriptions/{SUBSCRIPTION_ID}/resourceGroups/{resource_group}"
            f"/providers/Microsoft.Storage/storageAccounts/{name}")


class FakeStorageAccounts:
    def __init__(self, accounts, list_error=None):
        self._accounts = accounts
        self._list_error = list_error

    def list(self):
        if self._list_error is not None:
            raise self._list_error
        return [SimpleNamespace(id=a["id"], name=a["name"], location=a["location"]) for a in self._accounts]

    def get_properties(self, resource_group, name):
        props = self._find(name)["account"]
        if isinstance(props, Exception):
            raise props
        return props

    def _find(self, name):
        return next(a for a in self._accounts if a["name"] == name)


class FakeBlobServices:
    def __init__(self, accounts):
        self._accounts = accounts

    def get_service_properties(self, resource_group, name):
        props = next(a for a in self._accounts if a["name"] == name)["blob"]
        if isinstance(props, Exception):
            raise props
        return props


class FakeStorageClient:
    """Stands in for StorageManagementClient.

    accounts: list of dicts with name/resource_group/location and the SDK-shaped
    'account' and 'blob' properties; an exception instance makes that call fail.
    """

    def __init__(self, accounts=(), list_error=None):
        self.accounts = [
            {
                "name": a["name"],
                "id": a.get("id") or arm_id(a["name"], a.get("resource_group", "rg-data")),
                "location": a.get("location", "westeurope"),
                "account": a.get("account", account_sdk_props()),
                "blob": a.get("blob", blob_sdk_props()),
            }
            for a in accounts
        ]
        self.storage_accounts = FakeStorageAccounts(self.accounts, list_error)
        self.blob_services = FakeBlobServices(self.accounts)


class FakeSubscriptions:
    def __init__(self, state="Enabled", error=None, display_name="Contoso Prod"):
        self._state = state
        self._error = error
        self._display_name = display_name

    def get(self, subscription_id):
        if self._error is not None:
            raise self._error
        return SimpleNamespace(subscription_id=subscription_id, display_name=self._display_name, state=self._state)

    def list(self):
        return [SimpleNamespace(subscription_id=SUBSCRIPTION_ID, display_name=self._display_name, state=self._state)]


class FakeSubscriptionClient:
    def __init__(self, **kwargs):
        self.subscriptions = FakeSubscriptions(**kwargs)


def fetch_error(message="The operation timed out"):
    return HttpResponseError(message=message)


@pytest.fixture
def subscription_client():
    return FakeSubscriptionClient()


@pytest.fixture
def fixed_clock():
    return lambda: datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)
