"""
Storage account enumeration against Azure Resource Manager.

Every call takes an explicit AuditContext; there is no ambient
"current subscription" state shared between calls.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from azure.core.exceptions import AzureError, ClientAuthenticationError, HttpResponseError
from azure.mgmt.resource import SubscriptionClient
from azure.mgmt.storage import StorageManagementClient

from ..checks.base import (
    StorageResourceDescriptor, AccountSecurityProperties, BlobServiceProtectionProperties,
)
from ..errors import AuthorizationError, ContextValidationError, FatalSetupError, TransientFetchError

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class AuditContext:
    subscription_id: str
    subscription_name: str
    storage_client: Any

# ---------- Helpers ----------
def _text(value: Any) -> Optional[str]:
    """Plain string for an SDK enum/str value, None stays None."""
    if value is None:
        return None
    return str(getattr(value, "value", value))

def _resource_group(resource_id: str) -> str:
    try:
        return resource_id.split("/resourceGroups/")[1].split("/")[0]
    except IndexError:
        return ""

def _is_forbidden(e: Exception) -> bool:
    return isinstance(e, ClientAuthenticationError) or getattr(e, "status_code", None) in (401, 403)

def _policy_flag(policy: Any, attr: str = "enabled") -> Optional[bool]:
    if policy is None:
        return None
    return getattr(policy, attr, None)

# ---------- Scope ----------
def list_subscriptions(credential, subscription_client=None) -> List[Dict[str, str]]:
    sc = subscription_client or SubscriptionClient(credential)
    subs = []
    for s in sc.subscriptions.list():
        subs.append({"subscription_id": s.subscription_id, "display_name": s.display_name,
                     "state": _text(s.state) or ""})
    return subs

def open_context(credential, subscription_id: str, *, subscription_client=None,
                 storage_client=None) -> AuditContext:
    """Validate the subscription scope and return the context for later calls."""
    if not subscription_id:
        raise ContextValidationError("A subscription ID is required.")
    sc = subscription_client or SubscriptionClient(credential)
    try:
        sub = sc.subscriptions.get(subscription_id)
    except AzureError as e:
        raise ContextValidationError(f"Cannot access subscription {subscription_id}: {e}") from e
    state = _text(getattr(sub, "state", None))
    if state and state.lower() != "enabled":
        raise ContextValidationError(f"Subscription {subscription_id} is in state '{state}', expected 'Enabled'.")
    name = getattr(sub, "display_name", None) or ""
    logger.info("Using subscription %s (%s)", name, subscription_id)
    st = storage_client or StorageManagementClient(credential, subscription_id)
    return AuditContext(subscription_id=subscription_id, subscription_name=name, storage_client=st)

# ---------- Enumeration ----------
def list_accounts(ctx: AuditContext) -> List[StorageResourceDescriptor]:
    """List storage accounts in the scope. An empty subscription returns []."""
    try:
        accounts = list(ctx.storage_client.storage_accounts.list())
    except HttpResponseError as e:
        if _is_forbidden(e):
            raise AuthorizationError(f"Not authorized to list storage accounts in {ctx.subscription_id}: {e}") from e
        raise FatalSetupError(f"Failed to list storage accounts in {ctx.subscription_id}: {e}") from e
    except AzureError as e:
        raise FatalSetupError(f"Failed to list storage accounts in {ctx.subscription_id}: {e}") from e
    descriptors = []
    for acct in accounts:
        rid = getattr(acct, "id", "") or ""
        descriptors.append(StorageResourceDescriptor(
            name=acct.name,
            resource_group=_resource_group(rid),
            location=getattr(acct, "location", "") or "",
            id=rid,
        ))
    logger.info("Found %d storage account(s) in %s", len(descriptors), ctx.subscription_id)
    return descriptors

def fetch_account_properties(ctx: AuditContext, descriptor: StorageResourceDescriptor) -> AccountSecurityProperties:
    """Any failure for this one account, SDK or malformed payload, becomes a TransientFetchError."""
    try:
        props = ctx.storage_client.storage_accounts.get_properties(descriptor.resource_group, descriptor.name)
        rules = getattr(props, "network_rule_set", None)
        return AccountSecurityProperties(
            allow_blob_public_access=getattr(props, "allow_blob_public_access", None),
            allow_shared_key_access=getattr(props, "allow_shared_key_access", None),
            https_only=getattr(props, "enable_https_traffic_only", None) is True,
            minimum_tls_version=_text(getattr(props, "minimum_tls_version", None)),
            network_default_action=_text(getattr(rules, "default_action", None)) if rules else None,
            public_network_access=_text(getattr(props, "public_network_access", None)),
        )
    except Exception as e:
        raise TransientFetchError(descriptor.name, str(e)) from e

def fetch_blob_service_properties(ctx: AuditContext, descriptor: StorageResourceDescriptor) -> BlobServiceProtectionProperties:
    try:
        svc = ctx.storage_client.blob_services.get_service_properties(descriptor.resource_group, descriptor.name)
        blob_policy = getattr(svc, "delete_retention_policy", None)
        container_policy = getattr(svc, "container_delete_retention_policy", None)
        return BlobServiceProtectionProperties(
            delete_retention_enabled=_policy_flag(blob_policy) is True,
            delete_retention_days=getattr(blob_policy, "days", None) if blob_policy else None,
            container_delete_retention_enabled=_policy_flag(container_policy) is True,
            container_delete_retention_days=getattr(container_policy, "days", None) if container_policy else None,
            versioning_enabled=getattr(svc, "is_versioning_enabled", None) is True,
            change_feed_enabled=_policy_flag(getattr(svc, "change_feed", None)),
            restore_policy_enabled=_policy_flag(getattr(svc, "restore_policy", None)),
            last_access_time_tracking_enabled=_policy_flag(getattr(svc, "last_access_time_tracking_policy", None),
                                                           "enable"),
        )
    except Exception as e:
        raise TransientFetchError(descriptor.name, str(e)) from e
