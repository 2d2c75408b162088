from __future__ import annotations
import logging
from typing import Optional

from azure.identity import ClientSecretCredential, DefaultAzureCredential

logger = logging.getLogger(__name__)

AUTH_MODES = ("default", "service_principal")

def build_credential(auth_mode: str, tenant_id: Optional[str] = None, client_id: Optional[str] = None,
                     client_secret: Optional[str] = None):
    """Create an Azure credential.

    auth_mode:
      - 'default' (DefaultAzureCredential; supports Azure CLI, managed identity, environment, etc.)
      - 'service_principal' (Tenant/Client/Secret)
    """
    if auth_mode not in AUTH_MODES:
        raise ValueError(f"Unknown auth mode '{auth_mode}', expected one of: {', '.join(AUTH_MODES)}")
    if auth_mode == "default":
        logger.debug("Using DefaultAzureCredential")
        return DefaultAzureCredential(exclude_interactive_browser_credential=True)
    if not (tenant_id and client_id and client_secret):
        raise ValueError("Tenant ID, Client ID, and Client Secret are required for service_principal mode.")
    logger.debug("Using ClientSecretCredential for client %s", client_id)
    return ClientSecretCredential(tenant_id=tenant_id, client_id=client_id, client_secret=client_secret)
