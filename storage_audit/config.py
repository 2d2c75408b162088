"""
Run settings and their defaults.

- CLI flags override environment variables, which override the defaults below.
- The client secret is only read from the environment.
"""
from __future__ import annotations
import os
from dataclasses import dataclass
from typing import Optional

DEFAULT_OUTPUT_PATH = "StorageAccountBestPractices.html"
DEFAULT_AUTH_MODE = "default"
DEFAULT_MAX_WORKERS = 1

ENV_SUBSCRIPTION_ID = "AZURE_SUBSCRIPTION_ID"
ENV_TENANT_ID = "AZURE_TENANT_ID"
ENV_CLIENT_ID = "AZURE_CLIENT_ID"
ENV_CLIENT_SECRET = "AZURE_CLIENT_SECRET"

@dataclass
class AuditSettings:
    subscription_id: str
    output_path: str = DEFAULT_OUTPUT_PATH
    verbose: bool = False
    auth_mode: str = DEFAULT_AUTH_MODE
    tenant_id: Optional[str] = None
    client_id: Optional[str] = None
    client_secret: Optional[str] = None
    max_workers: int = DEFAULT_MAX_WORKERS
    sort_by_name: bool = False

    def __post_init__(self):
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")

def settings_from_args(args) -> AuditSettings:
    return AuditSettings(
        subscription_id=args.subscription_id or os.environ.get(ENV_SUBSCRIPTION_ID, ""),
        output_path=args.output or DEFAULT_OUTPUT_PATH,
        verbose=args.verbose,
        auth_mode=args.auth_mode or DEFAULT_AUTH_MODE,
        tenant_id=args.tenant_id or os.environ.get(ENV_TENANT_ID),
        client_id=args.client_id or os.environ.get(ENV_CLIENT_ID),
        client_secret=os.environ.get(ENV_CLIENT_SECRET),
        max_workers=args.workers,
        sort_by_name=args.sort_by_name,
    )
