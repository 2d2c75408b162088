"""
CLI entrypoint for the storage best-practices audit.

- Audits every storage account in one subscription and writes a single HTML report.
- Exits 0 when the report is written, 1 when the scope cannot be validated or
  enumerated (no report is written in that case).
"""

import argparse
import logging
import sys

from azure.core.exceptions import AzureError
from rich.console import Console
from rich.table import Table

from .azure.clients import AUTH_MODES, build_credential
from .azure.storage import list_subscriptions
from .checks.base import STATUS_GOOD, STATUS_BAD, STATUS_WARNING
from .config import DEFAULT_OUTPUT_PATH, DEFAULT_MAX_WORKERS, settings_from_args
from .errors import FatalSetupError
from .report.html_report import ERROR_KEY
from .runner import run_audit
from .utils.logging_utils import configure_logging, exc_to_text

logger = logging.getLogger("storage_audit")

_console = Console()


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Audit Azure storage accounts and blob services against security best practices."
    )
    p.add_argument(
        "subscription_id",
        nargs="?",
        help="Subscription ID to audit (default: $AZURE_SUBSCRIPTION_ID)",
    )
    p.add_argument(
        "-o", "--output",
        default=DEFAULT_OUTPUT_PATH,
        help=f"Path of the HTML report (default: {DEFAULT_OUTPUT_PATH})",
    )
    p.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    p.add_argument(
        "--auth-mode",
        choices=AUTH_MODES,
        default="default",
        help="Credential type (default: DefaultAzureCredential)",
    )
    p.add_argument(
        "--tenant-id",
        help="Tenant ID for service_principal mode (default: $AZURE_TENANT_ID)",
    )
    p.add_argument(
        "--client-id",
        help="Client ID for service_principal mode (default: $AZURE_CLIENT_ID); the secret is read from $AZURE_CLIENT_SECRET",
    )
    p.add_argument(
        "--workers",
        type=int,
        default=DEFAULT_MAX_WORKERS,
        help="Number of accounts fetched in parallel (default: 1)",
    )
    p.add_argument(
        "--sort-by-name",
        action="store_true",
        help="Order report rows by account name instead of enumeration order",
    )
    p.add_argument(
        "--list-subscriptions",
        action="store_true",
        help="List visible subscriptions and exit",
    )
    return p.parse_args(argv)


def print_subscriptions(subs):
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Subscription ID", style="cyan")
    table.add_column("Name")
    table.add_column("State")
    for s in subs:
        table.add_row(s["subscription_id"], s["display_name"] or "", s["state"])
    _console.print(table)


def print_summary(result):
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Section")
    table.add_column("Good", justify="right", style="green")
    table.add_column("Bad", justify="right", style="bold red")
    table.add_column("Warning", justify="right", style="yellow")
    table.add_column("Errors", justify="right")
    for s in result.sections:
        table.add_row(s.title, *[str(s.counts.get(k, 0)) for k in (STATUS_GOOD, STATUS_BAD, STATUS_WARNING, ERROR_KEY)])
    _console.print(table)
    _console.print(f"Audited {result.account_count} storage account(s). Report: {result.output_path}")


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    try:
        settings = settings_from_args(args)
        credential = build_credential(settings.auth_mode, settings.tenant_id, settings.client_id,
                                      settings.client_secret)
    except ValueError as e:
        logger.error("Invalid settings: %s", e)
        return 1

    try:
        if args.list_subscriptions:
            print_subscriptions(list_subscriptions(credential))
            return 0
        result = run_audit(settings, credential=credential)
    except FatalSetupError as e:
        logger.error("Audit aborted, no report written: %s", e)
        logger.debug("%s", exc_to_text(e))
        return 1
    except AzureError as e:
        logger.error("Azure request failed: %s", e)
        logger.debug("%s", exc_to_text(e))
        return 1
    except KeyboardInterrupt:
        logger.warning("Audit interrupted, no report written.")
        return 130
    except Exception as e:
        logger.error("Audit failed, no report written: %s", e)
        logger.debug("%s", exc_to_text(e))
        return 1

    print_summary(result)
    return 0


if __name__ == "__main__":
    sys.exit(main())
