from __future__ import annotations
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

from .azure.clients import build_credential
from .azure.storage import (
    AuditContext, open_context, list_accounts, fetch_account_properties, fetch_blob_service_properties,
)
from .checks.base import Verdict, StorageResourceDescriptor, STATUS_GOOD, STATUS_BAD, STATUS_WARNING
from .checks.account_checks import account_columns, evaluate_account, unknown_account_verdicts
from .checks.blob_checks import blob_columns, evaluate_blob_service
from .config import AuditSettings
from .errors import NoAccountsError, RenderingError, TransientFetchError
from .report.html_report import (
    ReportSection, ACCOUNT_SECTION_TITLE, BLOB_SECTION_TITLE, ERROR_KEY,
    render_row, render_error_row, render_section, render_document, write_report,
)

logger = logging.getLogger(__name__)

class RunState(Enum):
    START = "Start"
    CONTEXT_VALIDATED = "ContextValidated"
    ACCOUNTS_ENUMERATED = "AccountsEnumerated"
    ACCOUNT_SECTION_RENDERED = "AccountSectionRendered"
    BLOB_SECTION_RENDERED = "BlobSectionRendered"
    WRITTEN = "Written"
    DONE = "Done"

@dataclass
class AccountAudit:
    descriptor: StorageResourceDescriptor
    account_verdicts: Optional[List[Verdict]] = None
    account_error: Optional[str] = None
    blob_verdicts: Optional[List[Verdict]] = None
    blob_error: Optional[str] = None

@dataclass
class AuditResult:
    output_path: str
    subscription_id: str
    account_count: int
    sections: List[ReportSection] = field(default_factory=list)

# ---------- Evaluation ----------
def _audit_one(ctx: AuditContext, descriptor: StorageResourceDescriptor) -> AccountAudit:
    audit = AccountAudit(descriptor=descriptor)
    try:
        audit.account_verdicts = evaluate_account(fetch_account_properties(ctx, descriptor))
    except TransientFetchError as e:
        logger.warning("Account properties unavailable for %s: %s", descriptor.name, e.message)
        audit.account_error = e.message
    try:
        audit.blob_verdicts = evaluate_blob_service(fetch_blob_service_properties(ctx, descriptor))
    except TransientFetchError as e:
        logger.warning("Blob service properties unavailable for %s: %s", descriptor.name, e.message)
        audit.blob_error = e.message
    return audit

def audit_accounts(ctx: AuditContext, descriptors: Sequence[StorageResourceDescriptor],
                   max_workers: int = 1) -> List[AccountAudit]:
    """Fetch and evaluate every account. Results keep the order of ``descriptors``."""
    if max_workers <= 1 or len(descriptors) <= 1:
        return [_audit_one(ctx, d) for d in descriptors]
    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        return list(pool.map(lambda d: _audit_one(ctx, d), descriptors))

def _count(counts: Dict[str, int], verdicts: Sequence[Verdict]) -> None:
    for v in verdicts:
        counts[v.status] = counts.get(v.status, 0) + 1

def _new_counts() -> Dict[str, int]:
    return {STATUS_GOOD: 0, STATUS_BAD: 0, STATUS_WARNING: 0, ERROR_KEY: 0}

def _row(descriptor: StorageResourceDescriptor, verdicts: List[Verdict], columns: List[str],
         subscription_id: str, counts: Dict[str, int], note: Optional[str] = None, tally: bool = True) -> str:
    try:
        row = render_row(descriptor, verdicts, subscription_id, expected_columns=len(columns), note=note)
    except RenderingError as e:
        logger.warning("Could not render row for %s: %s", descriptor.name, e)
        counts[ERROR_KEY] += 1
        return render_error_row(descriptor, str(e), len(columns), subscription_id)
    if tally:
        _count(counts, verdicts)
    return row

def build_account_section(ctx: AuditContext, audits: Sequence[AccountAudit]) -> ReportSection:
    columns = account_columns()
    counts = _new_counts()
    rows = []
    for a in audits:
        if a.account_verdicts is None:
            # counted once, as an error, not as six warnings
            counts[ERROR_KEY] += 1
            rows.append(_row(a.descriptor, unknown_account_verdicts(), columns, ctx.subscription_id, counts,
                             note=f"Error: {a.account_error}", tally=False))
        else:
            rows.append(_row(a.descriptor, a.account_verdicts, columns, ctx.subscription_id, counts))
    return ReportSection(ACCOUNT_SECTION_TITLE, render_section(ACCOUNT_SECTION_TITLE, columns, rows), counts)

def build_blob_section(ctx: AuditContext, audits: Sequence[AccountAudit]) -> ReportSection:
    columns = blob_columns()
    counts = _new_counts()
    rows = []
    for a in audits:
        if a.blob_verdicts is None:
            counts[ERROR_KEY] += 1
            rows.append(render_error_row(a.descriptor, a.blob_error or "unknown error", len(columns),
                                         ctx.subscription_id))
        else:
            rows.append(_row(a.descriptor, a.blob_verdicts, columns, ctx.subscription_id, counts))
    return ReportSection(BLOB_SECTION_TITLE, render_section(BLOB_SECTION_TITLE, columns, rows), counts)

# ---------- Orchestration ----------
class AuditRunner:
    """Runs one audit: validate scope, enumerate, evaluate, render, write once."""

    def __init__(self, settings: AuditSettings, *, credential=None, subscription_client=None,
                 storage_client=None, clock: Optional[Callable[[], datetime]] = None):
        self.settings = settings
        self.credential = credential
        self.subscription_client = subscription_client
        self.storage_client = storage_client
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.state = RunState.START

    def _advance(self, state: RunState) -> None:
        logger.debug("%s -> %s", self.state.value, state.value)
        self.state = state

    def run(self) -> AuditResult:
        s = self.settings
        credential = self.credential
        if credential is None:
            credential = build_credential(s.auth_mode, s.tenant_id, s.client_id, s.client_secret)

        ctx = open_context(credential, s.subscription_id,
                           subscription_client=self.subscription_client, storage_client=self.storage_client)
        self._advance(RunState.CONTEXT_VALIDATED)

        descriptors = list_accounts(ctx)
        if not descriptors:
            raise NoAccountsError(f"No storage accounts are visible in subscription {s.subscription_id}.")
        if s.sort_by_name:
            descriptors = sorted(descriptors, key=lambda d: d.name.lower())
        self._advance(RunState.ACCOUNTS_ENUMERATED)

        audits = audit_accounts(ctx, descriptors, max_workers=s.max_workers)

        account_section = build_account_section(ctx, audits)
        self._advance(RunState.ACCOUNT_SECTION_RENDERED)
        blob_section = build_blob_section(ctx, audits)
        self._advance(RunState.BLOB_SECTION_RENDERED)

        sections = [account_section, blob_section]
        label = f"{ctx.subscription_name} ({ctx.subscription_id})" if ctx.subscription_name else ctx.subscription_id
        document = render_document(sections, subscription=label, generated_at=self.clock())
        path = write_report(s.output_path, document)
        self._advance(RunState.WRITTEN)
        logger.info("Report written to %s (%d account(s))", path, len(descriptors))

        self._advance(RunState.DONE)
        return AuditResult(output_path=path, subscription_id=ctx.subscription_id,
                           account_count=len(descriptors), sections=sections)

def run_audit(settings: AuditSettings, **kwargs) -> AuditResult:
    return AuditRunner(settings, **kwargs).run()
