from __future__ import annotations
import html
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Sequence
from urllib.parse import quote

from ..checks.base import (
    Verdict, StorageResourceDescriptor, STATUS_GOOD, STATUS_BAD, STATUS_WARNING,
)
from ..errors import RenderingError

ACCOUNT_SECTION_TITLE = "Storage Account Level Best Practices"
BLOB_SECTION_TITLE = "Blob Service Level Best Practices"

IDENTITY_COLUMNS = ["Storage Account", "Resource Group", "Location"]

PORTAL_BASE = "https://portal.azure.com/#@/resource"

STATUS_CLASS = {STATUS_GOOD: "good", STATUS_BAD: "bad", STATUS_WARNING: "warning"}

ERROR_KEY = "ERROR"

_STYLE = (
    "body{font-family:'Segoe UI',Arial,Helvetica,sans-serif;margin:20px}"
    "h1,h2{color:#0078D4}"
    "table{border-collapse:collapse;width:100%;margin-bottom:24px}"
    "th,td{border:1px solid #ddd;padding:6px 8px;text-align:left;font-size:0.9rem}"
    "th{background:#0078D4;color:#fff}"
    ".good{background:#DFF0D8}.bad{background:#F2DEDE}.warning{background:#FCF8E3}"
    ".error{background:#E0E0E0;font-style:italic}"
    ".legend span{display:inline-block;padding:4px 10px;margin-right:8px;border:1px solid #ddd}"
    ".run-metadata{color:#666;font-style:italic}"
    "a.ref{font-size:0.75rem;margin-left:4px}"
)

@dataclass
class ReportSection:
    title: str
    html: str
    counts: Dict[str, int] = field(default_factory=dict)

# ---------- Builder ----------
def _esc(value) -> str:
    """Single escaping point for every interpolated value."""
    return html.escape("" if value is None else str(value), quote=True)

def _attrs(attrs: Optional[Dict[str, object]]) -> str:
    if not attrs:
        return ""
    return "".join(f' {k}="{_esc(v)}"' for k, v in attrs.items() if v is not None)

def _element(tag: str, content: str = "", attrs: Optional[Dict[str, object]] = None) -> str:
    """Wrap already-built content; plain text must go through _text_element."""
    return f"<{tag}{_attrs(attrs)}>{content}</{tag}>"

def _text_element(tag: str, text, attrs: Optional[Dict[str, object]] = None) -> str:
    return _element(tag, _esc(text), attrs)

def portal_link(subscription_id: str, resource_group: str, name: str) -> str:
    """Deep link to the storage account blade; segments are percent-encoded."""
    return (f"{PORTAL_BASE}/subscriptions/{quote(subscription_id or '', safe='')}"
            f"/resourceGroups/{quote(resource_group or '', safe='')}"
            f"/providers/Microsoft.Storage/storageAccounts/{quote(name or '', safe='')}/overview")

def _identity_cells(descriptor: StorageResourceDescriptor, subscription_id: str) -> List[str]:
    link = _text_element("a", descriptor.name, {
        "href": portal_link(subscription_id, descriptor.resource_group, descriptor.name),
        "target": "_blank",
    })
    return [
        _element("td", link, {"class": "resource"}),
        _text_element("td", descriptor.resource_group),
        _text_element("td", descriptor.location),
    ]

def _verdict_cell(v: Verdict) -> str:
    if not isinstance(v, Verdict) or v.status not in STATUS_CLASS:
        raise RenderingError(f"Cannot render verdict {v!r}")
    content = _esc(v.label)
    if v.reference:
        content += _text_element("a", "[ref]", {"class": "ref", "href": v.reference, "target": "_blank"})
    return _element("td", content, {"class": STATUS_CLASS[v.status]})

# ---------- Public API ----------
def render_row(descriptor: StorageResourceDescriptor, verdicts: Sequence[Verdict], subscription_id: str,
               *, expected_columns: Optional[int] = None, note: Optional[str] = None) -> str:
    if expected_columns is not None and len(verdicts) != expected_columns:
        raise RenderingError(f"{descriptor.name}: expected {expected_columns} verdicts, got {len(verdicts)}")
    cells = _identity_cells(descriptor, subscription_id) + [_verdict_cell(v) for v in verdicts]
    return _element("tr", "".join(cells), {"title": note})

def render_error_row(descriptor: StorageResourceDescriptor, message: str, column_count: int,
                     subscription_id: str) -> str:
    """Row whose property columns collapse into a single error cell."""
    cells = _identity_cells(descriptor, subscription_id)
    cells.append(_text_element("td", f"Error: {message}", {"class": "error", "colspan": column_count}))
    return _element("tr", "".join(cells))

def render_section(title: str, columns: Sequence[str], rows: Sequence[str]) -> str:
    header = _element("tr", "".join(_text_element("th", c) for c in list(IDENTITY_COLUMNS) + list(columns)))
    table = _element("table", _element("thead", header) + _element("tbody", "\n".join(rows)))
    return _element("section", _text_element("h2", title) + "\n" + table)

def render_legend() -> str:
    items = [
        _text_element("span", "Good: meets the best practice", {"class": "good"}),
        _text_element("span", "Bad: does not meet the best practice", {"class": "bad"}),
        _text_element("span", "Warning: not set, not applicable or needs review", {"class": "warning"}),
    ]
    return _element("div", _text_element("strong", "Legend: ") + "".join(items), {"class": "legend"})

def render_summary(sections: Sequence[ReportSection]) -> str:
    header = _element("tr", "".join(_text_element("th", h) for h in ["Section", "Good", "Bad", "Warning", "Errors"]))
    rows = []
    for s in sections:
        cells = [_text_element("td", s.title)]
        cells += [_text_element("td", s.counts.get(k, 0)) for k in (STATUS_GOOD, STATUS_BAD, STATUS_WARNING, ERROR_KEY)]
        rows.append(_element("tr", "".join(cells)))
    return _element("table", _element("thead", header) + _element("tbody", "".join(rows)), {"class": "summary"})

def render_document(sections: Sequence[ReportSection], *, subscription: str, generated_at: datetime) -> str:
    title = "Azure Storage Best Practices Report"
    head = _element("head", '<meta charset="utf-8">' + _text_element("title", title) + _element("style", _STYLE))
    body_parts = [
        _text_element("h1", title),
        _text_element("p", f"Subscription: {subscription}"),
        _text_element("p", f"Generated: {generated_at.strftime('%Y-%m-%d %H:%M:%S %Z').strip()}",
                      {"class": "run-metadata"}),
        render_legend(),
        render_summary(sections),
    ]
    body_parts += [s.html for s in sections]
    return "<!DOCTYPE html>\n" + _element("html", head + _element("body", "\n".join(body_parts)), {"lang": "en"}) + "\n"

def write_report(path: str, document: str) -> str:
    """Write the document in one step: temp file in the target directory, then rename."""
    target = os.path.abspath(path)
    folder = os.path.dirname(target)
    os.makedirs(folder, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=".storage-audit-", suffix=".tmp", dir=folder)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(document)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp, target)
    except BaseException:
        if os.path.exists(tmp):
            os.remove(tmp)
        raise
    return target
