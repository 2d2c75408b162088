"""
HTML rendering tests using BeautifulSoup: rows, error rows, escaping, deep links,
document structure and the single-write contract.
"""

import os
from datetime import datetime, timezone

import pytest
from bs4 import BeautifulSoup

from storage_audit.checks.base import (
    Verdict, StorageResourceDescriptor, STATUS_GOOD, STATUS_BAD, STATUS_WARNING,
)
from storage_audit.errors import RenderingError
from storage_audit.report import html_report
from storage_audit.report.html_report import (
    ReportSection, ACCOUNT_SECTION_TITLE, BLOB_SECTION_TITLE, portal_link, render_row, render_error_row,
    render_section, render_document, write_report,
)

SUB = "00000000-1111-2222-3333-444444444444"
GENERATED = datetime(2024, 5, 1, 12, 0, 0, tzinfo=timezone.utc)


def descriptor(name="acct1", rg="rg-data", location="westeurope"):
    return StorageResourceDescriptor(name=name, resource_group=rg, location=location)


def verdicts():
    return [
        Verdict(STATUS_GOOD, "Disabled"),
        Verdict(STATUS_BAD, "Enabled", "https://learn.microsoft.com/example"),
        Verdict(STATUS_WARNING, "Not Set", "https://learn.microsoft.com/example"),
    ]


def parse(fragment):
    return BeautifulSoup(fragment, "html.parser")


def test_render_row_cells_and_classes():
    row = parse(render_row(descriptor(), verdicts(), SUB)).find("tr")
    cells = row.find_all("td")
    assert [c.get_text(strip=True) for c in cells[:3]] == ["acct1", "rg-data", "westeurope"]
    assert [c["class"] for c in cells[3:]] == [["good"], ["bad"], ["warning"]]
    assert cells[4].find("a", class_="ref")["href"] == "https://learn.microsoft.com/example"
    assert cells[3].find("a") is None


def test_render_row_links_to_portal_blade():
    link = parse(render_row(descriptor(), verdicts(), SUB)).find("td", class_="resource").find("a")
    assert link["href"] == (f"https://portal.azure.com/#@/resource/subscriptions/{SUB}/resourceGroups/rg-data"
                            "/providers/Microsoft.Storage/storageAccounts/acct1/overview")


def test_portal_link_percent_encodes_segments():
    url = portal_link(SUB, "rg with space/&x", "a<b>")
    assert "rg%20with%20space%2F%26x" in url
    assert "a%3Cb%3E" in url


def test_render_row_rejects_wrong_verdict_count():
    with pytest.raises(RenderingError):
        render_row(descriptor(), verdicts(), SUB, expected_columns=6)


def test_render_row_rejects_non_verdicts():
    with pytest.raises(RenderingError):
        render_row(descriptor(), ["Good"], SUB)


def test_render_row_note_becomes_tooltip():
    row = parse(render_row(descriptor(), verdicts(), SUB, note="Error: timeout")).find("tr")
    assert row["title"] == "Error: timeout"


def test_error_row_spans_all_property_columns():
    row = parse(render_error_row(descriptor(), "ResourceNotFound <x>", 8, SUB)).find("tr")
    cells = row.find_all("td")
    assert len(cells) == 4
    assert cells[3]["colspan"] == "8"
    assert cells[3]["class"] == ["error"]
    assert "ResourceNotFound <x>" in cells[3].get_text()


def test_special_characters_are_escaped():
    name = "a<b>&'c"
    rg = "<script>alert(1)</script>"
    fragment = render_row(descriptor(name=name, rg=rg), verdicts(), SUB)
    assert "<script>" not in fragment
    assert "<b>" not in fragment
    assert "&'" not in fragment
    cells = parse(fragment).find_all("td")
    assert cells[0].get_text() == name
    assert cells[1].get_text() == rg


def test_render_section_header_and_rows():
    rows = [render_row(descriptor(n), verdicts(), SUB) for n in ("one", "two")]
    section = parse(render_section("Title & Co", ["A", "B", "C"], rows))
    assert section.find("h2").get_text() == "Title & Co"
    assert [th.get_text() for th in section.find_all("th")] == [
        "Storage Account", "Resource Group", "Location", "A", "B", "C",
    ]
    assert len(section.find("tbody").find_all("tr")) == 2


def _document(generated=GENERATED):
    account = ReportSection(ACCOUNT_SECTION_TITLE, render_section(ACCOUNT_SECTION_TITLE, ["A", "B", "C"],
                            [render_row(descriptor(), verdicts(), SUB)]), {STATUS_GOOD: 1, STATUS_BAD: 1})
    blob = ReportSection(BLOB_SECTION_TITLE, render_section(BLOB_SECTION_TITLE, ["A", "B", "C"],
                         [render_error_row(descriptor(), "boom", 3, SUB)]), {"ERROR": 1})
    return render_document([account, blob], subscription=f"Contoso ({SUB})", generated_at=generated)


def test_document_has_sections_legend_and_summary():
    soup = parse(_document())
    assert [h.get_text() for h in soup.find_all("h2")] == [ACCOUNT_SECTION_TITLE, BLOB_SECTION_TITLE]
    legend = soup.find("div", class_="legend")
    assert {s["class"][0] for s in legend.find_all("span")} == {"good", "bad", "warning"}
    summary_rows = soup.find("table", class_="summary").find("tbody").find_all("tr")
    assert [td.get_text() for td in summary_rows[0].find_all("td")] == [ACCOUNT_SECTION_TITLE, "1", "1", "0", "0"]
    assert [td.get_text() for td in summary_rows[1].find_all("td")] == [BLOB_SECTION_TITLE, "0", "0", "0", "1"]
    assert "2024-05-01 12:00:00" in soup.find("p", class_="run-metadata").get_text()


def test_document_is_deterministic_apart_from_run_metadata():
    first = _document()
    assert first == _document()
    later = _document(datetime(2025, 1, 1, tzinfo=timezone.utc))
    differing = [(a, b) for a, b in zip(first.splitlines(), later.splitlines()) if a != b]
    assert len(differing) == 1
    assert 'class="run-metadata"' in differing[0][0]


def test_write_report_creates_file(tmp_path):
    path = tmp_path / "out" / "report.html"
    written = write_report(str(path), "<html></html>")
    assert written == str(path)
    assert path.read_text(encoding="utf-8") == "<html></html>"
    assert os.listdir(path.parent) == ["report.html"]


def _failing_replace(src, dst):
    raise OSError("disk full")


def test_write_report_failure_leaves_no_partial_file(tmp_path, monkeypatch):
    path = tmp_path / "report.html"
    monkeypatch.setattr(html_report.os, "replace", _failing_replace)
    with pytest.raises(OSError):
        write_report(str(path), "<html></html>")
    assert os.listdir(tmp_path) == []


def test_write_report_keeps_previous_file_on_failure(tmp_path, monkeypatch):
    path = tmp_path / "report.html"
    path.write_text("previous", encoding="utf-8")
    monkeypatch.setattr(html_report.os, "replace", _failing_replace)
    with pytest.raises(OSError):
        write_report(str(path), "<html>new</html>")
    assert path.read_text(encoding="utf-8") == "previous"
    assert os.listdir(tmp_path) == ["report.html"]
