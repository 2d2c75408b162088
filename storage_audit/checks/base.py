from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional

from ..utils.controls import load_controls

STATUS_GOOD = "GOOD"
STATUS_BAD = "BAD"
STATUS_WARNING = "WARNING"

NOT_SET = "Not Set"
NOT_APPLICABLE = "N/A"

@dataclass(frozen=True)
class Verdict:
    status: str
    label: str
    reference: Optional[str] = None  # documentation link for Bad/Warning

@dataclass(frozen=True)
class StorageResourceDescriptor:
    name: str
    resource_group: str
    location: str
    id: str = ""  # full ARM resource id

@dataclass(frozen=True)
class AccountSecurityProperties:
    allow_blob_public_access: Optional[bool]
    allow_shared_key_access: Optional[bool]
    https_only: bool
    minimum_tls_version: Optional[str]
    network_default_action: Optional[str]
    public_network_access: Optional[str]

@dataclass(frozen=True)
class BlobServiceProtectionProperties:
    delete_retention_enabled: bool
    delete_retention_days: Optional[int]
    container_delete_retention_enabled: bool
    container_delete_retention_days: Optional[int]
    versioning_enabled: bool
    change_feed_enabled: Optional[bool]
    restore_policy_enabled: Optional[bool]
    last_access_time_tracking_enabled: Optional[bool]

class Rule:
    """Base class for a best-practice rule on one property.

    Subclasses set ``property_id`` (a key of the best-practice catalogue) and
    implement ``evaluate``, which must be total over the property's domain.
    """
    property_id: str = ""

    @property
    def column(self) -> str:
        return load_controls()[self.property_id]["column"]

    def evaluate(self, props: Any) -> Verdict:
        raise NotImplementedError

    def good(self, label: str) -> Verdict:
        return Verdict(STATUS_GOOD, label)

    def bad(self, label: str) -> Verdict:
        return Verdict(STATUS_BAD, label, load_controls()[self.property_id]["reference"])

    def warning(self, label: str) -> Verdict:
        if label == NOT_APPLICABLE:
            return Verdict(STATUS_WARNING, label)
        return Verdict(STATUS_WARNING, label, load_controls()[self.property_id]["reference"])

def enabled_label(value: bool) -> str:
    return "Enabled" if value else "Disabled"

def same_text(value: Optional[str], *expected: str) -> bool:
    """Case-insensitive match of an SDK string/enum value against expected values."""
    if value is None:
        return False
    return str(getattr(value, "value", value)).lower() in [e.lower() for e in expected]

def evaluate_all(rules: List[Rule], props: Any) -> List[Verdict]:
    return [r.evaluate(props) for r in rules]
