from __future__ import annotations
from typing import List, Optional

from .base import (
    Rule, Verdict, BlobServiceProtectionProperties, NOT_SET, NOT_APPLICABLE,
    enabled_label, evaluate_all,
)

MIN_RETENTION_DAYS = 7

def _days_label(days: int) -> str:
    return f"{days} day" if days == 1 else f"{days} days"

# ---------- Helpers ----------
class _EnabledFlagRule(Rule):
    """True is Good, anything else is Bad."""
    attribute = ""
    def evaluate(self, props: BlobServiceProtectionProperties) -> Verdict:
        if getattr(props, self.attribute) is True:
            return self.good(enabled_label(True))
        return self.bad(enabled_label(False))

class _OptionalFeatureRule(Rule):
    """True is Good; False and unset are Warnings, never Bad."""
    attribute = ""
    def evaluate(self, props: BlobServiceProtectionProperties) -> Verdict:
        value = getattr(props, self.attribute)
        if value is None:
            return self.warning(NOT_SET)
        if value is True:
            return self.good(enabled_label(True))
        return self.warning(enabled_label(False))

# ---------- Rules ----------
class DeleteRetentionRule(_EnabledFlagRule):
    property_id = "delete_retention"
    attribute = "delete_retention_enabled"

class DeleteRetentionDaysRule(Rule):
    property_id = "delete_retention_days"
    def evaluate(self, props: BlobServiceProtectionProperties) -> Verdict:
        if props.delete_retention_enabled is not True:
            return self.warning(NOT_APPLICABLE)
        days: Optional[int] = props.delete_retention_days
        if days is None:
            return self.bad(NOT_SET)
        if days >= MIN_RETENTION_DAYS:
            return self.good(_days_label(days))
        if days > 0:
            return self.warning(_days_label(days))
        return self.bad(_days_label(days))

class ContainerDeleteRetentionRule(_EnabledFlagRule):
    property_id = "container_delete_retention"
    attribute = "container_delete_retention_enabled"

class ContainerDeleteRetentionDaysRule(Rule):
    property_id = "container_delete_retention_days"
    def evaluate(self, props: BlobServiceProtectionProperties) -> Verdict:
        if props.container_delete_retention_enabled is not True:
            return self.warning(NOT_APPLICABLE)
        days: Optional[int] = props.container_delete_retention_days
        # 0 is a Warning here but Bad for blob retention days; kept as observed.
        if days is None or days <= 0:
            return self.warning(NOT_SET)
        if days >= MIN_RETENTION_DAYS:
            return self.good(_days_label(days))
        return self.warning(_days_label(days))

class VersioningRule(_EnabledFlagRule):
    property_id = "versioning"
    attribute = "versioning_enabled"

class ChangeFeedRule(_OptionalFeatureRule):
    property_id = "change_feed"
    attribute = "change_feed_enabled"

class RestorePolicyRule(_OptionalFeatureRule):
    property_id = "restore_policy"
    attribute = "restore_policy_enabled"

class LastAccessTimeTrackingRule(_OptionalFeatureRule):
    property_id = "last_access_time_tracking"
    attribute = "last_access_time_tracking_enabled"

BLOB_RULES: List[Rule] = [
    DeleteRetentionRule(),
    DeleteRetentionDaysRule(),
    ContainerDeleteRetentionRule(),
    ContainerDeleteRetentionDaysRule(),
    VersioningRule(),
    ChangeFeedRule(),
    RestorePolicyRule(),
    LastAccessTimeTrackingRule(),
]

def blob_columns() -> List[str]:
    return [r.column for r in BLOB_RULES]

def evaluate_blob_service(props: BlobServiceProtectionProperties) -> List[Verdict]:
    return evaluate_all(BLOB_RULES, props)
