from __future__ import annotations
from typing import List

from .base import (
    Rule, Verdict, AccountSecurityProperties, STATUS_WARNING, NOT_SET,
    enabled_label, same_text, evaluate_all,
)

# ---------- Rules ----------
class BlobPublicAccessRule(Rule):
    property_id = "blob_public_access"
    def evaluate(self, props: AccountSecurityProperties) -> Verdict:
        value = props.allow_blob_public_access
        if value is None:
            return self.warning(NOT_SET)
        if value is True:
            return self.bad(enabled_label(True))
        return self.good(enabled_label(False))

class SharedKeyAccessRule(Rule):
    property_id = "shared_key_access"
    def evaluate(self, props: AccountSecurityProperties) -> Verdict:
        value = props.allow_shared_key_access
        if value is None:
            return self.warning(NOT_SET)
        if value is True:
            return self.bad(enabled_label(True))
        return self.good(enabled_label(False))

class HttpsOnlyRule(Rule):
    property_id = "https_only"
    def evaluate(self, props: AccountSecurityProperties) -> Verdict:
        if props.https_only is True:
            return self.good(enabled_label(True))
        return self.bad(enabled_label(False))

class MinimumTlsVersionRule(Rule):
    property_id = "minimum_tls_version"
    def evaluate(self, props: AccountSecurityProperties) -> Verdict:
        tls = props.minimum_tls_version
        if tls is None:
            return self.warning(NOT_SET)
        if same_text(tls, "TLS1_2", "TLS1_3"):
            return self.good(str(tls))
        # TLS1_0, TLS1_1 and anything unexpected
        return self.bad(str(tls))

class NetworkDefaultActionRule(Rule):
    property_id = "network_default_action"
    def evaluate(self, props: AccountSecurityProperties) -> Verdict:
        action = props.network_default_action
        if action is None:
            return self.warning(NOT_SET)
        if same_text(action, "Deny"):
            return self.good(str(action))
        return self.bad(str(action))

class PublicNetworkAccessRule(Rule):
    property_id = "public_network_access"
    def evaluate(self, props: AccountSecurityProperties) -> Verdict:
        access = props.public_network_access
        if same_text(access, "Disabled"):
            return self.good(str(access))
        if same_text(access, "Enabled"):
            return self.bad(str(access))
        return self.warning(NOT_SET if access is None else str(access))

ACCOUNT_RULES: List[Rule] = [
    BlobPublicAccessRule(),
    SharedKeyAccessRule(),
    HttpsOnlyRule(),
    MinimumTlsVersionRule(),
    NetworkDefaultActionRule(),
    PublicNetworkAccessRule(),
]

def account_columns() -> List[str]:
    return [r.column for r in ACCOUNT_RULES]

def evaluate_account(props: AccountSecurityProperties) -> List[Verdict]:
    return evaluate_all(ACCOUNT_RULES, props)

def unknown_account_verdicts() -> List[Verdict]:
    """Verdicts shown when the account-level properties could not be fetched."""
    return [Verdict(STATUS_WARNING, "Unknown") for _ in ACCOUNT_RULES]
