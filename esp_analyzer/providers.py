"""Provider table: sending-infrastructure domains and X-header families.

The table is an immutable value passed into the extractor and classifier, so
tests and operators can swap in their own domains without touching module
state. Tables can be loaded from YAML (or JSON, which YAML accepts)::

    domains:
      amazonses.com: Amazon SES
      sendgrid.net: SendGrid
    x_headers:
      - {prefix: x-sg-, label: X-SG, provider: SendGrid}
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import yaml


class ProviderTableError(ValueError):
    """Raised when a provider table file is malformed."""


@dataclass(frozen=True)
class XHeaderFamily:
    prefix: str
    label: str
    provider: str


@dataclass(frozen=True)
class ProviderTable:
    domains: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))
    x_headers: tuple[XHeaderFamily, ...] = ()

    @staticmethod
    def build(
        domains: Mapping[str, str] | Iterable[tuple[str, str]],
        x_headers: Iterable[XHeaderFamily] = (),
    ) -> "ProviderTable":
        items = domains.items() if isinstance(domains, Mapping) else domains
        normalized = {str(domain).strip().lower(): str(name) for domain, name in items}
        return ProviderTable(
            domains=MappingProxyType(normalized),
            x_headers=tuple(x_headers),
        )

    def provider_for(self, domain: str | None) -> str | None:
        if not domain:
            return None
        return self.domains.get(domain.strip().lower())

    def family_for(self, header_name: str) -> XHeaderFamily | None:
        lowered = header_name.lower()
        for family in self.x_headers:
            if lowered.startswith(family.prefix):
                return family
        return None


DEFAULT_DOMAINS: tuple[tuple[str, str], ...] = (
    ("amazonses.com", "Amazon SES"),
    ("sendgrid.net", "SendGrid"),
    ("mailgun.org", "Mailgun"),
    ("sparkpostmail.com", "SparkPost"),
    ("mailjet.com", "Mailjet"),
    ("postmarkapp.com", "Postmark"),
    ("protection.outlook.com", "Microsoft 365/Outlook"),
    ("outlook.com", "Microsoft 365/Outlook"),
    ("smtp.office365.com", "Microsoft 365/Outlook"),
    ("zohomail.com", "Zoho"),
    ("zoho.com", "Zoho"),
    ("google.com", "Gmail"),
    ("gmail.com", "Gmail"),
    ("yahoo.com", "Yahoo"),
    ("yahoo-inc.com", "Yahoo"),
)

DEFAULT_X_HEADERS: tuple[XHeaderFamily, ...] = (
    XHeaderFamily("x-sg-", "X-SG", "SendGrid"),
    XHeaderFamily("x-mailgun-", "X-Mailgun", "Mailgun"),
    XHeaderFamily("x-mj-", "X-MJ", "Mailjet"),
    XHeaderFamily("x-ses-", "X-SES", "Amazon SES"),
    XHeaderFamily("x-ms-exchange-", "X-MS-Exchange", "Microsoft 365/Outlook"),
    XHeaderFamily("x-pm-", "X-PM", "Postmark"),
    XHeaderFamily("x-sp-", "X-SP", "SparkPost"),
)

DEFAULT_PROVIDERS = ProviderTable.build(DEFAULT_DOMAINS, DEFAULT_X_HEADERS)


def load_provider_table(path: str | Path | None) -> ProviderTable:
    """Load a provider table from YAML/JSON; missing or empty files give the default."""
    if not path:
        return DEFAULT_PROVIDERS
    table_path = Path(path)
    if not table_path.exists():
        return DEFAULT_PROVIDERS
    try:
        with table_path.open(encoding="utf-8") as handle:
            document = yaml.safe_load(handle)
    except yaml.YAMLError as exc:
        raise ProviderTableError(f"Invalid provider table {table_path}: {exc}") from exc
    if not document:
        return DEFAULT_PROVIDERS
    return provider_table_from_dict(document, source=str(table_path))


def provider_table_from_dict(document: Any, source: str = "<dict>") -> ProviderTable:
    if not isinstance(document, dict):
        raise ProviderTableError(f"{source}: expected a mapping at top level")
    domains = document.get("domains") or {}
    if not isinstance(domains, dict):
        raise ProviderTableError(f"{source}: 'domains' must map domain to provider name")

    families = DEFAULT_X_HEADERS
    if "x_headers" in document:
        families = tuple(_parse_family(item, source) for item in document["x_headers"] or [])
    return ProviderTable.build(domains, families)


def _parse_family(item: Any, source: str) -> XHeaderFamily:
    if not isinstance(item, dict):
        raise ProviderTableError(f"{source}: each x_headers entry must be a mapping")
    try:
        prefix = str(item["prefix"]).strip().lower()
        provider = str(item["provider"])
    except KeyError as exc:
        raise ProviderTableError(f"{source}: x_headers entry missing {exc}") from exc
    label = str(item.get("label") or prefix.rstrip("-").upper())
    return XHeaderFamily(prefix=prefix, label=label, provider=provider)
