"""Identity signal extraction from normalized headers.

Nothing here scores anything; every function only surfaces the raw values
the classifier needs (DKIM ``d=``, Return-Path and Message-ID domains,
Authentication-Results verdicts, provider X-headers).
"""

from __future__ import annotations

import re
from typing import Mapping, Sequence

from .header_utils import coerce_text
from .models import AuthResults, DkimResult, DmarcResult, EspSignals, SpfResult, XHeaderSignal
from .providers import DEFAULT_PROVIDERS, ProviderTable


_SPF_RE = re.compile(r"spf=(\w+)(?:\s+\(([^)]+)\))?", re.IGNORECASE)
_DKIM_RE = re.compile(r"dkim=(\w+)(?:\s+\(([^)]+)\))?", re.IGNORECASE)
_DMARC_RE = re.compile(r"dmarc=(\w+)(?:\s+\(([^)]+)\))?", re.IGNORECASE)
_DKIM_D_RE = re.compile(r"(?:^|[;\s])d\s*=\s*([^;\s]+)", re.IGNORECASE)
_MESSAGE_ID_RE = re.compile(r"<[^>]*?@([^>]+)>")
_BRACKETED_RE = re.compile(r"<([^>]+)>")
_BRACKETED_DOMAIN_RE = re.compile(r"@([^@]+)$")
_PLAIN_DOMAIN_RE = re.compile(r"@([^@\s]+)")


def parse_authentication_results(values: Sequence[str] | None) -> AuthResults:
    """Parse the most recent (first) Authentication-Results value.

    Older entries were added by earlier relays; only the final verdict is used.
    """
    if not values:
        return AuthResults()
    latest = values[0]
    spf = _SPF_RE.search(latest)
    dkim = _DKIM_RE.search(latest)
    dmarc = _DMARC_RE.search(latest)
    return AuthResults(
        spf=SpfResult(result=spf.group(1), domain=spf.group(2)) if spf else None,
        dkim=DkimResult(result=dkim.group(1), d=dkim.group(2)) if dkim else None,
        dmarc=DmarcResult(result=dmarc.group(1), policy=dmarc.group(2)) if dmarc else None,
    )


def extract_message_id_domain(message_id: str | None) -> str | None:
    message_id = coerce_text(message_id)
    if not message_id:
        return None
    match = _MESSAGE_ID_RE.search(message_id)
    return match.group(1).strip().lower() if match else None


def extract_return_path_domain(return_path: str | None) -> str | None:
    if not return_path:
        return None
    bracketed = _BRACKETED_RE.search(return_path)
    if bracketed:
        match = _BRACKETED_DOMAIN_RE.search(bracketed.group(1))
    else:
        match = _PLAIN_DOMAIN_RE.search(return_path)
    return match.group(1).strip().lower() if match else None


def extract_dkim_d(signatures: Sequence[str] | None) -> str | None:
    """Return the first ``d=`` tag found across the DKIM-Signature values."""
    for signature in signatures or []:
        match = _DKIM_D_RE.search(signature)
        if match:
            return match.group(1).lower()
    return None


def extract_received_domains(
    received: Sequence[str] | None, providers: ProviderTable = DEFAULT_PROVIDERS
) -> list[str]:
    """Return, per Received value, the first known domain found in it.

    Matching is a case-insensitive substring test against the whole value,
    so a provider domain inside an unrelated token also matches.
    """
    found: list[str] = []
    for value in received or []:
        lowered = value.lower()
        for domain in providers.domains:
            if domain in lowered:
                found.append(domain)
                break
    return found


def extract_x_provider_signals(
    headers: Mapping[str, Sequence[str]], providers: ProviderTable = DEFAULT_PROVIDERS
) -> list[XHeaderSignal]:
    signals: list[XHeaderSignal] = []
    for name in headers:
        family = providers.family_for(name)
        if family is None:
            continue
        remainder = name.lower()[len(family.prefix) :]
        signals.append(
            XHeaderSignal(token=f"{family.label}-{remainder.upper()}", provider=family.provider)
        )
    return signals


def extract_signals(
    headers: Mapping[str, Sequence[str]],
    message_id: str | None = None,
    providers: ProviderTable = DEFAULT_PROVIDERS,
) -> EspSignals:
    """Collect every identity signal from a lower-cased header map."""
    if not isinstance(message_id, (str, bytes)):
        message_id = _first(headers.get("message-id"))
    return EspSignals(
        dkim_d=extract_dkim_d(headers.get("dkim-signature")),
        received_domains=tuple(extract_received_domains(headers.get("received"), providers)),
        message_id_domain=extract_message_id_domain(message_id),
        return_path_domain=extract_return_path_domain(_first(headers.get("return-path"))),
        auth_results=parse_authentication_results(headers.get("authentication-results")),
        x_headers=tuple(extract_x_provider_signals(headers, providers)),
    )


def _first(values: Sequence[str] | None) -> str | None:
    return values[0] if values else None
