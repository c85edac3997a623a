"""Data models for header analysis results."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class HeaderBlock:
    name: str
    value: str


@dataclass(frozen=True)
class Hop:
    from_: str
    by: str
    with_: str | None = None
    id: str | None = None
    for_: str | None = None
    ip: str | None = None
    timestamp: datetime | None = None
    hop_duration_ms: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"from": self.from_, "by": self.by}
        optional = {
            "with": self.with_,
            "id": self.id,
            "for": self.for_,
            "ip": self.ip,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "hop_duration_ms": self.hop_duration_ms,
        }
        data.update({key: value for key, value in optional.items() if value is not None})
        return data


@dataclass(frozen=True)
class ChainResult:
    hops: tuple[Hop, ...] = ()
    warnings: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"hops": [hop.to_dict() for hop in self.hops]}
        if self.warnings:
            data["warnings"] = list(self.warnings)
        return data


@dataclass(frozen=True)
class SpfResult:
    result: str
    domain: str | None = None


@dataclass(frozen=True)
class DkimResult:
    result: str
    d: str | None = None


@dataclass(frozen=True)
class DmarcResult:
    result: str
    policy: str | None = None


@dataclass(frozen=True)
class AuthResults:
    spf: SpfResult | None = None
    dkim: DkimResult | None = None
    dmarc: DmarcResult | None = None

    def to_dict(self) -> dict[str, dict[str, str]]:
        data: dict[str, dict[str, str]] = {}
        if self.spf:
            data["spf"] = _compact({"result": self.spf.result, "domain": self.spf.domain})
        if self.dkim:
            data["dkim"] = _compact({"result": self.dkim.result, "d": self.dkim.d})
        if self.dmarc:
            data["dmarc"] = _compact({"result": self.dmarc.result, "policy": self.dmarc.policy})
        return data


@dataclass(frozen=True)
class XHeaderSignal:
    """One provider-specific header, e.g. ``X-SG-EID`` from SendGrid."""

    token: str
    provider: str


@dataclass(frozen=True)
class EspSignals:
    dkim_d: str | None = None
    received_domains: tuple[str, ...] = ()
    message_id_domain: str | None = None
    return_path_domain: str | None = None
    auth_results: AuthResults = field(default_factory=AuthResults)
    x_headers: tuple[XHeaderSignal, ...] = ()


@dataclass(frozen=True)
class DetectionContext:
    mailbox: str | None = None
    used_x_received: bool = False


@dataclass(frozen=True)
class EspDetection:
    provider: str
    confidence: float
    reasons: tuple[str, ...] = ()
    signals: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "provider": self.provider,
            "confidence": self.confidence,
            "reasons": list(self.reasons),
            "signals": dict(self.signals),
        }


@dataclass(frozen=True)
class MessageAnalysis:
    message_id: str | None
    subject: str | None
    from_addr: str | None
    to_addr: str | None
    date: str | None
    headers: dict[str, list[str]]
    chain: ChainResult
    auth_results: AuthResults
    esp: EspDetection
    timing: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class AnalysisReport:
    root: MessageAnalysis
    reliable: bool = False


def _compact(values: dict[str, str | None]) -> dict[str, str]:
    return {key: value for key, value in values.items() if value is not None}
