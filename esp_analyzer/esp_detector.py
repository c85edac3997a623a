"""ESP classification from weighted identity signals."""

from __future__ import annotations

from typing import Mapping, Sequence

from .auth_parser import extract_signals
from .header_utils import normalize_header_map
from .log_utils import log_debug
from .models import DetectionContext, EspDetection, EspSignals
from .providers import DEFAULT_PROVIDERS, ProviderTable


UNKNOWN_PROVIDER = "Unknown"

WEIGHT_DKIM = 5
WEIGHT_RECEIVED = 4
WEIGHT_MESSAGE_ID = 3
WEIGHT_X_HEADER = 3
WEIGHT_RETURN_PATH = 2
WEIGHT_SPF = 1

# A single DKIM match plus one secondary signal reaches high confidence.
CONFIDENCE_SCALE = 10.0


class _Scoreboard:
    """Running provider scores; insertion order is the tie-break order."""

    def __init__(self) -> None:
        self.scores: dict[str, int] = {}
        self.reasons: list[str] = []

    def add(self, provider: str, weight: int, reason: str) -> None:
        self.scores[provider] = self.scores.get(provider, 0) + weight
        self.reasons.append(reason)

    def best(self) -> tuple[str, int]:
        best_provider, best_score = UNKNOWN_PROVIDER, 0
        for provider, score in self.scores.items():
            if score > best_score:
                best_provider, best_score = provider, score
        return best_provider, best_score


def detect_esp(
    headers: Mapping[str, str | Sequence[str]] | None,
    message_id: str | None = None,
    context: DetectionContext | None = None,
    providers: ProviderTable = DEFAULT_PROVIDERS,
    debug: bool = False,
) -> EspDetection:
    """Score provider hypotheses and return the best one with its reasons.

    Signals are evaluated DKIM, Received, Message-ID, X-headers,
    Return-Path, SPF; a provider reached earlier wins a tie.
    """
    header_map = normalize_header_map(headers)
    signals = extract_signals(header_map, message_id=message_id, providers=providers)
    return classify_signals(signals, context=context, providers=providers, debug=debug)


def classify_signals(
    signals: EspSignals,
    context: DetectionContext | None = None,
    providers: ProviderTable = DEFAULT_PROVIDERS,
    debug: bool = False,
) -> EspDetection:
    context = context or DetectionContext()
    board = _Scoreboard()
    summary: dict[str, str] = {}

    if signals.dkim_d:
        summary["dkim_d"] = signals.dkim_d
        provider = providers.provider_for(signals.dkim_d)
        if provider:
            board.add(provider, WEIGHT_DKIM, f"DKIM d={signals.dkim_d}")

    received_suffix = " (X-Received fallback)" if context.used_x_received else ""
    for domain in signals.received_domains:
        summary["received_domain"] = domain
        provider = providers.provider_for(domain)
        if provider:
            board.add(provider, WEIGHT_RECEIVED, f"Received via {domain}{received_suffix}")

    if signals.message_id_domain:
        summary["message_id_domain"] = signals.message_id_domain
        provider = providers.provider_for(signals.message_id_domain)
        if provider:
            board.add(
                provider, WEIGHT_MESSAGE_ID, f"Message-ID domain {signals.message_id_domain}"
            )

    if signals.x_headers:
        summary["x_headers"] = ", ".join(signal.token for signal in signals.x_headers)
        families: dict[str, list[str]] = {}
        for signal in signals.x_headers:
            families.setdefault(signal.provider, []).append(signal.token)
        for provider, tokens in families.items():
            board.add(provider, WEIGHT_X_HEADER, f"{', '.join(tokens)} present")

    if signals.return_path_domain:
        summary["return_path_domain"] = signals.return_path_domain
        provider = providers.provider_for(signals.return_path_domain)
        if provider:
            board.add(
                provider, WEIGHT_RETURN_PATH, f"Return-Path domain {signals.return_path_domain}"
            )

    spf = signals.auth_results.spf
    if spf and spf.domain:
        summary["spf_domain"] = spf.domain
        provider = providers.provider_for(spf.domain)
        if provider:
            board.add(provider, WEIGHT_SPF, f"SPF domain {spf.domain}")

    best_provider, best_score = board.best()
    confidence = min(1.0, best_score / CONFIDENCE_SCALE)
    reasons = list(board.reasons)
    if reasons and context.mailbox:
        reasons.append(f"Message located in mailbox {context.mailbox}")

    log_debug(debug, f"ESP signals: {summary}")
    log_debug(debug, f"ESP scores: {board.scores}")
    log_debug(debug, f"ESP result: {best_provider} ({confidence:.2f})")
    return EspDetection(
        provider=best_provider,
        confidence=confidence,
        reasons=tuple(reasons),
        signals=summary,
    )


def is_reliable(detection: EspDetection, threshold: float = 0.6) -> bool:
    return detection.provider != UNKNOWN_PROVIDER and detection.confidence >= threshold
