"""Transit timing summary for a parsed receiving chain."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from .models import ChainResult
from .received_parser import parse_received_date


_ONE_MS = timedelta(milliseconds=1)


def summarize_timing(chain: ChainResult, date_header: str | None = None) -> dict[str, Any]:
    hops = chain.hops
    timing: dict[str, Any] = {"hop_count": len(hops)}
    timestamps = [hop.timestamp for hop in hops if hop.timestamp]
    timing["timed_hops"] = len(timestamps)

    if len(timestamps) >= 2:
        timing["total_transit_ms"] = (timestamps[-1] - timestamps[0]) // _ONE_MS

    durations = [hop.hop_duration_ms for hop in hops if hop.hop_duration_ms is not None]
    if durations:
        timing["max_hop_ms"] = max(durations)

    skewed = [
        index
        for index, hop in enumerate(hops, start=1)
        if hop.hop_duration_ms is not None and hop.hop_duration_ms < 0
    ]
    if skewed:
        timing["clock_skew_hops"] = skewed

    date_dt = parse_received_date(date_header)
    if date_dt and timestamps:
        timing["date_drift_minutes"] = int((timestamps[0] - date_dt).total_seconds() / 60)
    return timing
