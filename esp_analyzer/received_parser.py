"""Receiving-chain reconstruction from Received / X-Received headers.

A Received header is one free-text field, e.g.::

    from mail.example.com (mail.example.com [192.0.2.10])
        by mx.example.net with ESMTPS id abc123
        for <user@example.net>; Tue, 02 Jan 2024 10:00:00 +0000

The clause before the first semicolon is read as a sequence of words.
``from`` and ``by`` are required, ``with``, ``id`` and ``for`` are optional
and must follow in that order. A field value is the shortest run of words up
to the next keyword that may legally follow it, so a keyword that is out of
order (or would leave the current field empty) is kept as plain text. Since
``by`` is required, it is the only keyword that can end the ``from`` value.
Everything after the semicolon is the date-time.
"""

from __future__ import annotations

import re
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime

from .header_utils import coerce_text, get_all, header_section, parse_header_blocks
from .ip_utils import extract_hop_ip
from .log_utils import log, log_debug
from .models import ChainResult, HeaderBlock, Hop


WARN_USED_X_RECEIVED = "Used X-Received headers"
WARN_NO_RECEIVED = "No Received headers found"
WARN_NO_PARSEABLE = "No parseable Received headers"

_FIELDS = ("from", "by", "with", "id", "for")
_REQUIRED = ("from", "by")
_WHITESPACE_RE = re.compile(r"\s+")
_ONE_MS = timedelta(milliseconds=1)


def parse_receiving_chain(
    raw_headers: str | bytes | None, verbose: bool = False, debug: bool = False
) -> ChainResult:
    """Parse raw header text (or a full message) into hops ordered oldest to newest.

    Only the header section, up to the first blank line, is read.

    Never raises for message data: malformed hops are dropped and the
    reasons for an empty or degraded chain are reported as warnings.
    """
    blocks = parse_header_blocks(header_section(raw_headers))
    return parse_chain_from_blocks(blocks, verbose=verbose, debug=debug)


def parse_chain_from_blocks(
    blocks: list[HeaderBlock], verbose: bool = False, debug: bool = False
) -> ChainResult:
    warnings: list[str] = []
    values = get_all(blocks, "received")
    if not values:
        values = get_all(blocks, "x-received")
        if values:
            log(verbose, "No Received headers, falling back to X-Received")
            warnings.append(WARN_USED_X_RECEIVED)
    if not values:
        log(verbose, "No Received or X-Received headers found")
        return ChainResult(hops=(), warnings=(WARN_NO_RECEIVED,))

    hops: list[Hop] = []
    for value in values:
        hop = parse_received_value(value)
        if hop is None:
            log_debug(debug, f"Dropped unparseable Received value: {value[:120]!r}")
            continue
        hops.append(hop)

    # Received headers are prepended by each relay, so the list is newest first.
    if not hops:
        log(verbose, "Received headers present but none could be parsed")
        warnings.append(WARN_NO_PARSEABLE)
    hops.reverse()
    log(verbose, f"Parsed {len(hops)} hop(s) from {len(values)} header value(s)")
    return ChainResult(hops=tuple(_with_durations(hops)), warnings=tuple(warnings))


def parse_received_value(value: str) -> Hop | None:
    """Parse one Received value, or return None when it does not fit the grammar."""
    cleaned = _WHITESPACE_RE.sub(" ", coerce_text(value)).strip()
    if ";" not in cleaned:
        return None
    clause, date_text = cleaned.split(";", 1)
    fields = _match_clause(clause.split())
    if fields is None:
        return None
    return Hop(
        from_=fields["from"],
        by=fields["by"],
        with_=fields.get("with"),
        id=fields.get("id"),
        for_=fields.get("for"),
        ip=extract_hop_ip(fields["from"], fields["by"]),
        timestamp=parse_received_date(date_text),
    )


def parse_received_date(value: str | None) -> datetime | None:
    if not value or not value.strip():
        return None
    try:
        parsed = parsedate_to_datetime(value.strip())
    except (TypeError, ValueError, IndexError):
        return None
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _match_clause(words: list[str]) -> dict[str, str] | None:
    # Leading text before "from" is ignored; if one "from" cannot start a
    # valid clause, a later one may.
    for start, word in enumerate(words):
        if word.lower() != "from":
            continue
        fields = _read_fields(words[start + 1 :])
        if fields is not None:
            return fields
    return None


def _read_fields(words: list[str]) -> dict[str, str] | None:
    # (field name, keyword as written, words of the value)
    collected: list[tuple[str, str, list[str]]] = [("from", "from", [])]
    for word in words:
        keyword = word.lower()
        current, _, current_words = collected[-1]
        # Only "by" may close the "from" value; other keywords in a from
        # comment (TLS cipher details, HELO text) are plain words.
        if (
            keyword in _FIELDS
            and current_words
            and _FIELDS.index(keyword) > _FIELDS.index(current)
            and (current != "from" or keyword == "by")
        ):
            collected.append((keyword, word, []))
        else:
            current_words.append(word)

    # A trailing keyword with nothing after it belongs to the previous field.
    while len(collected) > 1 and not collected[-1][2]:
        _, written, _ = collected.pop()
        collected[-1][2].append(written)

    fields = {name: " ".join(parts) for name, _, parts in collected if parts}
    if any(name not in fields for name in _REQUIRED):
        return None
    return fields


def _with_durations(hops: list[Hop]) -> list[Hop]:
    result: list[Hop] = []
    for index, hop in enumerate(hops):
        following = hops[index + 1] if index + 1 < len(hops) else None
        if hop.timestamp and following is not None and following.timestamp:
            # Negative values mean clock skew between relays and are kept as-is.
            duration = (following.timestamp - hop.timestamp) // _ONE_MS
            hop = replace(hop, hop_duration_ms=duration)
        result.append(hop)
    return result
