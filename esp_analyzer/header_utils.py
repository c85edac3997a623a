"""Header normalization: unfolding, block splitting and lookups."""

from __future__ import annotations

import re
from typing import Iterable, Mapping, Sequence

from .models import HeaderBlock


# Blank lines directly before a folded line are folded too, so unfolding twice
# gives the same text as unfolding once.
_FOLD_RE = re.compile(r"(?:\r?\n)+[ \t]+")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_HEADER_LINE_RE = re.compile(r"^([^:]+):\s*(.*)$")


def coerce_text(raw: str | bytes | None) -> str:
    """Return ``raw`` as text; anything that is not str/bytes becomes ''."""
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    if isinstance(raw, str):
        return raw
    return ""


def unfold_headers(raw: str | bytes | None) -> str:
    """Remove RFC 5322 line folding (a line break followed by blanks becomes one space)."""
    return _FOLD_RE.sub(" ", coerce_text(raw))


def header_section(raw: str | bytes | None) -> str:
    """Return the part of a full message before the first blank line."""
    lines = []
    for line in _LINE_SPLIT_RE.split(coerce_text(raw)):
        if not line.strip():
            if lines:
                break
            continue
        lines.append(line)
    return "\n".join(lines)


def split_header_blocks(unfolded: str) -> list[HeaderBlock]:
    blocks: list[HeaderBlock] = []
    name: str | None = None
    value = ""
    for line in _LINE_SPLIT_RE.split(coerce_text(unfolded)):
        line = line.strip()
        if not line:
            continue
        match = _HEADER_LINE_RE.match(line)
        if match:
            if name is not None:
                blocks.append(HeaderBlock(name=name, value=value))
            name = match.group(1).strip().lower()
            value = match.group(2).strip()
        elif name is not None:
            value = f"{value} {line}" if value else line
    if name is not None:
        blocks.append(HeaderBlock(name=name, value=value))
    return blocks


def parse_header_blocks(raw: str | bytes | None) -> list[HeaderBlock]:
    return split_header_blocks(unfold_headers(raw))


def get_all(blocks: Iterable[HeaderBlock], name: str) -> list[str]:
    wanted = name.lower()
    return [block.value for block in blocks if block.name == wanted]


def get_one(blocks: Iterable[HeaderBlock], name: str) -> str | None:
    wanted = name.lower()
    for block in blocks:
        if block.name == wanted:
            return block.value
    return None


def headers_to_map(blocks: Iterable[HeaderBlock]) -> dict[str, list[str]]:
    result: dict[str, list[str]] = {}
    for block in blocks:
        result.setdefault(block.name, []).append(block.value)
    return result


def normalize_header_map(
    headers: Mapping[str, str | Sequence[str]] | None,
) -> dict[str, list[str]]:
    """Lower-case header names and make every value a list, keeping value order.

    Names that differ only by case are merged in the order they are met.
    Anything that is not a mapping counts as no headers, and a value that is
    not a list or tuple is read as a single value.
    """
    result: dict[str, list[str]] = {}
    if not isinstance(headers, Mapping):
        return result
    for name, values in headers.items():
        if values is None:
            continue
        if not isinstance(values, (list, tuple)):
            values = [values]
        bucket = result.setdefault(str(name).strip().lower(), [])
        bucket.extend(coerce_text(item) for item in values)
    return result
