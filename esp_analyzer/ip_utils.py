"""IP extraction helpers."""

import ipaddress
import re


_BRACKETED_IP_RE = re.compile(r"\[(?:IPv6:)?([0-9A-Fa-f:.]+)\]", re.IGNORECASE)


def extract_bracketed_ip(text: str | None) -> str | None:
    """Return the first bracketed IPv4/IPv6 literal in ``text`` that is a valid address."""
    if not text:
        return None
    for candidate in _BRACKETED_IP_RE.findall(text):
        try:
            ipaddress.ip_address(candidate)
        except ValueError:
            continue
        return candidate
    return None


def extract_hop_ip(from_token: str | None, by_token: str | None) -> str | None:
    return extract_bracketed_ip(from_token) or extract_bracketed_ip(by_token)
