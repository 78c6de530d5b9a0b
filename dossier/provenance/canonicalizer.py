"""URL canonicalization: the single source of truth for "is this the same source"."""

from __future__ import annotations

import ipaddress
import re
from urllib.parse import SplitResult, quote, urlsplit

DEFAULT_PORTS = {"http": 80, "https": 443}

# Characters allowed in a path without percent-encoding; existing escapes are kept.
PATH_SAFE = "/%:@!$&'()*+,;=~"

# Whitespace, controls and the code points a domain may not contain.
FORBIDDEN_HOST = re.compile(r"[\x00-\x20\x7f#%/:<>?@\[\\\]^|]")


def _valid_host(host: str) -> bool:
    if ":" in host:
        try:
            ipaddress.IPv6Address(host)
        except ValueError:
            return False
        return True
    return FORBIDDEN_HOST.search(host) is None


def parse_url(raw: str | None) -> SplitResult | None:
    """Decompose ``raw`` into URL parts, or return None if it has no valid scheme and host."""
    if not raw:
        return None
    try:
        parts = urlsplit(raw.strip())
        # .port raises ValueError for a non-numeric or out-of-range port
        parts.port
    except ValueError:
        return None
    if not parts.scheme or not parts.hostname or not _valid_host(parts.hostname):
        return None
    return parts


def is_well_formed(raw: str | None) -> bool:
    return parse_url(raw) is not None


def _remove_dot_segments(path: str) -> str:
    segments = path.split("/")[1:]
    output: list[str] = []
    for segment in segments:
        if segment == "..":
            if output:
                output.pop()
        elif segment != ".":
            output.append(segment)
    if segments and segments[-1] in (".", ".."):
        output.append("")
    return "/" + "/".join(output)


def canonicalize(raw: str | None) -> str:
    """Reduce a URL to its lowercased host plus path.

    Scheme, query string, fragment and credentials are discarded. ``.`` and
    ``..`` path segments are resolved and the path is percent-encoded, so
    ``/a/./b`` and ``/a/b`` or ``/a b`` and ``/a%20b`` share a key. A single
    trailing slash is stripped unless the path is the root. Path case is kept.
    Input that cannot be parsed falls back to the lowercased, trimmed string
    minus one trailing slash; that fallback is best-effort and may not agree
    with the structured form for equivalent URLs. Never raises.
    """
    if not raw:
        return ""

    parts = parse_url(raw)
    if parts is None:
        fallback = raw.strip().lower()
        return fallback[:-1] if fallback.endswith("/") else fallback

    host = parts.hostname
    if ":" in host:
        host = f"[{host}]"
    port = parts.port
    if port is not None and DEFAULT_PORTS.get(parts.scheme.lower()) != port:
        host = f"{host}:{port}"

    path = quote(_remove_dot_segments(parts.path or "/"), safe=PATH_SAFE)
    if len(path) > 1 and path.endswith("/"):
        path = path[:-1]

    return host + path
