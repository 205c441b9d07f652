from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable
from urllib.parse import quote, unquote_to_bytes, urlsplit

from loguru import logger

from urlcanon.errors import UrlEncodeError, UrlParseError
from urlcanon.path import normalize_path
from urlcanon.query import RemovalRules, canonicalize_query, serialize_query

DEFAULT_PORT = 80

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+\-.]*$")
# Schemes that are meaningless without an authority.
_HOST_REQUIRED_SCHEMES = frozenset({"http", "https", "ftp", "ws", "wss"})


@dataclass(frozen=True)
class ParsedUrl:
    raw: str
    scheme: str
    host: str | None
    port: int | None
    path: str
    query: str | None

    @property
    def is_opaque(self) -> bool:
        return not self.path


def parse_url(tainted_url: str) -> ParsedUrl:
    url = tainted_url.strip()
    if not url:
        raise UrlParseError(tainted_url, "empty URL")
    try:
        parts = urlsplit(url)
        port = parts.port
    except ValueError as exc:
        raise UrlParseError(url, str(exc)) from exc

    if not parts.scheme:
        raise UrlParseError(url, "missing scheme")
    if not _SCHEME_RE.match(parts.scheme):
        raise UrlParseError(url, f"malformed scheme {parts.scheme!r}")
    host = parts.hostname
    if parts.scheme in _HOST_REQUIRED_SCHEMES and not host:
        raise UrlParseError(url, f"{parts.scheme} URL without host")

    path = parts.path
    # Hierarchical URLs always have a path rooted at "/", even when none is written.
    if not path and parts.scheme in _HOST_REQUIRED_SCHEMES:
        path = "/"

    # urlsplit drops a bare "?", keep it distinct from an absent query.
    query = parts.query if parts.query or "?" in url.split("#", 1)[0] else None
    return ParsedUrl(
        raw=url,
        scheme=parts.scheme,
        host=host,
        port=port,
        path=path,
        query=query,
    )


def encode_path(path: str) -> str:
    """Percent-encode each ``/``-delimited segment on its own.

    Segments are decoded to bytes first so existing escapes are not encoded a
    second time; everything outside the unreserved set is escaped.
    """
    try:
        return "/".join(
            quote(unquote_to_bytes(segment), safe="") for segment in path.split("/")
        )
    except UnicodeError as exc:
        raise UrlEncodeError(f"Cannot percent-encode path {path!r}: {exc}") from exc


class UrlNormalizer:
    """Holds one parsed URL and renders its canonical form.

    >>> UrlNormalizer("https://example.com/main.php?c=1&b=2&a=5").normalize()
    'https://example.com/main.php?a=5&b=2&c=1'
    """

    def __init__(self, tainted_url: str) -> None:
        self.url = parse_url(tainted_url)

    @classmethod
    def parse(cls, tainted_url: str) -> UrlNormalizer:
        return cls(tainted_url)

    def __repr__(self) -> str:
        return f"UrlNormalizer({self.url.raw!r})"

    def normalize(
        self,
        remove_patterns: Iterable[str] | None = None,
        *,
        rules: RemovalRules | None = None,
    ) -> str:
        """Return the canonical form. ``rules`` may carry precompiled patterns."""
        url = self.url
        if url.is_opaque:
            logger.debug("Opaque URL {url!r}; returned unchanged", url=url.raw)
            return url.raw

        path = normalize_path(encode_path(url.path))
        params = canonicalize_query(url.query, remove_patterns, rules=rules)
        return _reassemble(url, path, params)


def _reassemble(url: ParsedUrl, path: str, params: dict[str, str]) -> str:
    host = url.host or ""
    if ":" in host:
        host = f"[{host}]"
    port = ""
    if url.port is not None and url.port != DEFAULT_PORT:
        port = f":{url.port}"
    query = serialize_query(params)
    if query:
        query = f"?{query}"
    return f"{url.scheme}://{host}{port}{path}{query}"


def normalize_url(
    tainted_url: str, remove_patterns: Iterable[str] | None = None
) -> str:
    """Parse ``tainted_url`` and return its canonical form in one call."""
    return UrlNormalizer(tainted_url).normalize(remove_patterns)
