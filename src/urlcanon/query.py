from __future__ import annotations

import re
from typing import Iterable, Mapping
from urllib.parse import unquote_to_bytes

from loguru import logger

from urlcanon.errors import RegexParseError

RemovalRules = tuple[re.Pattern[str], ...]


def compile_removal_rules(patterns: Iterable[str] | None) -> RemovalRules:
    """Compile every pattern up front; one bad pattern rejects the whole set."""
    if patterns is None:
        return ()
    if isinstance(patterns, str):
        patterns = [patterns]
    rules: list[re.Pattern[str]] = []
    for pattern in patterns:
        try:
            rules.append(re.compile(pattern))
        except re.error as exc:
            raise RegexParseError(pattern, str(exc)) from exc
    return tuple(rules)


def decode_component(value: str) -> str | None:
    """Percent-decode ``value`` as UTF-8. Returns None if the bytes are not UTF-8.

    ``+`` is left alone; only ``%XX`` escapes are decoded.
    """
    try:
        return unquote_to_bytes(value).decode("utf-8")
    except UnicodeError:
        return None


def split_pair(pair: str) -> tuple[str, str] | None:
    """Split one ``key=value`` token, decoding each side independently.

    A bare ``key`` yields an empty value and ``=value`` an empty key. A key
    that fails to decode drops the whole token; a value that fails to decode
    is dropped and the key kept with an empty value.
    """
    raw_key, sep, raw_value = pair.partition("=")
    key = decode_component(raw_key)
    if key is None:
        return None
    if not sep:
        return key, ""
    value = decode_component(raw_value)
    if value is None:
        return key, ""
    return key, value


def canonicalize_query(
    query: str | None,
    remove_patterns: Iterable[str] | None = None,
    *,
    rules: RemovalRules | None = None,
) -> dict[str, str]:
    """Decode, filter and sort the parameters of a raw query string.

    Parameters whose decoded key matches any of ``remove_patterns`` are left
    out. Duplicate keys keep the last value. The returned dict iterates in
    ascending key order.
    """
    if rules is not None and remove_patterns is not None:
        raise TypeError("Pass either remove_patterns or precompiled rules, not both")
    if query is None:
        return {}
    if rules is None:
        rules = compile_removal_rules(remove_patterns)

    params: dict[str, str] = {}
    for pair in query.split("&"):
        if not pair:
            continue
        token = split_pair(pair)
        if token is None:
            logger.debug("Skipping undecodable query pair {pair!r}", pair=pair)
            continue
        key, value = token
        if any(rule.search(key) for rule in rules):
            continue
        params[key] = value

    return {key: params[key] for key in sorted(params)}


def serialize_query(params: Mapping[str, str]) -> str:
    """Render parameters as ``k1=v1&k2=v2`` in key order, values left decoded.

    Decoded keys or values containing ``&``, ``=`` or ``#`` are emitted as is,
    so a URL carrying them does not survive a second normalization unchanged.
    """
    return "&".join(f"{key}={params[key]}" for key in sorted(params))
