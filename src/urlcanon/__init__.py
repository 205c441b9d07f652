from loguru import logger

from urlcanon.errors import (
    InternalError,
    NormalizeError,
    RegexParseError,
    UrlEncodeError,
    UrlParseError,
)
from urlcanon.normalizer import ParsedUrl, UrlNormalizer, normalize_url, parse_url
from urlcanon.path import normalize_path
from urlcanon.query import canonicalize_query, compile_removal_rules, serialize_query

# Library default; the CLI re-enables its own output.
logger.disable("urlcanon")

__all__ = [
    "InternalError",
    "NormalizeError",
    "ParsedUrl",
    "RegexParseError",
    "UrlEncodeError",
    "UrlNormalizer",
    "UrlParseError",
    "canonicalize_query",
    "compile_removal_rules",
    "normalize_path",
    "normalize_url",
    "parse_url",
    "serialize_query",
]
