from __future__ import annotations

import itertools

import pytest

from urlcanon import normalize_url
from urlcanon.errors import RegexParseError, UrlEncodeError, UrlParseError
from urlcanon.normalizer import UrlNormalizer, encode_path, parse_url
from urlcanon.query import compile_removal_rules


def test_query_parameters_sorted():
    normalizer = UrlNormalizer("https://example.com/main.php?c=1&b=2&a=5")

    assert normalizer.normalize() == "https://example.com/main.php?a=5&b=2&c=1"


def test_tracking_parameters_removed_and_port_kept():
    normalizer = UrlNormalizer(
        "https://example.com:8080/main.php?c=1&b=2&a=5"
        "&utm_source=facebook&utm_medium=social&utm_campaign=seofanpage"
    )

    assert normalizer.normalize(["utm_.*"]) == "https://example.com:8080/main.php?a=5&b=2&c=1"


def test_dot_segment_removed():
    normalizer = UrlNormalizer("https://example.com:8080/./main.php?c=1&b=2&a=5")

    assert normalizer.normalize() == "https://example.com:8080/main.php?a=5&b=2&c=1"


def test_malformed_pattern_raises_regex_parse_error():
    normalizer = UrlNormalizer("https://example.com/main.php?a=1")

    with pytest.raises(RegexParseError) as excinfo:
        normalizer.normalize(["utm_[a-z"])
    assert excinfo.value.pattern == "utm_[a-z"


@pytest.mark.parametrize(
    "url",
    ["example.com/main.php", "", "   ", "http://", "https://example.com:99999/", "1http://x/"],
)
def test_invalid_urls_raise_url_parse_error(url):
    with pytest.raises(UrlParseError):
        UrlNormalizer(url)


def test_surrounding_whitespace_is_trimmed():
    assert normalize_url("  https://example.com/a/../b?y=1&x=2 \n") == "https://example.com/b?x=2&y=1"


def test_port_80_omitted_other_ports_kept():
    assert normalize_url("http://example.com:80/a") == "http://example.com/a"
    assert normalize_url("https://example.com:443/a") == "https://example.com:443/a"
    assert normalize_url("http://example.com:8000/a") == "http://example.com:8000/a"


def test_scheme_and_host_lowercased_by_parser():
    assert normalize_url("HTTPS://Example.COM/Path") == "https://example.com/Path"


def test_ipv6_host_keeps_brackets():
    assert normalize_url("http://[::1]:8080/x/./y") == "http://[::1]:8080/x/y"


def test_userinfo_and_fragment_are_dropped():
    assert normalize_url("https://user:pw@example.com/a?b=1#frag") == "https://example.com/a?b=1"


def test_missing_path_on_web_url_becomes_root():
    assert normalize_url("https://Example.com?b=2&a=1") == "https://example.com/?a=1&b=2"
    assert normalize_url("https://example.com?a=1&b=2") == "https://example.com/?a=1&b=2"
    assert normalize_url("https://example.com") == "https://example.com/"
    assert parse_url("http://example.com").path == "/"


def test_empty_path_is_opaque_passthrough():
    url = "foo://host?b=2&a=1&utm_source=x"

    assert parse_url(url).is_opaque
    assert normalize_url(url, ["utm_.*"]) == url


def test_empty_query_emits_no_question_mark():
    assert normalize_url("https://example.com/a?") == "https://example.com/a"
    assert normalize_url("https://example.com/a?utm_x=1", ["utm_"]) == "https://example.com/a"


def test_path_segments_are_re_encoded_consistently():
    assert normalize_url("https://example.com/a b/c%20d") == "https://example.com/a%20b/c%20d"
    assert normalize_url("https://example.com/%7euser/") == "https://example.com/~user/"
    assert normalize_url("https://example.com/caf%c3%a9") == "https://example.com/caf%C3%A9"


def test_encoded_dot_segments_are_removed():
    assert normalize_url("https://example.com/a/%2e%2e/b") == "https://example.com/b"


def test_encoded_slash_stays_inside_its_segment():
    assert normalize_url("https://example.com/a%2Fb/../c") == "https://example.com/c"


def test_encode_path_keeps_separators_and_escapes_reserved():
    assert encode_path("/a:b/c@d//e") == "/a%3Ab/c%40d//e"


def test_encode_path_rejects_unencodable_text():
    with pytest.raises(UrlEncodeError):
        encode_path("/bad\ud800segment")


def test_normalize_does_not_mutate_the_source_url():
    normalizer = UrlNormalizer("https://example.com/x/../y?b=1&a=2")
    before = normalizer.url

    first = normalizer.normalize()
    second = normalizer.normalize(["^a$"])

    assert normalizer.url is before
    assert normalizer.url.path == "/x/../y"
    assert first == "https://example.com/y?a=2&b=1"
    assert second == "https://example.com/y?b=1"


@pytest.mark.parametrize(
    "url",
    [
        "https://example.com/main.php?c=1&b=2&a=5",
        "https://example.com:8080/./a//b/../c/?z=&y=1&flag",
        "http://example.com:80/a%20b/%7e/./?q=x",
        "https://example.com/../../x?a=1",
        "ftp://files.example.com/pub/./../docs/",
    ],
)
def test_normalize_is_idempotent(url):
    once = normalize_url(url)

    assert normalize_url(once) == once


def test_query_order_does_not_matter():
    pairs = ["a=1", "b=2", "c=3", "utm_source=x"]
    expected = "https://example.com/p?a=1&b=2&c=3"

    for permutation in itertools.permutations(pairs):
        url = "https://example.com/p?" + "&".join(permutation)
        assert normalize_url(url, ["^utm_"]) == expected


def test_parse_url_fields():
    parsed = parse_url("https://Example.com:8443/a/b?x=1")

    assert parsed.scheme == "https"
    assert parsed.host == "example.com"
    assert parsed.port == 8443
    assert parsed.path == "/a/b"
    assert parsed.query == "x=1"
    assert not parsed.is_opaque


def test_parse_url_without_query():
    assert parse_url("https://example.com/a").query is None


def test_url_normalizer_parse_alias():
    assert UrlNormalizer.parse("https://example.com/a").normalize() == "https://example.com/a"


def test_normalize_rejects_patterns_with_precompiled_rules():
    normalizer = UrlNormalizer("https://example.com/a?x=1")

    with pytest.raises(TypeError):
        normalizer.normalize(["^x$"], rules=compile_removal_rules(["^y$"]))
