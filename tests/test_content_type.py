import pytest

from treefetch.crawler.content_type import Other, Text, TextType, Unknown, classify


def test_html_with_charset():
    assert classify("text/html; charset=utf-8") == Text(TextType.HTML)


@pytest.mark.parametrize("header, expected", [
    ("text/plain", TextType.PLAIN),
    ("text/css", TextType.CSS),
    ("text/javascript", TextType.JAVASCRIPT),
    ("text/xml", TextType.XML),
    ("text/markdown", TextType.MARKDOWN),
    ("text/csv", TextType.CSV),
    ("text/richtext", TextType.RICHTEXT),
    ("text/tab-separated-values", TextType.TAB_SEPARATED_VALUES),
    ("TEXT/HTML", TextType.HTML),
])
def test_allow_listed_text_types(header, expected):
    assert classify(header) == Text(expected)


def test_other_keeps_raw_value():
    assert classify("application/json") == Other("application/json")


def test_other_text_subtype_is_not_expanded():
    result = classify("text/calendar; charset=utf-8")
    assert result == Other("text/calendar; charset=utf-8")
    assert not result.expandable


def test_prefix_is_not_enough():
    assert isinstance(classify("text/htmlx"), Other)


def test_missing_header_is_unknown():
    assert classify(None) == Unknown()


def test_blank_header_is_unknown():
    assert classify("  ") == Unknown()


def test_undecodable_bytes_are_unknown():
    assert classify(b"text/\xffhtml") == Unknown()


def test_bytes_header():
    assert classify(b"text/plain; charset=ascii") == Text(TextType.PLAIN)


def test_only_text_is_expandable():
    assert Text(TextType.HTML).expandable
    assert not Other("image/png").expandable
    assert not Unknown().expandable
