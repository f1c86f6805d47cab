"""Tests for HTML truncation and description building."""

import re

import pytest

from agrolandsync.harvester.html import build_description, truncate_html
from agrolandsync.harvester.models import FeedProduct

SAMPLES = [
    "<p>hello</p><p>world</p>",
    "<div><ul><li>one</li><li>two</li><li>three</li></ul></div>",
    "<h2>Opis</h2><p>" + "lorem ipsum " * 20 + "</p><p><b>Parametry: </b>a, b</p>",
    "<DIV><P>Upper case</P><P>tags here</P></DIV>",
    "plain text without any markup at all, just words",
    "<div><span>no safe closer inside the limit at all here</span></div>",
]


def _unclosed(html):
    stack = []
    for match in re.finditer(r"</?([a-zA-Z0-9]+)[^>]*>", html):
        name = match.group(1).lower()
        if not match.group(0).startswith("</"):
            stack.append(name)
        elif stack and stack[-1] == name:
            stack.pop()
    return stack


class TestTruncateHtml:
    """Test truncate_html boundaries and tag closing."""

    def test_cuts_at_first_paragraph_boundary(self):
        """Test cut after the last fitting </p>."""
        result = truncate_html("<p>hello</p><p>world</p>", 14)

        assert result == "<p>hello</p>"
        assert len(result) == 12

    @pytest.mark.parametrize("html", SAMPLES)
    def test_short_input_returned_unchanged(self, html):
        """Test input within the limit is unchanged."""
        assert truncate_html(html, len(html)) == html
        assert truncate_html(html, len(html) + 50) == html

    @pytest.mark.parametrize("html", SAMPLES)
    @pytest.mark.parametrize("limit", [5, 12, 20, 33, 47])
    def test_never_exceeds_limit(self, html, limit):
        """Test output never exceeds max_length."""
        assert len(truncate_html(html, limit)) <= limit

    def test_empty_and_none_unchanged(self):
        """Test empty and None pass through."""
        assert truncate_html("", 10) == ""
        assert truncate_html(None, 10) is None

    def test_closing_tag_ending_exactly_at_limit(self):
        """Test a closer ending exactly at the limit qualifies."""
        html = "<p>abc</p><p>def</p>"

        assert truncate_html(html, 10) == "<p>abc</p>"

    def test_picks_latest_safe_boundary(self):
        """Test the latest safe closer wins across tag kinds."""
        html = "<div><p>a</p><p>b</p></div><p>tail text</p>"

        assert truncate_html(html, 30) == "<div><p>a</p><p>b</p></div>"

    def test_closes_open_outer_tags(self):
        """Test open outer tags are closed innermost first."""
        html = "<div><ul><li>one</li><li>two</li><li>three</li></ul></div>"

        result = truncate_html(html, 44)

        assert result == "<div><ul><li>one</li><li>two</li></ul></div>"
        assert _unclosed(result) == []

    def test_case_insensitive_search(self):
        """Test upper-case closers are safe cut points."""
        html = "<DIV><P>Upper case</P><P>tags here</P></DIV>"

        result = truncate_html(html, 30)

        assert result == "<DIV><P>Upper case</P></DIV>"

    def test_hard_cut_without_safe_tag(self):
        """Test hard cut when no safe closer fits."""
        html = "plain text without any markup at all"

        assert truncate_html(html, 10) == "plain text"

    def test_stops_closing_when_overflowing(self):
        """Test closing stops at the first closer that overflows."""
        # Cut after </li>; only </ul> fits, </div> would overflow.
        html = "<div><ul><li>x</li><li>yy</li></ul></div>"

        result = truncate_html(html, 24)

        assert result == "<div><ul><li>x</li></ul>"
        assert _unclosed(result) == ["div"]

    def test_length_changing_lowercase_before_cut(self):
        """Test cut index is taken from the original text."""
        # "İ".lower() is two code points long.
        html = "İİ<p>ab</p><p>cdefgh</p>"

        result = truncate_html(html, 16)

        assert result == "İİ<p>ab</p>"
        assert _unclosed(result) == []

    def test_dotted_capital_i_is_not_a_closing_tag(self):
        """Test only ASCII closers count as safe cut points."""
        html = "<ul><li>a</li><li>b</Lİ></ul>"

        assert truncate_html(html, 24) == "<ul><li>a</li></ul>"

    def test_mismatched_closer_is_ignored(self):
        """Test a closer not matching the stack top is ignored."""
        html = "<div><b>bold</i><p>x</p><p>tail</p></div>"

        result = truncate_html(html, 30)

        assert result == "<div><b>bold</i><p>x</p></b>"

    def test_self_closing_tag_is_pushed(self):
        """Test self-closing tags are still pushed."""
        html = "<p>a<br/>b</p><p>more</p>"

        result = truncate_html(html, 20)

        assert result == "<p>a<br/>b</p></br>"

    @pytest.mark.parametrize("limit", [30, 60, 90, 120])
    def test_well_formed_input_stays_balanced(self, limit):
        """Test well-formed input only leaves tags open on overflow."""
        html = "<div>" + "".join(f"<p>para {i}</p>" for i in range(20)) + "</div>"

        result = truncate_html(html, limit)

        stack = _unclosed(result)
        if stack:
            assert len(result) + len(f"</{stack[-1]}>") > limit


class TestBuildDescription:
    """Test product description rendering."""

    def test_full_description(self):
        """Test header, description and attributes paragraphs."""
        product = FeedProduct(
            ean="590", desc="Nawóz uniwersalny", attributes=["5 kg", " ", "granulat"]
        )

        html = build_description(product)

        assert html == (
            "<h2>Opis produktu</h2>"
            "<p>Nawóz uniwersalny</p>"
            "<p><b>Parametry: </b>5 kg, granulat</p>"
        )

    def test_blank_desc_and_attributes_omitted(self):
        """Test blank description and attributes are omitted."""
        product = FeedProduct(ean="590", desc="   ", attributes=["", "  "])

        assert build_description(product) == "<h2>Opis produktu</h2>"

    def test_long_description_is_bounded(self):
        """Test long descriptions are truncated."""
        product = FeedProduct(ean="590", desc="x" * 5000, attributes=["a", "b"])

        html = build_description(product, max_length=1000)

        assert len(html) <= 1000
        assert html.startswith("<h2>Opis produktu</h2>")
