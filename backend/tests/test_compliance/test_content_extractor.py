"""Tests for app.services.compliance.content_extractor."""

import httpx
import pytest

from app.models.compliance import ExtractedSection, SectionLabel
from app.services.compliance.constants import BROWSER_USER_AGENT, FALLBACK_EXCERPT_LENGTH
from app.services.compliance.content_extractor import (
    ContentExtractor,
    extract_sections,
    format_sections,
    normalize_url,
    strip_markup,
)
from app.services.compliance.errors import FetchError, RedirectLoop, TooManyRedirects


def _extractor(handler, **kwargs) -> ContentExtractor:
    """Build an extractor whose HTTP traffic is served by *handler*."""
    return ContentExtractor(
        client_factory=lambda: httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        **kwargs,
    )


class TestNormalizeUrl:
    def test_adds_https_when_scheme_missing(self):
        assert normalize_url("example.com/terms") == "https://example.com/terms"

    def test_keeps_existing_scheme(self):
        assert normalize_url("http://example.com") == "http://example.com"

    def test_strips_whitespace(self):
        assert normalize_url("  https://example.com  ") == "https://example.com"


class TestStripMarkup:
    def test_removes_script_and_style_with_content(self):
        html = (
            "<html><head><style>body { color: red; }</style>"
            "<script type='text/javascript'>var offer = 1;</script></head>"
            "<body><h1>Оферта</h1><p>Текст</p></body></html>"
        )
        assert strip_markup(html) == "Оферта Текст"

    def test_script_case_insensitive_and_multiline(self):
        html = "a<SCRIPT>\nalert('x')\n</Script>b"
        assert strip_markup(html) == "a b"

    def test_collapses_whitespace(self):
        assert strip_markup("<p>one\n\n   two</p>\t<p>three</p>") == "one two three"

    def test_attribute_with_angle_bracket_and_nbsp(self):
        html = '<a title="x>y" href="/o">Публичная&nbsp;оферта</a>'
        assert strip_markup(html) == "Публичная оферта"

    def test_entities_decoded(self):
        html = "<p>Условия &laquo;возврата&raquo; &amp; обмена</p>"
        assert strip_markup(html) == "Условия «возврата» & обмена"

    def test_noscript_and_comments_dropped(self):
        html = "<p>Оферта</p><noscript>Включите JavaScript</noscript><!-- hidden -->"
        assert strip_markup(html) == "Оферта"

    def test_idempotent(self):
        html = (
            "<div>Политика <b>конфиденциальности</b></div>"
            "<script>x()</script><style>.a{}</style>  3 < 5 and 7 > 2 <br/>end"
        )
        once = strip_markup(html)
        assert strip_markup(once) == once


class TestExtractSections:
    def test_priority_order_is_fixed(self):
        text = (
            "Условия: возврат товара возможен. "
            + "z" * 50
            + " Политика конфиденциальности сайта. "
            + "z" * 50
            + " Публичная оферта магазина."
        )
        labels = [s.label for s in extract_sections(text)]
        assert labels == [SectionLabel.OFFER, SectionLabel.PRIVACY, SectionLabel.RETURNS]

    def test_offer_window_is_bounded(self):
        text = "x" * 500 + "оферта" + "y" * 3500
        [section] = extract_sections(text)
        assert section.label == SectionLabel.OFFER
        assert section.text == "x" * 300 + "оферта" + "y" * 3000

    def test_returns_window_is_shorter(self):
        text = "x" * 10 + "Refund" + "y" * 2000
        [section] = extract_sections(text)
        assert section.label == SectionLabel.RETURNS
        assert section.text == "x" * 10 + "Refund" + "y" * 1500

    def test_case_insensitive_match(self):
        [section] = extract_sections("ПОЛИТИКА КОНФИДЕНЦИАЛЬНОСТИ компании")
        assert section.label == SectionLabel.PRIVACY

    def test_first_occurrence_wins(self):
        text = "aaa оферта bbb " + "c" * 4000 + " оферта ddd"
        [section] = extract_sections(text)
        assert section.text.startswith("aaa оферта bbb")

    def test_nominative_personal_data_is_privacy(self):
        text = "Персональные данные пользователей хранятся на серверах в РФ. " * 3
        labels = [s.label for s in extract_sections(text)]
        assert labels == [SectionLabel.PRIVACY]

    def test_fallback_when_nothing_matches(self):
        text = "q" * (FALLBACK_EXCERPT_LENGTH + 1000)
        sections = extract_sections(text)
        assert sections == [
            ExtractedSection(label=SectionLabel.RAW_FALLBACK, text="q" * FALLBACK_EXCERPT_LENGTH)
        ]


class TestFormatSections:
    def test_headings_for_matched_sections(self):
        text = format_sections(
            [
                ExtractedSection(label=SectionLabel.OFFER, text="o"),
                ExtractedSection(label=SectionLabel.PRIVACY, text="p"),
                ExtractedSection(label=SectionLabel.RETURNS, text="r"),
            ]
        )
        assert text == "ОФЕРТА:\no\n\nПОЛИТИКА КОНФИДЕНЦИАЛЬНОСТИ:\np\n\nУСЛОВИЯ ВОЗВРАТА:\nr"

    def test_fallback_has_no_heading(self):
        assert format_sections([ExtractedSection(label=SectionLabel.RAW_FALLBACK, text="raw")]) == "raw"


@pytest.mark.asyncio
class TestContentExtractorFetch:
    async def test_sends_browser_user_agent(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, text="<p>hello</p>")

        body = await _extractor(handler).fetch("example.com")
        assert body == "<p>hello</p>"
        assert seen[0].url.scheme == "https"
        assert seen[0].url.host == "example.com"
        assert seen[0].headers["user-agent"] == BROWSER_USER_AGENT

    async def test_follows_redirects_to_final_resource(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path == "/old":
                return httpx.Response(301, headers={"Location": "/new"})
            if request.url.path == "/new":
                return httpx.Response(302, headers={"Location": "https://www.example.com/final"})
            return httpx.Response(200, text=f"landed on {request.url}")

        body = await _extractor(handler).fetch("https://example.com/old")
        assert body == "landed on https://www.example.com/final"

    async def test_redirect_cycle_terminates_with_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            target = "/b" if request.url.path == "/a" else "/a"
            return httpx.Response(302, headers={"Location": target})

        with pytest.raises(FetchError):
            await _extractor(handler).fetch("https://example.com/a")

    async def test_redirect_cycle_reported_as_loop(self):
        def handler(request: httpx.Request) -> httpx.Response:
            target = "/b" if request.url.path == "/a" else "/a"
            return httpx.Response(302, headers={"Location": target})

        with pytest.raises(RedirectLoop) as exc_info:
            await _extractor(handler).fetch("https://example.com/a")

        assert exc_info.value.target == "https://example.com/a"
        assert "loop" in str(exc_info.value)
        assert "more than" not in str(exc_info.value)
        assert not isinstance(exc_info.value, TooManyRedirects)

    async def test_redirect_chain_bounded_by_limit(self):
        calls: list[str] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request.url.path)
            hop = int(request.url.path.strip("/") or 0)
            return httpx.Response(307, headers={"Location": f"/{hop + 1}"})

        with pytest.raises(TooManyRedirects) as exc_info:
            await _extractor(handler, max_redirects=5).fetch("https://example.com/0")

        assert len(calls) == 6
        assert isinstance(exc_info.value, FetchError)

    async def test_redirect_without_location_is_final(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(302, text="no location")

        assert await _extractor(handler).fetch("https://example.com") == "no location"

    async def test_connection_error_becomes_fetch_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(FetchError) as exc_info:
            await _extractor(handler).fetch("https://unreachable.example")

        assert isinstance(exc_info.value.__cause__, httpx.ConnectError)
        assert "connection refused" in str(exc_info.value)

    async def test_error_status_body_still_returned(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, text="<h1>Not found</h1>")

        assert await _extractor(handler).fetch("https://example.com/missing") == "<h1>Not found</h1>"

    async def test_extract_end_to_end(self):
        html = (
            "<html><script>track()</script><body>"
            "<h2>Публичная оферта</h2><p>" + "Продавец обязуется. " * 10 + "</p>"
            "<h2>Возврат товара</h2><p>В течение 14 дней.</p></body></html>"
        )

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=html)

        sections = await _extractor(handler).extract("https://shop.example/terms")
        assert [s.label for s in sections] == [SectionLabel.OFFER, SectionLabel.RETURNS]
        assert "track()" not in sections[0].text
        assert "Публичная оферта" in sections[0].text
