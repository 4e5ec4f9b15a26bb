"""Website fetching and legal-section extraction.

No LLM calls, only HTTP, BeautifulSoup and regex. The page is fetched
with a bounded redirect loop, markup is stripped, and the cleaned text is
searched for offer, privacy and returns sections in a fixed priority order.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import urljoin

import httpx
from bs4 import BeautifulSoup

from app.models.compliance import ExtractedSection, SectionLabel
from app.services.compliance.constants import (
    BROWSER_USER_AGENT,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_SCHEME,
    FALLBACK_EXCERPT_LENGTH,
    OFFER_WINDOW_AFTER,
    PRIVACY_WINDOW_AFTER,
    RETURNS_WINDOW_AFTER,
    SECTION_WINDOW_BEFORE,
)
from app.services.compliance.errors import FetchError, RedirectLoop, TooManyRedirects

logger = logging.getLogger(__name__)

_NON_CONTENT_TAGS = ["script", "style", "noscript"]
_WHITESPACE = re.compile(r"\s+")

_REQUEST_HEADERS = {
    "User-Agent": BROWSER_USER_AGENT,
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "ru-RU,ru;q=0.9,en;q=0.8",
}


@dataclass(frozen=True)
class SectionRule:
    """One entry of the section search table."""

    label: SectionLabel
    keywords: tuple[str, ...]
    before: int
    after: int

    @property
    def pattern(self) -> re.Pattern[str]:
        # Longer phrases first so "публичная оферта" wins over "оферта" at the same spot
        ordered = sorted(self.keywords, key=len, reverse=True)
        return re.compile("|".join(re.escape(k) for k in ordered), re.IGNORECASE)


SECTION_RULES: tuple[SectionRule, ...] = (
    SectionRule(
        label=SectionLabel.OFFER,
        keywords=(
            "оферта",
            "публичная оферта",
            "договор оферты",
            "пользовательское соглашение",
            "offer",
            "public offer",
            "user agreement",
            "terms of service",
        ),
        before=SECTION_WINDOW_BEFORE,
        after=OFFER_WINDOW_AFTER,
    ),
    SectionRule(
        label=SectionLabel.PRIVACY,
        keywords=(
            "политика конфиденциальности",
            "обработка персональных данных",
            "персональных данных",
            "персональные данные",
            "защита данных",
            "privacy policy",
            "personal data",
        ),
        before=SECTION_WINDOW_BEFORE,
        after=PRIVACY_WINDOW_AFTER,
    ),
    SectionRule(
        label=SectionLabel.RETURNS,
        keywords=(
            "возврат средств",
            "возврат",
            "обмен",
            "гарантия",
            "refund",
            "return policy",
            "warranty",
        ),
        before=SECTION_WINDOW_BEFORE,
        after=RETURNS_WINDOW_AFTER,
    ),
)


def normalize_url(url: str) -> str:
    """Prepend ``https://`` when *url* has no scheme."""
    url = url.strip()
    if not re.match(r"^[a-zA-Z][a-zA-Z0-9+.-]*://", url):
        url = f"{DEFAULT_SCHEME}://{url.lstrip('/')}"
    return url


def strip_markup(html: str) -> str:
    """Drop script/style blocks, keep visible text, collapse whitespace.

    Entities are decoded and tag boundaries become spaces so adjacent words
    do not merge.
    """
    soup = BeautifulSoup(html, "html.parser")
    for tag in soup(_NON_CONTENT_TAGS):
        tag.decompose()
    text = soup.get_text(separator=" ")
    return _WHITESPACE.sub(" ", text).strip()


def extract_sections(
    text: str,
    rules: tuple[SectionRule, ...] = SECTION_RULES,
    fallback_length: int = FALLBACK_EXCERPT_LENGTH,
) -> list[ExtractedSection]:
    """Search *text* for each rule in order, keeping a window around the first hit.

    Falls back to a single ``RAW_FALLBACK`` section holding the start of the
    text when no rule matches.
    """
    sections: list[ExtractedSection] = []
    for rule in rules:
        match = rule.pattern.search(text)
        if match is None:
            continue
        start = max(0, match.start() - rule.before)
        end = min(len(text), match.end() + rule.after)
        sections.append(ExtractedSection(label=rule.label, text=text[start:end]))

    if not sections:
        sections.append(
            ExtractedSection(
                label=SectionLabel.RAW_FALLBACK, text=text[:fallback_length]
            )
        )
    return sections


def format_sections(sections: list[ExtractedSection]) -> str:
    """Join sections into one document, each under its heading."""
    parts = []
    for section in sections:
        heading = section.label.heading
        parts.append(f"{heading}:\n{section.text}" if heading else section.text)
    return "\n\n".join(parts)


class ContentExtractor:
    """Fetches a web page and extracts candidate legal sections."""

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    ) -> None:
        self.timeout = timeout
        self.max_redirects = max_redirects
        self._client_factory = client_factory or self._default_client

    def _default_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=False,
        )

    async def extract(self, url: str) -> list[ExtractedSection]:
        """Fetch *url* and return its sections in priority order.

        Raises:
            FetchError: On network failure or a runaway redirect chain.
        """
        html = await self.fetch(url)
        text = strip_markup(html)
        sections = extract_sections(text)
        logger.info(
            f"Extracted {len(text)} chars from {url}: "
            f"{[s.label.value for s in sections]}"
        )
        return sections

    async def fetch(self, url: str) -> str:
        """GET *url*, following at most ``max_redirects`` redirects by hand.

        Error statuses other than redirects are not rejected: the body is
        returned like any other page.
        """
        current = normalize_url(url)
        seen: set[str] = set()

        async with self._client_factory() as client:
            for _ in range(self.max_redirects + 1):
                seen.add(current)
                try:
                    resp = await client.get(current, headers=_REQUEST_HEADERS)
                except httpx.HTTPError as e:
                    raise FetchError(current, f"{type(e).__name__}: {e}") from e

                location = resp.headers.get("location")
                if resp.is_redirect and location:
                    target = urljoin(current, location)
                    if target in seen:
                        logger.warning(f"Redirect cycle detected at {target}")
                        raise RedirectLoop(url, target)
                    logger.debug(f"Redirect {resp.status_code}: {current} -> {target}")
                    current = target
                    continue

                if resp.status_code >= 400:
                    logger.warning(
                        f"{current} answered {resp.status_code}; extracting anyway"
                    )
                return resp.text

        raise TooManyRedirects(url, self.max_redirects)

