"""
Mermaid diagram rendering through remote providers.

Each provider turns diagram source into PNG bytes or raises ``ProviderError``.
Providers are tried strictly in order and the first success wins; when every
provider fails, the caller receives a ``RenderFailure`` that can be turned
into a code block holding the diagnostics and the untouched source.
"""

from __future__ import annotations

import base64
import logging
import re
from abc import ABC, abstractmethod
from typing import List, Sequence

import requests
from requests.utils import quote
from docx.image.image import Image as DocxImage

from .model import CodeBlock, Image, ProviderAttempt, ProviderConfig, RenderFailure

logger = logging.getLogger(__name__)

KROKI_URL = "https://kroki.io/mermaid/png"
MERMAID_INK_URL = "https://mermaid.ink/img/"
MERMAID_CHART_URL = "https://api.mermaidchart.com/diagrams"
MERMAID_LIVE_URL = "https://mermaid.live"

NEUTRAL_THEME = "neutral"
MERMAID_INK_WIDTH = 800
MERMAID_INK_MAX_URL_LENGTH = 8000
MAX_IMAGE_WIDTH_PX = 600
ERROR_BODY_LIMIT = 200

_INIT_DIRECTIVE_RE = re.compile(r"^(\s*%%\{\s*init\s*:\s*\{)(.*?)(\}\s*\}%%)", re.DOTALL)
_THEME_KEY_RE = re.compile(r"""(["']theme["']\s*:\s*)(["'])[^"']*\2""")


class ProviderError(Exception):
    """A single provider could not render the diagram."""


def _truncate(text: str, limit: int = ERROR_BODY_LIMIT) -> str:
    return text[:limit]


def apply_theme(source: str, theme: str) -> str:
    """Return diagram source carrying an init directive for ``theme``."""
    if not theme or theme == NEUTRAL_THEME:
        return source
    match = _INIT_DIRECTIVE_RE.match(source)
    if match is None:
        return f"%%{{init: {{'theme': '{theme}'}}}}%%\n{source}"
    body = match.group(2)
    if _THEME_KEY_RE.search(body):
        body = _THEME_KEY_RE.sub(lambda m: f"{m.group(1)}'{theme}'", body, count=1)
    else:
        separator = ", " if body.strip() else ""
        body = f"'theme': '{theme}'{separator}{body.lstrip()}"
    return f"{match.group(1)}{body}{match.group(3)}{source[match.end():]}"


class Provider(ABC):
    name = ""

    @abstractmethod
    def fetch(self, source: str, theme: str, session: requests.Session) -> bytes:
        ...


class KrokiProvider(Provider):
    name = "kroki"

    def fetch(self, source: str, theme: str, session: requests.Session) -> bytes:
        payload = apply_theme(source, theme).encode("utf-8")
        try:
            response = session.post(KROKI_URL, data=payload, headers={"Content-Type": "text/plain"})
        except requests.RequestException as exc:
            raise ProviderError(str(exc)) from exc
        if response.status_code == 200:
            return response.content
        if response.status_code == 400:
            raise ProviderError(f"Syntax error: {_truncate(response.text)}")
        raise ProviderError(f"HTTP {response.status_code}")


class MermaidInkProvider(Provider):
    name = "mermaid.ink"

    def build_url(self, source: str, theme: str) -> str:
        encoded = base64.urlsafe_b64encode(apply_theme(source, theme).encode("utf-8")).decode("ascii")
        return f"{MERMAID_INK_URL}{encoded}?theme={quote(theme or NEUTRAL_THEME, safe='')}&width={MERMAID_INK_WIDTH}"

    def fetch(self, source: str, theme: str, session: requests.Session) -> bytes:
        url = self.build_url(source, theme)
        logger.debug("mermaid.ink URL length: %d", len(url))
        if len(url) > MERMAID_INK_MAX_URL_LENGTH:
            raise ProviderError(f"Diagram too large for mermaid.ink ({len(url)} characters)")
        try:
            response = session.get(url)
        except requests.RequestException as exc:
            raise ProviderError(str(exc)) from exc
        if response.status_code == 200:
            return response.content
        if response.status_code == 414:
            raise ProviderError("Diagram too long (414)")
        raise ProviderError(f"HTTP {response.status_code}: {_truncate(response.text)}")


class MermaidChartProvider(Provider):
    name = "mermaidchart"

    def __init__(self, api_key: str):
        self.api_key = api_key

    def fetch(self, source: str, theme: str, session: requests.Session) -> bytes:
        if not self.api_key:
            raise ProviderError("MermaidChart API key not configured")
        payload = {"code": source, "format": "png"}
        if theme and theme != NEUTRAL_THEME:
            payload["theme"] = theme
        try:
            response = session.post(
                MERMAID_CHART_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        except requests.RequestException as exc:
            raise ProviderError(str(exc)) from exc
        if response.status_code == 200:
            return response.content
        if response.status_code == 401:
            raise ProviderError("Invalid API key")
        raise ProviderError(f"HTTP {response.status_code}: {_truncate(response.text)}")


class CustomProvider(Provider):
    name = "custom"

    def __init__(self, url: str):
        self.url = url

    def fetch(self, source: str, theme: str, session: requests.Session) -> bytes:
        if not self.url:
            raise ProviderError("Custom API URL not configured")
        try:
            response = session.post(self.url, json={"code": source, "theme": theme})
        except requests.RequestException as exc:
            raise ProviderError(str(exc)) from exc
        if response.status_code == 200:
            return response.content
        raise ProviderError(f"HTTP {response.status_code}")


def build_provider_chain(config: ProviderConfig) -> List[Provider]:
    """Credentialed provider first (when configured), then kroki and mermaid.ink."""
    chain: List[Provider] = []
    if config.api_key_or_url:
        if config.provider_name == MermaidChartProvider.name:
            chain.append(MermaidChartProvider(config.api_key_or_url))
        elif config.provider_name == CustomProvider.name:
            chain.append(CustomProvider(config.api_key_or_url))
    chain.append(KrokiProvider())
    chain.append(MermaidInkProvider())
    return chain


def fit_to_page(width: int, height: int, max_width: int = MAX_IMAGE_WIDTH_PX) -> tuple[int, int]:
    if width <= max_width or width <= 0:
        return width, height
    return max_width, max(1, round(height * max_width / width))


def build_image(data: bytes, source: str) -> Image:
    # Header parsers raise assorted errors on truncated or corrupt bodies.
    try:
        header = DocxImage.from_blob(data)
        width, height = fit_to_page(header.px_width, header.px_height)
    except Exception as exc:
        raise ProviderError(f"Unrecognized image data: {exc}") from exc
    return Image(data=data, width=width, height=height, source_code=source)


def failure_code_block(failure: RenderFailure) -> CodeBlock:
    lines = [
        f"%% Error: {failure.message}",
        f"%% Fallback: Please check diagram syntax at {MERMAID_LIVE_URL}",
        "",
    ]
    lines.extend(failure.source.split("\n"))
    return CodeBlock(language="mermaid", lines=lines)


class MermaidRenderer:
    def __init__(self, session: requests.Session | None = None):
        self.session = session or requests.Session()

    def render(self, source: str, config: ProviderConfig) -> Image | RenderFailure:
        return self.render_with(build_provider_chain(config), source, config.theme)

    def render_with(self, providers: Sequence[Provider], source: str, theme: str) -> Image | RenderFailure:
        attempts: List[ProviderAttempt] = []
        for provider in providers:
            logger.info("Trying mermaid provider: %s", provider.name)
            try:
                data = provider.fetch(source, theme, self.session)
                image = build_image(data, source)
            except ProviderError as exc:
                message = str(exc)
                logger.warning("Provider %s failed: %s", provider.name, message)
                attempts.append(ProviderAttempt(name=provider.name, succeeded=False, error_message=message))
                continue
            attempts.append(ProviderAttempt(name=provider.name, succeeded=True))
            logger.info("Rendered diagram with %s (%dx%d)", provider.name, image.width, image.height)
            return image
        failure = RenderFailure(source=source, attempts=attempts)
        logger.error("All mermaid providers failed: %s", failure.message)
        return failure