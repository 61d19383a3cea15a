"""XMLStock API client.

XMLStock proxies Google and Yandex result pages and returns them in the
Yandex-XML format:

    <yandexsearch><response><results><grouping>
      <group><doc>
        <url>...</url><title>... <hlword>name</hlword> ...</title>
        <headline>...</headline>
        <passages><passage>...</passage></passages>
      </doc></group>
    </grouping></results></response></yandexsearch>

Pages hold ten groups. A failed page is logged and skipped; missing
credentials return no results at all.
"""

from __future__ import annotations

import asyncio
import math
import random
import re
from typing import TYPE_CHECKING
from xml.etree.ElementTree import Element

import defusedxml.ElementTree as ET
import httpx
from defusedxml import DefusedXmlException
from pydantic import BaseModel, ConfigDict, Field

from repscope.core.constants import MAX_SNIPPET_LENGTH, USER_AGENTS, get_region
from repscope.core.exceptions import ConfigurationError, ProviderError
from repscope.core.logging import get_logger
from repscope.providers.base import RawResult, RetrievalProgress, detect_content_type, extract_domain

if TYPE_CHECKING:
    from repscope.config import Settings

logger = get_logger(__name__)

# Yandex-XML error code for "nothing found"
NO_RESULTS_ERROR_CODE = "15"

_TAG_PATTERN = re.compile(r"<[^>]*>")
_WS_PATTERN = re.compile(r"\s+")


class XMLStockBalance(BaseModel):
    """Account balance as reported by the XMLStock API (RUB)."""

    model_config = ConfigDict(populate_by_name=True)

    balance: float = 0.0
    balance_freeze: float = Field(default=0.0, alias="balance-freeze")
    limits: float = 0.0
    outgo_month: float = Field(default=0.0, alias="outgo-month")
    outgo_day: float = Field(default=0.0, alias="outgo-day")
    currency: str = "RUB"


def _clean(text: str) -> str:
    return _WS_PATTERN.sub(" ", _TAG_PATTERN.sub("", text)).strip()


def _element_text(element: Element | None) -> str:
    """Full text of an element including ``<hlword>`` children."""
    if element is None:
        return ""
    return _clean("".join(element.itertext()))


def parse_results_page(xml_text: str) -> list[tuple[str, str, str]]:
    """Parse one Yandex-XML page into (url, title, snippet) tuples.

    Raises:
        ProviderError: If the document is not valid XML or reports an error
            other than "nothing found".
    """
    try:
        root = ET.fromstring(xml_text)
    except (ET.ParseError, DefusedXmlException) as e:
        raise ProviderError(f"Malformed XML response: {e}") from e

    error = root.find(".//error")
    if error is not None:
        if error.get("code") == NO_RESULTS_ERROR_CODE:
            return []
        raise ProviderError(f"XMLStock error {error.get('code')}: {_element_text(error)}")

    items: list[tuple[str, str, str]] = []
    for group in root.iter("group"):
        doc = group.find("doc")
        if doc is None:
            continue
        url = (doc.findtext("url") or "").strip()
        title = _element_text(doc.find("title"))
        snippet = _element_text(doc.find("passages/passage")) or _element_text(
            doc.find("headline")
        )
        if url and title:
            items.append((url, title, snippet[:MAX_SNIPPET_LENGTH]))
    return items


class XMLStockProvider:
    """Search-results provider backed by XMLStock.

    Usage:
        provider = XMLStockProvider.from_settings(settings)
        results = await provider.retrieve("Иван Петров", "yandex", depth=20, region="ru")
        await provider.close()
    """

    def __init__(
        self,
        user: str | None,
        key: str | None,
        *,
        google_url: str = "https://xmlstock.com/google/xml/",
        yandex_url: str = "https://xmlstock.com/yandex/xml/",
        api_url: str = "https://xmlstock.com/api/",
        timeout: float = 30.0,
        page_size: int = 10,
        page_delay: float = 0.3,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._user = user
        self._key = key
        self._urls = {"google": google_url, "yandex": yandex_url}
        self._api_url = api_url
        self._timeout = timeout
        self._page_size = page_size
        self._page_delay = page_delay
        self._http_client = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> XMLStockProvider:
        return cls(
            settings.xmlstock_user,
            settings.xmlstock_key.get_secret_value() if settings.xmlstock_key else None,
            google_url=settings.xmlstock_google_url,
            yandex_url=settings.xmlstock_yandex_url,
            api_url=settings.xmlstock_api_url,
            timeout=settings.search_timeout,
            page_size=settings.search_page_size,
            page_delay=settings.search_page_delay,
        )

    @property
    def configured(self) -> bool:
        return bool(self._user and self._key)

    def _get_http_client(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout),
                follow_redirects=True,
            )
        return self._http_client

    def _credentials(self) -> tuple[str, str]:
        if not self._user or not self._key:
            raise ConfigurationError(
                "XMLStock credentials not set (XMLSTOCK_USER / XMLSTOCK_KEY)"
            )
        return self._user, self._key

    def _page_params(self, engine: str, query: str, page: int, region: str) -> dict[str, str]:
        user, key = self._credentials()
        lr = get_region(region).yandex_lr or "225"
        params = {"user": user, "key": key, "query": query, "page": str(page), "lr": lr}
        if engine == "google":
            params.update({"domain": "ru", "device": "desktop"})
        else:
            params.update(
                {
                    "l10n": "ru",
                    "sortby": "rlv",
                    "filter": "none",
                    "groupby": (
                        f"attr=d.mode=deep.groups-on-page={self._page_size}.docs-in-group=1"
                    ),
                }
            )
        return params

    async def _fetch_page(self, engine: str, query: str, page: int, region: str) -> str:
        """GET one result page.

        Raises:
            ProviderError: On timeout, transport error or non-2xx status.
        """
        client = self._get_http_client()
        try:
            response = await client.get(
                self._urls[engine],
                params=self._page_params(engine, query, page, region),
                headers={"User-Agent": random.choice(USER_AGENTS)},
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise ProviderError(f"{engine} page {page} timed out") from e
        except httpx.HTTPStatusError as e:
            raise ProviderError(
                f"{engine} page {page} returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise ProviderError(f"{engine} page {page} request failed: {e}") from e
        return response.text

    async def retrieve(
        self,
        query: str,
        engine: str,
        depth: int,
        region: str,
        on_progress: RetrievalProgress | None = None,
    ) -> list[RawResult]:
        if engine not in self._urls:
            logger.error("Unsupported search engine", engine=engine)
            return []
        try:
            self._credentials()
        except ConfigurationError as e:
            logger.error("XMLStock not configured", engine=engine, error=e.message)
            return []

        pages = math.ceil(depth / self._page_size)
        results: list[RawResult] = []
        logger.info("Starting XMLStock search", engine=engine, query=query, depth=depth, region=region)

        for page in range(pages):
            if len(results) >= depth:
                break
            try:
                xml_text = await self._fetch_page(engine, query, page, region)
                items = parse_results_page(xml_text)
            except ProviderError as e:
                logger.warning("XMLStock page failed", engine=engine, page=page, error=e.message)
                items = []

            for url, title, snippet in items:
                if len(results) >= depth:
                    break
                results.append(
                    RawResult(
                        position=len(results) + 1,
                        url=url,
                        title=title,
                        snippet=snippet,
                        domain=extract_domain(url),
                        type=detect_content_type(url, title),
                    )
                )

            if on_progress:
                on_progress((page + 1) / pages, f"Page {page + 1}/{pages}")
            if page < pages - 1 and self._page_delay > 0:
                await asyncio.sleep(self._page_delay)

        logger.info("XMLStock search finished", engine=engine, got=len(results), depth=depth)
        return results

    async def get_balance(self) -> XMLStockBalance:
        """Fetch the account balance.

        Raises:
            ConfigurationError: If credentials are missing.
            ProviderError: If the API call fails.
        """
        user, key = self._credentials()
        client = self._get_http_client()
        try:
            response = await client.get(self._api_url, params={"user": user, "key": key})
            response.raise_for_status()
            return XMLStockBalance.model_validate(response.json())
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderError(f"XMLStock balance request failed: {e}") from e

    async def close(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
