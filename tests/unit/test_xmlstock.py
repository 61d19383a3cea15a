"""Unit tests for the XMLStock results provider."""

from __future__ import annotations

import httpx
import pytest

from repscope.config import Settings
from repscope.core.exceptions import ConfigurationError, ProviderError
from repscope.providers import (
    ResultProvider,
    XMLStockProvider,
    create_result_provider,
    detect_content_type,
    extract_domain,
)
from repscope.providers.xmlstock import parse_results_page

GOOGLE_URL = "https://xml.test/google/"
YANDEX_URL = "https://xml.test/yandex/"
API_URL = "https://xml.test/api/"


def _page(start: int, count: int) -> str:
    groups = "".join(
        f"""
        <group><doc>
          <url>https://www.site{i}.ru/page</url>
          <title>Иван <hlword>Петров</hlword> {i}</title>
          <passages><passage>Фрагмент   номер {i}</passage></passages>
        </doc></group>"""
        for i in range(start, start + count)
    )
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        f"<yandexsearch><response><results><grouping>{groups}</grouping></results>"
        "</response></yandexsearch>"
    )


def _provider(handler, **kwargs: object) -> XMLStockProvider:  # type: ignore[no-untyped-def]
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    options: dict[str, object] = {
        "google_url": GOOGLE_URL,
        "yandex_url": YANDEX_URL,
        "api_url": API_URL,
        "page_delay": 0,
        "http_client": client,
    }
    options.update(kwargs)
    return XMLStockProvider("user", "key", **options)  # type: ignore[arg-type]


class TestParseResultsPage:
    def test_parses_docs(self) -> None:
        items = parse_results_page(_page(1, 2))
        assert items[0] == ("https://www.site1.ru/page", "Иван Петров 1", "Фрагмент номер 1")
        assert len(items) == 2

    def test_headline_used_without_passage(self) -> None:
        xml = (
            "<yandexsearch><response><results><grouping><group><doc>"
            "<url>https://a.ru</url><title>A</title><headline>Short headline</headline>"
            "</doc></group></grouping></results></response></yandexsearch>"
        )
        assert parse_results_page(xml) == [("https://a.ru", "A", "Short headline")]

    def test_snippet_truncated(self) -> None:
        xml = (
            "<yandexsearch><response><results><grouping><group><doc>"
            f"<url>https://a.ru</url><title>A</title><passages><passage>{'x' * 500}</passage>"
            "</passages></doc></group></grouping></results></response></yandexsearch>"
        )
        assert len(parse_results_page(xml)[0][2]) == 300

    def test_nothing_found_is_empty(self) -> None:
        xml = '<yandexsearch><response><error code="15">Nothing found</error></response></yandexsearch>'
        assert parse_results_page(xml) == []

    def test_api_error_raises(self) -> None:
        xml = '<yandexsearch><response><error code="42">Bad key</error></response></yandexsearch>'
        with pytest.raises(ProviderError, match="XMLStock error 42: Bad key"):
            parse_results_page(xml)

    def test_malformed_xml_raises(self) -> None:
        with pytest.raises(ProviderError, match="Malformed XML"):
            parse_results_page("<yandexsearch><oops>")


class TestXMLStockProvider:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(XMLStockProvider(None, None), ResultProvider)

    async def test_pages_until_depth(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            page = int(request.url.params["page"])
            return httpx.Response(200, text=_page(page * 10 + 1, 10))

        provider = _provider(handler)
        progress: list[float] = []
        results = await provider.retrieve(
            "Иван Петров", "yandex", 20, "ru-msk", on_progress=lambda f, _l: progress.append(f)
        )

        assert len(requests) == 2
        assert [r.position for r in results] == list(range(1, 21))
        assert results[0].domain == "site1.ru"
        assert results[0].type == "official"
        assert requests[0].url.params["lr"] == "213"
        assert requests[0].url.params["sortby"] == "rlv"
        assert str(requests[0].url).startswith(YANDEX_URL)
        assert progress == [0.5, 1.0]

    async def test_google_params(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, text=_page(1, 10))

        await _provider(handler).retrieve("Иван Петров", "google", 10, "ru")
        assert requests[0].url.params["device"] == "desktop"
        assert requests[0].url.params["user"] == "user"
        assert str(requests[0].url).startswith(GOOGLE_URL)

    async def test_stops_at_depth(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text=_page(1, 10))

        results = await _provider(handler, page_size=10).retrieve("q", "google", 5, "ru")
        assert len(results) == 5

    async def test_failed_page_is_skipped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.params["page"] == "0":
                return httpx.Response(503)
            return httpx.Response(200, text=_page(11, 10))

        results = await _provider(handler).retrieve("q", "google", 20, "ru")
        assert len(results) == 10
        assert results[0].position == 1
        assert results[0].url == "https://www.site11.ru/page"

    async def test_timeout_degrades_to_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        assert await _provider(handler).retrieve("q", "yandex", 10, "ru") == []

    async def test_missing_credentials_returns_empty(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        provider = XMLStockProvider(
            None, None, http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler))
        )
        assert await provider.retrieve("q", "google", 10, "ru") == []

    async def test_unsupported_engine_returns_empty(self) -> None:
        provider = _provider(lambda r: httpx.Response(200, text=_page(1, 10)))
        assert await provider.retrieve("q", "bing", 10, "ru") == []

    async def test_get_balance(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert str(request.url).startswith(API_URL)
            return httpx.Response(200, json={"balance": 120.5, "outgo-day": 3.2})

        balance = await _provider(handler).get_balance()
        assert balance.balance == 120.5
        assert balance.outgo_day == 3.2
        assert balance.currency == "RUB"

    async def test_get_balance_http_error(self) -> None:
        provider = _provider(lambda r: httpx.Response(500))
        with pytest.raises(ProviderError, match="balance request failed"):
            await provider.get_balance()

    async def test_get_balance_requires_credentials(self) -> None:
        with pytest.raises(ConfigurationError):
            await XMLStockProvider(None, None).get_balance()

    async def test_close_releases_client(self) -> None:
        provider = _provider(lambda r: httpx.Response(200))
        await provider.close()
        assert provider._http_client is None


class TestHelpers:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.example.ru/a", "example.ru"),
            ("https://news.example.ru", "news.example.ru"),
            ("not a url", "unknown"),
        ],
    )
    def test_extract_domain(self, url: str, expected: str) -> None:
        assert extract_domain(url) == expected

    @pytest.mark.parametrize(
        ("url", "title", "expected"),
        [
            ("https://ru.wikipedia.org/wiki/X", "X", "biography"),
            ("https://lenta.ru/news/1", "X", "news"),
            ("https://vk.com/x", "X", "social"),
            ("https://otzovik.com/x", "X", "review"),
            ("https://youtube.com/x", "X", "media"),
            ("https://pikabu.ru/x", "X", "forum"),
            ("https://example.ru", "X", "official"),
        ],
    )
    def test_detect_content_type(self, url: str, title: str, expected: str) -> None:
        assert detect_content_type(url, title) == expected


class TestCreateResultProvider:
    def test_builds_from_settings(self) -> None:
        settings = Settings(_env_file=None, xmlstock_user="u", xmlstock_key="k")  # type: ignore[call-arg]
        provider = create_result_provider(settings)
        assert isinstance(provider, XMLStockProvider)
        assert provider.configured

    def test_unconfigured_provider_still_returned(self) -> None:
        provider = create_result_provider(Settings(_env_file=None))  # type: ignore[call-arg]
        assert isinstance(provider, XMLStockProvider)
        assert not provider.configured
