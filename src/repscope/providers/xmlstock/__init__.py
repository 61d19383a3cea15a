"""XMLStock search API (Google and Yandex result pages as Yandex-XML)."""

from repscope.providers.xmlstock.client import XMLStockBalance, XMLStockProvider, parse_results_page

__all__ = ["XMLStockBalance", "XMLStockProvider", "parse_results_page"]
