"""Search-result providers.

Usage:
    from repscope.providers import create_result_provider

    provider = create_result_provider(settings)
    results = await provider.retrieve("Иван Петров", "google", depth=10, region="ru")
"""

from repscope.providers.base import (
    RawResult,
    ResultProvider,
    RetrievalProgress,
    detect_content_type,
    extract_domain,
)
from repscope.providers.factory import create_result_provider
from repscope.providers.xmlstock import XMLStockBalance, XMLStockProvider

__all__ = [
    "RawResult",
    "ResultProvider",
    "RetrievalProgress",
    "XMLStockBalance",
    "XMLStockProvider",
    "create_result_provider",
    "detect_content_type",
    "extract_domain",
]
