"""Provider factory.

Builds providers from the settings passed in. Nothing is cached here: each
job asks for a fresh provider, so credential changes apply to the next job.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from repscope.core.logging import get_logger
from repscope.providers.base import ResultProvider
from repscope.providers.xmlstock import XMLStockProvider

if TYPE_CHECKING:
    from repscope.config import Settings

logger = get_logger(__name__)


def create_result_provider(settings: Settings) -> ResultProvider:
    """Create the search-results provider for the given configuration.

    An unconfigured provider is still returned; it yields no results.
    """
    if not settings.xmlstock_configured:
        logger.warning("XMLStock credentials missing, searches will return no results")
    return XMLStockProvider.from_settings(settings)
