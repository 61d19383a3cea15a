"""System status, config and reference-data endpoints."""

import asyncio
from typing import Literal

from fastapi import APIRouter, HTTPException
from pydantic import Field

from repscope.api.errors import raise_http
from repscope.config import Settings
from repscope.core.constants import REGIONS
from repscope.core.dependencies import (
    ConfigStoreDep,
    SentimentBackendDep,
    SettingsDep,
    XMLStockClientDep,
)
from repscope.core.exceptions import (
    ClassifierError,
    ConfigurationError,
    ProviderError,
    RepscopeError,
)
from repscope.core.logging import get_logger
from repscope.processing.common.llm import llm_configured
from repscope.processing.models import CamelModel
from repscope.storage import RuntimeConfig

logger = get_logger(__name__)

router = APIRouter()

LLM_TEST_TITLE = "Компания показала отличные результаты"
LLM_TEST_SNIPPET = "Выручка выросла на 50%, клиенты довольны сервисом"
LLM_TEST_URL = "https://example.com/test"


class XMLStockConfigRequest(CamelModel):
    user: str = Field(..., min_length=1, description="XMLStock user id")
    key: str = Field(..., min_length=1, description="XMLStock API key")


class LLMConfigRequest(CamelModel):
    provider: Literal["anthropic", "openai"] | None = None
    api_key: str | None = Field(default=None, description="Empty string clears the key")
    use_llm_classifier: bool | None = None


def _key_preview(settings: Settings) -> str:
    if settings.llm_provider == "anthropic":
        key = settings.anthropic_api_key
    else:
        key = settings.openai_api_key
    if key is None:
        return ""
    return key.get_secret_value()[:12] + "..."


@router.get("/regions")
async def list_regions() -> list[dict[str, str]]:
    return [{"code": r.code, "name": r.name} for r in REGIONS.values()]


@router.get("/system/config")
async def system_config(settings: SettingsDep) -> dict[str, object]:
    return {
        "env": settings.env,
        "xmlstockConfigured": settings.xmlstock_configured,
        "llmProvider": settings.llm_provider,
        "llmConfigured": llm_configured(settings),
        "llmKeyPreview": _key_preview(settings),
        "useLlmClassifier": settings.use_llm_classifier,
        "sentimentThreshold": settings.sentiment_threshold,
        "defaultRegion": settings.default_region,
        "defaultEngines": settings.default_engines,
        "defaultDepth": settings.default_depth,
    }


@router.put("/system/config/xmlstock")
async def update_xmlstock_config(
    body: XMLStockConfigRequest, settings: SettingsDep, store: ConfigStoreDep
) -> dict[str, object]:
    """Set XMLStock credentials; the next search uses them."""
    changes = RuntimeConfig(xmlstock_user=body.user.strip(), xmlstock_key=body.key.strip())
    try:
        await store.update(settings, changes)
    except RepscopeError as e:
        raise_http(e)
    return {"xmlstockConfigured": settings.xmlstock_configured}


@router.put("/system/config/llm")
async def update_llm_config(
    body: LLMConfigRequest, settings: SettingsDep, store: ConfigStoreDep
) -> dict[str, object]:
    """Set the LLM provider, its API key and the classifier switch."""
    changes = RuntimeConfig(
        llm_provider=body.provider,
        llm_api_key=body.api_key.strip() if body.api_key is not None else None,
        use_llm_classifier=body.use_llm_classifier,
    )
    try:
        await store.update(settings, changes)
    except RepscopeError as e:
        raise_http(e)
    return {
        "llmProvider": settings.llm_provider,
        "llmConfigured": llm_configured(settings),
        "llmKeyPreview": _key_preview(settings),
        "useLlmClassifier": settings.use_llm_classifier,
    }


@router.post("/system/config/llm/test")
async def check_llm_config(
    settings: SettingsDep, backend: SentimentBackendDep
) -> dict[str, object]:
    """Classify a fixed sample through the configured LLM.

    Raises:
        HTTPException: 400 without an API key, 502 if the call fails.
    """
    if backend is None:
        raise HTTPException(status_code=400, detail="LLM API key not configured")
    try:
        verdict = await asyncio.wait_for(
            backend.judge(LLM_TEST_TITLE, LLM_TEST_SNIPPET, LLM_TEST_URL),
            timeout=settings.llm_timeout,
        )
    except TimeoutError:
        raise HTTPException(status_code=502, detail="LLM call timed out")
    except ClassifierError as e:
        raise HTTPException(status_code=502, detail=e.message)
    except Exception as e:
        logger.warning("LLM test failed", error=str(e))
        raise HTTPException(status_code=502, detail=f"LLM call failed: {e}")
    return {"success": True, "verdict": verdict.model_dump(mode="json")}


@router.get("/system/xmlstock/balance")
async def xmlstock_balance(client: XMLStockClientDep) -> dict[str, object]:
    """Current XMLStock account balance.

    Raises:
        HTTPException: 503 if credentials are missing, 502 if XMLStock fails.
    """
    try:
        balance = await client.get_balance()
    except ConfigurationError as e:
        raise HTTPException(status_code=503, detail=e.message)
    except ProviderError as e:
        logger.warning("XMLStock balance lookup failed", error=e.message)
        raise HTTPException(status_code=502, detail=e.message)
    return balance.model_dump(mode="json")
