"""Runtime overrides for credentials and the classifier switch.

Values set through the API are kept in ``config.json`` in the data directory
and applied on top of the environment, at startup and on every update. They
are written to the live ``Settings`` object, so jobs started afterwards pick
them up through their per-job factories.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING, Literal

import orjson
from pydantic import SecretStr, ValidationError

from repscope.core.exceptions import PersistenceError
from repscope.core.logging import get_logger
from repscope.processing.models import CamelModel
from repscope.storage.json_store import write_atomic

if TYPE_CHECKING:
    from repscope.config import Settings

logger = get_logger(__name__)


class RuntimeConfig(CamelModel):
    """Overrides; ``None`` leaves the environment value in place."""

    xmlstock_user: str | None = None
    xmlstock_key: str | None = None
    llm_provider: Literal["anthropic", "openai"] | None = None
    llm_api_key: str | None = None
    use_llm_classifier: bool | None = None

    def merged(self, changes: RuntimeConfig) -> RuntimeConfig:
        return self.model_copy(update=changes.model_dump(exclude_none=True))

    def apply(self, settings: Settings) -> None:
        """Write the set overrides onto ``settings``.

        An empty ``llm_api_key`` clears the key of the selected provider.
        """
        if self.xmlstock_user is not None:
            settings.xmlstock_user = self.xmlstock_user
        if self.xmlstock_key is not None:
            settings.xmlstock_key = SecretStr(self.xmlstock_key)
        if self.llm_provider is not None:
            settings.llm_provider = self.llm_provider
        if self.llm_api_key is not None:
            key = SecretStr(self.llm_api_key) if self.llm_api_key else None
            if settings.llm_provider == "anthropic":
                settings.anthropic_api_key = key
            else:
                settings.openai_api_key = key
        if self.use_llm_classifier is not None:
            settings.use_llm_classifier = self.use_llm_classifier


class RuntimeConfigStore:
    """JSON file holding the API-set overrides."""

    def __init__(self, path: Path, timeout: float = 10.0) -> None:
        self._path = path
        self._timeout = timeout
        self._lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    async def load(self) -> RuntimeConfig:
        try:
            return await asyncio.wait_for(asyncio.to_thread(self._read), timeout=self._timeout)
        except TimeoutError as e:
            raise PersistenceError(f"Reading {self._path} timed out") from e

    async def update(self, settings: Settings, changes: RuntimeConfig) -> RuntimeConfig:
        """Merge ``changes`` into the stored overrides, save them and apply them."""
        async with self._lock:
            config = (await self.load()).merged(changes)
            try:
                await asyncio.wait_for(
                    asyncio.to_thread(self._write, config), timeout=self._timeout
                )
            except TimeoutError as e:
                raise PersistenceError(f"Writing {self._path} timed out") from e
            config.apply(settings)

        logger.info(
            "Runtime config updated",
            fields=sorted(changes.model_dump(exclude_none=True)),
        )
        return config

    def _read(self) -> RuntimeConfig:
        if not self._path.exists():
            return RuntimeConfig()
        try:
            return RuntimeConfig.model_validate(orjson.loads(self._path.read_bytes()))
        except OSError as e:
            raise PersistenceError(f"Cannot read {self._path}: {e}") from e
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise PersistenceError(f"Corrupt runtime config in {self._path}: {e}") from e

    def _write(self, config: RuntimeConfig) -> None:
        payload = orjson.dumps(config.to_json_dict(), option=orjson.OPT_INDENT_2)
        try:
            write_atomic(self._path, payload)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self._path}: {e}") from e
