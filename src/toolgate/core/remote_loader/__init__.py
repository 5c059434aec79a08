"""
Remote Tool Loader - Fetches remote tool definitions

Responsibility:
- GET the configured registry endpoint (``{tools: [...], version?, timestamp?}``)
- Retry with a fixed delay between attempts
- Never raise past its boundary: exhaustion yields an empty result plus the error
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

import httpx
from pydantic import ValidationError

from toolgate.config import RemoteApiConfig
from toolgate.core.tool_executor import DEFAULT_HEADERS
from toolgate.core.tool_registry import RemoteToolDefinition
from toolgate.exceptions import RemoteLoadException

logger = logging.getLogger(__name__)


@dataclass
class RemoteLoadResult:
    """Outcome of one load procedure (all attempts)."""
    tools: dict[str, RemoteToolDefinition] = field(default_factory=dict)
    success: bool = False
    attempts: int = 0
    error: str | None = None
    version: str | None = None


class RemoteToolLoader:
    """
    Loads the remote tool set from a single endpoint.

    Each call to ``load()`` starts from nothing: the returned tools replace
    whatever a previous load produced.
    """

    def __init__(
        self,
        config: RemoteApiConfig,
        http_client: httpx.AsyncClient,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self._config = config
        self._client = http_client
        self._sleep = sleep

    async def load(self) -> RemoteLoadResult:
        url = self._config.tools_url
        if not url:
            logger.warning("Remote API enabled but no tools URL provided")
            return RemoteLoadResult(error="No tools URL configured")

        max_attempts = max(1, self._config.retry_attempts)
        delay_sec = self._config.retry_delay_ms / 1000.0
        last_error: RemoteLoadException | None = None

        for attempt in range(1, max_attempts + 1):
            logger.info(f"Loading remote tools from {url} (attempt {attempt}/{max_attempts})")
            try:
                tools, version = await self._fetch(url)
            except RemoteLoadException as exc:
                last_error = exc
                logger.error(f"Failed to load remote tools (attempt {attempt}/{max_attempts}): {exc.message}")
                if attempt < max_attempts:
                    logger.info(f"Retrying in {self._config.retry_delay_ms}ms...")
                    await self._sleep(delay_sec)
                continue

            logger.info(f"Successfully loaded {len(tools)} remote tools")
            return RemoteLoadResult(tools=tools, success=True, attempts=attempt, version=version)

        error = RemoteLoadException(url, last_error.reason if last_error else "unknown error", attempts=max_attempts)
        logger.error(f"Failed to load remote tools after all retry attempts: {error.message}")
        return RemoteLoadResult(attempts=max_attempts, error=error.message)

    async def _fetch(self, url: str) -> tuple[dict[str, RemoteToolDefinition], str | None]:
        """One attempt. Raises RemoteLoadException on any failure."""
        try:
            response = await self._client.get(
                url,
                headers=DEFAULT_HEADERS,
                timeout=self._config.timeout_ms / 1000.0,
            )
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as exc:
            raise RemoteLoadException(url, "Timeout exceeded") from exc
        except httpx.HTTPStatusError as exc:
            raise RemoteLoadException(
                url, f"{exc.response.status_code} {exc.response.reason_phrase}"
            ) from exc
        except httpx.RequestError as exc:
            raise RemoteLoadException(url, str(exc) or "No response from server") from exc
        except httpx.InvalidURL as exc:
            raise RemoteLoadException(url, f"Invalid URL: {exc}") from exc
        except httpx.HTTPError as exc:
            raise RemoteLoadException(url, str(exc) or type(exc).__name__) from exc
        except ValueError as exc:
            raise RemoteLoadException(url, "Invalid JSON response") from exc

        if not isinstance(body, dict) or not isinstance(body.get("tools"), list):
            raise RemoteLoadException(url, "Invalid response format: missing tools array")

        tools: dict[str, RemoteToolDefinition] = {}
        for raw in body["tools"]:
            try:
                tool = RemoteToolDefinition.model_validate(raw)
            except ValidationError as exc:
                name = raw.get("name") if isinstance(raw, dict) else None
                logger.warning(f"Skipping invalid remote tool definition {name!r}: {exc.error_count()} error(s)")
                continue
            tools[tool.name] = tool

        version = body.get("version")
        return tools, str(version) if version is not None else None


__all__ = ["RemoteLoadResult", "RemoteToolLoader"]
