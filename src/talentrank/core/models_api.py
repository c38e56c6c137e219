"""
Client for the hosted models API (embeddings and chat completions).
"""

import asyncio
from typing import Any, Dict, List, Optional

import aiohttp

from talentrank.core.exceptions import (
    AuthenticationError,
    InvalidResponseError,
    TransientProviderError,
    error_from_status,
)
from talentrank.core.logging import SensitiveDataMasker, logger


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


class ModelsApiClient:
    """
    Thin async client over an OpenAI-compatible models endpoint.

    Features:
    1. One lazily created aiohttp session per client
    2. HTTP status classes mapped onto the provider error taxonomy
    3. Network failures and timeouts surfaced as TransientProviderError

    Retrying is the caller's business (see RetryController).
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str],
        timeout: float = 60,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self.timeout = timeout
        self._session: Optional[aiohttp.ClientSession] = None
        self._masker = SensitiveDataMasker()
        logger.info("ModelsApiClient initialized", base_url=self.base_url)

    def _headers(self) -> Dict[str, str]:
        if not self._token:
            raise AuthenticationError("No API token configured for the models provider")
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
        return self._session

    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Any:
        headers = self._headers()
        url = f"{self.base_url}{path}"

        try:
            async with self._get_session().request(
                method, url, json=payload, headers=headers
            ) as response:
                if response.status >= 400:
                    body = await response.text()
                    error = error_from_status(
                        response.status,
                        self._masker.mask(body),
                        _parse_retry_after(response.headers.get("Retry-After")),
                    )
                    logger.warning(
                        "Provider returned an error",
                        path=path,
                        status=response.status,
                        error_type=type(error).__name__,
                    )
                    raise error

                try:
                    return await response.json(content_type=None)
                except ValueError as e:
                    raise InvalidResponseError(
                        f"Provider returned a non-JSON body for {path}",
                        status=response.status,
                        cause=e,
                    )
        except asyncio.TimeoutError as e:
            raise TransientProviderError(f"Provider request timed out: {path}", cause=e)
        except aiohttp.ClientError as e:
            raise TransientProviderError(f"Provider connection failed: {e}", cause=e)

    async def embed(self, text: str, model: str) -> List[float]:
        """
        Request an embedding for ``text``.

        Raises:
            ProviderError subclasses according to the response
        """
        data = await self._request(
            "POST",
            "/embeddings",
            {"model": model, "input": text, "encoding_format": "float"},
        )
        try:
            embedding = data["data"][0]["embedding"]
        except (KeyError, IndexError, TypeError) as e:
            raise InvalidResponseError("Embedding response has no data[0].embedding", cause=e)
        if not isinstance(embedding, list) or not embedding:
            raise InvalidResponseError("Embedding response contains an empty vector")
        return [float(x) for x in embedding]

    async def complete(
        self,
        messages: List[Dict[str, str]],
        model: str,
        max_tokens: int = 1500,
        temperature: float = 0.3,
    ) -> str:
        """Request a chat completion and return the first choice's content."""
        data = await self._request(
            "POST",
            "/chat/completions",
            {
                "model": model,
                "messages": messages,
                "max_tokens": max_tokens,
                "temperature": temperature,
            },
        )
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise InvalidResponseError("Completion response has no choices[0].message", cause=e)
        return content or ""

    async def check_health(self) -> bool:
        """Probe ``GET /models``. Never raises."""
        if not self._token:
            logger.warning("Provider health check skipped: no API token configured")
            return False
        try:
            await self._request("GET", "/models")
            return True
        except Exception as e:
            logger.warning("Provider health check failed", error=str(e))
            return False

    async def close(self) -> None:
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None
