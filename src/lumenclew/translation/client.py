"""
HTTP client for the Anthropic Messages API.

The client only moves text: it returns the first text block of the reply
and leaves parsing to the batcher.
"""

from typing import Optional

import aiohttp
import structlog

from ..config import TranslationConfig
from ..errors import TranslationServiceError


class TranslationClient:
    """
    Thin async wrapper around the Messages endpoint.

    Example:
        >>> client = TranslationClient(config.translation)
        >>> text = await client.send(user_prompt, system_prompt)
        >>> await client.close()
    """

    def __init__(
        self,
        config: TranslationConfig,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 45.0,
    ):
        """
        Initialize the client.

        Args:
            config: Translation settings (endpoint, model, credential)
            session: Shared aiohttp session (created lazily if None)
            timeout: Total request timeout in seconds
        """
        self.config = config
        self.timeout = timeout
        self._session = session
        self._owns_session = session is None

        self.logger = structlog.get_logger(__name__)

    @property
    def has_credentials(self) -> bool:
        return bool(self.config.api_key)

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self._owns_session = True
        return self._session

    async def send(self, user_prompt: str, system_prompt: str) -> str:
        """
        Send one translation request.

        Args:
            user_prompt: Prompt listing the findings of one batch
            system_prompt: Panel-specific instructions

        Returns:
            Response text (may be empty)

        Raises:
            TranslationServiceError: On a non-2xx response
            aiohttp.ClientError: On transport failure
        """
        headers = {
            "Content-Type": "application/json",
            "x-api-key": self.config.api_key or "",
            "anthropic-version": self.config.api_version,
        }
        body = {
            "model": self.config.model,
            "max_tokens": self.config.max_tokens,
            "temperature": self.config.temperature,
            "system": system_prompt,
            "messages": [{"role": "user", "content": user_prompt}],
        }

        session = self._get_session()
        async with session.post(self.config.api_url, json=body, headers=headers) as response:
            if response.status >= 400:
                error_text = await response.text()
                self.logger.error(
                    "translation_api_error",
                    status=response.status,
                    body=error_text[:200]
                )
                raise TranslationServiceError(
                    f"Translation service returned {response.status}",
                    status=response.status,
                )

            data = await response.json(content_type=None)

        content = data.get("content") if isinstance(data, dict) else None
        if not content:
            return ""
        first = content[0]
        return first.get("text", "") if isinstance(first, dict) else ""

    async def close(self):
        """Close the owned HTTP session"""
        if self._session is not None and self._owns_session and not self._session.closed:
            await self._session.close()
