"""
Gemini Client

Thin async client for the Gemini ``generateContent`` REST endpoint.

Responsibilities
----------------
- Build request payloads from text prompts and optional inline media
- Isolate transport and HTTP status failures behind GenerationError
- Validate the response shape and return the first candidate's text

The client holds no connection state and is safe to reuse across requests.
"""

from __future__ import annotations

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings

logger = logging.getLogger("mctx.gemini")


class GenerationError(RuntimeError):
    """Raised when a generation request fails or returns an unusable response."""


class GeminiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """
        Parameters
        ----------
        api_key : Optional[str]
            Override for the API key. Defaults to settings.gemini_api_key.
        model : Optional[str]
            Override for the model name. Defaults to settings.gemini_model.
        base_url : Optional[str]
            API root, e.g. ``https://generativelanguage.googleapis.com/v1beta``.
        timeout : Optional[float]
            HTTP timeout for each request.
        transport : Optional[httpx.AsyncBaseTransport]
            Custom transport, used by tests to stub the remote service.
        """
        self.api_key = api_key or settings.gemini_api_key.get_secret_value()
        self.model = model or settings.gemini_model
        self.base_url = str(base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.gemini_timeout
        self._transport = transport

    @property
    def endpoint(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def generate(self, prompt: str, json_mode: bool = False) -> str:
        """
        Generate a text response for a plain text prompt.
        """
        return await self._generate([{"text": prompt}], json_mode=json_mode)

    async def generate_with_media(
        self,
        prompt: str,
        data: bytes,
        mime_type: str,
        json_mode: bool = False,
    ) -> str:
        """
        Generate a text response for inline media followed by a prompt.
        """
        parts = [
            {
                "inline_data": {
                    "mime_type": mime_type,
                    "data": base64.b64encode(data).decode("ascii"),
                }
            },
            {"text": prompt},
        ]
        return await self._generate(parts, json_mode=json_mode)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _generate(self, parts: List[Dict[str, Any]], json_mode: bool) -> str:
        payload: Dict[str, Any] = {"contents": [{"parts": parts}]}
        if json_mode:
            payload["generationConfig"] = {"responseMimeType": "application/json"}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(
                    self.endpoint,
                    params={"key": self.api_key},
                    json=payload,
                )
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.error(
                    "Generation request failed (%s): model=%s, error=%s",
                    type(exc).__name__,
                    self.model,
                    str(exc),
                )
                raise GenerationError(
                    f"Generation request failed: {type(exc).__name__}"
                ) from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise GenerationError("Generation response is not valid JSON") from exc

        return self._extract_text(data)

    @staticmethod
    def _extract_text(data: Any) -> str:
        """
        Pull the first candidate's text out of a response.

        Gemini returns:
            {"candidates": [{"content": {"parts": [{"text": "..."}]}}]}

        Raises
        ------
        GenerationError
            If the response does not have that structure.
        """
        try:
            text = data["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError) as exc:
            raise GenerationError("Unexpected response format from Gemini API") from exc

        if not isinstance(text, str):
            raise GenerationError("Gemini response text must be a string")

        return text
