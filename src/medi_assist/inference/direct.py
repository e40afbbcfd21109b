"""
Direct calls to the Gemini generateContent endpoint.

A manually invoked escape hatch for when the flow layer is unavailable: no
schema, no template, raw prompt in and text out. Unlike flow units, failures
here are re-raised with their upstream status preserved.
"""

from __future__ import annotations

from typing import Any, List, Optional

import httpx
import structlog
from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from medi_assist.config.settings import GeminiSettings, get_settings
from medi_assist.flows.errors import ConfigurationError, TransportError, UpstreamError

logger = structlog.get_logger(__name__)

FALLBACK_TEXT = "Sorry, I received an unexpected response. Please try again."


# -----------------------------------------------------------------------------
# Wire models
# -----------------------------------------------------------------------------


class Part(BaseModel):
    text: str


class Content(BaseModel):
    parts: List[Part]
    role: Optional[str] = None


class Candidate(BaseModel):
    content: Content
    finish_reason: Optional[str] = Field(default=None, alias="finishReason")
    index: Optional[int] = None
    safety_ratings: Optional[List[Any]] = Field(default=None, alias="safetyRatings")


class PromptFeedback(BaseModel):
    safety_ratings: Optional[List[Any]] = Field(default=None, alias="safetyRatings")
    block_reason: Optional[str] = Field(default=None, alias="blockReason")


class ApiError(BaseModel):
    code: int
    message: str
    status: str


class GenerateContentResponse(BaseModel):
    candidates: Optional[List[Candidate]] = None
    prompt_feedback: Optional[PromptFeedback] = Field(default=None, alias="promptFeedback")
    error: Optional[ApiError] = None

    def first_text(self) -> Optional[str]:
        if not self.candidates:
            return None
        parts = self.candidates[0].content.parts
        return parts[0].text if parts else None


def build_request_body(prompt_text: str) -> dict:
    return {"contents": [{"parts": [{"text": prompt_text}]}]}


# -----------------------------------------------------------------------------
# Transport
# -----------------------------------------------------------------------------


class DirectTransport:
    """
    POSTs raw prompts to the configured endpoint.

    :param settings: Endpoint, API key and timeout; defaults to global settings.
    :param client: Optional shared httpx.AsyncClient (not closed by this class).
    :raises ConfigurationError: If no API key is configured.
    """

    def __init__(
        self,
        settings: Optional[GeminiSettings] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or get_settings().gemini
        if self.settings.api_key is None or not self.settings.api_key.get_secret_value():
            logger.error("direct_call_not_configured", reason="GOOGLE_API_KEY not set")
            raise ConfigurationError("Google API key (GOOGLE_API_KEY) is not configured")
        self._api_key = self.settings.api_key.get_secret_value()
        self._client = client

    async def call_direct(self, prompt_text: str) -> str:
        """Send prompt_text and return the first candidate's text (or FALLBACK_TEXT)."""
        params = {"key": self._api_key}
        body = build_request_body(prompt_text)
        try:
            if self._client is not None:
                response = await self._client.post(self.settings.api_endpoint, params=params, json=body)
            else:
                async with httpx.AsyncClient(timeout=self.settings.request_timeout) as client:
                    response = await client.post(self.settings.api_endpoint, params=params, json=body)
        except httpx.HTTPError as e:
            logger.error("direct_call_transport_failed", error=str(e), error_type=type(e).__name__)
            raise TransportError(f"Failed to communicate with the Gemini API directly: {e}") from e
        return self._parse(response)

    def _parse(self, response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError as e:
            if not response.is_success:
                raise self._upstream(
                    response.status_code, response.reason_phrase or "Unknown Gemini API error"
                ) from e
            logger.error("direct_call_invalid_json", status=response.status_code)
            raise TransportError("Gemini API returned a non-JSON body") from e

        try:
            parsed = GenerateContentResponse.model_validate(data)
        except PydanticValidationError:
            error = data.get("error") if isinstance(data, dict) else None
            message = (error or {}).get("message") if isinstance(error, dict) else None
            code = (error or {}).get("code") if isinstance(error, dict) else None
            raise self._upstream(
                code if isinstance(code, int) else response.status_code,
                message or response.reason_phrase or "Unexpected Gemini API response",
                (error or {}).get("status") if isinstance(error, dict) else None,
            ) from None

        if parsed.error is not None:
            raise self._upstream(parsed.error.code, parsed.error.message, parsed.error.status)
        if not response.is_success:
            raise self._upstream(response.status_code, response.reason_phrase or "Unknown Gemini API error")

        text = parsed.first_text()
        if text:
            return text
        logger.warning(
            "direct_call_no_text",
            candidates=len(parsed.candidates or []),
            block_reason=parsed.prompt_feedback.block_reason if parsed.prompt_feedback else None,
        )
        return FALLBACK_TEXT

    @staticmethod
    def _upstream(status_code: int, message: str, status: Optional[str] = None) -> UpstreamError:
        logger.error("direct_call_upstream_error", status_code=status_code, status=status, message=message)
        return UpstreamError(status_code, message, status)


async def call_direct(prompt_text: str, settings: Optional[GeminiSettings] = None) -> str:
    """One-shot direct call with a short-lived client."""
    return await DirectTransport(settings).call_direct(prompt_text)
