"""
Model backend built on CrewAI's LLM (LiteLLM routing, e.g. gemini/gemini-2.0-flash).

The model is asked to answer with one JSON object: either the final output
matching the requested schema, or a tool call of the form
{"tool_call": {"name": "...", "arguments": {...}}}. The reply is parsed here
but not trusted; flow units validate it.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional

import structlog
from crewai import LLM

from medi_assist.config.settings import Settings, get_settings
from medi_assist.flows.errors import ConfigurationError
from medi_assist.inference.base import InferenceRequest, InferenceResponse, ToolCall
from medi_assist.utils.json_output import parse_json_object

logger = structlog.get_logger(__name__)

OUTPUT_INSTRUCTIONS = (
    "Respond with a single JSON object and nothing else. "
    "The object must conform to this JSON schema:\n{schema}"
)
TOOL_INSTRUCTIONS = (
    "You can call the tools listed below when they are relevant to the user's request. "
    "To call a tool, respond with only this JSON object: "
    '{{"tool_call": {{"name": "<tool name>", "arguments": {{...}}}}}}. '
    "Tool results are sent back to you; then give your final answer.\n"
    "Available tools:\n{tools}"
)


class LLMBackend:
    """
    ModelBackend that sends each InferenceRequest through a CrewAI LLM.

    A fresh LLM is built per request so the request's temperature applies.
    The blocking LLM.call runs in a worker thread.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        max_tokens: int = 4096,
        llm_factory: Callable[..., Any] = LLM,
    ) -> None:
        self.model = model
        self.api_key = api_key
        self.max_tokens = max_tokens
        self._llm_factory = llm_factory

    def create_llm(self, temperature: float) -> Any:
        kwargs: Dict[str, Any] = {"model": self.model, "temperature": temperature, "max_tokens": self.max_tokens}
        if self.api_key:
            kwargs["api_key"] = self.api_key
        return self._llm_factory(**kwargs)

    def build_messages(self, request: InferenceRequest) -> List[Dict[str, str]]:
        system_parts: List[str] = []
        if request.output_schema:
            system_parts.append(OUTPUT_INSTRUCTIONS.format(schema=json.dumps(request.output_schema)))
        if request.tools:
            listing = "\n".join(
                f"- {t.name}: {t.description}\n  arguments schema: {json.dumps(t.input_schema)}"
                for t in request.tools
            )
            system_parts.append(TOOL_INSTRUCTIONS.format(tools=listing))
        messages: List[Dict[str, str]] = []
        if system_parts:
            messages.append({"role": "system", "content": "\n\n".join(system_parts)})
        messages.append({"role": "user", "content": request.prompt})
        for m in request.messages:
            if m.role == "tool":
                # Plain user turn; provider tool-role messages need native call ids.
                messages.append({"role": "user", "content": f"Result of tool '{m.name}':\n{m.content}"})
            else:
                messages.append({"role": m.role, "content": m.content})
        return messages

    @staticmethod
    def parse_reply(text: str, request: InferenceRequest) -> InferenceResponse:
        data = parse_json_object(text)
        if data is not None and request.tools and "tool_call" in data:
            return InferenceResponse(tool_calls=[ToolCall.model_validate(data["tool_call"])], text=text)
        return InferenceResponse(output=data, text=text)

    async def generate(self, request: InferenceRequest) -> InferenceResponse:
        llm = self.create_llm(request.temperature)
        messages = self.build_messages(request)
        logger.debug(
            "llm_request",
            flow=request.flow,
            model=self.model,
            temperature=request.temperature,
            tools=[t.name for t in request.tools],
            turns=len(messages),
        )
        reply = await asyncio.to_thread(llm.call, messages)
        text = reply if isinstance(reply, str) else str(reply)
        logger.debug("llm_response", flow=request.flow, chars=len(text))
        return self.parse_reply(text, request)


def create_backend(settings: Optional[Settings] = None) -> LLMBackend:
    """Build an LLMBackend from settings; fails fast without an API key."""
    settings = settings or get_settings()
    gemini = settings.gemini
    if gemini.api_key is None or not gemini.api_key.get_secret_value():
        raise ConfigurationError("Google API key (GOOGLE_API_KEY) is not configured")
    backend = LLMBackend(
        model=gemini.model,
        api_key=gemini.api_key.get_secret_value(),
        max_tokens=gemini.max_tokens,
    )
    logger.debug("llm_backend_created", model=gemini.model, max_tokens=gemini.max_tokens)
    return backend


_default_backend: Optional[LLMBackend] = None


def get_default_backend() -> LLMBackend:
    """Get or create the process-wide backend from settings."""
    global _default_backend
    if _default_backend is None:
        _default_backend = create_backend()
    return _default_backend
