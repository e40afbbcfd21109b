"""
Inference collaborator boundary.

Request/response models exchanged with a model backend and the ModelBackend
protocol every backend implements. Responses are untrusted: flow units validate
whatever comes back, including the tool calls a model decides to make.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field


class ToolDescriptor(BaseModel):
    """What a model sees of a tool: name, description and JSON schemas."""

    name: str = Field(..., description="Tool name the model uses to call it")
    description: str = Field(..., description="Natural-language description used to decide relevance")
    input_schema: Dict[str, Any] = Field(default_factory=dict, description="JSON schema of the arguments")
    output_schema: Dict[str, Any] = Field(default_factory=dict, description="JSON schema of the result")


class ToolCall(BaseModel):
    """A tool invocation requested by the model. Arguments are not yet validated."""

    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)
    call_id: Optional[str] = None


class Message(BaseModel):
    """One turn of the generation context sent to the backend."""

    role: Literal["system", "user", "assistant", "tool"]
    content: str
    name: Optional[str] = Field(default=None, description="Tool name for role='tool'")


class InferenceRequest(BaseModel):
    """Everything a backend needs for one generation call."""

    flow: str = Field(..., description="Name of the requesting flow (for logs)")
    prompt: str = Field(..., description="Rendered prompt text")
    temperature: float = Field(default=0.7, ge=0.0, le=1.0)
    output_schema: Optional[Dict[str, Any]] = Field(default=None, description="JSON schema of the expected output")
    tools: List[ToolDescriptor] = Field(default_factory=list)
    messages: List[Message] = Field(
        default_factory=list,
        description="Prior turns (assistant tool calls and tool results) after the initial prompt",
    )


class InferenceResponse(BaseModel):
    """Backend answer: a structured output, raw text, and/or tool calls."""

    output: Optional[Dict[str, Any]] = None
    text: Optional[str] = None
    tool_calls: List[ToolCall] = Field(default_factory=list)
    finish_reason: Optional[str] = None


@runtime_checkable
class ModelBackend(Protocol):
    """Anything that can answer an InferenceRequest."""

    async def generate(self, request: InferenceRequest) -> InferenceResponse:
        ...
