"""Inference boundary: backend protocol, CrewAI LLM backend, direct transport."""

from medi_assist.inference.base import (
    InferenceRequest,
    InferenceResponse,
    Message,
    ModelBackend,
    ToolCall,
    ToolDescriptor,
)
from medi_assist.inference.direct import FALLBACK_TEXT, DirectTransport, call_direct

__all__ = [
    "DirectTransport",
    "FALLBACK_TEXT",
    "InferenceRequest",
    "InferenceResponse",
    "Message",
    "ModelBackend",
    "ToolCall",
    "ToolDescriptor",
    "call_direct",
]
