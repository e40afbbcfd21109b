"""Test doubles shared across the suite."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

from medi_assist.inference.base import InferenceRequest, InferenceResponse, ToolCall

Scripted = Union[InferenceResponse, Dict[str, Any], Exception]


class StubBackend:
    """
    ModelBackend returning scripted responses per flow name, in order.

    A dict is returned as a structured output; an exception is raised. Every
    request is recorded in .requests.
    """

    def __init__(self, responses: Optional[Dict[str, Sequence[Scripted]]] = None) -> None:
        self._responses: Dict[str, List[Scripted]] = {k: list(v) for k, v in (responses or {}).items()}
        self.requests: List[InferenceRequest] = []

    def add(self, flow: str, *responses: Scripted) -> "StubBackend":
        self._responses.setdefault(flow, []).extend(responses)
        return self

    def requests_for(self, flow: str) -> List[InferenceRequest]:
        return [r for r in self.requests if r.flow == flow]

    async def generate(self, request: InferenceRequest) -> InferenceResponse:
        self.requests.append(request)
        queue = self._responses.get(request.flow)
        if not queue:
            raise AssertionError(f"no scripted response left for flow {request.flow!r}")
        item = queue.pop(0)
        if isinstance(item, Exception):
            raise item
        if isinstance(item, InferenceResponse):
            return item
        return InferenceResponse(output=item)


def tool_call(name: str, **arguments: Any) -> InferenceResponse:
    return InferenceResponse(tool_calls=[ToolCall(name=name, arguments=arguments)])


