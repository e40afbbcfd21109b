"""
Tool invocation bridge.

Exposes a FlowUnit as a tool to a conversational flow unit. Whether a tool
fires, and with which arguments, is decided by the model during generation;
this module only guarantees the boundary contract:

- the tool's arguments are validated against its input schema before the
  underlying flow runs;
- the tool's result is validated against its output schema;
- the validated result is appended to the generation context before the
  conversational unit's final response is produced.
"""

from __future__ import annotations

import asyncio
import json
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Sequence, Type, Union

import structlog
from pydantic import BaseModel

from medi_assist.config.settings import get_settings
from medi_assist.flows.errors import ConfigurationError, GenerationIncomplete, ValidationError
from medi_assist.flows.registry import FlowSpec, validate
from medi_assist.flows.templates import PromptTemplate
from medi_assist.flows.unit import FlowUnit
from medi_assist.inference.base import (
    InferenceRequest,
    InferenceResponse,
    Message,
    ModelBackend,
    ToolDescriptor,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ToolSpec:
    """Name, description and contract of a tool. Schemas are the wrapped flow's own."""

    name: str
    description: str
    input_schema: Type[BaseModel]
    output_schema: Type[BaseModel]

    def descriptor(self) -> ToolDescriptor:
        return ToolDescriptor(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema.model_json_schema(by_alias=True),
            output_schema=self.output_schema.model_json_schema(by_alias=True),
        )


class Tool:
    """A FlowUnit callable by a conversational flow unit."""

    def __init__(self, spec: ToolSpec, flow: FlowUnit) -> None:
        if spec.input_schema is not flow.input_schema or spec.output_schema is not flow.output_schema:
            raise ConfigurationError(
                f"Tool '{spec.name}' must use the exact schemas of flow '{flow.name}'"
            )
        self.spec = spec
        self.flow = flow

    @classmethod
    def from_flow(cls, flow: FlowUnit, description: str, name: Optional[str] = None) -> "Tool":
        spec = ToolSpec(
            name=name or flow.name,
            description=description,
            input_schema=flow.input_schema,
            output_schema=flow.output_schema,
        )
        return cls(spec, flow)

    @property
    def name(self) -> str:
        return self.spec.name

    async def call(self, arguments: Any, *, backend: Optional[ModelBackend] = None) -> BaseModel:
        """Validate arguments, run the underlying flow, validate its result."""
        tool_input = validate(self.spec.input_schema, arguments)
        result = await self.flow.invoke(tool_input, backend=backend)
        return validate(self.spec.output_schema, result)

    def as_crewai_tool(self) -> Any:
        """Wrap this tool as a CrewAI BaseTool (args schema = tool input schema)."""
        from crewai.tools import BaseTool

        tool = self

        class FlowBackedTool(BaseTool):
            name: str = tool.spec.name
            description: str = tool.spec.description
            args_schema: Type[BaseModel] = tool.spec.input_schema

            def _run(self, **kwargs: Any) -> str:
                coro = tool.call(kwargs)
                try:
                    asyncio.get_running_loop()
                except RuntimeError:
                    result = asyncio.run(coro)
                else:
                    # asyncio.run cannot nest; run on a fresh loop in a worker thread.
                    with ThreadPoolExecutor(max_workers=1) as pool:
                        result = pool.submit(asyncio.run, coro).result()
                return result.model_dump_json(by_alias=True)

        return FlowBackedTool()

    def __repr__(self) -> str:
        return f"Tool(name={self.name!r}, flow={self.flow.name!r})"


class ConversationalFlowUnit(FlowUnit):
    """
    A flow unit whose model may call tools before answering.

    Each model turn either answers (final output, validated like any flow) or
    requests tool calls. Requested calls are treated as untrusted input: an
    unknown tool name or arguments that fail the tool's input schema fail the
    invocation. After max_tool_rounds turns with tool calls the generation is
    considered incomplete.
    """

    def __init__(
        self,
        spec: FlowSpec,
        prompt: Union[str, PromptTemplate],
        *,
        tools: Sequence[Tool] = (),
        max_tool_rounds: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        self.tools: Dict[str, Tool] = {}
        for tool in tools:
            if tool.name in self.tools:
                raise ConfigurationError(f"Flow '{spec.name}': duplicate tool name '{tool.name}'")
            self.tools[tool.name] = tool
        if max_tool_rounds is not None and max_tool_rounds < 0:
            raise ConfigurationError(f"Flow '{spec.name}': max_tool_rounds must be >= 0")
        self._max_tool_rounds = max_tool_rounds
        super().__init__(spec, prompt, **kwargs)

    @property
    def max_tool_rounds(self) -> int:
        if self._max_tool_rounds is not None:
            return self._max_tool_rounds
        return get_settings().flows.max_tool_rounds

    def build_request(self, prompt: str) -> InferenceRequest:
        request = super().build_request(prompt)
        request.tools = [tool.spec.descriptor() for tool in self.tools.values()]
        return request

    async def _generate(self, backend: ModelBackend, request: InferenceRequest) -> InferenceResponse:
        messages: List[Message] = list(request.messages)
        rounds = 0
        while True:
            response = await backend.generate(request.model_copy(update={"messages": list(messages)}))
            if not response.tool_calls:
                return response
            rounds += 1
            if rounds > self.max_tool_rounds:
                raise GenerationIncomplete("tool_calls", f"still requested after {self.max_tool_rounds} rounds")
            for call in response.tool_calls:
                messages.extend(await self._run_tool_call(call.name, call.arguments, backend))

    async def _run_tool_call(
        self, name: str, arguments: Mapping[str, Any], backend: ModelBackend
    ) -> List[Message]:
        tool = self.tools.get(name)
        if tool is None:
            raise ValidationError("tool_calls.name", f"unknown tool {name!r}", self.name)
        logger.info("tool_invoked", flow=self.name, tool=name)
        # A tool flow without its own backend shares the conversational one.
        tool_backend = None if tool.flow.backend is not None else backend
        result = await tool.call(arguments, backend=tool_backend)
        logger.info("tool_completed", flow=self.name, tool=name)
        return [
            Message(
                role="assistant",
                content=json.dumps({"tool_call": {"name": name, "arguments": dict(arguments)}}, default=str),
            ),
            Message(role="tool", name=name, content=result.model_dump_json(by_alias=True)),
        ]
