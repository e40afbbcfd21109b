"""
Flow unit: the atomic schema-validated prompt/response invocation.

A FlowUnit binds one FlowSpec (input schema, output schema, generation config)
to a compiled prompt template. invoke() validates the input, renders the
prompt, calls the model backend once, validates the structured response,
applies the declared echo fields and post-processing, and enforces the
declared non-empty fields.

Failures after the input check are logged with full detail and replaced by a
single AgentFailure carrying a user-safe message; the cause is not chained.
"""

from __future__ import annotations

import traceback
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Sequence, Union

import structlog
from pydantic import BaseModel

from medi_assist.flows.errors import (
    GENERIC_FAILURE_MESSAGE,
    AgentFailure,
    ConfigurationError,
    GenerationIncomplete,
    ValidationError,
    record_structured_error,
)
from medi_assist.flows.registry import FlowSpec, SchemaRegistry, get_registry, validate
from medi_assist.flows.templates import PromptTemplate
from medi_assist.inference.base import InferenceRequest, InferenceResponse, ModelBackend
from medi_assist.utils.json_output import parse_json_object

logger = structlog.get_logger(__name__)

# (validated input, validated output) -> replacement output (model or mapping)
PostProcess = Callable[[BaseModel, BaseModel], Union[BaseModel, Mapping[str, Any]]]


def _alias(schema: type[BaseModel], field: str) -> str:
    info = schema.model_fields[field]
    return info.alias or field


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return len(value) == 0
    except TypeError:
        return False


def _wire_value(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    return value


class FlowUnit:
    """
    An invocable flow: FlowSpec + prompt template + declared output rules.

    :param spec: Name, schemas and generation config; registered on construction.
    :param prompt: Template source or compiled PromptTemplate.
    :param echo_fields: Output field -> input field; the output always carries the input value.
    :param non_empty: Output fields that must not be empty (else GenerationIncomplete).
    :param post_process: Hook applied to the validated output; its result is re-validated.
    :param failure_message: User-safe message of the AgentFailure raised on internal failure.
    :param backend: Model backend; defaults to the configured LLM backend at first use.
    :param registry: Registry the FlowSpec goes into; defaults to the process-wide one.
    """

    def __init__(
        self,
        spec: FlowSpec,
        prompt: Union[str, PromptTemplate],
        *,
        echo_fields: Optional[Mapping[str, str]] = None,
        non_empty: Iterable[str] = (),
        post_process: Optional[PostProcess] = None,
        failure_message: str = GENERIC_FAILURE_MESSAGE,
        backend: Optional[ModelBackend] = None,
        registry: Optional[SchemaRegistry] = None,
    ) -> None:
        self.spec = spec
        self.template = prompt if isinstance(prompt, PromptTemplate) else PromptTemplate(prompt)
        self.echo_fields: Dict[str, str] = dict(echo_fields or {})
        self.non_empty: Sequence[str] = tuple(non_empty)
        self.post_process = post_process
        self.failure_message = failure_message
        self.backend = backend
        self._check_declarations()
        self.output_json_schema = spec.output_schema.model_json_schema(by_alias=True)
        # An empty SchemaRegistry is falsy (it defines __len__).
        (registry if registry is not None else get_registry()).register(spec)

    def _check_declarations(self) -> None:
        in_fields = self.spec.input_schema.model_fields
        out_fields = self.spec.output_schema.model_fields
        for out_field, in_field in self.echo_fields.items():
            if out_field not in out_fields or in_field not in in_fields:
                raise ConfigurationError(
                    f"Flow '{self.spec.name}': echo field {out_field!r} <- {in_field!r} not in schemas"
                )
        for name in self.non_empty:
            if name not in out_fields:
                raise ConfigurationError(f"Flow '{self.spec.name}': non-empty field {name!r} not in output schema")

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def input_schema(self) -> type[BaseModel]:
        return self.spec.input_schema

    @property
    def output_schema(self) -> type[BaseModel]:
        return self.spec.output_schema

    def _resolve_backend(self, backend: Optional[ModelBackend]) -> ModelBackend:
        if backend is not None:
            return backend
        if self.backend is None:
            from medi_assist.inference.llm_backend import get_default_backend

            self.backend = get_default_backend()
        return self.backend

    # -------------------------------------------------------------------------
    # Invocation
    # -------------------------------------------------------------------------

    async def invoke(self, value: Any, *, backend: Optional[ModelBackend] = None) -> BaseModel:
        """
        Run the flow on value and return the validated output.

        Raises ValidationError if value does not match the input schema and
        AgentFailure for anything that goes wrong after that.
        """
        log = logger.bind(flow=self.name)
        try:
            flow_input = validate(self.input_schema, value)
        except ValidationError as e:
            log.warning("flow_input_invalid", field=e.field, error=e.message)
            raise
        model_backend = self._resolve_backend(backend)
        prompt = self.template.render(flow_input)
        log.info("flow_invoked", temperature=self.spec.generation_config.temperature, prompt_chars=len(prompt))
        try:
            response = await self._generate(model_backend, self.build_request(prompt))
            output = self._parse_output(response)
            output = self._apply_overrides(flow_input, output)
            self._check_non_empty(output)
        except Exception as e:
            record_structured_error(self.name, e, stack_trace=traceback.format_exc())
            raise AgentFailure(self.failure_message, flow=self.name) from None
        log.info("flow_completed")
        return output

    def build_request(self, prompt: str) -> InferenceRequest:
        return InferenceRequest(
            flow=self.name,
            prompt=prompt,
            temperature=self.spec.generation_config.temperature,
            output_schema=self.output_json_schema,
        )

    async def _generate(self, backend: ModelBackend, request: InferenceRequest) -> InferenceResponse:
        response = await backend.generate(request)
        if response.tool_calls:
            raise ValidationError("tool_calls", "requested by the model but this flow has no tools", self.name)
        return response

    def _parse_output(self, response: InferenceResponse) -> BaseModel:
        raw = response.output if response.output is not None else parse_json_object(response.text)
        if raw is None:
            raise ValidationError("__root__", "model returned no structured output", self.output_schema.__name__)
        return validate(self.output_schema, raw)

    def _apply_overrides(self, flow_input: BaseModel, output: BaseModel) -> BaseModel:
        if self.echo_fields:
            data = output.model_dump(by_alias=True)
            for out_field, in_field in self.echo_fields.items():
                data[_alias(self.output_schema, out_field)] = _wire_value(getattr(flow_input, in_field))
            output = validate(self.output_schema, data)
        if self.post_process is not None:
            output = validate(self.output_schema, self.post_process(flow_input, output))
        return output

    def _check_non_empty(self, output: BaseModel) -> None:
        for name in self.non_empty:
            if _is_empty(getattr(output, name)):
                raise GenerationIncomplete(name)

    def describe(self) -> Dict[str, Any]:
        """Summary used by the CLI flow listing."""
        return {
            "name": self.name,
            "input_schema": self.input_schema.__name__,
            "output_schema": self.output_schema.__name__,
            "temperature": self.spec.generation_config.temperature,
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"
