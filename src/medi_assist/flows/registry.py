"""
Schema contract registry.

Holds one FlowSpec per flow name (input schema, output schema, generation
config) and validates values against pydantic schemas at every inbound and
outbound boundary. The registry is filled at startup and frozen; lookups after
that are read-only and need no locking.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Type, TypeVar, Union

import structlog
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from medi_assist.flows.errors import ConfigurationError, ValidationError

logger = structlog.get_logger(__name__)

M = TypeVar("M", bound=BaseModel)


class GenerationConfig(BaseModel):
    """Sampling parameters sent with every request for a flow."""

    model_config = ConfigDict(frozen=True)

    temperature: float = Field(default=0.7, ge=0.0, le=1.0, description="Sampling temperature (0–1)")


@dataclass(frozen=True)
class FlowSpec:
    """Contract of a flow unit: unique name, input/output schema and generation config."""

    name: str
    input_schema: Type[BaseModel]
    output_schema: Type[BaseModel]
    generation_config: GenerationConfig = GenerationConfig()


def _field_path(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "__root__"


def validate(schema: Type[M], value: Union[M, Mapping[str, Any], Any]) -> M:
    """
    Validate value against schema and return it as a schema instance.

    Accepts a mapping or a model instance. Validation is strict: values are
    not coerced across types, so "true" is not a boolean and "45" is not an
    integer. Raises ValidationError naming the first nonconforming field
    (dotted location, e.g. 'diagnoses.0.confidence').
    """
    if isinstance(value, BaseModel):
        if type(value) is schema:
            value = value.model_dump(by_alias=True)
        else:
            value = value.model_dump(by_alias=True, exclude_unset=True)
    if not isinstance(value, Mapping):
        raise ValidationError("__root__", f"expected an object, got {type(value).__name__}", schema.__name__)
    try:
        return schema.model_validate(dict(value), strict=True)
    except PydanticValidationError as e:
        first = e.errors()[0]
        raise ValidationError(_field_path(first["loc"]), first["msg"], schema.__name__) from e


class SchemaRegistry:
    """Process-wide set of FlowSpecs keyed by unique flow name."""

    def __init__(self) -> None:
        self._specs: Dict[str, FlowSpec] = {}
        self._frozen = False

    def register(self, spec: FlowSpec) -> FlowSpec:
        """Add a FlowSpec; a duplicate name or a frozen registry is a startup configuration error."""
        if self._frozen:
            raise ConfigurationError(f"Registry is frozen; cannot register flow '{spec.name}'")
        if spec.name in self._specs:
            raise ConfigurationError(f"Flow '{spec.name}' is already registered")
        self._specs[spec.name] = spec
        logger.debug(
            "flow_registered",
            flow=spec.name,
            input_schema=spec.input_schema.__name__,
            output_schema=spec.output_schema.__name__,
            temperature=spec.generation_config.temperature,
        )
        return spec

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def get(self, name: str) -> FlowSpec:
        try:
            return self._specs[name]
        except KeyError:
            raise ConfigurationError(f"Unknown flow '{name}'") from None

    def names(self) -> List[str]:
        return sorted(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def __len__(self) -> int:
        return len(self._specs)

    def validate(self, schema: Type[M], value: Any) -> M:
        return validate(schema, value)

    def validate_input(self, name: str, value: Any) -> BaseModel:
        return validate(self.get(name).input_schema, value)

    def validate_output(self, name: str, value: Any) -> BaseModel:
        return validate(self.get(name).output_schema, value)


_registry: Optional[SchemaRegistry] = None


def get_registry() -> SchemaRegistry:
    """Get or create the process-wide registry."""
    global _registry
    if _registry is None:
        _registry = SchemaRegistry()
    return _registry
