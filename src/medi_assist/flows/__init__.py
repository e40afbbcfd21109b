"""
Flow orchestration core: schema registry, templates, flow units, tools, orchestrator.
"""

from medi_assist.flows.errors import (
    AgentFailure,
    ConfigurationError,
    FlowError,
    GenerationIncomplete,
    TransportError,
    UpstreamError,
    ValidationError,
)
from medi_assist.flows.orchestrator import (
    OrchestrationResult,
    OrchestrationStep,
    Orchestrator,
    StepContext,
    first_matching,
)
from medi_assist.flows.registry import FlowSpec, GenerationConfig, SchemaRegistry, get_registry, validate
from medi_assist.flows.templates import PromptTemplate, TemplateSyntaxError, render
from medi_assist.flows.tools import ConversationalFlowUnit, Tool, ToolSpec
from medi_assist.flows.unit import FlowUnit

__all__ = [
    "AgentFailure",
    "ConfigurationError",
    "ConversationalFlowUnit",
    "FlowError",
    "FlowSpec",
    "FlowUnit",
    "GenerationConfig",
    "GenerationIncomplete",
    "OrchestrationResult",
    "OrchestrationStep",
    "Orchestrator",
    "PromptTemplate",
    "SchemaRegistry",
    "StepContext",
    "TemplateSyntaxError",
    "Tool",
    "ToolSpec",
    "TransportError",
    "UpstreamError",
    "ValidationError",
    "first_matching",
    "get_registry",
    "render",
    "validate",
]
