"""
Sequential orchestration of flow units.

An Orchestrator runs an ordered list of OrchestrationSteps one after another.
Each step derives its input from the run so far (initial input, previous
output, all outputs by step name) and may be gated by a predicate. A gated-off
step is skipped and its slot stays None. A failing step aborts the run and its
error propagates unchanged; there is no partial recovery and no retry.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, TypeVar

import structlog
from pydantic import BaseModel

from medi_assist.flows.errors import ConfigurationError
from medi_assist.flows.unit import FlowUnit
from medi_assist.inference.base import ModelBackend

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def first_matching(items: Optional[Iterable[T]], predicate: Callable[[T], bool]) -> Optional[T]:
    """First element satisfying predicate, in original order; None if none does."""
    for item in items or ():
        if predicate(item):
            return item
    return None


@dataclass
class StepContext:
    """What a step's derivation function and predicate can see."""

    initial_input: Any
    previous: Optional[BaseModel] = None
    outputs: Dict[str, Optional[BaseModel]] = field(default_factory=dict)


def _pass_initial_input(context: StepContext) -> Any:
    return context.initial_input


@dataclass
class OrchestrationStep:
    """
    One pipeline step.

    derive_input maps the run context to this step's input (default: the
    initial input). predicate, when set, decides whether the step runs at all.
    """

    name: str
    flow: FlowUnit
    derive_input: Callable[[StepContext], Any] = _pass_initial_input
    predicate: Optional[Callable[[StepContext], bool]] = None

    @property
    def optional(self) -> bool:
        return self.predicate is not None


@dataclass
class OrchestrationResult:
    """Outputs by step name; skipped steps map to None."""

    outputs: Dict[str, Optional[BaseModel]]
    skipped: List[str] = field(default_factory=list)

    @property
    def primary(self) -> Optional[BaseModel]:
        """Output of the first (mandatory) step."""
        return next(iter(self.outputs.values()), None)

    @property
    def secondary(self) -> Optional[BaseModel]:
        """Output of the last step, None when it was skipped."""
        if len(self.outputs) < 2:
            return None
        return list(self.outputs.values())[-1]


class Orchestrator:
    """Runs steps strictly sequentially. The first step is mandatory."""

    def __init__(self, name: str, steps: Sequence[OrchestrationStep]) -> None:
        if not steps:
            raise ConfigurationError(f"Orchestrator '{name}' needs at least one step")
        if steps[0].optional:
            raise ConfigurationError(f"Orchestrator '{name}': the first step cannot be gated")
        names = [s.name for s in steps]
        if len(set(names)) != len(names):
            raise ConfigurationError(f"Orchestrator '{name}': step names must be unique")
        self.name = name
        self.steps = list(steps)

    async def run(self, initial_input: Any, *, backend: Optional[ModelBackend] = None) -> OrchestrationResult:
        log = logger.bind(orchestrator=self.name)
        context = StepContext(initial_input=initial_input)
        skipped: List[str] = []
        log.info("orchestration_started", steps=[s.name for s in self.steps])
        for step in self.steps:
            if step.predicate is not None and not step.predicate(context):
                log.info("orchestration_step_skipped", step=step.name, reason="predicate_false")
                context.outputs[step.name] = None
                context.previous = None
                skipped.append(step.name)
                continue
            step_input = step.derive_input(context)
            log.info("orchestration_step_started", step=step.name, flow=step.flow.name)
            try:
                output = await step.flow.invoke(step_input, backend=backend)
            except Exception as e:
                log.warning("orchestration_aborted", step=step.name, error_type=type(e).__name__)
                raise
            context.outputs[step.name] = output
            context.previous = output
        log.info("orchestration_completed", skipped=skipped)
        return OrchestrationResult(outputs=dict(context.outputs), skipped=skipped)
