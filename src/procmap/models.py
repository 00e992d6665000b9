"""
Data models for process descriptions.

A process description is the immutable configuration a process map is drawn
from: ordered phases, each with ordered steps and the estimation blocks that
group those steps. The models accept both snake_case keys and the camelCase
keys used by the existing process data files.

Classes:
    HiddenAction: Sub-step detail revealed when a step is expanded.
    ErrorLoop: Retry loop attached to a step.
    Step: An atomic unit of the process, either a task or a decision.
    EstimationBlock: A group of steps estimated together.
    Phase: A named, coloured grouping of sequential steps.
    ProcessDescription: The whole process, in phase order.
"""

from typing import Dict, Iterator, List, Optional, Set, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class _Model(BaseModel):
    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


class HiddenAction(_Model):
    """Free-text sub-step, shown only when its owning step is expanded."""

    description: str
    type: str = ""


class ErrorLoop(_Model):
    """A retry loop: the condition under which the step has to be redone."""

    condition: str
    target: str = "self"


class Step(_Model):
    """
    A single step of a phase.

    Attributes:
        id: Identifier, unique across the whole description.
        name: Display name, wrapped at layout time.
        action_types: Tags rendered as badges (e.g. "Documentation: Form-filling").
        is_decision_point: Whether the step is drawn as a decision diamond.
        decision_outcome: Selected answer of a resolved decision.
        error_loop: Optional retry loop.
        hidden_actions: Details revealed on expansion.
    """

    id: str = Field(..., min_length=1)
    name: str = ""
    action_types: List[str] = Field(default_factory=list)
    is_decision_point: bool = False
    decision_outcome: Optional[str] = None
    error_loop: Optional[ErrorLoop] = None
    hidden_actions: List[HiddenAction] = Field(default_factory=list)

    @property
    def has_expansion(self) -> bool:
        """True when expanding the step reveals anything."""
        return bool(self.hidden_actions) or self.error_loop is not None

    @property
    def is_resolved(self) -> bool:
        return self.is_decision_point and bool(self.decision_outcome)


class EstimationBlock(_Model):
    """Steps whose duration is estimated together; drawn as a zone."""

    id: str
    label: str = ""
    prompt: str = ""
    steps_included: List[str] = Field(default_factory=list)


class Phase(_Model):
    """A banded group of steps."""

    id: str
    name: str = ""
    color: str = Field("#1864AB", pattern=r"^#[0-9A-Fa-f]{6}$")
    icon: Optional[str] = None
    steps: List[Step] = Field(default_factory=list)
    estimation_blocks: List[EstimationBlock] = Field(default_factory=list)


class ProcessDescription(_Model):
    """The full process map, phases in display order."""

    title: str = ""
    subtitle: str = ""
    phases: List[Phase] = Field(default_factory=list)

    @model_validator(mode="after")
    def ensure_unique_step_ids(self) -> "ProcessDescription":
        seen: Set[str] = set()
        for phase in self.phases:
            for step in phase.steps:
                if step.id in seen:
                    raise ValueError(f"Duplicate step id found: {step.id}")
                seen.add(step.id)
        return self

    def iter_steps(self) -> Iterator[Tuple[Phase, Step]]:
        """Yield (phase, step) pairs in flow order."""
        for phase in self.phases:
            for step in phase.steps:
                yield phase, step

    def step_index(self) -> Dict[str, Step]:
        return {step.id: step for _, step in self.iter_steps()}

    def find_step(self, step_id: str) -> Optional[Step]:
        for _, step in self.iter_steps():
            if step.id == step_id:
                return step
        return None

    def find_phase(self, phase_id: str) -> Optional[Phase]:
        for phase in self.phases:
            if phase.id == phase_id:
                return phase
        return None
