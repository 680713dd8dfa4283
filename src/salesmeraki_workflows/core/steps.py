"""Typed configuration payloads for workflow steps.

Each step type owns exactly one configuration class. Payloads arriving from the
cache or the wire are converted with :func:`build_step_config`, which refuses
type tags outside :class:`~salesmeraki_workflows.core.types.StepType` and
payloads that do not fit the step's configuration class.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from enum import StrEnum
from typing import Any, ClassVar, Self, TypeVar

from salesmeraki_workflows.core.types import (
    AiAnalysisKind,
    ConditionOperator,
    EmailTemplateKind,
    StepType,
)
from salesmeraki_workflows.exceptions import StepConfigError, UnknownStepTypeError

__all__ = [
    "STEP_CONFIG_TYPES",
    "AiAnalysisConfig",
    "CallConfig",
    "ConditionConfig",
    "CrmUpdateConfig",
    "DelayConfig",
    "EmailConfig",
    "SmsConfig",
    "StepConfig",
    "TaskConfig",
    "TriggerStepConfig",
    "build_step_config",
    "parse_step_type",
]

E = TypeVar("E", bound=StrEnum)


def parse_step_type(value: object) -> StepType:
    """Convert a raw type tag into a :class:`StepType`.

    Args:
        value: Tag from the wire, the cache or a caller.

    Returns:
        The matching step type.

    Raises:
        UnknownStepTypeError: If the tag is not part of the vocabulary.
    """
    if isinstance(value, StepType):
        return value
    try:
        return StepType(str(value))
    except ValueError as e:
        raise UnknownStepTypeError(value) from e


def _number(label: str, name: str, value: Any) -> float | None:
    if value is None:
        return None
    if isinstance(value, bool):
        raise StepConfigError(label, f"'{name}' must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise StepConfigError(label, f"'{name}' must be a number") from e
    if number < 0:
        raise StepConfigError(label, f"'{name}' must not be negative")
    return number


def _choice(label: str, name: str, enum_type: type[E], value: Any) -> E | None:
    if value is None:
        return None
    try:
        return enum_type(value)
    except ValueError as e:
        allowed = ", ".join(member.value for member in enum_type)
        raise StepConfigError(label, f"'{name}' must be one of: {allowed}") from e


def _text(label: str, name: str, value: Any) -> str:
    if not isinstance(value, str):
        raise StepConfigError(label, f"'{name}' must be text")
    return value


@dataclass
class StepConfig:
    """Base class for step configuration payloads.

    Subclasses are plain dataclasses. A field whose wire key differs from its
    attribute name declares it with ``metadata={"wire": "<key>"}``.
    """

    label: ClassVar[str] = "step"

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the wire mapping, leaving out unset values."""
        data: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if value is None:
                continue
            if isinstance(value, StrEnum):
                value = value.value
            elif isinstance(value, dict):
                value = dict(value)
            data[f.metadata.get("wire", f.name)] = value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Build from a wire mapping.

        Unknown keys are ignored and empty strings count as unset, matching
        what an untouched form field submits.

        Raises:
            StepConfigError: If a known key carries an unusable value.
        """
        kwargs: dict[str, Any] = {}
        for f in fields(cls):
            value = data.get(f.metadata.get("wire", f.name))
            if value is None or value == "":
                continue
            kwargs[f.name] = value
        return cls(**kwargs)


@dataclass
class EmailConfig(StepConfig):
    """Send an email from a template.

    Attributes:
        template: Which canned email to send.
        subject: Subject line override.
        delay: Hours to wait before sending.
    """

    label: ClassVar[str] = StepType.EMAIL.value

    template: EmailTemplateKind | None = None
    subject: str = ""
    delay: float | None = None

    def __post_init__(self) -> None:
        self.template = _choice(self.label, "template", EmailTemplateKind, self.template)
        self.subject = _text(self.label, "subject", self.subject)
        self.delay = _number(self.label, "delay", self.delay)


@dataclass
class SmsConfig(StepConfig):
    """Send a text message."""

    label: ClassVar[str] = StepType.SMS.value

    message: str = ""
    delay: float | None = None

    def __post_init__(self) -> None:
        self.message = _text(self.label, "message", self.message)
        self.delay = _number(self.label, "delay", self.delay)


@dataclass
class CallConfig(StepConfig):
    """Place a call following a script.

    Attributes:
        script: Talking points for the rep.
        duration: Expected length in minutes.
    """

    label: ClassVar[str] = StepType.CALL.value

    script: str = ""
    duration: float | None = None

    def __post_init__(self) -> None:
        self.script = _text(self.label, "script", self.script)
        self.duration = _number(self.label, "duration", self.duration)


@dataclass
class DelayConfig(StepConfig):
    """Pause the workflow for ``duration`` hours."""

    label: ClassVar[str] = StepType.DELAY.value

    duration: float | None = None

    def __post_init__(self) -> None:
        self.duration = _number(self.label, "duration", self.duration)


@dataclass
class ConditionConfig(StepConfig):
    """Compare a contact or deal field against a value.

    Attributes:
        field: Name of the field to inspect.
        operator: Comparison to apply.
        value: Right-hand side of the comparison.
    """

    label: ClassVar[str] = StepType.CONDITION.value

    field: str = ""
    operator: ConditionOperator | None = None
    value: str = ""

    def __post_init__(self) -> None:
        self.field = _text(self.label, "field", self.field)
        self.operator = _choice(self.label, "operator", ConditionOperator, self.operator)
        if not isinstance(self.value, str):
            self.value = str(self.value)


@dataclass
class TaskConfig(StepConfig):
    """Create a task for a sales rep."""

    label: ClassVar[str] = StepType.TASK.value

    title: str = ""
    description: str = ""
    assignee: str = ""

    def __post_init__(self) -> None:
        self.title = _text(self.label, "title", self.title)
        self.description = _text(self.label, "description", self.description)
        self.assignee = _text(self.label, "assignee", self.assignee)


@dataclass
class AiAnalysisConfig(StepConfig):
    """Run an AI analysis over the prospect's engagement.

    Attributes:
        analysis: Kind of analysis (wire key ``type``).
        threshold: Confidence threshold for acting on the result.
    """

    label: ClassVar[str] = StepType.AI_ANALYSIS.value

    analysis: AiAnalysisKind | None = field(default=None, metadata={"wire": "type"})
    threshold: float | None = None

    def __post_init__(self) -> None:
        self.analysis = _choice(self.label, "type", AiAnalysisKind, self.analysis)
        self.threshold = _number(self.label, "threshold", self.threshold)


@dataclass
class CrmUpdateConfig(StepConfig):
    """Write values onto the CRM record.

    ``fields`` also accepts the ``key=value`` per line text the builder form
    produces.
    """

    label: ClassVar[str] = StepType.CRM_UPDATE.value

    fields: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if isinstance(self.fields, str):
            parsed: dict[str, str] = {}
            for line in self.fields.splitlines():
                key, sep, value = line.partition("=")
                if not sep or not key.strip():
                    raise StepConfigError(self.label, f"cannot parse field update '{line}'")
                parsed[key.strip()] = value.strip()
            self.fields = parsed
        elif isinstance(self.fields, Mapping):
            self.fields = {str(key): str(value) for key, value in self.fields.items()}
        else:
            raise StepConfigError(self.label, "'fields' must be a mapping")


@dataclass
class TriggerStepConfig(StepConfig):
    """Filters narrowing which events fire a trigger step."""

    label: ClassVar[str] = "trigger"

    filters: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.filters, Mapping):
            raise StepConfigError(self.label, "'filters' must be a mapping")
        self.filters = {str(key): str(value) for key, value in self.filters.items()}


STEP_CONFIG_TYPES: dict[StepType, type[StepConfig]] = {
    StepType.EMAIL: EmailConfig,
    StepType.SMS: SmsConfig,
    StepType.CALL: CallConfig,
    StepType.DELAY: DelayConfig,
    StepType.CONDITION: ConditionConfig,
    StepType.TASK: TaskConfig,
    StepType.AI_ANALYSIS: AiAnalysisConfig,
    StepType.CRM_UPDATE: CrmUpdateConfig,
    StepType.TRIGGER_NEW_LEAD: TriggerStepConfig,
    StepType.TRIGGER_DEAL_STAGE: TriggerStepConfig,
    StepType.TRIGGER_FORM_SUBMIT: TriggerStepConfig,
}
"""Configuration class owned by each step type."""


def build_step_config(step_type: StepType | str, payload: StepConfig | Mapping[str, Any] | None = None) -> StepConfig:
    """Produce the typed configuration for a step.

    Args:
        step_type: Step type tag.
        payload: Existing config instance, a wire mapping, or ``None`` for defaults.

    Returns:
        A configuration instance of the class registered for ``step_type``.

    Raises:
        UnknownStepTypeError: If ``step_type`` is not part of the vocabulary.
        StepConfigError: If the payload does not fit the step type.
    """
    kind = parse_step_type(step_type)
    config_type = STEP_CONFIG_TYPES[kind]
    if payload is None:
        return config_type()
    if isinstance(payload, StepConfig):
        if not isinstance(payload, config_type):
            raise StepConfigError(kind.value, f"expected {config_type.__name__}, got {type(payload).__name__}")
        return payload
    if isinstance(payload, Mapping):
        try:
            return config_type.from_dict(payload)
        except TypeError as e:
            raise StepConfigError(kind.value, str(e)) from e
    raise StepConfigError(kind.value, "configuration must be a mapping")
