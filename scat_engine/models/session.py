from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from scat_engine.core.exceptions import SessionConfigurationError
from scat_engine.models.enumerations import AssessmentReason, ModuleKind, SessionType


MODULE_ORDERS: Dict[SessionType, List[ModuleKind]] = {
    SessionType.FULL: [
        ModuleKind.SYMPTOMS,
        ModuleKind.ORIENTATION,
        ModuleKind.IMMEDIATE_MEMORY,
        ModuleKind.CONCENTRATION,
        ModuleKind.COORDINATION,
        ModuleKind.BALANCE,
        ModuleKind.DELAYED_RECALL,
    ],
    SessionType.EMERGENCY: [
        ModuleKind.SYMPTOMS,
        ModuleKind.ORIENTATION,
        ModuleKind.IMMEDIATE_MEMORY,
        ModuleKind.CONCENTRATION,
        ModuleKind.DELAYED_RECALL,
    ],
}

NOT_STARTED_INDEX = -1


def validate_module_order(modules: Sequence[ModuleKind]) -> List[ModuleKind]:
    """Reject duplicates and a delayed recall with no earlier memory trials."""
    modules = list(modules)
    if len(set(modules)) != len(modules):
        raise SessionConfigurationError(f"Module order contains duplicates: {[m.value for m in modules]}")
    if ModuleKind.DELAYED_RECALL in modules:
        recall_at = modules.index(ModuleKind.DELAYED_RECALL)
        if ModuleKind.IMMEDIATE_MEMORY not in modules[:recall_at]:
            raise SessionConfigurationError("delayed_recall requires immediate_memory earlier in the order")
    return modules


class Session(BaseModel):
    """
    One administration of the ordered module sequence to one athlete.

    ``current_index`` is -1 before start, an index into ``modules`` while
    running, or ``len(modules)`` once the flow is finished. The completed
    list only grows and never holds a module twice. Both are re-checked on
    every assignment.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: UUID = Field(default_factory=uuid4, description="Unique session identifier")
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Session creation timestamp (UTC)",
    )
    session_type: SessionType = Field(default=SessionType.FULL)
    reason: AssessmentReason = Field(default=AssessmentReason.CONCUSSION)
    athlete_id: Optional[str] = Field(default=None, max_length=255)
    modules: List[ModuleKind] = Field(default_factory=list)
    completed_modules: List[ModuleKind] = Field(default_factory=list)
    current_index: int = Field(default=NOT_STARTED_INDEX, ge=NOT_STARTED_INDEX)

    @classmethod
    def create(
        cls,
        session_type: SessionType = SessionType.FULL,
        modules: Optional[Sequence[ModuleKind]] = None,
        **kwargs,
    ) -> "Session":
        """Fixed order for the session type unless an explicit order is given."""
        order = MODULE_ORDERS[session_type] if modules is None else modules
        return cls(session_type=session_type, modules=validate_module_order(order), **kwargs)

    @field_validator("modules")
    @classmethod
    def check_order(cls, v: List[ModuleKind]) -> List[ModuleKind]:
        try:
            return validate_module_order(v)
        except SessionConfigurationError as e:
            raise ValueError(str(e))

    @model_validator(mode="after")
    def check_progress(self):
        if self.current_index > len(self.modules):
            raise ValueError(f"current_index {self.current_index} beyond terminal {len(self.modules)}")
        if len(set(self.completed_modules)) != len(self.completed_modules):
            raise ValueError("completed_modules contains duplicates")
        unknown = set(self.completed_modules) - set(self.modules)
        if unknown:
            raise ValueError(f"completed_modules not in order: {sorted(m.value for m in unknown)}")
        return self

    @computed_field
    @property
    def is_complete(self) -> bool:
        return len(self.completed_modules) == len(self.modules)

    @computed_field
    @property
    def progress(self) -> float:
        if not self.modules:
            return 0.0
        return len(self.completed_modules) / len(self.modules)
