from dataclasses import dataclass
from typing import Optional, Union

from scat_engine.models.enumerations import CommandType

CommandValue = Union[int, bool, str, None]


@dataclass(frozen=True)
class Command:
    """Stateless, fire-and-forget command value."""
    type: CommandType
    value: CommandValue = None     # Rating, percentage, toggle value, word, month...
    target: Optional[str] = None   # Symptom name or toggle question

    @property
    def is_global(self) -> bool:
        return self.type.is_global

    def describe(self) -> str:
        label = self.type.value.replace("_", " ")
        if self.target is not None:
            label = f"{label} {self.target}"
        if self.value is not None:
            label = f"{label} = {self.value}"
        return label
