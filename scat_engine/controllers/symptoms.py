from scat_engine.commands.command import Command
from scat_engine.controllers.base import BaseModuleController, CompletionCallback
from scat_engine.models.enumerations import CommandType, ModuleKind, Symptom
from scat_engine.models.results import SymptomResult

_SYMPTOMS = list(Symptom)


class SymptomController(BaseModuleController):
    """Walks the 22-item symptom checklist; a rating moves to the next item."""

    kind = ModuleKind.SYMPTOMS
    HELP = (
        '"Rate 0" through "Rate 6"',
        '"Headache four"',
        '"Physical yes", "Mental no"',
        '"Eighty percent normal"',
        '"Next question", "Previous question"',
    )

    def __init__(self, result: SymptomResult, on_complete: CompletionCallback):
        super().__init__(on_complete)
        self.result = result
        self.question_index = 0
        self._handlers.update({
            CommandType.RATE: self._rate,
            CommandType.SET_SYMPTOM_RATING: self._set_rating,
            CommandType.SET_TOGGLE: self._set_toggle,
            CommandType.SET_PERCENT_NORMAL: self._set_percent,
            CommandType.NEXT: lambda c: self._move(1),
            CommandType.GO_BACK: lambda c: self._move(-1),
        })

    @property
    def current_symptom(self) -> Symptom:
        return _SYMPTOMS[self.question_index]

    def _move(self, delta: int) -> None:
        self.question_index = self._step(self.question_index, delta, len(_SYMPTOMS))

    def _rate(self, command: Command) -> None:
        self.result.set_rating(self.current_symptom, int(command.value))
        self._move(1)

    def _set_rating(self, command: Command) -> None:
        self.result.set_rating(Symptom(command.target), int(command.value))

    def _set_toggle(self, command: Command) -> None:
        self.result.set_toggle(command.target, bool(command.value))

    def _set_percent(self, command: Command) -> None:
        self.result.set_percent_of_normal(int(command.value))

    def prompt(self) -> str:
        return f"Rate {self.current_symptom.value} ({self.question_index + 1} of {len(_SYMPTOMS)})"
