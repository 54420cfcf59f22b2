"""
Cognitive module controllers: orientation, concentration, immediate memory
and delayed recall.
"""

from datetime import datetime
from typing import Callable, Optional

from scat_engine.commands.command import Command
from scat_engine.controllers.base import BaseModuleController, CompletionCallback
from scat_engine.models.enumerations import CommandType, ModuleKind
from scat_engine.models.results import (
    ORIENTATION_QUESTIONS,
    ConcentrationResult,
    DelayedRecallResult,
    ImmediateMemoryResult,
    OrientationResult,
)
from scat_engine.scoring import rules

MONTH_QUESTION = 0
DAY_QUESTION = 2


class OrientationController(BaseModuleController):
    kind = ModuleKind.ORIENTATION
    HELP = (
        '"Correct", "Incorrect"',
        '"Select January" (months)',
        '"Select Monday" (days)',
        '"Next question", "Previous question"',
    )

    def __init__(
        self,
        result: OrientationResult,
        on_complete: CompletionCallback,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        super().__init__(on_complete)
        self.result = result
        self.question_index = 0
        self._clock = clock or datetime.now
        self._handlers.update({
            CommandType.MARK_CORRECT: lambda c: self._answer(self.question_index, True),
            CommandType.MARK_INCORRECT: lambda c: self._answer(self.question_index, False),
            CommandType.SELECT_MONTH: self._select_month,
            CommandType.SELECT_DAY: self._select_day,
            CommandType.NEXT: lambda c: self._move(1),
            CommandType.GO_BACK: lambda c: self._move(-1),
        })

    def _move(self, delta: int) -> None:
        self.question_index = self._step(self.question_index, delta, len(ORIENTATION_QUESTIONS))

    def _answer(self, index: int, correct: bool) -> None:
        self.result.record_answer(index, correct)
        if index == self.question_index:
            self._move(1)

    def _select_month(self, command: Command) -> None:
        expected = self._clock().strftime("%B")
        self._answer(MONTH_QUESTION, str(command.value).lower() == expected.lower())

    def _select_day(self, command: Command) -> None:
        expected = self._clock().strftime("%A")
        self._answer(DAY_QUESTION, str(command.value).lower() == expected.lower())

    def prompt(self) -> str:
        return ORIENTATION_QUESTIONS[self.question_index]


class ConcentrationController(BaseModuleController):
    """
    Digits backwards, then months in reverse.

    During digits the examiner may either relay the athlete's answer
    ("seven two four") or judge it directly ("correct" / "incorrect").
    """

    kind = ModuleKind.CONCENTRATION
    HELP = (
        '"Seven two four" (digit answer)',
        '"Correct", "Incorrect"',
    )

    def __init__(self, result: ConcentrationResult, on_complete: CompletionCallback):
        super().__init__(on_complete)
        self.result = result
        self._handlers.update({
            CommandType.SUBMIT_ANSWER: self._submit,
            CommandType.MARK_CORRECT: lambda c: self._judge(True),
            CommandType.MARK_INCORRECT: lambda c: self._judge(False),
        })

    @property
    def in_digit_span(self) -> bool:
        return not self.result.digit_span_finished

    def _submit(self, command: Command) -> None:
        if self.in_digit_span and command.value is not None:
            self.result.record_digit_response(str(command.value))

    def _judge(self, correct: bool) -> None:
        if self.in_digit_span:
            expected = rules.reverse_digit_sequence(self.result.current_sequence)
            self.result.record_digit_response(expected if correct else "")
        else:
            self.result.set_months_correct(correct)

    def prompt(self) -> str:
        sequence = self.result.current_sequence
        if sequence is None:
            return "Months of the year in reverse order"
        return "Digits backwards: " + "-".join(str(d) for d in sequence)


class ImmediateMemoryController(BaseModuleController):
    kind = ModuleKind.IMMEDIATE_MEMORY
    HELP = (
        '"Recall elbow apple ..."',
        '"Toggle apple"',
        '"Next trial"',
    )

    def __init__(self, result: ImmediateMemoryResult, on_complete: CompletionCallback):
        super().__init__(on_complete)
        self.result = result
        self.trial_index = 0
        self._handlers.update({
            CommandType.RECALL_WORDS: lambda c: self.result.record_recall(self.trial_index, str(c.value)),
            CommandType.TOGGLE_WORD: lambda c: self.result.toggle_recalled_word(self.trial_index, str(c.value)),
            CommandType.NEXT_TRIAL: lambda c: self._move(1),
            CommandType.NEXT: lambda c: self._move(1),
            CommandType.GO_BACK: lambda c: self._move(-1),
        })

    def _move(self, delta: int) -> None:
        self.trial_index = self._step(self.trial_index, delta, len(self.result.trials))

    def prompt(self) -> str:
        trial = self.result.trials[self.trial_index]
        return f"Trial {trial.trial_number}: " + ", ".join(trial.words)


class DelayedRecallController(BaseModuleController):
    kind = ModuleKind.DELAYED_RECALL
    HELP = (
        '"Recall elbow apple ..."',
        '"Toggle apple"',
    )

    def __init__(self, result: DelayedRecallResult, on_complete: CompletionCallback):
        super().__init__(on_complete)
        self.result = result
        self._handlers.update({
            CommandType.RECALL_WORDS: lambda c: self.result.record_recall(str(c.value)),
            CommandType.TOGGLE_WORD: lambda c: self.result.toggle_recalled_word(str(c.value)),
        })

    def prompt(self) -> str:
        return "Recall the words from the memory test"
