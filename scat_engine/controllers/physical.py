"""
Physical module controllers: balance stances and coordination.
"""

from scat_engine.commands.command import Command
from scat_engine.controllers.base import BaseModuleController, CompletionCallback
from scat_engine.models.enumerations import CommandType, ModuleKind
from scat_engine.models.results import COORDINATION_ITEMS, BalanceResult, CoordinationResult


class BalanceController(BaseModuleController):
    """
    One timed observation window per stance.

    Errors are counted until the window has fully elapsed; ``tick`` is fed
    by the host's timer. An expired window moves to the next stance.
    """

    kind = ModuleKind.BALANCE
    HELP = (
        '"Start timer", "Stop timer"',
        '"Add error"',
        '"Next stance", "Previous stance"',
        '"Reset"',
    )

    def __init__(self, result: BalanceResult, on_complete: CompletionCallback):
        super().__init__(on_complete)
        self.result = result
        self.stance_index = 0
        self.timer_running = False
        self.seconds_remaining = float(result.trial_seconds)
        self._handlers.update({
            CommandType.START_TIMER: self._start,
            CommandType.STOP_TIMER: self._stop,
            CommandType.ADD_ERROR: self._add_error,
            CommandType.NEXT: lambda c: self._go_to(self.stance_index + 1),
            CommandType.NEXT_TRIAL: lambda c: self._go_to(self.stance_index + 1),
            CommandType.GO_BACK: lambda c: self._go_to(self.stance_index - 1),
            CommandType.RESET: self._reset,
        })

    @property
    def window_expired(self) -> bool:
        return self.seconds_remaining <= 0

    def _start(self, command: Command) -> None:
        if not self.window_expired:
            self.timer_running = True

    def _stop(self, command: Command) -> None:
        self.timer_running = False

    def _add_error(self, command: Command) -> None:
        if not self.window_expired:
            self.result.record_balance_error(self.stance_index)

    def _reset(self, command: Command) -> None:
        self.result.reset_trial(self.stance_index)
        self.timer_running = False
        self.seconds_remaining = float(self.result.trial_seconds)

    def _go_to(self, index: int) -> None:
        index = self._step(index, 0, len(self.result.trials))
        if index != self.stance_index:
            self.stance_index = index
            self.timer_running = False
            self.seconds_remaining = float(self.result.trial_seconds)

    def tick(self, elapsed_seconds: float) -> None:
        """Advance the running window; on expiry stop and move on."""
        if not self.timer_running:
            return
        self.seconds_remaining = max(0.0, self.seconds_remaining - elapsed_seconds)
        if self.window_expired:
            self.timer_running = False
            if self.stance_index < len(self.result.trials) - 1:
                self._go_to(self.stance_index + 1)

    def prompt(self) -> str:
        trial = self.result.trials[self.stance_index]
        return f"{trial.stance.value}: {int(self.seconds_remaining)}s, {trial.error_count} errors"


class CoordinationController(BaseModuleController):
    kind = ModuleKind.COORDINATION
    HELP = (
        '"Correct" (normal), "Incorrect" (abnormal)',
        '"Next", "Go back"',
    )

    def __init__(self, result: CoordinationResult, on_complete: CompletionCallback):
        super().__init__(on_complete)
        self.result = result
        self.item_index = 0
        self._handlers.update({
            CommandType.MARK_CORRECT: lambda c: self._record(True),
            CommandType.MARK_INCORRECT: lambda c: self._record(False),
            CommandType.NEXT: lambda c: self._move(1),
            CommandType.GO_BACK: lambda c: self._move(-1),
        })

    def _move(self, delta: int) -> None:
        self.item_index = self._step(self.item_index, delta, len(COORDINATION_ITEMS))

    def _record(self, normal: bool) -> None:
        self.result.set_finding(COORDINATION_ITEMS[self.item_index], normal)
        self._move(1)

    def prompt(self) -> str:
        return COORDINATION_ITEMS[self.item_index].replace("_", " ").capitalize()
