"""
Module controller interface
scat_engine/controllers/base.py

A controller is the single object allowed to mutate one module's result
while that module is on screen. The CommandRouter only ever sees the
``dispatch`` entry point.
"""

from typing import Callable, Dict, Protocol, Sequence, runtime_checkable

import structlog

from scat_engine.commands.command import Command
from scat_engine.models.enumerations import CommandType, ModuleKind

logger = structlog.get_logger(__name__)

# Called with skipped=True when the module is left through the skip path
CompletionCallback = Callable[[bool], None]


@runtime_checkable
class ModuleController(Protocol):
    kind: ModuleKind

    def dispatch(self, command: Command) -> bool:
        """Apply a command. Returns False when the command does not apply here."""
        ...

    def prompt(self) -> str:
        ...

    def help_lines(self) -> Sequence[str]:
        ...


class BaseModuleController:
    """
    Table-driven dispatch shared by the concrete controllers.

    Subclasses fill ``_handlers`` in ``__init__``; complete/skip are wired
    here for every module.
    """

    kind: ModuleKind
    HELP: Sequence[str] = ()

    def __init__(self, on_complete: CompletionCallback):
        self._on_complete = on_complete
        self._handlers: Dict[CommandType, Callable[[Command], None]] = {
            CommandType.COMPLETE_MODULE: lambda c: self._on_complete(False),
            CommandType.SKIP_MODULE: lambda c: self._on_complete(True),
        }

    def dispatch(self, command: Command) -> bool:
        handler = self._handlers.get(command.type)
        if handler is None:
            logger.debug("command_not_applicable", module=self.kind.value, command=command.type.value)
            return False
        handler(command)
        return True

    def prompt(self) -> str:
        return self.kind.display_name

    def help_lines(self) -> Sequence[str]:
        return tuple(self.HELP) + ('"Complete test"', '"Skip test"', '"Exit test"', '"Help"')

    @staticmethod
    def _step(index: int, delta: int, length: int) -> int:
        """Move within [0, length - 1]."""
        return max(0, min(length - 1, index + delta))
