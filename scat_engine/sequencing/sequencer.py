"""
Module Sequencer
scat_engine/sequencing/sequencer.py

Owns the module order, the completed set and the current index of one
Session. Completion is idempotent: a duplicate completion signal for the
same module changes nothing.
"""

from typing import Optional

import structlog

from scat_engine.core.exceptions import ModuleIndexError
from scat_engine.models.enumerations import ModuleKind
from scat_engine.models.session import NOT_STARTED_INDEX, Session

logger = structlog.get_logger(__name__)


class ModuleSequencer:
    """Advance / retreat / complete over a session's module order."""

    def __init__(self, session: Session):
        self.session = session

    # ------------------------------------------------------------------ #
    # Read-only state                                                      #
    # ------------------------------------------------------------------ #

    @property
    def modules(self):
        return self.session.modules

    @property
    def current_index(self) -> int:
        return self.session.current_index

    @property
    def terminal_index(self) -> int:
        return len(self.session.modules)

    @property
    def is_started(self) -> bool:
        return self.current_index != NOT_STARTED_INDEX

    @property
    def is_finished(self) -> bool:
        return self.current_index == self.terminal_index

    @property
    def completed_count(self) -> int:
        return len(self.session.completed_modules)

    @property
    def current_module(self) -> Optional[ModuleKind]:
        """Active module, or None before start and once finished."""
        if 0 <= self.current_index < self.terminal_index:
            return self.session.modules[self.current_index]
        return None

    def is_completed(self, module: ModuleKind) -> bool:
        return module in self.session.completed_modules

    def _require_current(self, operation: str) -> ModuleKind:
        module = self.current_module
        if module is None:
            raise ModuleIndexError(f"current module ({operation})", self.current_index, self.terminal_index)
        return module

    # ------------------------------------------------------------------ #
    # Transitions                                                          #
    # ------------------------------------------------------------------ #

    def start(self) -> Optional[ModuleKind]:
        """Index 0 for a non-empty order, terminal otherwise."""
        self.session.current_index = 0 if self.session.modules else self.terminal_index
        logger.info("sequencer_started", session_id=str(self.session.id), module_count=self.terminal_index)
        return self.current_module

    def resume(self) -> Optional[ModuleKind]:
        """Index of the first module not yet completed (terminal if none)."""
        completed = set(self.session.completed_modules)
        index = next(
            (i for i, m in enumerate(self.session.modules) if m not in completed),
            self.terminal_index,
        )
        self.session.current_index = index
        logger.info("sequencer_resumed", session_id=str(self.session.id), index=index)
        return self.current_module

    def complete_current(self) -> bool:
        """
        Add the current module to the completed set.

        Returns True only when the set actually changed; a repeated call for
        the same module is a no-op and returns False.
        """
        module = self._require_current("complete")
        if module in self.session.completed_modules:
            logger.debug("duplicate_completion_ignored", module=module.value)
            return False
        self.session.completed_modules = self.session.completed_modules + [module]
        logger.info(
            "module_marked_complete",
            module=module.value,
            completed=self.completed_count,
            total=self.terminal_index,
        )
        return True

    def advance(self) -> Optional[ModuleKind]:
        """
        Move to the next module and return it, or move to terminal and
        return None when the flow is finished.
        """
        if self.current_index + 1 < self.terminal_index:
            self.session.current_index = self.current_index + 1
            return self.current_module
        self.session.current_index = self.terminal_index
        logger.info("sequencer_finished", session_id=str(self.session.id))
        return None

    def retreat(self) -> Optional[ModuleKind]:
        """Step back one module; never below 0 and never un-completes."""
        if self.current_index > 0:
            self.session.current_index = min(self.current_index, self.terminal_index) - 1
        return self.current_module
