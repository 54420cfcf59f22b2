"""
Command Router
scat_engine/commands/router.py

Holds the one module controller currently allowed to receive commands and
forwards each routed command to it. Session-global commands (help, repeat,
exit) are handled here whatever the target.

Routing is best-effort: a missing target, an unknown command or a command
the current screen does not understand is logged and dropped, never raised.
"""

import time
import weakref
from typing import Callable, Iterator, Optional, Sequence

import structlog

from scat_engine.commands.command import Command
from scat_engine.config import get_settings
from scat_engine.controllers.base import ModuleController
from scat_engine.core.exceptions import InvariantViolation
from scat_engine.models.enumerations import CommandType, ViewContext

logger = structlog.get_logger(__name__)

CONTEXT_HELP = {
    ViewContext.DASHBOARD: ('"Help"',),
    ViewContext.TEST_SELECTION: ('"Next", "Previous"', '"Go back"', '"Help"'),
    ViewContext.COMPLETION: ('"Exit"', '"Help"'),
}

DEFAULT_TEST_HELP = (
    '"Start test"',
    '"Next", "Previous"',
    '"Rate 0-6"',
    '"Complete test"',
    '"Exit test"',
    '"Help"',
)


class HelpListing:
    """
    Lazy, restartable view of the commands valid in the router's current
    context. Each iteration reads the router afresh.
    """

    def __init__(self, router: "CommandRouter"):
        self._router = router

    def __iter__(self) -> Iterator[str]:
        router = self._router
        if router.context is ViewContext.TEST_INTERFACE:
            target = router.target
            lines: Sequence[str] = target.help_lines() if target is not None else DEFAULT_TEST_HELP
        else:
            lines = CONTEXT_HELP.get(router.context, ('"Help"',))
        for line in lines:
            yield line


class CommandRouter:
    """Single swappable command target plus session-global commands."""

    def __init__(
        self,
        context: ViewContext = ViewContext.DASHBOARD,
        announcer: Optional[Callable[[str], None]] = None,
        help_auto_hide_seconds: Optional[float] = None,
        strict: Optional[bool] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        settings = get_settings()
        self.context = context
        self.announcer = announcer
        self.help_auto_hide_seconds = (
            settings.HELP_AUTO_HIDE_SECONDS if help_auto_hide_seconds is None else help_auto_hide_seconds
        )
        # Invariant violations from a controller are re-raised when strict
        self.strict = settings.DEBUG if strict is None else strict
        self._clock = clock
        self._target_ref: Optional[weakref.ReferenceType] = None
        self._help_shown_at: Optional[float] = None
        self._exit_handler: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------ #
    # Target / context                                                     #
    # ------------------------------------------------------------------ #

    @property
    def target(self) -> Optional[ModuleController]:
        if self._target_ref is None:
            return None
        return self._target_ref()

    def set_target(self, controller: Optional[ModuleController]) -> None:
        """Replace (never stack) the active target; None means no module accepts commands."""
        previous = self.target
        self._target_ref = weakref.ref(controller) if controller is not None else None
        logger.debug(
            "command_target_changed",
            previous=getattr(getattr(previous, "kind", None), "value", None),
            current=getattr(getattr(controller, "kind", None), "value", None),
        )

    def set_context(self, context: ViewContext) -> None:
        if context is not self.context:
            logger.debug("command_context_changed", previous=self.context.value, current=context.value)
        self.context = context

    def set_exit_handler(self, handler: Optional[Callable[[], None]]) -> None:
        self._exit_handler = handler

    # ------------------------------------------------------------------ #
    # Help                                                                 #
    # ------------------------------------------------------------------ #

    @property
    def help_visible(self) -> bool:
        if self._help_shown_at is None:
            return False
        if self.help_auto_hide_seconds and self._clock() - self._help_shown_at >= self.help_auto_hide_seconds:
            self._help_shown_at = None
            return False
        return True

    def available_commands(self) -> HelpListing:
        return HelpListing(self)

    # ------------------------------------------------------------------ #
    # Routing                                                              #
    # ------------------------------------------------------------------ #

    def route(self, command: Command) -> bool:
        """
        Deliver one command. Returns True when something handled it.
        Never raises for unknown commands, a missing target, or a controller
        error; see ``strict`` for invariant violations.
        """
        if command.is_global:
            return self._route_global(command)

        target = self.target
        if target is None:
            logger.debug("command_dropped_no_target", command=command.type.value, context=self.context.value)
            return False

        try:
            handled = target.dispatch(command)
        except InvariantViolation:
            logger.error(
                "command_invariant_violation",
                command=command.type.value,
                module=target.kind.value,
                exc_info=True,
            )
            if self.strict:
                raise
            return False
        except Exception:
            logger.warning(
                "command_failed",
                command=command.type.value,
                module=target.kind.value,
                exc_info=True,
            )
            return False

        if not handled:
            logger.debug("command_ignored", command=command.type.value, module=target.kind.value)
        return handled

    def _route_global(self, command: Command) -> bool:
        if command.type is CommandType.SHOW_HELP:
            self._help_shown_at = None if self.help_visible else self._clock()
            return True
        if command.type is CommandType.HIDE_HELP:
            self._help_shown_at = None
            return True
        if command.type is CommandType.REPEAT:
            target = self.target
            if target is None or self.announcer is None:
                return False
            self.announcer(target.prompt())
            return True
        if command.type is CommandType.EXIT:
            if self._exit_handler is None:
                logger.debug("exit_dropped_no_handler")
                return False
            self._exit_handler()
            return True
        return False
