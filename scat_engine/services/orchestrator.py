"""
Session Orchestrator
scat_engine/services/orchestrator.py

Drives one assessment session through its module order:

    NOT_STARTED → MODULE_ACTIVE(i) → TRANSITIONING → MODULE_ACTIVE(i+1) → … → FINISHED

Activating a module is a handshake with the display collaborator: the
router target is set only once the display confirms it is shown, and it is
cleared as soon as the module completes. The next module is presented only
after the display confirms it is hidden.

Everything runs on one event loop. Display requests are the only awaits;
state is re-checked after each one because exit() may have run meanwhile.
A completion or exit command that reaches the router directly, rather than
through handle_command(), schedules its transition as a task on the loop.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Set

import structlog

from scat_engine.commands.command import Command
from scat_engine.commands.router import CommandRouter
from scat_engine.config import Settings, get_settings
from scat_engine.controllers import BaseModuleController, build_controller
from scat_engine.core.exceptions import DisplayTransitionError
from scat_engine.models.enumerations import ModuleKind, OrchestratorState, ViewContext
from scat_engine.models.results import create_result
from scat_engine.models.session import Session
from scat_engine.scoring.summary import SessionScoreCalculator, SessionScoreSummary
from scat_engine.sequencing.sequencer import ModuleSequencer
from scat_engine.services.display import DisplayMode
from scat_engine.services.result_store import ResultStore

logger = structlog.get_logger(__name__)

_SHOW = "show"
_HIDE = "hide"


class SessionOrchestrator:
    """Owns the sequencer, the module results and the active controller of one session."""

    def __init__(
        self,
        session: Session,
        display: DisplayMode,
        router: CommandRouter,
        store: Optional[ResultStore] = None,
        settings: Optional[Settings] = None,
        on_finished: Optional[Callable[[SessionScoreSummary], None]] = None,
        results: Optional[Mapping[ModuleKind, Any]] = None,
    ):
        self.session = session
        self.display = display
        self.router = router
        self.store = store
        self.settings = settings or get_settings()
        self.on_finished = on_finished
        self.sequencer = ModuleSequencer(session)
        self.calculator = SessionScoreCalculator()

        self._results: Dict[ModuleKind, Any] = dict(results or {})
        # Strong reference; the router only keeps a weak one
        self._controller: Optional[BaseModuleController] = None
        self._state = OrchestratorState.NOT_STARTED
        self._awaiting: Optional[str] = None
        self._last_completed_count = self.sequencer.completed_count
        self._pending_hide = False
        self._exit_requested = False
        self._routing = False
        self._tasks: Set[asyncio.Task] = set()

        self.router.set_exit_handler(self._request_exit)

    # ------------------------------------------------------------------ #
    # Read-only state                                                      #
    # ------------------------------------------------------------------ #

    @property
    def state(self) -> OrchestratorState:
        return self._state

    @property
    def current_module(self) -> Optional[ModuleKind]:
        return self.sequencer.current_module

    @property
    def controller(self) -> Optional[BaseModuleController]:
        return self._controller

    @property
    def results(self) -> Dict[ModuleKind, Any]:
        return dict(self._results)

    def summary(self) -> SessionScoreSummary:
        return self.calculator.calculate(self._results)

    async def wait_transitions(self) -> None:
        """Wait for transitions started by commands routed straight to the router."""
        while any(not task.done() for task in self._tasks):
            await asyncio.gather(*self._tasks, return_exceptions=True)

    # ------------------------------------------------------------------ #
    # Events                                                               #
    # ------------------------------------------------------------------ #

    async def start(self) -> None:
        """Present the first module, or the first incomplete one when resuming."""
        if self._state is not OrchestratorState.NOT_STARTED or self._awaiting is not None:
            logger.warning("start_ignored", state=self._state.value)
            return

        if self.session.completed_modules:
            module = self.sequencer.resume()
        else:
            module = self.sequencer.start()
        self._last_completed_count = self.sequencer.completed_count
        self.router.set_context(ViewContext.TEST_INTERFACE)

        logger.info(
            "session_started",
            session_id=str(self.session.id),
            session_type=self.session.session_type.value,
            first_module=module.value if module else None,
        )
        if module is None:
            await self._finish()
            return
        await self._present_current()

    async def handle_command(self, command: Command) -> bool:
        """Route one command, then run any transition it triggered."""
        self._routing = True
        try:
            handled = self.router.route(command)
        finally:
            self._routing = False
        if self._exit_requested:
            self._exit_requested = False
            await self.exit()
        elif self._pending_hide:
            self._pending_hide = False
            await self._hide_and_advance()
        return handled

    async def complete_current(self, skipped: bool = False) -> bool:
        """
        Complete the active module and move on. Returns False when nothing
        changed (no active module, or a duplicate completion).
        """
        if self._state is not OrchestratorState.MODULE_ACTIVE:
            logger.debug("completion_ignored", state=self._state.value)
            return False
        if not self._mark_current_complete(skipped):
            return False
        await self._hide_and_advance()
        return True

    async def on_display_changed(self, is_shown: bool) -> None:
        """Display collaborator's ``is_shown`` transition."""
        if self._state in (OrchestratorState.FINISHED, OrchestratorState.EXITED):
            return

        if is_shown:
            if self._awaiting == _SHOW:
                self._enter_active()
            return

        if self._awaiting == _HIDE:
            await self._advance()
            return

        if self._state is OrchestratorState.MODULE_ACTIVE and self._awaiting is None:
            # Dismissed from outside: bring the same module back
            logger.warning("unrequested_hide", module=self._module_value())
            self.router.set_target(None)
            await self._present_current()

    async def exit(self) -> None:
        """
        Leave the flow from any state. Issues one best-effort hide and keeps
        the current index, so no module is skipped.
        """
        if self._state is OrchestratorState.EXITED:
            return

        previous = self._state
        self.router.set_target(None)
        self._controller = None
        self._awaiting = None
        self._pending_hide = False
        self._state = OrchestratorState.EXITED

        try:
            await self._request_display(_HIDE, attempts=1)
        except DisplayTransitionError as exc:
            logger.warning("exit_hide_failed", reason=exc.reason)

        self.router.set_context(ViewContext.DASHBOARD)
        summary = self.summary()
        self._persist_session(summary)
        logger.info(
            "session_exited",
            session_id=str(self.session.id),
            previous_state=previous.value,
            index=self.sequencer.current_index,
        )

    # ------------------------------------------------------------------ #
    # Transitions                                                          #
    # ------------------------------------------------------------------ #

    async def _present_current(self) -> None:
        module = self.sequencer.current_module
        result = self._results.get(module)
        if result is None:
            result = create_result(
                module,
                settings=self.settings,
                immediate_memory=self._results.get(ModuleKind.IMMEDIATE_MEMORY),
            )
            self._results[module] = result
        if self._controller is None or self._controller.kind is not module:
            self._controller = build_controller(result, self._completion_callback(module))

        self._awaiting = _SHOW
        try:
            await self._request_display(_SHOW)
        except DisplayTransitionError as exc:
            if self._awaiting != _SHOW:
                return
            # Stay on this module so the examiner can carry on
            logger.error("display_show_failed", module=module.value, reason=exc.reason)
            self._enter_active()
            return

        if self._awaiting == _SHOW and self.display.is_shown:
            self._enter_active()

    def _enter_active(self) -> None:
        self._awaiting = None
        self._state = OrchestratorState.MODULE_ACTIVE
        self.router.set_target(self._controller)
        logger.info("module_active", module=self._module_value(), index=self.sequencer.current_index)

    async def _hide_and_advance(self) -> None:
        self._awaiting = _HIDE
        try:
            await self._request_display(_HIDE)
        except DisplayTransitionError as exc:
            logger.error("display_hide_failed", module=self._module_value(), reason=exc.reason)

        if self._awaiting != _HIDE:
            return
        if self.display.is_shown:
            logger.debug("awaiting_hide_confirmation", module=self._module_value())
            return
        await self._advance()

    async def _advance(self) -> None:
        self._awaiting = None
        if self.sequencer.advance() is None:
            await self._finish()
            return
        await self._present_current()

    async def _finish(self) -> None:
        self._controller = None
        self._awaiting = None
        self._state = OrchestratorState.FINISHED
        self.router.set_target(None)
        self.router.set_context(ViewContext.COMPLETION)

        summary = self.summary()
        self._persist_session(summary)
        logger.info(
            "session_finished",
            session_id=str(self.session.id),
            completed=self.sequencer.completed_count,
            cognitive_total=summary.cognitive_total,
        )
        if self.on_finished is not None:
            self.on_finished(summary)

    # ------------------------------------------------------------------ #
    # Completion                                                           #
    # ------------------------------------------------------------------ #

    def _completion_callback(self, module: ModuleKind) -> Callable[[bool], None]:
        def on_complete(skipped: bool) -> None:
            if module is not self.sequencer.current_module or self._state is not OrchestratorState.MODULE_ACTIVE:
                logger.debug("completion_ignored", module=module.value, state=self._state.value)
                return
            if not self._mark_current_complete(skipped):
                return
            if self._routing:
                self._pending_hide = True
            else:
                self._schedule("hide_and_advance", self._hide_and_advance)

        return on_complete

    def _mark_current_complete(self, skipped: bool) -> bool:
        module = self.sequencer.current_module
        changed = self.sequencer.complete_current()
        count = self.sequencer.completed_count
        if not changed or count <= self._last_completed_count:
            logger.debug("stale_completion_ignored", module=module.value, completed=count)
            return False
        self._last_completed_count = count

        result = self._results[module]
        result.mark_complete(skipped=skipped)
        if self.store is not None:
            self.store.save_result(self.session.id, result)

        self.router.set_target(None)
        self._state = OrchestratorState.TRANSITIONING
        logger.info("module_completed", module=module.value, skipped=skipped, completed=count)
        return True

    def _request_exit(self) -> None:
        if self._routing:
            self._exit_requested = True
        else:
            self._schedule("exit", self.exit)

    def _schedule(self, name: str, transition: Callable[[], Awaitable[None]]) -> None:
        """Run a transition triggered by a command routed outside handle_command()."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            # No loop to run on: the next handle_command() picks it up
            logger.warning("transition_deferred", transition=name)
            if name == "exit":
                self._exit_requested = True
            else:
                self._pending_hide = True
            return
        task = loop.create_task(transition())
        self._tasks.add(task)
        task.add_done_callback(self._on_transition_done)

    def _on_transition_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("transition_failed", error=str(exc), exc_info=exc)

    # ------------------------------------------------------------------ #
    # Collaborators                                                        #
    # ------------------------------------------------------------------ #

    async def _request_display(self, action: str, attempts: Optional[int] = None) -> None:
        """Bounded show/hide with retries; raises DisplayTransitionError when all fail."""
        request = self.display.request_show if action == _SHOW else self.display.request_hide
        timeout = self.settings.DISPLAY_TIMEOUT_SECONDS
        if attempts is None:
            attempts = 1 + self.settings.DISPLAY_RETRY_ATTEMPTS

        reason = "no attempt made"
        for attempt in range(1, attempts + 1):
            try:
                await asyncio.wait_for(request(), timeout=timeout)
                return
            except asyncio.TimeoutError:
                reason = f"timed out after {timeout}s"
            except Exception as exc:
                reason = str(exc) or type(exc).__name__
            logger.warning("display_request_failed", action=action, attempt=attempt, reason=reason)
        raise DisplayTransitionError(action, reason)

    def _persist_session(self, summary: SessionScoreSummary) -> None:
        if self.store is not None:
            self.store.save_session(self.session, summary.to_dict())

    def _module_value(self) -> Optional[str]:
        module = self.sequencer.current_module
        return module.value if module else None
