# tests/test_orchestrator.py

"""
Session Orchestrator Tests - display handshake, sequencing, exit
"""

import asyncio

import pytest

from scat_engine.commands.command import Command
from scat_engine.commands.router import CommandRouter
from scat_engine.core.exceptions import ModuleResultLockedError
from scat_engine.models.enumerations import CommandType, ModuleKind, OrchestratorState, ViewContext
from scat_engine.models.session import Session
from scat_engine.services.display import DisplayMode, NullDisplay
from scat_engine.services.orchestrator import SessionOrchestrator

T = CommandType
M = ModuleKind
S = OrchestratorState


def make_orchestrator(session, display, router, store, settings, **kwargs):
    return SessionOrchestrator(session, display=display, router=router, store=store, settings=settings, **kwargs)


# =============================================================================
# END-TO-END
# =============================================================================

class TestEndToEnd:

    @pytest.mark.asyncio
    async def test_three_module_session(self, three_module_session, display, router, store, engine_settings):
        finished = []
        orch = make_orchestrator(
            three_module_session, display, router, store, engine_settings, on_finished=finished.append
        )

        await orch.start()
        assert orch.state is S.MODULE_ACTIVE
        assert orch.current_module is M.ORIENTATION
        assert router.target is orch.controller
        assert router.context is ViewContext.TEST_INTERFACE

        for answer in [True, True, False, True, True]:
            await orch.handle_command(Command(T.MARK_CORRECT if answer else T.MARK_INCORRECT))
        assert orch.results[M.ORIENTATION].score == 4
        await orch.handle_command(Command(T.COMPLETE_MODULE))

        assert orch.current_module is M.CONCENTRATION
        assert orch.state is S.MODULE_ACTIVE
        await orch.handle_command(Command(T.SUBMIT_ANSWER, value="724"))
        await orch.handle_command(Command(T.SUBMIT_ANSWER, value="531"))
        concentration = orch.results[M.CONCENTRATION]
        assert concentration.digit_score == 1
        assert concentration.consecutive_fails == 1
        assert concentration.digit_span_stopped is False
        await orch.handle_command(Command(T.COMPLETE_MODULE))

        assert orch.current_module is M.BALANCE
        await orch.handle_command(Command(T.START_TIMER))
        for _ in range(3):
            await orch.handle_command(Command(T.ADD_ERROR))
        orch.controller.tick(20.0)
        assert orch.results[M.BALANCE].trial_scores[0] == 3
        await orch.handle_command(Command(T.COMPLETE_MODULE))

        assert orch.state is S.FINISHED
        assert orch.current_module is None
        assert router.target is None
        assert router.context is ViewContext.COMPLETION
        assert three_module_session.is_complete is True
        assert display.show_requests == 3
        assert display.hide_requests == 3

        summary = finished[0]
        assert summary.orientation == 4
        assert summary.concentration == 1
        assert summary.balance_errors == 3
        assert summary.cognitive_total == 5
        assert summary.cognitive_max == 8
        assert summary.completed_modules == ["orientation", "concentration", "balance"]

        assert len(store.results[three_module_session.id]) == 3
        assert store.sessions[three_module_session.id]["summary"]["orientation"] == 4

    @pytest.mark.asyncio
    async def test_empty_order_finishes_immediately(self, display, router, store, engine_settings):
        orch = make_orchestrator(Session(modules=[]), display, router, store, engine_settings)
        await orch.start()
        assert orch.state is S.FINISHED
        assert display.show_requests == 0

    @pytest.mark.asyncio
    async def test_delayed_recall_uses_immediate_memory_words(self, display, router, store, engine_settings):
        session = Session.create(modules=[M.IMMEDIATE_MEMORY, M.DELAYED_RECALL])
        orch = make_orchestrator(session, display, router, store, engine_settings)
        await orch.start()
        await orch.handle_command(Command(T.RECALL_WORDS, value="elbow apple"))
        await orch.handle_command(Command(T.COMPLETE_MODULE))

        recall = orch.results[M.DELAYED_RECALL]
        assert recall.word_list == orch.results[M.IMMEDIATE_MEMORY].canonical_words
        await orch.handle_command(Command(T.RECALL_WORDS, value="apple"))
        assert orch.summary().delayed_recall == 1


# =============================================================================
# COMPLETION
# =============================================================================

class TestCompletion:

    @pytest.mark.asyncio
    async def test_completed_result_is_locked(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        await orch.complete_current()
        with pytest.raises(ModuleResultLockedError):
            orch.results[M.ORIENTATION].record_answer(0, True)

    @pytest.mark.asyncio
    async def test_skip_path(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        await orch.handle_command(Command(T.SKIP_MODULE))
        assert orch.results[M.ORIENTATION].skipped is True
        assert orch.summary().skipped_modules == ["orientation"]
        assert orch.current_module is M.CONCENTRATION

    @pytest.mark.asyncio
    async def test_duplicate_completion_while_transitioning(self, three_module_session, make_display, router, store, engine_settings):
        display = make_display(confirm_hide=False)
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        assert await orch.complete_current() is True
        assert orch.state is S.TRANSITIONING
        assert await orch.complete_current() is False
        assert three_module_session.completed_modules == [M.ORIENTATION]
        assert three_module_session.current_index == 0

    @pytest.mark.asyncio
    async def test_stale_controller_completion_ignored(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        stale = orch.controller
        await orch.handle_command(Command(T.COMPLETE_MODULE))
        stale.dispatch(Command(T.COMPLETE_MODULE))
        await orch.handle_command(Command(T.NEXT))
        assert three_module_session.completed_modules == [M.ORIENTATION]
        assert orch.current_module is M.CONCENTRATION

    @pytest.mark.asyncio
    async def test_router_target_cleared_while_transitioning(self, three_module_session, make_display, router, store, engine_settings):
        display = make_display(confirm_hide=False)
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        await orch.complete_current()
        assert router.target is None
        assert await orch.handle_command(Command(T.MARK_CORRECT)) is False

    @pytest.mark.asyncio
    async def test_late_hide_confirmation_advances(self, three_module_session, make_display, router, store, engine_settings):
        display = make_display(confirm_hide=False)
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        await orch.complete_current()
        assert orch.current_module is M.ORIENTATION

        display.is_shown = False
        await orch.on_display_changed(False)
        assert orch.current_module is M.CONCENTRATION
        assert orch.state is S.MODULE_ACTIVE
        assert router.target is orch.controller


# =============================================================================
# COMMANDS ROUTED STRAIGHT TO THE ROUTER
# =============================================================================

class TestDirectRouting:

    @pytest.mark.asyncio
    async def test_completion_through_router_advances(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()

        assert router.route(Command(T.COMPLETE_MODULE)) is True
        assert orch.state is S.TRANSITIONING
        assert router.target is None

        await orch.wait_transitions()
        assert display.hide_requests == 1
        assert display.show_requests == 2
        assert orch.current_module is M.CONCENTRATION
        assert orch.state is S.MODULE_ACTIVE
        assert router.target is orch.controller

    @pytest.mark.asyncio
    async def test_exit_through_router(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()

        assert router.route(Command(T.EXIT)) is True
        await orch.wait_transitions()
        assert orch.state is S.EXITED
        assert display.hide_requests == 1
        assert router.context is ViewContext.DASHBOARD
        assert three_module_session.id in store.sessions

    @pytest.mark.asyncio
    async def test_whole_session_through_router(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        for _ in range(3):
            router.route(Command(T.SKIP_MODULE))
            await orch.wait_transitions()
        assert orch.state is S.FINISHED
        assert orch.summary().skipped_modules == ["orientation", "concentration", "balance"]

    def test_completion_outside_event_loop_runs_on_next_command(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        asyncio.run(orch.start())

        router.route(Command(T.COMPLETE_MODULE))
        assert orch.state is S.TRANSITIONING
        assert display.hide_requests == 0

        asyncio.run(orch.handle_command(Command(T.NEXT)))
        assert display.hide_requests == 1
        assert orch.current_module is M.CONCENTRATION


# =============================================================================
# DISPLAY HANDSHAKE
# =============================================================================

class TestDisplayHandshake:

    @pytest.mark.asyncio
    async def test_show_confirmed_later(self, three_module_session, make_display, router, store, engine_settings):
        display = make_display(confirm_show=False)
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        assert orch.state is S.NOT_STARTED
        assert router.target is None

        display.is_shown = True
        await orch.on_display_changed(True)
        assert orch.state is S.MODULE_ACTIVE
        assert router.target is orch.controller

    @pytest.mark.asyncio
    async def test_unrequested_hide_reshows_current_module(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        await orch.handle_command(Command(T.MARK_CORRECT))
        controller = orch.controller

        display.is_shown = False
        await orch.on_display_changed(False)

        assert display.show_requests == 2
        assert orch.current_module is M.ORIENTATION
        assert orch.state is S.MODULE_ACTIVE
        assert orch.controller is controller
        assert orch.results[M.ORIENTATION].answers[0] is True

    @pytest.mark.asyncio
    async def test_show_timeout_stays_on_current_module(self, three_module_session, make_display, router, store, engine_settings):
        display = make_display(hang_show=True)
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        assert display.show_requests == 2
        assert orch.state is S.MODULE_ACTIVE
        assert orch.current_module is M.ORIENTATION
        assert await orch.handle_command(Command(T.MARK_CORRECT)) is True

    @pytest.mark.asyncio
    async def test_show_failure_is_not_propagated(self, three_module_session, make_display, router, store, engine_settings):
        display = make_display(fail_show=True)
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        assert display.show_requests == 2
        assert orch.current_module is M.ORIENTATION
        assert orch.state is S.MODULE_ACTIVE


# =============================================================================
# EXIT / RESUME
# =============================================================================

class TestExit:

    @pytest.mark.asyncio
    async def test_exit_mid_transition_hides_once(self, three_module_session, make_display, router, store, engine_settings):
        display = make_display(confirm_hide=False)
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        await orch.complete_current()
        assert orch.state is S.TRANSITIONING
        hides_before = display.hide_requests

        await orch.exit()

        assert display.hide_requests == hides_before + 1
        assert three_module_session.current_index == 0
        assert orch.state is S.EXITED
        assert router.target is None
        assert router.context is ViewContext.DASHBOARD

        display.is_shown = False
        await orch.on_display_changed(False)
        assert display.show_requests == 1
        assert three_module_session.current_index == 0

    @pytest.mark.asyncio
    async def test_exit_command(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        assert await orch.handle_command(Command(T.EXIT)) is True
        assert orch.state is S.EXITED
        assert display.hide_requests == 1
        assert three_module_session.id in store.sessions

    @pytest.mark.asyncio
    async def test_exit_twice(self, three_module_session, display, router, store, engine_settings):
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        await orch.exit()
        await orch.exit()
        assert display.hide_requests == 1

    @pytest.mark.asyncio
    async def test_resume_at_first_incomplete(self, display, store, engine_settings):
        session = Session(
            modules=[M.ORIENTATION, M.CONCENTRATION, M.BALANCE],
            completed_modules=[M.ORIENTATION],
        )
        orch = make_orchestrator(session, display, CommandRouter(strict=True), store, engine_settings)
        await orch.start()
        assert orch.current_module is M.CONCENTRATION
        assert orch.state is S.MODULE_ACTIVE


# =============================================================================
# HEADLESS DISPLAY
# =============================================================================

class TestNullDisplay:

    @pytest.mark.asyncio
    async def test_requests_flip_is_shown(self):
        display = NullDisplay()
        await display.request_show()
        assert display.is_shown is True
        await display.request_hide()
        assert display.is_shown is False
        assert (display.show_requests, display.hide_requests) == (1, 1)

    @pytest.mark.asyncio
    async def test_drives_session_without_display_signals(self, three_module_session, router, store, engine_settings):
        display = NullDisplay()
        orch = make_orchestrator(three_module_session, display, router, store, engine_settings)
        await orch.start()
        assert isinstance(display, DisplayMode)
        for _ in range(3):
            await orch.handle_command(Command(T.COMPLETE_MODULE))
        assert orch.state is S.FINISHED
        assert display.show_requests == 3
        assert display.is_shown is False
