# tests/test_controllers.py

"""
Module Controller Tests - command → result mutator translation
"""

from datetime import datetime

import pytest

from scat_engine.commands.command import Command
from scat_engine.controllers import (
    BalanceController,
    ConcentrationController,
    CoordinationController,
    DelayedRecallController,
    ImmediateMemoryController,
    ModuleController,
    OrientationController,
    SymptomController,
    build_controller,
)
from scat_engine.models.enumerations import CommandType, ModuleKind, Symptom
from scat_engine.models.results import (
    BalanceResult,
    ConcentrationResult,
    CoordinationResult,
    DelayedRecallResult,
    ImmediateMemoryResult,
    OrientationResult,
    SymptomResult,
    create_result,
)

T = CommandType
WORDS = ["Elbow", "Apple", "Carpet", "Saddle", "Bubble"]


class CompletionSpy:
    def __init__(self):
        self.calls = []

    def __call__(self, skipped):
        self.calls.append(skipped)


@pytest.fixture
def spy():
    return CompletionSpy()


class TestCompletionCommands:

    @pytest.mark.parametrize("kind", list(ModuleKind))
    def test_every_controller_completes_and_skips(self, kind, spy):
        controller = build_controller(create_result(kind), spy)
        assert isinstance(controller, ModuleController)
        assert controller.kind is kind
        assert controller.dispatch(Command(T.COMPLETE_MODULE)) is True
        assert controller.dispatch(Command(T.SKIP_MODULE)) is True
        assert spy.calls == [False, True]

    @pytest.mark.parametrize("kind", list(ModuleKind))
    def test_every_controller_has_prompt_and_help(self, kind, spy):
        controller = build_controller(create_result(kind), spy)
        assert controller.prompt()
        assert '"Skip test"' in controller.help_lines()


class TestSymptomController:

    def test_rate_moves_to_next_symptom(self, spy):
        controller = SymptomController(SymptomResult(), spy)
        controller.dispatch(Command(T.RATE, value=3))
        controller.dispatch(Command(T.RATE, value=2))
        assert controller.result.ratings[Symptom.HEADACHE] == 3
        assert controller.result.ratings[Symptom.PRESSURE_IN_HEAD] == 2
        assert controller.current_symptom is Symptom.NECK_PAIN

    def test_go_back_and_rerate(self, spy):
        controller = SymptomController(SymptomResult(), spy)
        controller.dispatch(Command(T.RATE, value=3))
        controller.dispatch(Command(T.GO_BACK))
        controller.dispatch(Command(T.RATE, value=1))
        assert controller.result.ratings[Symptom.HEADACHE] == 1

    def test_go_back_at_first_stays(self, spy):
        controller = SymptomController(SymptomResult(), spy)
        controller.dispatch(Command(T.GO_BACK))
        assert controller.question_index == 0

    def test_named_rating_toggle_and_percent(self, spy):
        controller = SymptomController(SymptomResult(), spy)
        controller.dispatch(Command(T.SET_SYMPTOM_RATING, value=5, target="Dizziness"))
        controller.dispatch(Command(T.SET_TOGGLE, value=True, target="physical"))
        controller.dispatch(Command(T.SET_PERCENT_NORMAL, value=70))
        result = controller.result
        assert result.ratings[Symptom.DIZZINESS] == 5
        assert result.worsens_with_physical is True
        assert result.percent_of_normal == 70
        assert controller.question_index == 0

    def test_mark_correct_not_applicable(self, spy):
        controller = SymptomController(SymptomResult(), spy)
        assert controller.dispatch(Command(T.MARK_CORRECT)) is False


class TestOrientationController:

    def test_answers_advance(self, spy):
        controller = OrientationController(OrientationResult(), spy)
        for cmd in (T.MARK_CORRECT, T.MARK_CORRECT, T.MARK_INCORRECT, T.MARK_CORRECT, T.MARK_CORRECT):
            controller.dispatch(Command(cmd))
        assert controller.result.score == 4
        assert controller.question_index == 4

    def test_select_month_checked_against_clock(self, spy):
        clock = lambda: datetime(2024, 3, 14, 10, 0)  # Thursday
        controller = OrientationController(OrientationResult(), spy, clock=clock)
        controller.dispatch(Command(T.SELECT_MONTH, value="March"))
        controller.dispatch(Command(T.SELECT_DAY, value="Monday"))
        assert controller.result.answers[0] is True
        assert controller.result.answers[2] is False

    def test_navigation(self, spy):
        controller = OrientationController(OrientationResult(), spy)
        controller.dispatch(Command(T.NEXT))
        controller.dispatch(Command(T.NEXT))
        controller.dispatch(Command(T.GO_BACK))
        assert controller.prompt() == "What is the date today?"


class TestConcentrationController:

    def test_relayed_answers(self, spy):
        controller = ConcentrationController(ConcentrationResult(digit_sequences=[[4, 2, 7], [8, 1, 5, 3]]), spy)
        controller.dispatch(Command(T.SUBMIT_ANSWER, value="724"))
        controller.dispatch(Command(T.SUBMIT_ANSWER, value="531"))
        assert controller.result.digit_score == 1
        assert controller.result.consecutive_fails == 1

    def test_examiner_judgement_then_months(self, spy):
        controller = ConcentrationController(ConcentrationResult(digit_sequences=[[4, 2, 7]]), spy)
        assert controller.prompt() == "Digits backwards: 4-2-7"
        controller.dispatch(Command(T.MARK_CORRECT))
        assert controller.result.digit_score == 1
        assert controller.in_digit_span is False
        controller.dispatch(Command(T.MARK_CORRECT))
        assert controller.result.months_correct is True
        assert controller.result.total_score == 2

    def test_answer_after_stop_ignored(self, spy):
        controller = ConcentrationController(
            ConcentrationResult(digit_sequences=[[1, 2], [3, 4], [5, 6]]), spy
        )
        controller.dispatch(Command(T.MARK_INCORRECT))
        controller.dispatch(Command(T.MARK_INCORRECT))
        controller.dispatch(Command(T.SUBMIT_ANSWER, value="65"))
        assert controller.result.digit_responses == ["", ""]
        assert controller.prompt() == "Months of the year in reverse order"


class TestMemoryControllers:

    def test_immediate_memory_trials(self, spy):
        controller = ImmediateMemoryController(ImmediateMemoryResult.create(WORDS), spy)
        controller.dispatch(Command(T.RECALL_WORDS, value="apple elbow"))
        controller.dispatch(Command(T.NEXT_TRIAL))
        controller.dispatch(Command(T.RECALL_WORDS, value="apple elbow carpet"))
        controller.dispatch(Command(T.TOGGLE_WORD, value="saddle"))
        assert controller.result.trial_scores == [2, 4, 0]

    def test_immediate_memory_ignores_mark_correct(self, spy):
        controller = ImmediateMemoryController(ImmediateMemoryResult.create(WORDS), spy)
        assert controller.dispatch(Command(T.MARK_CORRECT)) is False

    def test_delayed_recall(self, spy):
        controller = DelayedRecallController(DelayedRecallResult(word_list=tuple(WORDS)), spy)
        controller.dispatch(Command(T.RECALL_WORDS, value="bubble saddle"))
        controller.dispatch(Command(T.TOGGLE_WORD, value="bubble"))
        assert controller.result.score == 1


class TestBalanceController:

    def test_three_errors_in_window(self, spy):
        controller = BalanceController(BalanceResult(), spy)
        controller.dispatch(Command(T.START_TIMER))
        for _ in range(3):
            controller.dispatch(Command(T.ADD_ERROR))
        controller.tick(19.0)
        assert controller.result.trial_scores[0] == 3

    def test_window_expiry_moves_on(self, spy):
        controller = BalanceController(BalanceResult(), spy)
        controller.dispatch(Command(T.START_TIMER))
        controller.tick(20.0)
        assert controller.stance_index == 1
        assert controller.timer_running is False
        assert controller.seconds_remaining == 20.0

    def test_errors_after_expiry_ignored(self, spy):
        controller = BalanceController(BalanceResult(), spy)
        controller.stance_index = 5
        controller.dispatch(Command(T.START_TIMER))
        controller.tick(25.0)
        controller.dispatch(Command(T.ADD_ERROR))
        assert controller.result.trials[5].error_count == 0
        assert controller.stance_index == 5

    def test_reset_and_navigation(self, spy):
        controller = BalanceController(BalanceResult(), spy)
        controller.dispatch(Command(T.ADD_ERROR))
        controller.dispatch(Command(T.RESET))
        assert controller.result.total_errors == 0
        controller.dispatch(Command(T.NEXT))
        controller.dispatch(Command(T.GO_BACK))
        controller.dispatch(Command(T.GO_BACK))
        assert controller.stance_index == 0


class TestCoordinationController:

    def test_findings(self, spy):
        controller = CoordinationController(CoordinationResult(), spy)
        controller.dispatch(Command(T.MARK_CORRECT))
        controller.dispatch(Command(T.MARK_INCORRECT))
        assert controller.result.finger_to_nose_normal is True
        assert controller.result.tandem_gait_normal is False
        assert controller.result.abnormal_count == 1
