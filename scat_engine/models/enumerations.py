from enum import Enum


class ModuleKind(str, Enum):
    SYMPTOMS = "symptoms"
    ORIENTATION = "orientation"
    IMMEDIATE_MEMORY = "immediate_memory"
    CONCENTRATION = "concentration"
    COORDINATION = "coordination"      # Neurological screen
    BALANCE = "balance"                # mBESS stances
    DELAYED_RECALL = "delayed_recall"

    @property
    def display_name(self) -> str:
        return _MODULE_TITLES[self]


_MODULE_TITLES = {
    ModuleKind.SYMPTOMS: "Symptom Evaluation",
    ModuleKind.ORIENTATION: "Orientation",
    ModuleKind.IMMEDIATE_MEMORY: "Immediate Memory",
    ModuleKind.CONCENTRATION: "Concentration",
    ModuleKind.COORDINATION: "Coordination Exam",
    ModuleKind.BALANCE: "Balance Assessment",
    ModuleKind.DELAYED_RECALL: "Delayed Recall",
}


class SessionType(str, Enum):
    FULL = "full"                # Complete exam
    EMERGENCY = "emergency"      # Abbreviated sideline exam


class AssessmentReason(str, Enum):
    BASELINE = "baseline"
    POST_EXERCISE = "post_exercise"
    CONCUSSION = "concussion"


class ViewContext(str, Enum):
    DASHBOARD = "dashboard"
    TEST_SELECTION = "test_selection"
    TEST_INTERFACE = "test_interface"
    COMPLETION = "completion"


class OrchestratorState(str, Enum):
    NOT_STARTED = "not_started"
    MODULE_ACTIVE = "module_active"
    TRANSITIONING = "transitioning"
    FINISHED = "finished"
    EXITED = "exited"


class BalanceStance(str, Enum):
    DOUBLE_LEG_FIRM = "Double Leg (Firm)"
    SINGLE_LEG_FIRM = "Single Leg (Firm)"
    TANDEM_FIRM = "Tandem (Firm)"
    DOUBLE_LEG_FOAM = "Double Leg (Foam)"
    SINGLE_LEG_FOAM = "Single Leg (Foam)"
    TANDEM_FOAM = "Tandem (Foam)"


class Symptom(str, Enum):
    HEADACHE = "Headache"
    PRESSURE_IN_HEAD = "Pressure in head"
    NECK_PAIN = "Neck Pain"
    NAUSEA_OR_VOMITING = "Nausea or vomiting"
    DIZZINESS = "Dizziness"
    BLURRED_VISION = "Blurred vision"
    BALANCE_PROBLEMS = "Balance problems"
    LIGHT_SENSITIVITY = "Sensitivity to light"
    NOISE_SENSITIVITY = "Sensitivity to noise"
    FEELING_SLOWED_DOWN = "Feeling slowed down"
    FEELING_IN_A_FOG = "Feeling like in a fog"
    DONT_FEEL_RIGHT = "Don't feel right"
    DIFFICULTY_CONCENTRATING = "Difficulty concentrating"
    DIFFICULTY_REMEMBERING = "Difficulty remembering"
    FATIGUE = "Fatigue or low energy"
    CONFUSION = "Confusion"
    DROWSINESS = "Drowsiness"
    MORE_EMOTIONAL = "More emotional"
    IRRITABILITY = "Irritability"
    SADNESS = "Sadness"
    NERVOUS_OR_ANXIOUS = "Nervous or anxious"
    TROUBLE_FALLING_ASLEEP = "Trouble falling asleep"


class CommandType(str, Enum):
    # Session-global
    SHOW_HELP = "show_help"
    HIDE_HELP = "hide_help"
    REPEAT = "repeat"
    EXIT = "exit"

    # Shared module control
    NEXT = "next"
    GO_BACK = "go_back"
    MARK_CORRECT = "mark_correct"
    MARK_INCORRECT = "mark_incorrect"
    COMPLETE_MODULE = "complete_module"
    SKIP_MODULE = "skip_module"
    RESET = "reset"

    # Module-specific
    RATE = "rate"
    SET_SYMPTOM_RATING = "set_symptom_rating"
    SET_TOGGLE = "set_toggle"
    SET_PERCENT_NORMAL = "set_percent_normal"
    SUBMIT_ANSWER = "submit_answer"
    RECALL_WORDS = "recall_words"
    TOGGLE_WORD = "toggle_word"
    NEXT_TRIAL = "next_trial"
    START_TIMER = "start_timer"
    STOP_TIMER = "stop_timer"
    ADD_ERROR = "add_error"
    SELECT_MONTH = "select_month"
    SELECT_DAY = "select_day"

    @property
    def is_global(self) -> bool:
        return self in _GLOBAL_COMMANDS


_GLOBAL_COMMANDS = frozenset({
    CommandType.SHOW_HELP,
    CommandType.HIDE_HELP,
    CommandType.REPEAT,
    CommandType.EXIT,
})
