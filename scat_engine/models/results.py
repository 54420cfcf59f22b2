"""
Module Results - SCAT5 Assessment Engine
scat_engine/models/results.py

One record per module kind, combined as a discriminated union on ``kind``.
Raw response fields are stored; every score is computed on read from those
raw fields, so no derived value can drift from its inputs. Once a module is
marked complete its result is locked and any further mutation raises
ModuleResultLockedError. Trial records are frozen and replaced whole through
the parent, so the lock covers them too.
"""

from typing import Annotated, Dict, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, computed_field, model_validator

from scat_engine.config import Settings, get_settings
from scat_engine.core.exceptions import (
    DigitSpanFinishedError,
    ModuleIndexError,
    ModuleResultLockedError,
)
from scat_engine.models.enumerations import BalanceStance, ModuleKind, Symptom
from scat_engine.scoring import rules


ORIENTATION_QUESTIONS: Tuple[str, ...] = (
    "What month is it?",
    "What is the date today?",
    "What is the day of the week?",
    "What year is it?",
    "What time is it right now? (within 1 hour)",
)

COORDINATION_ITEMS: Tuple[str, ...] = ("finger_to_nose", "tandem_gait")


class _LockableResult(BaseModel):
    """Completion lock shared by every result record."""

    model_config = ConfigDict(validate_assignment=True)

    completed: bool = Field(default=False, description="Locked once the module is complete")
    skipped: bool = Field(default=False, description="Completed through the skip path")

    def __setattr__(self, name, value):
        if self.completed:
            raise ModuleResultLockedError(self.kind.value, f"set {name}")
        super().__setattr__(name, value)

    def _ensure_mutable(self, operation: str) -> None:
        if self.completed:
            raise ModuleResultLockedError(self.kind.value, operation)

    def _replace_trial(self, index: int, **update):
        """Swap in an updated copy of one frozen trial record."""
        trials = list(self.trials)
        trials[index] = trials[index].model_copy(update=update)
        self.trials = tuple(trials)
        return trials[index]

    def mark_complete(self, skipped: bool = False) -> None:
        """Lock the record. Locking twice is a programming error."""
        self._ensure_mutable("mark complete")
        self.skipped = skipped
        self.completed = True


# =============================================================================
# SYMPTOMS
# =============================================================================

class SymptomResult(_LockableResult):
    kind: Literal[ModuleKind.SYMPTOMS] = ModuleKind.SYMPTOMS
    ratings: Dict[Symptom, int] = Field(default_factory=lambda: {s: 0 for s in Symptom})
    worsens_with_physical: bool = False
    worsens_with_mental: bool = False
    percent_of_normal: int = Field(default=100, ge=0, le=100)

    def set_rating(self, symptom: Symptom, rating: int) -> int:
        """Store a 0-6 rating; out-of-range values are clamped."""
        self._ensure_mutable("set symptom rating")
        clamped = max(0, min(rules.SYMPTOM_RATING_MAX, int(rating)))
        ratings = dict(self.ratings)
        ratings[symptom] = clamped
        self.ratings = ratings
        return clamped

    def set_toggle(self, question: str, value: bool) -> None:
        if question == "physical":
            self.worsens_with_physical = value
        elif question == "mental":
            self.worsens_with_mental = value
        else:
            raise ValueError(f"Unknown symptom toggle '{question}'")

    def set_percent_of_normal(self, value: int) -> int:
        clamped = max(0, min(100, int(value)))
        self.percent_of_normal = clamped
        return clamped

    @computed_field
    @property
    def total_severity(self) -> int:
        return rules.score_symptoms(self.ratings.values())[0]

    @computed_field
    @property
    def symptom_count(self) -> int:
        return rules.score_symptoms(self.ratings.values())[1]


# =============================================================================
# ORIENTATION
# =============================================================================

class OrientationResult(_LockableResult):
    kind: Literal[ModuleKind.ORIENTATION] = ModuleKind.ORIENTATION
    answers: List[Optional[bool]] = Field(
        default_factory=lambda: [None] * len(ORIENTATION_QUESTIONS),
        min_length=len(ORIENTATION_QUESTIONS),
        max_length=len(ORIENTATION_QUESTIONS),
    )

    def record_answer(self, index: int, correct: bool) -> None:
        self._ensure_mutable("record orientation answer")
        if not 0 <= index < len(self.answers):
            raise ModuleIndexError("orientation question", index, len(self.answers))
        answers = list(self.answers)
        answers[index] = correct
        self.answers = answers

    @computed_field
    @property
    def score(self) -> int:
        return rules.score_orientation(self.answers)


# =============================================================================
# CONCENTRATION
# =============================================================================

class ConcentrationResult(_LockableResult):
    kind: Literal[ModuleKind.CONCENTRATION] = ModuleKind.CONCENTRATION
    digit_sequences: List[List[int]]
    digit_responses: List[str] = Field(default_factory=list)
    months_correct: bool = False
    max_consecutive_fails: int = Field(default=rules.DIGIT_SPAN_MAX_CONSECUTIVE_FAILS, ge=1)

    @model_validator(mode="after")
    def validate_responses(self):
        """Stored responses must be exactly the attempted prefix."""
        outcome = self._outcome()
        if outcome.attempted != len(self.digit_responses):
            raise ValueError(
                f"{len(self.digit_responses)} digit responses stored but only "
                f"{outcome.attempted} sequences were presented"
            )
        return self

    def _outcome(self) -> rules.DigitSpanOutcome:
        return rules.score_digit_span(
            self.digit_sequences, self.digit_responses, self.max_consecutive_fails
        )

    @property
    def digit_span_finished(self) -> bool:
        return self._outcome().stopped or len(self.digit_responses) >= len(self.digit_sequences)

    @property
    def current_sequence(self) -> Optional[List[int]]:
        """Sequence awaiting a response, or None once presentation ended."""
        if self.digit_span_finished:
            return None
        return self.digit_sequences[len(self.digit_responses)]

    def record_digit_response(self, response: Optional[str]) -> bool:
        """
        Normalize and store the answer for the current sequence.

        Returns True on an exact reverse match. Malformed input degrades to a
        miss rather than an error.
        """
        self._ensure_mutable("record digit response")
        sequence = self.current_sequence
        if sequence is None:
            raise DigitSpanFinishedError()
        normalized = rules.normalize_digits(response)
        self.digit_responses = self.digit_responses + [normalized]
        return bool(rules.score_digit_response(sequence, normalized))

    def set_months_correct(self, correct: bool) -> None:
        self.months_correct = correct

    @computed_field
    @property
    def digit_score(self) -> int:
        return self._outcome().score

    @computed_field
    @property
    def consecutive_fails(self) -> int:
        return self._outcome().consecutive_fails

    @computed_field
    @property
    def digit_span_stopped(self) -> bool:
        return self._outcome().stopped

    @computed_field
    @property
    def months_score(self) -> int:
        return rules.score_months_reverse(self.months_correct)

    @computed_field
    @property
    def total_score(self) -> int:
        return self.digit_score + self.months_score


# =============================================================================
# MEMORY
# =============================================================================

def _merge_transcript(words: Sequence[str], recalled: List[str], transcript: str) -> List[str]:
    """Add every list word spoken in ``transcript``, spelled as in the list."""
    by_norm = {rules.normalize_word(w): w for w in words}
    merged = list(recalled)
    seen = rules.normalized_word_set(merged)
    for token in str(transcript or "").split():
        norm = rules.normalize_word(token)
        if norm in by_norm and norm not in seen:
            merged.append(by_norm[norm])
            seen.add(norm)
    return merged


def _toggle_word(words: Sequence[str], recalled: List[str], word: str) -> Tuple[List[str], bool]:
    """Toggle one list word; words outside the list are ignored."""
    norm = rules.normalize_word(word)
    by_norm = {rules.normalize_word(w): w for w in words}
    if norm not in by_norm:
        return list(recalled), False
    if norm in rules.normalized_word_set(recalled):
        return [w for w in recalled if rules.normalize_word(w) != norm], True
    return list(recalled) + [by_norm[norm]], True


class MemoryTrial(BaseModel):
    model_config = ConfigDict(frozen=True)

    trial_number: int = Field(..., ge=1)
    words: Tuple[str, ...]
    recalled_words: Tuple[str, ...] = ()

    @computed_field
    @property
    def score(self) -> int:
        return rules.score_memory_trial(self.words, self.recalled_words)


class ImmediateMemoryResult(_LockableResult):
    kind: Literal[ModuleKind.IMMEDIATE_MEMORY] = ModuleKind.IMMEDIATE_MEMORY
    trials: Tuple[MemoryTrial, ...] = Field(..., min_length=1)

    @classmethod
    def create(cls, words: Sequence[str], trial_count: int = 3) -> "ImmediateMemoryResult":
        word_list = tuple(words)
        return cls(trials=[MemoryTrial(trial_number=n, words=word_list) for n in range(1, trial_count + 1)])

    @property
    def canonical_words(self) -> Tuple[str, ...]:
        """Word list of the first trial; delayed recall scores against it."""
        return self.trials[0].words

    def _trial(self, index: int) -> MemoryTrial:
        if not 0 <= index < len(self.trials):
            raise ModuleIndexError("memory trial", index, len(self.trials))
        return self.trials[index]

    def record_recall(self, trial_index: int, transcript: str) -> int:
        """Merge list words heard in ``transcript`` into the trial; returns its score."""
        self._ensure_mutable("record recall")
        trial = self._trial(trial_index)
        recalled = _merge_transcript(trial.words, list(trial.recalled_words), transcript)
        return self._replace_trial(trial_index, recalled_words=tuple(recalled)).score

    def toggle_recalled_word(self, trial_index: int, word: str) -> bool:
        self._ensure_mutable("toggle recalled word")
        trial = self._trial(trial_index)
        recalled, changed = _toggle_word(trial.words, list(trial.recalled_words), word)
        if changed:
            self._replace_trial(trial_index, recalled_words=tuple(recalled))
        return changed

    @computed_field
    @property
    def trial_scores(self) -> List[int]:
        return [t.score for t in self.trials]

    @computed_field
    @property
    def total_score(self) -> int:
        return sum(self.trial_scores)

    @property
    def max_score(self) -> int:
        return sum(len(t.words) for t in self.trials)


class DelayedRecallResult(_LockableResult):
    kind: Literal[ModuleKind.DELAYED_RECALL] = ModuleKind.DELAYED_RECALL
    word_list: Tuple[str, ...]
    recalled_words: List[str] = Field(default_factory=list)

    @classmethod
    def from_immediate_memory(cls, immediate: ImmediateMemoryResult) -> "DelayedRecallResult":
        return cls(word_list=tuple(immediate.canonical_words))

    def record_recall(self, transcript: str) -> int:
        self._ensure_mutable("record recall")
        self.recalled_words = _merge_transcript(self.word_list, self.recalled_words, transcript)
        return self.score

    def toggle_recalled_word(self, word: str) -> bool:
        self._ensure_mutable("toggle recalled word")
        recalled, changed = _toggle_word(self.word_list, self.recalled_words, word)
        self.recalled_words = recalled
        return changed

    @computed_field
    @property
    def score(self) -> int:
        return rules.score_delayed_recall(self.word_list, self.recalled_words)


# =============================================================================
# BALANCE
# =============================================================================

class BalanceTrial(BaseModel):
    model_config = ConfigDict(frozen=True)

    stance: BalanceStance
    error_count: int = Field(default=0, ge=0)


class BalanceResult(_LockableResult):
    kind: Literal[ModuleKind.BALANCE] = ModuleKind.BALANCE
    trials: Tuple[BalanceTrial, ...] = Field(
        default_factory=lambda: tuple(BalanceTrial(stance=s) for s in BalanceStance)
    )
    trial_seconds: int = Field(default=20, ge=1)
    max_errors_per_trial: int = Field(default=rules.BALANCE_ERROR_CAP, ge=1)

    def _trial(self, index: int) -> BalanceTrial:
        if not 0 <= index < len(self.trials):
            raise ModuleIndexError("balance stance", index, len(self.trials))
        return self.trials[index]

    def record_balance_error(self, stance_index: int) -> int:
        """Count one error for a stance; stays at the cap once reached."""
        self._ensure_mutable("record balance error")
        trial = self._trial(stance_index)
        if trial.error_count < self.max_errors_per_trial:
            trial = self._replace_trial(stance_index, error_count=trial.error_count + 1)
        return trial.error_count

    def reset_trial(self, stance_index: int) -> None:
        self._ensure_mutable("reset balance trial")
        self._trial(stance_index)
        self._replace_trial(stance_index, error_count=0)

    @computed_field
    @property
    def trial_scores(self) -> List[int]:
        return [rules.score_balance_trial(t.error_count, self.max_errors_per_trial) for t in self.trials]

    @computed_field
    @property
    def total_errors(self) -> int:
        return rules.score_balance((t.error_count for t in self.trials), self.max_errors_per_trial)


# =============================================================================
# COORDINATION (neurological screen)
# =============================================================================

class CoordinationResult(_LockableResult):
    kind: Literal[ModuleKind.COORDINATION] = ModuleKind.COORDINATION
    finger_to_nose_normal: bool = True
    tandem_gait_normal: bool = True
    tandem_gait_seconds: Optional[float] = Field(default=None, ge=0)

    def set_finding(self, item: str, normal: bool) -> None:
        if item not in COORDINATION_ITEMS:
            raise ValueError(f"Unknown coordination item '{item}'")
        setattr(self, f"{item}_normal", normal)

    @computed_field
    @property
    def abnormal_count(self) -> int:
        return rules.score_coordination([self.finger_to_nose_normal, self.tandem_gait_normal])


ModuleResult = Annotated[
    Union[
        SymptomResult,
        OrientationResult,
        ConcentrationResult,
        ImmediateMemoryResult,
        DelayedRecallResult,
        BalanceResult,
        CoordinationResult,
    ],
    Field(discriminator="kind"),
]

module_result_adapter: TypeAdapter = TypeAdapter(ModuleResult)


def create_result(
    kind: ModuleKind,
    *,
    settings: Optional[Settings] = None,
    immediate_memory: Optional[ImmediateMemoryResult] = None,
) -> ModuleResult:
    """Empty result for a module becoming active for the first time."""
    settings = settings or get_settings()
    if kind is ModuleKind.SYMPTOMS:
        return SymptomResult()
    if kind is ModuleKind.ORIENTATION:
        return OrientationResult()
    if kind is ModuleKind.CONCENTRATION:
        return ConcentrationResult(
            digit_sequences=[list(s) for s in settings.DIGIT_SEQUENCES],
            max_consecutive_fails=settings.DIGIT_SPAN_MAX_CONSECUTIVE_FAILS,
        )
    if kind is ModuleKind.IMMEDIATE_MEMORY:
        return ImmediateMemoryResult.create(settings.MEMORY_WORD_LIST, settings.MEMORY_TRIAL_COUNT)
    if kind is ModuleKind.DELAYED_RECALL:
        if immediate_memory is None:
            return DelayedRecallResult(word_list=tuple(settings.MEMORY_WORD_LIST))
        return DelayedRecallResult.from_immediate_memory(immediate_memory)
    if kind is ModuleKind.BALANCE:
        return BalanceResult(
            trial_seconds=settings.BALANCE_TRIAL_SECONDS,
            max_errors_per_trial=settings.BALANCE_MAX_ERRORS_PER_TRIAL,
        )
    if kind is ModuleKind.COORDINATION:
        return CoordinationResult()
    raise ValueError(f"Unknown module kind: {kind}")
