"""
scoring/summary.py — Session score aggregation

Collects the sub-scores of every result in a session into one summary.

Cognitive total (Standardized Assessment of Concussion):
    cognitive = orientation + immediate memory + concentration + delayed recall

Each component is included only when its module was part of the session;
the maximum is summed over the same components. No interpretation is made.
"""

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Mapping, Optional

import structlog

from scat_engine.models.enumerations import ModuleKind
from scat_engine.models.results import (
    ORIENTATION_QUESTIONS,
    BalanceResult,
    ConcentrationResult,
    CoordinationResult,
    DelayedRecallResult,
    ImmediateMemoryResult,
    OrientationResult,
    SymptomResult,
)
from scat_engine.scoring import rules

logger = structlog.get_logger(__name__)


@dataclass
class SessionScoreSummary:
    """Output of SessionScoreCalculator.calculate()."""
    symptom_severity: Optional[int] = None      # 0-132
    symptom_count: Optional[int] = None         # 0-22
    orientation: Optional[int] = None           # 0-5
    immediate_memory: Optional[int] = None      # 0-3 × list length
    concentration: Optional[int] = None         # digits + months
    delayed_recall: Optional[int] = None        # 0-list length
    cognitive_total: Optional[int] = None
    cognitive_max: Optional[int] = None
    balance_errors: Optional[int] = None        # sum over stances, 10 per stance max
    coordination_abnormal: Optional[int] = None # 0-2
    completed_modules: List[str] = field(default_factory=list)
    skipped_modules: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class SessionScoreCalculator:
    """Aggregate module results into a SessionScoreSummary."""

    def calculate(self, results: Mapping[ModuleKind, Any]) -> SessionScoreSummary:
        """
        Args:
            results: Mapping of module kind → result record. Kinds absent from
                     the mapping leave their summary fields as None.

        Returns:
            SessionScoreSummary with every available sub-score.

        Examples:
            >>> from scat_engine.models.results import OrientationResult
            >>> r = OrientationResult(answers=[True, True, False, True, True])
            >>> SessionScoreCalculator().calculate({ModuleKind.ORIENTATION: r}).orientation
            4
        """
        summary = SessionScoreSummary()
        cognitive_total = 0
        cognitive_max = 0
        has_cognitive = False

        symptoms: Optional[SymptomResult] = results.get(ModuleKind.SYMPTOMS)
        if symptoms is not None:
            summary.symptom_severity = symptoms.total_severity
            summary.symptom_count = symptoms.symptom_count

        orientation: Optional[OrientationResult] = results.get(ModuleKind.ORIENTATION)
        if orientation is not None:
            summary.orientation = orientation.score
            cognitive_total += orientation.score
            cognitive_max += len(ORIENTATION_QUESTIONS)
            has_cognitive = True

        memory: Optional[ImmediateMemoryResult] = results.get(ModuleKind.IMMEDIATE_MEMORY)
        if memory is not None:
            summary.immediate_memory = memory.total_score
            cognitive_total += memory.total_score
            cognitive_max += memory.max_score
            has_cognitive = True

        concentration: Optional[ConcentrationResult] = results.get(ModuleKind.CONCENTRATION)
        if concentration is not None:
            summary.concentration = concentration.total_score
            cognitive_total += concentration.total_score
            cognitive_max += len(concentration.digit_sequences) + rules.MONTHS_REVERSE_POINTS
            has_cognitive = True

        recall: Optional[DelayedRecallResult] = results.get(ModuleKind.DELAYED_RECALL)
        if recall is not None:
            summary.delayed_recall = recall.score
            cognitive_total += recall.score
            cognitive_max += len(recall.word_list)
            has_cognitive = True

        if has_cognitive:
            summary.cognitive_total = cognitive_total
            summary.cognitive_max = cognitive_max

        balance: Optional[BalanceResult] = results.get(ModuleKind.BALANCE)
        if balance is not None:
            summary.balance_errors = balance.total_errors

        coordination: Optional[CoordinationResult] = results.get(ModuleKind.COORDINATION)
        if coordination is not None:
            summary.coordination_abnormal = coordination.abnormal_count

        for kind, result in results.items():
            if result.completed:
                summary.completed_modules.append(kind.value)
            if result.skipped:
                summary.skipped_modules.append(kind.value)

        logger.info(
            "session_scores_calculated",
            cognitive_total=summary.cognitive_total,
            cognitive_max=summary.cognitive_max,
            symptom_severity=summary.symptom_severity,
            balance_errors=summary.balance_errors,
            completed=len(summary.completed_modules),
        )
        return summary
