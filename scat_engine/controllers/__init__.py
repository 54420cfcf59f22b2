"""
controllers/ — per-module command targets

Modules:
    base.py        - ModuleController protocol and table-driven base class
    symptoms.py    - Symptom checklist
    cognitive.py   - Orientation, concentration, immediate memory, delayed recall
    physical.py    - Balance stances, coordination
"""

from typing import Dict, Type

from scat_engine.controllers.base import BaseModuleController, CompletionCallback, ModuleController
from scat_engine.controllers.cognitive import (
    ConcentrationController,
    DelayedRecallController,
    ImmediateMemoryController,
    OrientationController,
)
from scat_engine.controllers.physical import BalanceController, CoordinationController
from scat_engine.controllers.symptoms import SymptomController
from scat_engine.models.enumerations import ModuleKind

CONTROLLER_TYPES: Dict[ModuleKind, Type[BaseModuleController]] = {
    ModuleKind.SYMPTOMS: SymptomController,
    ModuleKind.ORIENTATION: OrientationController,
    ModuleKind.CONCENTRATION: ConcentrationController,
    ModuleKind.IMMEDIATE_MEMORY: ImmediateMemoryController,
    ModuleKind.DELAYED_RECALL: DelayedRecallController,
    ModuleKind.BALANCE: BalanceController,
    ModuleKind.COORDINATION: CoordinationController,
}


def build_controller(result, on_complete: CompletionCallback) -> BaseModuleController:
    """Controller matching ``result.kind``."""
    return CONTROLLER_TYPES[result.kind](result, on_complete)


__all__ = [
    "BaseModuleController",
    "BalanceController",
    "CompletionCallback",
    "ConcentrationController",
    "CONTROLLER_TYPES",
    "CoordinationController",
    "DelayedRecallController",
    "ImmediateMemoryController",
    "ModuleController",
    "OrientationController",
    "SymptomController",
    "build_controller",
]
