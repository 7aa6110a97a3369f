"""
Text-level repair of generated Kotlin.
"""

from ktforge.repair.pipeline import RepairReport, RuleError, SyntaxRepairPipeline
from ktforge.repair.rules import DEFAULT_RULES, RewriteRule, build_rules
from ktforge.repair.singleton import LoweringResult, SingletonLowering

__all__ = [
    "DEFAULT_RULES",
    "LoweringResult",
    "RepairReport",
    "RewriteRule",
    "RuleError",
    "SingletonLowering",
    "SyntaxRepairPipeline",
    "build_rules",
]
