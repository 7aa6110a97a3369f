"""
Syntax repair pipeline.

Runs the ordered rewrite rules over one file's text in a single pass. A
rule that raises is skipped: the text produced by the last successful rule
is carried forward, and the failure is recorded on the report so that it
can be surfaced in the end-of-run summary instead of disappearing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from ktforge.repair.rules import RewriteRule, build_rules

logger = logging.getLogger(__name__)


@dataclass
class RuleError:
    """A rule that raised while repairing one file."""

    rule: str
    path: str | None
    message: str


@dataclass
class RepairReport:
    """Outcome of repairing a single file."""

    path: str | None
    text: str
    applied: list[str] = field(default_factory=list)
    errors: list[RuleError] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.applied)

    @property
    def summary(self) -> str:
        name = self.path or "<text>"
        if not self.applied:
            return f"{name}: no repairs needed"
        return f"{name}: applied {len(self.applied)} rules ({', '.join(self.applied)})"


class SyntaxRepairPipeline:
    """Applies the rewrite rules, in order, to generated source text."""

    def __init__(self, rules: list[RewriteRule] | None = None):
        self.rules = list(rules) if rules is not None else build_rules()

    @property
    def rule_names(self) -> list[str]:
        return [rule.name for rule in self.rules]

    def repair(self, text: str, path: str | None = None) -> RepairReport:
        """Run every rule once over ``text``.

        Args:
            text: Raw generated source
            path: Display name of the file, used in reports and logs

        Returns:
            RepairReport holding the repaired text
        """
        report = RepairReport(path=path, text=text)

        for rule in self.rules:
            try:
                repaired = rule(report.text)
            except Exception as e:
                logger.warning(f"Rule '{rule.name}' failed for {path or '<text>'}: {e}")
                report.errors.append(RuleError(rule=rule.name, path=path, message=str(e)))
                continue
            if repaired != report.text:
                report.applied.append(rule.name)
                report.text = repaired

        return report

    def repair_file(self, source: Path, display_root: Path | None = None) -> RepairReport:
        """Read ``source`` and repair its content. The file is not rewritten."""
        source = Path(source)
        name = str(source.relative_to(display_root)) if display_root else str(source)
        return self.repair(source.read_text(encoding="utf-8"), path=name)
