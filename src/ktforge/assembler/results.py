"""
Assembly results.

Every step of an assembly reports into one ``AssemblyResult``: the paths it
wrote, the errors it recovered from, and the single fatal condition that
can stop the run. Results can be persisted as JSON for later inspection.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

import orjson

from ktforge.repair.pipeline import RepairReport
from ktforge.repair.singleton import LoweringResult


class StatusLevel(str, Enum):
    """Severity of a status message sent to the caller."""

    INFO = "info"
    ERROR = "error"


class StatusWriter(Protocol):
    def __call__(self, level: StatusLevel, message: str) -> None: ...


@dataclass
class StepError:
    """An error recovered from during one assembly step."""

    step: str
    message: str
    path: str | None = None

    def __str__(self) -> str:
        where = f" ({self.path})" if self.path else ""
        return f"[{self.step}]{where} {self.message}"


@dataclass
class AssemblyResult:
    """Summary of one assembly run."""

    root: str
    success: bool = True
    fatal: str | None = None
    written: list[str] = field(default_factory=list)
    errors: list[StepError] = field(default_factory=list)
    repairs: list[RepairReport] = field(default_factory=list)
    lowerings: list[LoweringResult] = field(default_factory=list)
    externs: list[str] = field(default_factory=list)
    runtime_path: str | None = None
    run_command: str | None = None

    def record_write(self, path: Path) -> None:
        relative = Path(path).relative_to(self.root).as_posix()
        if relative not in self.written:
            self.written.append(relative)

    def record_error(self, step: str, message: str, path: str | None = None) -> None:
        self.errors.append(StepError(step=step, message=message, path=path))

    @property
    def rule_errors(self) -> list[StepError]:
        return [
            StepError(step=f"repair:{e.rule}", message=e.message, path=e.path)
            for report in self.repairs
            for e in report.errors
        ]

    @property
    def all_errors(self) -> list[StepError]:
        return self.errors + self.rule_errors

    @property
    def converted(self) -> list[str]:
        return [r.path for r in self.lowerings if r.converted and r.path]

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "success": self.success,
            "fatal": self.fatal,
            "written": sorted(self.written),
            "errors": [
                {"step": e.step, "path": e.path, "message": e.message}
                for e in self.all_errors
            ],
            "repairs": {r.path: r.applied for r in self.repairs if r.applied},
            "lowerings": {r.path: r.reason for r in self.lowerings},
            "externs": self.externs,
            "runtime_path": self.runtime_path,
            "run_command": self.run_command,
        }

    def save(self, report_path: Path) -> Path:
        """Write the result as JSON and return the file path."""
        report_path = Path(report_path)
        report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(report_path, "wb") as f:
            f.write(orjson.dumps(
                self.to_dict(),
                option=orjson.OPT_INDENT_2 | orjson.OPT_SORT_KEYS,
            ))
        return report_path
