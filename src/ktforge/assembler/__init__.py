"""
Project assembly.

Repairs generator output, lowers the default aggregation class, and lays
the result out as a Gradle project with the runtime library and any extra
caller-supplied files.
"""

from ktforge.assembler.generated import (
    GeneratedFile,
    clean_build_outputs,
    program_base_name,
    target_base_dir,
    write_generated_files,
)
from ktforge.assembler.orchestrator import ProjectAssembler
from ktforge.assembler.results import AssemblyResult, StatusLevel, StepError

__all__ = [
    "AssemblyResult",
    "GeneratedFile",
    "ProjectAssembler",
    "StatusLevel",
    "StepError",
    "clean_build_outputs",
    "program_base_name",
    "target_base_dir",
    "write_generated_files",
]
