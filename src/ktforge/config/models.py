"""
Core configuration models for ktforge.

Defines all configuration structures using Pydantic for validation.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from ktforge.repair.rules import RUNTIME_NAMESPACE
from ktforge.repair.singleton import DEFAULT_AGGREGATE
from ktforge.runtime import RUNTIME_INSTALL_PATH, default_search_paths


# ============================================================================
# Project Layout
# ============================================================================


class LayoutConfig(BaseModel):
    """Directory conventions of the assembled Gradle project."""

    source_dir: Path = Field(
        default=Path("src/main/kotlin"), description="Kotlin source subtree, relative to the root"
    )
    resources_dir: Path = Field(
        default=Path("src/main/resources"), description="Resources subtree, relative to the root"
    )
    target_extension: str = Field(default=".kt", description="Extension of target-dialect files")
    intermediate_extension: str = Field(
        default=".java", description="Extension of intermediate-dialect files"
    )
    reserved_dirs: list[str] = Field(
        default_factory=lambda: ["src", "build", ".gradle"],
        description="Top-level directories never repaired or relocated (dot-directories always are)",
    )
    build_descriptor: str = Field(default="build.gradle.kts", description="Build descriptor filename")
    settings_descriptor: str = Field(
        default="settings.gradle.kts", description="Settings descriptor filename"
    )
    ignore_file: str = Field(default=".gitignore", description="Ignore file filename")
    project_suffix: str = Field(
        default="-kt", description="Suffix appended to the base name in the settings descriptor"
    )

    @field_validator("target_extension", "intermediate_extension")
    @classmethod
    def _dotted(cls, value: str) -> str:
        return value if value.startswith(".") else f".{value}"


# ============================================================================
# Gradle Configuration
# ============================================================================


class GradleConfig(BaseModel):
    """Values baked into the synthesized build descriptor."""

    kotlin_version: str = Field(default="2.1.0", description="Kotlin JVM plugin version")
    jvm_toolchain: int = Field(default=21, description="JVM toolchain version")
    group: str = Field(default="dafny", description="Maven group of the project")
    version: str = Field(default="1.0", description="Project version")
    main_class: str = Field(default="MainKt", description="Application entry point class")
    ignore_patterns: list[str] = Field(
        default_factory=lambda: ["build/", ".gradle/", ".gradle", "*.jar", "out/", ".idea/", "*.iml"],
        description="Lines of the synthesized ignore file",
    )


# ============================================================================
# Runtime Configuration
# ============================================================================


class RuntimeConfig(BaseModel):
    """Where to find the runtime support library and where to put it."""

    namespace: str = Field(default=RUNTIME_NAMESPACE, description="Package of the runtime library")
    search_paths: list[Path] = Field(
        default_factory=default_search_paths,
        description="Candidate runtime files, tried in order",
    )
    install_path: Path = Field(
        default=RUNTIME_INSTALL_PATH, description="Runtime location inside the source subtree"
    )


# ============================================================================
# Repair Configuration
# ============================================================================


class RepairConfig(BaseModel):
    """Configuration for syntax repair and singleton lowering."""

    disabled_rules: list[str] = Field(
        default_factory=list, description="Rewrite rules to skip, by name"
    )
    default_aggregate: str = Field(
        default=DEFAULT_AGGREGATE, description="Reserved class name lowered to an object"
    )


# ============================================================================
# Main Configuration
# ============================================================================


class KtforgeConfig(BaseModel):
    """Root configuration model for ktforge."""

    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    gradle: GradleConfig = Field(default_factory=GradleConfig)
    runtime: RuntimeConfig = Field(default_factory=RuntimeConfig)
    repair: RepairConfig = Field(default_factory=RepairConfig)
