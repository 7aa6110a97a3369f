"""
Gradle manifest templates.

The build descriptor, settings descriptor and ignore file of an assembled
project come from fixed templates; only the project base name varies per
program.
"""

from ktforge.config.models import GradleConfig, LayoutConfig

BUILD_GRADLE_TEMPLATE = """\
plugins {{
    kotlin("jvm") version "{kotlin_version}"
    application
}}

group = "{group}"
version = "{version}"

repositories {{
    mavenCentral()
    mavenLocal()
}}

dependencies {{
    testImplementation(kotlin("test"))
}}

tasks.test {{
    useJUnitPlatform()
}}

kotlin {{
    jvmToolchain({jvm_toolchain})
}}

application {{
    mainClass.set("{main_class}")
}}
"""


def build_descriptor(gradle: GradleConfig) -> str:
    return BUILD_GRADLE_TEMPLATE.format(
        kotlin_version=gradle.kotlin_version,
        group=gradle.group,
        version=gradle.version,
        jvm_toolchain=gradle.jvm_toolchain,
        main_class=gradle.main_class,
    )


def settings_descriptor(base_name: str, layout: LayoutConfig) -> str:
    return f'rootProject.name = "{base_name}{layout.project_suffix}"\n'


def ignore_file(gradle: GradleConfig) -> str:
    return "".join(f"{pattern}\n" for pattern in gradle.ignore_patterns)


def render_manifests(base_name: str, layout: LayoutConfig, gradle: GradleConfig) -> dict[str, str]:
    """Map each manifest filename to its content."""
    return {
        layout.build_descriptor: build_descriptor(gradle),
        layout.settings_descriptor: settings_descriptor(base_name, layout),
        layout.ignore_file: ignore_file(gradle),
    }
