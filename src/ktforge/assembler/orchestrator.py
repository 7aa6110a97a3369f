"""
Project Assembler: the main assembly pipeline.

Turns the generator's flat output directory into a Gradle project:
1. Repair every generated source file in place (.java becomes .kt)
2. Create the source and resources subtrees
3. Copy in the runtime support library
4. Move generated files and directories into the source subtree
5. Lower the default aggregation class to an object
6. Write the build, settings and ignore manifests
7. Copy caller-supplied extra files into the source subtree

Steps 1-6 are best-effort: an error is recorded on the result and the run
moves on. Step 7 is the only fatal one: an extra file with the wrong
extension stops the assembly.
"""

import logging
import shutil
from collections.abc import Callable, Iterable
from pathlib import Path

from ktforge.assembler.manifests import render_manifests
from ktforge.assembler.results import AssemblyResult, StatusLevel, StatusWriter
from ktforge.config.models import KtforgeConfig
from ktforge.repair.pipeline import SyntaxRepairPipeline
from ktforge.repair.rules import build_rules
from ktforge.repair.singleton import SingletonLowering
from ktforge.runtime import locate_runtime

logger = logging.getLogger(__name__)


def _log_status(level: StatusLevel, message: str) -> None:
    if level == StatusLevel.ERROR:
        logger.error(message)
    else:
        logger.info(message)


class ProjectAssembler:
    """Repairs generator output and assembles it into a Gradle project.

    The assembler assumes exclusive ownership of the target directory for
    the duration of one ``assemble`` call.
    """

    def __init__(
        self,
        config: KtforgeConfig | None = None,
        status: StatusWriter | None = None,
    ):
        self.config = config or KtforgeConfig()
        self.status = status if status is not None else _log_status
        self.pipeline = SyntaxRepairPipeline(
            build_rules(
                runtime_namespace=self.config.runtime.namespace,
                disabled=set(self.config.repair.disabled_rules),
            )
        )
        self.lowering = SingletonLowering(self.config.repair.default_aggregate)

    @property
    def layout(self):
        return self.config.layout

    def assemble(
        self,
        target_dir: Path,
        base_name: str,
        extern_files: Iterable[Path] = (),
        verbose: bool = False,
    ) -> AssemblyResult:
        """Run the full assembly over ``target_dir``.

        Args:
            target_dir: Flat generator output; becomes the project root
            base_name: Program name the settings descriptor is derived from
            extern_files: Extra target-dialect files to copy in verbatim
            verbose: Report each copied extra file

        Returns:
            AssemblyResult listing written paths and recovered errors
        """
        root = Path(target_dir)
        source_dir = root / self.layout.source_dir
        result = AssemblyResult(root=str(root))

        steps: list[tuple[str, Callable[[], None]]] = [
            ("repair", lambda: self._repair_sources(root, result)),
            ("layout", lambda: self._create_layout(root)),
            ("runtime", lambda: self._place_runtime(source_dir, result)),
            ("relocate", lambda: self._relocate(root, source_dir, result)),
            ("lower", lambda: self._lower_sources(source_dir, result)),
            ("manifests", lambda: self._write_manifests(root, base_name, result)),
        ]

        total = len(steps) + 1
        for number, (name, step) in enumerate(steps, 1):
            logger.info(f"Step {number}/{total}: {name}")
            try:
                step()
            except Exception as e:
                logger.warning(f"Step '{name}' failed: {e}")
                result.record_error(name, str(e))

        logger.info(f"Step {total}/{total}: extern")
        if self._copy_externs(extern_files, root, source_dir, result, verbose):
            result.run_command = f"gradle -p {root} run"
            self.status(
                StatusLevel.INFO,
                f"To run your Kotlin program, execute: {result.run_command}",
            )

        self._log_summary(result)
        return result

    # =========================================================================
    # Step 1: Repair
    # =========================================================================

    def _is_reserved(self, name: str) -> bool:
        return name.startswith(".") or name in self.layout.reserved_dirs

    def _in_reserved_dir(self, root: Path, path: Path) -> bool:
        parts = path.relative_to(root).parts
        return len(parts) > 1 and (
            self._is_reserved(parts[0]) or any(p.startswith(".") for p in parts[1:-1])
        )

    def _generated_sources(self, root: Path) -> list[Path]:
        """Files to repair.

        Intermediate-dialect files are taken from anywhere in the tree, since
        none may survive assembly. Target-dialect files under reserved
        directories are already assembled (runtime, extra inputs) and are
        left as they are.
        """
        sources = []
        for path in sorted(root.rglob("*")):
            if not path.is_file():
                continue
            if path.suffix == self.layout.intermediate_extension:
                sources.append(path)
            elif path.suffix == self.layout.target_extension and not self._in_reserved_dir(root, path):
                sources.append(path)
        return sources

    def _repair_sources(self, root: Path, result: AssemblyResult) -> None:
        intermediate = self.layout.intermediate_extension
        sources = self._generated_sources(root)
        converted: set[Path] = set()

        for path in [p for p in sources if p.suffix == intermediate]:
            name = path.relative_to(root).as_posix()
            try:
                report = self.pipeline.repair_file(path, display_root=root)
                target = path.with_suffix(self.layout.target_extension)
                target.write_text(report.text, encoding="utf-8")
                path.unlink()
            except Exception as e:
                logger.warning(f"Could not convert {name}: {e}")
                result.record_error("repair", str(e), name)
                continue
            result.repairs.append(report)
            result.record_write(target)
            converted.add(target)

        for path in [p for p in sources if p.suffix != intermediate and p not in converted]:
            name = path.relative_to(root).as_posix()
            try:
                report = self.pipeline.repair_file(path, display_root=root)
                if report.changed:
                    path.write_text(report.text, encoding="utf-8")
                    result.record_write(path)
            except Exception as e:
                logger.warning(f"Could not repair {name}: {e}")
                result.record_error("repair", str(e), name)
                continue
            result.repairs.append(report)

        changed = sum(1 for r in result.repairs if r.changed)
        logger.info(f"  Repaired {changed}/{len(result.repairs)} file(s)")

    # =========================================================================
    # Steps 2-3: Layout and runtime
    # =========================================================================

    def _create_layout(self, root: Path) -> None:
        (root / self.layout.source_dir).mkdir(parents=True, exist_ok=True)
        (root / self.layout.resources_dir).mkdir(parents=True, exist_ok=True)

    def _place_runtime(self, source_dir: Path, result: AssemblyResult) -> None:
        search_paths = self.config.runtime.search_paths
        runtime = locate_runtime(search_paths)
        if runtime is None:
            searched = ", ".join(str(p) for p in search_paths) or "no search paths"
            logger.warning("Runtime support library not found; the project will lack it")
            result.record_error("runtime", f"runtime support library not found ({searched})")
            return

        target = source_dir / self.config.runtime.install_path
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(runtime, target)
        result.runtime_path = str(runtime)
        result.record_write(target)

    # =========================================================================
    # Step 4: Relocate
    # =========================================================================

    def _relocate(self, root: Path, source_dir: Path, result: AssemblyResult) -> None:
        """Move top-level sources and directories into the source subtree.

        An existing destination is replaced, so re-running over fresh
        generator output overwrites the previous assembly.
        """
        source_dir.mkdir(parents=True, exist_ok=True)
        for entry in sorted(root.iterdir()):
            if entry.is_dir() and self._is_reserved(entry.name):
                continue
            if entry.is_file() and entry.suffix != self.layout.target_extension:
                continue

            destination = source_dir / entry.name
            try:
                if destination.is_dir():
                    shutil.rmtree(destination)
                elif destination.exists():
                    destination.unlink()
                shutil.move(str(entry), str(destination))
            except Exception as e:
                logger.warning(f"Could not move {entry.name}: {e}")
                result.record_error("relocate", str(e), entry.name)
                continue

            if destination.is_dir():
                for moved in sorted(destination.rglob("*")):
                    if moved.is_file():
                        result.record_write(moved)
            else:
                result.record_write(destination)

    # =========================================================================
    # Step 5: Lower
    # =========================================================================

    def _lower_sources(self, source_dir: Path, result: AssemblyResult) -> None:
        reserved = self.config.repair.default_aggregate
        for path in sorted(source_dir.rglob(f"*{self.layout.target_extension}")):
            name = path.relative_to(source_dir).as_posix()
            try:
                text = path.read_text(encoding="utf-8")
                if reserved not in text:
                    continue
                lowering = self.lowering.lower(text, name)
                if lowering.converted:
                    path.write_text(lowering.text, encoding="utf-8")
                    result.record_write(path)
            except Exception as e:
                logger.warning(f"Could not lower {name}: {e}")
                result.record_error("lower", str(e), name)
                continue
            result.lowerings.append(lowering)

    # =========================================================================
    # Step 6: Manifests
    # =========================================================================

    def _write_manifests(self, root: Path, base_name: str, result: AssemblyResult) -> None:
        for filename, content in render_manifests(
            base_name, self.layout, self.config.gradle
        ).items():
            manifest = root / filename
            manifest.write_text(content, encoding="utf-8")
            result.record_write(manifest)

    # =========================================================================
    # Step 7: Extern files
    # =========================================================================

    def _copy_externs(
        self,
        extern_files: Iterable[Path],
        root: Path,
        source_dir: Path,
        result: AssemblyResult,
        verbose: bool,
    ) -> bool:
        for extern in extern_files:
            extern = Path(extern)
            if extern.suffix != self.layout.target_extension:
                return self._fail(
                    result,
                    f"Unrecognized file as extra input for Kotlin compilation: {extern}",
                )

            target = source_dir / extern.name
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
                shutil.copyfile(extern, target)
            except OSError as e:
                return self._fail(result, f"Could not copy extra input {extern}: {e}")

            result.externs.append(target.relative_to(root).as_posix())
            result.record_write(target)
            if verbose:
                self.status(StatusLevel.INFO, f"Additional input {extern} copied to {target}")
        return True

    def _fail(self, result: AssemblyResult, message: str) -> bool:
        result.success = False
        result.fatal = message
        self.status(StatusLevel.ERROR, message)
        return False

    def _log_summary(self, result: AssemblyResult) -> None:
        errors = result.all_errors
        if not errors:
            logger.info(f"Assembly of {result.root} finished cleanly")
            return
        logger.warning(f"Assembly of {result.root} recovered from {len(errors)} error(s):")
        for error in errors:
            logger.warning(f"  {error}")
