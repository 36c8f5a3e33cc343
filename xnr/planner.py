"""Output path planning - where each discovered file is written."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from xnr.errors import WriteError, pretty_path
from xnr.graph import ModuleGraph, SourceFile
from xnr.types import ModuleFormat, SpecifierTargets
from xnr.utils.logging import logger


@dataclass
class OutputPlan:
    """Target path of every graph member, below one output directory."""

    output_dir: Path
    root: Path
    targets: dict[Path, Path] = field(default_factory=dict)

    def target_for(self, path: Path) -> Path:
        return self.targets[path]


def common_root(start: Path, paths: list[Path]) -> Path:
    """Walk up from start until every path lies below the candidate."""
    root = start
    while not all(path.is_relative_to(root) for path in paths):
        if root.parent == root:
            break
        root = root.parent
    return root


def relative_specifier(target: Path, from_dir: Path) -> str:
    """Posix relative specifier from a directory to a file, always dot-prefixed."""
    relative = Path(os.path.relpath(target, from_dir)).as_posix()
    if relative.startswith("../"):
        return relative
    return "./" + relative


class OutputPathPlanner:
    """Maps input files to output files that mirror their layout below a common root."""

    def plan(self, graph: ModuleGraph, output_dir: Path | str) -> OutputPlan:
        """Map every graph member below output_dir.

        Raises:
            WriteError: If two inputs map to the same output file (a.ts and a.js)
        """
        output_dir = Path(os.path.normpath(os.path.abspath(output_dir)))
        paths = list(graph.files)
        start = graph.entry.parent if graph.entry else (paths[0].parent if paths else output_dir)
        root = common_root(start, paths)

        plan = OutputPlan(output_dir=output_dir, root=root)
        owners: dict[Path, Path] = {}
        for source in graph:
            target = output_dir / source.path.relative_to(root).with_suffix(source.format.extension)
            if target in owners:
                others = f"{pretty_path(owners[target])} and {pretty_path(source.path)}"
                raise WriteError(target, f"{others} would both be written here")
            owners[target] = source.path
            plan.targets[source.path] = target

        logger.debug(f"Planned {len(plan.targets)} output(s) under {output_dir} from root {root}")
        return plan

    def specifier_targets(self, source: SourceFile, graph: ModuleGraph, plan: OutputPlan) -> SpecifierTargets:
        """Emitted specifier for each internal edge of source.

        The extension always follows the mechanism (require -> .cjs, anything
        else -> .mjs) even if the dependency itself was emitted in the other
        format; such cases are recorded as graph conflicts.
        """
        importer_dir = plan.target_for(source.path).parent
        targets: SpecifierTargets = {}
        for edge in source.edges:
            if not edge.internal:
                continue
            dependency = graph.dependency(source, edge.specifier)
            if dependency is None:
                continue
            target = plan.target_for(dependency.path).with_suffix(
                ModuleFormat.for_mechanism(edge.mechanism).extension
            )
            if edge.specifier.startswith("/"):
                targets[(edge.specifier, edge.mechanism)] = target.as_posix()
            else:
                targets[(edge.specifier, edge.mechanism)] = relative_specifier(target, importer_dir)
        return targets
