"""Build, run and transform entry points.

Sequencing:
    1. Reset the output directory
    2. Discover the module graph from the entry (sequential)
    3. Plan output paths
    4. Rewrite and write every file (concurrent)
    5. Optionally run the emitted entry with node and remove the output
"""

import asyncio
import os
import shutil
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from xnr.config import load_runtime_config
from xnr.errors import WriteError, XnrError
from xnr.graph import (
    BuildContext,
    ModuleGraph,
    ModuleGraphBuilder,
    SourceFile,
    normalize_entry,
    strip_interpreter_directive,
)
from xnr.planner import OutputPathPlanner, OutputPlan
from xnr.rewriter import ImportRewriter
from xnr.types import ModuleFormat
from xnr.utils.constants import INTERPRETER_DIRECTIVE, REQUIRE_PRELUDE
from xnr.utils.exit_codes import ExitCodes
from xnr.utils.logging import logger


def render_output(text: str, fmt: ModuleFormat) -> str:
    """Prefix emitted text with the interpreter directive and, for .mjs, a require prelude."""
    prelude = INTERPRETER_DIRECTIVE
    if fmt is ModuleFormat.MODULE and "createRequire" not in text:
        prelude += REQUIRE_PRELUDE
    return prelude + text


def check_output_dir(output_dir: Path, entry: Path) -> None:
    """Raise WriteError if output_dir contains the entry file."""
    if entry.is_relative_to(output_dir):
        raise WriteError(output_dir, "refusing to clear a directory that contains the entry file")


def reset_output_dir(output_dir: Path, entry: Path) -> None:
    """Remove output_dir; it is recreated as files are written.

    A build that fails before writing therefore leaves no output directory.

    Raises:
        WriteError: If output_dir contains the entry or cannot be removed
    """
    check_output_dir(output_dir, entry)
    if not output_dir.exists():
        return
    try:
        if output_dir.is_dir() and not output_dir.is_symlink():
            shutil.rmtree(output_dir)
        else:
            output_dir.unlink()
    except OSError as e:
        raise WriteError(output_dir, str(e)) from e


def write_output(target: Path, content: str) -> None:
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        raise WriteError(target, str(e)) from e


async def _emit(
    source: SourceFile,
    graph: ModuleGraph,
    plan: OutputPlan,
    context: BuildContext,
    planner: OutputPathPlanner,
    rewriter: ImportRewriter,
) -> None:
    targets = planner.specifier_targets(source, graph, plan)
    text = await rewriter.rewrite(context.tree_for(source), targets)
    target = plan.target_for(source.path)
    await asyncio.to_thread(write_output, target, render_output(text, source.format))
    logger.debug(f"Wrote {target}")


async def build_async(
    entry: Path | str,
    output_dir: Path | str | None = None,
    config: dict[str, Any] | None = None,
) -> Path | None:
    """Convert an entry file and its dependencies into a directory of node-friendly files.

    Args:
        entry: Entry source file
        output_dir: Where to write the output tree (default: paths.build_dir)
        config: Runtime configuration (default: load_runtime_config())

    Returns:
        Path of the emitted entry file, or None if nothing was emitted
    """
    context = BuildContext(config)
    entry_path = normalize_entry(entry)
    output_path = normalize_entry(output_dir or context.config["paths"]["build_dir"])

    reset_output_dir(output_path, entry_path)

    graph = ModuleGraphBuilder(context).build(entry_path)
    if not graph.files or graph.entry is None:
        return None

    planner = OutputPathPlanner()
    plan = planner.plan(graph, output_path)
    rewriter = ImportRewriter(context.classifier, context.packages)

    tasks = [
        asyncio.create_task(_emit(source, graph, plan, context, planner, rewriter))
        for source in graph
    ]
    try:
        await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise

    logger.info(f"Wrote {len(plan.targets)} file(s) to {output_path}")
    return plan.target_for(graph.entry)


def build(
    entry: Path | str,
    output_dir: Path | str | None = None,
    config: dict[str, Any] | None = None,
) -> Path | None:
    """Synchronous wrapper around build_async."""
    return asyncio.run(build_async(entry, output_dir, config))


async def run_async(
    entry: Path | str,
    args: Sequence[str] = (),
    output_dir: Path | str | None = None,
    config: dict[str, Any] | None = None,
) -> int:
    """Build entry into a transient directory, run it with node and clean up.

    Returns:
        The child's exit code (128 + N if killed by signal N)
    """
    config = config or load_runtime_config()
    output_path = normalize_entry(output_dir or config["paths"]["run_dir"])
    node = config["runtime"]["node"]
    check_output_dir(output_path, normalize_entry(entry))

    try:
        emitted = await build_async(entry, output_path, config)
        if emitted is None:
            logger.error(f"Nothing was emitted for {entry}")
            return ExitCodes.NOTHING_TO_RUN

        try:
            process = await asyncio.create_subprocess_exec(node, str(emitted), *args)
        except OSError as e:
            raise XnrError(f"Could not start {node}: {e}") from e
        code = ExitCodes.from_returncode(await process.wait())
        logger.debug(f"{node} finished: {ExitCodes.get_description(code)}")
        return code
    finally:
        shutil.rmtree(output_path, ignore_errors=True)


def run(
    entry: Path | str,
    args: Sequence[str] = (),
    output_dir: Path | str | None = None,
    config: dict[str, Any] | None = None,
) -> int:
    """Synchronous wrapper around run_async."""
    return asyncio.run(run_async(entry, args, output_dir, config))


async def transform_async(
    code: str,
    file_path: Path | str | None = None,
    config: dict[str, Any] | None = None,
) -> str:
    """Convert one source string to node-friendly text.

    Internal specifiers get the .mjs / .cjs extension appended; nothing on
    disk is traversed except installed packages needed for named-import interop.
    """
    context = BuildContext(config)
    path = Path(os.path.abspath(file_path)) if file_path else None
    plain = strip_interpreter_directive(context.transformer.transform(code, path))
    tree = context.parser.parse(plain, path)
    rewriter = ImportRewriter(context.classifier, context.packages)
    return await rewriter.rewrite(tree)


def transform(
    code: str,
    file_path: Path | str | None = None,
    config: dict[str, Any] | None = None,
) -> str:
    """Synchronous wrapper around transform_async."""
    return asyncio.run(transform_async(code, file_path, config))
